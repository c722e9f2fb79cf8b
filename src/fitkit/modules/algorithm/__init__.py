"""Algorithm plugin contract, registry, evaluator and built-in plugins."""

from fitkit.modules.prediction import ScorableModel
from fitkit.modules.training import GroupTrainer

from .base import CONTROL_PARAMS, BaseAlgorithm
from .classifiers import (
    LogisticRegressionAlgorithm,
    MarginClassifierModel,
    ProbabilityClassifierModel,
    RandomForestAlgorithm,
    SklearnClassifierTrainer,
)
from .evaluation import SUPPORTED_METRICS, MetricEvaluator
from .registry import AlgorithmRegistry

__all__ = [
    "CONTROL_PARAMS",
    "SUPPORTED_METRICS",
    "AlgorithmRegistry",
    "BaseAlgorithm",
    "GroupTrainer",
    "LogisticRegressionAlgorithm",
    "MarginClassifierModel",
    "MetricEvaluator",
    "ProbabilityClassifierModel",
    "RandomForestAlgorithm",
    "ScorableModel",
    "SklearnClassifierTrainer",
]
