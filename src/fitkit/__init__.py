"""Fitkit - multi-group model training, versioned persistence and ensemble prediction."""

# Core framework
from fitkit.core import (
    ConfigError,
    EvaluationFailure,
    FitkitError,
    IncompatibleModelError,
    IndexNotFoundError,
    ModelNotFoundError,
    PandasDataFrame,
    TrainingFailure,
    configure_logging,
    get_logger,
)

# Algorithm feature (importing registers the built-in plugins)
from fitkit.modules.algorithm import (
    AlgorithmRegistry,
    BaseAlgorithm,
    LogisticRegressionAlgorithm,
    MetricEvaluator,
    RandomForestAlgorithm,
)

# Introspection feature
from fitkit.modules.introspection import ModelExplainer

# ML feature
from fitkit.modules.ml import MLManager, MLRouter

# Params feature
from fitkit.modules.params import ParameterGroup, ParamSchema, ParamSpec, expand_parameter_groups

# Prediction feature
from fitkit.modules.prediction import FunctionRegistry, PredictionEnsemble, PredictionMaterializer, ScorableModel

# Training feature
from fitkit.modules.training import TrainingOrchestrator, TrainSummary

# Versioning feature
from fitkit.modules.versioning import LocalModelStorage, ModelPathManager, ModelSelection, VersionedRoot

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Core framework
    "ConfigError",
    "EvaluationFailure",
    "FitkitError",
    "IncompatibleModelError",
    "IndexNotFoundError",
    "ModelNotFoundError",
    "PandasDataFrame",
    "TrainingFailure",
    "configure_logging",
    "get_logger",
    # Algorithm feature
    "AlgorithmRegistry",
    "BaseAlgorithm",
    "LogisticRegressionAlgorithm",
    "MetricEvaluator",
    "RandomForestAlgorithm",
    # Introspection feature
    "ModelExplainer",
    # ML feature
    "MLManager",
    "MLRouter",
    # Params feature
    "ParamSchema",
    "ParamSpec",
    "ParameterGroup",
    "expand_parameter_groups",
    # Prediction feature
    "FunctionRegistry",
    "PredictionEnsemble",
    "PredictionMaterializer",
    "ScorableModel",
    # Training feature
    "TrainSummary",
    "TrainingOrchestrator",
    # Versioning feature
    "LocalModelStorage",
    "ModelPathManager",
    "ModelSelection",
    "VersionedRoot",
]
