"""Prediction materialization: scorable models, ensembles and installed functions."""

from .ensemble import PredictionEnsemble
from .materializer import ModelLoader, PredictionMaterializer
from .registry import FunctionRegistry
from .schemas import PredictOptions
from .scorable import ScorableModel

__all__ = [
    "FunctionRegistry",
    "ModelLoader",
    "PredictOptions",
    "PredictionEnsemble",
    "PredictionMaterializer",
    "ScorableModel",
]
