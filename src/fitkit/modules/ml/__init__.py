"""ML module exposing train/predict/register/explain over REST."""

from .manager import MLManager
from .router import MLRouter
from .schemas import ExplainModelIn, PredictIn, PredictOut, RegisterIn, RegisterOut, TableOut, TrainIn

__all__ = [
    "ExplainModelIn",
    "MLManager",
    "MLRouter",
    "PredictIn",
    "PredictOut",
    "RegisterIn",
    "RegisterOut",
    "TableOut",
    "TrainIn",
]
