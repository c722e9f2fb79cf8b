"""Core framework: errors, logging, shared schemas and API building blocks."""

from .exceptions import (
    ConfigError,
    EvaluationFailure,
    FitkitError,
    IncompatibleModelError,
    IndexNotFoundError,
    ModelNotFoundError,
    TrainingFailure,
)
from .logging import configure_logging, get_logger
from .schemas import PandasDataFrame
from .types import JsonSafe

__all__ = [
    "ConfigError",
    "EvaluationFailure",
    "FitkitError",
    "IncompatibleModelError",
    "IndexNotFoundError",
    "JsonSafe",
    "ModelNotFoundError",
    "PandasDataFrame",
    "TrainingFailure",
    "configure_logging",
    "get_logger",
]
