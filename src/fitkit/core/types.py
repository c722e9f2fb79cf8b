"""Custom pydantic types for fitkit."""

from __future__ import annotations

import json
import math
from typing import Annotated, Any

import numpy as np
from pydantic import PlainSerializer


def _to_builtin(value: Any) -> Any:
    """Convert numpy scalars and arrays to plain Python values."""
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value


def _is_json_serializable(value: Any) -> bool:
    """Test if value can be serialized to JSON."""
    try:
        json.dumps(value, allow_nan=False)
        return True
    except (TypeError, ValueError, OverflowError):
        return False


def _create_serialization_metadata(value: Any) -> dict[str, str]:
    """Build metadata dict for non-serializable values with type info and truncated repr."""
    value_repr = repr(value)
    max_repr_length = 200

    if len(value_repr) > max_repr_length:
        value_repr = value_repr[:max_repr_length] + "..."

    return {
        "_type": type(value).__name__,
        "_module": type(value).__module__,
        "_repr": value_repr,
    }


def _serialize_with_metadata(value: Any) -> Any:
    """Serialize value, replacing non-serializable values with metadata dicts."""
    if isinstance(value, dict):
        return {key: _serialize_with_metadata(val) for key, val in value.items()}

    value = _to_builtin(value)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if _is_json_serializable(value):
        return value

    return _create_serialization_metadata(value)


JsonSafe = Annotated[
    Any,
    PlainSerializer(_serialize_with_metadata, return_type=Any),
]
"""Pydantic type that never fails JSON serialization.

Numpy values are converted to builtins; anything else that is not JSON-serializable
(fitted estimators, custom classes) is replaced by a dict with _type, _module and _repr.
"""
