"""Capability protocol every predictable model handle implements."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class ScorableModel(Protocol):
    """Model handle exposing raw scores, probability conversion and label decoding.

    All methods are batch oriented: inputs have one row per sample. Implementations
    must not mutate themselves while scoring.
    """

    @property
    def feature_columns(self) -> tuple[str, ...]:
        """Feature column names in the order the model was trained on."""
        ...

    @property
    def feature_count(self) -> int:
        """Number of features the model expects."""
        ...

    def raw_score(self, features: np.ndarray) -> np.ndarray:
        """Return raw scores with shape (n_samples, n_classes)."""
        ...

    def probability(self, raw: np.ndarray) -> np.ndarray:
        """Convert raw scores to class probabilities of the same shape."""
        ...

    def labels(self, probability: np.ndarray) -> np.ndarray:
        """Decode probabilities to one output label per row."""
        ...
