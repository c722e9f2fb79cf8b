"""Immutable ensemble of loaded models with confidence-based row scoring."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from fitkit.core.exceptions import IncompatibleModelError

from .scorable import ScorableModel


@dataclass(frozen=True)
class PredictionEnsemble:
    """Ordered, read-only set of scorable models.

    Each row is scored by every member; the member with the strictly greatest
    confidence (maximum class probability) wins, ties go to the earlier member.
    Built once and shared by any number of concurrent callers.
    """

    members: tuple[ScorableModel, ...]

    def __post_init__(self) -> None:
        members = tuple(self.members)
        object.__setattr__(self, "members", members)

        if not members:
            raise ValueError("A prediction ensemble needs at least one model")

        for position, member in enumerate(members):
            if not isinstance(member, ScorableModel):
                raise TypeError(f"Ensemble member {position} ({type(member).__name__}) is not a ScorableModel")

        counts = {member.feature_count for member in members}
        if len(counts) > 1:
            raise IncompatibleModelError(
                members[0].feature_count,
                next(c for c in counts if c != members[0].feature_count),
                f"Ensemble members disagree on feature count: {sorted(counts)}",
            )

    @classmethod
    def of(cls, models: Sequence[ScorableModel]) -> PredictionEnsemble:
        """Build an ensemble from any sequence of models."""
        return cls(tuple(models))

    def __len__(self) -> int:
        return len(self.members)

    @property
    def feature_count(self) -> int:
        """Number of features every member expects."""
        return self.members[0].feature_count

    @property
    def feature_columns(self) -> tuple[str, ...]:
        """Feature columns of the first member."""
        return self.members[0].feature_columns

    def _matrix(self, features: Any) -> np.ndarray:
        matrix = np.asarray(features, dtype=float)
        if matrix.ndim == 1:
            matrix = matrix.reshape(1, -1)
        if matrix.ndim != 2 or matrix.shape[1] != self.feature_count:
            actual = matrix.shape[-1] if matrix.ndim else 0
            raise IncompatibleModelError(self.feature_count, actual)
        return matrix

    def _row(self, features: Any) -> np.ndarray:
        matrix = self._matrix(features)
        if matrix.shape[0] != 1:
            raise IncompatibleModelError(
                self.feature_count,
                matrix.shape[1],
                f"Row-level prediction takes one feature vector, got {matrix.shape[0]} rows; use transform",
            )
        return matrix

    def _probabilities(self, matrix: np.ndarray) -> list[np.ndarray]:
        return [member.probability(member.raw_score(matrix)) for member in self.members]

    def predict_with_confidence(self, features: Sequence[float] | np.ndarray) -> tuple[float, Any, int]:
        """Score one feature vector; return (confidence, output, winning member position)."""
        matrix = self._row(features)
        best: tuple[float, Any, int] | None = None

        for position, (member, probability) in enumerate(zip(self.members, self._probabilities(matrix))):
            confidence = float(np.max(probability[0]))
            if np.isnan(confidence):
                continue
            if best is None or confidence > best[0]:
                best = (confidence, member.labels(probability[:1])[0], position)

        if best is None:
            probability = self.members[0].probability(self.members[0].raw_score(matrix))
            best = (float("nan"), self.members[0].labels(probability[:1])[0], 0)

        confidence, output, position = best
        return confidence, _to_builtin(output), position

    def predict(self, features: Sequence[float] | np.ndarray) -> Any:
        """Row-level prediction: output of the most confident member."""
        return self.predict_with_confidence(features)[1]

    def __call__(self, features: Sequence[float] | np.ndarray) -> Any:
        return self.predict(features)

    def scores(self, features: Sequence[float] | np.ndarray) -> list[list[float]]:
        """Diagnostic: the full probability vector of every member, in member order."""
        matrix = self._row(features)
        return [probability[0].tolist() for probability in self._probabilities(matrix)]

    def transform(
        self,
        data: pd.DataFrame,
        *,
        output_col: str = "prediction",
        confidence_col: str = "probability",
    ) -> pd.DataFrame:
        """Vectorized prediction over a DataFrame; returns a copy with output columns added."""
        missing = [column for column in self.feature_columns if column not in data.columns]
        if missing:
            raise IncompatibleModelError(
                self.feature_count,
                self.feature_count - len(missing),
                f"Input is missing feature columns {missing}",
            )

        result = data.copy()
        if data.empty:
            result[output_col] = pd.Series(dtype=object)
            result[confidence_col] = pd.Series(dtype=float)
            return result

        matrix = self._matrix(data[list(self.feature_columns)].to_numpy(dtype=float))
        probabilities = self._probabilities(matrix)

        confidence = np.stack([probability.max(axis=1) for probability in probabilities])
        ranked = np.where(np.isnan(confidence), -np.inf, confidence)
        winners = ranked.argmax(axis=0)
        labels = [member.labels(probability) for member, probability in zip(self.members, probabilities)]

        rows = np.arange(len(data))
        result[output_col] = [labels[winner][row] for row, winner in zip(rows, winners)]
        result[confidence_col] = confidence[winners, rows]
        return result

    def functions(self, name: str) -> dict[str, Callable[..., Any]]:
        """Callables to install for a registered name: the prediction and its raw scores."""
        return {name: self.predict, f"{name}_raw": self.scores}


def _to_builtin(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value
