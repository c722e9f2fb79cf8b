"""Evaluator component scoring trained candidates against a held-out dataset."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pandas as pd
from sklearn.metrics import accuracy_score, f1_score, precision_score, recall_score  # type: ignore[import-untyped]

from fitkit.core.exceptions import ConfigError, EvaluationFailure
from fitkit.modules.params import FitParams
from fitkit.modules.prediction import ScorableModel
from fitkit.modules.training import EvaluationResult

SUPPORTED_METRICS: tuple[str, ...] = ("f1", "accuracy", "weightedPrecision", "weightedRecall")


def _compute(name: str, y_true: Any, y_pred: Any) -> float:
    match name:
        case "f1":
            return float(f1_score(y_true, y_pred, average="weighted", zero_division=0))
        case "accuracy":
            return float(accuracy_score(y_true, y_pred))
        case "weightedPrecision":
            return float(precision_score(y_true, y_pred, average="weighted", zero_division=0))
        case "weightedRecall":
            return float(recall_score(y_true, y_pred, average="weighted", zero_division=0))
    raise ConfigError(f"Unknown metric '{name}', supported: {list(SUPPORTED_METRICS)}", key=name)


class MetricEvaluator:
    """Classification metrics of a scorable model on one evaluation dataset.

    Stateless after construction, so one instance can score every group concurrently.
    """

    def __init__(
        self,
        data: pd.DataFrame,
        *,
        metric: str = "f1",
        metrics: Sequence[str] = SUPPORTED_METRICS,
        label_col: str = "label",
    ) -> None:
        """Initialize evaluator with evaluation data and the primary metric used for ranking."""
        for name in (metric, *metrics):
            if name not in SUPPORTED_METRICS:
                raise ConfigError(f"Unknown metric '{name}', supported: {list(SUPPORTED_METRICS)}", key=name)
        self.data = data
        self.metric = metric
        self.metrics = tuple(dict.fromkeys((metric, *metrics)))
        self.label_col = label_col

    def __call__(self, model: Any, params: FitParams) -> EvaluationResult:
        """Score one trained candidate."""
        if not isinstance(model, ScorableModel):
            raise EvaluationFailure(f"{type(model).__name__} does not expose scores to evaluate")

        label_col = params.get("labelCol") or self.label_col
        required = [*model.feature_columns, label_col]
        missing = [column for column in required if column not in self.data.columns]
        if missing:
            raise EvaluationFailure(f"Evaluation data is missing columns {missing}")
        if self.data.empty:
            raise EvaluationFailure("Evaluation data is empty")

        features = self.data[list(model.feature_columns)].to_numpy(dtype=float)
        y_true = self.data[label_col].to_numpy()
        y_pred = model.labels(model.probability(model.raw_score(features)))

        values = {name: _compute(name, y_true, y_pred) for name in self.metrics}
        return EvaluationResult(metric=values[self.metric], metrics=values)
