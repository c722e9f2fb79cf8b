"""Built-in scikit-learn classifier plugins."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier  # type: ignore[import-untyped]
from sklearn.linear_model import LogisticRegression  # type: ignore[import-untyped]

from fitkit.core.logging import get_logger
from fitkit.modules.params import FitParams, ParamSchema, ParamSpec

from .base import BaseAlgorithm
from .registry import AlgorithmRegistry

logger = get_logger(__name__)

COLUMN_PARAMS = [
    ParamSpec(name="labelCol", default="label", description="Label column"),
    ParamSpec(
        name="featureCols",
        kind="list",
        default=(),
        description="Comma-separated feature columns, all non-label columns when empty",
    ),
]


@dataclass(frozen=True)
class ProbabilityClassifierModel:
    """Scorable handle for classifiers whose raw scores are class votes (forests)."""

    estimator: Any
    feature_columns: tuple[str, ...]

    @property
    def feature_count(self) -> int:
        return len(self.feature_columns)

    @property
    def classes(self) -> np.ndarray:
        return np.asarray(self.estimator.classes_)

    def raw_score(self, features: np.ndarray) -> np.ndarray:
        return np.asarray(self.estimator.predict_proba(features), dtype=float)

    def probability(self, raw: np.ndarray) -> np.ndarray:
        totals = raw.sum(axis=1, keepdims=True)
        return np.divide(raw, totals, out=np.zeros_like(raw), where=totals > 0)

    def labels(self, probability: np.ndarray) -> np.ndarray:
        return self.classes[np.argmax(probability, axis=1)]


@dataclass(frozen=True)
class MarginClassifierModel:
    """Scorable handle for linear classifiers whose raw scores are margins."""

    estimator: Any
    feature_columns: tuple[str, ...]

    @property
    def feature_count(self) -> int:
        return len(self.feature_columns)

    @property
    def classes(self) -> np.ndarray:
        return np.asarray(self.estimator.classes_)

    def raw_score(self, features: np.ndarray) -> np.ndarray:
        margins = np.asarray(self.estimator.decision_function(features), dtype=float)
        if margins.ndim == 1:
            # Binary: margin of the positive class against a zero baseline.
            margins = np.column_stack([np.zeros_like(margins), margins])
        return margins

    def probability(self, raw: np.ndarray) -> np.ndarray:
        shifted = np.exp(raw - raw.max(axis=1, keepdims=True))
        return shifted / shifted.sum(axis=1, keepdims=True)

    def labels(self, probability: np.ndarray) -> np.ndarray:
        return self.classes[np.argmax(probability, axis=1)]


class SklearnClassifierTrainer:
    """Fits one scikit-learn classifier for one parameter group."""

    def __init__(
        self,
        param_schema: ParamSchema,
        build_estimator: Callable[[FitParams], Any],
        wrap: Callable[[Any, tuple[str, ...]], Any],
    ) -> None:
        """Initialize trainer with the schema, an estimator builder and the scorable wrapper."""
        self.param_schema = param_schema
        self._build_estimator = build_estimator
        self._wrap = wrap

    def fit(self, data: pd.DataFrame, params: FitParams) -> Any:
        """Fit a new estimator on the selected feature and label columns."""
        label_col = params["labelCol"]
        if label_col not in data.columns:
            raise ValueError(f"Label column '{label_col}' not found in training data")

        feature_cols = tuple(params["featureCols"]) or tuple(str(c) for c in data.columns if c != label_col)
        missing = [column for column in feature_cols if column not in data.columns]
        if missing:
            raise ValueError(f"Feature columns {missing} not found in training data")
        if not feature_cols:
            raise ValueError("No feature columns to train on")

        features = data[list(feature_cols)].to_numpy(dtype=float)
        target = data[label_col].to_numpy()

        estimator = self._build_estimator(params)
        estimator.fit(features, target)
        return self._wrap(estimator, feature_cols)


@AlgorithmRegistry.register("RandomForest")
class RandomForestAlgorithm(BaseAlgorithm):
    """Random forest classifier."""

    name = "RandomForest"

    schema = ParamSchema(
        [
            ParamSpec(name="numTrees", kind="int", default=20, description="Number of trees"),
            ParamSpec(name="maxDepth", kind="int", default=5, description="Maximum tree depth"),
            ParamSpec(
                name="minInstancesPerNode", kind="int", default=1, description="Minimum samples per leaf"
            ),
            ParamSpec(
                name="featureSubsetStrategy",
                default="sqrt",
                choices=("all", "sqrt", "log2"),
                description="Features considered per split",
            ),
            ParamSpec(name="seed", kind="int", description="Random seed"),
            *COLUMN_PARAMS,
        ]
    )

    @property
    def param_schema(self) -> ParamSchema:
        return self.schema

    def create_trainer(self) -> SklearnClassifierTrainer:
        return SklearnClassifierTrainer(self.schema, self._build_estimator, ProbabilityClassifierModel)

    @staticmethod
    def _build_estimator(params: FitParams) -> RandomForestClassifier:
        strategy = params["featureSubsetStrategy"]
        return RandomForestClassifier(
            n_estimators=params["numTrees"],
            max_depth=params["maxDepth"],
            min_samples_leaf=params["minInstancesPerNode"],
            max_features=None if strategy == "all" else strategy,
            random_state=params["seed"],
        )

    def describe_model(self, model: Any) -> dict[str, Any]:
        estimator = model.estimator
        return {
            **super().describe_model(model),
            "classes": model.classes.tolist(),
            "num_trees": len(estimator.estimators_),
            "max_depth": estimator.max_depth,
            "feature_importances": dict(
                zip(model.feature_columns, np.round(estimator.feature_importances_, 6).tolist())
            ),
        }


@AlgorithmRegistry.register("LogisticRegression")
class LogisticRegressionAlgorithm(BaseAlgorithm):
    """Logistic regression classifier."""

    name = "LogisticRegression"

    schema = ParamSchema(
        [
            ParamSpec(
                name="regParam", kind="float", default=1.0, description="Regularization strength (inverse of C)"
            ),
            ParamSpec(name="maxIter", kind="int", default=100, description="Maximum solver iterations"),
            ParamSpec(name="fitIntercept", kind="bool", default=True, description="Fit an intercept term"),
            ParamSpec(name="tol", kind="float", default=1e-4, description="Convergence tolerance"),
            *COLUMN_PARAMS,
        ]
    )

    @property
    def param_schema(self) -> ParamSchema:
        return self.schema

    def create_trainer(self) -> SklearnClassifierTrainer:
        return SklearnClassifierTrainer(self.schema, self._build_estimator, MarginClassifierModel)

    @staticmethod
    def _build_estimator(params: FitParams) -> LogisticRegression:
        reg = params["regParam"]
        if reg <= 0:
            raise ValueError(f"regParam must be positive, got {reg}")
        return LogisticRegression(
            C=1.0 / reg,
            max_iter=params["maxIter"],
            fit_intercept=params["fitIntercept"],
            tol=params["tol"],
        )

    def describe_model(self, model: Any) -> dict[str, Any]:
        estimator = model.estimator
        return {
            **super().describe_model(model),
            "classes": model.classes.tolist(),
            "coefficients": np.asarray(estimator.coef_).round(6).tolist(),
            "intercept": np.asarray(estimator.intercept_).round(6).tolist(),
            "iterations": np.asarray(estimator.n_iter_).tolist(),
        }
