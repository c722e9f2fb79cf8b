"""Tests for the classification metric evaluator."""

from __future__ import annotations

import pandas as pd
import pytest

from fitkit.core.exceptions import ConfigError, EvaluationFailure
from fitkit.modules.algorithm import SUPPORTED_METRICS, MetricEvaluator
from fitkit.modules.training import EvaluationResult
from tests._stubs import ConstantModel

PARAMS = {"labelCol": None}


@pytest.fixture
def holdout() -> pd.DataFrame:
    """Evaluation data where half the rows are labelled a."""
    return pd.DataFrame({"x1": [0.0, 1.0, 2.0, 3.0], "x2": [0.0] * 4, "label": ["a", "a", "b", "c"]})


def test_scores_every_supported_metric(holdout: pd.DataFrame) -> None:
    """Test that the evaluator computes all metrics and uses the primary one for ranking."""
    evaluator = MetricEvaluator(holdout, metric="accuracy")

    result = evaluator(ConstantModel(scores=(0.9, 0.05, 0.05)), PARAMS)

    assert isinstance(result, EvaluationResult)
    assert set(result.metrics) == set(SUPPORTED_METRICS)
    assert result.metric == pytest.approx(0.5)
    assert result.metrics["accuracy"] == pytest.approx(0.5)
    assert result.metrics["weightedRecall"] == pytest.approx(0.5)


def test_perfect_predictions(holdout: pd.DataFrame) -> None:
    """Test that a model predicting every label correctly scores 1.0."""
    evaluator = MetricEvaluator(holdout[holdout["label"] == "a"])

    result = evaluator(ConstantModel(scores=(1.0, 0.0, 0.0)), PARAMS)

    assert result.metric == pytest.approx(1.0)


def test_label_col_from_params(holdout: pd.DataFrame) -> None:
    """Test that the group's labelCol overrides the evaluator default."""
    evaluator = MetricEvaluator(holdout.rename(columns={"label": "target"}))

    result = evaluator(ConstantModel(scores=(1.0, 0.0, 0.0)), {"labelCol": "target"})

    assert result.metric is not None


def test_unknown_metric_rejected(holdout: pd.DataFrame) -> None:
    """Test that only supported metric names are accepted."""
    with pytest.raises(ConfigError, match="Unknown metric 'rmse'"):
        MetricEvaluator(holdout, metric="rmse")


def test_missing_columns(holdout: pd.DataFrame) -> None:
    """Test that evaluation data without the model's columns fails evaluation."""
    evaluator = MetricEvaluator(holdout.drop(columns=["x2"]))

    with pytest.raises(EvaluationFailure, match="missing columns"):
        evaluator(ConstantModel(scores=(1.0, 0.0, 0.0)), PARAMS)


def test_empty_holdout(holdout: pd.DataFrame) -> None:
    """Test that an empty evaluation set fails evaluation."""
    evaluator = MetricEvaluator(holdout.iloc[0:0])

    with pytest.raises(EvaluationFailure, match="empty"):
        evaluator(ConstantModel(scores=(1.0, 0.0, 0.0)), PARAMS)


def test_unscorable_model(holdout: pd.DataFrame) -> None:
    """Test that models without scores cannot be evaluated."""
    with pytest.raises(EvaluationFailure, match="does not expose scores"):
        MetricEvaluator(holdout)({"weights": [1.0]}, PARAMS)
