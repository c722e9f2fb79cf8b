"""Tests for the read-only introspection facade."""

from __future__ import annotations

from pathlib import Path

import pytest

from fitkit.core.exceptions import ModelNotFoundError
from fitkit.modules.algorithm import RandomForestAlgorithm
from fitkit.modules.introspection import ModelExplainer
from fitkit.modules.versioning import ModelPathManager
from tests._stubs import classification_frame


@pytest.fixture
def explainer() -> ModelExplainer:
    """Explainer over the global registry and local storage."""
    return ModelExplainer(ModelPathManager())


def test_list_algorithms(explainer: ModelExplainer) -> None:
    """Test that registered algorithms are listed with a description."""
    table = explainer.list_algorithms()
    descriptions = dict(zip(table["name"], table["description"]))

    assert descriptions["RandomForest"] == "Random forest classifier."
    assert descriptions["LogisticRegression"] == "Logistic regression classifier."


def test_explain_params(explainer: ModelExplainer) -> None:
    """Test the parameter table of a registered algorithm."""
    table = explainer.explain_params("RandomForest").set_index("param")

    assert table.loc["numTrees", "default"] == 20
    assert table.loc["numTrees", "scope"] == "fitParam"
    assert table.loc["evaluateMetric", "default"] == "f1"
    assert table.loc["evaluateMetric", "scope"] == "control"


def test_explain_params_unknown_algorithm(explainer: ModelExplainer) -> None:
    """Test that unknown algorithm names are reported."""
    with pytest.raises(KeyError):
        explainer.explain_params("Missing")


@pytest.mark.asyncio
async def test_explain_model_and_history(explainer: ModelExplainer, tmp_path: Path) -> None:
    """Test model introspection and the per-version history table."""
    root = str(tmp_path / "models")
    algorithm = RandomForestAlgorithm(path_manager=explainer.path_manager)
    data = classification_frame()
    await algorithm.train(data, root, {"fitParam.0.numTrees": "2", "keepVersion": "true"})
    await algorithm.train(
        data,
        root,
        {"fitParam.0.numTrees": "3", "fitParam.1.numTrees": "5", "keepVersion": "true"},
        evaluation_data=data,
    )

    model_table = explainer.explain_model("RandomForest", root, {"ensemble": "true"})
    assert set(model_table["path"]) == {f"{root}/_1/0", f"{root}/_1/1"}

    history = explainer.model_history(root)
    assert list(history.columns) == ["version", "run_id", "algorithm", "created_at", "index", "metric", "params"]
    assert history["version"].tolist() == [0, 1, 1]
    assert history["index"].tolist() == [0, 0, 1]
    assert history["algorithm"].unique().tolist() == ["RandomForest"]
    assert history["metric"].isna().tolist() == [True, False, False]
    assert history["params"].iloc[2] == {"numTrees": "5"}


def test_history_of_untrained_path_is_empty(explainer: ModelExplainer, tmp_path: Path) -> None:
    """Test that history never fails for a path without runs."""
    assert explainer.model_history(str(tmp_path / "none")).empty


def test_explain_model_untrained(explainer: ModelExplainer, tmp_path: Path) -> None:
    """Test that explaining a path that was never trained fails."""
    with pytest.raises(ModelNotFoundError):
        explainer.explain_model("RandomForest", str(tmp_path / "none"))
