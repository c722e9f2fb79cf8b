"""Tests for MLManager orchestration of train, predict, register and explain."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pandas as pd
import pytest

from fitkit.core.exceptions import ConfigError
from fitkit.modules.ml import MLManager
from fitkit.modules.training import TrainRequest
from fitkit.modules.versioning import LocalModelStorage, ModelPathManager
from tests._stubs import classification_frame


@pytest.fixture
def data() -> pd.DataFrame:
    """Three-class training data."""
    return classification_frame()


@pytest.fixture
def manager(tmp_path: Path, data: pd.DataFrame) -> MLManager:
    """Manager with storage under tmp_path and a holdout dataset in the catalog."""
    return MLManager(
        path_manager=ModelPathManager(LocalModelStorage(tmp_path)),
        catalog={"holdout": data},
    )


@pytest.mark.asyncio
async def test_execute_train_resolves_evaluate_table(manager: MLManager, data: pd.DataFrame) -> None:
    """Test that evaluateTable scores candidates with a catalog dataset."""
    request = TrainRequest(
        data=data,
        path="churn",
        params={"fitParam.0.numTrees": "3", "fitParam.1.numTrees": "6", "evaluateTable": "holdout"},
    )

    summary = await manager.execute_train("RandomForest", request)

    assert [c.index for c in summary.candidates] == [0, 1]
    assert all(c.metric is not None for c in summary.candidates)


@pytest.mark.asyncio
async def test_unknown_evaluate_table(manager: MLManager, data: pd.DataFrame) -> None:
    """Test that an evaluateTable missing from the catalog is a configuration error."""
    request = TrainRequest(data=data, path="churn", params={"evaluateTable": "missing"})

    with pytest.raises(ConfigError, match="not found in catalog"):
        await manager.execute_train("RandomForest", request)


@pytest.mark.asyncio
async def test_explicit_evaluation_data_wins(manager: MLManager, data: pd.DataFrame) -> None:
    """Test that evaluation data on the request takes precedence over the catalog."""
    request = TrainRequest(
        data=data, path="churn", params={"evaluateTable": "missing"}, evaluation_data=data.head(30)
    )

    summary = await manager.execute_train("RandomForest", request)

    assert summary.candidates[0].metric is not None


@pytest.mark.asyncio
async def test_add_dataset(manager: MLManager, data: pd.DataFrame) -> None:
    """Test registering a dataset after construction."""
    manager.add_dataset("later", data.tail(30))
    request = TrainRequest(data=data, path="churn", params={"evaluateTable": "later"})

    summary = await manager.execute_train("LogisticRegression", request)

    assert summary.candidates[0].metric is not None


@pytest.mark.asyncio
async def test_concurrent_training_on_one_path_is_serialized(manager: MLManager, data: pd.DataFrame) -> None:
    """Test that concurrent requests against one root get distinct versions."""
    requests = [
        TrainRequest(data=data, path="churn", params={"fitParam.0.numTrees": "2", "keepVersion": "true"})
        for _ in range(3)
    ]

    summaries = await asyncio.gather(*(manager.execute_train("RandomForest", r) for r in requests))

    assert sorted(s.version for s in summaries) == [0, 1, 2]
    assert manager.path_manager.list_versions("churn") == [0, 1, 2]


@pytest.mark.asyncio
async def test_path_locks_are_dropped_when_idle(manager: MLManager, data: pd.DataFrame) -> None:
    """Test that per-path locks do not accumulate once training on a path is done."""
    params = {"fitParam.0.numTrees": "2", "keepVersion": "true"}
    requests = [TrainRequest(data=data, path=f"run-{i % 2}", params=params) for i in range(4)]

    await asyncio.gather(*(manager.execute_train("RandomForest", r) for r in requests))

    assert manager.path_manager.list_versions("run-0") == [0, 1]
    assert manager._path_locks == {}
    assert manager._path_users == {}

    with pytest.raises(RuntimeError, match="boom"):
        async with manager._path_lock("failing"):
            assert "failing" in manager._path_locks
            raise RuntimeError("boom")
    assert manager._path_locks == {}


@pytest.mark.asyncio
async def test_execute_predict(manager: MLManager, data: pd.DataFrame) -> None:
    """Test batch prediction through the manager."""
    await manager.execute_train("RandomForest", TrainRequest(data=data, path="churn"))

    predictions = await manager.execute_predict("RandomForest", data.drop(columns=["label"]), "churn")

    assert len(predictions) == len(data)
    assert set(predictions["prediction"]) <= {"a", "b", "c"}


@pytest.mark.asyncio
async def test_register_installs_functions(manager: MLManager, data: pd.DataFrame) -> None:
    """Test that register installs the prediction function and its raw scores."""
    await manager.execute_train(
        "RandomForest",
        TrainRequest(data=data, path="churn", params={"fitParam.0.seed": "1", "fitParam.1.seed": "2"}),
    )

    ensemble = await manager.register("RandomForest", "churn", "species", {"ensemble": "true"})

    assert len(ensemble) == 2
    assert manager.functions.list_all() == ["species", "species_raw"]
    assert manager.functions.get("species")([0.0, 0.0]) == "a"
    assert len(manager.functions.get("species_raw")([0.0, 0.0])) == 2


@pytest.mark.asyncio
async def test_unknown_algorithm(manager: MLManager, data: pd.DataFrame) -> None:
    """Test that unknown algorithm names raise KeyError."""
    with pytest.raises(KeyError):
        await manager.execute_train("Missing", TrainRequest(data=data, path="churn"))


@pytest.mark.asyncio
async def test_explain_and_history(manager: MLManager, data: pd.DataFrame) -> None:
    """Test the introspection pass-throughs."""
    await manager.execute_train("RandomForest", TrainRequest(data=data, path="churn"))

    assert "numTrees" in manager.explain_params("RandomForest")["param"].tolist()
    assert not manager.explain_model("RandomForest", "churn").empty
    assert manager.model_history("churn")["index"].tolist() == [0]
