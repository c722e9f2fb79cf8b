"""Manager tying algorithms, storage, datasets and installed functions together."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager

import pandas as pd

from fitkit.core.exceptions import ConfigError
from fitkit.core.logging import get_logger
from fitkit.modules.algorithm import AlgorithmRegistry, BaseAlgorithm
from fitkit.modules.introspection import ModelExplainer
from fitkit.modules.params import TrainOptions
from fitkit.modules.prediction import FunctionRegistry, PredictionEnsemble, PredictionMaterializer
from fitkit.modules.training import TrainingOrchestrator, TrainRequest, TrainSummary
from fitkit.modules.versioning import ModelPathManager

logger = get_logger(__name__)


class MLManager:
    """Entry point for train, predict, register and explain requests.

    Training against one destination path is serialized; different paths train concurrently.
    """

    def __init__(
        self,
        *,
        path_manager: ModelPathManager | None = None,
        catalog: Mapping[str, pd.DataFrame] | None = None,
        functions: FunctionRegistry | None = None,
        registry: type[AlgorithmRegistry] = AlgorithmRegistry,
        max_concurrency: int | None = None,
    ) -> None:
        """Initialize manager with storage, a dataset catalog and a function registry."""
        self.path_manager = path_manager if path_manager is not None else ModelPathManager()
        self.catalog: dict[str, pd.DataFrame] = dict(catalog or {})
        self.functions = functions if functions is not None else FunctionRegistry()
        self.registry = registry
        self.orchestrator = TrainingOrchestrator(self.path_manager, max_concurrency=max_concurrency)
        self.materializer = PredictionMaterializer(self.path_manager)
        self.explainer = ModelExplainer(self.path_manager, registry)
        self._path_locks: dict[str, asyncio.Lock] = {}
        self._path_users: dict[str, int] = {}

    def algorithm(self, name: str) -> BaseAlgorithm:
        """Instantiate a registered algorithm wired to this manager's components."""
        return self.registry.create(
            name,
            path_manager=self.path_manager,
            orchestrator=self.orchestrator,
            materializer=self.materializer,
        )

    def add_dataset(self, name: str, data: pd.DataFrame) -> None:
        """Make a dataset available to evaluateTable references."""
        self.catalog[name] = data

    def _evaluation_data(self, request: TrainRequest) -> pd.DataFrame | None:
        if request.evaluation_data is not None:
            return request.evaluation_data
        table = TrainOptions.from_params(request.params).evaluate_table
        if table is None:
            return None
        if table not in self.catalog:
            raise ConfigError(f"Evaluation table '{table}' not found in catalog", key="evaluateTable")
        return self.catalog[table]

    async def execute_train(self, algorithm: str, request: TrainRequest) -> TrainSummary:
        """Train every parameter group of request with the named algorithm."""
        plugin = self.algorithm(algorithm)
        evaluation_data = self._evaluation_data(request)

        async with self._path_lock(request.path):
            logger.info("train_request_started", algorithm=algorithm, path=request.path, rows=len(request.data))
            return await plugin.train(request.data, request.path, request.params, evaluation_data=evaluation_data)

    @asynccontextmanager
    async def _path_lock(self, path: str) -> AsyncIterator[None]:
        """Hold the training lock of one path; the lock is dropped once nobody holds or awaits it."""
        lock = self._path_locks.setdefault(path, asyncio.Lock())
        self._path_users[path] = self._path_users.get(path, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._path_users[path] -= 1
            if not self._path_users[path]:
                del self._path_users[path]
                del self._path_locks[path]

    async def execute_predict(
        self,
        algorithm: str,
        data: pd.DataFrame,
        path: str,
        params: Mapping[str, str] | None = None,
    ) -> pd.DataFrame:
        """Predict every row of data with the models selected under path."""
        plugin = self.algorithm(algorithm)
        predictions = await asyncio.to_thread(plugin.batch_predict, data, path, params)
        logger.info("predict_request_completed", algorithm=algorithm, path=path, rows=len(predictions))
        return predictions

    async def register(
        self,
        algorithm: str,
        path: str,
        name: str,
        params: Mapping[str, str] | None = None,
    ) -> PredictionEnsemble:
        """Materialize the selected models once and install them as named functions."""
        plugin = self.algorithm(algorithm)
        ensemble = await asyncio.to_thread(plugin.materialize, path, params)
        return plugin.predict(ensemble.members, name, params, registry=self.functions)

    def explain_params(self, algorithm: str) -> pd.DataFrame:
        """Recognized parameters of one algorithm."""
        return self.explainer.explain_params(algorithm)

    def explain_model(self, algorithm: str, path: str, params: Mapping[str, str] | None = None) -> pd.DataFrame:
        """Internals of the selected trained models."""
        return self.explainer.explain_model(algorithm, path, params)

    def model_history(self, path: str) -> pd.DataFrame:
        """Every persisted candidate across all versions under path."""
        return self.explainer.model_history(path)
