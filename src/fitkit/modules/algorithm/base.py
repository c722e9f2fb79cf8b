"""Base class every pluggable estimator implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import Any, ClassVar

import pandas as pd

from fitkit.core.logging import get_logger
from fitkit.modules.params import ParamSchema, ParamSpec, TrainOptions, expand_parameter_groups
from fitkit.modules.prediction import FunctionRegistry, PredictionEnsemble, PredictionMaterializer, PredictOptions
from fitkit.modules.training import Evaluator, GroupTrainer, TrainingOrchestrator, TrainSummary
from fitkit.modules.versioning import ModelPathManager, VersionedRoot

from .evaluation import MetricEvaluator

logger = get_logger(__name__)

CONTROL_PARAMS = ParamSchema(
    [
        ParamSpec(name="keepVersion", kind="bool", default=False, description="Keep previous versions (train)"),
        ParamSpec(name="evaluateTable", description="Catalog dataset used to score each candidate (train)"),
        ParamSpec(name="evaluateMetric", default="f1", description="Primary metric used for ranking (train)"),
        ParamSpec(name="algIndex", kind="int", description="Load this candidate index (predict)"),
        ParamSpec(name="ensemble", kind="bool", default=False, description="Load every candidate (predict)"),
        ParamSpec(name="topK", kind="int", default=1, description="Number of best candidates to load (predict)"),
        ParamSpec(name="autoSelectByMetric", description="Rank by this metric instead of the primary (predict)"),
        ParamSpec(name="modelVersion", kind="int", description="Read this version instead of the newest (predict)"),
        ParamSpec(
            name="requireMetric", kind="bool", default=False, description="Fail instead of falling back (predict)"
        ),
    ]
)

type EvaluatorFactory = Callable[..., Evaluator]


class BaseAlgorithm(ABC):
    """Train, load, predict and explain contract for one learning algorithm.

    A plugin holds a ParamSchema and builds one GroupTrainer per parameter group;
    grouping, evaluation, versioning and ensemble scoring are shared components.
    """

    name: ClassVar[str] = "base"

    def __init__(
        self,
        *,
        path_manager: ModelPathManager | None = None,
        orchestrator: TrainingOrchestrator | None = None,
        materializer: PredictionMaterializer | None = None,
        evaluator_factory: EvaluatorFactory = MetricEvaluator,
    ) -> None:
        """Initialize plugin with shared storage, orchestration and materialization components."""
        self.path_manager = path_manager if path_manager is not None else ModelPathManager()
        self.orchestrator = orchestrator if orchestrator is not None else TrainingOrchestrator(self.path_manager)
        self.materializer = materializer if materializer is not None else PredictionMaterializer(self.path_manager)
        self.evaluator_factory = evaluator_factory

    @property
    @abstractmethod
    def param_schema(self) -> ParamSchema:
        """Recognized parameters and their defaults."""
        ...

    @abstractmethod
    def create_trainer(self) -> GroupTrainer:
        """Return a fresh trainer for one parameter group."""
        ...

    def describe_model(self, model: Any) -> dict[str, Any]:
        """Introspect one trained model handle."""
        return {
            "model_type": f"{type(model).__module__}.{type(model).__qualname__}",
            "feature_columns": list(getattr(model, "feature_columns", ())),
        }

    def create_evaluator(self, evaluation_data: pd.DataFrame | None, options: TrainOptions) -> Evaluator | None:
        """Build the evaluator for a train request, None when nothing is held out."""
        if evaluation_data is None:
            return None
        label_col = self.param_schema.defaults().get("labelCol") or "label"
        return self.evaluator_factory(evaluation_data, metric=options.evaluate_metric, label_col=label_col)

    # ------------------------------------------------------------------ Train

    async def train(
        self,
        data: pd.DataFrame,
        path: str,
        params: Mapping[str, str] | None = None,
        *,
        evaluation_data: pd.DataFrame | None = None,
    ) -> TrainSummary:
        """Train every fitParam group on data and persist the candidates under path."""
        params = dict(params or {})
        groups = expand_parameter_groups(params)
        options = TrainOptions.from_params(params)

        if options.evaluate_table and evaluation_data is None:
            logger.warning("evaluation_table_unresolved", table=options.evaluate_table, path=path)

        evaluator = self.create_evaluator(evaluation_data, options)
        run = await self.orchestrator.train_all(
            data,
            path,
            groups,
            self.create_trainer,
            evaluator,
            keep_version=options.keep_version,
            algorithm=self.name,
            metric_name=options.evaluate_metric,
        )
        summary = run.summary()
        logger.info(
            "train_completed",
            algorithm=self.name,
            path=summary.path,
            version=summary.version,
            candidates=len(summary.candidates),
            duration_seconds=summary.duration_seconds,
        )
        return summary

    # ------------------------------------------------------------------ Load / predict

    def versioned_root(self, path: str, options: PredictOptions) -> VersionedRoot:
        """Resolve which version of path to read."""
        if options.model_version is not None:
            return self.path_manager.version(path, options.model_version)
        return self.path_manager.current(path)

    def load_model(self, subpath: str) -> Any:
        """Load one candidate's model handle."""
        return self.materializer.load_model(subpath)

    def load(self, path: str, params: Mapping[str, str] | None = None) -> list[Any]:
        """Load the model handles selected by params (best by default)."""
        options = PredictOptions.from_params(params)
        return self.materializer.load_handles(
            options.selection(), self.versioned_root(path, options), loader=self.load_model
        )

    def predict(
        self,
        models: Sequence[Any],
        name: str,
        params: Mapping[str, str] | None = None,
        registry: FunctionRegistry | None = None,
    ) -> PredictionEnsemble:
        """Wrap loaded handles as a row-level function, installing it under name when a registry is given."""
        ensemble = PredictionEnsemble.of(models)
        if registry is not None:
            for function_name, function in ensemble.functions(name).items():
                registry.register(function_name, function, replace=True)
            logger.info("prediction_function_registered", name=name, members=len(ensemble))
        return ensemble

    def materialize(self, path: str, params: Mapping[str, str] | None = None) -> PredictionEnsemble:
        """Load and wrap the selected models, reusing a cached ensemble when available."""
        options = PredictOptions.from_params(params)
        return self.materializer.materialize(
            options.selection(), self.versioned_root(path, options), loader=self.load_model
        )

    def batch_predict(self, data: pd.DataFrame, path: str, params: Mapping[str, str] | None = None) -> pd.DataFrame:
        """Predict every row of data with the selected models."""
        return self.materialize(path, params).transform(data)

    # ------------------------------------------------------------------ Explain

    def explain_params(self) -> pd.DataFrame:
        """Algorithm parameters followed by the shared control parameters."""
        algorithm_params = self.param_schema.explain().assign(scope="fitParam")
        control = CONTROL_PARAMS.explain().assign(scope="control")
        return pd.concat([algorithm_params, control], ignore_index=True)

    def explain_model(self, path: str, params: Mapping[str, str] | None = None) -> pd.DataFrame:
        """One row per (candidate, property) of the selected trained models."""
        options = PredictOptions.from_params(params)
        versioned_root = self.versioned_root(path, options)
        rows = []
        for subpath in self.path_manager.resolve(versioned_root, options.selection()):
            for key, value in self.describe_model(self.load_model(subpath)).items():
                rows.append({"path": subpath, "name": key, "value": value})
        return pd.DataFrame(rows, columns=["path", "name", "value"])
