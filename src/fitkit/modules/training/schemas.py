"""Pydantic schemas and protocols for multi-group training runs."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from fitkit.modules.params import FitParams, ParameterGroup, ParamSchema
from fitkit.modules.versioning import CandidateRecord, ModelMetadata, VersionedRoot


class GroupTrainer(Protocol):
    """One fresh trainer instance per parameter group, never shared."""

    param_schema: ParamSchema

    def fit(self, data: pd.DataFrame, params: FitParams) -> Any:
        """Train on the full dataset and return a model handle (must be pickleable)."""
        ...


type TrainerFactory = Callable[[], GroupTrainer]


class EvaluationResult(BaseModel):
    """Outcome of scoring one trained candidate."""

    metric: float | None = Field(default=None, description="Primary metric used for ranking")
    metrics: dict[str, float] = Field(default_factory=dict, description="Every computed metric")


type Evaluator = Callable[[Any, FitParams], EvaluationResult | float | None]


class TrainRequest(BaseModel):
    """A dataset, a destination path and a flat parameter mapping."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: pd.DataFrame = Field(description="Training data, shared read-only by all groups")
    path: str = Field(description="Destination root for the trained candidates")
    params: dict[str, str] = Field(default_factory=dict, description="fitParam.<n>.<key> entries and control options")
    evaluation_data: pd.DataFrame | None = Field(default=None, description="Held-out data used to score candidates")


class TrainedCandidate(BaseModel):
    """Result of training one parameter group."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    group: ParameterGroup
    model: Any = Field(description="The trained model handle (must be pickleable)")
    metric: float | None = None
    metrics: dict[str, float] = Field(default_factory=dict)
    evaluation_error: str | None = None
    started_at: str
    completed_at: str
    duration_seconds: float
    model_type: str | None = None

    @property
    def index(self) -> int:
        """Index of the parameter group this candidate was trained from."""
        return self.group.index


class TrainSummary(BaseModel):
    """Result of a train request, without the model handles."""

    run_id: str
    algorithm: str
    root: str
    path: str
    version: int | None = None
    metric_name: str | None = None
    started_at: str
    completed_at: str
    duration_seconds: float
    candidates: list[CandidateRecord] = Field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per candidate: index, path, metric, parameters and timing."""
        rows = [
            {
                "index": record.index,
                "path": f"{self.path.rstrip('/')}/{record.path}",
                "metric": record.metric,
                "params": record.params,
                "evaluation_error": record.evaluation_error,
                "duration_seconds": record.duration_seconds,
            }
            for record in self.candidates
        ]
        return pd.DataFrame(
            rows, columns=["index", "path", "metric", "params", "evaluation_error", "duration_seconds"]
        )


class TrainingRun(BaseModel):
    """Trained candidates together with where and how they were persisted."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    versioned_root: VersionedRoot
    candidates: list[TrainedCandidate]
    metadata: ModelMetadata
    started_at: str
    completed_at: str
    duration_seconds: float

    def summary(self) -> TrainSummary:
        """Drop model handles and keep what was persisted."""
        return TrainSummary(
            run_id=self.metadata.run_id,
            algorithm=self.metadata.algorithm,
            root=self.versioned_root.root,
            path=self.versioned_root.path,
            version=self.versioned_root.version,
            metric_name=self.metadata.metric_name,
            started_at=self.started_at,
            completed_at=self.completed_at,
            duration_seconds=self.duration_seconds,
            candidates=self.metadata.candidates,
        )
