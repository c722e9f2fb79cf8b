"""Pydantic schemas for versioned model directories and model selection."""

from __future__ import annotations

import math
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

METADATA_FILE = "_metadata.json"
MODEL_FILE = "model.pkl"


class VersionedRoot(BaseModel):
    """A model root path plus the version directory resolved under it."""

    model_config = ConfigDict(frozen=True)

    root: str = Field(description="Destination root given by the caller")
    path: str = Field(description="Directory holding the candidate subdirectories and metadata")
    version: int | None = Field(default=None, description="Version number, None for the fixed overwrite root")


class CandidateRecord(BaseModel):
    """Metadata for one persisted candidate."""

    index: int = Field(ge=0)
    path: str = Field(description="Subpath relative to the versioned root")
    params: dict[str, str] = Field(default_factory=dict, description="Parameter overrides the candidate was trained with")
    metric: float | None = Field(default=None, description="Primary metric, None when not evaluated")
    metrics: dict[str, float] = Field(default_factory=dict, description="All evaluation metrics")
    evaluation_error: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    duration_seconds: float | None = None
    model_type: str | None = None
    model_size_bytes: int | None = None

    def metric_value(self, name: str | None = None) -> float | None:
        """Return the primary metric (or a named one), treating NaN as absent."""
        value = self.metric if name is None else self.metrics.get(name)
        if value is None or math.isnan(value):
            return None
        return value


class ModelMetadata(BaseModel):
    """Metadata record written once per version directory."""

    run_id: str
    algorithm: str
    version: int | None = None
    created_at: str
    sequence: int = Field(default=0, description="Write order among runs sharing one root")
    metric_name: str | None = Field(default=None, description="Name of the primary metric")
    candidates: list[CandidateRecord] = Field(default_factory=list)

    @property
    def indices(self) -> list[int]:
        """Persisted candidate indices in ascending order."""
        return sorted(c.index for c in self.candidates)

    def candidate(self, index: int) -> CandidateRecord | None:
        """Return the record for one index, if persisted."""
        for record in self.candidates:
            if record.index == index:
                return record
        return None


class ModelSelection(BaseModel):
    """Which persisted candidates to load: best by metric, explicit index or all."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["best", "index", "all"] = "best"
    index: int | None = Field(default=None, ge=0)
    top_k: int = Field(default=1, ge=1)
    metric: str | None = Field(default=None, description="Rank by this metric instead of the primary one")
    require_metric: bool = Field(default=False, description="Fail instead of falling back when nothing was scored")

    @model_validator(mode="after")
    def check_index(self) -> Self:
        """Index is required exactly when selecting by index."""
        if self.kind == "index" and self.index is None:
            raise ValueError("index selection requires an index")
        if self.kind != "index" and self.index is not None:
            raise ValueError(f"{self.kind} selection does not take an index")
        return self

    @classmethod
    def best(cls, top_k: int = 1, *, metric: str | None = None, require_metric: bool = False) -> ModelSelection:
        """Select the top_k candidates ranked by metric."""
        return cls(kind="best", top_k=top_k, metric=metric, require_metric=require_metric)

    @classmethod
    def by_index(cls, index: int) -> ModelSelection:
        """Select one candidate explicitly."""
        return cls(kind="index", index=index)

    @classmethod
    def all(cls) -> ModelSelection:
        """Select every persisted candidate, in index order."""
        return cls(kind="all")
