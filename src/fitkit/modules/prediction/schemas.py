"""Pydantic schemas for load and predict options."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from fitkit.core.exceptions import ConfigError
from fitkit.modules.params import control_params
from fitkit.modules.versioning import ModelSelection


class PredictOptions(BaseModel):
    """Control parameters of load, predict and register requests."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    alg_index: int | None = Field(default=None, ge=0, alias="algIndex", description="Load this candidate index")
    ensemble: bool = Field(default=False, description="Load every candidate of the version as an ensemble")
    top_k: int = Field(default=1, ge=1, alias="topK", description="Number of best-ranked candidates to load")
    auto_select_by_metric: str | None = Field(
        default=None, alias="autoSelectByMetric", description="Rank by this metric instead of the primary one"
    )
    model_version: int | None = Field(default=None, ge=0, alias="modelVersion", description="Read this version")
    require_metric: bool = Field(
        default=False, alias="requireMetric", description="Fail instead of falling back when nothing was scored"
    )

    @classmethod
    def from_params(cls, params: Mapping[str, str] | None) -> PredictOptions:
        """Parse options from a flat parameter mapping."""
        try:
            return cls.model_validate(control_params(params or {}))
        except ValueError as e:
            raise ConfigError(f"Invalid predict options: {e}") from e

    def selection(self) -> ModelSelection:
        """Translate options to a model selection."""
        if self.alg_index is not None and self.ensemble:
            raise ConfigError("algIndex and ensemble cannot be combined")
        if self.alg_index is not None:
            return ModelSelection.by_index(self.alg_index)
        if self.ensemble:
            return ModelSelection.all()
        return ModelSelection.best(
            self.top_k,
            metric=self.auto_select_by_metric,
            require_metric=self.require_metric,
        )
