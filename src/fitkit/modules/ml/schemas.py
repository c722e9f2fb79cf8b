"""Pydantic schemas for the ML REST surface."""

from __future__ import annotations

from typing import Any

import pandas as pd
from pydantic import BaseModel, Field, field_validator

from fitkit.core.schemas import PandasDataFrame, records
from fitkit.core.types import JsonSafe


def _stringify(params: Any) -> Any:
    """Accept JSON scalars in flat parameter mappings and keep them as strings."""
    if not isinstance(params, dict):
        return params
    converted = {}
    for key, value in params.items():
        if isinstance(value, bool):
            converted[key] = "true" if value else "false"
        elif isinstance(value, (int, float)):
            converted[key] = str(value)
        else:
            converted[key] = value
    return converted


class _ParamsModel(BaseModel):
    params: dict[str, str] = Field(default_factory=dict, description="Flat parameter mapping")

    @field_validator("params", mode="before")
    @classmethod
    def stringify_params(cls, v: Any) -> Any:
        """Convert numbers and booleans to their string form."""
        return _stringify(v)


class TrainIn(_ParamsModel):
    """Request schema for training an algorithm over parameter groups."""

    algorithm: str = Field(description="Registered algorithm name")
    path: str = Field(description="Destination root for the trained candidates")
    data: PandasDataFrame = Field(description="Training data")
    evaluation: PandasDataFrame | None = Field(default=None, description="Optional held-out evaluation data")


class PredictIn(_ParamsModel):
    """Request schema for batch prediction."""

    algorithm: str = Field(description="Registered algorithm name")
    path: str = Field(description="Root the models were trained under")
    data: PandasDataFrame = Field(description="Rows to predict")


class PredictOut(BaseModel):
    """Response schema for batch prediction."""

    predictions: PandasDataFrame


class RegisterIn(_ParamsModel):
    """Request schema for installing a prediction function."""

    algorithm: str = Field(description="Registered algorithm name")
    path: str = Field(description="Root the models were trained under")
    name: str = Field(description="Function name to install")


class RegisterOut(BaseModel):
    """Response schema for an installed prediction function."""

    name: str
    functions: list[str] = Field(description="Installed callable names")
    members: int = Field(description="Number of models in the ensemble")


class ExplainModelIn(_ParamsModel):
    """Request schema for explaining trained models."""

    algorithm: str
    path: str


class TableOut(BaseModel):
    """Tabular response: rows as dicts."""

    rows: list[dict[str, JsonSafe]] = Field(default_factory=list)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> TableOut:
        """Render a DataFrame as rows."""
        return cls(rows=records(df))
