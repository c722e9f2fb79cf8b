"""Shared pydantic schemas."""

from __future__ import annotations

from typing import Any, Self

import pandas as pd
from pydantic import BaseModel, Field, model_validator

from .types import JsonSafe


class PandasDataFrame(BaseModel):
    """Column-oriented DataFrame payload: column names plus row values."""

    columns: list[str] = Field(description="Column names")
    data: list[list[JsonSafe]] = Field(default_factory=list, description="Row values in column order")

    @model_validator(mode="after")
    def check_row_width(self) -> Self:
        """Every row must have one value per column."""
        width = len(self.columns)
        for position, row in enumerate(self.data):
            if len(row) != width:
                raise ValueError(f"Row {position} has {len(row)} values, expected {width}")
        return self

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> Self:
        """Build payload from a pandas DataFrame."""
        return cls(columns=[str(c) for c in df.columns], data=df.to_numpy().tolist())

    def to_dataframe(self) -> pd.DataFrame:
        """Convert payload to a pandas DataFrame."""
        return pd.DataFrame(self.data, columns=self.columns)


def records(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Render a DataFrame as a list of JSON-friendly row dicts."""
    return [{str(k): v for k, v in row.items()} for row in df.to_dict(orient="records")]
