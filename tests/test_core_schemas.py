"""Tests for shared schemas and JSON-safe serialization."""

from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest
from pydantic import BaseModel, ValidationError

from fitkit.core.schemas import PandasDataFrame, records
from fitkit.core.types import JsonSafe


class Payload(BaseModel):
    """Model with a JsonSafe field."""

    value: JsonSafe


def test_dataframe_payload_round_trip() -> None:
    """Test conversion between DataFrame and payload."""
    df = pd.DataFrame({"x1": [1.0, 2.0], "label": ["a", "b"]})

    payload = PandasDataFrame.from_dataframe(df)

    assert payload.columns == ["x1", "label"]
    assert payload.data == [[1.0, "a"], [2.0, "b"]]
    pd.testing.assert_frame_equal(payload.to_dataframe(), df)


def test_dataframe_payload_rejects_ragged_rows() -> None:
    """Test that every row must match the column count."""
    with pytest.raises(ValidationError, match="Row 1 has 1 values, expected 2"):
        PandasDataFrame(columns=["x1", "x2"], data=[[1.0, 2.0], [3.0]])


def test_empty_payload() -> None:
    """Test a payload with columns but no rows."""
    df = PandasDataFrame(columns=["x1"]).to_dataframe()

    assert list(df.columns) == ["x1"]
    assert df.empty


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (np.float64(0.25), 0.25),
        (np.int64(3), 3),
        (np.array([1, 2]), [1, 2]),
        (math.nan, None),
        (math.inf, None),
        ({"f1": np.float32(0.5), "accuracy": math.nan}, {"f1": 0.5, "accuracy": None}),
        (["a", "b"], ["a", "b"]),
    ],
)
def test_json_safe_converts_values(value: object, expected: object) -> None:
    """Test that numpy values and non-finite floats serialize to JSON builtins."""
    assert Payload(value=value).model_dump(mode="json")["value"] == expected


def test_json_safe_falls_back_to_metadata() -> None:
    """Test that unserializable objects become a type description."""

    class Estimator:
        def __repr__(self) -> str:
            return "Estimator()"

    dumped = Payload(value=Estimator()).model_dump(mode="json")["value"]

    assert dumped["_type"] == "Estimator"
    assert dumped["_module"] == __name__
    assert dumped["_repr"] == "Estimator()"


def test_json_safe_truncates_long_repr() -> None:
    """Test that metadata repr strings are capped."""
    dumped = Payload(value={1, *range(500)}).model_dump(mode="json")["value"]

    assert dumped["_type"] == "set"
    assert dumped["_repr"].endswith("...")
    assert len(dumped["_repr"]) == 203


def test_records_stringifies_column_names() -> None:
    """Test rendering a DataFrame as row dicts."""
    df = pd.DataFrame({0: [1], "name": ["a"]})

    assert records(df) == [{"0": 1, "name": "a"}]
