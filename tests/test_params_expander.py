"""Tests for fitParam group expansion."""

from __future__ import annotations

import pytest

from fitkit.core.exceptions import ConfigError
from fitkit.modules.params import ParameterGroup, control_params, expand_parameter_groups, is_fit_param


def test_groups_are_built_per_index() -> None:
    """Test that keys are grouped by their index segment."""
    groups = expand_parameter_groups(
        {
            "fitParam.0.maxDepth": "3",
            "fitParam.0.numTrees": "10",
            "fitParam.1.maxDepth": "8",
            "keepVersion": "true",
        }
    )

    assert groups == [
        ParameterGroup(index=0, overrides={"maxDepth": "3", "numTrees": "10"}),
        ParameterGroup(index=1, overrides={"maxDepth": "8"}),
    ]


def test_groups_are_sorted_and_gaps_tolerated() -> None:
    """Test that groups come back in ascending index order even with gaps."""
    groups = expand_parameter_groups({"fitParam.7.a": "1", "fitParam.2.a": "2", "fitParam.10.a": "3"})

    assert [g.index for g in groups] == [2, 7, 10]
    assert groups[0].overrides == {"a": "2"}


def test_no_fit_params_yields_single_implicit_group() -> None:
    """Test that a mapping without fitParam keys trains one default group."""
    groups = expand_parameter_groups({"keepVersion": "false", "evaluateTable": "holdout"})

    assert groups == [ParameterGroup(index=0, overrides={})]


def test_empty_mapping_yields_single_implicit_group() -> None:
    """Test that an empty mapping behaves like one default group."""
    assert expand_parameter_groups({}) == [ParameterGroup(index=0)]


def test_key_may_contain_dots() -> None:
    """Test that everything after the index is the parameter key."""
    groups = expand_parameter_groups({"fitParam.0.solver.tol": "0.1"})

    assert groups[0].overrides == {"solver.tol": "0.1"}


def test_leading_zero_index_merges_with_plain_index() -> None:
    """Test that 01 and 1 address the same group."""
    groups = expand_parameter_groups({"fitParam.01.a": "x", "fitParam.1.b": "y"})

    assert groups == [ParameterGroup(index=1, overrides={"a": "x", "b": "y"})]


@pytest.mark.parametrize(
    "key",
    [
        "fitParam.x.maxDepth",
        "fitParam.-1.maxDepth",
        "fitParam.².maxDepth",
        "fitParam..maxDepth",
        "fitParam.0.",
        "fitParam.0",
        "fitParam.",
    ],
)
def test_malformed_keys_raise_config_error(key: str) -> None:
    """Test that fitParam keys without a valid index or name are rejected."""
    with pytest.raises(ConfigError) as exc_info:
        expand_parameter_groups({key: "1"})

    assert exc_info.value.key == key


def test_similar_prefix_is_not_a_fit_param() -> None:
    """Test that only the exact fitParam. prefix is recognized."""
    assert is_fit_param("fitParam.0.a")
    assert not is_fit_param("fitParams.0.a")
    assert not is_fit_param("fitparam.0.a")
    assert expand_parameter_groups({"fitParams.0.a": "1"}) == [ParameterGroup(index=0)]


def test_control_params_excludes_group_entries() -> None:
    """Test that control params keep only top-level entries."""
    params = {"fitParam.0.a": "1", "keepVersion": "true", "algIndex": "0"}

    assert control_params(params) == {"keepVersion": "true", "algIndex": "0"}


def test_values_are_kept_as_strings() -> None:
    """Test that override values are stored as raw strings."""
    groups = expand_parameter_groups({"fitParam.0.a": 3})  # type: ignore[dict-item]

    assert groups[0].overrides == {"a": "3"}


def test_parameter_group_rejects_negative_index() -> None:
    """Test that ParameterGroup validates its index."""
    with pytest.raises(ValueError):
        ParameterGroup(index=-1)
