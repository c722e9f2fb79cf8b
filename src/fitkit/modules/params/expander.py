"""Expansion of flat fitParam.<index>.<key> mappings into parameter groups."""

from __future__ import annotations

import re
from collections.abc import Mapping

from fitkit.core.exceptions import ConfigError
from fitkit.core.logging import get_logger

from .schemas import ParameterGroup

FIT_PARAM_PREFIX = "fitParam."

_FIT_PARAM_PATTERN = re.compile(r"^fitParam\.(?P<index>[^.]*)\.(?P<key>.+)$")

logger = get_logger(__name__)


def is_fit_param(key: str) -> bool:
    """Return True for keys that belong to a parameter group."""
    return key.startswith(FIT_PARAM_PREFIX)


def control_params(params: Mapping[str, str]) -> dict[str, str]:
    """Return the top-level control entries of a flat mapping."""
    return {key: value for key, value in params.items() if not is_fit_param(key)}


def _parse_index(raw: str, key: str) -> int:
    if not (raw.isascii() and raw.isdigit()):
        raise ConfigError(f"Parameter group index must be a non-negative integer in '{key}'", key=key)
    return int(raw)


def expand_parameter_groups(params: Mapping[str, str]) -> list[ParameterGroup]:
    """Group fitParam.<index>.<key> entries by index, ordered by index.

    Indices need not be contiguous. Without any fitParam entries a single implicit
    group (index 0, no overrides) is returned.
    """
    grouped: dict[int, dict[str, str]] = {}

    for key, value in params.items():
        if not is_fit_param(key):
            continue

        match = _FIT_PARAM_PATTERN.match(key)
        if match is None:
            raise ConfigError(f"Malformed parameter group key '{key}', expected fitParam.<index>.<name>", key=key)

        index = _parse_index(match.group("index"), key)
        grouped.setdefault(index, {})[match.group("key")] = str(value)

    if not grouped:
        return [ParameterGroup(index=0)]

    groups = [ParameterGroup(index=index, overrides=grouped[index]) for index in sorted(grouped)]
    logger.debug("parameter_groups_expanded", indices=[g.index for g in groups])
    return groups
