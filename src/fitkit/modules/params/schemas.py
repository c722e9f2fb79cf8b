"""Pydantic schemas for parameter groups, parameter schemas and control options."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any, Literal

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from fitkit.core.exceptions import ConfigError

type FitParams = Mapping[str, Any]
type ParamKind = Literal["int", "float", "bool", "str", "list"]

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


class ParameterGroup(BaseModel):
    """One set of hyperparameter overrides trained as an independent candidate."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="Group index from fitParam.<index>.<key>")
    overrides: dict[str, str] = Field(default_factory=dict, description="Raw string overrides for this group")


class ParamSpec(BaseModel):
    """Declaration of one recognized algorithm parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: ParamKind = "str"
    default: Any = None
    description: str = ""
    choices: tuple[str, ...] | None = None

    def coerce(self, raw: str) -> Any:
        """Convert a raw string override to the declared kind."""
        value = raw.strip()
        if self.choices is not None and value not in self.choices:
            raise ConfigError(f"Parameter '{self.name}' must be one of {list(self.choices)}, got '{raw}'", key=self.name)

        try:
            match self.kind:
                case "int":
                    return int(value)
                case "float":
                    return float(value)
                case "bool":
                    lowered = value.lower()
                    if lowered in _TRUE:
                        return True
                    if lowered in _FALSE:
                        return False
                    raise ValueError(raw)
                case "list":
                    return tuple(part.strip() for part in value.split(",") if part.strip())
                case _:
                    return value
        except ValueError:
            raise ConfigError(f"Parameter '{self.name}' expects {self.kind}, got '{raw}'", key=self.name) from None


class ParamSchema:
    """Immutable collection of ParamSpecs owned by an algorithm plugin."""

    def __init__(self, specs: Iterable[ParamSpec]) -> None:
        """Initialize schema, rejecting duplicate parameter names."""
        self._specs: dict[str, ParamSpec] = {}
        for spec in specs:
            if spec.name in self._specs:
                raise ValueError(f"Duplicate parameter '{spec.name}' in schema")
            self._specs[spec.name] = spec

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ParamSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    @property
    def names(self) -> list[str]:
        """Recognized parameter names in declaration order."""
        return list(self._specs)

    def defaults(self) -> FitParams:
        """Return the typed defaults as a read-only mapping."""
        return MappingProxyType({name: spec.default for name, spec in self._specs.items()})

    def resolve(self, overrides: Mapping[str, str], *, group_index: int | None = None) -> FitParams:
        """Layer string overrides on top of the typed defaults."""
        resolved = {name: spec.default for name, spec in self._specs.items()}
        for key, raw in overrides.items():
            spec = self._specs.get(key)
            if spec is None:
                raise ConfigError(
                    f"Unknown parameter '{key}'" + (f" in group {group_index}" if group_index is not None else ""),
                    key=key,
                    group_index=group_index,
                )
            try:
                resolved[key] = spec.coerce(raw)
            except ConfigError as e:
                e.group_index = group_index
                raise
        return MappingProxyType(resolved)

    def extend(self, specs: Iterable[ParamSpec]) -> ParamSchema:
        """Return a new schema with additional specs appended."""
        return ParamSchema([*self._specs.values(), *specs])

    def explain(self) -> pd.DataFrame:
        """Describe every recognized parameter as a table."""
        rows = [
            {
                "param": spec.name,
                "type": spec.kind,
                "default": spec.default,
                "description": spec.description,
            }
            for spec in self._specs.values()
        ]
        return pd.DataFrame(rows, columns=["param", "type", "default", "description"])


class TrainOptions(BaseModel):
    """Top-level control parameters of a train request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    keep_version: bool = Field(default=False, alias="keepVersion")
    evaluate_table: str | None = Field(default=None, alias="evaluateTable")
    evaluate_metric: str = Field(default="f1", alias="evaluateMetric")

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> TrainOptions:
        """Parse options from the top-level (non fitParam) entries of a flat mapping."""
        from .expander import control_params

        try:
            return cls.model_validate(control_params(params))
        except ValueError as e:
            raise ConfigError(f"Invalid train options: {e}") from e
