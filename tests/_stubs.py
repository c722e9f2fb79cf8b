"""Shared test stubs: constant-score models, trainers and a stub algorithm plugin."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from fitkit.modules.algorithm import BaseAlgorithm
from fitkit.modules.params import FitParams, ParameterGroup, ParamSchema, ParamSpec
from fitkit.modules.training import TrainedCandidate

STUB_SCHEMA = ParamSchema(
    [
        ParamSpec(name="paramA", kind="int", default=1, description="Stub parameter"),
        ParamSpec(name="delay", kind="float", default=0.0, description="Seconds to sleep while fitting"),
        ParamSpec(name="fail", kind="bool", default=False, description="Raise while fitting"),
    ]
)


@dataclass(frozen=True)
class ConstantModel:
    """Scorable model returning the same class probabilities for every row."""

    scores: tuple[float, ...]
    feature_columns: tuple[str, ...] = ("x1", "x2")
    classes: tuple[Any, ...] = ("a", "b", "c")

    @property
    def feature_count(self) -> int:
        return len(self.feature_columns)

    def raw_score(self, features: np.ndarray) -> np.ndarray:
        return np.tile(np.asarray(self.scores, dtype=float), (len(features), 1))

    def probability(self, raw: np.ndarray) -> np.ndarray:
        return raw

    def labels(self, probability: np.ndarray) -> np.ndarray:
        return np.asarray(self.classes)[np.argmax(probability, axis=1)]


def stub_scores(param_a: int) -> tuple[float, float, float]:
    """Deterministic probabilities derived from paramA."""
    top = min(0.9, 0.3 + param_a / 20)
    rest = (1.0 - top) / 2
    return (top, rest, rest)


class StubTrainer:
    """Trainer producing ConstantModels; honours delay and fail parameters."""

    param_schema = STUB_SCHEMA

    def __init__(self, events: list[int] | None = None) -> None:
        self.events = events

    def fit(self, data: pd.DataFrame, params: FitParams) -> ConstantModel:
        if params["delay"]:
            time.sleep(params["delay"])
        if params["fail"]:
            raise RuntimeError(f"fit failed for paramA={params['paramA']}")
        if self.events is not None:
            self.events.append(params["paramA"])
        return ConstantModel(scores=stub_scores(params["paramA"]))


class ConcurrencyProbe:
    """Tracks how many fits run at the same time."""

    def __init__(self) -> None:
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def trainer(self) -> StubTrainer:
        probe = self

        class _ProbeTrainer(StubTrainer):
            def fit(self, data: pd.DataFrame, params: FitParams) -> ConstantModel:
                with probe._lock:
                    probe.active += 1
                    probe.peak = max(probe.peak, probe.active)
                try:
                    return super().fit(data, params)
                finally:
                    with probe._lock:
                        probe.active -= 1

        return _ProbeTrainer()


def metric_by_param(metrics: dict[int, float | None]) -> Any:
    """Evaluator factory returning a fixed metric per paramA value."""

    def factory(data: pd.DataFrame, **kwargs: Any) -> Any:
        def evaluate(model: Any, params: FitParams) -> float | None:
            return metrics[params["paramA"]]

        return evaluate

    return factory


class StubAlgorithm(BaseAlgorithm):
    """Stub algorithm training ConstantModels."""

    name = "Stub"

    @property
    def param_schema(self) -> ParamSchema:
        return STUB_SCHEMA

    def create_trainer(self) -> StubTrainer:
        return StubTrainer()


def make_candidate(
    index: int,
    metric: float | None = None,
    *,
    model: Any = None,
    metrics: dict[str, float] | None = None,
    overrides: dict[str, str] | None = None,
) -> TrainedCandidate:
    """Build a TrainedCandidate without running a trainer."""
    return TrainedCandidate(
        group=ParameterGroup(index=index, overrides=overrides or {"paramA": str(index)}),
        model=model if model is not None else ConstantModel(scores=stub_scores(index)),
        metric=metric,
        metrics=metrics if metrics is not None else ({"f1": metric} if metric is not None else {}),
        started_at="2026-01-01T00:00:00+00:00",
        completed_at="2026-01-01T00:00:01+00:00",
        duration_seconds=1.0,
        model_type="tests._stubs.ConstantModel",
    )


def classification_frame(rows: int = 90, seed: int = 7) -> pd.DataFrame:
    """Three well separated clusters labelled a, b and c."""
    rng = np.random.default_rng(seed)
    centers = {"a": (0.0, 0.0), "b": (5.0, 5.0), "c": (0.0, 5.0)}
    frames = []
    for label, (cx, cy) in centers.items():
        n = rows // len(centers)
        frames.append(
            pd.DataFrame(
                {
                    "x1": rng.normal(cx, 0.5, n),
                    "x2": rng.normal(cy, 0.5, n),
                    "label": label,
                }
            )
        )
    return pd.concat(frames, ignore_index=True)


def binary_frame(rows: int = 60, seed: int = 11) -> pd.DataFrame:
    """Two well separated clusters labelled 0 and 1."""
    rng = np.random.default_rng(seed)
    n = rows // 2
    return pd.concat(
        [
            pd.DataFrame({"x1": rng.normal(-2.0, 0.5, n), "x2": rng.normal(-2.0, 0.5, n), "label": 0}),
            pd.DataFrame({"x1": rng.normal(2.0, 0.5, n), "x2": rng.normal(2.0, 0.5, n), "label": 1}),
        ],
        ignore_index=True,
    )
