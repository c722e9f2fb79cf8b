"""Orchestrator running every parameter group of a train request and persisting the results."""

from __future__ import annotations

import asyncio
import contextlib
import datetime
import math
from collections.abc import Sequence
from typing import Any

import pandas as pd
from ulid import ULID

from fitkit.core.exceptions import ConfigError, TrainingFailure
from fitkit.core.logging import get_logger
from fitkit.modules.params import FitParams, ParameterGroup
from fitkit.modules.versioning import ModelPathManager

from .schemas import (
    EvaluationResult,
    Evaluator,
    GroupTrainer,
    TrainedCandidate,
    TrainerFactory,
    TrainingRun,
)

logger = get_logger(__name__)


def _extract_model_type(model: object) -> str | None:
    """Extract fully qualified type name of the underlying model object."""
    if isinstance(model, dict) and "model" in model:
        obj = model["model"]
    else:
        obj = getattr(model, "estimator", model)

    return f"{type(obj).__module__}.{type(obj).__qualname__}"


def _normalize_evaluation(outcome: EvaluationResult | float | None, metric_name: str | None) -> EvaluationResult:
    """Coerce an evaluator outcome to an EvaluationResult, dropping NaN values."""
    if outcome is None:
        return EvaluationResult()

    if not isinstance(outcome, EvaluationResult):
        value = float(outcome)
        metrics = {metric_name: value} if metric_name else {}
        outcome = EvaluationResult(metric=value, metrics=metrics)

    metric = outcome.metric
    if metric is not None and math.isnan(metric):
        metric = None
    metrics = {name: value for name, value in outcome.metrics.items() if not math.isnan(value)}
    return EvaluationResult(metric=metric, metrics=metrics)


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class TrainingOrchestrator:
    """Runs one fresh trainer per parameter group and persists all candidates together.

    Groups are independent and run concurrently on worker threads; the dataset is
    shared read-only. Persistence waits for every group: a training failure in any
    group fails the whole request and nothing is written.
    """

    def __init__(
        self,
        path_manager: ModelPathManager | None = None,
        *,
        max_concurrency: int | None = None,
    ) -> None:
        """Initialize orchestrator with a path manager and optional concurrency bound."""
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.path_manager = path_manager if path_manager is not None else ModelPathManager()
        self.max_concurrency = max_concurrency

    async def fit_groups(
        self,
        data: pd.DataFrame,
        groups: Sequence[ParameterGroup],
        trainer_factory: TrainerFactory,
        evaluator: Evaluator | None = None,
        *,
        destination: str | None = None,
        metric_name: str | None = None,
    ) -> list[TrainedCandidate]:
        """Train and evaluate every group; return candidates ordered by group index."""
        if not groups:
            raise ValueError("At least one parameter group is required")

        indices = [group.index for group in groups]
        if len(set(indices)) != len(indices):
            raise ConfigError(f"Duplicate parameter group indices: {indices}")

        # Resolve every group's parameters before any training starts.
        prepared: list[tuple[ParameterGroup, GroupTrainer, FitParams]] = []
        for group in sorted(groups, key=lambda g: g.index):
            trainer = trainer_factory()
            params = trainer.param_schema.resolve(group.overrides, group_index=group.index)
            prepared.append((group, trainer, params))

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        logger.info("training_groups_started", destination=destination, groups=indices, rows=len(data))

        results = await asyncio.gather(
            *(
                self._fit_group(data, group, trainer, params, evaluator, semaphore, destination, metric_name)
                for group, trainer, params in prepared
            ),
            return_exceptions=True,
        )

        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            failed = [f.group_index for f in failures if isinstance(f, TrainingFailure)]
            logger.error("training_request_failed", destination=destination, failed_groups=failed)
            raise failures[0]

        return [result for result in results if isinstance(result, TrainedCandidate)]

    async def _fit_group(
        self,
        data: pd.DataFrame,
        group: ParameterGroup,
        trainer: GroupTrainer,
        params: FitParams,
        evaluator: Evaluator | None,
        semaphore: asyncio.Semaphore | None,
        destination: str | None,
        metric_name: str | None,
    ) -> TrainedCandidate:
        async with semaphore if semaphore is not None else contextlib.nullcontext():
            started_at = _now()
            try:
                model = await asyncio.to_thread(trainer.fit, data, params)
            except Exception as e:
                logger.error("group_training_failed", group=group.index, destination=destination, error=repr(e))
                raise TrainingFailure(group.index, destination, e) from e
            completed_at = _now()
            duration = (completed_at - started_at).total_seconds()

            evaluation = EvaluationResult()
            evaluation_error: str | None = None
            if evaluator is not None:
                try:
                    outcome: Any = await asyncio.to_thread(evaluator, model, params)
                    evaluation = _normalize_evaluation(outcome, metric_name)
                except Exception as e:
                    evaluation_error = f"{type(e).__name__}: {e}"
                    logger.warning("group_evaluation_failed", group=group.index, error=evaluation_error)

            logger.info(
                "group_trained",
                group=group.index,
                duration_seconds=round(duration, 2),
                metric=evaluation.metric,
            )

            return TrainedCandidate(
                group=group,
                model=model,
                metric=evaluation.metric,
                metrics=evaluation.metrics,
                evaluation_error=evaluation_error,
                started_at=started_at.isoformat(),
                completed_at=completed_at.isoformat(),
                duration_seconds=round(duration, 2),
                model_type=_extract_model_type(model),
            )

    async def train_all(
        self,
        data: pd.DataFrame,
        destination_root: str,
        groups: Sequence[ParameterGroup],
        trainer_factory: TrainerFactory,
        evaluator: Evaluator | None = None,
        *,
        keep_version: bool = False,
        algorithm: str = "unknown",
        metric_name: str | None = None,
    ) -> TrainingRun:
        """Train every group, then persist all candidates under one version directory."""
        run_id = str(ULID())
        started_at = _now()

        candidates = await self.fit_groups(
            data,
            groups,
            trainer_factory,
            evaluator,
            destination=destination_root,
            metric_name=metric_name,
        )

        versioned_root = self.path_manager.increment_version(destination_root, keep_version)
        metadata = await asyncio.to_thread(
            self.path_manager.persist,
            versioned_root,
            candidates,
            run_id=run_id,
            algorithm=algorithm,
            metric_name=metric_name if evaluator is not None else None,
        )
        completed_at = _now()

        return TrainingRun(
            versioned_root=versioned_root,
            candidates=candidates,
            metadata=metadata,
            started_at=started_at.isoformat(),
            completed_at=completed_at.isoformat(),
            duration_seconds=round((completed_at - started_at).total_seconds(), 2),
        )
