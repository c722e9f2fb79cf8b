"""Health router aggregating service checks, model storage included."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable, Iterable
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from fitkit.core.logging import get_logger

from ..router import Router

if TYPE_CHECKING:
    from fitkit.modules.versioning import ModelStorage

logger = get_logger(__name__)


class HealthState(StrEnum):
    """Health state of one check or of the whole service, mildest first."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @classmethod
    def worst(cls, states: Iterable[HealthState]) -> HealthState:
        """Most severe state among states; healthy when there are none."""
        order = list(cls)
        return max(states, key=order.index, default=cls.HEALTHY)


HealthCheck = Callable[[], Awaitable[tuple[HealthState, str | None]]]


class CheckResult(BaseModel):
    """Result of an individual health check."""

    state: HealthState = Field(description="Health state of this check")
    message: str | None = Field(default=None, description="Optional message or error detail")


class HealthStatus(BaseModel):
    """Overall health status response."""

    status: HealthState = Field(description="Most severe state among the checks")
    checks: dict[str, CheckResult] | None = Field(
        default=None, description="Individual health check results (if checks are configured)"
    )


def storage_check(storage: ModelStorage) -> HealthCheck:
    """Check that the model storage directory can hold trained models.

    A missing directory is degraded since the first training run creates it; a path that is
    not a directory is unhealthy. Storage without a base directory resolves paths against the
    working directory and is always healthy.
    """

    async def check_storage() -> tuple[HealthState, str | None]:
        base_dir = getattr(storage, "base_dir", None)
        if base_dir is None:
            return HealthState.HEALTHY, None

        path = Path(base_dir)
        if not path.exists():
            return HealthState.DEGRADED, f"Model storage directory {path} does not exist"
        if not path.is_dir():
            return HealthState.UNHEALTHY, f"Model storage path {path} is not a directory"
        if not os.access(path, os.W_OK):
            return HealthState.DEGRADED, f"Model storage directory {path} is read-only"
        return HealthState.HEALTHY, None

    return check_storage


class HealthRouter(Router):
    """Runs every configured check concurrently and reports the worst state."""

    default_response_model_exclude_none = True

    def __init__(
        self,
        prefix: str,
        tags: list[str],
        checks: dict[str, HealthCheck] | None = None,
        timeout: float = 5.0,
        **kwargs: object,
    ) -> None:
        """Initialize health router; a check slower than timeout seconds counts as unhealthy."""
        self.checks = checks or {}
        self.timeout = timeout
        super().__init__(prefix=prefix, tags=tags, **kwargs)

    async def _run(self, name: str, check: HealthCheck) -> CheckResult:
        try:
            state, message = await asyncio.wait_for(check(), timeout=self.timeout)
        except TimeoutError:
            logger.warning("health_check_timed_out", check=name, timeout=self.timeout)
            return CheckResult(state=HealthState.UNHEALTHY, message=f"Check timed out after {self.timeout}s")
        except Exception as e:
            logger.warning("health_check_failed", check=name, error=str(e))
            return CheckResult(state=HealthState.UNHEALTHY, message=f"Check failed: {e}")
        return CheckResult(state=state, message=message)

    def _register_routes(self) -> None:
        """Register health check endpoint."""

        @self.router.get(
            "",
            summary="Health check",
            response_model=HealthStatus,
            response_model_exclude_none=self.default_response_model_exclude_none,
        )
        async def health_check() -> HealthStatus:
            if not self.checks:
                return HealthStatus(status=HealthState.HEALTHY)

            names = list(self.checks)
            results = await asyncio.gather(*(self._run(name, self.checks[name]) for name in names))
            checks = dict(zip(names, results))
            return HealthStatus(status=HealthState.worst(r.state for r in results), checks=checks)
