"""FastAPI building blocks: router base class and core routers."""

from .router import Router
from .routers import CheckResult, HealthCheck, HealthRouter, HealthState, HealthStatus

__all__ = [
    "CheckResult",
    "HealthCheck",
    "HealthRouter",
    "HealthState",
    "HealthStatus",
    "Router",
]
