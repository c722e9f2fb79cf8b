"""Core routers shared by every service."""

from .health import CheckResult, HealthCheck, HealthRouter, HealthState, HealthStatus, storage_check

__all__ = [
    "CheckResult",
    "HealthCheck",
    "HealthRouter",
    "HealthState",
    "HealthStatus",
    "storage_check",
]
