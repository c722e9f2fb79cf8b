"""Service builder assembling the ML REST surface into a FastAPI application."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncContextManager, AsyncIterator, Awaitable, Callable, Coroutine, List, Self

from fastapi import APIRouter, FastAPI
from pydantic import BaseModel, ConfigDict

from fitkit.core.api.routers import HealthRouter
from fitkit.core.api.routers.health import HealthCheck, storage_check
from fitkit.core.logging import configure_logging, get_logger
from fitkit.modules.ml import MLManager, MLRouter

logger = get_logger(__name__)

# Type alias for dependency factory functions
type DependencyFactory = Callable[..., Coroutine[Any, Any, Any]]


class ServiceInfo(BaseModel):
    """Service metadata for FastAPI application."""

    display_name: str
    version: str = "1.0.0"
    summary: str | None = None
    description: str | None = None
    contact: dict[str, str] | None = None
    license_info: dict[str, str] | None = None

    model_config = ConfigDict(extra="forbid")


@dataclass(slots=True)
class _MLOptions:
    """Internal ML options for MLServiceBuilder."""

    prefix: str = "/api/v1/ml"
    tags: List[str] = field(default_factory=lambda: ["ML"])


class MLServiceBuilder:
    """Fluent builder for a FastAPI service exposing one MLManager."""

    def __init__(
        self,
        *,
        info: ServiceInfo,
        manager: MLManager | None = None,
        include_logging: bool = False,
    ) -> None:
        """Initialize builder with service metadata and the manager serving requests."""
        if info.description is None and info.summary is not None:
            self.info = info.model_copy(update={"description": info.summary})
        else:
            self.info = info
        self.manager = manager if manager is not None else MLManager()
        self._include_logging = include_logging
        self._health_options: tuple[str, List[str], dict[str, HealthCheck]] | None = None
        self._ml_options: _MLOptions | None = None
        self._custom_routers: List[APIRouter] = []
        self._startup_hooks: List[Callable[[FastAPI], Awaitable[None]]] = []
        self._shutdown_hooks: List[Callable[[FastAPI], Awaitable[None]]] = []

    # --------------------------------------------------------------------- Fluent configuration

    def with_logging(self, enabled: bool = True) -> Self:
        """Configure structured logging on startup."""
        self._include_logging = enabled
        return self

    def with_health(
        self,
        *,
        prefix: str = "/api/v1/health",
        tags: List[str] | None = None,
        checks: dict[str, HealthCheck] | None = None,
        include_storage_check: bool = True,
    ) -> Self:
        """Add health check endpoint with optional custom checks."""
        health_checks = dict(checks or {})

        if include_storage_check:
            health_checks["storage"] = storage_check(self.manager.path_manager.storage)

        self._health_options = (prefix, list(tags) if tags is not None else ["health"], health_checks)
        return self

    def with_ml(self, *, prefix: str = "/api/v1/ml", tags: List[str] | None = None) -> Self:
        """Enable train, predict, register and explain endpoints."""
        self._ml_options = _MLOptions(prefix=prefix, tags=list(tags) if tags else ["ML"])
        return self

    def include_router(self, router: APIRouter) -> Self:
        """Include a custom router."""
        self._custom_routers.append(router)
        return self

    def on_startup(self, hook: Callable[[FastAPI], Awaitable[None]]) -> Self:
        """Register a startup hook."""
        self._startup_hooks.append(hook)
        return self

    def on_shutdown(self, hook: Callable[[FastAPI], Awaitable[None]]) -> Self:
        """Register a shutdown hook."""
        self._shutdown_hooks.append(hook)
        return self

    # --------------------------------------------------------------------- Build mechanics

    def build(self) -> FastAPI:
        """Build and configure the FastAPI application."""
        self._validate_configuration()

        app = FastAPI(
            title=self.info.display_name,
            description=self.info.summary or self.info.description or "",
            version=self.info.version,
            lifespan=self._build_lifespan(),
        )
        app.state.ml_manager = self.manager

        if self._health_options:
            prefix, tags, checks = self._health_options
            app.include_router(HealthRouter.create(prefix=prefix, tags=tags, checks=checks))

        if self._ml_options:
            ml_options = self._ml_options
            ml_router = MLRouter.create(
                prefix=ml_options.prefix,
                tags=ml_options.tags,
                manager_factory=self._build_ml_dependency(self.manager),
            )
            app.include_router(ml_router)

        for router in self._custom_routers:
            app.include_router(router)

        self._install_info_endpoint(app, info=self.info)
        return app

    def _validate_configuration(self) -> None:
        """Validate builder configuration."""
        if self._health_options:
            _, _, checks = self._health_options
            for name in checks.keys():
                if not name.replace("_", "").replace("-", "").isalnum():
                    raise ValueError(
                        f"Health check name '{name}' contains invalid characters. "
                        "Only alphanumeric characters, underscores, and hyphens are allowed."
                    )

    def _build_lifespan(self) -> Callable[[FastAPI], AsyncContextManager[None]]:
        """Build lifespan context manager for app startup/shutdown."""
        include_logging = self._include_logging
        startup_hooks = list(self._startup_hooks)
        shutdown_hooks = list(self._shutdown_hooks)
        manager = self.manager

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncIterator[None]:
            if include_logging:
                configure_logging()

            logger.info("service_starting", algorithms=manager.registry.list_all())
            for hook in startup_hooks:
                await hook(app)
            try:
                yield
            finally:
                for hook in shutdown_hooks:
                    await hook(app)
                manager.materializer.clear_cache()
                logger.info("service_stopped")

        return lifespan

    # --------------------------------------------------------------------- Helpers

    @staticmethod
    def _build_ml_dependency(manager: MLManager) -> DependencyFactory:
        async def _dependency() -> MLManager:
            return manager

        return _dependency

    @staticmethod
    def _install_info_endpoint(app: FastAPI, *, info: ServiceInfo) -> None:
        """Install service info endpoint."""

        @app.get("/api/v1/info", include_in_schema=False, response_model=ServiceInfo)
        async def get_info() -> ServiceInfo:
            return info

    # --------------------------------------------------------------------- Convenience

    @classmethod
    def create(cls, *, info: ServiceInfo, **kwargs: Any) -> FastAPI:
        """Create a service with health and ML endpoints in one call."""
        return cls(info=info, **kwargs).with_health().with_ml().build()
