"""Global registry mapping algorithm names to plugin factories."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .base import BaseAlgorithm

type AlgorithmFactory = Callable[..., BaseAlgorithm]


class AlgorithmRegistry:
    """Global registry for algorithm plugins."""

    _registry: dict[str, AlgorithmFactory] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[AlgorithmFactory], AlgorithmFactory]:
        """Decorator to register an algorithm class or factory function.

        Factories are called with keyword arguments path_manager, orchestrator and
        materializer, so plugins share the caller's storage and caches.

        Usage:
            @AlgorithmRegistry.register("RandomForest")
            class RandomForestAlgorithm(BaseAlgorithm):
                ...
        """

        def decorator(factory: AlgorithmFactory) -> AlgorithmFactory:
            cls.register_factory(name, factory)
            return factory

        return decorator

    @classmethod
    def register_factory(cls, name: str, factory: AlgorithmFactory) -> None:
        """Imperatively register an algorithm factory."""
        if name in cls._registry:
            raise ValueError(f"Algorithm '{name}' already registered")
        cls._registry[name] = factory

    @classmethod
    def get(cls, name: str) -> AlgorithmFactory:
        """Retrieve a registered factory."""
        if name not in cls._registry:
            raise KeyError(f"Algorithm '{name}' not found in registry")
        return cls._registry[name]

    @classmethod
    def create(cls, name: str, **kwargs: Any) -> BaseAlgorithm:
        """Instantiate a registered algorithm."""
        return cls.get(name)(**kwargs)

    @classmethod
    def list_all(cls) -> list[str]:
        """List all registered algorithm names."""
        return sorted(cls._registry.keys())

    @classmethod
    def unregister(cls, name: str) -> None:
        """Remove one algorithm if registered."""
        cls._registry.pop(name, None)

    @classmethod
    def clear(cls) -> None:
        """Clear all registered algorithms (useful for testing)."""
        cls._registry.clear()
