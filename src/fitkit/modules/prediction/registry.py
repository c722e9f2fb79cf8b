"""Registry of installed row-level prediction functions."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any


class FunctionRegistry:
    """Named prediction callables installed into an enclosing pipeline."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._functions: dict[str, Callable[..., Any]] = {}
        self._lock = threading.Lock()

    def register(self, name: str, func: Callable[..., Any], *, replace: bool = False) -> None:
        """Install a function under name."""
        with self._lock:
            if name in self._functions and not replace:
                raise ValueError(f"Function '{name}' already registered")
            self._functions[name] = func

    def get(self, name: str) -> Callable[..., Any]:
        """Retrieve an installed function."""
        try:
            return self._functions[name]
        except KeyError:
            raise KeyError(f"Function '{name}' not found in registry") from None

    def unregister(self, name: str) -> None:
        """Remove an installed function if present."""
        with self._lock:
            self._functions.pop(name, None)

    def list_all(self) -> list[str]:
        """List installed function names."""
        return sorted(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions
