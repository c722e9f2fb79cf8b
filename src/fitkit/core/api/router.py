"""Base class for routers wrapping a FastAPI APIRouter."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from fastapi import APIRouter


class Router(ABC):
    """Registers routes on an APIRouter at construction time."""

    default_response_model_exclude_none: bool = False

    def __init__(self, prefix: str, tags: list[str], **kwargs: Any) -> None:
        """Create the APIRouter and register routes."""
        self.router = APIRouter(prefix=prefix, tags=list(tags), **kwargs)
        self._register_routes()

    @classmethod
    def create(cls, prefix: str, tags: list[str], **kwargs: Any) -> APIRouter:
        """Build the router and return the underlying APIRouter."""
        return cls(prefix=prefix, tags=tags, **kwargs).router

    @abstractmethod
    def _register_routes(self) -> None:
        """Register routes on self.router."""
        ...
