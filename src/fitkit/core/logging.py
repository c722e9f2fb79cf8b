"""Structured logging configuration built on structlog."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

_configured = False


def _resolve_level(level: str | int | None) -> int:
    """Resolve a log level from an explicit value or the FITKIT_LOG_LEVEL env var."""
    if level is None:
        level = os.environ.get("FITKIT_LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_logging(level: str | int | None = None, json_format: bool | None = None) -> None:
    """Configure structlog processors and the stdlib root handler.

    Defaults come from FITKIT_LOG_LEVEL and FITKIT_LOG_FORMAT ("json" or "console").
    """
    global _configured

    log_level = _resolve_level(level)
    if json_format is None:
        json_format = os.environ.get("FITKIT_LOG_FORMAT", "console").lower() == "json"

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer: Any
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    if not any(getattr(h, "_fitkit", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._fitkit = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(log_level)

    _configured = True


def is_configured() -> bool:
    """Return True once configure_logging has run."""
    return _configured


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger bound to the given module name."""
    return structlog.get_logger(name)
