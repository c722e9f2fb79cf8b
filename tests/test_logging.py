"""Tests for structured logging configuration."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog
from structlog.testing import capture_logs

from fitkit.core import logging as fitkit_logging
from fitkit.core.logging import configure_logging, get_logger, is_configured


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Undo global logging configuration after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    monkeypatch.setattr(fitkit_logging, "_configured", False)
    monkeypatch.delenv("FITKIT_LOG_LEVEL", raising=False)
    monkeypatch.delenv("FITKIT_LOG_FORMAT", raising=False)
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def _fitkit_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if getattr(h, "_fitkit", False)]


def test_configure_logging_installs_one_handler() -> None:
    """Test that repeated configuration does not stack handlers."""
    assert not is_configured()

    configure_logging(level="debug")
    configure_logging(level="warning")

    assert is_configured()
    assert len(_fitkit_handlers()) == 1
    assert logging.getLogger().level == logging.WARNING


def test_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that FITKIT_LOG_LEVEL sets the default level."""
    monkeypatch.setenv("FITKIT_LOG_LEVEL", "ERROR")

    configure_logging()

    assert logging.getLogger().level == logging.ERROR


def test_numeric_level() -> None:
    """Test that integer levels are accepted as is."""
    configure_logging(level=logging.DEBUG)

    assert logging.getLogger().level == logging.DEBUG


def test_unknown_level_raises() -> None:
    """Test that an unknown level name is rejected."""
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging(level="chatty")

    assert not is_configured()


def test_json_format_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that FITKIT_LOG_FORMAT=json selects the JSON renderer."""
    monkeypatch.setenv("FITKIT_LOG_FORMAT", "json")

    configure_logging()

    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)


def test_console_format_by_default() -> None:
    """Test the console renderer default."""
    configure_logging()

    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


def test_get_logger_emits_events() -> None:
    """Test that module loggers emit structured events."""
    with capture_logs() as logs:
        get_logger(__name__).info("model_trained", path="/models/churn", candidates=2)

    assert logs == [{"event": "model_trained", "path": "/models/churn", "candidates": 2, "log_level": "info"}]
