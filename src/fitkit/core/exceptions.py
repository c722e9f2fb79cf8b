"""Error taxonomy for training, persistence and prediction."""

from __future__ import annotations

from collections.abc import Sequence


class FitkitError(Exception):
    """Base class for all fitkit errors."""


class ConfigError(FitkitError, ValueError):
    """Malformed parameter keys or values."""

    def __init__(self, message: str, *, key: str | None = None, group_index: int | None = None) -> None:
        self.key = key
        self.group_index = group_index
        super().__init__(message)


class ModelNotFoundError(FitkitError, LookupError):
    """Nothing was ever trained at the given path."""

    def __init__(self, path: str, message: str | None = None) -> None:
        self.path = path
        super().__init__(message or f"No trained model found at {path}")


class IndexNotFoundError(FitkitError, LookupError):
    """An explicit candidate index was requested that was never persisted."""

    def __init__(self, path: str, index: int, available: Sequence[int]) -> None:
        self.path = path
        self.index = index
        self.available = list(available)
        super().__init__(f"Model index {index} was never persisted at {path} (available: {self.available})")


class IncompatibleModelError(FitkitError, ValueError):
    """A feature vector does not match what the loaded model expects."""

    def __init__(self, expected: int, actual: int, message: str | None = None) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(message or f"Model expects {expected} features, got {actual}")


class TrainingFailure(FitkitError, RuntimeError):
    """One parameter group failed to train; fatal for the whole request."""

    def __init__(self, group_index: int, path: str | None, cause: BaseException) -> None:
        self.group_index = group_index
        self.path = path
        self.cause = cause
        where = f" for {path}" if path else ""
        super().__init__(f"Training failed for parameter group {group_index}{where}: {cause!r}")


class EvaluationFailure(FitkitError):
    """Scoring a trained candidate failed; the candidate keeps no metric."""

    def __init__(self, message: str, *, group_index: int | None = None) -> None:
        self.group_index = group_index
        super().__init__(message)
