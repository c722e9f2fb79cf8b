"""Storage protocol for model directories and a local filesystem implementation."""

from __future__ import annotations

import json
import os
import pickle
import shutil
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ModelStorage(Protocol):
    """Hierarchical path storage used by the path manager."""

    def exists(self, path: str) -> bool:
        """Return True if a file or directory exists at path."""
        ...

    def is_dir(self, path: str) -> bool:
        """Return True if path is a directory."""
        ...

    def list_entries(self, path: str) -> list[str]:
        """List entry names directly under path (empty if path is missing)."""
        ...

    def make_dirs(self, path: str) -> None:
        """Create a directory and its parents."""
        ...

    def read_json(self, path: str) -> Any:
        """Read a small structured record."""
        ...

    def write_json(self, path: str, data: Any) -> None:
        """Write a small structured record."""
        ...

    def read_model(self, path: str) -> Any:
        """Read an opaque model blob."""
        ...

    def write_model(self, path: str, model: Any) -> int:
        """Write an opaque model blob and return its size in bytes."""
        ...

    def remove(self, path: str) -> None:
        """Remove a file or directory tree if it exists."""
        ...

    def move(self, source: str, destination: str) -> None:
        """Move a file or directory."""
        ...


def join(*parts: str) -> str:
    """Join storage path segments with forward slashes."""
    head, *rest = parts
    joined = head.rstrip("/") if head not in ("", "/") else head
    for part in rest:
        part = part.strip("/")
        if not part:
            continue
        joined = f"{joined}/{part}" if joined not in ("", "/") else f"{joined}{part}"
    return joined


def split(path: str) -> tuple[str, str]:
    """Split a storage path into (parent, name)."""
    trimmed = path.rstrip("/")
    parent, _, name = trimmed.rpartition("/")
    return parent or ("/" if trimmed.startswith("/") else ""), name


class LocalModelStorage:
    """ModelStorage backed by the local filesystem with pickled model blobs."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        """Initialize storage; relative paths resolve under base_dir when given."""
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def _path(self, path: str) -> Path:
        p = Path(path)
        if self.base_dir is not None and not p.is_absolute():
            return self.base_dir / p
        return p

    def exists(self, path: str) -> bool:
        """Return True if a file or directory exists at path."""
        return self._path(path).exists()

    def is_dir(self, path: str) -> bool:
        """Return True if path is a directory."""
        return self._path(path).is_dir()

    def list_entries(self, path: str) -> list[str]:
        """List entry names directly under path, sorted."""
        p = self._path(path)
        if not p.is_dir():
            return []
        return sorted(entry.name for entry in p.iterdir())

    def make_dirs(self, path: str) -> None:
        """Create a directory and its parents."""
        self._path(path).mkdir(parents=True, exist_ok=True)

    def read_json(self, path: str) -> Any:
        """Read a JSON document."""
        return json.loads(self._path(path).read_text(encoding="utf-8"))

    def write_json(self, path: str, data: Any) -> None:
        """Write a JSON document, replacing any existing file atomically."""
        self.make_dirs(split(path)[0])
        p = self._path(path)
        tmp = p.with_name(f".{p.name}.tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, p)

    def read_model(self, path: str) -> Any:
        """Unpickle a model blob."""
        with open(self._path(path), "rb") as f:
            return pickle.load(f)

    def write_model(self, path: str, model: Any) -> int:
        """Pickle a model blob and return its size in bytes."""
        self.make_dirs(split(path)[0])
        p = self._path(path)
        with open(p, "wb") as f:
            pickle.dump(model, f, protocol=pickle.HIGHEST_PROTOCOL)
        return p.stat().st_size

    def remove(self, path: str) -> None:
        """Remove a file or directory tree if it exists."""
        p = self._path(path)
        if p.is_dir():
            shutil.rmtree(p)
        elif p.exists():
            p.unlink()

    def move(self, source: str, destination: str) -> None:
        """Move a file or directory, creating the destination parent."""
        self.make_dirs(split(destination)[0])
        shutil.move(str(self._path(source)), str(self._path(destination)))
