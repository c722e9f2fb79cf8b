"""Materializer turning persisted candidates into shareable prediction ensembles."""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from fitkit.core.exceptions import ModelNotFoundError
from fitkit.core.logging import get_logger
from fitkit.modules.versioning import ModelPathManager, ModelSelection, VersionedRoot

from .ensemble import PredictionEnsemble

type ModelLoader = Callable[[str], Any]

logger = get_logger(__name__)


class PredictionMaterializer:
    """Resolves a selection, loads each model once and caches the resulting ensemble."""

    def __init__(self, path_manager: ModelPathManager | None = None, *, cache_size: int = 16) -> None:
        """Initialize materializer with a path manager and ensemble cache size (0 disables caching)."""
        self.path_manager = path_manager if path_manager is not None else ModelPathManager()
        self.cache_size = cache_size
        self._cache: OrderedDict[tuple[Any, ...], PredictionEnsemble] = OrderedDict()
        self._lock = threading.Lock()

    def load_model(self, subpath: str) -> Any:
        """Read the model blob stored under one candidate subpath."""
        blob = self.path_manager.model_path(subpath)
        if not self.path_manager.storage.exists(blob):
            raise ModelNotFoundError(subpath, f"No model blob at {blob}")
        return self.path_manager.storage.read_model(blob)

    def load_handles(
        self,
        selection: ModelSelection,
        versioned_root: VersionedRoot,
        loader: ModelLoader | None = None,
    ) -> list[Any]:
        """Load every model the selection resolves to, in ensemble order."""
        load = loader or self.load_model
        subpaths = self.path_manager.resolve(versioned_root, selection)
        handles = [load(subpath) for subpath in subpaths]
        logger.info("models_loaded", path=versioned_root.path, subpaths=subpaths, selection=selection.kind)
        return handles

    def materialize(
        self,
        selection: ModelSelection,
        versioned_root: VersionedRoot,
        loader: ModelLoader | None = None,
    ) -> PredictionEnsemble:
        """Return the ensemble for a selection, loading from storage only on first use."""
        metadata = self.path_manager.read_metadata(versioned_root)
        # bound loaders of different plugin instances share one cache entry
        key = (versioned_root.path, metadata.run_id, selection, getattr(loader, "__func__", loader))

        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

        ensemble = PredictionEnsemble.of(self.load_handles(selection, versioned_root, loader))

        if self.cache_size > 0:
            with self._lock:
                self._cache[key] = ensemble
                self._cache.move_to_end(key)
                while len(self._cache) > self.cache_size:
                    self._cache.popitem(last=False)

        return ensemble

    def clear_cache(self) -> None:
        """Drop every cached ensemble."""
        with self._lock:
            self._cache.clear()
