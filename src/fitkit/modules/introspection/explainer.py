"""Read-only projections over algorithm parameters, trained models and version history."""

from __future__ import annotations

from collections.abc import Mapping

import pandas as pd

from fitkit.modules.algorithm import AlgorithmRegistry, BaseAlgorithm
from fitkit.modules.versioning import ModelPathManager


class ModelExplainer:
    """Explain-params, explain-model and model history lookups."""

    def __init__(
        self,
        path_manager: ModelPathManager | None = None,
        registry: type[AlgorithmRegistry] = AlgorithmRegistry,
    ) -> None:
        """Initialize explainer over a path manager and algorithm registry."""
        self.path_manager = path_manager if path_manager is not None else ModelPathManager()
        self.registry = registry

    def _algorithm(self, name: str) -> BaseAlgorithm:
        return self.registry.create(name, path_manager=self.path_manager)

    def list_algorithms(self) -> pd.DataFrame:
        """Registered algorithm names with their first docstring line."""
        rows = []
        for name in self.registry.list_all():
            doc = (self.registry.get(name).__doc__ or "").strip().splitlines()
            rows.append({"name": name, "description": doc[0] if doc else ""})
        return pd.DataFrame(rows, columns=["name", "description"])

    def explain_params(self, name: str) -> pd.DataFrame:
        """Recognized parameters and defaults of one algorithm."""
        return self._algorithm(name).explain_params()

    def explain_model(self, name: str, path: str, params: Mapping[str, str] | None = None) -> pd.DataFrame:
        """Internals of the trained model(s) selected by params."""
        return self._algorithm(name).explain_model(path, params)

    def model_history(self, path: str) -> pd.DataFrame:
        """One row per persisted candidate across every version under path."""
        rows = [
            {
                "version": metadata.version,
                "run_id": metadata.run_id,
                "algorithm": metadata.algorithm,
                "created_at": metadata.created_at,
                "index": record.index,
                "metric": record.metric,
                "params": record.params,
            }
            for metadata in self.path_manager.history(path)
            for record in metadata.candidates
        ]
        return pd.DataFrame(
            rows, columns=["version", "run_id", "algorithm", "created_at", "index", "metric", "params"]
        )
