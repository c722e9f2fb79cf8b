"""Manager for versioned model directories, metadata records and model selection."""

from __future__ import annotations

import datetime
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ulid import ULID

from fitkit.core.exceptions import IndexNotFoundError, ModelNotFoundError
from fitkit.core.logging import get_logger

from .schemas import METADATA_FILE, MODEL_FILE, CandidateRecord, ModelMetadata, ModelSelection, VersionedRoot
from .storage import LocalModelStorage, ModelStorage, join, split

if TYPE_CHECKING:
    from fitkit.modules.training.schemas import TrainedCandidate

VERSION_DIR_PATTERN = re.compile(r"^_(\d+)$")
CANDIDATE_DIR_PATTERN = re.compile(r"^\d+$")

logger = get_logger(__name__)


def _write_order(metadata: ModelMetadata) -> tuple[int, datetime.datetime]:
    """Sort key placing runs under one root in the order they were written."""
    return metadata.sequence, datetime.datetime.fromisoformat(metadata.created_at)


class ModelPathManager:
    """Owns the on-disk layout of trained candidates.

    Layout of one versioned root::

        <root>/_<version>/          (or <root>/ itself without version retention)
            _metadata.json
            0/model.pkl
            1/model.pkl

    Not safe for concurrent writers against the same root; callers serialize training per path.
    """

    def __init__(self, storage: ModelStorage | None = None) -> None:
        """Initialize path manager with a storage backend (local filesystem by default)."""
        self.storage = storage if storage is not None else LocalModelStorage()

    # ------------------------------------------------------------------ Versions

    def list_versions(self, root: str) -> list[int]:
        """Return version numbers of the _<n> directories under root, ascending."""
        versions = []
        for entry in self.storage.list_entries(root):
            match = VERSION_DIR_PATTERN.match(entry)
            if match and self.storage.is_dir(join(root, entry)):
                versions.append(int(match.group(1)))
        return sorted(versions)

    def increment_version(self, root: str, keep_version: bool) -> VersionedRoot:
        """Return where the next training run writes.

        Without version retention this is always the fixed root, overwritten in place.
        With retention it is root/_<n> where n is one past the highest existing version.
        """
        if not keep_version:
            return VersionedRoot(root=root, path=root, version=None)

        versions = self.list_versions(root)
        next_version = versions[-1] + 1 if versions else 0
        return VersionedRoot(root=root, path=join(root, f"_{next_version}"), version=next_version)

    def version(self, root: str, version: int) -> VersionedRoot:
        """Return one specific historical version."""
        path = join(root, f"_{version}")
        if not self.storage.exists(join(path, METADATA_FILE)):
            raise ModelNotFoundError(path, f"Version {version} does not exist under {root}")
        return VersionedRoot(root=root, path=path, version=version)

    def current(self, root: str) -> VersionedRoot:
        """Resolve the version read by default: whichever of the newest _<n> and the fixed root was written last."""
        latest: VersionedRoot | None = None
        for version in reversed(self.list_versions(root)):
            path = join(root, f"_{version}")
            if self.storage.exists(join(path, METADATA_FILE)):
                latest = VersionedRoot(root=root, path=path, version=version)
                break

        if self.storage.exists(join(root, METADATA_FILE)):
            fixed = VersionedRoot(root=root, path=root, version=None)
            if latest is None or _write_order(self.read_metadata(fixed)) > _write_order(self.read_metadata(latest)):
                return fixed

        if latest is None:
            raise ModelNotFoundError(root, f"Nothing was ever trained at {root}")
        return latest

    def group_path(self, versioned_root: VersionedRoot, index: int) -> str:
        """Return the subdirectory holding one candidate."""
        return join(versioned_root.path, str(index))

    def model_path(self, candidate_path: str) -> str:
        """Return the model blob path inside a candidate subdirectory."""
        return join(candidate_path, MODEL_FILE)

    # ------------------------------------------------------------------ Persistence

    def persist(
        self,
        versioned_root: VersionedRoot,
        candidates: Sequence[TrainedCandidate],
        *,
        run_id: str | None = None,
        algorithm: str = "unknown",
        metric_name: str | None = None,
    ) -> ModelMetadata:
        """Write every candidate plus one metadata record, all or nothing.

        Blobs and metadata are written to a hidden staging directory first and moved
        into place once complete, metadata last.
        """
        if not candidates:
            raise ValueError(f"No candidates to persist at {versioned_root.path}")

        indices = [c.group.index for c in candidates]
        if len(set(indices)) != len(indices):
            raise ValueError(f"Duplicate candidate indices {indices} for {versioned_root.path}")

        history = self.history(versioned_root.root) if self.storage.exists(versioned_root.root) else []
        sequence = max((record.sequence for record in history), default=-1) + 1

        parent, name = split(versioned_root.path)
        staging = join(parent, f".{name}.staging-{ULID()}")

        try:
            records: list[CandidateRecord] = []
            for candidate in sorted(candidates, key=lambda c: c.group.index):
                index = candidate.group.index
                size = self.storage.write_model(join(staging, str(index), MODEL_FILE), candidate.model)
                records.append(
                    CandidateRecord(
                        index=index,
                        path=str(index),
                        params=dict(candidate.group.overrides),
                        metric=candidate.metric,
                        metrics=dict(candidate.metrics),
                        evaluation_error=candidate.evaluation_error,
                        started_at=candidate.started_at,
                        completed_at=candidate.completed_at,
                        duration_seconds=candidate.duration_seconds,
                        model_type=candidate.model_type,
                        model_size_bytes=size,
                    )
                )

            metadata = ModelMetadata(
                run_id=run_id or str(ULID()),
                algorithm=algorithm,
                version=versioned_root.version,
                created_at=datetime.datetime.now(datetime.UTC).isoformat(),
                sequence=sequence,
                metric_name=metric_name,
                candidates=records,
            )
            self.storage.write_json(join(staging, METADATA_FILE), metadata.model_dump(mode="json"))
            self._commit(staging, versioned_root.path)
        except BaseException:
            self.storage.remove(staging)
            raise

        logger.info(
            "models_persisted",
            path=versioned_root.path,
            version=versioned_root.version,
            indices=sorted(indices),
            run_id=metadata.run_id,
        )
        return metadata

    def _commit(self, staging: str, target: str) -> None:
        """Move a fully written staging directory into place."""
        if not self.storage.exists(target):
            self.storage.move(staging, target)
            return

        # Fixed root: swap candidates and metadata, keep version directories.
        # The replaced entries wait in a backup directory until the swap succeeds.
        parent, name = split(target)
        backup = join(parent, f".{name}.previous-{ULID()}")
        replaced = [
            entry
            for entry in self.storage.list_entries(target)
            if entry == METADATA_FILE or CANDIDATE_DIR_PATTERN.match(entry)
        ]
        moved_aside: list[str] = []
        moved_in: list[str] = []
        try:
            self.storage.make_dirs(backup)
            for entry in sorted(replaced, key=lambda e: e != METADATA_FILE):
                self.storage.move(join(target, entry), join(backup, entry))
                moved_aside.append(entry)
            for entry in sorted(self.storage.list_entries(staging), key=lambda e: e == METADATA_FILE):
                self.storage.move(join(staging, entry), join(target, entry))
                moved_in.append(entry)
        except BaseException:
            for entry in moved_in:
                self.storage.remove(join(target, entry))
            for entry in reversed(moved_aside):
                self.storage.move(join(backup, entry), join(target, entry))
            self.storage.remove(backup)
            logger.warning("fixed_root_commit_rolled_back", path=target, restored=sorted(moved_aside))
            raise

        self.storage.remove(backup)
        self.storage.remove(staging)

    def read_metadata(self, versioned_root: VersionedRoot) -> ModelMetadata:
        """Read the metadata record of a versioned root."""
        path = join(versioned_root.path, METADATA_FILE)
        if not self.storage.exists(path):
            raise ModelNotFoundError(versioned_root.path)
        return ModelMetadata.model_validate(self.storage.read_json(path))

    def history(self, root: str) -> list[ModelMetadata]:
        """Return metadata of every persisted run under root, oldest first."""
        records: list[ModelMetadata] = []
        if self.storage.exists(join(root, METADATA_FILE)):
            records.append(self.read_metadata(VersionedRoot(root=root, path=root)))
        for version in self.list_versions(root):
            versioned = VersionedRoot(root=root, path=join(root, f"_{version}"), version=version)
            if self.storage.exists(join(versioned.path, METADATA_FILE)):
                records.append(self.read_metadata(versioned))
        return sorted(records, key=_write_order)

    # ------------------------------------------------------------------ Selection

    def rank(self, metadata: ModelMetadata, metric: str | None = None) -> list[CandidateRecord]:
        """Order scored candidates by metric descending, ties by ascending index."""
        name = None if metric is None or metric == metadata.metric_name else metric
        scored = [(record.metric_value(name), record) for record in metadata.candidates]
        ranked = [(value, record) for value, record in scored if value is not None]
        ranked.sort(key=lambda item: (-item[0], item[1].index))
        return [record for _, record in ranked]

    def resolve(self, versioned_root: VersionedRoot, selection: ModelSelection) -> list[str]:
        """Resolve a selection to candidate subpaths in ensemble order."""
        metadata = self.read_metadata(versioned_root)
        if not metadata.candidates:
            raise ModelNotFoundError(versioned_root.path, f"No candidates recorded at {versioned_root.path}")

        match selection.kind:
            case "index":
                assert selection.index is not None
                if metadata.candidate(selection.index) is None:
                    raise IndexNotFoundError(versioned_root.path, selection.index, metadata.indices)
                indices = [selection.index]
            case "all":
                indices = metadata.indices
            case _:
                ranked = self.rank(metadata, selection.metric)
                if ranked:
                    indices = [record.index for record in ranked[: selection.top_k]]
                elif selection.require_metric:
                    raise ModelNotFoundError(
                        versioned_root.path,
                        f"No candidate at {versioned_root.path} has a {selection.metric or 'metric'} to rank by",
                    )
                else:
                    indices = [metadata.indices[0]]
                    logger.warning(
                        "best_model_without_metric",
                        path=versioned_root.path,
                        fallback_index=indices[0],
                    )

        return [self.group_path(versioned_root, index) for index in indices]
