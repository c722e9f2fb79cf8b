"""Versioned model directories, metadata records and model selection."""

from .manager import ModelPathManager
from .schemas import METADATA_FILE, MODEL_FILE, CandidateRecord, ModelMetadata, ModelSelection, VersionedRoot
from .storage import LocalModelStorage, ModelStorage

__all__ = [
    "METADATA_FILE",
    "MODEL_FILE",
    "CandidateRecord",
    "LocalModelStorage",
    "ModelMetadata",
    "ModelPathManager",
    "ModelSelection",
    "ModelStorage",
    "VersionedRoot",
]
