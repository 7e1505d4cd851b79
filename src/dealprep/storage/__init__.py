"""Artifact storage for deal prep runs."""

from pathlib import Path
from typing import Optional

from dealprep.storage.base import (
    ArtifactMetadata,
    ArtifactNotFoundError,
    ArtifactStore,
    StorageError,
    StoredArtifact,
    artifact_file_name,
    compute_checksum,
)
from dealprep.storage.filesystem import FileArtifactStore
from dealprep.storage.memory import MemoryArtifactStore


def create_store(kind: str = "file", root: Optional[Path] = None) -> ArtifactStore:
    """Create an artifact store by kind (``file`` or ``memory``).

    Raises:
        ValueError: If the kind is unknown or a file store has no root.
    """
    if kind == "memory":
        return MemoryArtifactStore()
    if kind == "file":
        if root is None:
            raise ValueError("File store requires a root directory")
        return FileArtifactStore(root)
    raise ValueError(f"Unknown storage kind: {kind}")


__all__ = [
    "ArtifactMetadata",
    "ArtifactNotFoundError",
    "ArtifactStore",
    "FileArtifactStore",
    "MemoryArtifactStore",
    "StorageError",
    "StoredArtifact",
    "artifact_file_name",
    "compute_checksum",
    "create_store",
]
