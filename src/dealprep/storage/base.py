"""Artifact store interface.

Artifacts are JSON documents keyed by ``(run_id, artifact_type)``. Every
store implements the async ``ArtifactStore`` protocol; the run lifecycle
and pipeline receive a store instance explicitly.

Store errors:
- ArtifactNotFoundError: load of an absent artifact
- StorageError: transport/backend failure (never retried by callers)
"""

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from dealprep.models.run import ARTIFACT_FILE_NAMES


class StorageError(Exception):
    """Raised when the backing store fails."""

    pass


class ArtifactNotFoundError(StorageError):
    """Raised when loading an artifact that does not exist."""

    def __init__(self, run_id: str, artifact_type: str):
        self.run_id = run_id
        self.artifact_type = artifact_type
        super().__init__(f"Artifact not found: {run_id}/{artifact_type}")


class ArtifactMetadata(BaseModel):
    """Integrity metadata recorded with every saved artifact."""

    run_id: str
    artifact_type: str
    file_name: str
    created_at: str
    content_type: str = "application/json"
    size: int = 0
    checksum: str = ""
    extra: Dict[str, Any] = Field(default_factory=dict)


@dataclass
class StoredArtifact:
    """Loaded artifact content plus its metadata."""

    content: str
    metadata: ArtifactMetadata


def artifact_file_name(artifact_type: str) -> str:
    """File name for an artifact type; unknown types map to ``<type>.json``."""
    return ARTIFACT_FILE_NAMES.get(artifact_type, f"{artifact_type}.json")


def compute_checksum(content: str) -> str:
    """MD5 hex digest of the UTF-8 content. Integrity only, not identity."""
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def build_metadata(
    run_id: str,
    artifact_type: str,
    content: str,
    extra: Optional[Dict[str, Any]] = None,
) -> ArtifactMetadata:
    """Build metadata for content about to be saved."""
    return ArtifactMetadata(
        run_id=run_id,
        artifact_type=artifact_type,
        file_name=artifact_file_name(artifact_type),
        created_at=datetime.now(timezone.utc).isoformat(),
        size=len(content.encode("utf-8")),
        checksum=compute_checksum(content),
        extra=dict(extra or {}),
    )


@runtime_checkable
class ArtifactStore(Protocol):
    """Protocol all artifact stores implement."""

    async def save(
        self,
        run_id: str,
        artifact_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ArtifactMetadata:
        """Persist content, overwriting any previous value."""
        ...

    async def load(self, run_id: str, artifact_type: str) -> StoredArtifact:
        """Load an artifact. Raises ArtifactNotFoundError when absent."""
        ...

    async def exists(self, run_id: str, artifact_type: str) -> bool:
        ...

    async def list(self, run_id: str) -> List[ArtifactMetadata]:
        ...

    async def delete(self, run_id: str, artifact_type: Optional[str] = None) -> None:
        """Delete one artifact, or every artifact of the run when type is None."""
        ...
