"""In-memory artifact store, used by tests and dry runs."""

import logging
from typing import Any, Dict, List, Optional

from dealprep.storage.base import (
    ArtifactMetadata,
    ArtifactNotFoundError,
    StoredArtifact,
    build_metadata,
)

logger = logging.getLogger(__name__)


class MemoryArtifactStore:
    """Dict-backed store keyed by ``"{run_id}/{artifact_type}"``."""

    def __init__(self):
        self._artifacts: Dict[str, StoredArtifact] = {}

    @staticmethod
    def _key(run_id: str, artifact_type: str) -> str:
        return f"{run_id}/{artifact_type}"

    async def save(
        self,
        run_id: str,
        artifact_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ArtifactMetadata:
        meta = build_metadata(run_id, artifact_type, content, metadata)
        key = self._key(run_id, artifact_type)
        self._artifacts[key] = StoredArtifact(content=content, metadata=meta)
        logger.debug(f"Saved {key} ({meta.size} bytes)")
        return meta

    async def load(self, run_id: str, artifact_type: str) -> StoredArtifact:
        stored = self._artifacts.get(self._key(run_id, artifact_type))
        if stored is None:
            raise ArtifactNotFoundError(run_id, artifact_type)
        return stored

    async def exists(self, run_id: str, artifact_type: str) -> bool:
        return self._key(run_id, artifact_type) in self._artifacts

    async def list(self, run_id: str) -> List[ArtifactMetadata]:
        prefix = f"{run_id}/"
        return [
            stored.metadata
            for key, stored in self._artifacts.items()
            if key.startswith(prefix)
        ]

    async def delete(self, run_id: str, artifact_type: Optional[str] = None) -> None:
        if artifact_type is not None:
            self._artifacts.pop(self._key(run_id, artifact_type), None)
            return
        prefix = f"{run_id}/"
        for key in [k for k in self._artifacts if k.startswith(prefix)]:
            del self._artifacts[key]

    def clear(self) -> None:
        self._artifacts.clear()

    def size(self) -> int:
        return len(self._artifacts)

    def keys(self) -> List[str]:
        return list(self._artifacts.keys())
