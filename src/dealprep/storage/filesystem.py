"""Filesystem artifact store.

Layout::

    <root>/<run_id>/input.json
    <root>/<run_id>/input.json.meta.json
    ...

Blocking file I/O runs in a worker thread so the store can be awaited from
the pipeline without stalling the event loop.
"""

import asyncio
import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from dealprep.storage.base import (
    ArtifactMetadata,
    ArtifactNotFoundError,
    StorageError,
    StoredArtifact,
    artifact_file_name,
    build_metadata,
)

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta.json"


class FileArtifactStore:
    """Stores each run's artifacts in its own directory under ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _run_dir(self, run_id: str) -> Path:
        return self.root / run_id

    def _paths(self, run_id: str, artifact_type: str):
        path = self._run_dir(run_id) / artifact_file_name(artifact_type)
        return path, path.with_name(path.name + META_SUFFIX)

    def _save_sync(self, run_id: str, artifact_type: str, content: str, meta: ArtifactMetadata):
        path, meta_path = self._paths(run_id, artifact_type)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
            meta_path.write_text(meta.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to save {run_id}/{artifact_type}: {e}") from e

    def _load_sync(self, run_id: str, artifact_type: str) -> StoredArtifact:
        path, meta_path = self._paths(run_id, artifact_type)
        if not path.exists():
            raise ArtifactNotFoundError(run_id, artifact_type)
        try:
            content = path.read_text(encoding="utf-8")
            if meta_path.exists():
                meta = ArtifactMetadata.model_validate_json(meta_path.read_text(encoding="utf-8"))
            else:
                meta = build_metadata(run_id, artifact_type, content)
        except OSError as e:
            raise StorageError(f"Failed to load {run_id}/{artifact_type}: {e}") from e
        return StoredArtifact(content=content, metadata=meta)

    def _list_sync(self, run_id: str) -> List[ArtifactMetadata]:
        run_dir = self._run_dir(run_id)
        if not run_dir.is_dir():
            return []
        results = []
        for meta_path in sorted(run_dir.glob(f"*{META_SUFFIX}")):
            try:
                results.append(
                    ArtifactMetadata.model_validate(json.loads(meta_path.read_text(encoding="utf-8")))
                )
            except (OSError, ValueError) as e:
                raise StorageError(f"Unreadable metadata {meta_path}: {e}") from e
        return results

    def _delete_sync(self, run_id: str, artifact_type: Optional[str]) -> None:
        try:
            if artifact_type is None:
                run_dir = self._run_dir(run_id)
                if run_dir.exists():
                    shutil.rmtree(run_dir)
                return
            for path in self._paths(run_id, artifact_type):
                path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {run_id}/{artifact_type or '*'}: {e}") from e

    async def save(
        self,
        run_id: str,
        artifact_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ArtifactMetadata:
        meta = build_metadata(run_id, artifact_type, content, metadata)
        await asyncio.to_thread(self._save_sync, run_id, artifact_type, content, meta)
        logger.debug(f"Saved {run_id}/{meta.file_name} ({meta.size} bytes)")
        return meta

    async def load(self, run_id: str, artifact_type: str) -> StoredArtifact:
        return await asyncio.to_thread(self._load_sync, run_id, artifact_type)

    async def exists(self, run_id: str, artifact_type: str) -> bool:
        path, _ = self._paths(run_id, artifact_type)
        return await asyncio.to_thread(path.exists)

    async def list(self, run_id: str) -> List[ArtifactMetadata]:
        return await asyncio.to_thread(self._list_sync, run_id)

    async def delete(self, run_id: str, artifact_type: Optional[str] = None) -> None:
        await asyncio.to_thread(self._delete_sync, run_id, artifact_type)
        logger.info(f"Deleted {run_id}/{artifact_type or '*'}")
