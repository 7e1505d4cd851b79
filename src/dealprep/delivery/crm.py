"""CRM adapters.

NullCRMAdapter skips every operation and reports success. FileCRMAdapter is
the reference implementation: it keeps one directory per organization domain
under an export directory and writes the brief note and run metadata there.

Layout:
    <export_dir>/contacts/<email>.json
    <export_dir>/<domain>/organization.json
    <export_dir>/<domain>/contacts/<email>.json     (association)
    <export_dir>/<domain>/briefs/<note_id>.md
    <export_dir>/<domain>/runs/<run_id>.json
"""

import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

from dealprep.delivery.base import (
    ContactData,
    CRMResult,
    DeliveryError,
    OrganizationData,
    RunMetadata,
)
from dealprep.storage.base import compute_checksum
from dealprep.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


class NullCRMAdapter:
    """Used when no CRM is configured."""

    name = "null"

    async def upsert_organization(self, domain: str, data: OrganizationData) -> CRMResult:
        logger.warning(f"CRM not configured; skipping organization upsert for {domain}")
        return CRMResult(success=True, entity_id=domain, metadata={"skipped": True})

    async def upsert_contact(self, email: str, data: ContactData) -> CRMResult:
        return CRMResult(success=True, entity_id=email, metadata={"skipped": True})

    async def associate_contact(self, contact_id: str, organization_id: str) -> CRMResult:
        return CRMResult(success=True, metadata={"skipped": True})

    async def attach_brief(
        self, organization_id: str, brief_markdown: str, brief_url: Optional[str]
    ) -> CRMResult:
        return CRMResult(success=True, metadata={"skipped": True})

    async def record_run_metadata(
        self, organization_id: str, run_id: str, metadata: RunMetadata
    ) -> CRMResult:
        return CRMResult(success=True, metadata={"skipped": True})


def _safe_segment(value: str) -> str:
    """Make an id usable as a single path segment."""
    return "".join(c if c.isalnum() or c in "-_.@" else "_" for c in value)


class FileCRMAdapter:
    """File-backed CRM. Upserts merge new non-empty values into existing records.

    Args:
        export_dir: Root directory for CRM records
    """

    name = "file"

    def __init__(self, export_dir: Path):
        self.export_dir = Path(export_dir)

    def _org_dir(self, organization_id: str) -> Path:
        return self.export_dir / _safe_segment(organization_id)

    # =========================================================================
    # Sync helpers (run in a worker thread)
    # =========================================================================

    def _merge_json(self, path: Path, values: Dict[str, Any]) -> Dict[str, Any]:
        try:
            existing = json.loads(path.read_text(encoding="utf-8")) if path.exists() else {}
            for key, value in values.items():
                if value not in (None, ""):
                    existing[key] = value
            existing.setdefault("created_at", utc_now_iso())
            existing["updated_at"] = utc_now_iso()
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(existing, indent=2, ensure_ascii=False), encoding="utf-8")
        except (OSError, json.JSONDecodeError) as e:
            raise DeliveryError(f"Failed to write {path}: {e}") from e
        return existing

    def _write_text(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise DeliveryError(f"Failed to write {path}: {e}") from e

    # =========================================================================
    # CRMAdapter
    # =========================================================================

    async def upsert_organization(self, domain: str, data: OrganizationData) -> CRMResult:
        path = self._org_dir(domain) / "organization.json"
        await asyncio.to_thread(self._merge_json, path, asdict(data))
        logger.info(f"CRM organization upserted: {domain}")
        return CRMResult(success=True, entity_id=domain, entity_type="organization")

    async def upsert_contact(self, email: str, data: ContactData) -> CRMResult:
        path = self.export_dir / "contacts" / f"{_safe_segment(email)}.json"
        await asyncio.to_thread(self._merge_json, path, asdict(data))
        return CRMResult(success=True, entity_id=email, entity_type="contact")

    async def associate_contact(self, contact_id: str, organization_id: str) -> CRMResult:
        path = self._org_dir(organization_id) / "contacts" / f"{_safe_segment(contact_id)}.json"
        await asyncio.to_thread(
            self._merge_json, path, {"contact_id": contact_id, "organization_id": organization_id}
        )
        return CRMResult(success=True, entity_id=contact_id, entity_type="contact")

    async def attach_brief(
        self, organization_id: str, brief_markdown: str, brief_url: Optional[str]
    ) -> CRMResult:
        # Same note content, same file: re-delivery overwrites instead of duplicating
        note_id = f"note_{compute_checksum(brief_markdown)[:12]}"
        path = self._org_dir(organization_id) / "briefs" / f"{note_id}.md"
        content = brief_markdown if not brief_url else f"{brief_markdown}\n\nFull brief: {brief_url}\n"
        await asyncio.to_thread(self._write_text, path, content)
        return CRMResult(success=True, entity_id=note_id, entity_type="note")

    async def record_run_metadata(
        self, organization_id: str, run_id: str, metadata: RunMetadata
    ) -> CRMResult:
        path = self._org_dir(organization_id) / "runs" / f"{_safe_segment(run_id)}.json"
        payload = {"run_id": run_id, **asdict(metadata)}
        await asyncio.to_thread(
            self._write_text, path, json.dumps(payload, indent=2, ensure_ascii=False)
        )
        return CRMResult(success=True, entity_id=run_id, entity_type="artifact")
