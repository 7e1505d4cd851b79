"""Run lifecycle: the idempotency gate and run record mutations.

Every run has one run record persisted as the ``run_artifact`` artifact. The
lifecycle creates it on first sight of a run id and every later stage
updates it through the methods below.

All mutations are plain read-modify-write cycles against the store with no
lock or version check. Two concurrent updates to the same run can lose one
of the writes; callers that fan out (delivery) collect their results and
apply them in a single write via ``record_deliveries``.

Every public method returns a Result instead of raising:
- RUN_NOT_FOUND: no run record for the id
- STORAGE_ERROR: the store failed (not retried here)
- NO_ORGANIZATION_IDENTIFIER: the run id could not be derived
- INVALID_STATUS_TRANSITION: status change out of a terminal state
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from dealprep.models.input import CanonicalInput
from dealprep.models.run import (
    STATUS_TRANSITIONS,
    ArtifactType,
    DeliveryChannel,
    DeliveryOutcome,
    DeliveryState,
    RunRecord,
    RunStatus,
)
from dealprep.result import ErrorCode, Failure, Result, Success
from dealprep.runs.ids import compute_run_id
from dealprep.storage.base import (
    ArtifactMetadata,
    ArtifactNotFoundError,
    ArtifactStore,
    StorageError,
)
from dealprep.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

RUN_ARTIFACT = ArtifactType.RUN_ARTIFACT.value


@dataclass
class IdempotencyCheck:
    """Outcome of a read-only lookup for an existing run."""

    run_id: str
    exists: bool
    record: Optional[RunRecord] = None


def _storage_failure(run_id: str, action: str, exc: Exception) -> Failure:
    if isinstance(exc, ArtifactNotFoundError):
        return Failure(
            ErrorCode.RUN_NOT_FOUND,
            f"Run not found: {run_id}",
            details={"run_id": run_id},
        )
    return Failure(
        ErrorCode.STORAGE_ERROR,
        f"Failed to {action}: {exc}",
        details={"run_id": run_id},
    )


class RunLifecycle:
    """Creates and mutates run records in an artifact store.

    Args:
        store: The artifact store holding run records and artifacts.
    """

    def __init__(self, store: ArtifactStore):
        self.store = store

    # =========================================================================
    # Store access
    # =========================================================================

    async def _load_record(self, run_id: str) -> RunRecord:
        stored = await self.store.load(run_id, RUN_ARTIFACT)
        try:
            return RunRecord.from_json(stored.content)
        except ValidationError as e:
            raise StorageError(f"Corrupt run record for {run_id}: {e}") from e

    async def _save_record(self, record: RunRecord) -> None:
        await self.store.save(
            record.run_id,
            RUN_ARTIFACT,
            record.to_json(),
            {"content_type": "application/json"},
        )

    # =========================================================================
    # Idempotency gate
    # =========================================================================

    async def check_idempotency(self, canonical: CanonicalInput) -> Result[IdempotencyCheck]:
        """Look up the run for an input without changing anything."""
        computed = compute_run_id(canonical)
        if isinstance(computed, Failure):
            return computed
        run_id = computed.data

        try:
            if not await self.store.exists(run_id, RUN_ARTIFACT):
                return Success(IdempotencyCheck(run_id=run_id, exists=False))
            record = await self._load_record(run_id)
        except StorageError as e:
            return _storage_failure(run_id, "check idempotency", e)

        return Success(IdempotencyCheck(run_id=run_id, exists=True, record=record))

    async def create_or_resume(self, canonical: CanonicalInput) -> Result[RunRecord]:
        """Create the run for an input, or return the existing one.

        A completed run is returned untouched. Pending, processing and failed
        runs are also returned as-is; resuming them is the caller's decision.
        """
        check = await self.check_idempotency(canonical)
        if isinstance(check, Failure):
            return check

        found = check.data
        if found.exists:
            if found.record.status is RunStatus.COMPLETED:
                logger.info(f"Run {found.run_id} already completed; skipping")
            else:
                logger.info(
                    f"Resuming run {found.run_id} ({found.record.status.value}, "
                    f"artifacts: {', '.join(found.record.completed_artifacts()) or 'none'})"
                )
            return Success(found.record)

        run_id = found.run_id
        stamped = canonical.with_run_id(run_id)
        record = RunRecord(run_id=run_id, input=stamped)

        try:
            await self._save_record(record)
            await self.store.save(
                run_id,
                ArtifactType.INPUT.value,
                stamped.model_dump_json(indent=2),
                {"content_type": "application/json"},
            )
            record.artifacts.input = True
            record.artifacts.run_artifact = True
            await self._save_record(record)
        except StorageError as e:
            return _storage_failure(run_id, "create run", e)

        logger.info(f"Created run {run_id}")
        return Success(record)

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_run(self, run_id: str) -> Result[RunRecord]:
        try:
            return Success(await self._load_record(run_id))
        except StorageError as e:
            return _storage_failure(run_id, "load run", e)

    async def load_artifact(self, run_id: str, artifact_type: Union[ArtifactType, str]) -> Result[Any]:
        """Load and decode a JSON artifact of a run."""
        artifact_type = ArtifactType(artifact_type).value
        try:
            stored = await self.store.load(run_id, artifact_type)
        except ArtifactNotFoundError:
            return Failure(
                ErrorCode.RUN_NOT_FOUND,
                f"Artifact not found: {run_id}/{artifact_type}",
                details={"run_id": run_id, "artifact_type": artifact_type},
            )
        except StorageError as e:
            return _storage_failure(run_id, f"load {artifact_type}", e)
        try:
            return Success(json.loads(stored.content))
        except json.JSONDecodeError as e:
            return Failure(
                ErrorCode.STORAGE_ERROR,
                f"Artifact {run_id}/{artifact_type} is not valid JSON: {e}",
            )

    async def list_artifacts(self, run_id: str) -> Result[List[ArtifactMetadata]]:
        try:
            return Success(await self.store.list(run_id))
        except StorageError as e:
            return _storage_failure(run_id, "list artifacts", e)

    # =========================================================================
    # Mutations (unlocked read-modify-write)
    # =========================================================================

    async def update_status(
        self,
        run_id: str,
        status: Union[RunStatus, str],
        error: Optional[str] = None,
    ) -> Result[RunRecord]:
        """Set the run status, appending ``error`` when given.

        ``completed_at`` is stamped when the run enters completed or failed.
        """
        status = RunStatus(status)
        try:
            record = await self._load_record(run_id)
        except StorageError as e:
            return _storage_failure(run_id, "update run status", e)

        if status not in STATUS_TRANSITIONS[record.status]:
            return Failure(
                ErrorCode.INVALID_STATUS_TRANSITION,
                f"Cannot move run {run_id} from {record.status.value} to {status.value}",
                details={"run_id": run_id, "from": record.status.value, "to": status.value},
            )

        record.status = status
        if status.is_terminal:
            record.completed_at = utc_now_iso()
        if error:
            record.errors.append(error)

        try:
            await self._save_record(record)
        except StorageError as e:
            return _storage_failure(run_id, "update run status", e)

        logger.info(f"Run {run_id} -> {status.value}")
        return Success(record)

    async def mark_artifact_complete(
        self, run_id: str, artifact_type: Union[ArtifactType, str]
    ) -> Result[RunRecord]:
        artifact_type = ArtifactType(artifact_type)
        try:
            record = await self._load_record(run_id)
            setattr(record.artifacts, artifact_type.value, True)
            await self._save_record(record)
        except StorageError as e:
            return _storage_failure(run_id, "mark artifact complete", e)
        return Success(record)

    async def update_delivery_status(
        self,
        run_id: str,
        channel: Union[DeliveryChannel, str],
        status: Union[DeliveryState, str],
        error: Optional[str] = None,
    ) -> Result[RunRecord]:
        """Overwrite one channel's ``{status, attempted_at, error}``."""
        channel = DeliveryChannel(channel)
        outcome = DeliveryOutcome(
            status=DeliveryState(status), attempted_at=utc_now_iso(), error=error
        )
        try:
            record = await self._load_record(run_id)
            record.deliveries.set(channel, outcome)
            await self._save_record(record)
        except StorageError as e:
            return _storage_failure(run_id, "update delivery status", e)
        return Success(record)

    async def record_deliveries(
        self, run_id: str, outcomes: Dict[DeliveryChannel, DeliveryOutcome]
    ) -> Result[RunRecord]:
        """Fold every channel outcome into the run record in one write."""
        try:
            record = await self._load_record(run_id)
            for channel, outcome in outcomes.items():
                record.deliveries.set(DeliveryChannel(channel), outcome)
            await self._save_record(record)
        except StorageError as e:
            return _storage_failure(run_id, "record deliveries", e)

        summary = ", ".join(f"{c.value}={o.status.value}" for c, o in outcomes.items())
        logger.info(f"Run {run_id} deliveries: {summary}")
        return Success(record)

    async def save_artifact(
        self,
        run_id: str,
        artifact_type: Union[ArtifactType, str],
        payload: Any,
    ) -> Result[RunRecord]:
        """Persist a JSON artifact and flip its completion flag."""
        artifact_type = ArtifactType(artifact_type)
        try:
            await self.store.save(
                run_id,
                artifact_type.value,
                json.dumps(payload, indent=2, ensure_ascii=False),
                {"content_type": "application/json"},
            )
        except StorageError as e:
            return _storage_failure(run_id, f"save {artifact_type.value}", e)
        return await self.mark_artifact_complete(run_id, artifact_type)

    async def delete_run(
        self, run_id: str, artifact_type: Optional[Union[ArtifactType, str]] = None
    ) -> Result[None]:
        """Delete one artifact or the whole run. Operator action only."""
        type_value = ArtifactType(artifact_type).value if artifact_type is not None else None
        try:
            if not await self.store.exists(run_id, RUN_ARTIFACT):
                return _storage_failure(run_id, "delete run", ArtifactNotFoundError(run_id, RUN_ARTIFACT))
            await self.store.delete(run_id, type_value)
        except StorageError as e:
            return _storage_failure(run_id, "delete run", e)
        logger.info(f"Deleted {run_id}/{type_value or '*'}")
        return Success(None)
