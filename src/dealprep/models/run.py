"""Run record: the lifecycle state document persisted per run."""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, Field

from dealprep.models.input import CanonicalInput
from dealprep.timestamps import utc_now_iso


class RunStatus(str, Enum):
    """Status of a run."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)


# Allowed status moves. Terminal states accept none.
STATUS_TRANSITIONS: Dict[RunStatus, FrozenSet[RunStatus]] = {
    RunStatus.PENDING: frozenset({RunStatus.PENDING, RunStatus.PROCESSING, RunStatus.FAILED}),
    RunStatus.PROCESSING: frozenset(
        {RunStatus.PROCESSING, RunStatus.COMPLETED, RunStatus.FAILED}
    ),
    RunStatus.COMPLETED: frozenset(),
    RunStatus.FAILED: frozenset(),
}


class ArtifactType(str, Enum):
    """Artifacts stored per run."""

    INPUT = "input"
    SCRAPE = "scrape"
    ENRICHMENT = "enrichment"
    BRIEF = "brief"
    RUN_ARTIFACT = "run_artifact"


ARTIFACT_FILE_NAMES: Dict[str, str] = {
    ArtifactType.INPUT.value: "input.json",
    ArtifactType.SCRAPE.value: "scrape.json",
    ArtifactType.ENRICHMENT.value: "enrichment.json",
    ArtifactType.BRIEF.value: "brief.json",
    ArtifactType.RUN_ARTIFACT.value: "run_artifact.json",
}


class DeliveryChannel(str, Enum):
    """External systems a brief is delivered to."""

    CRM = "customer_relationship_management"
    EMAIL = "email"
    MOTION = "motion"


class DeliveryState(str, Enum):
    NOT_ATTEMPTED = "not_attempted"
    SUCCESS = "success"
    FAILED = "failed"


class DeliveryOutcome(BaseModel):
    """Result of one delivery attempt."""

    status: DeliveryState = DeliveryState.NOT_ATTEMPTED
    attempted_at: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "DeliveryOutcome":
        return cls(status=DeliveryState.SUCCESS, attempted_at=utc_now_iso())

    @classmethod
    def failed(cls, error: str) -> "DeliveryOutcome":
        return cls(status=DeliveryState.FAILED, attempted_at=utc_now_iso(), error=error)


class ArtifactFlags(BaseModel):
    """Which artifacts have landed in the store."""

    input: bool = False
    scrape: bool = False
    enrichment: bool = False
    brief: bool = False
    run_artifact: bool = False


class Deliveries(BaseModel):
    """Per-channel delivery status."""

    customer_relationship_management: DeliveryOutcome = Field(default_factory=DeliveryOutcome)
    email: DeliveryOutcome = Field(default_factory=DeliveryOutcome)
    motion: DeliveryOutcome = Field(default_factory=DeliveryOutcome)

    def get(self, channel: DeliveryChannel) -> DeliveryOutcome:
        return getattr(self, channel.value)

    def set(self, channel: DeliveryChannel, outcome: DeliveryOutcome) -> None:
        setattr(self, channel.value, outcome)


class RunRecord(BaseModel):
    """Lifecycle state of one run, persisted as the ``run_artifact`` artifact."""

    run_id: str
    status: RunStatus = RunStatus.PENDING
    created_at: str = Field(default_factory=utc_now_iso)
    completed_at: Optional[str] = None
    input: CanonicalInput
    artifacts: ArtifactFlags = Field(default_factory=ArtifactFlags)
    deliveries: Deliveries = Field(default_factory=Deliveries)
    errors: List[str] = Field(default_factory=list)

    def completed_artifacts(self) -> List[str]:
        """Names of artifacts whose completion flag is set."""
        return [name for name, done in self.artifacts.model_dump().items() if done]

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, content: str) -> "RunRecord":
        return cls.model_validate_json(content)
