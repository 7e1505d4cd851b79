"""Delivery adapter interfaces.

Each channel (CRM, email, Motion) has a Protocol and a null adapter used
when the channel is not configured. Adapters report failures through their
result objects; the orchestrator turns any exception that escapes an adapter
into a failed channel outcome.

No adapter performs destructive updates: CRM upserts are additive, emails
are sent at most once per run id, tasks are only ever created.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from dealprep.renderers import CRMNote, EmailView, MotionTaskView


class DeliveryError(Exception):
    """Raised by an adapter that cannot complete a delivery."""

    pass


# =============================================================================
# CRM
# =============================================================================


@dataclass
class CRMResult:
    """Outcome of one CRM operation."""

    success: bool
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None  # organization | contact | note | artifact
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class OrganizationData:
    domain: str
    name: Optional[str] = None
    website: Optional[str] = None


@dataclass
class ContactData:
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    title: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None


@dataclass
class RunMetadata:
    """Run facts recorded against the CRM organization."""

    trigger_source: str
    generated_at: str
    completed_at: str
    source_urls: List[str] = field(default_factory=list)
    brief_url: Optional[str] = None


@runtime_checkable
class CRMAdapter(Protocol):
    """CRM operations the delivery flow needs."""

    name: str

    async def upsert_organization(self, domain: str, data: OrganizationData) -> CRMResult:
        ...

    async def upsert_contact(self, email: str, data: ContactData) -> CRMResult:
        ...

    async def associate_contact(self, contact_id: str, organization_id: str) -> CRMResult:
        ...

    async def attach_brief(
        self, organization_id: str, brief_markdown: str, brief_url: Optional[str]
    ) -> CRMResult:
        ...

    async def record_run_metadata(
        self, organization_id: str, run_id: str, metadata: RunMetadata
    ) -> CRMResult:
        ...


# =============================================================================
# Email
# =============================================================================


@dataclass
class EmailMessage:
    to: List[str]
    subject: str
    text_body: str
    html_body: Optional[str] = None
    cc: List[str] = field(default_factory=list)


@dataclass
class EmailResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class EmailAdapter(Protocol):
    """Sends notification emails, at most once per run id."""

    name: str

    async def send_email(self, run_id: str, message: EmailMessage) -> EmailResult:
        ...

    async def was_email_sent(self, run_id: str) -> bool:
        ...


# =============================================================================
# Motion
# =============================================================================


@dataclass
class MotionTask:
    title: str
    description: str
    due_date: Optional[str] = None
    workspace_id: Optional[str] = None


@dataclass
class MotionResult:
    success: bool
    task_id: Optional[str] = None
    task_url: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class MotionAdapter(Protocol):
    """Creates review tasks in Motion."""

    name: str

    async def create_task(self, task: MotionTask) -> MotionResult:
        ...


# =============================================================================
# Bundles
# =============================================================================


@dataclass
class DeliveryAdapters:
    """One adapter per channel."""

    crm: CRMAdapter
    email: EmailAdapter
    motion: MotionAdapter


@dataclass(frozen=True)
class DeliveryViews:
    """Rendered views of one brief."""

    crm: CRMNote
    email: EmailView
    motion: MotionTaskView
    brief_url: Optional[str] = None
