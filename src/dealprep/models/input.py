"""Canonical input record produced by the normalizer.

The record is immutable once built; it is persisted verbatim as the
``input`` artifact and embedded in the run record.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class TriggerSource(str, Enum):
    """What kind of event started the run."""

    INBOUND = "inbound"  # Form submission, meeting request
    OUTBOUND = "outbound"  # Rep-initiated research


class InputMeta(BaseModel):
    """Trigger metadata."""

    model_config = {"frozen": True}

    trigger_source: TriggerSource
    submitted_at: str  # ISO-8601, UTC
    run_id: str = ""  # Filled in once the run id is known
    requested_meeting_at: Optional[str] = None
    timezone: Optional[str] = None


class Organization(BaseModel):
    """Organization block. At least one of name/website is present."""

    model_config = {"frozen": True}

    name: Optional[str] = None
    website: Optional[str] = None
    domain: Optional[str] = None


class Contact(BaseModel):
    """Requester contact details."""

    model_config = {"frozen": True}

    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None


class Notes(BaseModel):
    """Free-form notes captured with the trigger."""

    model_config = {"frozen": True}

    comments: Optional[str] = None
    intent_topic: Optional[str] = None
    source_context: Optional[str] = None


class Routing(BaseModel):
    """Where the rendered brief should be delivered."""

    model_config = {"frozen": True}

    crm_target: Optional[str] = None
    email_to: Optional[str] = None
    email_cc: List[str] = Field(default_factory=list)
    motion_workspace: Optional[str] = None


class CanonicalInput(BaseModel):
    """Normalized trigger payload."""

    model_config = {"frozen": True}

    meta: InputMeta
    organization: Organization = Field(default_factory=Organization)
    contact: Contact = Field(default_factory=Contact)
    notes: Notes = Field(default_factory=Notes)
    routing: Routing = Field(default_factory=Routing)

    def with_run_id(self, run_id: str) -> "CanonicalInput":
        """Return a copy whose meta block carries the run id."""
        meta = self.meta.model_copy(update={"run_id": run_id})
        return self.model_copy(update={"meta": meta})
