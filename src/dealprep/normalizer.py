"""Normalizer: parse a raw trigger payload into a CanonicalInput.

This is the only place the raw payload shape is validated. Downstream code
receives the immutable CanonicalInput and never re-validates it.

Canonicalization rules:
- Strings are trimmed; empty strings become None
- Emails are lowercased
- URLs get ``https://`` when schemeless and lose a trailing slash on
  non-root paths
- The domain is derived from the website (``www.`` stripped), falling back
  to a supplied domain
- A full name is split into first/last only when it has exactly two tokens
"""

import logging
from typing import List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, Field, ValidationError, field_validator

from dealprep.models.input import (
    CanonicalInput,
    Contact,
    InputMeta,
    Notes,
    Organization,
    Routing,
    TriggerSource,
)
from dealprep.result import ErrorCode, Failure, Result, Success
from dealprep.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)


# =============================================================================
# Raw payload schema
# =============================================================================


class RawMeta(BaseModel):
    trigger_source: TriggerSource
    submitted_at: str
    run_id: Optional[str] = None
    requested_meeting_at: Optional[str] = None
    timezone: Optional[str] = None

    @field_validator("submitted_at")
    @classmethod
    def _check_submitted_at(cls, value: str) -> str:
        try:
            parse_timestamp(value)
        except ValueError as e:
            raise ValueError("submitted_at must be a valid ISO-8601 timestamp") from e
        return value


class RawOrganization(BaseModel):
    name: Optional[str] = None
    website: Optional[str] = None
    domain: Optional[str] = None


class RawContact(BaseModel):
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None


class RawNotes(BaseModel):
    comments: Optional[str] = None
    intent_topic: Optional[str] = None
    source_context: Optional[str] = None


class RawRouting(BaseModel):
    crm_target: Optional[str] = None
    email_to: Optional[str] = None
    email_cc: List[str] = Field(default_factory=list)
    motion_workspace: Optional[str] = None


class RawInput(BaseModel):
    """Partial payload as received from a webhook, form or operator."""

    meta: RawMeta
    organization: RawOrganization = Field(default_factory=RawOrganization)
    contact: RawContact = Field(default_factory=RawContact)
    notes: RawNotes = Field(default_factory=RawNotes)
    routing: RawRouting = Field(default_factory=RawRouting)


# =============================================================================
# Canonicalization helpers
# =============================================================================


def trim_string(value: Optional[str]) -> Optional[str]:
    """Trim whitespace; empty results become None."""
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_email(email: Optional[str]) -> Optional[str]:
    trimmed = trim_string(email)
    return trimmed.lower() if trimmed else None


def normalize_url(url: Optional[str]) -> Optional[str]:
    """Ensure an http(s) scheme and drop a trailing slash on non-root paths."""
    trimmed = trim_string(url)
    if not trimmed:
        return None

    normalized = trimmed
    if not normalized.lower().startswith(("http://", "https://")):
        normalized = f"https://{normalized}"

    parts = urlsplit(normalized)
    if not parts.netloc:
        return normalized.rstrip("/") or normalized

    path = parts.path or "/"
    if path != "/" and path.endswith("/"):
        path = path[:-1]
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), path, parts.query, parts.fragment)
    )


def extract_domain(url: Optional[str]) -> Optional[str]:
    """Hostname of a URL, lowercased, without a leading ``www.``."""
    normalized = normalize_url(url)
    if not normalized:
        return None
    try:
        hostname = urlsplit(normalized).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname


def parse_contact_name(full_name: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split into (first, last) only when the name has exactly two tokens."""
    if not full_name:
        return None, None
    parts = full_name.split()
    if len(parts) == 2:
        return parts[0], parts[1]
    return None, None


def _normalize_meeting_time(value: Optional[str]) -> Optional[str]:
    """Keep a requested meeting time only when it parses."""
    if not value:
        return None
    try:
        return format_timestamp(parse_timestamp(value))
    except ValueError:
        logger.warning(f"Dropping unparseable requested_meeting_at: {value!r}")
        return None


# =============================================================================
# Entry point
# =============================================================================


def normalize(raw: object) -> Result[CanonicalInput]:
    """Normalize a raw payload.

    Returns:
        Success(CanonicalInput), or Failure with VALIDATION_ERROR when the
        payload does not parse, or ORGANIZATION_REQUIRED when neither an
        organization name nor a website is present.
    """
    try:
        parsed = RawInput.model_validate(raw)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()
        ]
        return Failure(ErrorCode.VALIDATION_ERROR, "Input validation failed", details=errors)

    website = normalize_url(parsed.organization.website)
    if website:
        domain = extract_domain(website)
    else:
        supplied = trim_string(parsed.organization.domain)
        domain = supplied.lower() if supplied else None
    organization = Organization(
        name=trim_string(parsed.organization.name),
        website=website,
        domain=domain,
    )

    if organization.name is None and organization.website is None:
        return Failure(
            ErrorCode.ORGANIZATION_REQUIRED,
            "At least one of organization.name or organization.website must be present",
            details={"organization": organization.model_dump()},
        )

    full_name = trim_string(parsed.contact.full_name)
    parsed_first, parsed_last = parse_contact_name(full_name)
    contact = Contact(
        full_name=full_name,
        first_name=trim_string(parsed.contact.first_name) or parsed_first,
        last_name=trim_string(parsed.contact.last_name) or parsed_last,
        title=trim_string(parsed.contact.title),
        email=normalize_email(parsed.contact.email),
        phone=trim_string(parsed.contact.phone),
        linkedin_url=normalize_url(parsed.contact.linkedin_url),
    )

    notes = Notes(
        comments=trim_string(parsed.notes.comments),
        intent_topic=trim_string(parsed.notes.intent_topic),
        source_context=trim_string(parsed.notes.source_context),
    )

    cc = [normalize_email(email) for email in parsed.routing.email_cc]
    routing = Routing(
        crm_target=trim_string(parsed.routing.crm_target),
        email_to=normalize_email(parsed.routing.email_to),
        email_cc=[email for email in cc if email],
        motion_workspace=trim_string(parsed.routing.motion_workspace),
    )

    meta = InputMeta(
        trigger_source=parsed.meta.trigger_source,
        submitted_at=format_timestamp(parse_timestamp(parsed.meta.submitted_at)),
        run_id=parsed.meta.run_id or "",
        requested_meeting_at=_normalize_meeting_time(parsed.meta.requested_meeting_at),
        timezone=trim_string(parsed.meta.timezone),
    )

    return Success(
        CanonicalInput(
            meta=meta,
            organization=organization,
            contact=contact,
            notes=notes,
            routing=routing,
        )
    )
