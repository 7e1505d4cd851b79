"""Deterministic run identifiers.

A run id is a content hash of the request, not a random id:

    run_ + sha256("<trigger_source>|<rounded submitted_at>|<organization id>")[:16]

Resubmissions of the same logical request hash to the same id, which is what
makes run creation idempotent without a separate dedup table.

Rounding floors ``submitted_at`` to 5-minute buckets for inbound triggers and
60-minute buckets for outbound triggers. Two submissions 9 minutes apart can
land in the same bucket and share an id, while two submissions 1 minute apart
that straddle a bucket edge do not. Both outcomes are intended.
"""

import hashlib
import re
from typing import Dict, Optional, Union

from dealprep.models.input import CanonicalInput, TriggerSource
from dealprep.normalizer import extract_domain
from dealprep.result import ErrorCode, Failure, Result, Success
from dealprep.timestamps import format_timestamp, from_epoch_ms, parse_timestamp, to_epoch_ms

RUN_ID_PREFIX = "run"
SHORT_HASH_LENGTH = 16

BUCKET_MS: Dict[TriggerSource, int] = {
    TriggerSource.INBOUND: 5 * 60 * 1000,
    TriggerSource.OUTBOUND: 60 * 60 * 1000,
}

_WHITESPACE = re.compile(r"\s+")


class NoOrganizationIdentifier(ValueError):
    """Raised when none of domain, website or name is available."""

    def __init__(self, message: str = "Cannot generate run ID: no organization identifier available"):
        super().__init__(message)


def derive_organization_identifier(canonical: CanonicalInput) -> str:
    """Derive the organization identifier used in the run id.

    Priority:
    1. organization.domain, lowercased
    2. Hostname parsed from organization.website, ``www.`` stripped
    3. organization.name, lowercased, whitespace runs replaced with ``_``

    Raises:
        NoOrganizationIdentifier: If none of the three is present.
    """
    org = canonical.organization

    if org.domain:
        return org.domain.lower()

    if org.website:
        domain = extract_domain(org.website)
        if domain:
            return domain

    if org.name:
        return _WHITESPACE.sub("_", org.name.lower())

    raise NoOrganizationIdentifier()


def round_timestamp(timestamp: str, trigger_source: Union[TriggerSource, str]) -> str:
    """Floor a timestamp to the start of its bucket.

    Flooring happens on epoch milliseconds so every timestamp in a bucket
    yields the byte-identical string, e.g. ``2024-01-15T10:30:00.000Z``.

    Raises:
        ValueError: If the timestamp is not ISO-8601 or the trigger is unknown.
    """
    bucket = BUCKET_MS[TriggerSource(trigger_source)]
    epoch_ms = to_epoch_ms(parse_timestamp(timestamp))
    return format_timestamp(from_epoch_ms((epoch_ms // bucket) * bucket))


def _run_hash(canonical: CanonicalInput) -> str:
    org_id = derive_organization_identifier(canonical)
    trigger = TriggerSource(canonical.meta.trigger_source)
    rounded = round_timestamp(canonical.meta.submitted_at, trigger)
    combined = "|".join([trigger.value, rounded, org_id])
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()


def make_run_id(canonical: CanonicalInput) -> str:
    """Short run id, e.g. ``run_3f2a9c1d0b8e7a65``.

    Raises:
        NoOrganizationIdentifier: If no organization identifier is derivable.
    """
    return f"{RUN_ID_PREFIX}_{_run_hash(canonical)[:SHORT_HASH_LENGTH]}"


def make_run_id_full(canonical: CanonicalInput) -> str:
    """Run id carrying the full 64-character digest."""
    return f"{RUN_ID_PREFIX}_{_run_hash(canonical)}"


def compute_run_id(canonical: CanonicalInput, full: bool = False) -> Result[str]:
    """Result-returning wrapper around make_run_id / make_run_id_full.

    A missing organization identifier gives NO_ORGANIZATION_IDENTIFIER; a
    submitted_at that is not ISO-8601 gives VALIDATION_ERROR.
    """
    try:
        run_id = make_run_id_full(canonical) if full else make_run_id(canonical)
    except NoOrganizationIdentifier as e:
        return Failure(ErrorCode.NO_ORGANIZATION_IDENTIFIER, str(e))
    except ValueError as e:
        return Failure(
            ErrorCode.VALIDATION_ERROR,
            f"Cannot generate run ID: {e}",
            {"submitted_at": canonical.meta.submitted_at},
        )
    return Success(run_id)


def is_run_id(value: Optional[str]) -> bool:
    """Check whether a string looks like a run id this module produced."""
    if not value or not value.startswith(f"{RUN_ID_PREFIX}_"):
        return False
    digest = value[len(RUN_ID_PREFIX) + 1 :]
    return len(digest) in (SHORT_HASH_LENGTH, 64) and all(c in "0123456789abcdef" for c in digest)
