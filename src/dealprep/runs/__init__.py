"""Run identity and lifecycle."""

from dealprep.runs.ids import (
    NoOrganizationIdentifier,
    compute_run_id,
    derive_organization_identifier,
    make_run_id,
    make_run_id_full,
    round_timestamp,
)
from dealprep.runs.lifecycle import IdempotencyCheck, RunLifecycle

__all__ = [
    "IdempotencyCheck",
    "NoOrganizationIdentifier",
    "RunLifecycle",
    "compute_run_id",
    "derive_organization_identifier",
    "make_run_id",
    "make_run_id_full",
    "round_timestamp",
]
