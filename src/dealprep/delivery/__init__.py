"""Delivery of rendered briefs to CRM, email and Motion."""

from dealprep.delivery.base import (
    ContactData,
    CRMAdapter,
    CRMResult,
    DeliveryAdapters,
    DeliveryError,
    DeliveryViews,
    EmailAdapter,
    EmailMessage,
    EmailResult,
    MotionAdapter,
    MotionResult,
    MotionTask,
    OrganizationData,
    RunMetadata,
)
from dealprep.delivery.crm import FileCRMAdapter, NullCRMAdapter
from dealprep.delivery.email import NullEmailAdapter, SendGridEmailAdapter
from dealprep.delivery.motion import MotionAPIAdapter, NullMotionAdapter
from dealprep.delivery.orchestrator import (
    create_adapters,
    deliver_crm,
    deliver_email,
    deliver_motion,
    execute_deliveries,
)

__all__ = [
    "CRMAdapter",
    "CRMResult",
    "ContactData",
    "DeliveryAdapters",
    "DeliveryError",
    "DeliveryViews",
    "EmailAdapter",
    "EmailMessage",
    "EmailResult",
    "FileCRMAdapter",
    "MotionAPIAdapter",
    "MotionAdapter",
    "MotionResult",
    "MotionTask",
    "NullCRMAdapter",
    "NullEmailAdapter",
    "NullMotionAdapter",
    "OrganizationData",
    "RunMetadata",
    "SendGridEmailAdapter",
    "create_adapters",
    "deliver_crm",
    "deliver_email",
    "deliver_motion",
    "execute_deliveries",
]
