"""Data models for the deal prep pipeline."""

from dealprep.models.brief import (
    AIOpportunity,
    BriefMeta,
    DealPrepBrief,
    DemonstrationPlan,
    ExecutiveLeader,
    ExecutiveSummary,
    FollowUpEmail,
    FollowUpEmails,
    LeadershipAndStaff,
    ObjectionRebuttal,
    OrganizationUnderstanding,
    Program,
    RequesterProfile,
    StaffMention,
    WebsiteAnalysis,
)
from dealprep.models.input import (
    CanonicalInput,
    Contact,
    InputMeta,
    Notes,
    Organization,
    Routing,
    TriggerSource,
)
from dealprep.models.run import (
    ARTIFACT_FILE_NAMES,
    ArtifactFlags,
    ArtifactType,
    Deliveries,
    DeliveryChannel,
    DeliveryOutcome,
    DeliveryState,
    RunRecord,
    RunStatus,
)

__all__ = [
    # Input
    "CanonicalInput",
    "Contact",
    "InputMeta",
    "Notes",
    "Organization",
    "Routing",
    "TriggerSource",
    # Run
    "ARTIFACT_FILE_NAMES",
    "ArtifactFlags",
    "ArtifactType",
    "Deliveries",
    "DeliveryChannel",
    "DeliveryOutcome",
    "DeliveryState",
    "RunRecord",
    "RunStatus",
    # Brief
    "AIOpportunity",
    "BriefMeta",
    "DealPrepBrief",
    "DemonstrationPlan",
    "ExecutiveLeader",
    "ExecutiveSummary",
    "FollowUpEmail",
    "FollowUpEmails",
    "LeadershipAndStaff",
    "ObjectionRebuttal",
    "OrganizationUnderstanding",
    "Program",
    "RequesterProfile",
    "StaffMention",
    "WebsiteAnalysis",
]
