"""Typed view of the Deal Preparation Brief.

The validator works on the raw JSON document so that it can report on any
shape. Once a brief is accepted, renderers parse it into these models for
attribute access.
"""

from typing import List

from pydantic import BaseModel, Field

NOT_FOUND = "Not found"


class BriefMeta(BaseModel):
    run_id: str
    generated_at: str
    trigger_source: str
    organization_name: str = NOT_FOUND
    organization_website: str = NOT_FOUND
    organization_domain: str = NOT_FOUND
    requester_name: str = NOT_FOUND
    requester_title: str = NOT_FOUND
    source_urls: List[str] = Field(default_factory=list)


class ExecutiveSummary(BaseModel):
    summary: str
    top_opportunities: List[str]


class Program(BaseModel):
    name: str
    summary: str


class OrganizationUnderstanding(BaseModel):
    mission: str = NOT_FOUND
    programs: List[Program] = Field(default_factory=list)
    audiences: List[str] = Field(default_factory=list)


class WebsiteAnalysis(BaseModel):
    overall_tone: str = NOT_FOUND
    strengths: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    volunteer_flow_observations: str = NOT_FOUND
    donation_flow_observations: str = NOT_FOUND


class StaffMention(BaseModel):
    name: str
    role: str


class ExecutiveLeader(BaseModel):
    name: str = NOT_FOUND
    role: str = NOT_FOUND
    summary: str = NOT_FOUND


class LeadershipAndStaff(BaseModel):
    executive_leader: ExecutiveLeader = Field(default_factory=ExecutiveLeader)
    other_staff_mentions: List[StaffMention] = Field(default_factory=list)


class RequesterProfile(BaseModel):
    summary: str = NOT_FOUND
    conversation_angle: str = NOT_FOUND


class AIOpportunity(BaseModel):
    title: str
    why_it_matters: str
    demonstration_hook: str


class DemonstrationPlan(BaseModel):
    opening: str
    steps: List[str]
    example_bot_responses: List[str] = Field(default_factory=list)


class ObjectionRebuttal(BaseModel):
    objection: str
    rebuttal: str


class FollowUpEmail(BaseModel):
    subject: str
    body: str


class FollowUpEmails(BaseModel):
    short_version: FollowUpEmail
    warm_version: FollowUpEmail


class DealPrepBrief(BaseModel):
    """Canonical brief. Rendered formats are views derived from it."""

    meta: BriefMeta
    executive_summary: ExecutiveSummary
    organization_understanding: OrganizationUnderstanding = Field(
        default_factory=OrganizationUnderstanding
    )
    website_analysis: WebsiteAnalysis = Field(default_factory=WebsiteAnalysis)
    leadership_and_staff: LeadershipAndStaff = Field(default_factory=LeadershipAndStaff)
    requester_profile: RequesterProfile = Field(default_factory=RequesterProfile)
    artificial_intelligence_opportunities: List[AIOpportunity]
    demonstration_plan: DemonstrationPlan
    objections_and_rebuttals: List[ObjectionRebuttal]
    opening_script: str
    follow_up_emails: FollowUpEmails
