"""Renderers: delivery views derived from the canonical brief.

The structured JSON brief is the only canonical artifact. Every format here
is a view of it:

- CRM note: the full brief as Markdown
- Email: executive summary, top three opportunities and a link (or the run
  id) to the full brief. Never the full brief inline.
- Motion task: top three opportunities, due two hours before the meeting
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional, Union

from jinja2 import Template
from pydantic import ValidationError

from dealprep.models.brief import DealPrepBrief
from dealprep.models.input import CanonicalInput
from dealprep.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

MOTION_LEAD_TIME = timedelta(hours=2)

BriefLike = Union[DealPrepBrief, Dict[str, Any]]


@dataclass(frozen=True)
class CRMNote:
    markdown: str
    run_id: str
    organization_name: str


@dataclass(frozen=True)
class EmailView:
    subject: str
    body_plain: str
    body_html: str


@dataclass(frozen=True)
class MotionTaskView:
    title: str
    body: str
    due_date: Optional[str] = None


def parse_brief(brief: BriefLike) -> DealPrepBrief:
    """Typed view of a brief dict.

    Raises:
        ValueError: If required sections are missing.
    """
    if isinstance(brief, DealPrepBrief):
        return brief
    try:
        return DealPrepBrief.model_validate(brief)
    except ValidationError as e:
        raise ValueError(f"Invalid brief: missing required fields ({e.error_count()} errors)") from e


def format_datetime(value: str) -> str:
    """Human-readable UTC time, or the input unchanged when it does not parse."""
    try:
        moment = parse_timestamp(value)
    except ValueError:
        return value
    return moment.strftime("%A, %B %d, %Y %H:%M UTC")


# =============================================================================
# CRM note
# =============================================================================

_CRM_TEMPLATE = Template(
    """# Deal Preparation Brief: {{ b.meta.organization_name }}

**Run ID:** `{{ b.meta.run_id }}`
**Generated:** {{ generated }}
**Trigger Source:** {{ b.meta.trigger_source }}

## Organization Information

- **Name:** {{ b.meta.organization_name }}
- **Website:** {{ b.meta.organization_website }}
- **Domain:** {{ b.meta.organization_domain }}
- **Requester:** {{ b.meta.requester_name }}
- **Requester Title:** {{ b.meta.requester_title }}

{% if b.meta.source_urls %}
### Source URLs

{% for url in b.meta.source_urls %}
- {{ url }}
{% endfor %}

{% endif %}
## Executive Summary

{{ b.executive_summary.summary }}

### Top Opportunities

{% for opportunity in b.executive_summary.top_opportunities %}
{{ loop.index }}. {{ opportunity }}
{% endfor %}

## Organization Understanding

### Mission

{{ b.organization_understanding.mission }}

{% if b.organization_understanding.programs %}
### Programs

{% for program in b.organization_understanding.programs %}
**{{ program.name }}**

{{ program.summary }}

{% endfor %}
{% endif %}
{% if b.organization_understanding.audiences %}
### Target Audiences

{% for audience in b.organization_understanding.audiences %}
- {{ audience }}
{% endfor %}

{% endif %}
## Website Analysis

**Overall Tone:** {{ b.website_analysis.overall_tone }}

{% if b.website_analysis.strengths %}
### Strengths

{% for strength in b.website_analysis.strengths %}
- {{ strength }}
{% endfor %}

{% endif %}
{% if b.website_analysis.gaps %}
### Gaps

{% for gap in b.website_analysis.gaps %}
- {{ gap }}
{% endfor %}

{% endif %}
### Volunteer Flow Observations

{{ b.website_analysis.volunteer_flow_observations }}

### Donation Flow Observations

{{ b.website_analysis.donation_flow_observations }}

## Leadership and Staff

### Executive Leader

**{{ b.leadership_and_staff.executive_leader.name }}** - {{ b.leadership_and_staff.executive_leader.role }}

{{ b.leadership_and_staff.executive_leader.summary }}

{% if b.leadership_and_staff.other_staff_mentions %}
### Other Staff

{% for staff in b.leadership_and_staff.other_staff_mentions %}
- **{{ staff.name }}** - {{ staff.role }}
{% endfor %}

{% endif %}
## Requester Profile

{{ b.requester_profile.summary }}

### Conversation Angle

{{ b.requester_profile.conversation_angle }}

## AI Opportunities

{% for opportunity in b.artificial_intelligence_opportunities %}
### {{ loop.index }}. {{ opportunity.title }}

**Why It Matters:** {{ opportunity.why_it_matters }}

**Demonstration Hook:** {{ opportunity.demonstration_hook }}

{% endfor %}
## Demonstration Plan

### Opening

{{ b.demonstration_plan.opening }}

{% if b.demonstration_plan.steps %}
### Steps

{% for step in b.demonstration_plan.steps %}
{{ loop.index }}. {{ step }}
{% endfor %}

{% endif %}
{% if b.demonstration_plan.example_bot_responses %}
### Example Bot Responses

{% for response in b.demonstration_plan.example_bot_responses %}
> {{ response }}

{% endfor %}
{% endif %}
## Objections and Rebuttals

{% for item in b.objections_and_rebuttals %}
### {{ loop.index }}. "{{ item.objection }}"

**Rebuttal:** {{ item.rebuttal }}

{% endfor %}
## Opening Script

> {{ b.opening_script }}

## Follow-up Emails

### Short Version

**Subject:** {{ b.follow_up_emails.short_version.subject }}

{{ b.follow_up_emails.short_version.body }}

### Warm Version

**Subject:** {{ b.follow_up_emails.warm_version.subject }}

{{ b.follow_up_emails.warm_version.body }}

---

*Run ID: {{ b.meta.run_id }}*""",
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_crm_note(brief: BriefLike) -> CRMNote:
    """Render the full brief as Markdown for a CRM attachment.

    Raises:
        ValueError: If the brief is missing required sections.
    """
    b = parse_brief(brief)
    markdown = _CRM_TEMPLATE.render(b=b, generated=format_datetime(b.meta.generated_at))
    logger.debug(f"[{b.meta.run_id}] Rendered CRM note ({len(markdown)} chars)")
    return CRMNote(
        markdown=markdown,
        run_id=b.meta.run_id,
        organization_name=b.meta.organization_name,
    )


# =============================================================================
# Email
# =============================================================================

_EMAIL_PLAIN_TEMPLATE = Template(
    """Deal Prep Brief Ready: {{ b.meta.organization_name }}

EXECUTIVE SUMMARY
{{ rule }}

{{ b.executive_summary.summary }}

TOP 3 OPPORTUNITIES
{{ rule }}

{% for opportunity in b.executive_summary.top_opportunities %}
{{ loop.index }}. {{ opportunity }}

{% endfor %}
{% if brief_url %}
VIEW FULL BRIEF
{{ rule }}

{{ brief_url }}
{% else %}
Reference: {{ b.meta.run_id }}
{% endif %}

---
This is an automated deal preparation notification.""",
    trim_blocks=True,
    lstrip_blocks=True,
)

_EMAIL_HTML_TEMPLATE = Template(
    """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Deal Prep: {{ b.meta.organization_name }}</title>
</head>
<body style="font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #374151; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background: #f9fafb; border-radius: 8px; padding: 24px; margin-bottom: 20px;">
    <h1 style="color: #111827; font-size: 20px; margin: 0 0 16px 0;">Deal Prep Ready: {{ b.meta.organization_name }}</h1>
    <h2 style="color: #6b7280; font-size: 14px; text-transform: uppercase;">Executive Summary</h2>
    <p>{{ b.executive_summary.summary }}</p>
    <h2 style="color: #6b7280; font-size: 14px; text-transform: uppercase;">Top 3 Opportunities</h2>
    <ol>
    {% for opportunity in b.executive_summary.top_opportunities %}
      <li>{{ opportunity }}</li>
    {% endfor %}
    </ol>
    {% if brief_url %}
    <p><a href="{{ brief_url }}" style="color: #2563eb;">View Full Brief</a></p>
    {% else %}
    <p><small>Reference: {{ b.meta.run_id }}</small></p>
    {% endif %}
  </div>
  <p style="color: #9ca3af; font-size: 12px;">This is an automated deal preparation notification.</p>
</body>
</html>""",
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


def _safe_link(url: Optional[str]) -> Optional[str]:
    """Only http(s) links are rendered as anchors."""
    if url and url.lower().startswith(("http://", "https://")):
        return url
    return None


def render_email(brief: BriefLike, brief_url: Optional[str] = None) -> EmailView:
    """Render the notification email.

    Raises:
        ValueError: If the brief is missing required sections.
    """
    b = parse_brief(brief)
    link = _safe_link(brief_url)
    body_plain = _EMAIL_PLAIN_TEMPLATE.render(b=b, brief_url=link, rule="-" * 40)
    body_html = _EMAIL_HTML_TEMPLATE.render(b=b, brief_url=link)
    return EmailView(
        subject=f"Deal Prep Ready: {b.meta.organization_name}",
        body_plain=body_plain,
        body_html=body_html,
    )


# =============================================================================
# Motion task
# =============================================================================

_MOTION_TEMPLATE = Template(
    """Review deal preparation brief before meeting.

TOP 3 OPPORTUNITIES:

{% for opportunity in b.executive_summary.top_opportunities %}
{{ loop.index }}. {{ opportunity }}
{% endfor %}

{% if brief_url %}
Full Brief: {{ brief_url }}
{% else %}
Reference: {{ b.meta.run_id }}
{% endif %}""",
    trim_blocks=True,
    lstrip_blocks=True,
)


def motion_due_date(canonical: CanonicalInput) -> Optional[str]:
    """Two hours before the requested meeting, or None when unknown."""
    meeting_at = canonical.meta.requested_meeting_at
    if not meeting_at:
        return None
    try:
        return format_timestamp(parse_timestamp(meeting_at) - MOTION_LEAD_TIME)
    except ValueError:
        return None


def render_motion_task(
    brief: BriefLike, canonical: CanonicalInput, brief_url: Optional[str] = None
) -> MotionTaskView:
    """Render the review task.

    Raises:
        ValueError: If the brief is missing required sections.
    """
    b = parse_brief(brief)
    return MotionTaskView(
        title=f"Deal Prep - {b.meta.organization_name}",
        body=_MOTION_TEMPLATE.render(b=b, brief_url=brief_url).rstrip(),
        due_date=motion_due_date(canonical),
    )
