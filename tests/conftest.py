"""Test configuration and fixtures."""

import copy
import logging
from typing import Any, Dict

import pytest

from dealprep.models.input import CanonicalInput
from dealprep.normalizer import normalize
from dealprep.storage.memory import MemoryArtifactStore
from dealprep.tools.llm.adapters.fake import FakeAdapter

VALID_BRIEF: Dict[str, Any] = {
    "meta": {
        "run_id": "run_0123456789abcdef",
        "generated_at": "2024-01-15T10:30:00.000Z",
        "trigger_source": "inbound",
        "organization_name": "Example Food Bank",
        "organization_website": "https://example.org",
        "organization_domain": "example.org",
        "requester_name": "Jane Doe",
        "requester_title": "Executive Director",
        "source_urls": ["https://example.org/"],
    },
    "executive_summary": {
        "summary": "Example Food Bank runs three pantry programs and relies on volunteers.",
        "top_opportunities": [
            "Automate volunteer shift questions",
            "Answer donor FAQs around the clock",
            "Route pantry eligibility questions",
        ],
    },
    "organization_understanding": {
        "mission": "End hunger in Example County.",
        "programs": [{"name": "Mobile Pantry", "summary": "Weekly food distribution."}],
        "audiences": ["Families", "Volunteers"],
    },
    "website_analysis": {
        "overall_tone": "Warm and community focused",
        "strengths": ["Clear donate button"],
        "gaps": ["No volunteer FAQ"],
        "volunteer_flow_observations": "Sign-up is a PDF form.",
        "donation_flow_observations": "Not found",
    },
    "leadership_and_staff": {
        "executive_leader": {
            "name": "Jane Doe",
            "role": "Executive Director",
            "summary": "Leads the organization since 2019.",
        },
        "other_staff_mentions": [{"name": "John Smith", "role": "Volunteer Coordinator"}],
    },
    "requester_profile": {
        "summary": "Not found",
        "conversation_angle": "Volunteer coordination load",
    },
    "artificial_intelligence_opportunities": [
        {
            "title": "Volunteer assistant",
            "why_it_matters": "Staff answer the same shift questions daily.",
            "demonstration_hook": "Ask the bot to reschedule a shift.",
        },
        {
            "title": "Donor FAQ",
            "why_it_matters": "Donors ask about tax receipts.",
            "demonstration_hook": "Ask for a receipt copy.",
        },
        {
            "title": "Eligibility triage",
            "why_it_matters": "Clients call to check eligibility.",
            "demonstration_hook": "Walk through an eligibility check.",
        },
    ],
    "demonstration_plan": {
        "opening": "Show the volunteer assistant on their own site.",
        "steps": ["Open the site", "Ask a shift question", "Show the handoff"],
        "example_bot_responses": ["Your shift is confirmed for Saturday."],
    },
    "objections_and_rebuttals": [
        {"objection": "We have no budget", "rebuttal": "Pilot pricing is available."},
        {"objection": "Our volunteers prefer phone", "rebuttal": "Phone handoff stays."},
        {"objection": "Data privacy", "rebuttal": "No client data is stored."},
    ],
    "opening_script": "Thanks for reaching out about volunteer coordination.",
    "follow_up_emails": {
        "short_version": {"subject": "Next steps", "body": "Thanks for your time today."},
        "warm_version": {
            "subject": "Great talking with you",
            "body": "It was a pleasure learning about the pantry programs.",
        },
    },
}

RAW_PAYLOAD: Dict[str, Any] = {
    "meta": {
        "trigger_source": "inbound",
        "submitted_at": "2024-01-15T10:32:17Z",
        "requested_meeting_at": "2024-01-20T15:00:00Z",
    },
    "organization": {"name": "  Example Food Bank ", "website": "www.Example.org/"},
    "contact": {
        "full_name": "Jane Doe",
        "title": "Executive Director",
        "email": "  Jane.Doe@Example.org ",
        "linkedin_url": "https://www.linkedin.com/in/janedoe",
    },
    "notes": {"comments": "Interested in volunteer coordination"},
    "routing": {"email_to": "Rep@Sales.example.com", "email_cc": ["", "lead@sales.example.com"]},
}


@pytest.fixture(autouse=True)
def _quiet_loggers():
    """Keep dealprep loggers at WARNING unless a test asks for more."""
    logging.getLogger("dealprep").setLevel(logging.WARNING)
    yield


@pytest.fixture
def valid_brief() -> Dict[str, Any]:
    """Provide a brief that satisfies every validation constraint."""
    return copy.deepcopy(VALID_BRIEF)


@pytest.fixture
def raw_payload() -> Dict[str, Any]:
    """Provide a raw inbound trigger payload."""
    return copy.deepcopy(RAW_PAYLOAD)


@pytest.fixture
def canonical_input(raw_payload) -> CanonicalInput:
    """Provide the normalized form of raw_payload."""
    result = normalize(raw_payload)
    assert result.ok
    return result.data


@pytest.fixture
def memory_store() -> MemoryArtifactStore:
    """Provide an empty in-memory artifact store."""
    return MemoryArtifactStore()


@pytest.fixture
def fake_llm() -> FakeAdapter:
    """Provide a fake LLM adapter with no queued responses."""
    return FakeAdapter()
