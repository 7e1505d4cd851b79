"""Prompt builder for Deal Preparation Brief synthesis."""

import json
from typing import Any, Dict, List, Optional, Tuple

from jinja2 import Template

SYNTHESIS_SYSTEM_PROMPT = (
    "You are an expert sales enablement analyst. You MUST output ONLY valid JSON "
    "that conforms exactly to the schema provided in the prompt. No markdown code "
    "fences, no explanatory text - just raw JSON."
)

BRIEF_SCHEMA_EXAMPLE = """{
  "meta": {
    "run_id": string,
    "generated_at": string (ISO-8601),
    "trigger_source": "inbound" | "outbound",
    "organization_name": string,
    "organization_website": string,
    "organization_domain": string,
    "requester_name": string,
    "requester_title": string,
    "source_urls": [string] (every page URL you relied on)
  },
  "executive_summary": {
    "summary": string (<= 600 characters),
    "top_opportunities": [string] (exactly 3)
  },
  "organization_understanding": {
    "mission": string,
    "programs": [{"name": string, "summary": string}],
    "audiences": [string]
  },
  "website_analysis": {
    "overall_tone": string,
    "strengths": [string],
    "gaps": [string],
    "volunteer_flow_observations": string,
    "donation_flow_observations": string
  },
  "leadership_and_staff": {
    "executive_leader": {"name": string, "role": string, "summary": string},
    "other_staff_mentions": [{"name": string, "role": string}]
  },
  "requester_profile": {
    "summary": string,
    "conversation_angle": string
  },
  "artificial_intelligence_opportunities": [
    {"title": string, "why_it_matters": string, "demonstration_hook": string}
  ] (exactly 3),
  "demonstration_plan": {
    "opening": string,
    "steps": [string] (at most 6),
    "example_bot_responses": [string]
  },
  "objections_and_rebuttals": [
    {"objection": string, "rebuttal": string}
  ] (exactly 3),
  "opening_script": string (<= 450 characters),
  "follow_up_emails": {
    "short_version": {"subject": string, "body": string (<= 120 words)},
    "warm_version": {"subject": string, "body": string (<= 180 words)}
  }
}"""

_USER_TEMPLATE = Template(
    """Generate a Deal Preparation Brief for the organization below.

OUTPUT FORMAT:
Output ONLY valid JSON matching this exact schema:
{{ schema }}

HARD CONSTRAINTS:
1. executive_summary.top_opportunities has exactly 3 items
2. artificial_intelligence_opportunities has exactly 3 items
3. objections_and_rebuttals has exactly 3 items
4. executive_summary.summary is at most 600 characters
5. opening_script is at most 450 characters
6. demonstration_plan.steps has at most 6 items
7. follow_up_emails.short_version.body is at most 120 words
8. follow_up_emails.warm_version.body is at most 180 words
9. When a fact is unavailable, write exactly "{{ not_found }}". Never use null or an empty string.

EVIDENCE RULES:
- Use ONLY the facts in the data below. Do not invent people, programs or statistics.
- List every page URL you used in meta.source_urls.

## Run metadata
{{ run_metadata }}

## Canonical input
{{ canonical_input }}

## Website scrape
{{ website_scrape }}

## Requester enrichment
{{ enrichment_output }}

Output the brief as JSON:"""
)

_REPAIR_TEMPLATE = Template(
    """{{ prompt }}

Your previous answer was rejected because it broke these constraints:
{% for violation in violations %}
- {{ violation }}
{% endfor %}
Return the complete corrected brief as JSON. Fix every listed problem and keep everything else.""",
    trim_blocks=True,
    lstrip_blocks=True,
)


def _unavailable_scrape() -> Dict[str, Any]:
    return {
        "scrape_meta": {
            "started_at": None,
            "completed_at": None,
            "source_domain": "Not available",
            "tool": "none",
            "pages_fetched": 0,
        },
        "pages": [],
        "errors": ["Website scrape not available"],
    }


def _unavailable_enrichment(not_found: str) -> Dict[str, Any]:
    return {
        "requester_profile": {"summary": not_found, "confidence": "not_available"},
        "errors": ["Enrichment not available"],
    }


def build_synthesis_prompt(
    run_metadata: Dict[str, Any],
    canonical_input: Dict[str, Any],
    website_scrape: Optional[Dict[str, Any]] = None,
    enrichment_output: Optional[Dict[str, Any]] = None,
    not_found: str = "Not found",
) -> Tuple[str, str]:
    """Build system and user prompts for brief synthesis.

    Args:
        run_metadata: ``{run_id, generated_at}``
        canonical_input: Normalized input as a JSON-ready dict
        website_scrape: Scrape artifact, or None when unavailable
        enrichment_output: Enrichment artifact, or None when unavailable
        not_found: Marker for unavailable facts

    Returns:
        Tuple of (system_prompt, user_prompt)
    """
    if website_scrape is None:
        website_scrape = _unavailable_scrape()
    if enrichment_output is None:
        enrichment_output = _unavailable_enrichment(not_found)

    user_prompt = _USER_TEMPLATE.render(
        schema=BRIEF_SCHEMA_EXAMPLE,
        not_found=not_found,
        run_metadata=json.dumps(run_metadata, indent=2),
        canonical_input=json.dumps(canonical_input, indent=2, ensure_ascii=False),
        website_scrape=json.dumps(website_scrape, indent=2, ensure_ascii=False),
        enrichment_output=json.dumps(enrichment_output, indent=2, ensure_ascii=False),
    )
    return SYNTHESIS_SYSTEM_PROMPT, user_prompt


def build_repair_prompt(prompt: str, violations: List[str]) -> str:
    """Append the rejected brief's violations to the original user prompt."""
    return _REPAIR_TEMPLATE.render(prompt=prompt, violations=violations)
