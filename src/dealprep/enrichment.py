"""Person enrichment.

Summarizes the requester from an explicitly provided LinkedIn URL. Nothing
is guessed: without a valid URL the result is the "Not found" marker with
``not_available`` confidence.

Enrichment is optional and never blocks a run. ``enrich_person`` retries a
failing provider, then gives up and returns the not-found output with the
collected error strings.
"""

import asyncio
import logging
from enum import Enum
from typing import List, Optional, Protocol, runtime_checkable
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from dealprep.models.input import CanonicalInput
from dealprep.tools.llm.adapters.base import LLMAdapter, LLMAdapterError
from dealprep.tools.llm.types import LLMMessage, LLMRequest

logger = logging.getLogger(__name__)

NOT_FOUND = "Not found"
LINKEDIN_HOSTS = ("linkedin.com", "www.linkedin.com")


class EnrichmentConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NOT_AVAILABLE = "not_available"


class ProfileSummary(BaseModel):
    summary: str = NOT_FOUND
    confidence: EnrichmentConfidence = EnrichmentConfidence.NOT_AVAILABLE


class EnrichmentOutput(BaseModel):
    """Enrichment artifact: ``{requester_profile: {summary, confidence}, errors[]}``."""

    requester_profile: ProfileSummary = Field(default_factory=ProfileSummary)
    errors: List[str] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.requester_profile.confidence is not EnrichmentConfidence.NOT_AVAILABLE


class EnrichmentError(Exception):
    """Raised by providers when a summary cannot be produced."""

    pass


@runtime_checkable
class EnrichmentProvider(Protocol):
    """Summarizes a person from a profile URL."""

    name: str

    async def summarize(self, linkedin_url: str, canonical: CanonicalInput) -> ProfileSummary:
        ...


class NullEnrichmentProvider:
    """Default provider: always not found."""

    name = "null"

    async def summarize(self, linkedin_url: str, canonical: CanonicalInput) -> ProfileSummary:
        return ProfileSummary()


ENRICHMENT_SYSTEM_PROMPT = """You write short, factual requester summaries for sales preparation.

Rules:
- Use ONLY the facts given to you. Do not browse, guess or invent.
- If the facts are too thin for a useful summary, answer exactly: Not found
- At most 3 sentences. No preamble."""


class LLMEnrichmentProvider:
    """Summarizes what the submission itself says about the requester.

    The LinkedIn page is never fetched; the URL is passed to the model only
    as a reference, so the confidence of the summary is always low.
    """

    name = "llm"

    def __init__(self, llm: LLMAdapter):
        self.llm = llm

    async def summarize(self, linkedin_url: str, canonical: CanonicalInput) -> ProfileSummary:
        contact = canonical.contact
        facts = [
            f"LinkedIn URL: {linkedin_url}",
            f"Name: {contact.full_name or NOT_FOUND}",
            f"Title: {contact.title or NOT_FOUND}",
            f"Organization: {canonical.organization.name or canonical.organization.domain or NOT_FOUND}",
        ]
        if canonical.notes.comments:
            facts.append(f"Their message: {canonical.notes.comments}")

        request = LLMRequest(
            messages=[
                LLMMessage(role="system", content=ENRICHMENT_SYSTEM_PROMPT),
                LLMMessage(role="user", content="\n".join(facts)),
            ],
            max_tokens=300,
            metadata={"run_id": canonical.meta.run_id, "stage": "enrichment"},
        )
        response = await self.llm.complete(request)

        text = response.text.strip()
        if not text:
            raise EnrichmentError("LLM returned an empty summary")
        if text == NOT_FOUND:
            return ProfileSummary()
        return ProfileSummary(summary=text, confidence=EnrichmentConfidence.LOW)


def is_valid_linkedin_url(url: Optional[str]) -> bool:
    """True for linkedin.com or www.linkedin.com profile URLs (``/in/...``)."""
    if not url or not isinstance(url, str):
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and parts.hostname in LINKEDIN_HOSTS and parts.path.startswith("/in/")


async def enrich_person(
    canonical: CanonicalInput,
    provider: Optional[EnrichmentProvider] = None,
    *,
    max_retries: int = 1,
    retry_backoff_s: float = 30.0,
) -> EnrichmentOutput:
    """Enrich the requester. Never raises.

    Args:
        canonical: Normalized input; only contact.linkedin_url is consulted
        provider: Enrichment provider (defaults to NullEnrichmentProvider)
        max_retries: Extra attempts after the first failure
        retry_backoff_s: Delay before each retry

    Returns:
        EnrichmentOutput, "Not found" when nothing could be summarized.
    """
    provider = provider or NullEnrichmentProvider()
    run_id = canonical.meta.run_id
    linkedin_url = canonical.contact.linkedin_url

    if not linkedin_url:
        logger.info(f"[{run_id}] No LinkedIn URL provided; skipping enrichment")
        return EnrichmentOutput()

    if not is_valid_linkedin_url(linkedin_url):
        logger.warning(f"[{run_id}] Invalid LinkedIn URL format: {linkedin_url}")
        return EnrichmentOutput()

    errors: List[str] = []
    for attempt in range(max_retries + 1):
        if attempt > 0:
            logger.info(f"[{run_id}] Enrichment retry {attempt} after {retry_backoff_s}s")
            await asyncio.sleep(retry_backoff_s)
        try:
            summary = await provider.summarize(linkedin_url, canonical)
        except (EnrichmentError, LLMAdapterError) as e:
            message = f"Enrichment attempt {attempt + 1} failed: {e}"
            logger.warning(f"[{run_id}] {message}")
            errors.append(message)
            continue

        logger.info(
            f"[{run_id}] Enrichment via {provider.name} completed "
            f"(confidence: {summary.confidence.value})"
        )
        return EnrichmentOutput(requester_profile=summary, errors=errors)

    logger.warning(f"[{run_id}] Enrichment gave up after {max_retries + 1} attempts")
    return EnrichmentOutput(errors=errors)
