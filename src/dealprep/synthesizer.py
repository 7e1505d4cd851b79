"""Brief synthesis.

Builds the synthesis prompt from the run's artifacts, asks the LLM for a
Deal Preparation Brief, stamps the run metadata onto it and runs the Brief
Validator. A rejected brief is retried with its violations appended to the
prompt; the brief is only returned once it validates.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dealprep.models.input import CanonicalInput
from dealprep.prompts import build_repair_prompt, build_synthesis_prompt
from dealprep.result import ErrorCode, Failure, Result, Success
from dealprep.timestamps import utc_now_iso
from dealprep.tools.llm.adapters.base import LLMAdapter, LLMAdapterError
from dealprep.tools.llm.structured import StructuredOutputError, parse_json_object
from dealprep.tools.llm.types import LLMMessage, LLMRequest
from dealprep.validate import ValidatorConfig, validate_brief

logger = logging.getLogger(__name__)

MAX_RETRIES = 1


@dataclass
class SynthesisContext:
    """Everything the synthesizer knows about a run.

    ``scrape`` and ``enrichment`` are the decoded artifacts, or None when the
    stage produced nothing.
    """

    run_id: str
    canonical: CanonicalInput
    scrape: Optional[Dict[str, Any]] = None
    enrichment: Optional[Dict[str, Any]] = None
    generated_at: str = field(default_factory=utc_now_iso)

    def scraped_urls(self) -> List[str]:
        if not self.scrape:
            return []
        return [page["url"] for page in self.scrape.get("pages", []) if page.get("url")]


def stamp_brief(brief: Dict[str, Any], context: SynthesisContext) -> Dict[str, Any]:
    """Overwrite run metadata the model must not decide.

    Source URLs fall back to the scraped pages when the model left them out.
    """
    meta = brief.get("meta")
    if not isinstance(meta, dict):
        meta = {}
        brief["meta"] = meta
    meta["run_id"] = context.run_id
    meta["generated_at"] = context.generated_at
    meta["trigger_source"] = context.canonical.meta.trigger_source.value
    if not meta.get("source_urls"):
        scraped = context.scraped_urls()
        if scraped:
            meta["source_urls"] = scraped
    return brief


async def synthesize_brief(
    context: SynthesisContext,
    llm: LLMAdapter,
    validator_config: Optional[ValidatorConfig] = None,
    max_retries: int = MAX_RETRIES,
) -> Result[Dict[str, Any]]:
    """Generate a validated brief.

    Args:
        context: Run artifacts
        llm: LLM adapter
        validator_config: Brief Validator options
        max_retries: Extra attempts after the first rejected or failed one

    Returns:
        Success(brief dict), Failure(BRIEF_INVALID) carrying the last
        violations, or Failure(SYNTHESIS_ERROR) when the LLM call or JSON
        extraction failed on the last attempt.
    """
    validator_config = validator_config or ValidatorConfig()
    run_id = context.run_id

    system_prompt, user_prompt = build_synthesis_prompt(
        run_metadata={"run_id": run_id, "generated_at": context.generated_at},
        canonical_input=context.canonical.model_dump(mode="json"),
        website_scrape=context.scrape,
        enrichment_output=context.enrichment,
        not_found=validator_config.not_found_marker,
    )

    prompt = user_prompt
    last_failure: Optional[Failure] = None

    for attempt in range(max_retries + 1):
        logger.info(f"[{run_id}] Synthesis attempt {attempt + 1}/{max_retries + 1}")
        request = LLMRequest(
            messages=[
                LLMMessage(role="system", content=system_prompt),
                LLMMessage(role="user", content=prompt),
            ],
            metadata={"run_id": run_id, "stage": "synthesis", "attempt": attempt + 1},
        )

        try:
            response = await llm.complete(request)
            brief = parse_json_object(response.text)
        except LLMAdapterError as e:
            logger.warning(f"[{run_id}] LLM call failed: {e}")
            last_failure = Failure(
                ErrorCode.SYNTHESIS_ERROR,
                f"LLM call failed: {e}",
                details={"provider": e.provider, "retryable": e.retryable},
            )
            continue
        except StructuredOutputError as e:
            logger.warning(f"[{run_id}] Response was not a JSON object: {e}")
            last_failure = Failure(
                ErrorCode.SYNTHESIS_ERROR,
                str(e),
                details={"response_preview": e.original_text[:500]},
            )
            continue

        stamp_brief(brief, context)
        validation = validate_brief(brief, validator_config)
        if validation.valid:
            logger.info(f"[{run_id}] Brief accepted on attempt {attempt + 1}")
            return Success(brief)

        logger.warning(
            f"[{run_id}] Brief rejected with {len(validation.violations)} violation(s)"
        )
        last_failure = Failure(
            ErrorCode.BRIEF_INVALID,
            f"Brief failed validation with {len(validation.violations)} violation(s)",
            details=[v.to_dict() for v in validation.violations],
        )
        prompt = build_repair_prompt(user_prompt, [str(v) for v in validation.violations])

    logger.error(f"[{run_id}] No valid brief after {max_retries + 1} attempt(s): {last_failure}")
    return last_failure
