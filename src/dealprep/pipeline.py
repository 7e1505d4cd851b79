"""End-to-end run orchestration.

normalize -> idempotency gate -> processing -> scrape -> enrichment ->
synthesize + validate -> save brief -> render -> deliver -> completed

A completed run is returned unchanged. A failed run is returned as-is and
is not reprocessed; it needs an operator delete before it can run again. A
pending or processing run resumes: stages whose artifact already landed are
loaded from the store instead of being redone.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from dealprep.config import DeliveryConfig, ScraperConfig
from dealprep.delivery import DeliveryAdapters, DeliveryViews, create_adapters, execute_deliveries
from dealprep.enrichment import EnrichmentProvider, enrich_person
from dealprep.models.input import CanonicalInput
from dealprep.models.run import ArtifactType, RunRecord, RunStatus
from dealprep.normalizer import normalize
from dealprep.renderers import parse_brief, render_crm_note, render_email, render_motion_task
from dealprep.result import ErrorCode, Failure, Result, Success
from dealprep.runs.lifecycle import RunLifecycle
from dealprep.scraper import ScrapeOutput, scrape_website
from dealprep.storage.base import ArtifactStore
from dealprep.synthesizer import SynthesisContext, synthesize_brief
from dealprep.tools.llm.adapters.base import LLMAdapter
from dealprep.validate import ValidatorConfig

logger = logging.getLogger(__name__)

ScrapeFn = Callable[[str], Awaitable[ScrapeOutput]]


class StageFailed(Exception):
    """Carries the Failure that stops a run."""

    def __init__(self, failure: Failure):
        super().__init__(str(failure))
        self.failure = failure


def _require(result: Result) -> Any:
    if isinstance(result, Failure):
        raise StageFailed(result)
    return result.data


class DealPrepPipeline:
    """Runs a trigger payload through every stage.

    Args:
        store: Artifact store for run records and artifacts
        llm: LLM adapter used for synthesis
        adapters: Delivery adapters (null adapters when omitted)
        enrichment_provider: Requester enrichment provider
        scraper_config: Scraper limits for the default scraper
        scrape: Replacement scrape function ``async (url) -> ScrapeOutput``
        validator_config: Brief Validator options
        enrichment_backoff_s: Delay before retrying a failed enrichment
        brief_url_fn: Maps a run id to a link to the full brief, if any
    """

    def __init__(
        self,
        store: ArtifactStore,
        llm: LLMAdapter,
        *,
        adapters: Optional[DeliveryAdapters] = None,
        enrichment_provider: Optional[EnrichmentProvider] = None,
        scraper_config: Optional[ScraperConfig] = None,
        scrape: Optional[ScrapeFn] = None,
        validator_config: Optional[ValidatorConfig] = None,
        enrichment_backoff_s: float = 30.0,
        brief_url_fn: Optional[Callable[[str], Optional[str]]] = None,
    ):
        self.lifecycle = RunLifecycle(store)
        self.llm = llm
        self.adapters = adapters or create_adapters(DeliveryConfig())
        self.enrichment_provider = enrichment_provider
        self.scraper_config = scraper_config or ScraperConfig()
        self._scrape = scrape or self._default_scrape
        self.validator_config = validator_config or ValidatorConfig()
        self.enrichment_backoff_s = enrichment_backoff_s
        self.brief_url_fn = brief_url_fn

    async def _default_scrape(self, url: str) -> ScrapeOutput:
        return await scrape_website(url, self.scraper_config)

    # =========================================================================
    # Entry point
    # =========================================================================

    async def run(self, raw: Dict[str, Any]) -> Result[RunRecord]:
        """Run a raw trigger payload.

        Returns:
            Success(final run record), or the Failure that stopped the run.
            Once a run record exists, a failure also moves it to ``failed``,
            including an unexpected exception raised by a stage.
        """
        normalized = normalize(raw)
        if isinstance(normalized, Failure):
            logger.warning(f"Rejected payload: {normalized}")
            return normalized

        created = await self.lifecycle.create_or_resume(normalized.data)
        if isinstance(created, Failure):
            return created

        record = created.data
        if record.status is RunStatus.COMPLETED:
            return Success(record)
        if record.status is RunStatus.FAILED:
            logger.warning(f"Run {record.run_id} previously failed; not reprocessing")
            return Success(record)

        try:
            return Success(await self._process(record))
        except StageFailed as e:
            return await self._fail(record.run_id, e.failure)
        except Exception as e:
            logger.exception(f"Run {record.run_id} crashed")
            failure = Failure(ErrorCode.STAGE_ERROR, f"{type(e).__name__}: {e}")
            return await self._fail(record.run_id, failure)

    async def _fail(self, run_id: str, failure: Failure) -> Failure:
        logger.error(f"Run {run_id} failed: {failure}")
        updated = await self.lifecycle.update_status(run_id, RunStatus.FAILED, error=str(failure))
        if isinstance(updated, Failure):
            logger.error(f"Could not mark run {run_id} failed: {updated}")
        return failure

    # =========================================================================
    # Stages
    # =========================================================================

    async def _process(self, record: RunRecord) -> RunRecord:
        run_id = record.run_id
        canonical = record.input

        if record.status is RunStatus.PENDING:
            record = _require(await self.lifecycle.update_status(run_id, RunStatus.PROCESSING))

        scrape = await self._scrape_stage(record, canonical)
        enrichment = await self._enrichment_stage(record, canonical)
        brief = await self._synthesis_stage(record, canonical, scrape, enrichment)

        try:
            typed = parse_brief(brief)
            brief_url = self.brief_url_fn(run_id) if self.brief_url_fn else None
            views = DeliveryViews(
                crm=render_crm_note(typed),
                email=render_email(typed, brief_url),
                motion=render_motion_task(typed, canonical, brief_url),
                brief_url=brief_url,
            )
        except ValueError as e:
            failure = Failure(ErrorCode.BRIEF_INVALID, f"Brief could not be rendered: {e}")
            raise StageFailed(failure) from e

        outcomes = await execute_deliveries(run_id, typed, canonical, views, self.adapters)
        _require(await self.lifecycle.record_deliveries(run_id, outcomes))

        return _require(await self.lifecycle.update_status(run_id, RunStatus.COMPLETED))

    async def _scrape_stage(
        self, record: RunRecord, canonical: CanonicalInput
    ) -> Optional[Dict[str, Any]]:
        run_id = record.run_id
        if record.artifacts.scrape:
            logger.info(f"[{run_id}] Reusing stored scrape")
            return _require(await self.lifecycle.load_artifact(run_id, ArtifactType.SCRAPE))

        website = canonical.organization.website
        if not website:
            logger.info(f"[{run_id}] No website; skipping scrape")
            return None

        output = await self._scrape(website)
        payload = output.model_dump(mode="json")
        _require(await self.lifecycle.save_artifact(run_id, ArtifactType.SCRAPE, payload))
        return payload

    async def _enrichment_stage(
        self, record: RunRecord, canonical: CanonicalInput
    ) -> Dict[str, Any]:
        run_id = record.run_id
        if record.artifacts.enrichment:
            logger.info(f"[{run_id}] Reusing stored enrichment")
            return _require(await self.lifecycle.load_artifact(run_id, ArtifactType.ENRICHMENT))

        output = await enrich_person(
            canonical,
            self.enrichment_provider,
            retry_backoff_s=self.enrichment_backoff_s,
        )
        payload = output.model_dump(mode="json")
        _require(await self.lifecycle.save_artifact(run_id, ArtifactType.ENRICHMENT, payload))
        return payload

    async def _synthesis_stage(
        self,
        record: RunRecord,
        canonical: CanonicalInput,
        scrape: Optional[Dict[str, Any]],
        enrichment: Dict[str, Any],
    ) -> Dict[str, Any]:
        run_id = record.run_id
        if record.artifacts.brief:
            logger.info(f"[{run_id}] Reusing stored brief")
            return _require(await self.lifecycle.load_artifact(run_id, ArtifactType.BRIEF))

        context = SynthesisContext(
            run_id=run_id, canonical=canonical, scrape=scrape, enrichment=enrichment
        )
        brief = _require(await synthesize_brief(context, self.llm, self.validator_config))
        _require(await self.lifecycle.save_artifact(run_id, ArtifactType.BRIEF, brief))
        return brief
