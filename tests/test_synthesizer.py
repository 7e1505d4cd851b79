"""Tests for brief synthesis and the repair loop."""

import copy
import json

import pytest

from dealprep.prompts import build_repair_prompt, build_synthesis_prompt
from dealprep.result import ErrorCode, Failure
from dealprep.synthesizer import SynthesisContext, stamp_brief, synthesize_brief
from dealprep.validate import ValidatorConfig

SCRAPE = {
    "scrape_meta": {"source_domain": "example.org", "pages_fetched": 2},
    "pages": [
        {"url": "https://example.org/", "page_type": "home"},
        {"url": "https://example.org/about", "page_type": "about"},
    ],
    "errors": [],
}


@pytest.fixture
def context(canonical_input) -> SynthesisContext:
    """Provide a synthesis context with a scrape artifact."""
    return SynthesisContext(
        run_id="run_feedfacecafebeef",
        canonical=canonical_input,
        scrape=copy.deepcopy(SCRAPE),
        generated_at="2024-01-15T10:35:00.000Z",
    )


class TestPrompts:
    """Tests for prompt building."""

    def test_sections_and_constraints(self, canonical_input):
        """Test the prompt carries the data and the hard constraints."""
        system, user = build_synthesis_prompt(
            run_metadata={"run_id": "run_x", "generated_at": "now"},
            canonical_input=canonical_input.model_dump(mode="json"),
            website_scrape=SCRAPE,
        )
        assert "ONLY valid JSON" in system
        assert "exactly 3 items" in user
        assert "at most 120 words" in user
        assert '"run_id": "run_x"' in user
        assert "https://example.org/about" in user
        assert "Enrichment not available" in user

    def test_missing_scrape_placeholder(self):
        """Test an unavailable scrape is stated explicitly."""
        _, user = build_synthesis_prompt({"run_id": "run_x"}, {})
        assert "Website scrape not available" in user

    def test_repair_prompt(self):
        """Test violations are appended to the original prompt."""
        repaired = build_repair_prompt("ORIGINAL", ["opening_script too long", "three needed"])
        assert repaired.startswith("ORIGINAL")
        assert "- opening_script too long\n- three needed\n" in repaired


class TestStampBrief:
    """Tests for stamp_brief."""

    def test_overwrites_run_metadata(self, context, valid_brief):
        """Test run id, time and trigger source come from the run."""
        valid_brief["meta"]["run_id"] = "run_madeup"
        stamped = stamp_brief(valid_brief, context)
        assert stamped["meta"]["run_id"] == "run_feedfacecafebeef"
        assert stamped["meta"]["generated_at"] == "2024-01-15T10:35:00.000Z"
        assert stamped["meta"]["trigger_source"] == "inbound"
        assert stamped["meta"]["source_urls"] == ["https://example.org/"]

    def test_source_urls_fallback(self, context):
        """Test scraped page URLs fill empty source_urls."""
        stamped = stamp_brief({"meta": {"source_urls": []}}, context)
        assert stamped["meta"]["source_urls"] == [
            "https://example.org/",
            "https://example.org/about",
        ]

    def test_non_dict_meta(self, context):
        """Test a malformed meta block is replaced."""
        stamped = stamp_brief({"meta": "oops"}, context)
        assert stamped["meta"]["run_id"] == "run_feedfacecafebeef"


class TestSynthesizeBrief:
    """Tests for synthesize_brief."""

    @pytest.mark.asyncio
    async def test_valid_first_attempt(self, context, valid_brief, fake_llm):
        """Test a valid response is accepted and stamped."""
        fake_llm.queue_response(json.dumps(valid_brief))
        result = await synthesize_brief(context, fake_llm)

        assert result.ok
        assert result.data["meta"]["run_id"] == "run_feedfacecafebeef"
        assert fake_llm.call_count == 1
        request = fake_llm.call_history[0]
        assert request.metadata == {"run_id": "run_feedfacecafebeef", "stage": "synthesis", "attempt": 1}

    @pytest.mark.asyncio
    async def test_fenced_json(self, context, valid_brief, fake_llm):
        """Test JSON inside a code fence is extracted."""
        fake_llm.queue_response(f"Here you go:\n```json\n{json.dumps(valid_brief)}\n```")
        assert (await synthesize_brief(context, fake_llm)).ok

    @pytest.mark.asyncio
    async def test_repair_after_violation(self, context, valid_brief, fake_llm):
        """Test a rejected brief triggers one repair attempt with its violations."""
        bad = copy.deepcopy(valid_brief)
        bad["executive_summary"]["top_opportunities"] = ["only one"]
        fake_llm.queue_response(json.dumps(bad))
        fake_llm.queue_response(json.dumps(valid_brief))

        result = await synthesize_brief(context, fake_llm)

        assert result.ok
        assert fake_llm.call_count == 2
        repair = fake_llm.call_history[1].user_content
        assert "rejected because it broke these constraints" in repair
        assert "executive_summary.top_opportunities [exactLength]" in repair

    @pytest.mark.asyncio
    async def test_invalid_after_retries(self, context, valid_brief, fake_llm):
        """Test a brief that stays invalid fails with its violations."""
        bad = copy.deepcopy(valid_brief)
        bad["opening_script"] = "x" * 451
        fake_llm.set_response_fn(lambda request: json.dumps(bad))

        result = await synthesize_brief(context, fake_llm)

        assert isinstance(result, Failure)
        assert result.code is ErrorCode.BRIEF_INVALID
        assert [v["field"] for v in result.details] == ["opening_script"]
        assert fake_llm.call_count == 2

    @pytest.mark.asyncio
    async def test_no_retries(self, context, valid_brief, fake_llm):
        """Test max_retries=0 makes a single attempt."""
        bad = copy.deepcopy(valid_brief)
        bad["objections_and_rebuttals"] = []
        fake_llm.queue_response(json.dumps(bad))
        result = await synthesize_brief(context, fake_llm, max_retries=0)
        assert result.code is ErrorCode.BRIEF_INVALID
        assert fake_llm.call_count == 1

    @pytest.mark.asyncio
    async def test_llm_failure_then_success(self, context, valid_brief, fake_llm):
        """Test an LLM error consumes an attempt and the retry can succeed."""
        fake_llm.fail_next(1, "overloaded")
        fake_llm.queue_response(json.dumps(valid_brief))
        assert (await synthesize_brief(context, fake_llm)).ok
        assert fake_llm.call_count == 2

    @pytest.mark.asyncio
    async def test_llm_failure_exhausts(self, context, fake_llm):
        """Test repeated LLM errors end in SYNTHESIS_ERROR."""
        fake_llm.fail_next(2, "overloaded")
        result = await synthesize_brief(context, fake_llm)
        assert result.code is ErrorCode.SYNTHESIS_ERROR
        assert "overloaded" in result.message

    @pytest.mark.asyncio
    async def test_non_json_response(self, context, fake_llm):
        """Test prose without JSON is a synthesis error."""
        fake_llm.set_response_fn(lambda request: "I cannot help with that.")
        result = await synthesize_brief(context, fake_llm)
        assert result.code is ErrorCode.SYNTHESIS_ERROR

    @pytest.mark.asyncio
    async def test_evidence_rule_uses_scraped_urls(self, canonical_input, valid_brief, fake_llm):
        """Test source validation fails without a scrape or model-provided URLs."""
        del valid_brief["meta"]["source_urls"]
        fake_llm.set_response_fn(lambda request: json.dumps(valid_brief))
        context = SynthesisContext(run_id="run_x", canonical=canonical_input)

        result = await synthesize_brief(context, fake_llm)
        assert result.code is ErrorCode.BRIEF_INVALID

        skipped = await synthesize_brief(
            context, fake_llm, ValidatorConfig(skip_source_validation=True)
        )
        assert skipped.ok
