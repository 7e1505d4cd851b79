"""Tests for the brief renderers."""

import pytest

from dealprep.models.brief import DealPrepBrief
from dealprep.renderers import (
    format_datetime,
    motion_due_date,
    parse_brief,
    render_crm_note,
    render_email,
    render_motion_task,
)


class TestParseBrief:
    """Tests for parse_brief."""

    def test_dict_and_model(self, valid_brief):
        """Test dicts are parsed and models pass through."""
        typed = parse_brief(valid_brief)
        assert isinstance(typed, DealPrepBrief)
        assert parse_brief(typed) is typed

    def test_missing_sections(self, valid_brief):
        """Test a brief missing required sections raises ValueError."""
        del valid_brief["executive_summary"]
        with pytest.raises(ValueError, match="Invalid brief"):
            parse_brief(valid_brief)


class TestCRMNote:
    """Tests for the Markdown CRM note."""

    def test_contains_every_section(self, valid_brief):
        """Test the full brief is rendered."""
        note = render_crm_note(valid_brief)
        markdown = note.markdown

        assert markdown.startswith("# Deal Preparation Brief: Example Food Bank")
        assert "**Run ID:** `run_0123456789abcdef`" in markdown
        assert "**Generated:** Monday, January 15, 2024 10:30 UTC" in markdown
        for heading in (
            "## Executive Summary",
            "## Organization Understanding",
            "## Website Analysis",
            "## Leadership and Staff",
            "## Requester Profile",
            "## AI Opportunities",
            "## Demonstration Plan",
            "## Objections and Rebuttals",
            "## Opening Script",
            "## Follow-up Emails",
        ):
            assert heading in markdown
        assert "1. Automate volunteer shift questions" in markdown
        assert "### 3. Eligibility triage" in markdown
        assert "- **John Smith** - Volunteer Coordinator" in markdown
        assert markdown.rstrip().endswith("*Run ID: run_0123456789abcdef*")

        assert note.run_id == "run_0123456789abcdef"
        assert note.organization_name == "Example Food Bank"

    def test_optional_lists_omitted(self, valid_brief):
        """Test empty optional lists drop their subsections."""
        valid_brief["website_analysis"]["strengths"] = []
        valid_brief["organization_understanding"]["programs"] = []
        markdown = render_crm_note(valid_brief).markdown
        assert "### Strengths" not in markdown
        assert "### Programs" not in markdown


class TestEmail:
    """Tests for the notification email."""

    def test_summary_and_top_three_only(self, valid_brief):
        """Test the email carries the summary and opportunities, not the full brief."""
        email = render_email(valid_brief)

        assert email.subject == "Deal Prep Ready: Example Food Bank"
        assert "EXECUTIVE SUMMARY" in email.body_plain
        assert "TOP 3 OPPORTUNITIES" in email.body_plain
        assert "3. Route pantry eligibility questions" in email.body_plain
        assert "Objections" not in email.body_plain
        assert valid_brief["opening_script"] not in email.body_plain

    def test_reference_without_link(self, valid_brief):
        """Test the run id is the reference when there is no link."""
        email = render_email(valid_brief)
        assert "Reference: run_0123456789abcdef" in email.body_plain
        assert "Reference: run_0123456789abcdef" in email.body_html
        assert "VIEW FULL BRIEF" not in email.body_plain

    def test_link(self, valid_brief):
        """Test a brief URL replaces the reference."""
        email = render_email(valid_brief, "https://briefs.example.com/run_0123456789abcdef")
        assert "https://briefs.example.com/run_0123456789abcdef" in email.body_plain
        assert 'href="https://briefs.example.com/run_0123456789abcdef"' in email.body_html

    def test_unsafe_link_dropped(self, valid_brief):
        """Test non-http links are never rendered."""
        email = render_email(valid_brief, "javascript:alert(1)")
        assert "javascript" not in email.body_html
        assert "Reference: run_0123456789abcdef" in email.body_plain

    def test_html_is_escaped(self, valid_brief):
        """Test brief text is escaped in the HTML body."""
        valid_brief["executive_summary"]["summary"] = "<script>alert('x')</script>"
        email = render_email(valid_brief)
        assert "<script>" not in email.body_html
        assert "&lt;script&gt;" in email.body_html


class TestMotionTask:
    """Tests for the Motion task view."""

    def test_task(self, valid_brief, canonical_input):
        """Test title, body and due date."""
        task = render_motion_task(valid_brief, canonical_input)
        assert task.title == "Deal Prep - Example Food Bank"
        assert task.body.startswith("Review deal preparation brief before meeting.")
        assert "2. Answer donor FAQs around the clock" in task.body
        assert task.body.endswith("Reference: run_0123456789abcdef")
        assert task.due_date == "2024-01-20T13:00:00.000Z"

    def test_link(self, valid_brief, canonical_input):
        """Test the brief URL is included when known."""
        task = render_motion_task(valid_brief, canonical_input, "https://briefs.example.com/x")
        assert task.body.endswith("Full Brief: https://briefs.example.com/x")

    def test_no_meeting_no_due_date(self, canonical_input):
        """Test the due date is absent without a meeting time."""
        meta = canonical_input.meta.model_copy(update={"requested_meeting_at": None})
        canonical = canonical_input.model_copy(update={"meta": meta})
        assert motion_due_date(canonical) is None


def test_format_datetime():
    """Test readable formatting with passthrough for unparseable values."""
    assert format_datetime("2024-01-15T10:30:00.000Z") == "Monday, January 15, 2024 10:30 UTC"
    assert format_datetime("whenever") == "whenever"
