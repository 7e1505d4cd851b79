"""Tests for the input normalizer."""

import pytest

from dealprep.models.input import TriggerSource
from dealprep.normalizer import (
    extract_domain,
    normalize,
    normalize_email,
    normalize_url,
    parse_contact_name,
    trim_string,
)
from dealprep.result import ErrorCode, Failure


class TestHelpers:
    """Tests for canonicalization helpers."""

    def test_trim_string(self):
        """Test trimming and empty-to-None."""
        assert trim_string("  a b  ") == "a b"
        assert trim_string("   ") is None
        assert trim_string(None) is None

    def test_normalize_email(self):
        """Test emails are trimmed and lowercased."""
        assert normalize_email(" Jane@Example.ORG ") == "jane@example.org"
        assert normalize_email("") is None

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("example.org", "https://example.org/"),
            ("http://Example.org/About/", "http://example.org/About"),
            ("https://example.org/", "https://example.org/"),
            ("https://example.org/a/b?x=1", "https://example.org/a/b?x=1"),
        ],
    )
    def test_normalize_url(self, url, expected):
        """Test scheme defaulting and trailing slash handling."""
        assert normalize_url(url) == expected

    def test_extract_domain(self):
        """Test the hostname is lowercased with www. stripped."""
        assert extract_domain("https://WWW.Example.org/about") == "example.org"
        assert extract_domain("sub.example.org") == "sub.example.org"
        assert extract_domain(None) is None

    def test_parse_contact_name(self):
        """Test only two-token names are split."""
        assert parse_contact_name("Jane Doe") == ("Jane", "Doe")
        assert parse_contact_name("Mary Jane Watson") == (None, None)
        assert parse_contact_name("Cher") == (None, None)
        assert parse_contact_name(None) == (None, None)


class TestNormalize:
    """Tests for normalize."""

    def test_full_payload(self, raw_payload):
        """Test every section is canonicalized."""
        result = normalize(raw_payload)
        assert result.ok
        canonical = result.data

        assert canonical.meta.trigger_source is TriggerSource.INBOUND
        assert canonical.meta.submitted_at == "2024-01-15T10:32:17.000Z"
        assert canonical.meta.requested_meeting_at == "2024-01-20T15:00:00.000Z"
        assert canonical.meta.run_id == ""

        assert canonical.organization.name == "Example Food Bank"
        assert canonical.organization.website == "https://www.example.org/"
        assert canonical.organization.domain == "example.org"

        assert canonical.contact.email == "jane.doe@example.org"
        assert canonical.contact.first_name == "Jane"
        assert canonical.contact.last_name == "Doe"

        assert canonical.routing.email_to == "rep@sales.example.com"
        assert canonical.routing.email_cc == ["lead@sales.example.com"]

    def test_website_overrides_supplied_domain(self, raw_payload):
        """Test the domain is derived from the website when both are given."""
        raw_payload["organization"]["domain"] = "other.org"
        assert normalize(raw_payload).data.organization.domain == "example.org"

    def test_supplied_domain_without_website(self, raw_payload):
        """Test a supplied domain is kept when there is no website."""
        raw_payload["organization"] = {"name": "Example", "domain": " Example.ORG "}
        assert normalize(raw_payload).data.organization.domain == "example.org"

    def test_explicit_names_win(self, raw_payload):
        """Test explicit first/last names are not overwritten by the split."""
        raw_payload["contact"]["first_name"] = "J."
        assert normalize(raw_payload).data.contact.first_name == "J."

    def test_unparseable_meeting_time_dropped(self, raw_payload):
        """Test an invalid meeting time is dropped rather than failing the input."""
        raw_payload["meta"]["requested_meeting_at"] = "next tuesday"
        result = normalize(raw_payload)
        assert result.ok
        assert result.data.meta.requested_meeting_at is None

    def test_organization_required(self, raw_payload):
        """Test a payload with neither name nor website fails."""
        raw_payload["organization"] = {"name": "   ", "domain": "example.org"}
        result = normalize(raw_payload)
        assert isinstance(result, Failure)
        assert result.code is ErrorCode.ORGANIZATION_REQUIRED

    def test_bad_trigger_source(self, raw_payload):
        """Test an unknown trigger source is a validation error with details."""
        raw_payload["meta"]["trigger_source"] = "carrier_pigeon"
        result = normalize(raw_payload)
        assert result.code is ErrorCode.VALIDATION_ERROR
        assert any(detail.startswith("meta.trigger_source") for detail in result.details)

    def test_bad_submitted_at(self, raw_payload):
        """Test an invalid submission time is rejected."""
        raw_payload["meta"]["submitted_at"] = "yesterday"
        result = normalize(raw_payload)
        assert result.code is ErrorCode.VALIDATION_ERROR
        assert any("submitted_at" in detail for detail in result.details)

    @pytest.mark.parametrize("raw", [None, [], "payload", {}])
    def test_non_payloads(self, raw):
        """Test garbage input is reported, not raised."""
        result = normalize(raw)
        assert isinstance(result, Failure)
        assert result.code is ErrorCode.VALIDATION_ERROR

    def test_result_is_immutable(self, canonical_input):
        """Test the canonical input cannot be mutated."""
        with pytest.raises(Exception):
            canonical_input.organization.name = "Other"
