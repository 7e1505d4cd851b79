"""Brief validation.

Checks a Deal Preparation Brief against its hard constraints and reports
every violation, not just the first:

1. executive_summary.top_opportunities has exactly 3 items
2. artificial_intelligence_opportunities has exactly 3 items
3. objections_and_rebuttals has exactly 3 items
4. executive_summary.summary is at most 600 characters
5. opening_script is at most 450 characters
6. demonstration_plan.steps has at most 6 items
7. follow_up_emails.short_version.body is at most 120 words
8. follow_up_emails.warm_version.body is at most 180 words
9. Unavailable facts hold the "Not found" marker, never null or ""

Evidence rule (can be switched off): meta.source_urls is a non-empty list
of http(s) URLs.

``validate_brief`` never raises. Any input, including None or a list, gets
a complete report.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import httpx

NOT_FOUND_MARKER = "Not found"

# Constraint bounds
TOP_OPPORTUNITIES_COUNT = 3
AI_OPPORTUNITIES_COUNT = 3
OBJECTIONS_REBUTTALS_COUNT = 3
EXECUTIVE_SUMMARY_MAX_CHARS = 600
OPENING_SCRIPT_MAX_CHARS = 450
DEMONSTRATION_STEPS_MAX = 6
SHORT_EMAIL_BODY_MAX_WORDS = 120
WARM_EMAIL_BODY_MAX_WORDS = 180

# Fields that must carry the marker when the fact is unavailable
NOT_FOUND_FIELDS = (
    "meta.organization_name",
    "meta.organization_website",
    "meta.organization_domain",
    "meta.requester_name",
    "meta.requester_title",
    "organization_understanding.mission",
    "website_analysis.overall_tone",
    "website_analysis.volunteer_flow_observations",
    "website_analysis.donation_flow_observations",
    "leadership_and_staff.executive_leader.name",
    "leadership_and_staff.executive_leader.role",
    "leadership_and_staff.executive_leader.summary",
    "requester_profile.summary",
    "requester_profile.conversation_angle",
)

# Distinguishes an absent key from an explicit null
_MISSING = object()

# Host characters a browser URL parser rejects. Whitespace is checked separately.
_FORBIDDEN_HOST_CHARS = frozenset("#%/<>?@[\\]^|")

Actual = Union[int, str]


@dataclass(frozen=True)
class Violation:
    """A single constraint violation."""

    field: str
    constraint: str
    message: str
    actual: Actual
    expected: Actual

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "constraint": self.constraint,
            "message": self.message,
            "actual": self.actual,
            "expected": self.expected,
        }

    def __str__(self) -> str:
        return f"{self.field} [{self.constraint}]: {self.message} (actual: {self.actual}, expected: {self.expected})"


@dataclass
class ValidationResult:
    """Result of validating a brief."""

    violations: List[Violation] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return len(self.violations) == 0

    def add(self, violation: Optional[Violation]) -> None:
        if violation is not None:
            self.violations.append(violation)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "violations": [v.to_dict() for v in self.violations]}

    def __str__(self) -> str:
        if self.valid:
            return "✅ Brief passed validation"
        lines = [f"Violations ({len(self.violations)}):"]
        for violation in self.violations:
            lines.append(f"  ❌ {violation}")
        return "\n".join(lines)


@dataclass(frozen=True)
class ValidatorConfig:
    """Validator options."""

    skip_source_validation: bool = False
    not_found_marker: str = NOT_FOUND_MARKER


# =============================================================================
# Helpers
# =============================================================================


def count_words(text: Any) -> int:
    """Count whitespace-delimited words; blank or non-string text is 0."""
    if not isinstance(text, str):
        return 0
    return len(text.split())


def get_path(document: Any, path: str) -> Any:
    """Null-safe dot-path lookup. Returns ``_MISSING`` for absent keys."""
    current = document
    for part in path.split("."):
        if not isinstance(current, dict):
            return _MISSING
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return _MISSING
    return current


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if value is _MISSING:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def is_valid_url(url: str) -> bool:
    """True for absolute http/https URLs with a well-formed host.

    Follows browser URL parsing for the special schemes: slashes after
    ``http:`` are optional (``http:example.com`` is accepted), and hosts
    containing whitespace or reserved characters are rejected.
    """
    if not isinstance(url, str):
        return False

    candidate = url.strip()
    scheme, sep, rest = candidate.partition(":")
    if not sep or scheme.lower() not in ("http", "https"):
        return False
    authority_and_path = rest.lstrip("/\\")

    try:
        host = httpx.URL(f"{scheme}://{authority_and_path}").host
    except (httpx.InvalidURL, ValueError):
        return False

    if not host:
        return False
    return not any(c in _FORBIDDEN_HOST_CHARS or c.isspace() for c in host)


# =============================================================================
# Constraint checks
# =============================================================================


def check_exact_length(value: Any, expected: int, field_path: str) -> Optional[Violation]:
    if not isinstance(value, list):
        return Violation(
            field_path,
            "exactLength",
            f"{field_path} must be an array with exactly {expected} items",
            "not an array",
            expected,
        )
    if len(value) != expected:
        return Violation(
            field_path,
            "exactLength",
            f"{field_path} must have exactly {expected} items",
            len(value),
            expected,
        )
    return None


def check_max_length(value: Any, max_chars: int, field_path: str) -> Optional[Violation]:
    expected = f"<= {max_chars} characters"
    if not isinstance(value, str):
        return Violation(
            field_path,
            "maxLength",
            f"{field_path} must be a string with at most {max_chars} characters",
            "not a string",
            expected,
        )
    if len(value) > max_chars:
        return Violation(
            field_path,
            "maxLength",
            f"{field_path} exceeds maximum length of {max_chars} characters",
            len(value),
            expected,
        )
    return None


def check_max_words(value: Any, max_words: int, field_path: str) -> Optional[Violation]:
    expected = f"<= {max_words} words"
    if not isinstance(value, str):
        return Violation(
            field_path,
            "maxWords",
            f"{field_path} must be a string with at most {max_words} words",
            "not a string",
            expected,
        )
    words = count_words(value)
    if words > max_words:
        return Violation(
            field_path,
            "maxWords",
            f"{field_path} exceeds maximum of {max_words} words",
            words,
            expected,
        )
    return None


def check_max_items(value: Any, max_items: int, field_path: str) -> Optional[Violation]:
    expected = f"<= {max_items} items"
    if not isinstance(value, list):
        return Violation(
            field_path,
            "maxItems",
            f"{field_path} must be an array with at most {max_items} items",
            "not an array",
            expected,
        )
    if len(value) > max_items:
        return Violation(
            field_path,
            "maxItems",
            f"{field_path} exceeds maximum of {max_items} items",
            len(value),
            expected,
        )
    return None


def check_not_found_fields(brief: Dict[str, Any], marker: str = NOT_FOUND_MARKER) -> List[Violation]:
    """Flag null, absent or empty values in fields that need the marker.

    Any non-empty string passes; the content itself is not checked.
    """
    violations = []
    for field_path in NOT_FOUND_FIELDS:
        value = get_path(brief, field_path)
        if value is _MISSING:
            actual = "undefined"
        elif value is None:
            actual = "null"
        elif value == "":
            actual = "empty string"
        else:
            continue
        violations.append(
            Violation(
                field_path,
                "notFound",
                f'{field_path} must be "{marker}" when information is unavailable, not empty or null',
                actual,
                marker,
            )
        )
    return violations


def check_source_urls(brief: Dict[str, Any]) -> List[Violation]:
    """Evidence rule: meta.source_urls must list at least one http(s) URL."""
    source_urls = get_path(brief, "meta.source_urls")

    if source_urls is _MISSING or source_urls is None or source_urls in ("", 0, False):
        return [
            Violation(
                "meta.source_urls",
                "required",
                "meta.source_urls is required for evidence traceability",
                "undefined",
                "array of URLs",
            )
        ]

    if not isinstance(source_urls, list):
        return [
            Violation(
                "meta.source_urls",
                "type",
                "meta.source_urls must be an array",
                _type_name(source_urls),
                "array",
            )
        ]

    if not source_urls:
        return [
            Violation(
                "meta.source_urls",
                "minItems",
                "meta.source_urls must contain at least one URL for evidence traceability",
                0,
                ">= 1 URL",
            )
        ]

    violations = []
    for i, url in enumerate(source_urls):
        field_path = f"meta.source_urls[{i}]"
        if not isinstance(url, str):
            violations.append(
                Violation(field_path, "type", f"{field_path} must be a string", _type_name(url), "string")
            )
        elif not is_valid_url(url):
            violations.append(
                Violation(
                    field_path,
                    "urlFormat",
                    f"{field_path} is not a valid URL",
                    url,
                    "valid http or https URL",
                )
            )
    return violations


# =============================================================================
# Entry point
# =============================================================================


def validate_brief(brief: Any, config: Optional[ValidatorConfig] = None) -> ValidationResult:
    """Validate a brief document against every constraint.

    Violations come back in a fixed order: the eight numbered constraints,
    then marker fields in declaration order, then source URL problems in
    list order.
    """
    config = config or ValidatorConfig()
    result = ValidationResult()

    if not isinstance(brief, dict):
        result.add(
            Violation(
                "brief",
                "required",
                "Brief must be a valid object",
                _type_name(brief),
                "object",
            )
        )
        return result

    result.add(
        check_exact_length(
            get_path(brief, "executive_summary.top_opportunities"),
            TOP_OPPORTUNITIES_COUNT,
            "executive_summary.top_opportunities",
        )
    )
    result.add(
        check_exact_length(
            get_path(brief, "artificial_intelligence_opportunities"),
            AI_OPPORTUNITIES_COUNT,
            "artificial_intelligence_opportunities",
        )
    )
    result.add(
        check_exact_length(
            get_path(brief, "objections_and_rebuttals"),
            OBJECTIONS_REBUTTALS_COUNT,
            "objections_and_rebuttals",
        )
    )
    result.add(
        check_max_length(
            get_path(brief, "executive_summary.summary"),
            EXECUTIVE_SUMMARY_MAX_CHARS,
            "executive_summary.summary",
        )
    )
    result.add(
        check_max_length(
            get_path(brief, "opening_script"), OPENING_SCRIPT_MAX_CHARS, "opening_script"
        )
    )
    result.add(
        check_max_items(
            get_path(brief, "demonstration_plan.steps"),
            DEMONSTRATION_STEPS_MAX,
            "demonstration_plan.steps",
        )
    )
    result.add(
        check_max_words(
            get_path(brief, "follow_up_emails.short_version.body"),
            SHORT_EMAIL_BODY_MAX_WORDS,
            "follow_up_emails.short_version.body",
        )
    )
    result.add(
        check_max_words(
            get_path(brief, "follow_up_emails.warm_version.body"),
            WARM_EMAIL_BODY_MAX_WORDS,
            "follow_up_emails.warm_version.body",
        )
    )

    result.violations.extend(check_not_found_fields(brief, config.not_found_marker))

    if not config.skip_source_validation:
        result.violations.extend(check_source_urls(brief))

    return result
