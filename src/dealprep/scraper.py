"""Website scraper.

Fetches an organization's homepage plus the most useful same-domain pages it
links to (about, programs, volunteer, donate, staff, ...), extracts readable
text with BeautifulSoup and classifies each page.

The scraper never raises for fetch problems: failed pages are recorded in
``errors`` and the run continues with whatever was collected.

Usage:
    output = await scrape_website("https://example.org", config.scraper)
    payload = output.model_dump()
"""

import asyncio
import logging
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, Field

from dealprep.config import ScraperConfig
from dealprep.normalizer import extract_domain, normalize_url
from dealprep.timestamps import utc_now_iso
from dealprep.tools.web.clean import extract_text
from dealprep.tools.web.fetch import build_client, fetch_url

logger = logging.getLogger(__name__)

SCRAPER_TOOL = "httpx+beautifulsoup4"
MAX_CONCURRENT_FETCHES = 4
MAX_TEXT_CHARS = 20_000

# =============================================================================
# Output shape
# =============================================================================


class PersonMention(BaseModel):
    name: str
    role: Optional[str] = None


class ScrapedPage(BaseModel):
    url: str
    final_url: str
    page_type: str
    title: Optional[str] = None
    extracted_text: str = ""
    ctas: List[str] = Field(default_factory=list)
    people_mentions: List[PersonMention] = Field(default_factory=list)


class ScrapeMeta(BaseModel):
    started_at: str
    completed_at: str
    source_domain: str
    tool: str = SCRAPER_TOOL
    pages_fetched: int = 0


class ScrapeOutput(BaseModel):
    """Scrape artifact: ``{scrape_meta, pages[], errors[]}``."""

    scrape_meta: ScrapeMeta
    pages: List[ScrapedPage] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def source_urls(self) -> List[str]:
        return [page.final_url for page in self.pages]


# =============================================================================
# Page classification
# =============================================================================

PAGE_TYPE_PATTERNS: Dict[str, List[re.Pattern]] = {
    "home": [re.compile(p) for p in (r"^/$", r"^/index\.html?$", r"^/home$")],
    "about": [
        re.compile(p)
        for p in (r"/about", r"/who-we-are", r"/our-story", r"/mission", r"/history", r"/overview")
    ],
    "programs": [
        re.compile(p)
        for p in (
            r"programs",
            r"services",
            r"/programs?$",
            r"/services?$",
            r"/what-we-do",
            r"/offerings?",
            r"/initiatives?",
            r"/projects?",
        )
    ],
    "volunteer": [
        re.compile(p)
        for p in (r"/volunteer", r"/get-involved", r"/join-us", r"/opportunities", r"/help-out")
    ],
    "donate": [
        re.compile(p)
        for p in (r"/donate", r"/donation", r"/give", r"/support-us", r"/contribute", r"/fundrais")
    ],
    "faq": [
        re.compile(p)
        for p in (r"/faq", r"/frequently-asked", r"/questions", r"/help$", r"/support$")
    ],
    "staff": [
        re.compile(p)
        for p in (
            r"/staff",
            r"/team",
            r"/leadership",
            r"/board",
            r"/people",
            r"/executives?",
            r"/directors?$",
            r"/management",
        )
    ],
    "contact": [
        re.compile(p) for p in (r"/contact", r"/reach-us", r"/get-in-touch", r"/locations?$")
    ],
}

PAGE_TYPE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "home": ("welcome", "homepage"),
    "about": ("about us", "our mission", "who we are", "our story", "our history"),
    "programs": ("our programs", "our services", "what we do", "our offerings"),
    "volunteer": ("volunteer", "get involved", "join us", "help out"),
    "donate": ("donate", "give", "support us", "contribute", "make a gift"),
    "faq": ("frequently asked", "faq", "questions", "help center"),
    "staff": ("our team", "our staff", "leadership", "board of directors", "meet the team"),
    "contact": ("contact us", "get in touch", "reach us", "our location"),
}

# Link priority when choosing which pages to fetch
PAGE_PRIORITY = ("about", "programs", "staff", "volunteer", "donate", "faq", "contact", "other")


def classify_page_type(url: str, title: Optional[str], text: str) -> str:
    """Classify a page by URL path, falling back to title/text keywords."""
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        path = ""

    for page_type, patterns in PAGE_TYPE_PATTERNS.items():
        if any(pattern.search(path) for pattern in patterns):
            return page_type

    if path in ("", "/"):
        return "home"

    haystack = f"{title or ''} {text[:2000]}".lower()
    for page_type, keywords in PAGE_TYPE_KEYWORDS.items():
        if any(keyword in haystack for keyword in keywords):
            return page_type

    return "other"


def is_same_domain(url: str, base_domain: str) -> bool:
    """True when ``url`` is on ``base_domain`` or one of its subdomains."""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    base = base_domain.lower()
    if not host or not base:
        return False
    return host == base or host.endswith(f".{base}") or base.endswith(f".{host}")


def _dedupe_key(url: str) -> str:
    parts = urlsplit(url)
    return f"{(parts.hostname or '').lower()}{parts.path.rstrip('/').lower()}"


# =============================================================================
# People mentions
# =============================================================================

_ROLE_WORDS = (
    r"(?:Director|Manager|CEO|CFO|COO|President|Vice President|VP|Executive|Officer|Founder|"
    r"Co-Founder|Chair|Chairman|Chairwoman|Coordinator|Specialist|Lead|Head|Chief|"
    r"Administrator|Supervisor)"
)
_NAME = r"[A-Z][a-z]+(?: [A-Z][a-z]+){1,3}"
_ROLE = rf"[A-Za-z ]*{_ROLE_WORDS}(?: of [A-Za-z ]+)?"

# "Jane Doe, Executive Director" and "Executive Director: Jane Doe"
NAME_THEN_ROLE = re.compile(rf"^({_NAME})\s*[,\-]\s*({_ROLE})", re.MULTILINE)
ROLE_THEN_NAME = re.compile(rf"^\s*({_ROLE})\s*[:\-]\s*({_NAME})\s*$", re.MULTILINE)

NON_PERSON_WORDS = frozenset(
    """
    the our about contact home donate volunteer programs services mission vision board
    staff team leadership join give support news events gallery resources faq questions
    meet learn more monday tuesday wednesday thursday friday saturday sunday january
    february march april may june july august september october november december
    """.split()
)

_NAME_WORD = re.compile(r"^[A-Z][a-z]{1,20}$")


def is_likely_person_name(name: str) -> bool:
    words = name.split()
    if not 2 <= len(words) <= 4:
        return False
    if any(word.lower() in NON_PERSON_WORDS for word in words):
        return False
    return all(_NAME_WORD.match(word) for word in words)


def extract_people_mentions(text: str, snippets: List[str], page_type: str) -> List[PersonMention]:
    """Find named people, with roles where the text pairs them."""
    mentions: Dict[str, PersonMention] = {}

    for match in NAME_THEN_ROLE.finditer(text):
        name, role = match.group(1).strip(), match.group(2).strip()
        if is_likely_person_name(name):
            mentions.setdefault(name, PersonMention(name=name, role=role))

    for match in ROLE_THEN_NAME.finditer(text):
        role, name = match.group(1).strip(), match.group(2).strip()
        if is_likely_person_name(name):
            mentions.setdefault(name, PersonMention(name=name, role=role))

    if page_type == "staff" or len(mentions) < 3:
        for snippet in snippets:
            if is_likely_person_name(snippet):
                mentions.setdefault(snippet, PersonMention(name=snippet))

    return list(mentions.values())[:50]


# =============================================================================
# Scraping
# =============================================================================


async def _scrape_page(
    client: httpx.AsyncClient,
    url: str,
    scraper_config: ScraperConfig,
    semaphore: asyncio.Semaphore,
    backoff_base_s: float,
) -> Tuple[Optional[ScrapedPage], List[str], Optional[str]]:
    """Fetch and parse one page. Returns (page, outgoing links, error)."""
    async with semaphore:
        result = await fetch_url(
            client,
            url,
            max_retries=scraper_config.max_retries,
            backoff_base_s=backoff_base_s,
        )

    if not result.is_success:
        return None, [], f"{url}: {result.error}"
    if not result.is_html:
        return None, [], f"{url}: skipped non-HTML content ({result.headers.get('content-type', 'unknown')})"

    cleaned = extract_text(result.content_bytes, url=result.final_url)
    page_type = classify_page_type(result.final_url, cleaned.title, cleaned.text)
    page = ScrapedPage(
        url=url,
        final_url=result.final_url,
        page_type=page_type,
        title=cleaned.title,
        extracted_text=cleaned.text[:MAX_TEXT_CHARS],
        ctas=cleaned.ctas,
        people_mentions=extract_people_mentions(cleaned.text, cleaned.snippets, page_type),
    )
    return page, cleaned.links, None


def _select_links(links: List[str], base_domain: str, seen: set, limit: int) -> List[str]:
    """Pick same-domain links, most useful page types first."""
    candidates = []
    for link in links:
        key = _dedupe_key(link)
        if key in seen or not is_same_domain(link, base_domain):
            continue
        seen.add(key)
        page_type = classify_page_type(link, None, "")
        if page_type == "home":
            continue
        rank = PAGE_PRIORITY.index(page_type) if page_type in PAGE_PRIORITY else len(PAGE_PRIORITY)
        candidates.append((rank, len(candidates), link))
    candidates.sort()
    return [link for _, _, link in candidates[:limit]]


async def scrape_website(
    url: str,
    scraper_config: ScraperConfig,
    client: Optional[httpx.AsyncClient] = None,
    *,
    backoff_base_s: float = 1.0,
) -> ScrapeOutput:
    """Scrape a website starting at ``url``.

    Args:
        url: Organization website (scheme optional)
        scraper_config: Page limit, timeout, retries, user agent
        client: Optional AsyncClient (tests pass one with a MockTransport)
        backoff_base_s: Base delay for retry backoff

    Returns:
        ScrapeOutput; never raises for fetch failures.
    """
    started_at = utc_now_iso()
    start_url = normalize_url(url) or url
    base_domain = extract_domain(start_url) or ""
    errors: List[str] = []
    pages: List[ScrapedPage] = []

    owns_client = client is None
    if client is None:
        client = build_client(timeout_s=scraper_config.timeout_s, user_agent=scraper_config.user_agent)

    semaphore = asyncio.Semaphore(MAX_CONCURRENT_FETCHES)
    try:
        logger.info(f"Scraping {start_url} (max {scraper_config.max_pages} pages)")
        home, links, error = await _scrape_page(
            client, start_url, scraper_config, semaphore, backoff_base_s
        )
        if error:
            errors.append(error)
        if home is not None:
            pages.append(home)
            seen = {_dedupe_key(start_url), _dedupe_key(home.final_url)}
            targets = _select_links(links, base_domain, seen, scraper_config.max_pages - 1)
            results = await asyncio.gather(
                *(
                    _scrape_page(client, target, scraper_config, semaphore, backoff_base_s)
                    for target in targets
                )
            )
            for page, _, page_error in results:
                if page is not None:
                    pages.append(page)
                if page_error:
                    errors.append(page_error)
    finally:
        if owns_client:
            await client.aclose()

    for error in errors:
        logger.warning(f"Scrape error: {error}")
    logger.info(f"Scraped {len(pages)} page(s) from {base_domain}")

    return ScrapeOutput(
        scrape_meta=ScrapeMeta(
            started_at=started_at,
            completed_at=utc_now_iso(),
            source_domain=base_domain,
            pages_fetched=len(pages),
        ),
        pages=pages,
        errors=errors,
    )
