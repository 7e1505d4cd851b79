"""HTML to text extraction.

One BeautifulSoup (lxml) parse per page yields the readable text, the title,
outgoing links, call-to-action labels and short emphasized snippets
(headings, bold text, list items) used for spotting staff names.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup, Comment

# Tags removed with their content before text extraction
REMOVE_TAGS = {
    "script",
    "style",
    "noscript",
    "iframe",
    "svg",
    "canvas",
    "video",
    "audio",
    "object",
    "embed",
}

# Words that mark a link or button as a call to action
CTA_ACTION_WORDS = (
    "donate",
    "give",
    "volunteer",
    "join",
    "sign up",
    "subscribe",
    "register",
    "apply",
    "contact",
    "learn more",
    "get started",
    "get involved",
    "request",
    "schedule",
    "book",
    "support",
)

MAX_CTAS = 20
MAX_SNIPPET_CHARS = 80


@dataclass
class CleanResult:
    """Everything the scraper needs from one HTML page."""

    text: str
    title: Optional[str]
    links: List[str] = field(default_factory=list)
    ctas: List[str] = field(default_factory=list)
    snippets: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


def _normalize_whitespace(text: str) -> str:
    text = re.sub(r"[ \t\r\f\v]+", " ", text)
    lines = [line.strip() for line in text.split("\n")]
    text = "\n".join(lines)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def _decode(html_bytes: bytes) -> str:
    try:
        return html_bytes.decode("utf-8")
    except UnicodeDecodeError:
        return html_bytes.decode("latin-1")


def _extract_title(soup: BeautifulSoup) -> Optional[str]:
    if soup.title and soup.title.string and soup.title.string.strip():
        return soup.title.string.strip()

    og_title = soup.find("meta", property="og:title")
    if og_title and og_title.get("content"):
        return og_title["content"].strip()

    h1 = soup.find("h1")
    if h1:
        return h1.get_text(" ", strip=True) or None
    return None


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _find_ctas(soup: BeautifulSoup) -> List[str]:
    seen = {}
    for element in soup.find_all(["a", "button"]):
        label = _collapse(element.get_text(" ", strip=True))
        if not (2 < len(label) < 100):
            continue
        lowered = label.lower()
        if any(word in lowered for word in CTA_ACTION_WORDS):
            seen.setdefault(label, None)
        if len(seen) >= MAX_CTAS:
            break
    return list(seen)


def extract_ctas(html: str) -> List[str]:
    """Link and button labels containing an action word, deduplicated in order."""
    return _find_ctas(BeautifulSoup(html, "lxml"))


def extract_links(soup: BeautifulSoup, base_url: str) -> List[str]:
    """Absolute http(s) links without fragments, deduplicated in order."""
    seen = {}
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith(("mailto:", "tel:", "javascript:")):
            continue
        absolute, _ = urldefrag(urljoin(base_url, href))
        if absolute.startswith(("http://", "https://")):
            seen.setdefault(absolute, None)
    return list(seen)


def extract_text(html_bytes: bytes, *, url: str = "") -> CleanResult:
    """Extract readable text and page features from HTML bytes."""
    soup = BeautifulSoup(_decode(html_bytes), "lxml")

    title = _extract_title(soup)
    links = extract_links(soup, url) if url else []
    ctas = _find_ctas(soup)

    for tag in soup.find_all(REMOVE_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    snippets = []
    for element in soup.find_all(["h1", "h2", "h3", "h4", "strong", "b", "li"]):
        snippet = _collapse(element.get_text(" ", strip=True))
        if snippet and len(snippet) <= MAX_SNIPPET_CHARS:
            snippets.append(snippet)

    body = soup.body or soup
    text = _normalize_whitespace(body.get_text(separator="\n"))

    return CleanResult(text=text, title=title, links=links, ctas=ctas, snippets=snippets)
