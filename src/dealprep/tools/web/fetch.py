"""Async URL fetching with retry.

The scraper owns one ``httpx.AsyncClient`` per scrape and fetches pages
through ``fetch_url``. Fetch failures never raise; they come back as a
FetchResult carrying an error string.
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


@dataclass
class FetchResult:
    """Result of a URL fetch."""

    url: str
    final_url: str
    status_code: int
    headers: Dict[str, str]
    content_bytes: bytes
    fetched_at: datetime
    content_hash: str
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300 and self.error is None

    @property
    def is_html(self) -> bool:
        content_type = self.headers.get("content-type", "").lower()
        return "text/html" in content_type or "application/xhtml" in content_type


def build_client(
    *,
    timeout_s: float = 30.0,
    user_agent: str = "DealPrep/1.0 (Research Bot)",
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the AsyncClient used for a scrape."""
    return httpx.AsyncClient(
        timeout=timeout_s,
        follow_redirects=True,
        headers={"User-Agent": user_agent, **DEFAULT_HEADERS},
        transport=transport,
    )


def _compute_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


async def fetch_url(
    client: httpx.AsyncClient,
    url: str,
    *,
    max_retries: int = 2,
    backoff_base_s: float = 1.0,
    max_bytes: int = 10 * 1024 * 1024,
) -> FetchResult:
    """Fetch a URL, retrying transport errors and 5xx responses.

    Total attempts are ``max_retries + 1``, with exponential backoff between
    them. 4xx responses are returned immediately without retrying.
    """
    fetched_at = datetime.now(timezone.utc)
    last_error: Optional[str] = None

    for attempt in range(max_retries + 1):
        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            last_error = f"Timeout: {e}"
        except httpx.TransportError as e:
            last_error = f"Connection error: {e}"
        else:
            content = response.content[:max_bytes]
            result = FetchResult(
                url=url,
                final_url=str(response.url),
                status_code=response.status_code,
                headers={k.lower(): v for k, v in response.headers.items()},
                content_bytes=content,
                fetched_at=fetched_at,
                content_hash=_compute_hash(content),
                error=None if response.is_success else f"HTTP {response.status_code}",
            )
            if response.status_code < 500:
                return result
            last_error = result.error

        if attempt < max_retries:
            delay = backoff_base_s * (2**attempt)
            logger.debug(f"Retrying {url} in {delay:.1f}s ({last_error})")
            await asyncio.sleep(delay)

    return FetchResult(
        url=url,
        final_url=url,
        status_code=0,
        headers={},
        content_bytes=b"",
        fetched_at=fetched_at,
        content_hash=_compute_hash(b""),
        error=last_error or "Unknown error",
    )
