"""Web fetching and HTML cleanup."""

from dealprep.tools.web.clean import CleanResult, extract_text
from dealprep.tools.web.fetch import FetchResult, build_client, fetch_url

__all__ = ["CleanResult", "FetchResult", "build_client", "extract_text", "fetch_url"]
