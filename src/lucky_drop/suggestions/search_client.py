"""Google Custom Search JSON API client."""

from typing import List
from typing import Optional

import httpx
from loguru import logger

from lucky_drop.errors import SearchAPIError
from lucky_drop.errors import SearchNotConfiguredError
from lucky_drop.suggestions.models import SearchResult

SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
SEARCH_TIMEOUT = 15.0  # seconds
MAX_PAGE_SIZE = 20


def start_index(page: int, num: int) -> int:
    """1-based index of the first result on ``page``."""
    return (page - 1) * num + 1


def parse_item(item: dict) -> SearchResult:
    """Map one API item to a SearchResult; the image is the first ``cse_image`` when present."""
    images = (item.get("pagemap") or {}).get("cse_image") or []
    image_url = images[0].get("src") if images else None
    return SearchResult(
        title=item.get("title") or "",
        link=item.get("link") or "",
        snippet=item.get("snippet") or "",
        image_url=image_url or None,
    )


class GoogleSearchClient:
    """Product search through a Programmable Search Engine."""

    def __init__(
        self,
        api_key: Optional[str],
        engine_id: Optional[str],
        timeout: float = SEARCH_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.engine_id = engine_id
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.engine_id)

    async def search(self, query: str, num: int = 10, page: int = 1) -> List[SearchResult]:
        """
        Fetch one page of results.

        Parameters
        ----------
        query : str
            Full search query
        num : int
            Results per page (at most 20)
        page : int
            1-based page number

        Returns
        -------
        List[SearchResult]
            Results on the page (may be empty)

        Raises
        ------
        SearchNotConfiguredError
            API key or engine id missing
        SearchAPIError
            Network error, non-2xx status or an ``error`` payload
        """
        if not self.configured:
            raise SearchNotConfiguredError()

        num = min(num, MAX_PAGE_SIZE)
        params = {
            "key": self.api_key,
            "cx": self.engine_id,
            "q": query,
            "num": num,
            "start": start_index(page, num),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(SEARCH_URL, params=params)
        except httpx.TimeoutException as e:
            logger.warning("Search API timed out", query=query, page=page)
            raise SearchAPIError("Search API request timed out") from e
        except httpx.RequestError as e:
            logger.warning("Search API request failed", query=query, page=page, error=str(e))
            raise SearchAPIError(f"Search API request failed: {e}") from e

        if response.is_error:
            logger.warning("Search API returned an error status", status_code=response.status_code, page=page)
            raise SearchAPIError(f"Search API error: {response.status_code} {response.reason_phrase}")

        try:
            data = response.json()
        except ValueError as e:
            raise SearchAPIError("Search API returned invalid JSON") from e

        if data.get("error"):
            message = data["error"].get("message", "unknown error")
            logger.warning("Search API returned an error payload", error=message, page=page)
            raise SearchAPIError(f"Search API error: {message}")

        results = [parse_item(item) for item in data.get("items") or []]
        logger.debug("Search page fetched", query=query, page=page, result_count=len(results))
        return results
