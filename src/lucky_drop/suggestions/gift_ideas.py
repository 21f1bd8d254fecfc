"""
Gift suggestions: web search for real products, then LLM formatting.

The language model only selects and formats; everything it returns is checked
against the search results it was given.
"""

from typing import Iterable
from typing import List
from typing import Optional

from loguru import logger

from lucky_drop.errors import NoResultsError
from lucky_drop.errors import SearchAPIError
from lucky_drop.suggestions import prompts
from lucky_drop.suggestions.llm import GeminiClient
from lucky_drop.suggestions.models import MAX_SUGGESTIONS
from lucky_drop.suggestions.models import GiftIdeasOutput
from lucky_drop.suggestions.models import GiftSuggestion
from lucky_drop.suggestions.models import GiftSuggestionResult
from lucky_drop.suggestions.models import SearchResult
from lucky_drop.suggestions.search_client import GoogleSearchClient


def normalize_query(prompt: str) -> str:
    """Append " gift" unless the prompt already mentions gifts."""
    prompt = prompt.strip()
    if "gift" in prompt.lower():
        return prompt
    return f"{prompt} gift"


def build_product_query(query: str) -> str:
    """Bias the search towards product pages instead of gift guides."""
    return f"{query} product buy purchase"


def filter_suggestions(
    suggestions: Iterable[GiftSuggestion],
    candidates: List[SearchResult],
    exclude_names: Iterable[str] = (),
) -> List[GiftSuggestion]:
    """
    Keep only suggestions grounded in ``candidates``.

    A suggestion survives when its url is one of the candidate links, its image is
    one of the candidate images, and its name (case-insensitive) is neither
    excluded nor already used by an earlier suggestion.
    """
    links = {c.link for c in candidates if c.link}
    images = {c.image_url for c in candidates if c.image_url}
    seen = {name.strip().lower() for name in exclude_names}

    kept = []
    for suggestion in suggestions:
        key = suggestion.name.strip().lower()
        if suggestion.url not in links or suggestion.image not in images:
            logger.debug("Dropping ungrounded suggestion", name=suggestion.name, url=suggestion.url)
            continue
        if key in seen:
            continue
        seen.add(key)
        kept.append(suggestion)
    return kept


def render_results(results: List[SearchResult]) -> str:
    return "\n\n".join(
        prompts.RESULT_ITEM.format(
            index=i,
            title=r.title,
            link=r.link,
            image=r.image_url or "none",
            snippet=r.snippet,
        )
        for i, r in enumerate(results, start=1)
    )


class GiftSuggestionService:
    """Suggest purchasable gifts for a free-text request."""

    def __init__(
        self,
        search_client: GoogleSearchClient,
        llm: GeminiClient,
        page_size: int = 10,
        max_pages: int = 2,
    ):
        self.search_client = search_client
        self.llm = llm
        self.page_size = page_size
        self.max_pages = max_pages

    async def gather_results(self, product_query: str, max_results: int) -> List[SearchResult]:
        """
        Page through the search API.

        Stops once ``max_results`` are collected, when a page comes back short,
        or after ``max_pages``. A failing first page raises; a failing later page
        ends paging with what was collected.
        """
        results: List[SearchResult] = []
        for page in range(1, self.max_pages + 1):
            try:
                page_results = await self.search_client.search(product_query, num=self.page_size, page=page)
            except SearchAPIError:
                if not results:
                    raise
                logger.warning("Search page failed, keeping earlier pages", page=page, result_count=len(results))
                break

            results.extend(page_results)
            if len(results) >= max_results or len(page_results) < self.page_size:
                break
        return results

    async def suggest(
        self,
        prompt: str,
        exclude_names: Optional[Iterable[str]] = None,
        max_results: int = MAX_SUGGESTIONS,
    ) -> GiftSuggestionResult:
        """
        Suggest gifts for ``prompt``.

        Parameters
        ----------
        prompt : str
            Free-text description of the recipient or the gift wanted
        exclude_names : Iterable[str], optional
            Names already shown to the sender ("generate more")
        max_results : int
            Upper bound on raw results and suggestions (at most 10)

        Returns
        -------
        GiftSuggestionResult
            Grounded suggestions; may be empty when the model picked nothing usable

        Raises
        ------
        NoResultsError
            The search returned nothing
        SearchAPIError, SearchNotConfiguredError
            The search could not be performed
        LLMError, SuggestionFormatError
            The model call failed or returned malformed output
        """
        exclude_names = [name for name in (exclude_names or []) if name and name.strip()]
        max_results = max(1, min(max_results, MAX_SUGGESTIONS))
        query = normalize_query(prompt)

        raw_results = await self.gather_results(build_product_query(query), max_results)
        if not raw_results:
            logger.info("No search results for gift prompt", query=query)
            raise NoResultsError()
        raw_results = raw_results[:max_results]

        exclusions = prompts.EXCLUSIONS.format(names=", ".join(exclude_names)) if exclude_names else ""
        llm_prompt = prompts.GIFT_IDEAS.format(
            count=len(raw_results),
            results=render_results(raw_results),
            prompt=prompt.strip(),
            max_results=max_results,
            exclusions=exclusions,
        )
        output = await self.llm.generate_json(llm_prompt, GiftIdeasOutput)

        gifts = filter_suggestions(output.gifts, raw_results, exclude_names)[:max_results]
        logger.info(
            "Gift suggestions generated",
            query=query,
            raw_result_count=len(raw_results),
            model_gift_count=len(output.gifts),
            gift_count=len(gifts),
        )
        return GiftSuggestionResult(gifts=gifts, query=query, total_results=len(raw_results))
