"""DuckDuckGo web search with optional page-text excerpts."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING

import httpx
import trafilatura
from ddgs import DDGS
from ddgs.exceptions import DDGSException

from .base import BaseSearchProvider, SearchResponse, SearchResult

if TYPE_CHECKING:
    from colloquy.engine.config.settings import SearchConfig

logger = logging.getLogger(__name__)

PAGE_TRUNCATION_MARKER = "...[content truncated]"

type DDGSFactory = Callable[[], DDGS]


def results_from_hits(hits: Iterable[Mapping[str, str]], max_results: int) -> list[SearchResult]:
    """Turn raw DDGS text hits into results, skipping DuckDuckGo-hosted links."""
    results: list[SearchResult] = []
    for hit in hits:
        if len(results) >= max_results:
            break
        url = (hit.get("href") or "").strip()
        if not url or "duckduckgo.com" in url:
            continue
        results.append(
            SearchResult(
                title=(hit.get("title") or "").strip(),
                url=url,
                snippet=(hit.get("body") or "").strip(),
            )
        )
    return results


def extract_page_text(page: str, max_chars: int) -> str | None:
    """Main readable text of an HTML page, capped at max_chars; None when nothing is found."""
    text = trafilatura.extract(page, include_comments=False, include_tables=False)
    if not text or not text.strip():
        return None
    text = text.strip()
    if len(text) > max_chars:
        return text[:max_chars] + PAGE_TRUNCATION_MARKER
    return text


class DuckDuckGoSearchProvider(BaseSearchProvider):
    """Text search through DDGS; page excerpts are fetched with httpx."""

    def __init__(
        self,
        search_config: "SearchConfig",
        transport: httpx.AsyncBaseTransport | None = None,
        ddgs_factory: DDGSFactory | None = None,
    ):
        self.config = search_config
        self._transport = transport
        self._ddgs_factory = ddgs_factory or self._default_ddgs

    @property
    def name(self) -> str:
        return "duckduckgo"

    def _default_ddgs(self) -> DDGS:
        return DDGS(timeout=int(self.config.timeout))

    def _text_search(self, query: str, max_results: int) -> list[dict[str, str]]:
        with self._ddgs_factory() as ddgs:
            return list(ddgs.text(query, region=self.config.region, max_results=max_results))

    async def search(
        self, query: str, max_results: int = 5, fetch_page_content: bool = True
    ) -> SearchResponse:
        logger.info(f"Searching DuckDuckGo: {query}")
        try:
            # DDGS is synchronous
            hits = await asyncio.to_thread(self._text_search, query, max_results)
        except DDGSException as e:
            logger.error(f"Search for '{query}' failed: {e}")
            return SearchResponse(query=query, error=str(e) or type(e).__name__)

        results = results_from_hits(hits, max_results)
        logger.info(f"Found {len(results)} results for '{query}'")

        if fetch_page_content and results:
            await self._attach_page_content(results[: self.config.pages_to_fetch])

        return SearchResponse(query=query, results=results)

    async def _attach_page_content(self, results: list[SearchResult]) -> None:
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self.config.page_timeout,
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
        ) as client:
            for result in results:
                try:
                    response = await client.get(result.url)
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    logger.warning(f"Failed to fetch page content from {result.url}: {e}")
                    continue
                result.page_content = extract_page_text(response.text, self.config.max_page_chars)
