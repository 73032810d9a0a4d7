"""Search capability interface and result types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class SearchResult:
    title: str
    url: str
    snippet: str = ""
    page_content: str | None = None


@dataclass
class SearchResponse:
    """Outcome of one query; a failed search carries ``error`` and no results."""

    query: str
    results: list[SearchResult] = field(default_factory=list)
    error: str | None = None


class BaseSearchProvider(ABC):
    """Abstract base class for web search backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def search(
        self, query: str, max_results: int = 5, fetch_page_content: bool = True
    ) -> SearchResponse:
        """Run a query. Implementations report failures in the response instead of raising."""
        pass


def format_search_results(response: SearchResponse) -> str:
    """Render a search response as model-readable text."""
    if response.error:
        return f'Search for "{response.query}" failed: {response.error}'

    if not response.results:
        return f'Search for "{response.query}" returned no results.'

    lines = [f"=== Web search results: {response.query} ===", ""]
    for i, result in enumerate(response.results, start=1):
        lines.append(f"[{i}] {result.title}")
        lines.append(f"    Link: {result.url}")
        if result.snippet:
            lines.append(f"    Snippet: {result.snippet}")
        if result.page_content:
            lines.append("    Page content:")
            lines.extend(f"    {line}" for line in result.page_content.split("\n"))
        lines.append("")

    return "\n".join(lines)
