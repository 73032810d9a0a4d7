"""Web search capability used by search-augmented generation."""

from .base import BaseSearchProvider, SearchResponse, SearchResult, format_search_results
from .directives import SearchDirectiveParser
from .duckduckgo import DuckDuckGoSearchProvider

__all__ = [
    "BaseSearchProvider",
    "SearchResponse",
    "SearchResult",
    "format_search_results",
    "SearchDirectiveParser",
    "DuckDuckGoSearchProvider",
]
