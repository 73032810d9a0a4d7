"""Tests for the DuckDuckGo search backend, directives and result formatting."""

from __future__ import annotations

import asyncio

import httpx
from ddgs.exceptions import DDGSException

from colloquy.engine.config.settings import SearchConfig
from colloquy.engine.search import (
    DuckDuckGoSearchProvider,
    SearchDirectiveParser,
    SearchResponse,
    SearchResult,
    format_search_results,
)
from colloquy.engine.search.duckduckgo import (
    PAGE_TRUNCATION_MARKER,
    extract_page_text,
    results_from_hits,
)

HITS = [
    {
        "title": "IEA Batteries 2024 ",
        "href": "https://www.iea.org/reports/batteries",
        "body": "Battery storage capacity grew 130% in 2023.",
    },
    {"title": "Sponsored", "href": "https://duckduckgo.com/y.js?ad_domain=example.com", "body": ""},
    {"title": "No link", "href": "", "body": "dropped"},
    {
        "title": "NREL storage cost benchmarks",
        "href": "https://www.nrel.gov/storage",
        "body": "Utility-scale costs fell to $300/kWh.",
    },
]

PARAGRAPHS = [
    "Grid-scale battery storage installations reached 42 GW worldwide by the end of 2023, "
    "more than doubling the installed base of the previous year according to agency data.",
    "Lithium iron phosphate chemistry accounted for the large majority of new stationary "
    "projects because of its lower cost per cycle and its more forgiving thermal behaviour.",
    "Sodium-ion cells entered commercial production in several factories, although their "
    "share of deployed capacity remained small and concentrated in pilot installations.",
    "Analysts expect average pack prices to keep falling through 2030 as manufacturing "
    "capacity expands faster than demand in the electric vehicle segment.",
]

ARTICLE_PAGE = (
    "<html><head><title>Grid storage outlook</title>"
    "<script>var tracking = 1;</script><style>.x{color:red}</style></head>"
    "<body><nav><a href='/'>Home</a> | <a href='/about'>About</a></nav>"
    "<article><h1>Grid storage outlook</h1>"
    + "".join(f"<p>{paragraph}</p>" for paragraph in PARAGRAPHS)
    + "</article><footer>Copyright</footer></body></html>"
)


class FakeDDGS:
    """Stand-in for the DDGS client recording text searches."""

    def __init__(self, hits=None, error: Exception | None = None):
        self.hits = hits if hits is not None else HITS
        self.error = error
        self.calls: list[tuple[str, dict]] = []

    def __enter__(self) -> "FakeDDGS":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def text(self, query: str, **kwargs):
        self.calls.append((query, kwargs))
        if self.error is not None:
            raise self.error
        return iter(self.hits)


def _page_handler(request: httpx.Request) -> httpx.Response:
    assert "Mozilla" in request.headers["user-agent"]
    if request.url.host == "www.iea.org":
        return httpx.Response(200, text=ARTICLE_PAGE)
    return httpx.Response(404, text="missing")


def _provider(ddgs: FakeDDGS) -> DuckDuckGoSearchProvider:
    return DuckDuckGoSearchProvider(
        SearchConfig(),
        transport=httpx.MockTransport(_page_handler),
        ddgs_factory=lambda: ddgs,
    )


def test_results_from_hits_skips_duckduckgo_and_empty_links() -> None:
    assert results_from_hits(HITS, max_results=5) == [
        SearchResult(
            title="IEA Batteries 2024",
            url="https://www.iea.org/reports/batteries",
            snippet="Battery storage capacity grew 130% in 2023.",
        ),
        SearchResult(
            title="NREL storage cost benchmarks",
            url="https://www.nrel.gov/storage",
            snippet="Utility-scale costs fell to $300/kWh.",
        ),
    ]


def test_results_from_hits_honours_max_results() -> None:
    assert len(results_from_hits(HITS, max_results=1)) == 1


def test_extract_page_text_keeps_article_and_drops_scripts() -> None:
    text = extract_page_text(ARTICLE_PAGE, max_chars=3000)

    assert text is not None
    assert "42 GW worldwide" in text
    assert "var tracking" not in text
    assert not text.endswith(PAGE_TRUNCATION_MARKER)


def test_extract_page_text_caps_length() -> None:
    text = extract_page_text(ARTICLE_PAGE, max_chars=100)

    assert text is not None
    assert text.endswith(PAGE_TRUNCATION_MARKER)
    assert len(text) == 100 + len(PAGE_TRUNCATION_MARKER)


def test_extract_page_text_of_empty_page() -> None:
    assert extract_page_text("<html><body></body></html>", max_chars=100) is None


def test_search_fetches_page_content_for_top_hits() -> None:
    ddgs = FakeDDGS()

    response = asyncio.run(
        _provider(ddgs).search("grid batteries", max_results=5, fetch_page_content=True)
    )

    assert ddgs.calls == [("grid batteries", {"region": "wt-wt", "max_results": 5})]
    assert response.error is None
    assert [r.url for r in response.results] == [
        "https://www.iea.org/reports/batteries",
        "https://www.nrel.gov/storage",
    ]
    assert "42 GW worldwide" in (response.results[0].page_content or "")
    # page fetch failures leave the hit without content
    assert response.results[1].page_content is None


def test_search_without_page_content() -> None:
    response = asyncio.run(_provider(FakeDDGS()).search("grid batteries", fetch_page_content=False))

    assert len(response.results) == 2
    assert all(r.page_content is None for r in response.results)


def test_search_reports_backend_errors_in_response() -> None:
    ddgs = FakeDDGS(error=DDGSException("Ratelimit"))

    response = asyncio.run(_provider(ddgs).search("anything"))

    assert response.results == []
    assert response.error == "Ratelimit"


def test_search_with_no_hits() -> None:
    response = asyncio.run(_provider(FakeDDGS(hits=[])).search("obscure"))

    assert response == SearchResponse(query="obscure")


def test_directives_are_parsed_in_order() -> None:
    text = "First [SEARCH: solar capex 2024] then 【搜索:储能 装机量】 and 【搜索：钠离子电池】 [SEARCH:  ]"

    assert SearchDirectiveParser().parse(text) == [
        "solar capex 2024",
        "储能 装机量",
        "钠离子电池",
    ]


def test_no_directives() -> None:
    parser = SearchDirectiveParser()

    assert parser.parse("I will search later.") == []
    assert parser.parse("Search for [this] later.") == []


def test_format_search_results_variants() -> None:
    assert format_search_results(SearchResponse(query="q", error="timeout")) == (
        'Search for "q" failed: timeout'
    )
    assert format_search_results(SearchResponse(query="q")) == 'Search for "q" returned no results.'

    text = format_search_results(
        SearchResponse(
            query="q",
            results=[
                SearchResult(
                    title="T", url="https://t.example", snippet="S", page_content="line1\nline2"
                )
            ],
        )
    )
    assert text.splitlines() == [
        "=== Web search results: q ===",
        "",
        "[1] T",
        "    Link: https://t.example",
        "    Snippet: S",
        "    Page content:",
        "    line1",
        "    line2",
    ]
