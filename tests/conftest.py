"""Pytest configuration and shared fixtures.

Provides scripted stand-ins for the model providers and the search backend so
the orchestration engine can be exercised end to end without network access.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any

import pytest

from colloquy.engine.config.settings import AppConfig, ModelConfig, OrchestrationConfig, SystemConfig
from colloquy.engine.discussion import DiscussionOrchestrator, InMemoryDiscussionStore
from colloquy.engine.models.manager import ModelManager
from colloquy.engine.models.providers.base_model_provider import BaseModelProvider
from colloquy.engine.search.base import BaseSearchProvider, SearchResponse, SearchResult


# =============================================================================
# FAKES
# =============================================================================


class ScriptedProvider(BaseModelProvider):
    """Provider that replays scripted responses and records every call.

    A scripted item may be a string, an exception to raise, or a callable
    receiving the message list and returning the text.
    """

    def __init__(
        self,
        provider_name: str,
        responses: list[Any] | None = None,
        default: str = "Nothing further to add.",
        streaming: bool = False,
    ):
        super().__init__(SystemConfig())
        self._provider_name = provider_name
        self.responses = list(responses or [])
        self.default = default
        self.streaming = streaming
        self.calls: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return self._provider_name

    def supports_streaming(self) -> bool:
        return self.streaming

    async def generate_response(self, model_config, messages, **overrides) -> str:
        self.calls.append(
            {
                "model": model_config.model_name,
                "messages": [dict(m) for m in messages],
                **overrides,
            }
        )
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(messages)
        return item

    async def generate_response_stream(self, model_config, messages, chunk_callback, **overrides) -> str:
        content = await self.generate_response(model_config, messages, **overrides)
        midpoint = len(content) // 2
        for piece in (content[:midpoint], content[midpoint:]):
            if piece:
                await chunk_callback(piece, False)
        await chunk_callback("", True)
        return content


class FakeSearchProvider(BaseSearchProvider):
    """Search backend returning one canned hit per query."""

    def __init__(self, fail_on: set[str] | None = None):
        self.queries: list[str] = []
        self.fail_on = fail_on or set()

    @property
    def name(self) -> str:
        return "fake"

    async def search(self, query, max_results=5, fetch_page_content=True) -> SearchResponse:
        self.queries.append(query)
        if query in self.fail_on:
            raise RuntimeError(f"backend down for {query}")
        return SearchResponse(
            query=query,
            results=[
                SearchResult(
                    title=f"Result for {query}",
                    url=f"https://example.com/{len(self.queries)}",
                    snippet=f"Snippet about {query}",
                )
            ],
        )


# =============================================================================
# SHARED FIXTURES - Available to all test modules
# =============================================================================


@pytest.fixture
def sample_question() -> str:
    return "Which battery chemistry will dominate grid storage by 2030?"


@pytest.fixture
def app_config() -> AppConfig:
    """Three keyed models; summaries disabled unless a test opts in."""
    return AppConfig(
        models={
            "gpt": ModelConfig(provider="openai", api_key="sk-test", display_name="GPT"),
            "gemini": ModelConfig(provider="gemini", api_key="g-test", display_name="Gemini"),
            "claude": ModelConfig(provider="claude", api_key="a-test", display_name="Claude"),
        },
        orchestration=OrchestrationConfig(summary_min_chars=100_000),
    )


@pytest.fixture
def fixed_clock() -> Callable[[], date]:
    return lambda: date(2025, 3, 14)


@pytest.fixture
def make_orchestrator(
    app_config: AppConfig, fixed_clock: Callable[[], date]
) -> Callable[..., tuple[DiscussionOrchestrator, InMemoryDiscussionStore]]:
    """Build an orchestrator wired to scripted providers and a fake search backend."""

    def factory(
        providers: list[ScriptedProvider],
        search_provider: BaseSearchProvider | None = None,
        config: AppConfig | None = None,
    ) -> tuple[DiscussionOrchestrator, InMemoryDiscussionStore]:
        config = config or app_config
        manager = ModelManager(config.system)
        for provider in providers:
            manager.register_provider(provider)
        store = InMemoryDiscussionStore()
        orchestrator = DiscussionOrchestrator(
            config,
            store,
            manager,
            search_provider=search_provider or FakeSearchProvider(),
            clock=fixed_clock,
        )
        return orchestrator, store

    return factory


# =============================================================================
# PYTEST CONFIGURATION HOOKS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
