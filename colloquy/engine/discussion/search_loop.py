"""Search-augmented generation: let a model request web searches mid-answer."""

from __future__ import annotations

import logging
from typing import Sequence

from colloquy.engine.config.settings import ModelConfig, OrchestrationConfig
from colloquy.engine.models.manager import ModelManager
from colloquy.engine.models.providers.base_model_provider import ChatMessage
from colloquy.engine.search.base import BaseSearchProvider, SearchResponse, format_search_results
from colloquy.engine.search.directives import SearchDirectiveParser

from .events import DiscussionEventBus, DiscussionLogStore
from .prompts import search_results_message
from .token_budget import TokenBudgeter, estimate_tokens
from .types import EventType, TurnRole

logger = logging.getLogger(__name__)

SEARCH_RESULTS_TRUNCATION_MARKER = "\n...[search results truncated]"


class SearchAugmentedGenerator:
    """Runs a model call, executing any search directives it emits.

    Each iteration is one search batch plus one regeneration. Every
    regeneration starts from the budgeted original context with only the
    model's latest output and the newest results appended, so context does
    not grow across iterations. The last permitted iteration forbids further
    searches; whatever the model answers then is returned as-is.
    """

    def __init__(
        self,
        model_manager: ModelManager,
        search_provider: BaseSearchProvider,
        config: OrchestrationConfig,
        log_store: DiscussionLogStore,
        event_bus: DiscussionEventBus,
        budgeter: TokenBudgeter | None = None,
        directive_parser: SearchDirectiveParser | None = None,
    ):
        self.model_manager = model_manager
        self.search_provider = search_provider
        self.config = config
        self.log_store = log_store
        self.event_bus = event_bus
        self.budgeter = budgeter or TokenBudgeter()
        self.directive_parser = directive_parser or SearchDirectiveParser()

    async def generate_with_search(
        self,
        discussion_id: int,
        model_config: ModelConfig,
        context: Sequence[ChatMessage],
        temperature: float,
        role: TurnRole,
        model_name: str,
        search_enabled: bool,
    ) -> str:
        token_limit = self.config.input_budget_for(model_config.provider)

        trimmed = self.budgeter.trim(context, token_limit)
        if len(trimmed) < len(context):
            self.log_store.append(
                discussion_id,
                "debug",
                "token",
                f"Context trimmed: {len(context)} -> {len(trimmed)} messages, "
                f"~{estimate_tokens(trimmed)} tokens",
            )

        content = await self.call_model(
            discussion_id, model_config, trimmed, temperature, role, model_name
        )
        if not search_enabled:
            return content

        max_iterations = self.config.max_search_iterations
        for iteration in range(1, max_iterations + 1):
            queries = self.directive_parser.parse(content)
            if not queries:
                return content

            is_final = iteration == max_iterations
            self.log_store.append(
                discussion_id,
                "info",
                "search",
                f"Iteration {iteration}/{max_iterations}: {len(queries)} search requests: "
                + ", ".join(queries),
            )

            results = await self.run_searches(discussion_id, queries)
            max_chars = token_limit * 2
            if len(results) > max_chars:
                results = results[:max_chars] + SEARCH_RESULTS_TRUNCATION_MARKER

            enriched: list[ChatMessage] = [
                *trimmed,
                {"role": "assistant", "content": content},
                {"role": "user", "content": search_results_message(iteration, results, is_final)},
            ]
            enriched = self.budgeter.trim(enriched, token_limit)

            self.log_store.append(
                discussion_id,
                "info",
                "search",
                f"Injected search results (iteration {iteration}), ~{estimate_tokens(enriched)} tokens, "
                + ("final call" if is_final else "further searches allowed"),
            )

            content = await self.call_model(
                discussion_id,
                model_config,
                enriched,
                temperature,
                role,
                model_name,
                search_enriched=True,
            )

        return content

    async def run_searches(self, discussion_id: int, queries: Sequence[str]) -> str:
        """Execute up to one batch of queries sequentially and return formatted results."""
        formatted: list[str] = []
        for query in list(queries)[: self.config.max_queries_per_batch]:
            self.log_store.append(discussion_id, "info", "search", f"Searching: {query}")
            self.event_bus.emit(discussion_id, EventType.SEARCH_START, {"query": query})

            try:
                response = await self.search_provider.search(
                    query,
                    self.config.search_results_per_query,
                    self.config.fetch_page_content,
                )
            except Exception as e:
                logger.warning(f"Search provider raised for '{query}': {e}")
                response = SearchResponse(query=query, error=str(e) or type(e).__name__)

            if response.error:
                self.log_store.append(
                    discussion_id,
                    "warn",
                    "search",
                    f"Search failed: {query}",
                    {"error": response.error},
                )
            formatted.append(format_search_results(response))

            self.log_store.append(
                discussion_id,
                "info",
                "search",
                f"Search finished: {query}, {len(response.results)} results",
            )
            self.event_bus.emit(
                discussion_id,
                EventType.SEARCH_END,
                {"query": query, "result_count": len(response.results)},
            )

        return "\n\n".join(formatted)

    async def call_model(
        self,
        discussion_id: int,
        model_config: ModelConfig,
        messages: Sequence[ChatMessage],
        temperature: float,
        role: TurnRole,
        model_name: str,
        search_enriched: bool = False,
    ) -> str:
        """One gateway call, streamed to spectators when any are listening."""
        if not self.event_bus.has_listeners(discussion_id):
            return await self.model_manager.generate(
                model_config, list(messages), temperature=temperature
            )

        start_data: dict[str, object] = {"role": role.value, "model_name": model_name}
        if search_enriched:
            start_data["search_enriched"] = True
        self.event_bus.emit(discussion_id, EventType.TURN_START, start_data)

        async def on_chunk(chunk: str, is_complete: bool) -> None:
            if chunk:
                self.event_bus.emit(
                    discussion_id,
                    EventType.CHUNK,
                    {"role": role.value, "model_name": model_name, "chunk": chunk},
                )

        content = await self.model_manager.generate_stream(
            model_config, list(messages), on_chunk, temperature=temperature
        )
        self.event_bus.emit(
            discussion_id,
            EventType.TURN_END,
            {"role": role.value, "model_name": model_name, "content": content},
        )
        return content
