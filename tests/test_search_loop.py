"""Tests for search-augmented generation."""

from __future__ import annotations

import asyncio

import pytest
from conftest import FakeSearchProvider, ScriptedProvider

from colloquy.engine.config.settings import ModelConfig, OrchestrationConfig, SystemConfig
from colloquy.engine.discussion.events import DiscussionEventBus, DiscussionLogStore
from colloquy.engine.discussion.search_loop import (
    SEARCH_RESULTS_TRUNCATION_MARKER,
    SearchAugmentedGenerator,
)
from colloquy.engine.discussion.types import EventType, TurnRole
from colloquy.engine.models.manager import ModelManager

MODEL = ModelConfig(provider="openai", api_key="k", display_name="GPT")
CONTEXT = [
    {"role": "system", "content": "You are a researcher."},
    {"role": "user", "content": "[Host] What is the LCOE of offshore wind?"},
]


def _generator(
    provider: ScriptedProvider,
    search: FakeSearchProvider | None = None,
    config: OrchestrationConfig | None = None,
) -> tuple[SearchAugmentedGenerator, DiscussionEventBus, DiscussionLogStore]:
    manager = ModelManager(SystemConfig())
    manager.register_provider(provider)
    bus = DiscussionEventBus()
    logs = DiscussionLogStore()
    generator = SearchAugmentedGenerator(
        manager, search or FakeSearchProvider(), config or OrchestrationConfig(), logs, bus
    )
    return generator, bus, logs


def _run(generator: SearchAugmentedGenerator, search_enabled: bool = True) -> str:
    return asyncio.run(
        generator.generate_with_search(
            1, MODEL, CONTEXT, 0.8, TurnRole.GUEST, "GPT", search_enabled
        )
    )


def test_disabled_search_is_a_single_call() -> None:
    provider = ScriptedProvider("openai", ["[SEARCH: offshore wind LCOE 2024]"])
    search = FakeSearchProvider()
    generator, _, _ = _generator(provider, search)

    result = _run(generator, search_enabled=False)

    assert result == "[SEARCH: offshore wind LCOE 2024]"
    assert len(provider.calls) == 1
    assert provider.calls[0]["temperature"] == 0.8
    assert search.queries == []


def test_output_without_directives_is_returned_as_is() -> None:
    provider = ScriptedProvider("openai", ["Offshore wind LCOE is about $80/MWh."])
    generator, _, _ = _generator(provider)

    assert _run(generator) == "Offshore wind LCOE is about $80/MWh."
    assert len(provider.calls) == 1


def test_results_are_injected_after_the_models_own_output() -> None:
    first = "Let me check. [SEARCH: offshore wind LCOE 2024]"
    provider = ScriptedProvider("openai", [first, "It is about $80/MWh [1]."])
    search = FakeSearchProvider()
    generator, _, _ = _generator(provider, search)

    result = _run(generator)

    assert result == "It is about $80/MWh [1]."
    assert search.queries == ["offshore wind LCOE 2024"]
    enriched = provider.calls[1]["messages"]
    assert enriched[:2] == CONTEXT
    assert enriched[2] == {"role": "assistant", "content": first}
    assert enriched[3]["role"] == "user"
    assert "Result for offshore wind LCOE 2024" in enriched[3]["content"]
    assert "[SEARCH: query]" in enriched[3]["content"]


def test_persistent_searcher_stops_after_two_iterations() -> None:
    provider = ScriptedProvider("openai", default="Still unsure. [SEARCH: more data]")
    search = FakeSearchProvider()
    generator, _, _ = _generator(provider, search)

    result = _run(generator)

    assert len(provider.calls) == 3
    assert search.queries == ["more data", "more data"]
    assert result == "Still unsure. [SEARCH: more data]"

    second_instruction = provider.calls[1]["messages"][-1]["content"]
    final_instruction = provider.calls[2]["messages"][-1]["content"]
    assert "iteration 1" in second_instruction
    assert "Do not issue any further search requests" not in second_instruction
    assert "iteration 2" in final_instruction
    assert "Do not issue any further search requests" in final_instruction


def test_each_iteration_starts_from_the_original_context() -> None:
    provider = ScriptedProvider(
        "openai", ["[SEARCH: a]", "[SEARCH: b]", "done"]
    )
    generator, _, _ = _generator(provider)

    _run(generator)

    final_messages = provider.calls[2]["messages"]
    assert len(final_messages) == len(CONTEXT) + 2
    assert final_messages[-2] == {"role": "assistant", "content": "[SEARCH: b]"}


def test_batch_is_capped_at_five_queries() -> None:
    directives = " ".join(f"[SEARCH: q{i}]" for i in range(8))
    provider = ScriptedProvider("openai", [directives, "answer"])
    search = FakeSearchProvider()
    generator, _, _ = _generator(provider, search)

    _run(generator)

    assert search.queries == ["q0", "q1", "q2", "q3", "q4"]


def test_search_failure_is_annotated_not_raised() -> None:
    provider = ScriptedProvider("openai", ["【搜索:broken】", "answer anyway"])
    search = FakeSearchProvider(fail_on={"broken"})
    generator, _, logs = _generator(provider, search)

    result = _run(generator)

    assert result == "answer anyway"
    injected = provider.calls[1]["messages"][-1]["content"]
    assert 'Search for "broken" failed: backend down for broken' in injected
    assert any(entry.level == "warn" for entry in logs.get_logs(1))


def test_oversized_results_are_truncated() -> None:
    config = OrchestrationConfig(input_token_budgets={"openai": 40})
    provider = ScriptedProvider("openai", ["[SEARCH: x]", "ok"])
    generator, _, _ = _generator(provider, config=config)

    _run(generator)

    injected = provider.calls[1]["messages"][-1]["content"]
    assert injected.endswith(SEARCH_RESULTS_TRUNCATION_MARKER)


def test_zero_iterations_never_searches() -> None:
    config = OrchestrationConfig(max_search_iterations=0)
    provider = ScriptedProvider("openai", ["[SEARCH: x]"])
    search = FakeSearchProvider()
    generator, _, _ = _generator(provider, search, config)

    assert _run(generator) == "[SEARCH: x]"
    assert search.queries == []


@pytest.mark.unit
def test_events_are_streamed_to_listeners() -> None:
    provider = ScriptedProvider("openai", ["[SEARCH: tides]", "Tidal answer"], streaming=True)
    generator, bus, _ = _generator(provider)

    async def scenario() -> list:
        queue = bus.subscribe(1)
        await generator.generate_with_search(1, MODEL, CONTEXT, 0.8, TurnRole.GUEST, "GPT", True)
        events = []
        while not queue.empty():
            events.append(queue.get_nowait())
        return events

    events = asyncio.run(scenario())
    types = [event.type for event in events]

    assert types[0] is EventType.TURN_START
    assert EventType.SEARCH_START in types
    search_end = next(e for e in events if e.type is EventType.SEARCH_END)
    assert search_end.data == {"query": "tides", "result_count": 1}

    starts = [e for e in events if e.type is EventType.TURN_START]
    assert len(starts) == 2
    assert "search_enriched" not in starts[0].data
    assert starts[1].data["search_enriched"] is True

    chunks = "".join(e.data["chunk"] for e in events if e.type is EventType.CHUNK)
    assert chunks == "[SEARCH: tides]Tidal answer"
    assert events[-1].type is EventType.TURN_END
    assert events[-1].data["content"] == "Tidal answer"
