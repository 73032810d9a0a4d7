"""Round orchestration: judge turn, sequential guest turns, verdict detection."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import date
from functools import partial

from colloquy.engine.config.settings import AppConfig, ModelConfig
from colloquy.engine.judges import BaseVerdictParser, MarkerVerdictParser
from colloquy.engine.models.manager import ModelManager
from colloquy.engine.models.providers.base_model_provider import ChatMessage
from colloquy.engine.search import BaseSearchProvider, DuckDuckGoSearchProvider

from .context_builder import ContextBuilder
from .events import DiscussionEventBus, DiscussionLogEntry, DiscussionLogStore
from .exceptions import DiscussionNotFoundError, ModelNotConfiguredError
from .models import Discussion, RoundExecutionState, RoundResult, Turn, TurnResult
from .prompts import final_verdict_instruction, judge_round_instruction
from .search_loop import SearchAugmentedGenerator
from .state import ExecutionStateRegistry
from .store import DiscussionStore
from .summarizer import Summarizer, SummaryCache
from .token_budget import TokenBudgeter
from .types import DiscussionStatus, RoundPhase, TurnRole

logger = logging.getLogger(__name__)


class DiscussionOrchestrator:
    """Drives judge-led discussion rounds for any number of discussions.

    One instance owns the execution-state registry, summary cache, log store
    and event bus; discussions never share entries in any of them. Turns are
    always re-read from the store rather than taken from the caller.
    """

    def __init__(
        self,
        config: AppConfig,
        store: DiscussionStore,
        model_manager: ModelManager,
        search_provider: BaseSearchProvider | None = None,
        verdict_parser: BaseVerdictParser | None = None,
        log_store: DiscussionLogStore | None = None,
        event_bus: DiscussionEventBus | None = None,
        clock: Callable[[], date] | None = None,
    ):
        self.config = config
        self.store = store
        self.model_manager = model_manager
        self.search_provider = search_provider or DuckDuckGoSearchProvider(config.system.search)
        self.verdict_parser = verdict_parser or MarkerVerdictParser()
        self.log_store = log_store or DiscussionLogStore(config.orchestration.max_log_entries)
        self.event_bus = event_bus or DiscussionEventBus()

        self.execution_states = ExecutionStateRegistry()
        self.summary_cache = SummaryCache()
        self.budgeter = TokenBudgeter()
        self.context_builder = ContextBuilder(
            config.orchestration, self.summary_cache, clock or date.today
        )
        self.summarizer = Summarizer(
            model_manager, config.orchestration, self.summary_cache, self.log_store
        )
        self.generator = SearchAugmentedGenerator(
            model_manager,
            self.search_provider,
            config.orchestration,
            self.log_store,
            self.event_bus,
            self.budgeter,
        )
        self._background_tasks: dict[int, set[asyncio.Task[str]]] = {}

    async def _load_discussion(self, discussion_id: int) -> Discussion:
        discussion = await self.store.get_discussion(discussion_id)
        if discussion is None:
            raise DiscussionNotFoundError(discussion_id)
        return discussion

    def _model_config(self, discussion_id: int, model_id: str, role: TurnRole) -> ModelConfig:
        model_config = self.config.models.get(model_id)
        if model_config is None:
            self.log_store.append(
                discussion_id, "error", role.value, f"Model {model_id} is not configured"
            )
            raise ModelNotConfiguredError(model_id, role.value)
        return model_config

    async def start(self, discussion_id: int) -> Turn:
        """Write the host turn that opens the discussion."""
        discussion = await self._load_discussion(discussion_id)
        turn = await self.store.append_turn(discussion_id, TurnRole.HOST, discussion.question)
        self.log_store.append(discussion_id, "info", "host", "Discussion started")
        return turn

    async def invoke_judge(self, discussion_id: int, instruction: str | None = None) -> TurnResult:
        """Run one judge turn and persist the verdict if the judge concluded."""
        discussion = await self._load_discussion(discussion_id)
        judge_config = self._model_config(discussion_id, discussion.judge_model, TurnRole.JUDGE)
        model_name = judge_config.resolved_display_name

        self.log_store.append(
            discussion_id,
            "info",
            "judge",
            f"Calling judge model {discussion.judge_model}",
            {"provider": judge_config.provider, "has_api_key": judge_config.is_available},
        )

        turns = await self.store.get_turns(discussion_id)
        context = self.context_builder.build(turns, TurnRole.JUDGE, None, discussion)
        if instruction:
            context.append({"role": "user", "content": instruction})

        content = await self._generate(
            discussion, judge_config, context, TurnRole.JUDGE, model_name
        )
        turn = await self.store.append_turn(discussion_id, TurnRole.JUDGE, content, model_name)
        self._schedule_summary(turn, model_name)

        verdict = self.verdict_parser.parse(content)
        if verdict is None:
            return TurnResult(turn=turn)

        await self.store.update_discussion(
            discussion_id,
            status=DiscussionStatus.COMPLETED,
            final_verdict=verdict.conclusion,
            confidence_scores=verdict.confidence_scores,
        )
        self.log_store.append(
            discussion_id,
            "info",
            "judge",
            "Judge delivered the final verdict, discussion completed",
            {"confidence_scores": verdict.confidence_scores},
        )
        return TurnResult(turn=turn, is_complete=True, verdict=verdict)

    async def invoke_guest(self, discussion_id: int, guest_model: str) -> TurnResult:
        """Run one turn for the configured guest model identified by guest_model."""
        discussion = await self._load_discussion(discussion_id)
        guest_config = self._model_config(discussion_id, guest_model, TurnRole.GUEST)
        model_name = guest_config.resolved_display_name

        self.log_store.append(
            discussion_id,
            "info",
            "guest",
            f"Calling guest model {model_name}",
            {"provider": guest_config.provider, "has_api_key": guest_config.is_available},
        )

        turns = await self.store.get_turns(discussion_id)
        context = self.context_builder.build(turns, TurnRole.GUEST, model_name, discussion)

        content = await self._generate(
            discussion, guest_config, context, TurnRole.GUEST, model_name
        )
        turn = await self.store.append_turn(discussion_id, TurnRole.GUEST, content, model_name)
        self._schedule_summary(turn, model_name)
        return TurnResult(turn=turn)

    async def request_final_verdict(self, discussion_id: int) -> TurnResult:
        """Force the judge to conclude now, whatever the round count."""
        discussion = await self._load_discussion(discussion_id)
        return await self.invoke_judge(discussion_id, final_verdict_instruction(discussion.mode))

    async def execute_round(self, discussion_id: int, round_number: int) -> RoundResult:
        """Run the judge turn and, unless it concludes, every guest in order.

        Raises RoundAlreadyExecutingError without touching anything when a
        round of this discussion is in flight. Any other failure resets the
        flag, records the error in the execution state and propagates.
        """
        self.execution_states.begin_round(discussion_id, round_number)

        try:
            discussion = await self._load_discussion(discussion_id)
            await self.wait_for_background_tasks(discussion_id)

            phase = RoundPhase.for_round(round_number)
            instruction = judge_round_instruction(
                discussion.mode, phase, discussion.search_enabled
            )
            self.log_store.append(
                discussion_id,
                "info",
                "round",
                f"Round {round_number} started ({phase.value})",
            )

            judge_result = await self.invoke_judge(discussion_id, instruction)
            round_turns = [judge_result.turn]

            if judge_result.is_complete:
                self.execution_states.finish_round(discussion_id, round_number, is_complete=True)
                return RoundResult(
                    turns=round_turns, is_complete=True, verdict=judge_result.verdict
                )

            for guest_model in discussion.guest_models:
                guest_result = await self.invoke_guest(discussion_id, guest_model)
                round_turns.append(guest_result.turn)

            self.execution_states.finish_round(discussion_id, round_number, is_complete=False)
            self.log_store.append(
                discussion_id,
                "info",
                "round",
                f"Round {round_number} finished with {len(round_turns)} turns",
            )
            return RoundResult(turns=round_turns, is_complete=False)

        except Exception as e:
            error = str(e) or type(e).__name__
            self.execution_states.fail_round(discussion_id, round_number, error)
            self.log_store.append(
                discussion_id, "error", "round", f"Round {round_number} failed: {error}"
            )
            raise

    async def run_discussion(
        self, discussion_id: int, max_rounds: int | None = None
    ) -> RoundResult:
        """Drive rounds until the judge concludes or the round ceiling is hit.

        At the ceiling the judge is asked for a forced verdict. Background
        summaries are awaited before returning.
        """
        limit = max_rounds or self.config.orchestration.max_rounds

        if not await self.store.get_turns(discussion_id):
            await self.start(discussion_id)

        for round_number in range(1, limit + 1):
            result = await self.execute_round(discussion_id, round_number)
            if result.is_complete:
                await self.wait_for_background_tasks(discussion_id)
                return result

        logger.info(
            f"Discussion {discussion_id} reached {limit} rounds, requesting final verdict"
        )
        final = await self.request_final_verdict(discussion_id)
        await self.wait_for_background_tasks(discussion_id)
        return RoundResult(turns=[final.turn], is_complete=final.is_complete, verdict=final.verdict)

    async def _generate(
        self,
        discussion: Discussion,
        model_config: ModelConfig,
        context: list[ChatMessage],
        role: TurnRole,
        model_name: str,
    ) -> str:
        orchestration = self.config.orchestration
        temperature = (
            orchestration.judge_temperature
            if role is TurnRole.JUDGE
            else orchestration.guest_temperature
        )
        started = time.monotonic()
        content = await self.generator.generate_with_search(
            discussion.id,
            model_config,
            context,
            temperature,
            role,
            model_name,
            discussion.search_enabled,
        )
        elapsed_ms = int((time.monotonic() - started) * 1000)
        self.log_store.append(
            discussion.id,
            "info",
            role.value,
            f"Response from {model_name} in {elapsed_ms}ms",
            {"response_time_ms": elapsed_ms, "content_length": len(content)},
        )
        return content

    def _schedule_summary(self, turn: Turn, model_name: str) -> None:
        """Summarize a stored turn in a detached task tracked per discussion."""
        task = asyncio.create_task(
            self.summarizer.summarize(
                turn.discussion_id,
                turn.id,
                turn.content,
                turn.role,
                model_name,
                self.config.available_models(),
            )
        )
        tasks = self._background_tasks.setdefault(turn.discussion_id, set())
        tasks.add(task)
        task.add_done_callback(partial(self._release_task, turn.discussion_id))
        task.add_done_callback(self._log_summary_failure)

    def _release_task(self, discussion_id: int, task: asyncio.Task[str]) -> None:
        tasks = self._background_tasks.get(discussion_id)
        if tasks is None:
            return
        tasks.discard(task)
        if not tasks:
            del self._background_tasks[discussion_id]

    @staticmethod
    def _log_summary_failure(task: asyncio.Task[str]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Background summarization failed: {error}")

    async def wait_for_background_tasks(self, discussion_id: int | None = None) -> None:
        """Await pending summarization tasks of one discussion, or of all."""
        if discussion_id is None:
            pending = [task for tasks in self._background_tasks.values() for task in tasks]
        else:
            pending = list(self._background_tasks.get(discussion_id, ()))
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def get_execution_state(self, discussion_id: int) -> RoundExecutionState | None:
        return self.execution_states.get(discussion_id)

    def clear_execution_state(self, discussion_id: int) -> None:
        self.execution_states.clear(discussion_id)

    def get_logs(self, discussion_id: int) -> list[DiscussionLogEntry]:
        return self.log_store.get_logs(discussion_id)

    def clear_logs(self, discussion_id: int) -> None:
        self.log_store.clear(discussion_id)

    def clear_summaries(self, discussion_id: int) -> None:
        """Cancel pending summaries and drop cached digests of one discussion."""
        for task in self._background_tasks.pop(discussion_id, set()):
            task.cancel()
        self.summary_cache.clear(discussion_id)
