"""Builds the chat message list a model sees for one turn."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Sequence

from colloquy.engine.config.settings import OrchestrationConfig
from colloquy.engine.models.providers.base_model_provider import ChatMessage

from .models import Discussion, Turn
from .prompts import SEARCH_CAPABILITY, date_note, reference_material, system_template
from .summarizer import SummaryCache
from .token_budget import truncate_text
from .types import TurnRole

logger = logging.getLogger(__name__)

SUMMARY_MARKER = "[Summary]"


def speaker_tag(turn: Turn) -> str:
    """Bracketed label identifying who authored a turn in a flattened transcript."""
    if turn.role is TurnRole.HOST:
        return "[Host]"
    if turn.role is TurnRole.SYSTEM:
        return "[System]"
    label = "Judge" if turn.role is TurnRole.JUDGE else "Guest"
    if turn.model_name:
        return f"[{label} {turn.model_name}]"
    return f"[{label}]"


class ContextBuilder:
    """Assembles system prompt plus perspective-mapped history.

    Pure apart from the summary cache lookup: the same turns, actor and cache
    contents always yield the same messages.
    """

    def __init__(
        self,
        config: OrchestrationConfig,
        summary_cache: SummaryCache,
        clock: Callable[[], date] = date.today,
    ):
        self.config = config
        self.summary_cache = summary_cache
        self.clock = clock

    def system_prompt(
        self,
        acting_role: TurnRole,
        discussion: Discussion,
        acting_model_display_name: str | None = None,
    ) -> str:
        prompt = system_template(discussion.mode, acting_role, acting_model_display_name)
        prompt += date_note(self.clock())
        if discussion.search_enabled:
            prompt += SEARCH_CAPABILITY
        prompt += reference_material(discussion.attachments)
        return prompt

    def is_own_turn(
        self, turn: Turn, acting_role: TurnRole, acting_model_display_name: str | None
    ) -> bool:
        if turn.role is not acting_role:
            return False
        if acting_role is TurnRole.GUEST:
            return turn.model_name == acting_model_display_name
        return acting_role is TurnRole.JUDGE

    def _history_content(self, turn: Turn, is_recent: bool) -> str:
        if is_recent:
            return turn.content
        summary = self.summary_cache.get(turn.discussion_id, turn.id)
        if summary:
            return f"{SUMMARY_MARKER} {summary}"
        return truncate_text(turn.content, self.config.history_truncate_chars)

    def build(
        self,
        turns: Sequence[Turn],
        acting_role: TurnRole,
        acting_model_display_name: str | None,
        discussion: Discussion,
    ) -> list[ChatMessage]:
        messages: list[ChatMessage] = [
            {
                "role": "system",
                "content": self.system_prompt(acting_role, discussion, acting_model_display_name),
            }
        ]

        recent_from = len(turns) - self.config.recent_full_turns
        for index, turn in enumerate(turns):
            content = self._history_content(turn, is_recent=index >= recent_from)
            if self.is_own_turn(turn, acting_role, acting_model_display_name):
                messages.append({"role": "assistant", "content": content})
            else:
                messages.append({"role": "user", "content": f"{speaker_tag(turn)} {content}"})

        logger.debug(
            "Built %s context for discussion %s: %s messages",
            acting_role.value,
            discussion.id,
            len(messages),
        )
        return messages
