"""Persistence collaborator interface and an in-memory implementation."""

from __future__ import annotations

import dataclasses
import itertools
import logging
from typing import Any, Protocol

from .exceptions import DiscussionNotFoundError
from .models import Attachment, Discussion, Turn
from .types import DiscussionMode, TurnRole

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {"status", "final_verdict", "confidence_scores", "title", "search_enabled"}
)


class DiscussionStore(Protocol):
    """What the orchestrator needs from discussion/turn storage."""

    async def get_discussion(self, discussion_id: int) -> Discussion | None: ...

    async def update_discussion(self, discussion_id: int, **fields: Any) -> Discussion: ...

    async def get_turns(self, discussion_id: int) -> list[Turn]: ...

    async def append_turn(
        self,
        discussion_id: int,
        role: TurnRole,
        content: str,
        model_name: str | None = None,
    ) -> Turn: ...


class InMemoryDiscussionStore:
    """Dictionary-backed store; turns are kept in creation order."""

    def __init__(self) -> None:
        self._discussions: dict[int, Discussion] = {}
        self._turns: dict[int, list[Turn]] = {}
        self._discussion_ids = itertools.count(1)
        self._turn_ids = itertools.count(1)

    async def create_discussion(
        self,
        question: str,
        guest_models: list[str],
        judge_model: str,
        mode: DiscussionMode = DiscussionMode.DEBATE,
        confidence_threshold: float = 0.8,
        search_enabled: bool = False,
        attachments: list[Attachment] | None = None,
        title: str | None = None,
    ) -> Discussion:
        discussion = Discussion(
            id=next(self._discussion_ids),
            question=question,
            guest_models=list(guest_models),
            judge_model=judge_model,
            mode=mode,
            confidence_threshold=confidence_threshold,
            search_enabled=search_enabled,
            attachments=list(attachments or []),
            title=title or question[:80],
        )
        self._discussions[discussion.id] = discussion
        self._turns[discussion.id] = []
        logger.info("Created discussion %s: %s", discussion.id, discussion.title)
        return discussion

    async def get_discussion(self, discussion_id: int) -> Discussion | None:
        return self._discussions.get(discussion_id)

    async def update_discussion(self, discussion_id: int, **fields: Any) -> Discussion:
        if discussion_id not in self._discussions:
            raise DiscussionNotFoundError(discussion_id)
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update discussion fields: {sorted(unknown)}")

        updated = dataclasses.replace(self._discussions[discussion_id], **fields)
        self._discussions[discussion_id] = updated
        return updated

    async def get_turns(self, discussion_id: int) -> list[Turn]:
        return list(self._turns.get(discussion_id, []))

    async def append_turn(
        self,
        discussion_id: int,
        role: TurnRole,
        content: str,
        model_name: str | None = None,
    ) -> Turn:
        if discussion_id not in self._discussions:
            raise DiscussionNotFoundError(discussion_id)

        turn = Turn(
            id=next(self._turn_ids),
            discussion_id=discussion_id,
            role=role,
            content=content,
            model_name=model_name,
        )
        self._turns[discussion_id].append(turn)
        return turn
