"""Per-discussion round execution state."""

from __future__ import annotations

import logging

from .exceptions import RoundAlreadyExecutingError
from .models import RoundExecutionState

logger = logging.getLogger(__name__)


class ExecutionStateRegistry:
    """Process-lifetime map of discussion id to its round execution state.

    The ``is_executing`` flag is the only mutual-exclusion point between
    rounds of one discussion. Checking and setting it happen without an
    intervening await, so on a single event loop the pair is atomic.
    """

    def __init__(self) -> None:
        self._states: dict[int, RoundExecutionState] = {}

    def get(self, discussion_id: int) -> RoundExecutionState | None:
        return self._states.get(discussion_id)

    def clear(self, discussion_id: int) -> None:
        self._states.pop(discussion_id, None)

    def begin_round(self, discussion_id: int, round_number: int) -> None:
        """Mark a round as executing, rejecting it if another one is in flight."""
        current = self._states.get(discussion_id)
        if current is not None and current.is_executing:
            raise RoundAlreadyExecutingError(discussion_id, current.current_round)

        self._states[discussion_id] = RoundExecutionState(
            is_executing=True, current_round=round_number
        )
        logger.debug("Discussion %s: round %s executing", discussion_id, round_number)

    def finish_round(
        self, discussion_id: int, round_number: int, is_complete: bool
    ) -> None:
        self._states[discussion_id] = RoundExecutionState(
            is_executing=False, current_round=round_number, is_complete=is_complete
        )

    def fail_round(self, discussion_id: int, round_number: int, error: str) -> None:
        self._states[discussion_id] = RoundExecutionState(
            is_executing=False, current_round=round_number, error=error
        )
        logger.warning(
            "Discussion %s: round %s failed: %s", discussion_id, round_number, error
        )
