"""Per-discussion diagnostic log and live event fan-out."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from .types import EventType, LogLevel

logger = logging.getLogger(__name__)

_PY_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class DiscussionLogEntry:
    timestamp: str
    level: LogLevel
    source: str
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "timestamp": self.timestamp,
            "level": self.level,
            "source": self.source,
            "message": self.message,
        }
        if self.details is not None:
            entry["details"] = self.details
        return entry


class DiscussionLogStore:
    """Append-only, size-capped diagnostic log keyed by discussion id.

    Every entry is also forwarded to the module logger so the same trail
    shows up in process logs.
    """

    def __init__(self, max_entries: int = 500) -> None:
        self._max_entries = max_entries
        self._logs: dict[int, deque[DiscussionLogEntry]] = {}

    def append(
        self,
        discussion_id: int,
        level: LogLevel,
        source: str,
        message: str,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        entry = DiscussionLogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            source=source,
            message=message,
            details=dict(details) if details is not None else None,
        )
        if discussion_id not in self._logs:
            self._logs[discussion_id] = deque(maxlen=self._max_entries)
        self._logs[discussion_id].append(entry)

        logger.log(
            _PY_LEVELS.get(level, logging.INFO),
            "[discussion %s] %s: %s",
            discussion_id,
            source,
            message,
        )

    def get_logs(self, discussion_id: int) -> list[DiscussionLogEntry]:
        return list(self._logs.get(discussion_id, ()))

    def clear(self, discussion_id: int) -> None:
        self._logs.pop(discussion_id, None)


@dataclass(frozen=True)
class DiscussionEvent:
    type: EventType
    discussion_id: int
    data: dict[str, Any] = field(default_factory=dict)


class DiscussionEventBus:
    """Fans live events out to the spectators of a discussion.

    Each subscriber gets its own unbounded queue; ``emit`` never blocks and
    never raises into the caller.
    """

    def __init__(self) -> None:
        self._subscribers: dict[int, list[asyncio.Queue[DiscussionEvent]]] = {}

    def subscribe(self, discussion_id: int) -> asyncio.Queue[DiscussionEvent]:
        queue: asyncio.Queue[DiscussionEvent] = asyncio.Queue()
        self._subscribers.setdefault(discussion_id, []).append(queue)
        return queue

    def unsubscribe(
        self, discussion_id: int, queue: asyncio.Queue[DiscussionEvent]
    ) -> None:
        queues = self._subscribers.get(discussion_id)
        if not queues:
            return
        if queue in queues:
            queues.remove(queue)
        if not queues:
            del self._subscribers[discussion_id]

    def has_listeners(self, discussion_id: int) -> bool:
        return bool(self._subscribers.get(discussion_id))

    def emit(
        self, discussion_id: int, event_type: EventType, data: Mapping[str, Any]
    ) -> None:
        queues = self._subscribers.get(discussion_id)
        if not queues:
            return

        event = DiscussionEvent(type=event_type, discussion_id=discussion_id, data=dict(data))
        for queue in list(queues):
            try:
                queue.put_nowait(event)
            except Exception as e:  # noqa: BLE001
                logger.debug(f"Event delivery failed for discussion {discussion_id}: {e}")
                queues.remove(queue)
