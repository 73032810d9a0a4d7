"""Shared types and enums for the discussion engine."""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Literal, NotRequired, TypedDict


class TurnRole(Enum):
    """Who authored a turn."""

    HOST = "host"
    JUDGE = "judge"
    GUEST = "guest"
    SYSTEM = "system"


class DiscussionMode(Enum):
    """Template family a discussion runs under."""

    DEBATE = "debate"
    DOCUMENT = "document"


class DiscussionStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class RoundPhase(Enum):
    """Tier of a round, selecting the judge's instruction template."""

    OPENING = "opening"
    MID_ROUND = "mid_round"
    LATE_ROUND = "late_round"

    @classmethod
    def for_round(cls, round_number: int) -> "RoundPhase":
        if round_number <= 1:
            return cls.OPENING
        if round_number == 2:
            return cls.MID_ROUND
        return cls.LATE_ROUND


class EventType(Enum):
    """Live events delivered to discussion spectators."""

    TURN_START = "turn_start"
    CHUNK = "chunk"
    TURN_END = "turn_end"
    SEARCH_START = "search_start"
    SEARCH_END = "search_end"


type LogLevel = Literal["debug", "info", "warn", "error"]


class TurnStartEventData(TypedDict):
    """Data structure for turn_start events."""

    role: str
    model_name: str
    search_enriched: NotRequired[bool]


class ChunkEventData(TypedDict):
    """Data structure for chunk events."""

    role: str
    model_name: str
    chunk: str


class TurnEndEventData(TypedDict):
    """Data structure for turn_end events."""

    role: str
    model_name: str
    content: str


class SearchStartEventData(TypedDict):
    query: str


class SearchEndEventData(TypedDict):
    query: str
    result_count: int


type EventListener = Callable[[int, EventType, dict[str, Any]], Awaitable[None]]
