"""Data models for the discussion engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from colloquy.engine.judges.base import Verdict

from .types import DiscussionMode, DiscussionStatus, TurnRole


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Attachment:
    """Reference material supplied with a discussion, already extracted to text."""

    file_name: str
    extracted_text: str


@dataclass
class Discussion:
    """A question put to a panel of guest models under one judge."""

    id: int
    question: str
    guest_models: list[str]
    judge_model: str
    mode: DiscussionMode = DiscussionMode.DEBATE
    confidence_threshold: float = 0.8
    search_enabled: bool = False
    attachments: list[Attachment] = field(default_factory=list)
    status: DiscussionStatus = DiscussionStatus.ACTIVE
    final_verdict: str | None = None
    confidence_scores: dict[str, float] | None = None
    title: str | None = None

    def __post_init__(self) -> None:
        if not 1 <= len(self.guest_models) <= 4:
            raise ValueError(
                f"A discussion seats 1-4 guest models, got {len(self.guest_models)}"
            )
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be within [0, 1]")


@dataclass(frozen=True)
class Turn:
    """One append-only contribution to a discussion transcript."""

    id: int
    discussion_id: int
    role: TurnRole
    content: str
    model_name: str | None = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class TurnResult:
    turn: Turn
    is_complete: bool = False
    verdict: Verdict | None = None


@dataclass(frozen=True)
class RoundResult:
    turns: list[Turn]
    is_complete: bool
    verdict: Verdict | None = None


@dataclass(frozen=True)
class RoundExecutionState:
    """Transient per-discussion execution flag set, replaced on every transition."""

    is_executing: bool
    current_round: int
    is_complete: bool = False
    error: str | None = None
