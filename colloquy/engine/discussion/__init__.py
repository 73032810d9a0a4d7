"""Discussion orchestration and round flow management."""

from .context_builder import ContextBuilder
from .events import DiscussionEvent, DiscussionEventBus, DiscussionLogEntry, DiscussionLogStore
from .exceptions import (
    DiscussionNotFoundError,
    ModelNotConfiguredError,
    OrchestrationError,
    RoundAlreadyExecutingError,
)
from .models import (
    Attachment,
    Discussion,
    RoundExecutionState,
    RoundResult,
    Turn,
    TurnResult,
)
from .orchestrator import DiscussionOrchestrator
from .search_loop import SearchAugmentedGenerator
from .store import DiscussionStore, InMemoryDiscussionStore
from .summarizer import Summarizer, SummaryCache
from .token_budget import TokenBudgeter, estimate_tokens, truncate_text
from .types import DiscussionMode, DiscussionStatus, EventType, RoundPhase, TurnRole

__all__ = [
    "ContextBuilder",
    "DiscussionEvent",
    "DiscussionEventBus",
    "DiscussionLogEntry",
    "DiscussionLogStore",
    "DiscussionNotFoundError",
    "ModelNotConfiguredError",
    "OrchestrationError",
    "RoundAlreadyExecutingError",
    "Attachment",
    "Discussion",
    "RoundExecutionState",
    "RoundResult",
    "Turn",
    "TurnResult",
    "DiscussionOrchestrator",
    "SearchAugmentedGenerator",
    "DiscussionStore",
    "InMemoryDiscussionStore",
    "Summarizer",
    "SummaryCache",
    "TokenBudgeter",
    "estimate_tokens",
    "truncate_text",
    "DiscussionMode",
    "DiscussionStatus",
    "EventType",
    "RoundPhase",
    "TurnRole",
]
