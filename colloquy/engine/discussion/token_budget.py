"""Approximate token accounting and progressive context compression."""

from __future__ import annotations

import logging
import math
from typing import Sequence

from colloquy.engine.models.providers.base_model_provider import ChatMessage

logger = logging.getLogger(__name__)

ELISION_MARKER = "\n\n...[content condensed, key parts kept]...\n\n"

# Characters per token for mixed-language text, and fixed cost of a message envelope.
CHARS_PER_TOKEN = 3
MESSAGE_OVERHEAD_CHARS = 10

PROTECTED_TAIL = 2
TRUNCATION_PASSES = (500, 200)


def truncate_text(content: str, max_chars: int) -> str:
    """Shorten content to at most max_chars: 70% head and 25% tail around an elision marker."""
    if len(content) <= max_chars:
        return content
    budget = max_chars - len(ELISION_MARKER)
    if budget <= 0:
        return content[:max_chars]
    keep_start = int(budget * 0.7)
    keep_end = int(budget * 0.25)
    tail = content[-keep_end:] if keep_end > 0 else ""
    return content[:keep_start] + ELISION_MARKER + tail


def estimate_tokens(messages: Sequence[ChatMessage]) -> int:
    total_chars = sum(len(message["content"]) + MESSAGE_OVERHEAD_CHARS for message in messages)
    return math.ceil(total_chars / CHARS_PER_TOKEN)


class TokenBudgeter:
    """Fits a chat context under an input-token ceiling.

    The first message (the system prompt) and the last two messages are never
    touched. Interior messages are first truncated to 500 characters, then to
    200, and finally dropped oldest-first until the estimate fits or only the
    protected messages remain.
    """

    def __init__(self, protected_tail: int = PROTECTED_TAIL):
        self.protected_tail = protected_tail

    def trim(self, messages: Sequence[ChatMessage], max_tokens: int) -> list[ChatMessage]:
        result: list[ChatMessage] = list(messages)
        if estimate_tokens(result) <= max_tokens:
            return result

        for limit in TRUNCATION_PASSES:
            for i in range(1, len(result) - self.protected_tail):
                if estimate_tokens(result) <= max_tokens:
                    break
                message = result[i]
                if len(message["content"]) > limit:
                    result[i] = {
                        "role": message["role"],
                        "content": truncate_text(message["content"], limit),
                    }

        while estimate_tokens(result) > max_tokens and len(result) > self.protected_tail + 1:
            del result[1]

        if estimate_tokens(result) > max_tokens:
            logger.debug(
                "Context still ~%s tokens over a %s budget after trimming to protected messages",
                estimate_tokens(result),
                max_tokens,
            )
        return result
