"""AI digests of long turns, cached for later rounds' context building."""

from __future__ import annotations

import logging
from typing import Mapping

from colloquy.engine.config.settings import ModelConfig, OrchestrationConfig
from colloquy.engine.models.manager import ModelManager
from colloquy.engine.models.providers.base_model_provider import ChatMessage

from .events import DiscussionLogStore
from .prompts import SUMMARIZER_SYSTEM_PROMPT, summarize_request
from .token_budget import truncate_text
from .types import TurnRole

logger = logging.getLogger(__name__)


class SummaryCache:
    """Digest per turn, keyed by discussion id then turn id. Entries are never replaced."""

    def __init__(self) -> None:
        self._summaries: dict[int, dict[int, str]] = {}

    def get(self, discussion_id: int, turn_id: int) -> str | None:
        return self._summaries.get(discussion_id, {}).get(turn_id)

    def put(self, discussion_id: int, turn_id: int, summary: str) -> None:
        self._summaries.setdefault(discussion_id, {}).setdefault(turn_id, summary)

    def clear(self, discussion_id: int) -> None:
        self._summaries.pop(discussion_id, None)

    def __len__(self) -> int:
        return sum(len(turns) for turns in self._summaries.values())


class Summarizer:
    """Compresses a finished turn with the cheapest available configured model."""

    def __init__(
        self,
        model_manager: ModelManager,
        config: OrchestrationConfig,
        cache: SummaryCache,
        log_store: DiscussionLogStore,
    ):
        self.model_manager = model_manager
        self.config = config
        self.cache = cache
        self.log_store = log_store

    def select_model(self, available_configs: Mapping[str, ModelConfig]) -> ModelConfig | None:
        """Pick a summarization model: preferred providers first, then any with a key."""
        usable = [cfg for cfg in available_configs.values() if cfg.is_available]
        for provider in self.config.summary_provider_preference:
            for cfg in usable:
                if cfg.provider == provider:
                    return cfg
        return usable[0] if usable else None

    async def summarize(
        self,
        discussion_id: int,
        turn_id: int,
        content: str,
        role: TurnRole,
        model_display_name: str,
        available_configs: Mapping[str, ModelConfig],
    ) -> str:
        """Return a digest of content; only model-produced digests are cached.

        Never raises: a failed or impossible summarization falls back to
        head/tail truncation.
        """
        if len(content) < self.config.summary_min_chars:
            return content

        summary_config = self.select_model(available_configs)
        if summary_config is None:
            logger.debug("No model available to summarize turn %s, truncating", turn_id)
            return truncate_text(content, self.config.history_truncate_chars)

        messages: list[ChatMessage] = [
            {"role": "system", "content": SUMMARIZER_SYSTEM_PROMPT},
            {"role": "user", "content": summarize_request(content, role, model_display_name)},
        ]

        try:
            summary = await self.model_manager.generate(
                summary_config,
                messages,
                temperature=self.config.summary_temperature,
                max_tokens=self.config.summary_max_tokens,
            )
        except Exception as e:
            logger.warning(f"Summarization of turn {turn_id} failed, falling back to truncation: {e}")
            self.log_store.append(
                discussion_id,
                "warn",
                "summary",
                f"Summarization of turn #{turn_id} failed, using truncation",
                {"error": str(e)},
            )
            return truncate_text(content, self.config.history_truncate_chars)

        self.cache.put(discussion_id, turn_id, summary)
        self.log_store.append(
            discussion_id,
            "info",
            "summary",
            f"Summarized {role.value} turn #{turn_id}",
            {
                "original_length": len(content),
                "summary_length": len(summary),
                "ratio": f"{round(len(summary) / len(content) * 100)}%",
            },
        )
        return summary
