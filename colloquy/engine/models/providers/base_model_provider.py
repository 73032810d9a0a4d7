from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Literal, NotRequired, TypedDict, Unpack

import httpx

from .exceptions import (
    ProviderAuthError,
    ProviderRateLimitError,
    ProviderResponseError,
)

if TYPE_CHECKING:
    from colloquy.engine.config.settings import ModelConfig, SystemConfig


class ChatMessage(TypedDict):
    """One entry of the ordered chat message list sent to a model."""

    role: Literal["system", "user", "assistant"]
    content: str


class ModelOverrides(TypedDict):
    """Per-call generation overrides."""

    temperature: NotRequired[float]
    max_tokens: NotRequired[int]


type ChunkCallback = Callable[[str, bool], Awaitable[None]]


class BaseModelProvider(ABC):
    """Abstract base class for model providers."""

    def __init__(self, system_config: "SystemConfig"):
        self.system_config = system_config

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider."""
        pass

    @abstractmethod
    async def generate_response(
        self,
        model_config: "ModelConfig",
        messages: list[ChatMessage],
        **overrides: Unpack[ModelOverrides],
    ) -> str:
        """Generate a response using this provider."""
        pass

    def validate_model_config(self, model_config: "ModelConfig") -> bool:
        """Validate that a model configuration is compatible with this provider."""
        return model_config.provider == self.provider_name

    def supports_streaming(self) -> bool:
        """Check if this provider supports streaming responses."""
        return False

    async def generate_response_stream(
        self,
        model_config: "ModelConfig",
        messages: list[ChatMessage],
        chunk_callback: ChunkCallback,
        **overrides: Unpack[ModelOverrides],
    ) -> str:
        """
        Generate a streaming response using this provider.

        Args:
            model_config: Configuration for the model to use
            messages: List of messages for the conversation
            chunk_callback: Async callback function that receives (chunk_text, is_complete)
            **overrides: Additional parameters to override model config

        Returns:
            The complete response text

        Note:
            Default implementation falls back to non-streaming generate_response().
            Providers should override this method to implement true streaming.
        """
        complete_response = await self.generate_response(model_config, messages, **overrides)
        await chunk_callback(complete_response, True)
        return complete_response

    def _require_api_key(self, model_config: "ModelConfig") -> str:
        api_key = model_config.resolved_api_key
        if not api_key:
            raise ProviderAuthError(
                self.provider_name, f"No API key configured for {model_config.model_name}"
            )
        return api_key

    def _require_text(self, model_config: "ModelConfig", content: str) -> str:
        """Reject empty generations instead of passing them on silently."""
        if not content.strip():
            raise ProviderResponseError(
                self.provider_name, f"{model_config.model_name} returned empty content"
            )
        return content.strip()

    async def _check_http_response(self, response: httpx.Response) -> None:
        """Translate a non-success HTTP response into a typed provider error."""
        if response.is_success:
            return

        await response.aread()
        body = response.text[:500]
        status = response.status_code

        if status in (401, 403):
            raise ProviderAuthError(self.provider_name, f"HTTP {status}: {body}")
        if status == 429:
            retry_after_header = response.headers.get("retry-after")
            try:
                retry_after = float(retry_after_header) if retry_after_header else None
            except ValueError:
                retry_after = None
            raise ProviderRateLimitError(
                self.provider_name, f"Rate limited: {body}", retry_after=retry_after
            )
        raise ProviderResponseError(
            self.provider_name, f"HTTP {status}: {body}", status_code=status
        )


def merge_consecutive_roles(
    messages: list[ChatMessage],
) -> list[tuple[str, str]]:
    """Collapse non-system messages so roles alternate, as strict chat APIs require."""
    merged: list[tuple[str, str]] = []
    for message in messages:
        if message["role"] == "system":
            continue
        if merged and merged[-1][0] == message["role"]:
            role, content = merged[-1]
            merged[-1] = (role, f"{content}\n\n{message['content']}")
        else:
            merged.append((message["role"], message["content"]))
    return merged


def system_prompt_of(messages: list[ChatMessage]) -> str | None:
    parts = [m["content"] for m in messages if m["role"] == "system"]
    return "\n\n".join(parts) if parts else None
