"""Model providers package."""

from .providers import ProviderFactory
from .anthropic_provider import AnthropicProvider
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAICompatibleProvider
from .base_model_provider import BaseModelProvider, ChatMessage, ChunkCallback
from .exceptions import (
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
)

__all__ = [
    "ProviderFactory",
    "AnthropicProvider",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "BaseModelProvider",
    "ChatMessage",
    "ChunkCallback",
    "ProviderAuthError",
    "ProviderConnectionError",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderResponseError",
]
