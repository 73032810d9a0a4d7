from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Callable

from .anthropic_provider import AnthropicProvider
from .base_model_provider import BaseModelProvider
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAICompatibleProvider

if TYPE_CHECKING:
    from colloquy.engine.config.settings import SystemConfig


class ProviderFactory:
    """Factory for creating model providers."""

    _providers: dict[str, Callable[["SystemConfig"], BaseModelProvider]] = {
        "openai": partial(OpenAICompatibleProvider, provider_name="openai"),
        "deepseek": partial(OpenAICompatibleProvider, provider_name="deepseek"),
        "gemini": GeminiProvider,
        "claude": AnthropicProvider,
    }

    @classmethod
    def create_provider(
        cls, provider_name: str, system_config: "SystemConfig"
    ) -> BaseModelProvider:
        """Create a provider instance by name."""
        if provider_name not in cls._providers:
            raise ValueError(
                f"Unknown provider: {provider_name}. Available: {cls.get_available_providers()}"
            )

        provider_class = cls._providers[provider_name]
        return provider_class(system_config)

    @classmethod
    def get_available_providers(cls) -> list[str]:
        """Get list of available provider names."""
        return list(cls._providers.keys())
