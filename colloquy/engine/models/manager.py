"""Model manager with multi-provider support."""

from __future__ import annotations

import logging
from typing import TypeAlias, Unpack

from colloquy.engine.config.settings import ModelConfig, SystemConfig

from .providers.base_model_provider import (
    BaseModelProvider,
    ChatMessage,
    ChunkCallback,
    ModelOverrides,
)
from .providers.providers import ProviderFactory

MessageList: TypeAlias = list[ChatMessage]

logger = logging.getLogger(__name__)


class ModelManager:
    """Uniform generation gateway over every configured provider.

    Callers hand over a ``ModelConfig`` and a chat message list; the manager
    picks (and caches) the adapter for that config's provider. Provider
    failures surface as ``ProviderError`` subclasses, never as empty text.
    """

    def __init__(self, system_config: SystemConfig):
        self._system_config = system_config
        self._providers: dict[str, BaseModelProvider] = {}

    def _get_provider(self, provider_name: str) -> BaseModelProvider:
        """Return (and cache) the provider instance identified by name."""
        if provider_name not in self._providers:
            self._providers[provider_name] = ProviderFactory.create_provider(
                provider_name, self._system_config
            )
        return self._providers[provider_name]

    def register_provider(self, provider: BaseModelProvider) -> None:
        """Install a specific adapter instance for its provider name."""
        self._providers[provider.provider_name] = provider
        logger.info("Registered provider adapter %s", provider.provider_name)

    def _provider_for(self, config: ModelConfig) -> BaseModelProvider:
        provider = self._get_provider(config.provider)
        if not provider.validate_model_config(config):
            raise ValueError(f"Invalid model config for provider {config.provider}")
        return provider

    async def generate(
        self,
        config: ModelConfig,
        messages: MessageList,
        **overrides: Unpack[ModelOverrides],
    ) -> str:
        """Generate a complete response from the model described by config."""
        provider = self._provider_for(config)

        response = await provider.generate_response(config, messages, **overrides)
        logger.debug(
            "Generated %s chars from %s (%s)", len(response), config.model_name, config.provider
        )
        return response

    async def generate_stream(
        self,
        config: ModelConfig,
        messages: MessageList,
        chunk_callback: ChunkCallback,
        **overrides: Unpack[ModelOverrides],
    ) -> str:
        """Generate a response, delivering chunks to chunk_callback as they arrive."""
        provider = self._provider_for(config)

        if provider.supports_streaming():
            response = await provider.generate_response_stream(
                config, messages, chunk_callback, **overrides
            )
            logger.debug(
                "Generated %s chars via streaming from %s (%s)",
                len(response),
                config.model_name,
                config.provider,
            )
            return response

        response = await provider.generate_response(config, messages, **overrides)
        await chunk_callback(response, True)
        logger.debug(
            "Generated %s chars via fallback non-streaming from %s (%s)",
            len(response),
            config.model_name,
            config.provider,
        )
        return response
