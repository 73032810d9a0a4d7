"""OpenAI-compatible chat completions provider (OpenAI, DeepSeek)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Unpack

import openai
from openai import AsyncOpenAI

from .base_model_provider import (
    BaseModelProvider,
    ChatMessage,
    ChunkCallback,
    ModelOverrides,
)
from .exceptions import (
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
)

if TYPE_CHECKING:
    from colloquy.engine.config.settings import ModelConfig, SystemConfig

logger = logging.getLogger(__name__)

type ClientFactory = Callable[["ModelConfig", str], AsyncOpenAI]


class OpenAICompatibleProvider(BaseModelProvider):
    """Provider for any endpoint speaking the OpenAI chat completions protocol."""

    def __init__(
        self,
        system_config: "SystemConfig",
        provider_name: str = "openai",
        client_factory: ClientFactory | None = None,
    ):
        super().__init__(system_config)
        self._provider_name = provider_name
        self._client_factory = client_factory or self._default_client
        self._clients: dict[tuple[str, str], AsyncOpenAI] = {}

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @staticmethod
    def _default_client(model_config: "ModelConfig", api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(
            base_url=model_config.api_base_url,
            api_key=api_key,
            timeout=model_config.timeout,
            max_retries=model_config.max_retries,
        )

    def _get_client(self, model_config: "ModelConfig") -> AsyncOpenAI:
        api_key = self._require_api_key(model_config)
        cache_key = (model_config.api_base_url, api_key)
        if cache_key not in self._clients:
            self._clients[cache_key] = self._client_factory(model_config, api_key)
        return self._clients[cache_key]

    def _translate_error(self, exc: Exception) -> ProviderError:
        if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return ProviderAuthError(self.provider_name, str(exc))
        if isinstance(exc, openai.RateLimitError):
            return ProviderRateLimitError(self.provider_name, str(exc))
        if isinstance(exc, openai.APIConnectionError):
            # APITimeoutError is a subclass of APIConnectionError
            return ProviderConnectionError(self.provider_name, str(exc))
        if isinstance(exc, openai.APIStatusError):
            return ProviderResponseError(
                self.provider_name, str(exc), status_code=exc.status_code
            )
        return ProviderResponseError(self.provider_name, f"{type(exc).__name__}: {exc}")

    def supports_streaming(self) -> bool:
        return True

    async def generate_response(
        self,
        model_config: "ModelConfig",
        messages: list[ChatMessage],
        **overrides: Unpack[ModelOverrides],
    ) -> str:
        """Generate a response with a single chat completions call."""
        client = self._get_client(model_config)

        try:
            response = await client.chat.completions.create(
                model=model_config.model_name,
                messages=messages,
                max_tokens=overrides.get("max_tokens", model_config.max_tokens),
                temperature=overrides.get("temperature", 0.7),
            )
        except openai.OpenAIError as e:
            logger.error(f"{self.provider_name} generation failed for {model_config.model_name}: {e}")
            raise self._translate_error(e) from e

        if not response.choices:
            raise ProviderResponseError(self.provider_name, "Response contained no choices")

        content = response.choices[0].message.content or ""
        logger.debug(f"Generated {len(content)} chars from {self.provider_name} {model_config.model_name}")
        return self._require_text(model_config, content)

    async def generate_response_stream(
        self,
        model_config: "ModelConfig",
        messages: list[ChatMessage],
        chunk_callback: ChunkCallback,
        **overrides: Unpack[ModelOverrides],
    ) -> str:
        """Generate a streaming response, forwarding each delta to the callback."""
        client = self._get_client(model_config)
        complete_content = ""

        try:
            stream = await client.chat.completions.create(
                model=model_config.model_name,
                messages=messages,
                max_tokens=overrides.get("max_tokens", model_config.max_tokens),
                temperature=overrides.get("temperature", 0.7),
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content_chunk = chunk.choices[0].delta.content
                if content_chunk:
                    complete_content += content_chunk
                    await chunk_callback(content_chunk, False)
        except openai.OpenAIError as e:
            logger.error(f"{self.provider_name} streaming failed for {model_config.model_name}: {e}")
            raise self._translate_error(e) from e

        await chunk_callback("", True)
        logger.debug(f"{self.provider_name} streaming completed: {len(complete_content)} chars")
        return self._require_text(model_config, complete_content)
