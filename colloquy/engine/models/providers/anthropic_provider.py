"""Anthropic Messages API provider over httpx."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Unpack

import httpx

from .base_model_provider import (
    BaseModelProvider,
    ChatMessage,
    ChunkCallback,
    ModelOverrides,
    merge_consecutive_roles,
    system_prompt_of,
)
from .exceptions import ProviderConnectionError, ProviderResponseError

if TYPE_CHECKING:
    from colloquy.engine.config.settings import ModelConfig, SystemConfig

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(BaseModelProvider):
    """Claude models through the native Messages API."""

    def __init__(
        self,
        system_config: "SystemConfig",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(system_config)
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "claude"

    def supports_streaming(self) -> bool:
        return True

    def _headers(self, model_config: "ModelConfig") -> dict[str, str]:
        return {
            "x-api-key": self._require_api_key(model_config),
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    def _payload(
        self,
        model_config: "ModelConfig",
        messages: list[ChatMessage],
        overrides: ModelOverrides,
        stream: bool,
    ) -> dict[str, Any]:
        # The Messages API takes the system prompt out of band
        payload: dict[str, Any] = {
            "model": model_config.model_name,
            "max_tokens": overrides.get("max_tokens", model_config.max_tokens),
            "temperature": overrides.get("temperature", 0.7),
            "messages": [
                {"role": role, "content": content}
                for role, content in merge_consecutive_roles(messages)
            ],
        }
        system_prompt = system_prompt_of(messages)
        if system_prompt:
            payload["system"] = system_prompt
        if stream:
            payload["stream"] = True
        return payload

    async def generate_response(
        self,
        model_config: "ModelConfig",
        messages: list[ChatMessage],
        **overrides: Unpack[ModelOverrides],
    ) -> str:
        """Generate a response using the Messages API."""
        headers = self._headers(model_config)
        payload = self._payload(model_config, messages, overrides, stream=False)

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    f"{model_config.api_base_url}/messages",
                    json=payload,
                    headers=headers,
                    timeout=model_config.timeout,
                )
                await self._check_http_response(response)
                data = response.json()
        except httpx.TransportError as e:
            logger.error(f"Claude request failed for {model_config.model_name}: {e}")
            raise ProviderConnectionError(self.provider_name, str(e)) from e
        except json.JSONDecodeError as e:
            raise ProviderResponseError(self.provider_name, f"Malformed JSON: {e}") from e

        blocks = data.get("content") or []
        text_blocks = [
            block.get("text", "") for block in blocks if block.get("type") == "text"
        ]
        content = "".join(text_blocks)
        logger.debug(f"Generated {len(content)} chars from Claude {model_config.model_name}")
        return self._require_text(model_config, content)

    async def generate_response_stream(
        self,
        model_config: "ModelConfig",
        messages: list[ChatMessage],
        chunk_callback: ChunkCallback,
        **overrides: Unpack[ModelOverrides],
    ) -> str:
        """Generate a streaming response from Messages API server-sent events."""
        headers = self._headers(model_config)
        payload = self._payload(model_config, messages, overrides, stream=True)
        complete_content = ""

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                async with client.stream(
                    "POST",
                    f"{model_config.api_base_url}/messages",
                    json=payload,
                    headers=headers,
                    timeout=model_config.timeout,
                ) as response:
                    await self._check_http_response(response)

                    async for line in response.aiter_lines():
                        line = line.strip()
                        if not line.startswith("data:"):
                            continue

                        data = line[5:].strip()
                        try:
                            event = json.loads(data)
                        except json.JSONDecodeError:
                            logger.debug(f"Skipping invalid JSON in stream: {data[:100]}...")
                            continue

                        event_type = event.get("type")
                        if event_type == "error":
                            error_msg = event.get("error", {}).get("message", "Unknown streaming error")
                            raise ProviderResponseError(
                                self.provider_name, f"Streaming error: {error_msg}"
                            )
                        if event_type == "content_block_delta":
                            text = event.get("delta", {}).get("text", "")
                            if text:
                                complete_content += text
                                await chunk_callback(text, False)
                        elif event_type == "message_stop":
                            break
        except httpx.TransportError as e:
            logger.error(f"Claude streaming failed for {model_config.model_name}: {e}")
            raise ProviderConnectionError(self.provider_name, str(e)) from e

        await chunk_callback("", True)
        logger.debug(f"Claude streaming completed: {len(complete_content)} chars")
        return self._require_text(model_config, complete_content)
