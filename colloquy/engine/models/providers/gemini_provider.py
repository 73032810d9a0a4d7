"""Google Gemini provider over the generateContent REST API."""

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


def _candidate_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = candidates[0].get("content", {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


class GeminiProvider(BaseModelProvider):
    """Gemini models via generateContent / streamGenerateContent."""

    def __init__(
        self,
        system_config: "SystemConfig",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(system_config)
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "gemini"

    def supports_streaming(self) -> bool:
        return True

    def _payload(
        self, messages: list[ChatMessage], overrides: ModelOverrides, max_tokens: int
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if role == "assistant" else "user",
                    "parts": [{"text": content}],
                }
                for role, content in merge_consecutive_roles(messages)
            ],
            "generationConfig": {
                "temperature": overrides.get("temperature", 0.7),
                "maxOutputTokens": overrides.get("max_tokens", max_tokens),
            },
        }
        system_prompt = system_prompt_of(messages)
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        return payload

    def _headers(self, model_config: "ModelConfig") -> dict[str, str]:
        return {
            "x-goog-api-key": self._require_api_key(model_config),
            "Content-Type": "application/json",
        }

    async def generate_response(
        self,
        model_config: "ModelConfig",
        messages: list[ChatMessage],
        **overrides: Unpack[ModelOverrides],
    ) -> str:
        """Generate a response using generateContent."""
        headers = self._headers(model_config)
        payload = self._payload(messages, overrides, model_config.max_tokens)
        url = f"{model_config.api_base_url}/models/{model_config.model_name}:generateContent"

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    url, json=payload, headers=headers, timeout=model_config.timeout
                )
                await self._check_http_response(response)
                data = response.json()
        except httpx.TransportError as e:
            logger.error(f"Gemini request failed for {model_config.model_name}: {e}")
            raise ProviderConnectionError(self.provider_name, str(e)) from e
        except json.JSONDecodeError as e:
            raise ProviderResponseError(self.provider_name, f"Malformed JSON: {e}") from e

        content = _candidate_text(data)
        logger.debug(f"Generated {len(content)} chars from Gemini {model_config.model_name}")
        return self._require_text(model_config, content)

    async def generate_response_stream(
        self,
        model_config: "ModelConfig",
        messages: list[ChatMessage],
        chunk_callback: ChunkCallback,
        **overrides: Unpack[ModelOverrides],
    ) -> str:
        """Generate a streaming response from streamGenerateContent SSE."""
        headers = self._headers(model_config)
        payload = self._payload(messages, overrides, model_config.max_tokens)
        url = (
            f"{model_config.api_base_url}/models/{model_config.model_name}"
            ":streamGenerateContent?alt=sse"
        )
        complete_content = ""

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                async with client.stream(
                    "POST", url, json=payload, headers=headers, timeout=model_config.timeout
                ) as response:
                    await self._check_http_response(response)

                    async for line in response.aiter_lines():
                        line = line.strip()
                        if not line.startswith("data:"):
                            continue
                        try:
                            parsed = json.loads(line[5:].strip())
                        except json.JSONDecodeError:
                            logger.debug(f"Skipping invalid JSON in stream: {line[:100]}...")
                            continue

                        if "error" in parsed:
                            error_msg = parsed["error"].get("message", "Unknown streaming error")
                            raise ProviderResponseError(
                                self.provider_name, f"Streaming error: {error_msg}"
                            )

                        text = _candidate_text(parsed)
                        if text:
                            complete_content += text
                            await chunk_callback(text, False)
        except httpx.TransportError as e:
            logger.error(f"Gemini streaming failed for {model_config.model_name}: {e}")
            raise ProviderConnectionError(self.provider_name, str(e)) from e

        await chunk_callback("", True)
        return self._require_text(model_config, complete_content)
