# src/llm/adapters/anthropic_adapter.py - v3
"""Anthropic Claude adapter implementing BaseLLMClient.

Uses the official anthropic SDK. Preferred backend for image queries: it
reads on-screen titles and platform branding reliably.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from reelfinder.llm.base_client import BaseLLMClient
from reelfinder.llm.models import ImageInput, LLMResponse, Message

logger = logging.getLogger(__name__)


class AnthropicAdapter(BaseLLMClient):
    """Adapter for Anthropic Claude models."""

    def __init__(
        self,
        model: str = "claude-sonnet-4-5",
        api_key: str | None = None,
        timeout_s: float = 60.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout_s = timeout_s
        self.__client = None  # Lazy initialization

    @property
    def _client(self):
        """Lazy-init Anthropic client (only on first API call)."""
        if self.__client is None:
            import anthropic

            # SDK-level retries off: with_retry() owns the retry budget
            self.__client = anthropic.AsyncAnthropic(
                api_key=self._api_key or "",
                timeout=self._timeout_s,
                max_retries=0,
            )
        return self.__client

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 800,
        temperature: float = 0.1,
    ) -> LLMResponse:
        """Text completion via Anthropic Messages API."""
        params: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [self._to_api_message(m) for m in messages if m.role != "system"],
        }
        if system:
            params["system"] = system
        return await self._create(params)

    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.1,
    ) -> LLMResponse:
        """Vision-enabled completion: images first, then the user text."""
        content_blocks: list[dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": img.media_type,
                    "data": img.b64,
                },
            }
            for img in images
        ]

        user_text = ""
        history: list[Message] = []
        for m in messages:
            if m.role == "user":
                user_text = m.content
            elif m.role == "assistant":
                history.append(m)
        content_blocks.append({"type": "text", "text": user_text})

        api_messages = [self._to_api_message(m) for m in history]
        api_messages.append({"role": "user", "content": content_blocks})

        params: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": api_messages,
        }
        if system:
            params["system"] = system
        return await self._create(params)

    @property
    def supports_vision(self) -> bool:
        return True

    @property
    def provider_name(self) -> str:
        return "anthropic"

    # --- Internal helpers ---

    async def _create(self, params: dict[str, Any]) -> LLMResponse:
        start = time.monotonic()
        response = await self._client.messages.create(**params)
        latency_ms = int((time.monotonic() - start) * 1000)

        return LLMResponse(
            content=self._extract_text(response),
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=response.model,
            provider="anthropic",
            latency_ms=latency_ms,
            stop_reason=response.stop_reason,
            raw_response=response,
        )

    @staticmethod
    def _to_api_message(m: Message) -> dict[str, Any]:
        return {"role": m.role, "content": m.content}

    @staticmethod
    def _extract_text(response: Any) -> str:
        """First text block of an Anthropic response."""
        for block in response.content:
            if getattr(block, "type", None) == "text":
                return block.text
        return ""
