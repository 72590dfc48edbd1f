# src/llm/adapters/openai_adapter.py - v2
"""OpenAI GPT adapter implementing BaseLLMClient.

Uses the official openai SDK. The text backend for every query kind and the
fallback backend for images.
"""

from __future__ import annotations

import time
from typing import Any

from reelfinder.llm.base_client import BaseLLMClient
from reelfinder.llm.models import ImageInput, LLMResponse, Message


class OpenAIAdapter(BaseLLMClient):
    """OpenAI GPT adapter."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str = "",
        timeout_s: float = 60.0,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._timeout_s = timeout_s
        self.__client = None

    @property
    def _client(self):
        if self.__client is None:
            import openai

            self.__client = openai.AsyncOpenAI(
                api_key=self._api_key, timeout=self._timeout_s, max_retries=0,
            )
        return self.__client

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 800,
        temperature: float = 0.1,
    ) -> LLMResponse:
        oai_messages: list[dict[str, Any]] = []
        if system:
            oai_messages.append({"role": "system", "content": system})
        for m in messages:
            oai_messages.append({"role": m.role, "content": m.content})

        return await self._create(oai_messages, max_tokens, temperature)

    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.1,
    ) -> LLMResponse:
        oai_messages: list[dict[str, Any]] = []
        if system:
            oai_messages.append({"role": "system", "content": system})

        content_parts: list[dict[str, Any]] = []
        for m in messages:
            content_parts.append({"type": "text", "text": m.content})
        for img in images:
            content_parts.append({
                "type": "image_url",
                "image_url": {"url": f"data:{img.media_type};base64,{img.b64}"},
            })
        oai_messages.append({"role": "user", "content": content_parts})

        return await self._create(oai_messages, max_tokens, temperature)

    @property
    def supports_vision(self) -> bool:
        return True

    @property
    def provider_name(self) -> str:
        return "openai"

    async def _create(
        self, oai_messages: list[dict[str, Any]], max_tokens: int, temperature: float
    ) -> LLMResponse:
        t0 = time.monotonic()
        resp = await self._client.chat.completions.create(
            model=self._model,
            messages=oai_messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        latency = int((time.monotonic() - t0) * 1000)

        choice = resp.choices[0] if resp.choices else None
        usage = resp.usage
        return LLMResponse(
            content=(choice.message.content or "") if choice else "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self._model,
            provider="openai",
            latency_ms=latency,
            stop_reason=choice.finish_reason if choice else None,
            raw_response=resp,
        )
