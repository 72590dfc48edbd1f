# src/llm/base_client.py - v2
"""Abstract LLM client interface.

Adapters wrap one vendor SDK each. They raise whatever the SDK raises; the
caller owns retry and error absorption.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from reelfinder.llm.models import ImageInput, LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for the generative-model backends."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 800,
        temperature: float = 0.1,
    ) -> LLMResponse:
        """Text completion."""

    @abstractmethod
    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.1,
    ) -> LLMResponse:
        """Vision-enabled completion (images + text)."""

    @property
    @abstractmethod
    def supports_vision(self) -> bool:
        """Whether this provider/model accepts image inputs."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (anthropic, openai)."""

    @property
    def model_name(self) -> str:
        return getattr(self, "_model", "unknown")
