# src/llm/models.py - v2
"""LLM-specific types: Message, ImageInput, LLMResponse."""

from __future__ import annotations

import base64
from typing import Any, Literal

from pydantic import BaseModel


class Message(BaseModel):
    """Single message in a conversation."""

    role: Literal["user", "assistant", "system"]
    content: str


class ImageInput(BaseModel):
    """Image payload for vision-enabled completions."""

    data: bytes
    media_type: str = "image/jpeg"

    @property
    def b64(self) -> str:
        """Base64 text of the image, as both vendors expect it."""
        return base64.b64encode(self.data).decode("ascii")


class LLMResponse(BaseModel):
    """Normalized response from any LLM provider."""

    content: str
    model: str
    provider: str
    latency_ms: int
    input_tokens: int = 0
    output_tokens: int = 0
    stop_reason: str | None = None
    raw_response: Any = None

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()
