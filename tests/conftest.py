# tests/conftest.py - v2
"""Shared test fixtures for all unit and integration tests.

Provides settings without credentials, a zero-delay retry budget, mock LLM
clients, sample results and an httpx MockTransport router. No network I/O.
"""

from __future__ import annotations

from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from reelfinder.config.settings import Settings, load_settings
from reelfinder.core.models import IdentifiedContent, MediaKind
from reelfinder.core.retry import RetryConfig
from reelfinder.llm.base_client import BaseLLMClient
from reelfinder.llm.models import LLMResponse

NO_CREDENTIALS: dict[str, Any] = {
    "anthropic_api_key": "",
    "openai_api_key": "",
    "tmdb_api_key": "",
    "streaming_availability_api_key": "",
    "youtube_api_key": "",
}


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the developer's .env and environment keys."""
    values: dict[str, Any] = {
        **NO_CREDENTIALS,
        "cache_backend": "memory",
        "retry_initial_delay_s": 0.0,
        "_env_file": None,
    }
    values.update(overrides)
    return load_settings(**values)


def make_llm(content: str = "", provider: str = "openai") -> MagicMock:
    """Mock BaseLLMClient whose completions return `content`."""
    response = LLMResponse(content=content, model="mock-model", provider=provider, latency_ms=5)
    llm = MagicMock(spec=BaseLLMClient)
    llm.provider_name = provider
    llm.supports_vision = True
    llm.complete = AsyncMock(return_value=response)
    llm.complete_with_vision = AsyncMock(return_value=response)
    return llm


class Router:
    """Tiny request router for httpx.MockTransport.

    Handlers are keyed by URL path; each receives the request and returns a
    response (or raises an httpx error). Calls are recorded per path.
    """

    def __init__(self) -> None:
        self.handlers: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: dict[str, list[httpx.Request]] = {}

    def add(self, path: str, handler: Callable[[httpx.Request], httpx.Response] | dict | list) -> None:
        if callable(handler):
            self.handlers[path] = handler
        else:
            payload = handler
            self.handlers[path] = lambda request: httpx.Response(200, json=payload)

    def count(self, path: str) -> int:
        return len(self.calls.get(path, []))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.setdefault(path, []).append(request)
        handler = self.handlers.get(path)
        if handler is None:
            return httpx.Response(404, json={"status_message": "not found"})
        return handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fast_retry() -> RetryConfig:
    return RetryConfig(max_attempts=3, initial_delay_s=0.0)


@pytest.fixture
def router() -> Router:
    return Router()


@pytest.fixture
def mock_llm() -> MagicMock:
    return make_llm()


@pytest.fixture
def sample_content() -> IdentifiedContent:
    return IdentifiedContent(
        title="The Matrix",
        year=1999,
        media_kind=MediaKind.MOVIE,
        genres=["Action", "Science Fiction"],
        rating=8.2,
        synopsis="A hacker learns the world is a simulation.",
        poster_url="https://image.tmdb.org/t/p/w500/matrix.jpg",
        confidence=0.95,
        catalog_id=603,
        release_date="1999-03-30",
    )


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture
def llm_factory() -> Callable[..., MagicMock]:
    return make_llm
