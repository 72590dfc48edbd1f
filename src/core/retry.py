# src/core/retry.py - v2
"""Bounded exponential-backoff retry for outbound calls.

Every upstream request (catalog, availability, video platform, LLM, web page)
goes through with_retry(). After a failed attempt n (0-based) the caller
waits initial_delay_s * backoff_factor ** n; after max_attempts failures the
last error is re-raised unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

import httpx

if TYPE_CHECKING:
    from reelfinder.config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_sleep = asyncio.sleep


@dataclass(frozen=True)
class RetryConfig:
    """Retry budget for one outbound call."""

    max_attempts: int = 3
    initial_delay_s: float = 1.0
    backoff_factor: float = 2.0
    # When False, 4xx responses other than 408/429 are raised immediately.
    retry_client_errors: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryConfig:
        return cls(
            max_attempts=settings.retry_max_attempts,
            initial_delay_s=settings.retry_initial_delay_s,
            retry_client_errors=settings.retry_client_errors,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay after failed attempt `attempt` (0-based)."""
        return self.initial_delay_s * (self.backoff_factor ** attempt)


DEFAULT_RETRY_CONFIG = RetryConfig()


def classify_error(error: Exception) -> str:
    """Classify an exception for logging and retry decisions."""
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status == 429:
            return "rate_limit"
        if status == 408:
            return "timeout"
        if 400 <= status < 500:
            return "client_error"
        return "server_error"
    if isinstance(error, httpx.TimeoutException):
        return "timeout"
    if isinstance(error, httpx.TransportError):
        return "network"
    name = type(error).__name__.lower()
    if "timeout" in name:
        return "timeout"
    return "unknown"


def is_retryable(error: Exception, config: RetryConfig) -> bool:
    """Whether another attempt could plausibly succeed."""
    if config.retry_client_errors:
        return True
    return classify_error(error) != "client_error"


async def with_retry(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    label: str = "upstream",
    config: RetryConfig | None = None,
    **kwargs: Any,
) -> T:
    """Execute an async callable with retry logic.

    Args:
        fn: Coroutine function performing one attempt.
        *args: Positional arguments for fn.
        label: Name used in log lines (e.g. "tmdb.search_multi").
        config: Retry budget. Defaults to 3 attempts from 1s.
        **kwargs: Keyword arguments for fn.

    Returns:
        Whatever fn returns on its first successful attempt.

    Raises:
        Exception: The error from the final failed attempt.
    """
    config = config or DEFAULT_RETRY_CONFIG
    attempt = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            error_type = classify_error(e)
            attempt += 1

            if attempt >= config.max_attempts or not is_retryable(e, config):
                logger.warning(
                    "%s failed (%s) after %d attempt(s): %s",
                    label, error_type, attempt, e,
                )
                raise

            delay = config.delay_for(attempt - 1)
            logger.info(
                "%s: %s (attempt %d/%d), retrying in %.1fs",
                label, error_type, attempt, config.max_attempts, delay,
            )
            await _sleep(delay)
