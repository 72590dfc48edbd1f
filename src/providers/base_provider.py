# src/providers/base_provider.py - v1
"""Shared plumbing for upstream HTTP/JSON collaborators.

Every request goes through with_retry(). Transport and HTTP failures that
survive the retry budget become UpstreamUnavailable; bodies that are not
JSON become UpstreamMalformed. Callers (pipeline stages) absorb both.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from reelfinder.core.errors import UpstreamMalformed, UpstreamUnavailable
from reelfinder.core.retry import RetryConfig, with_retry

logger = logging.getLogger(__name__)


class BaseProviderClient:
    """Base for clients of one upstream service."""

    service = "upstream"

    def __init__(
        self,
        api_key: str = "",
        http: httpx.AsyncClient | None = None,
        retry: RetryConfig | None = None,
        timeout_s: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout_s)
        self._retry = retry or RetryConfig()

    @property
    def available(self) -> bool:
        """Whether credentials are configured for this service."""
        return bool(self._api_key)

    def _require_key(self) -> str:
        if not self._api_key:
            raise UpstreamUnavailable(self.service, "missing API key")
        return self._api_key

    async def _get(
        self,
        url: str,
        *,
        op: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        follow_redirects: bool = False,
    ) -> httpx.Response:
        """GET with retry; non-2xx responses count as failed attempts."""

        async def _attempt() -> httpx.Response:
            response = await self._http.get(
                url, params=params, headers=headers, follow_redirects=follow_redirects,
            )
            response.raise_for_status()
            return response

        try:
            return await with_retry(_attempt, label=f"{self.service}.{op}", config=self._retry)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamUnavailable(self.service, f"{op}: {e}") from e

    async def _get_json(
        self,
        url: str,
        *,
        op: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET and decode a JSON body."""
        response = await self._get(url, op=op, params=params, headers=headers)
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise UpstreamMalformed(self.service, f"{op}: {e}") from e

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()
