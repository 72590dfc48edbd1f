# src/providers/web_page.py - v2
"""Fetch a web page and condense it into prompt context.

Only the title tag, meta description and a bounded prefix of the HTML are
kept. Nothing is stored.
"""

from __future__ import annotations

import html as html_lib
import ipaddress
import logging
import re

import httpx

from reelfinder.core.errors import UpstreamUnavailable
from reelfinder.core.retry import RetryConfig
from reelfinder.providers.base_provider import BaseProviderClient

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_DESCRIPTION_RES = (
    re.compile(r"""<meta[^>]*name=["']description["'][^>]*content=["']([^"']+)["']""", re.IGNORECASE),
    re.compile(r"""<meta[^>]*property=["']og:description["'][^>]*content=["']([^"']+)["']""", re.IGNORECASE),
)


def extract_title(page: str) -> str:
    match = _TITLE_RE.search(page)
    return html_lib.unescape(match.group(1).strip()) if match else ""


def extract_description(page: str) -> str:
    for pattern in _DESCRIPTION_RES:
        match = pattern.search(page)
        if match:
            return html_lib.unescape(match.group(1).strip())
    return ""


def build_page_context(url: str, page: str, max_chars: int = 3000) -> str:
    """Assemble the prompt context for a fetched page."""
    return (
        f"URL: {url}\n"
        f"Page Title: {extract_title(page)}\n"
        f"Description: {extract_description(page)}\n\n"
        f"HTML content (first {max_chars} chars):\n{page[:max_chars]}"
    )


def is_private_host(host: str) -> bool:
    """True for loopback, private, link-local and other non-public hosts.

    Only literal addresses and localhost names are recognised; hostnames are
    not resolved.
    """
    host = host.strip("[]").rstrip(".").lower()
    if not host or host == "localhost" or host.endswith(".localhost"):
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return not address.is_global


class WebPageClient(BaseProviderClient):
    """Fetches arbitrary pages linked by the user. Needs no credentials."""

    service = "web_page"

    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        retry: RetryConfig | None = None,
        timeout_s: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        max_chars: int = 3000,
    ) -> None:
        super().__init__(http=http, retry=retry, timeout_s=timeout_s)
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
        self._max_chars = max_chars

    @property
    def available(self) -> bool:
        return True

    async def fetch_context(self, url: str) -> str:
        """Prompt context for `url`; the bare URL if the page cannot be fetched.

        Pages on non-public hosts are never fetched, and a redirect that lands
        on one discards the response.
        """
        try:
            host = httpx.URL(url).host
        except httpx.InvalidURL as e:
            logger.warning("Unparseable URL %r, using it as context: %s", url, e)
            return url
        if is_private_host(host):
            logger.warning("Refusing to fetch non-public URL %s", url)
            return url
        try:
            response = await self._get(
                url, op="fetch", headers=self._headers, follow_redirects=True,
            )
        except UpstreamUnavailable as e:
            logger.warning("Page fetch failed, using bare URL as context: %s", e)
            return url

        hops = [r.url for r in response.history] + [response.url]
        if any(is_private_host(hop.host) for hop in hops[1:]):
            logger.warning("Redirect from %s reached a non-public host", url)
            return url

        page = response.text
        logger.info("Fetched %d chars from %s", len(page), url)
        return build_page_context(url, page, self._max_chars)
