# src/providers/streaming_availability.py - v2
"""Deep-link availability client (Streaming Availability API on RapidAPI).

Returns every show candidate for a title search with its per-service offers
for one country. Matching and offer filtering happen in the resolver.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

import httpx
from pydantic import ValidationError

from reelfinder.core.errors import UpstreamMalformed
from reelfinder.core.retry import RetryConfig
from reelfinder.providers.base_provider import BaseProviderClient
from reelfinder.providers.models import AvailabilityShow, CatalogType, StreamingOffer

logger = logging.getLogger(__name__)

STREAMING_AVAILABILITY_HOST = "streaming-availability.p.rapidapi.com"

# Vendor offer type -> offer type. Anything unlisted counts as free.
_OFFER_TYPES: dict[str, Literal["free", "subscription", "rent", "buy"]] = {
    "subscription": "subscription",
    "addon": "subscription",
    "rent": "rent",
    "buy": "buy",
}


def _format_price(price: Any) -> str | None:
    if not isinstance(price, dict):
        return None
    if price.get("formatted"):
        return str(price["formatted"])
    if price.get("amount") is not None:
        return f"${price['amount']}"
    return None


class StreamingAvailabilityClient(BaseProviderClient):
    """Async client for the deep-link availability search."""

    service = "streaming_availability"

    def __init__(
        self,
        api_key: str = "",
        http: httpx.AsyncClient | None = None,
        retry: RetryConfig | None = None,
        timeout_s: float = 10.0,
        country: str = "us",
        host: str = STREAMING_AVAILABILITY_HOST,
    ) -> None:
        super().__init__(api_key=api_key, http=http, retry=retry, timeout_s=timeout_s)
        self._country = country.lower()
        self._host = host

    async def search_shows(self, title: str, catalog_type: CatalogType) -> list[AvailabilityShow]:
        """Search shows by title.

        Args:
            title: Title to search for.
            catalog_type: "movie" or "tv" (sent as show_type movie/series).

        Returns:
            All candidates, each with its offers for the configured country.

        Raises:
            UpstreamUnavailable: Missing key or request failed after retries.
            UpstreamMalformed: Body is not a list of shows.
        """
        api_key = self._require_key()
        data = await self._get_json(
            f"https://{self._host}/shows/search/title",
            op="search_shows",
            params={
                "title": title,
                "country": self._country,
                "show_type": "series" if catalog_type == "tv" else "movie",
                "output_language": "en",
            },
            headers={"X-RapidAPI-Key": api_key, "X-RapidAPI-Host": self._host},
        )
        if isinstance(data, dict):
            data = data.get("shows", [])
        if not isinstance(data, list):
            raise UpstreamMalformed(self.service, "search_shows: expected a list of shows")
        return [self._to_show(raw) for raw in data if isinstance(raw, dict)]

    def _to_show(self, raw: dict[str, Any]) -> AvailabilityShow:
        try:
            options = (raw.get("streamingOptions") or {}).get(self._country) or []
            offers: list[StreamingOffer] = []
            for option in options:
                service_name = ((option or {}).get("service") or {}).get("name")
                link = option.get("link") if option else None
                if not service_name or not link:
                    logger.debug("Skipping incomplete offer in %r", raw.get("title"))
                    continue
                offers.append(StreamingOffer(
                    service_name=service_name,
                    offer_type=_OFFER_TYPES.get(option.get("type", ""), "free"),
                    link=link,
                    price=_format_price(option.get("price")),
                ))
            return AvailabilityShow(
                title=raw.get("title") or raw.get("name") or "",
                year=raw.get("releaseYear") or raw.get("firstAirYear") or 0,
                offers=offers,
            )
        except (AttributeError, TypeError, ValidationError) as e:
            raise UpstreamMalformed(self.service, f"bad show record: {e}") from e
