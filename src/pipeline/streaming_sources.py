# src/pipeline/streaming_sources.py - v1
"""Where-to-watch resolution.

Tiers, each tried only when the previous one produced nothing:
  1. Deep-link availability search, matched by title similarity (+ year bonus)
  2. Catalog watch-provider listing for the region (no "channel" add-ons)
  3. A single free link to the external reference page
  4. Nothing; links are never invented

Rent and buy offers are never surfaced. Sources are unique per provider name
and ordered by offer priority.
"""

from __future__ import annotations

import logging
from typing import Iterable

from reelfinder.core.errors import UPSTREAM_ERRORS
from reelfinder.core.models import IdentifiedContent, MediaKind, OfferType, StreamingSource
from reelfinder.core.similarity import title_similarity
from reelfinder.pipeline.service_logos import ICON_BASE_URL, service_logo
from reelfinder.providers.models import AvailabilityShow
from reelfinder.providers.streaming_availability import StreamingAvailabilityClient
from reelfinder.providers.tmdb import TmdbClient

logger = logging.getLogger(__name__)

EXTERNAL_REF_PROVIDER = "IMDb"
EXTERNAL_REF_LOGO = f"{ICON_BASE_URL}/imdb.svg"
EXTERNAL_REF_URL = "https://www.imdb.com/title/{external_id}/"


def dedup_offers(sources: Iterable[StreamingSource]) -> list[StreamingSource]:
    """Drop rent/buy, keep one source per provider (best offer type wins).

    The result is ordered by offer priority, then by first appearance.
    """
    by_name: dict[str, StreamingSource] = {}
    for source in sources:
        if source.offer_type.is_paid_transaction:
            logger.debug("Dropping %s offer from %s", source.offer_type.value, source.provider_name)
            continue
        existing = by_name.get(source.provider_name)
        if existing is None:
            by_name[source.provider_name] = source
        elif OfferType.best(existing.offer_type, source.offer_type) is not existing.offer_type:
            by_name[source.provider_name] = source
    return sorted(by_name.values(), key=lambda s: s.offer_type.rank)


def is_channel_addon(provider_name: str) -> bool:
    """Bundled add-on sold through another platform (e.g. "Starz Amazon Channel")."""
    return "channel" in provider_name.lower()


def external_ref_source(external_id: str) -> StreamingSource:
    return StreamingSource(
        provider_name=EXTERNAL_REF_PROVIDER,
        logo_url=EXTERNAL_REF_LOGO,
        deep_link=EXTERNAL_REF_URL.format(external_id=external_id),
        offer_type=OfferType.FREE,
    )


class StreamingSourceResolver:
    """Resolve deduplicated, priority-ordered streaming sources for a title.

    Args:
        tmdb: Catalog client (watch providers). Optional.
        availability: Deep-link availability client. Optional.
        match_threshold: Minimum match score for a deep-link candidate.
        year_bonus: Added to the score when release years differ by <= 1.
        region: Catalog watch-provider region code.
    """

    def __init__(
        self,
        tmdb: TmdbClient | None = None,
        availability: StreamingAvailabilityClient | None = None,
        match_threshold: float = 0.6,
        year_bonus: float = 0.1,
        region: str = "US",
    ) -> None:
        self._tmdb = tmdb
        self._availability = availability
        self._match_threshold = match_threshold
        self._year_bonus = year_bonus
        self._region = region

    async def resolve(self, content: IdentifiedContent) -> list[StreamingSource]:
        if content.media_kind is MediaKind.VIDEO:
            return []

        sources = await self._from_deep_links(content)
        tier = "deep_links"
        if not sources:
            sources = await self._from_watch_providers(content)
            tier = "watch_providers"
        if not sources and content.external_ref_id:
            sources = [external_ref_source(content.external_ref_id)]
            tier = "external_ref"

        if sources:
            logger.info("%d streaming source(s) for %r from %s", len(sources), content.title, tier)
        else:
            logger.info("No streaming sources for %r", content.title)
        return sources

    # --- Tier 1 ---

    def match_score(self, content: IdentifiedContent, show: AvailabilityShow) -> float:
        score = title_similarity(content.title, show.title)
        if content.year and show.year and abs(show.year - content.year) <= 1:
            score += self._year_bonus
        return score

    def best_match(
        self, content: IdentifiedContent, shows: list[AvailabilityShow]
    ) -> AvailabilityShow | None:
        """Highest-scoring candidate, or None below the match threshold."""
        best, best_score = None, 0.0
        for show in shows:
            score = self.match_score(content, show)
            logger.debug("Availability candidate %r (%s): score %.2f", show.title, show.year, score)
            if score > best_score:
                best, best_score = show, score
        if best is None or best_score < self._match_threshold:
            logger.info("No availability match for %r (best %.2f)", content.title, best_score)
            return None
        return best

    async def _from_deep_links(self, content: IdentifiedContent) -> list[StreamingSource]:
        if self._availability is None or not self._availability.available:
            return []
        try:
            shows = await self._availability.search_shows(
                content.title, content.media_kind.catalog_type,
            )
        except UPSTREAM_ERRORS as e:
            logger.warning("Deep-link lookup failed for %r: %s", content.title, e)
            return []

        show = self.best_match(content, shows)
        if show is None:
            return []
        return dedup_offers(
            StreamingSource(
                provider_name=offer.service_name,
                logo_url=service_logo(offer.service_name),
                deep_link=offer.link,
                offer_type=OfferType(offer.offer_type),
                price=offer.price,
            )
            for offer in show.offers
        )

    # --- Tier 2 ---

    async def _from_watch_providers(self, content: IdentifiedContent) -> list[StreamingSource]:
        if self._tmdb is None or not self._tmdb.available or content.catalog_id is None:
            return []
        try:
            listing = await self._tmdb.watch_providers(
                content.catalog_id, content.media_kind.catalog_type, self._region,
            )
        except UPSTREAM_ERRORS as e:
            logger.warning("Watch-provider lookup failed for %r: %s", content.title, e)
            return []
        if listing is None:
            return []

        sources: list[StreamingSource] = []
        groups = (
            (listing.flatrate, OfferType.SUBSCRIPTION),
            (listing.free, OfferType.FREE),
            (listing.ads, OfferType.FREE),
        )
        for names, offer_type in groups:
            for name in names:
                if is_channel_addon(name):
                    logger.debug("Skipping channel add-on %r", name)
                    continue
                sources.append(StreamingSource(
                    provider_name=name,
                    logo_url=service_logo(name),
                    deep_link=listing.link,
                    offer_type=offer_type,
                ))
        return dedup_offers(sources)
