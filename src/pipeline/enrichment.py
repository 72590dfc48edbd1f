# src/pipeline/enrichment.py - v1
"""Enrichment: fill catalog ID, poster and external ID, then streaming sources.

Results are enriched concurrently (one task per identified title). Every
lookup is best-effort; a failing collaborator leaves the field as it was.
"""

from __future__ import annotations

import asyncio
import logging

from reelfinder.core.errors import UPSTREAM_ERRORS
from reelfinder.core.models import IdentifiedContent, MediaKind
from reelfinder.pipeline.streaming_sources import StreamingSourceResolver
from reelfinder.providers.models import CatalogTitle
from reelfinder.providers.tmdb import TmdbClient, poster_url

logger = logging.getLogger(__name__)


def pick_catalog_match(candidates: list[CatalogTitle], year: int) -> CatalogTitle | None:
    """Prefer the candidate released in `year`, else the catalog's first hit."""
    if not candidates:
        return None
    if year:
        for candidate in candidates:
            if candidate.year == year:
                return candidate
    return candidates[0]


class Enricher:
    """Completes identified titles before they are returned."""

    def __init__(
        self,
        tmdb: TmdbClient | None,
        streaming: StreamingSourceResolver,
    ) -> None:
        self._tmdb = tmdb
        self._streaming = streaming

    @property
    def _catalog_ready(self) -> bool:
        return self._tmdb is not None and self._tmdb.available

    async def enrich_all(self, results: list[IdentifiedContent]) -> list[IdentifiedContent]:
        """Enrich every result concurrently, preserving order."""
        return list(await asyncio.gather(*(self.enrich(r) for r in results)))

    async def enrich(self, content: IdentifiedContent) -> IdentifiedContent:
        """Return an enriched copy of `content`."""
        if content.media_kind is MediaKind.VIDEO:
            return content

        updates: dict = {}
        if self._catalog_ready and (content.catalog_id is None or not content.poster_url):
            updates.update(await self._catalog_fields(content))

        catalog_id = updates.get("catalog_id", content.catalog_id)
        if self._catalog_ready and catalog_id is not None and not content.external_ref_id:
            external_id = await self._external_ref_id(catalog_id, content)
            if external_id:
                updates["external_ref_id"] = external_id

        enriched = content.model_copy(update=updates)
        sources = await self._streaming.resolve(enriched)
        return enriched.model_copy(update={"streaming_sources": sources})

    async def _catalog_fields(self, content: IdentifiedContent) -> dict:
        try:
            candidates = await self._tmdb.search(content.title, content.media_kind.catalog_type)
        except UPSTREAM_ERRORS as e:
            logger.warning("Catalog enrichment failed for %r: %s", content.title, e)
            return {}

        match = pick_catalog_match(candidates, content.year)
        if match is None:
            logger.info("Catalog has no match for %r", content.title)
            return {}

        updates: dict = {}
        if content.catalog_id is None:
            updates["catalog_id"] = match.id
        if not content.poster_url and match.poster_path:
            updates["poster_url"] = poster_url(match.poster_path)
        logger.info("Enriched %r with catalog ID %s", content.title,
                    updates.get("catalog_id", content.catalog_id))
        return updates

    async def _external_ref_id(self, catalog_id: int, content: IdentifiedContent) -> str | None:
        try:
            return await self._tmdb.external_ids(catalog_id, content.media_kind.catalog_type)
        except UPSTREAM_ERRORS as e:
            logger.warning("External ID lookup failed for %r: %s", content.title, e)
            return None
