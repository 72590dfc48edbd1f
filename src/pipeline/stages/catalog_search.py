# src/pipeline/stages/catalog_search.py - v1
"""Fuzzy catalog search for free-text queries.

Every movie/series candidate returned by the catalog's multi search is scored
against the query and the best-scoring one wins, regardless of the catalog's
own (popularity-based) ordering. The winner is accepted only when its banded
confidence reaches the configured threshold.
"""

from __future__ import annotations

import logging

from reelfinder.core.errors import UPSTREAM_ERRORS
from reelfinder.core.models import ContentQuery, IdentifiedContent, MediaKind
from reelfinder.core.similarity import title_similarity
from reelfinder.pipeline.stages.base_stage import BaseStage
from reelfinder.pipeline.state import PipelineStep
from reelfinder.providers.models import CatalogTitle
from reelfinder.providers.tmdb import TmdbClient, poster_url

logger = logging.getLogger(__name__)

# (minimum similarity, confidence), checked top-down.
CONFIDENCE_BANDS: tuple[tuple[float, float], ...] = (
    (0.9, 0.95),
    (0.7, 0.85),
    (0.5, 0.70),
)
FLOOR_CONFIDENCE = 0.55


def confidence_band(similarity: float) -> float:
    """Map a title similarity to a fuzzy-match confidence."""
    for minimum, confidence in CONFIDENCE_BANDS:
        if similarity >= minimum:
            return confidence
    return FLOOR_CONFIDENCE


async def catalog_genres(tmdb: TmdbClient, title: CatalogTitle) -> list[str]:
    """Genre names for a catalog title; [] if the genre list is unavailable."""
    try:
        return await tmdb.genre_names(title.media_type, title.genre_ids)
    except UPSTREAM_ERRORS as e:
        logger.warning("Genre lookup failed for %r: %s", title.title, e)
        return []


def catalog_content(
    title: CatalogTitle,
    confidence: float,
    genres: list[str] | None = None,
    external_ref_id: str | None = None,
) -> IdentifiedContent:
    """Build an IdentifiedContent from a catalog record."""
    return IdentifiedContent(
        title=title.title,
        year=title.year,
        media_kind=MediaKind.SERIES if title.media_type == "tv" else MediaKind.MOVIE,
        genres=genres or [],
        rating=max(0.0, min(title.vote_average, 10.0)),
        synopsis=title.overview,
        poster_url=poster_url(title.poster_path),
        confidence=confidence,
        catalog_id=title.id,
        external_ref_id=external_ref_id,
        release_date=title.release_date,
    )


class CatalogSearchStage(BaseStage):
    """Resolve plain text against the catalog by title similarity."""

    def __init__(self, tmdb: TmdbClient, accept_threshold: float = 0.75) -> None:
        self._tmdb = tmdb
        self._accept_threshold = accept_threshold

    @property
    def name(self) -> str:
        return "catalog_search"

    @property
    def step(self) -> PipelineStep:
        return PipelineStep.FUZZY_CATALOG

    @property
    def available(self) -> bool:
        return self._tmdb.available

    def applies_to(self, query: ContentQuery) -> bool:
        # Images have no text; URLs that are not direct IDs go to the AI stage.
        return query.kind == "text"

    async def resolve(self, query: ContentQuery) -> list[IdentifiedContent]:
        candidates = await self._tmdb.search_multi(query.raw)
        if not candidates:
            logger.info("Catalog search: no movie/series candidates for %r", query.raw)
            return []

        best, best_score = None, -1.0
        for candidate in candidates:
            score = title_similarity(query.raw, candidate.title)
            logger.debug("Catalog candidate %r (%s): similarity %.2f",
                         candidate.title, candidate.year, score)
            if score > best_score:
                best, best_score = candidate, score

        confidence = confidence_band(best_score)
        if confidence < self._accept_threshold:
            logger.info(
                "Catalog search rejected %r: similarity %.2f -> confidence %.2f < %.2f",
                best.title, best_score, confidence, self._accept_threshold,
            )
            return []

        logger.info("Catalog search accepted %r: similarity %.2f -> confidence %.2f",
                    best.title, best_score, confidence)
        genres = await catalog_genres(self._tmdb, best)
        return [catalog_content(best, confidence, genres)]
