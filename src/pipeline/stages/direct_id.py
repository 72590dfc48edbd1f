# src/pipeline/stages/direct_id.py - v1
"""Direct identifier extraction: video links and external title IDs.

Both stages are a regex match plus one lookup. No match means the stage
does not apply and the cascade continues.
"""

from __future__ import annotations

import logging
import re

from reelfinder.core.models import ContentQuery, IdentifiedContent, MediaKind
from reelfinder.pipeline.stages.base_stage import BaseStage
from reelfinder.pipeline.stages.catalog_search import catalog_content, catalog_genres
from reelfinder.pipeline.state import PipelineStep
from reelfinder.providers.models import year_of
from reelfinder.providers.tmdb import TmdbClient
from reelfinder.providers.youtube import YouTubeClient

logger = logging.getLogger(__name__)

VIDEO_CONFIDENCE = 0.95
EXTERNAL_REF_CONFIDENCE = 0.98

# Query parameter, short link, embed path.
_VIDEO_ID_PATTERNS = (
    re.compile(r"[?&]v=([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtu\.be/([a-zA-Z0-9_-]{11})"),
    re.compile(r"embed/([a-zA-Z0-9_-]{11})"),
)
_EXTERNAL_REF_PATTERN = re.compile(r"/title/(tt\d+)", re.IGNORECASE)


def extract_video_id(text: str) -> str | None:
    """11-character video ID embedded in a link, if any."""
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def extract_external_ref_id(text: str) -> str | None:
    """External title ID (e.g. "tt0133093") from a /title/ttNNN path."""
    match = _EXTERNAL_REF_PATTERN.search(text)
    return match.group(1).lower() if match else None


class VideoLinkStage(BaseStage):
    """Video platform links resolve to a video-kind result."""

    def __init__(self, youtube: YouTubeClient) -> None:
        self._youtube = youtube

    @property
    def name(self) -> str:
        return "video_link"

    @property
    def step(self) -> PipelineStep:
        return PipelineStep.DIRECT_ID

    @property
    def available(self) -> bool:
        return self._youtube.available

    def applies_to(self, query: ContentQuery) -> bool:
        return query.kind != "image" and extract_video_id(query.raw) is not None

    async def resolve(self, query: ContentQuery) -> list[IdentifiedContent]:
        video_id = extract_video_id(query.raw)
        logger.info("Video link detected: %s", video_id)
        meta = await self._youtube.video_metadata(video_id)
        if meta is None:
            return []
        return [IdentifiedContent(
            title=meta.title,
            year=year_of(meta.published_at),
            media_kind=MediaKind.VIDEO,
            synopsis=meta.description,
            poster_url=meta.thumbnail_url,
            confidence=VIDEO_CONFIDENCE,
            release_date=meta.published_at,
            video_url=meta.watch_url,
            channel_name=meta.channel_title,
        )]


class ExternalRefStage(BaseStage):
    """Links carrying an external title ID resolve through the catalog."""

    def __init__(self, tmdb: TmdbClient) -> None:
        self._tmdb = tmdb

    @property
    def name(self) -> str:
        return "external_ref"

    @property
    def step(self) -> PipelineStep:
        return PipelineStep.DIRECT_ID

    @property
    def available(self) -> bool:
        return self._tmdb.available

    def applies_to(self, query: ContentQuery) -> bool:
        return query.kind != "image" and extract_external_ref_id(query.raw) is not None

    async def resolve(self, query: ContentQuery) -> list[IdentifiedContent]:
        external_id = extract_external_ref_id(query.raw)
        logger.info("External title ID detected: %s", external_id)
        title = await self._tmdb.find_by_external_id(external_id)
        if title is None:
            logger.info("No catalog title for external ID %s", external_id)
            return []
        genres = await catalog_genres(self._tmdb, title)
        return [catalog_content(
            title, EXTERNAL_REF_CONFIDENCE, genres, external_ref_id=external_id,
        )]
