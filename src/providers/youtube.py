# src/providers/youtube.py - v2
"""Video platform metadata client (YouTube Data API v3)."""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from reelfinder.core.errors import UpstreamMalformed
from reelfinder.core.retry import RetryConfig
from reelfinder.providers.base_provider import BaseProviderClient
from reelfinder.providers.models import VideoMetadata

YOUTUBE_VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"

_THUMBNAIL_PREFERENCE = ("maxres", "high", "medium", "default")


def best_thumbnail(thumbnails: dict) -> str:
    """URL of the largest available thumbnail ("" if none)."""
    for size in _THUMBNAIL_PREFERENCE:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return ""


class YouTubeClient(BaseProviderClient):
    """Async client for video snippet lookups."""

    service = "youtube"

    def __init__(
        self,
        api_key: str = "",
        http: httpx.AsyncClient | None = None,
        retry: RetryConfig | None = None,
        timeout_s: float = 10.0,
        videos_url: str = YOUTUBE_VIDEOS_URL,
    ) -> None:
        super().__init__(api_key=api_key, http=http, retry=retry, timeout_s=timeout_s)
        self._videos_url = videos_url

    async def video_metadata(self, video_id: str) -> VideoMetadata | None:
        """Snippet metadata for one video; None if the ID is unknown."""
        data = await self._get_json(
            self._videos_url,
            op="video_metadata",
            params={"part": "snippet", "id": video_id, "key": self._require_key()},
        )
        if not isinstance(data, dict):
            raise UpstreamMalformed(self.service, "video_metadata: expected an object")
        items = data.get("items") or []
        if not items:
            return None

        try:
            snippet = items[0].get("snippet") or {}
            return VideoMetadata(
                video_id=video_id,
                title=snippet.get("title") or "YouTube Video",
                published_at=snippet.get("publishedAt"),
                description=snippet.get("description") or "",
                channel_title=snippet.get("channelTitle"),
                thumbnail_url=best_thumbnail(snippet.get("thumbnails") or {}),
            )
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise UpstreamMalformed(self.service, f"video_metadata: bad item: {e}") from e
