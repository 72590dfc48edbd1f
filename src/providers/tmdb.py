# src/providers/tmdb.py - v2
"""Media catalog client (TMDB v3 API).

Search, lookup by external ID, external IDs, genres and region-scoped
watch providers. Movie and TV payloads are normalized into CatalogTitle.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from reelfinder.core.errors import UpstreamMalformed
from reelfinder.core.retry import RetryConfig
from reelfinder.providers.base_provider import BaseProviderClient
from reelfinder.providers.models import CatalogTitle, CatalogType, WatchProviders

logger = logging.getLogger(__name__)

TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE = "https://image.tmdb.org/t/p/w500"


def poster_url(poster_path: str | None) -> str:
    """Absolute poster URL for a catalog poster path ("" if none)."""
    if not poster_path:
        return ""
    return f"{TMDB_IMAGE_BASE}{poster_path}"


class TmdbClient(BaseProviderClient):
    """Async client for the media catalog."""

    service = "tmdb"

    def __init__(
        self,
        api_key: str = "",
        http: httpx.AsyncClient | None = None,
        retry: RetryConfig | None = None,
        timeout_s: float = 10.0,
        base_url: str = TMDB_BASE_URL,
    ) -> None:
        super().__init__(api_key=api_key, http=http, retry=retry, timeout_s=timeout_s)
        self._base_url = base_url.rstrip("/")
        self._genres: dict[str, dict[int, str]] = {}

    async def search_multi(self, query: str) -> list[CatalogTitle]:
        """Free-text search across kinds, keeping movies and series only."""
        data = await self._call("/search/multi", op="search_multi", query=query)
        titles: list[CatalogTitle] = []
        for raw in self._results(data, "search_multi"):
            media_type = raw.get("media_type")
            if media_type not in ("movie", "tv"):
                continue
            titles.append(self._to_title(raw, media_type))
        return titles

    async def search(self, title: str, catalog_type: CatalogType) -> list[CatalogTitle]:
        """Search one kind ("movie" or "tv") by title."""
        data = await self._call(f"/search/{catalog_type}", op="search", query=title)
        return [self._to_title(raw, catalog_type) for raw in self._results(data, "search")]

    async def find_by_external_id(self, external_id: str) -> CatalogTitle | None:
        """Look up a title by external reference ID; movies are checked first."""
        data = await self._call(
            f"/find/{external_id}", op="find", external_source="imdb_id",
        )
        if not isinstance(data, dict):
            raise UpstreamMalformed(self.service, "find: expected an object")
        for bucket, media_type in (("movie_results", "movie"), ("tv_results", "tv")):
            hits = data.get(bucket) or []
            if not isinstance(hits, list):
                raise UpstreamMalformed(self.service, f"find: {bucket} is not a list")
            hits = [h for h in hits if isinstance(h, dict)]
            if hits:
                return self._to_title(hits[0], media_type)
        return None

    async def external_ids(self, catalog_id: int, catalog_type: CatalogType) -> str | None:
        """External reference ID (e.g. "tt0133093") for a catalog title."""
        data = await self._call(
            f"/{catalog_type}/{catalog_id}/external_ids", op="external_ids",
        )
        if not isinstance(data, dict):
            raise UpstreamMalformed(self.service, "external_ids: expected an object")
        return data.get("imdb_id") or None

    async def watch_providers(
        self, catalog_id: int, catalog_type: CatalogType, region: str = "US"
    ) -> WatchProviders | None:
        """Region-scoped watch-provider listing; None when the region is absent."""
        data = await self._call(
            f"/{catalog_type}/{catalog_id}/watch/providers", op="watch_providers",
        )
        if not isinstance(data, dict):
            raise UpstreamMalformed(self.service, "watch_providers: expected an object")
        results = data.get("results") or {}
        if not isinstance(results, dict):
            raise UpstreamMalformed(self.service, "watch_providers: results is not an object")
        region_data = results.get(region)
        if not region_data:
            return None

        def names(key: str) -> list[str]:
            return [
                p["provider_name"] for p in region_data.get(key) or []
                if isinstance(p, dict) and p.get("provider_name")
            ]

        try:
            return WatchProviders(
                link=region_data.get("link") or "",
                flatrate=names("flatrate"),
                free=names("free"),
                ads=names("ads"),
                rent=names("rent"),
                buy=names("buy"),
            )
        except (AttributeError, TypeError, ValidationError) as e:
            raise UpstreamMalformed(self.service, f"watch_providers: bad region record: {e}") from e

    async def genre_names(self, catalog_type: CatalogType, genre_ids: list[int]) -> list[str]:
        """Resolve numeric genre IDs to names (genre list fetched once per kind)."""
        if not genre_ids:
            return []
        table = self._genres.get(catalog_type)
        if table is None:
            data = await self._call(f"/genre/{catalog_type}/list", op="genres")
            if not isinstance(data, dict):
                raise UpstreamMalformed(self.service, "genres: expected an object")
            table = {
                g["id"]: g["name"] for g in data.get("genres") or []
                if isinstance(g, dict) and "id" in g and "name" in g
            }
            self._genres[catalog_type] = table
        return [table[i] for i in genre_ids if i in table]

    # --- Internal helpers ---

    async def _call(self, path: str, *, op: str, **params: Any) -> Any:
        params["api_key"] = self._require_key()
        return await self._get_json(f"{self._base_url}{path}", op=op, params=params)

    def _results(self, data: Any, op: str) -> list[dict[str, Any]]:
        if not isinstance(data, dict) or not isinstance(data.get("results", []), list):
            raise UpstreamMalformed(self.service, f"{op}: expected a results list")
        return [r for r in data.get("results", []) if isinstance(r, dict)]

    def _to_title(self, raw: dict[str, Any], media_type: str) -> CatalogTitle:
        try:
            return CatalogTitle(
                id=raw["id"],
                media_type=media_type,
                title=raw.get("title") or raw.get("name") or "",
                release_date=raw.get("release_date") or raw.get("first_air_date") or None,
                overview=raw.get("overview") or "",
                poster_path=raw.get("poster_path"),
                vote_average=raw.get("vote_average") or 0.0,
                genre_ids=raw.get("genre_ids") or [],
            )
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise UpstreamMalformed(self.service, f"bad title record: {e}") from e
