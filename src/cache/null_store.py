# src/cache/null_store.py - v1
"""Disabled cache: every lookup misses, every write is dropped."""

from __future__ import annotations

from reelfinder.cache.base_cache_store import BaseCacheStore
from reelfinder.cache.models import CacheEntry, ContentType
from reelfinder.core.models import IdentifiedContent


class NullCacheStore(BaseCacheStore):
    """Cache store used when CACHE_ENABLED=false."""

    async def get(self, key: str) -> CacheEntry | None:
        return None

    async def put(
        self, key: str, content_type: ContentType, content: IdentifiedContent
    ) -> None:
        return None
