# src/cache/base_cache_store.py - v2
"""Abstract cache store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from reelfinder.cache.models import CacheEntry, ContentType
from reelfinder.core.models import IdentifiedContent


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends.

    Implementations must make the hit bookkeeping in get() atomic: two
    concurrent hits on one key raise hit_count by exactly two.
    """

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry for key, recording a hit, or None on a miss."""

    @abstractmethod
    async def put(
        self, key: str, content_type: ContentType, content: IdentifiedContent
    ) -> None:
        """Upsert the resolution for key (hit_count restarts at 1)."""

    async def close(self) -> None:
        """Release backend resources."""
        return None
