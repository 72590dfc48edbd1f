# src/cache/memory_store.py - v1
"""Process-local cache store (default CACHE_BACKEND=memory).

Entries live for the lifetime of the process. A lock serializes the
read-modify-write of hit bookkeeping so concurrent hits are never lost.
"""

from __future__ import annotations

import threading

from reelfinder.cache.base_cache_store import BaseCacheStore
from reelfinder.cache.models import CacheEntry, ContentType, utcnow
from reelfinder.core.models import IdentifiedContent


class MemoryCacheStore(BaseCacheStore):
    """Dictionary-backed cache store."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve entry and record the hit."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            updated = entry.model_copy(
                update={
                    "hit_count": entry.hit_count + 1,
                    "last_accessed_at": utcnow(),
                }
            )
            self._entries[key] = updated
            return updated

    async def put(
        self, key: str, content_type: ContentType, content: IdentifiedContent
    ) -> None:
        """Store (or overwrite) an entry."""
        entry = CacheEntry.from_content(key, content_type, content)
        with self._lock:
            self._entries[key] = entry

    def __len__(self) -> int:
        return len(self._entries)
