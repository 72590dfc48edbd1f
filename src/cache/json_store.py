# src/cache/json_store.py - v2
"""JSON file-based cache store (CACHE_BACKEND=json).

Stores cache entries as individual JSON files under CACHE_ROOT. Hit
bookkeeping is serialized by an in-process lock; the store is meant for a
single worker process.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from pydantic import ValidationError

from reelfinder.cache.base_cache_store import BaseCacheStore
from reelfinder.cache.models import CacheEntry, ContentType, utcnow
from reelfinder.core.models import IdentifiedContent

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key and record the hit."""
        path = self._entry_path(key)
        with self._lock:
            if not path.exists():
                return None
            try:
                entry = CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.warning("Failed to read cache entry %s: %s", key, e)
                return None

            entry = entry.model_copy(
                update={
                    "hit_count": entry.hit_count + 1,
                    "last_accessed_at": utcnow(),
                }
            )
            self._write(path, entry)
            return entry

    async def put(
        self, key: str, content_type: ContentType, content: IdentifiedContent
    ) -> None:
        """Store a cache entry (overwrites an existing file)."""
        entry = CacheEntry.from_content(key, content_type, content)
        with self._lock:
            self._write(self._entry_path(key), entry)

    def _write(self, path: Path, entry: CacheEntry) -> None:
        tmp = path.with_suffix(".tmp")
        tmp.write_text(entry.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"
