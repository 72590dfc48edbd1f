# src/cache/sqlite_store.py - v2
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3. A hit is recorded with a single
UPDATE ... SET hit_count = hit_count + 1 ... RETURNING statement, so the
increment is atomic even with several processes sharing the database file.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from reelfinder.cache.base_cache_store import BaseCacheStore
from reelfinder.cache.models import CacheEntry, ContentType, utcnow
from reelfinder.core.models import IdentifiedContent

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS search_cache (
    input_hash TEXT PRIMARY KEY,
    content_type TEXT NOT NULL,
    identified_title TEXT NOT NULL,
    identified_year INTEGER,
    media_kind TEXT,
    catalog_id INTEGER,
    external_ref_id TEXT,
    data TEXT NOT NULL,
    hit_count INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    last_accessed_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_catalog_id ON search_cache(catalog_id);
"""

_UPSERT = """
INSERT INTO search_cache
    (input_hash, content_type, identified_title, identified_year, media_kind,
     catalog_id, external_ref_id, data, hit_count, created_at, last_accessed_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
ON CONFLICT(input_hash) DO UPDATE SET
    content_type = excluded.content_type,
    identified_title = excluded.identified_title,
    identified_year = excluded.identified_year,
    media_kind = excluded.media_kind,
    catalog_id = excluded.catalog_id,
    external_ref_id = excluded.external_ref_id,
    data = excluded.data,
    hit_count = 1,
    created_at = excluded.created_at,
    last_accessed_at = excluded.last_accessed_at
"""

_RECORD_HIT = """
UPDATE search_cache
   SET hit_count = hit_count + 1, last_accessed_at = ?
 WHERE input_hash = ?
RETURNING content_type, data, hit_count, created_at, last_accessed_at
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, key: str) -> CacheEntry | None:
        """Record a hit and return the updated entry."""
        with self._lock, self._conn:
            rows = self._conn.execute(
                _RECORD_HIT, (utcnow().isoformat(), key)
            ).fetchall()
        if not rows:
            return None

        content_type, data, hit_count, created_at, last_accessed_at = rows[0]
        try:
            content = IdentifiedContent.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None

        return CacheEntry.from_content(key, content_type, content).model_copy(
            update={
                "hit_count": hit_count,
                "created_at": datetime.fromisoformat(created_at),
                "last_accessed_at": datetime.fromisoformat(last_accessed_at),
            }
        )

    async def put(
        self, key: str, content_type: ContentType, content: IdentifiedContent
    ) -> None:
        """Store a cache entry (upsert keyed by input hash)."""
        now = utcnow().isoformat()
        with self._lock, self._conn:
            self._conn.execute(
                _UPSERT,
                (
                    key,
                    content_type,
                    content.title,
                    content.year,
                    content.media_kind.value,
                    content.catalog_id,
                    content.external_ref_id,
                    content.model_dump_json(),
                    now,
                    now,
                ),
            )

    async def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
