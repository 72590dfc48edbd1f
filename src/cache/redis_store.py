# src/cache/redis_store.py - v2
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for multi-instance deployments. Each entry is a Redis hash; hits
use HINCRBY, which is atomic server-side.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import ValidationError

from reelfinder.cache.base_cache_store import BaseCacheStore
from reelfinder.cache.models import CacheEntry, ContentType, utcnow
from reelfinder.core.models import IdentifiedContent

logger = logging.getLogger(__name__)

_KEY_PREFIX = "reelfinder:cache:"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed cache store for distributed deployments."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> CacheEntry | None:
        """Record a hit and return the updated entry."""
        redis_key = f"{_KEY_PREFIX}{key}"
        if not self._client.exists(redis_key):
            return None

        pipe = self._client.pipeline(transaction=True)
        pipe.hincrby(redis_key, "hit_count", 1)
        pipe.hset(redis_key, "last_accessed_at", utcnow().isoformat())
        pipe.hgetall(redis_key)
        hit_count, _, fields = pipe.execute()

        try:
            content = IdentifiedContent.model_validate_json(fields["data"])
        except (KeyError, ValidationError) as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None

        return CacheEntry.from_content(key, fields["content_type"], content).model_copy(
            update={
                "hit_count": int(hit_count),
                "created_at": datetime.fromisoformat(fields["created_at"]),
                "last_accessed_at": datetime.fromisoformat(fields["last_accessed_at"]),
            }
        )

    async def put(
        self, key: str, content_type: ContentType, content: IdentifiedContent
    ) -> None:
        """Store a cache entry, replacing any previous one."""
        redis_key = f"{_KEY_PREFIX}{key}"
        now = utcnow().isoformat()
        pipe = self._client.pipeline(transaction=True)
        pipe.delete(redis_key)
        pipe.hset(
            redis_key,
            mapping={
                "content_type": content_type,
                "data": content.model_dump_json(),
                "hit_count": 1,
                "created_at": now,
                "last_accessed_at": now,
            },
        )
        pipe.execute()

    async def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
