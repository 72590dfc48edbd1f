# src/cache/models.py - v2
"""Cache domain model: CacheEntry.

A CacheEntry is an IdentifiedContent flattened together with its
bookkeeping columns, keyed by the hash of the normalized input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import Field

from reelfinder.core.models import IdentifiedContent

ContentType = Literal["image", "text", "url"]

_BOOKKEEPING_FIELDS = {
    "input_hash",
    "content_type",
    "hit_count",
    "created_at",
    "last_accessed_at",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheEntry(IdentifiedContent):
    """Single cached resolution."""

    input_hash: str
    content_type: ContentType
    hit_count: int = 1
    created_at: datetime = Field(default_factory=utcnow)
    last_accessed_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_content(
        cls,
        input_hash: str,
        content_type: ContentType,
        content: IdentifiedContent,
    ) -> CacheEntry:
        """Fresh entry (hit_count 1) for a newly resolved input."""
        now = utcnow()
        return cls(
            **content.model_dump(),
            input_hash=input_hash,
            content_type=content_type,
            hit_count=1,
            created_at=now,
            last_accessed_at=now,
        )

    def to_content(self) -> IdentifiedContent:
        """Strip bookkeeping and return the cached IdentifiedContent."""
        return IdentifiedContent(**self.model_dump(exclude=_BOOKKEEPING_FIELDS))

    def content_json(self) -> str:
        """JSON of the IdentifiedContent part only."""
        return self.to_content().model_dump_json()
