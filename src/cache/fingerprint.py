# src/cache/fingerprint.py - v3
"""Content-addressed cache keys.

Images hash their raw bytes; text and URLs hash the trimmed, lowercased
string, so "The Matrix " and "the matrix" share one entry.
"""

from __future__ import annotations

import hashlib

from reelfinder.cache.models import ContentType
from reelfinder.core.models import ImageQuery, TextQuery, UrlQuery


def normalize_input(raw: str) -> str:
    """Normalization applied to text/URL inputs before hashing."""
    return raw.strip().lower()


def compute_input_hash(query: ImageQuery | TextQuery | UrlQuery) -> str:
    """SHA-256 hex digest identifying a query."""
    if isinstance(query, ImageQuery):
        payload = query.data
    else:
        payload = normalize_input(query.raw).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def content_type_of(query: ImageQuery | TextQuery | UrlQuery) -> ContentType:
    """Cache content_type column for a query."""
    return query.kind
