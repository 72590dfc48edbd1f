# src/core/similarity.py - v3
"""Title similarity scoring.

Pure functions, no I/O. Scores are in [0, 1]:
  1.0       normalized strings are identical (or both empty)
  < 0.95    one normalized string contains the other (length ratio * 0.95)
  otherwise 1 - levenshtein / max_len, floored at 0
"""

from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein

CONTAINMENT_WEIGHT = 0.95

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    text = _NON_ALNUM_RE.sub("", title.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def title_similarity(query: str, candidate: str) -> float:
    """Score how well a candidate title matches a query.

    Args:
        query: Title as typed, read from an image, or reported by a model.
        candidate: Title returned by an upstream catalog.

    Returns:
        Confidence in [0, 1].
    """
    a = normalize_title(query)
    b = normalize_title(candidate)

    if a == b:
        return 1.0

    if a in b or b in a:
        shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
        return len(shorter) / len(longer) * CONTAINMENT_WEIGHT

    max_len = max(len(a), len(b))
    distance = Levenshtein.distance(a, b)
    return max(0.0, 1.0 - distance / max_len)
