# src/core/models.py - v2
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
Wire names are camelCase (alias generator), Python attributes are snake_case.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


class _WireModel(BaseModel):
    """Base for models serialized to API clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === ENUMS ===


class MediaKind(str, Enum):
    """What sort of title was identified."""

    MOVIE = "movie"
    SERIES = "series"
    DOCUMENTARY = "documentary"
    VIDEO = "video"

    @property
    def catalog_type(self) -> Literal["movie", "tv"]:
        """Catalog endpoint family ("movie" or "tv") for this kind."""
        return "tv" if self is MediaKind.SERIES else "movie"


class OfferType(str, Enum):
    """Commercial relationship of a streaming offer.

    Declaration order is the priority order: FREE outranks SUBSCRIPTION,
    which outranks RENT, which outranks BUY.
    """

    FREE = "free"
    SUBSCRIPTION = "subscription"
    RENT = "rent"
    BUY = "buy"

    @property
    def rank(self) -> int:
        """Position in the priority order (0 = best)."""
        return _OFFER_ORDER.index(self)

    @property
    def is_paid_transaction(self) -> bool:
        return self in (OfferType.RENT, OfferType.BUY)

    @classmethod
    def best(cls, a: OfferType, b: OfferType) -> OfferType:
        """Return the higher-priority of two offer types."""
        return min(a, b, key=lambda o: o.rank)


_OFFER_ORDER: list[OfferType] = list(OfferType)


# === QUERY (tagged union) ===


class ImageQuery(BaseModel):
    """Raw image bytes submitted for identification."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    data: bytes
    mime_type: str = "image/jpeg"


class TextQuery(BaseModel):
    """Free-text phrase."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    raw: str


class UrlQuery(BaseModel):
    """A link, possibly to a known catalog or video platform."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["url"] = "url"
    raw: str


ContentQuery = Annotated[
    Union[ImageQuery, TextQuery, UrlQuery], Field(discriminator="kind")
]


def is_url(text: str) -> bool:
    """Whether a text query should be treated as a URL."""
    return bool(_URL_RE.match(text.strip()))


def text_query(raw: str) -> TextQuery | UrlQuery:
    """Build a text query, promoting it to UrlQuery when it looks like a link."""
    stripped = raw.strip()
    if is_url(stripped):
        return UrlQuery(raw=stripped)
    return TextQuery(raw=stripped)


# === RESULTS ===


class StreamingSource(_WireModel):
    """A place to watch a title."""

    provider_name: str
    logo_url: str = ""
    deep_link: str
    offer_type: OfferType
    price: str | None = None


class IdentifiedContent(_WireModel):
    """A resolved title with confidence and places to watch it."""

    title: str
    year: int = 0
    media_kind: MediaKind = MediaKind.MOVIE
    genres: list[str] = Field(default_factory=list)
    rating: float = Field(default=0.0, ge=0.0, le=10.0)
    runtime: str | None = None
    synopsis: str = ""
    poster_url: str = ""
    confidence: float = Field(ge=0.0, le=1.0)
    catalog_id: int | None = None
    external_ref_id: str | None = None
    release_date: str | None = None
    video_url: str | None = None
    channel_name: str | None = None
    streaming_sources: list[StreamingSource] = Field(default_factory=list)
