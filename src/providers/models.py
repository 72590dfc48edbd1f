# src/providers/models.py - v1
"""Normalized views of upstream payloads.

Providers translate vendor JSON into these models so the pipeline never
touches raw dictionaries.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

CatalogType = Literal["movie", "tv"]


def year_of(date: str | None) -> int:
    """Year from an ISO date ("1999-03-30" -> 1999); 0 when unknown."""
    if not date:
        return 0
    head = date.split("-", 1)[0]
    return int(head) if head.isdigit() else 0


class CatalogTitle(BaseModel):
    """One movie or series record from the catalog."""

    id: int
    media_type: CatalogType
    title: str
    release_date: str | None = None
    overview: str = ""
    poster_path: str | None = None
    vote_average: float = 0.0
    genre_ids: list[int] = Field(default_factory=list)

    @property
    def year(self) -> int:
        return year_of(self.release_date)


class WatchProviders(BaseModel):
    """Region-scoped watch-provider listing for one catalog title."""

    link: str = ""
    flatrate: list[str] = Field(default_factory=list)
    free: list[str] = Field(default_factory=list)
    ads: list[str] = Field(default_factory=list)
    rent: list[str] = Field(default_factory=list)
    buy: list[str] = Field(default_factory=list)


class StreamingOffer(BaseModel):
    """A single per-service offer from the deep-link availability provider."""

    service_name: str
    offer_type: Literal["free", "subscription", "rent", "buy"]
    link: str
    price: str | None = None


class AvailabilityShow(BaseModel):
    """A show candidate returned by the deep-link availability search."""

    title: str
    year: int = 0
    offers: list[StreamingOffer] = Field(default_factory=list)


class VideoMetadata(BaseModel):
    """Video-platform metadata for one video ID."""

    video_id: str
    title: str
    published_at: str | None = None
    description: str = ""
    channel_title: str | None = None
    thumbnail_url: str = ""

    @property
    def watch_url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"
