# src/api/models.py - v2
"""API-level models: SearchRequest, SearchResponse, ErrorResponse, HealthResponse.

Field names on the wire are camelCase.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reelfinder.core.models import IdentifiedContent


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchRequest(_ApiModel):
    """Identification request: an image (base64) or a text/URL query.

    When both are present the image wins.
    """

    image_base64: str | None = None
    mime_type: str | None = None
    query: str | None = None


class SearchResponse(_ApiModel):
    """Identified titles (possibly none)."""

    results: list[IdentifiedContent] = Field(default_factory=list)


class ErrorResponse(_ApiModel):
    """Error body; results is always present and empty."""

    error: str
    results: list[IdentifiedContent] = Field(default_factory=list)


class HealthResponse(_ApiModel):
    status: str = "ok"
    version: str
    cache_backend: str
    collaborators: dict[str, bool] = Field(default_factory=dict)
