# src/api/facade.py - v2
"""Public API facade: single entry point for content identification.

Usage:
    from reelfinder.api.facade import identify
    response = await identify(SearchRequest(query="The Matrix"))
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import TYPE_CHECKING

from reelfinder.api.models import SearchRequest, SearchResponse
from reelfinder.config.settings import Settings
from reelfinder.core.errors import InputError
from reelfinder.core.models import ContentQuery, ImageQuery, text_query

if TYPE_CHECKING:
    from reelfinder.pipeline.orchestrator import ResolutionPipeline

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/jpeg"


def build_query(request: SearchRequest) -> ContentQuery:
    """Turn a request into a ContentQuery.

    An image takes precedence over a text query. Text that looks like a link
    becomes a URL query.

    Raises:
        InputError: No image and no non-blank query, or invalid base64.
    """
    if request.image_base64:
        return ImageQuery(
            data=decode_image(request.image_base64),
            mime_type=request.mime_type or DEFAULT_IMAGE_MIME,
        )
    if request.query and request.query.strip():
        return text_query(request.query)
    raise InputError("Provide either imageBase64 or a non-empty query")


def decode_image(image_base64: str) -> bytes:
    """Decode base64 image data, accepting an optional data: URL prefix."""
    payload = image_base64.strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError("imageBase64 is not valid base64") from e
    if not data:
        raise InputError("imageBase64 is empty")
    return data


async def identify(
    request: SearchRequest,
    pipeline: ResolutionPipeline | None = None,
    settings: Settings | None = None,
    request_id: str | None = None,
) -> SearchResponse:
    """Identify the title(s) an image, phrase or link refers to.

    Args:
        request: Inbound request.
        pipeline: Pipeline to run. Built from settings (and closed after
            the call) when None.
        settings: Settings used to build a pipeline. Loaded from .env if None.
        request_id: Correlation ID for logs.

    Returns:
        SearchResponse with zero or more results.

    Raises:
        InputError: The request carries no usable query.
    """
    query = build_query(request)

    if pipeline is not None:
        run = await pipeline.run(query, request_id=request_id)
        return SearchResponse(results=run.results)

    from reelfinder.pipeline.pipeline_factory import build_pipeline

    owned = build_pipeline(settings or Settings())
    try:
        run = await owned.run(query, request_id=request_id)
    finally:
        await owned.aclose()
    return SearchResponse(results=run.results)
