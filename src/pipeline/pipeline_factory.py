# src/pipeline/pipeline_factory.py - v1
"""Assemble a ResolutionPipeline from Settings.

All provider clients share one httpx.AsyncClient. Collaborators without
credentials are still constructed; their stages report themselves
unavailable and are skipped.
"""

from __future__ import annotations

import logging

import httpx

from reelfinder.cache.base_cache_store import BaseCacheStore
from reelfinder.cache.cache_factory import create_cache_store
from reelfinder.config.settings import Settings
from reelfinder.core.retry import RetryConfig
from reelfinder.llm.client_factory import create_optional_client
from reelfinder.pipeline.enrichment import Enricher
from reelfinder.pipeline.orchestrator import ResolutionPipeline
from reelfinder.pipeline.stages.ai_identifier import AiIdentifierStage
from reelfinder.pipeline.stages.catalog_search import CatalogSearchStage
from reelfinder.pipeline.stages.direct_id import ExternalRefStage, VideoLinkStage
from reelfinder.pipeline.streaming_sources import StreamingSourceResolver
from reelfinder.providers.streaming_availability import StreamingAvailabilityClient
from reelfinder.providers.tmdb import TmdbClient
from reelfinder.providers.web_page import WebPageClient
from reelfinder.providers.youtube import YouTubeClient

logger = logging.getLogger(__name__)


def build_pipeline(
    settings: Settings,
    http: httpx.AsyncClient | None = None,
    cache: BaseCacheStore | None = None,
) -> ResolutionPipeline:
    """Wire collaborators, stages and cache into a pipeline.

    Args:
        settings: Application settings.
        http: Shared HTTP client. Created (and owned by the pipeline) if None.
        cache: Cache store override. Defaults to create_cache_store(settings).

    Returns:
        Ready-to-use ResolutionPipeline.
    """
    owns_http = http is None
    http = http or httpx.AsyncClient(timeout=settings.http_timeout_s)
    retry = RetryConfig.from_settings(settings)
    common = {"http": http, "retry": retry, "timeout_s": settings.http_timeout_s}

    tmdb = TmdbClient(api_key=settings.tmdb_api_key, **common)
    youtube = YouTubeClient(api_key=settings.youtube_api_key, **common)
    availability = StreamingAvailabilityClient(
        api_key=settings.streaming_availability_api_key,
        country=settings.streaming_country,
        **common,
    )
    web_page = WebPageClient(
        user_agent=settings.http_user_agent,
        max_chars=settings.page_context_max_chars,
        **common,
    )

    stages = [
        VideoLinkStage(youtube),
        ExternalRefStage(tmdb),
        CatalogSearchStage(tmdb, accept_threshold=settings.catalog_accept_threshold),
        AiIdentifierStage(
            text_client=create_optional_client(settings.text_provider, settings.text_model, settings),
            vision_client=create_optional_client(
                settings.vision_provider, settings.vision_model, settings,
            ),
            web_page=web_page,
            prefer_vision=settings.prefer_vision_backend,
            temperature=settings.llm_temperature,
            max_tokens_image=settings.llm_max_tokens_image,
            max_tokens_text=settings.llm_max_tokens_text,
            retry=retry,
        ),
    ]

    resolver = StreamingSourceResolver(
        tmdb=tmdb,
        availability=availability,
        match_threshold=settings.streaming_match_threshold,
        year_bonus=settings.streaming_year_bonus,
        region=settings.watch_region,
    )

    configured = [name for name, ok in settings.configured_collaborators().items() if ok]
    logger.info("Pipeline assembled; configured collaborators: %s", ", ".join(configured) or "none")

    return ResolutionPipeline(
        settings=settings,
        cache=cache if cache is not None else create_cache_store(settings),
        stages=stages,
        enricher=Enricher(tmdb, resolver),
        closers=[http.aclose] if owns_http else [],
    )
