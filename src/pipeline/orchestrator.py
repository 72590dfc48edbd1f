# src/pipeline/orchestrator.py - v2
"""Resolution pipeline: cache, stage cascade, enrichment, cache write.

States, in order:
  cache_lookup -> direct_id -> fuzzy_catalog -> ai_fallback
               -> enrichment -> cache_write -> done

A cache hit jumps to done. The first stage that returns results jumps to
enrichment; the remaining stages never run. If no stage resolves anything
the run ends with an empty result list and nothing is cached.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from reelfinder.cache.fingerprint import compute_input_hash, content_type_of
from reelfinder.cache.null_store import NullCacheStore
from reelfinder.core.models import ContentQuery, IdentifiedContent
from reelfinder.logging.context import set_request_context
from reelfinder.pipeline.state import PipelineRun, PipelineStep

if TYPE_CHECKING:
    from reelfinder.cache.base_cache_store import BaseCacheStore
    from reelfinder.cache.models import CacheEntry
    from reelfinder.config.settings import Settings
    from reelfinder.pipeline.enrichment import Enricher
    from reelfinder.pipeline.stages.base_stage import BaseStage

logger = logging.getLogger(__name__)


class ResolutionPipeline:
    """Runs the identification cascade for one query at a time.

    Args:
        settings: Application settings (cache flags).
        cache: Cache store. Replaced by a no-op store when caching is disabled.
        stages: Stages in cascade order.
        enricher: Completes results and attaches streaming sources.
        closers: Async callables run by aclose() (HTTP clients, cache).
    """

    def __init__(
        self,
        settings: Settings,
        cache: BaseCacheStore,
        stages: list[BaseStage],
        enricher: Enricher,
        closers: list[Callable[[], Awaitable[Any]]] | None = None,
    ) -> None:
        self._settings = settings
        self._cache = cache if settings.cache_enabled else NullCacheStore()
        self._stages = list(stages)
        self._enricher = enricher
        self._closers = list(closers or [])

    @property
    def stages(self) -> list[BaseStage]:
        return list(self._stages)

    async def identify(self, query: ContentQuery) -> list[IdentifiedContent]:
        """Identify a query; see run() for the full trace."""
        run = await self.run(query)
        return run.results

    async def run(self, query: ContentQuery, request_id: str | None = None) -> PipelineRun:
        """Execute the cascade for one query.

        Args:
            query: Image, text or URL query.
            request_id: Correlation ID for logs (defaults to the run ID).

        Returns:
            Finished PipelineRun; results may be empty.
        """
        start = time.monotonic()
        run = PipelineRun(
            input_hash=compute_input_hash(query),
            content_type=content_type_of(query),
        )
        set_request_context(request_id or run.run_id, run.run_id)
        logger.info("Identifying %s query (hash %s)", run.content_type, run.input_hash[:12])

        run.visit(PipelineStep.CACHE_LOOKUP)
        entry = await self._cache_get(run.input_hash)
        if entry is not None:
            run.cache_hit = True
            run.hit_count = entry.hit_count
            run.resolved_by = "cache"
            run.results = [await self._from_cache(entry)]
            return self._finish(run, start)

        results: list[IdentifiedContent] = []
        for stage in self._stages:
            run.visit(stage.step)
            results = await stage.run(query)
            if results:
                run.resolved_by = stage.name
                break

        if not results:
            return self._finish(run, start)

        run.visit(PipelineStep.ENRICHMENT)
        run.results = await self._enricher.enrich_all(results)

        run.visit(PipelineStep.CACHE_WRITE)
        await self._cache_put(run, run.results[0])
        return self._finish(run, start)

    async def aclose(self) -> None:
        """Release HTTP clients and the cache connection."""
        for closer in self._closers:
            await closer()
        await self._cache.close()

    # --- Internal helpers ---

    async def _from_cache(self, entry: CacheEntry) -> IdentifiedContent:
        content = entry.to_content()
        if not self._settings.cache_refresh_sources:
            return content
        logger.info("Refreshing streaming sources for cached %r", content.title)
        [refreshed] = await self._enricher.enrich_all([content])
        return refreshed

    async def _cache_get(self, key: str) -> CacheEntry | None:
        try:
            entry = await self._cache.get(key)
        except Exception:
            # A broken cache backend degrades to a miss.
            logger.warning("Cache lookup failed for %s", key[:12], exc_info=True)
            return None
        if entry is not None:
            logger.info("Cache hit (hit_count=%d)", entry.hit_count)
        return entry

    async def _cache_put(self, run: PipelineRun, content: IdentifiedContent) -> None:
        try:
            await self._cache.put(run.input_hash, run.content_type, content)
        except Exception:
            logger.warning("Cache write failed for %s", run.input_hash[:12], exc_info=True)

    @staticmethod
    def _finish(run: PipelineRun, start: float) -> PipelineRun:
        run.visit(PipelineStep.DONE)
        logger.info(
            "Resolved %d result(s) via %s in %.2fs [%s]",
            len(run.results), run.resolved_by or "nothing",
            time.monotonic() - start, run.trace_str(),
        )
        return run
