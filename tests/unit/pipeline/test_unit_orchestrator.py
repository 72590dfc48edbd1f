# tests/unit/pipeline/test_unit_orchestrator.py - v2
"""Tests for pipeline/orchestrator.py and pipeline/state.py."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from reelfinder.cache.memory_store import MemoryCacheStore
from reelfinder.cache.null_store import NullCacheStore
from reelfinder.core.errors import UpstreamUnavailable
from reelfinder.core.models import (
    IdentifiedContent,
    ImageQuery,
    OfferType,
    StreamingSource,
    TextQuery,
)
from reelfinder.pipeline.enrichment import Enricher
from reelfinder.pipeline.orchestrator import ResolutionPipeline
from reelfinder.pipeline.stages.base_stage import BaseStage
from reelfinder.pipeline.state import PipelineRun, PipelineStep


class ScriptedStage(BaseStage):
    """Stage returning canned results and counting calls."""

    def __init__(self, name, step, results=None, error=None, available=True):
        self._name = name
        self._step = step
        self._results = results or []
        self._error = error
        self._available = available
        self.calls = 0

    @property
    def name(self):
        return self._name

    @property
    def step(self):
        return self._step

    @property
    def available(self):
        return self._available

    async def resolve(self, query):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return list(self._results)


def _content(title: str, confidence: float = 0.9) -> IdentifiedContent:
    return IdentifiedContent(title=title, confidence=confidence)


@pytest.fixture
def enricher():
    mock = MagicMock(spec=Enricher)
    source = StreamingSource(provider_name="Netflix", deep_link="https://n.test", offer_type=OfferType.SUBSCRIPTION)

    async def enrich_all(results):
        return [r.model_copy(update={"streaming_sources": [source]}) for r in results]

    mock.enrich_all = AsyncMock(side_effect=enrich_all)
    return mock


def _stages(direct=None, catalog=None, ai=None):
    return [
        ScriptedStage("direct", PipelineStep.DIRECT_ID, direct),
        ScriptedStage("catalog", PipelineStep.FUZZY_CATALOG, catalog),
        ScriptedStage("ai", PipelineStep.AI_FALLBACK, ai),
    ]


class TestCascade:
    @pytest.mark.asyncio
    async def test_first_success_short_circuits(self, settings, enricher):
        stages = _stages(catalog=[_content("Heat")], ai=[_content("Ronin")])
        pipeline = ResolutionPipeline(settings, MemoryCacheStore(), stages, enricher)
        run = await pipeline.run(TextQuery(raw="heat"))
        assert [r.title for r in run.results] == ["Heat"]
        assert run.resolved_by == "catalog"
        assert [s.calls for s in stages] == [1, 1, 0]
        assert run.trace == [
            PipelineStep.CACHE_LOOKUP, PipelineStep.DIRECT_ID, PipelineStep.FUZZY_CATALOG,
            PipelineStep.ENRICHMENT, PipelineStep.CACHE_WRITE, PipelineStep.DONE,
        ]
        assert run.results[0].streaming_sources[0].provider_name == "Netflix"

    @pytest.mark.asyncio
    async def test_no_results(self, settings, enricher):
        cache = MemoryCacheStore()
        pipeline = ResolutionPipeline(settings, cache, _stages(), enricher)
        run = await pipeline.run(TextQuery(raw="asdfgh"))
        assert run.results == []
        assert run.resolved_by is None
        assert run.trace[-2:] == [PipelineStep.AI_FALLBACK, PipelineStep.DONE]
        assert run.finished
        enricher.enrich_all.assert_not_awaited()
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_upstream_failure_moves_on(self, settings, enricher):
        stages = [
            ScriptedStage("direct", PipelineStep.DIRECT_ID, error=UpstreamUnavailable("tmdb", "down")),
            ScriptedStage("ai", PipelineStep.AI_FALLBACK, [_content("Heat")]),
        ]
        pipeline = ResolutionPipeline(settings, MemoryCacheStore(), stages, enricher)
        assert [r.title for r in await pipeline.identify(TextQuery(raw="heat"))] == ["Heat"]

    @pytest.mark.asyncio
    async def test_unavailable_stage_skipped(self, settings, enricher):
        skipped = ScriptedStage("direct", PipelineStep.DIRECT_ID, [_content("X")], available=False)
        stages = [skipped, ScriptedStage("ai", PipelineStep.AI_FALLBACK, [_content("Heat")])]
        pipeline = ResolutionPipeline(settings, MemoryCacheStore(), stages, enricher)
        run = await pipeline.run(TextQuery(raw="heat"))
        assert skipped.calls == 0
        assert run.resolved_by == "ai"

    @pytest.mark.asyncio
    async def test_multiple_results_all_enriched(self, settings, enricher):
        stages = _stages(ai=[_content("Heat"), _content("Ronin")])
        pipeline = ResolutionPipeline(settings, MemoryCacheStore(), stages, enricher)
        results = await pipeline.identify(ImageQuery(data=b"img"))
        assert [r.title for r in results] == ["Heat", "Ronin"]
        assert all(r.streaming_sources for r in results)


class TestCache:
    @pytest.mark.asyncio
    async def test_second_request_is_a_hit(self, settings, enricher):
        stages = _stages(catalog=[_content("Heat")])
        pipeline = ResolutionPipeline(settings, MemoryCacheStore(), stages, enricher)
        first = await pipeline.run(TextQuery(raw="Heat "))
        second = await pipeline.run(TextQuery(raw="heat"))
        assert second.cache_hit
        assert second.hit_count == 2
        assert second.resolved_by == "cache"
        assert second.trace == [PipelineStep.CACHE_LOOKUP, PipelineStep.DONE]
        assert second.results == first.results
        assert stages[1].calls == 1
        assert enricher.enrich_all.await_count == 1

    @pytest.mark.asyncio
    async def test_only_first_result_cached(self, settings, enricher):
        cache = MemoryCacheStore()
        stages = _stages(ai=[_content("Heat"), _content("Ronin")])
        pipeline = ResolutionPipeline(settings, cache, stages, enricher)
        await pipeline.run(ImageQuery(data=b"img"))
        second = await pipeline.run(ImageQuery(data=b"img"))
        assert [r.title for r in second.results] == ["Heat"]

    @pytest.mark.asyncio
    async def test_disabled_cache(self, settings_factory, enricher):
        settings = settings_factory(cache_enabled=False)
        cache = MemoryCacheStore()
        stages = _stages(catalog=[_content("Heat")])
        pipeline = ResolutionPipeline(settings, cache, stages, enricher)
        await pipeline.run(TextQuery(raw="heat"))
        run = await pipeline.run(TextQuery(raw="heat"))
        assert not run.cache_hit
        assert stages[1].calls == 2
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_refresh_sources_on_hit(self, settings_factory, enricher):
        settings = settings_factory(cache_refresh_sources=True)
        pipeline = ResolutionPipeline(settings, MemoryCacheStore(), _stages(catalog=[_content("Heat")]), enricher)
        await pipeline.run(TextQuery(raw="heat"))
        run = await pipeline.run(TextQuery(raw="heat"))
        assert run.cache_hit
        assert enricher.enrich_all.await_count == 2

    @pytest.mark.asyncio
    async def test_broken_cache_degrades_to_miss(self, settings, enricher):
        cache = MagicMock(spec=NullCacheStore)
        cache.get = AsyncMock(side_effect=OSError("disk gone"))
        cache.put = AsyncMock(side_effect=OSError("disk gone"))
        pipeline = ResolutionPipeline(settings, cache, _stages(catalog=[_content("Heat")]), enricher)
        run = await pipeline.run(TextQuery(raw="heat"))
        assert [r.title for r in run.results] == ["Heat"]
        assert run.finished


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_aclose_runs_closers(self, settings, enricher):
        closer = AsyncMock()
        cache = MagicMock(spec=MemoryCacheStore)
        cache.close = AsyncMock()
        pipeline = ResolutionPipeline(settings, cache, [], enricher, closers=[closer])
        await pipeline.aclose()
        closer.assert_awaited_once()
        cache.close.assert_awaited_once()

    def test_stages_copy(self, settings, enricher):
        stages = _stages()
        pipeline = ResolutionPipeline(settings, MemoryCacheStore(), stages, enricher)
        assert pipeline.stages == stages
        assert pipeline.stages is not stages


class TestPipelineRun:
    def test_visit_collapses_repeats(self):
        run = PipelineRun()
        for step in (PipelineStep.CACHE_LOOKUP, PipelineStep.DIRECT_ID, PipelineStep.DIRECT_ID, PipelineStep.DONE):
            run.visit(step)
        assert run.trace_str() == "cache_lookup -> direct_id -> done"
        assert run.finished

    def test_run_ids_unique(self):
        assert PipelineRun().run_id != PipelineRun().run_id
        assert len(PipelineRun().run_id) == 12

    def test_not_finished_initially(self):
        assert not PipelineRun().finished
