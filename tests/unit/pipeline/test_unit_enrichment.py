# tests/unit/pipeline/test_unit_enrichment.py - v2
"""Tests for pipeline/enrichment.py."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from reelfinder.core.errors import UpstreamUnavailable
from reelfinder.core.models import IdentifiedContent, MediaKind, OfferType, StreamingSource
from reelfinder.pipeline.enrichment import Enricher, pick_catalog_match
from reelfinder.pipeline.streaming_sources import StreamingSourceResolver
from reelfinder.providers.models import CatalogTitle
from reelfinder.providers.tmdb import TmdbClient

NETFLIX = StreamingSource(provider_name="Netflix", deep_link="https://n.test", offer_type=OfferType.SUBSCRIPTION)


def _title(id_: int, date: str | None, poster: str | None = "/p.jpg") -> CatalogTitle:
    return CatalogTitle(id=id_, media_type="movie", title="Dune", release_date=date, poster_path=poster)


@pytest.fixture
def tmdb():
    client = MagicMock(spec=TmdbClient)
    client.available = True
    client.search = AsyncMock(return_value=[])
    client.external_ids = AsyncMock(return_value=None)
    return client


@pytest.fixture
def resolver():
    streaming = MagicMock(spec=StreamingSourceResolver)
    streaming.resolve = AsyncMock(return_value=[NETFLIX])
    return streaming


class TestPickCatalogMatch:
    def test_prefers_year(self):
        candidates = [_title(1, "1984-12-14"), _title(2, "2021-09-15")]
        assert pick_catalog_match(candidates, 2021).id == 2

    def test_first_when_no_year_match(self):
        candidates = [_title(1, "1984-12-14"), _title(2, "2021-09-15")]
        assert pick_catalog_match(candidates, 2000).id == 1
        assert pick_catalog_match(candidates, 0).id == 1

    def test_empty(self):
        assert pick_catalog_match([], 2021) is None


class TestEnricher:
    @pytest.mark.asyncio
    async def test_fills_catalog_fields_and_external_id(self, tmdb, resolver):
        tmdb.search.return_value = [_title(1, "1984-12-14"), _title(438631, "2021-09-15", "/dune.jpg")]
        tmdb.external_ids.return_value = "tt1160419"
        content = IdentifiedContent(title="Dune", year=2021, confidence=0.8)
        enriched = await Enricher(tmdb, resolver).enrich(content)
        assert enriched.catalog_id == 438631
        assert enriched.poster_url == "https://image.tmdb.org/t/p/w500/dune.jpg"
        assert enriched.external_ref_id == "tt1160419"
        assert enriched.streaming_sources == [NETFLIX]
        tmdb.search.assert_awaited_once_with("Dune", "movie")
        tmdb.external_ids.assert_awaited_once_with(438631, "movie")
        # The resolver sees the enriched fields.
        assert resolver.resolve.await_args.args[0].external_ref_id == "tt1160419"

    @pytest.mark.asyncio
    async def test_complete_result_skips_catalog_search(self, tmdb, resolver, sample_content):
        tmdb.external_ids.return_value = "tt0133093"
        enriched = await Enricher(tmdb, resolver).enrich(sample_content)
        tmdb.search.assert_not_awaited()
        assert enriched.external_ref_id == "tt0133093"
        assert enriched.catalog_id == 603

    @pytest.mark.asyncio
    async def test_known_external_id_not_refetched(self, tmdb, resolver, sample_content):
        content = sample_content.model_copy(update={"external_ref_id": "tt0133093"})
        await Enricher(tmdb, resolver).enrich(content)
        tmdb.external_ids.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_series_uses_tv_catalog(self, tmdb, resolver):
        content = IdentifiedContent(title="Dark", media_kind=MediaKind.SERIES, confidence=0.8)
        await Enricher(tmdb, resolver).enrich(content)
        tmdb.search.assert_awaited_once_with("Dark", "tv")

    @pytest.mark.asyncio
    async def test_videos_untouched(self, tmdb, resolver):
        video = IdentifiedContent(title="Trailer", media_kind=MediaKind.VIDEO, confidence=0.95)
        assert await Enricher(tmdb, resolver).enrich(video) is video
        tmdb.search.assert_not_awaited()
        resolver.resolve.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_catalog_failure_still_resolves_sources(self, tmdb, resolver):
        tmdb.search.side_effect = UpstreamUnavailable("tmdb", "down")
        content = IdentifiedContent(title="Dune", confidence=0.8)
        enriched = await Enricher(tmdb, resolver).enrich(content)
        assert enriched.catalog_id is None
        assert enriched.streaming_sources == [NETFLIX]

    @pytest.mark.asyncio
    async def test_unconfigured_catalog(self, tmdb, resolver):
        tmdb.available = False
        content = IdentifiedContent(title="Dune", confidence=0.8)
        await Enricher(tmdb, resolver).enrich(content)
        tmdb.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enrich_all_preserves_order(self, tmdb, resolver):
        results = [IdentifiedContent(title=t, confidence=0.7) for t in ("Heat", "Ronin", "Collateral")]
        enriched = await Enricher(tmdb, resolver).enrich_all(results)
        assert [r.title for r in enriched] == ["Heat", "Ronin", "Collateral"]
        assert resolver.resolve.await_count == 3

    @pytest.mark.asyncio
    async def test_input_not_mutated(self, tmdb, resolver):
        content = IdentifiedContent(title="Dune", confidence=0.8)
        await Enricher(tmdb, resolver).enrich(content)
        assert content.streaming_sources == []
