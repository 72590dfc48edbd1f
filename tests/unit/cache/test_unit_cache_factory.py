# tests/unit/cache/test_unit_cache_factory.py - v2
"""Tests for cache/cache_factory.py and cache/fingerprint.py."""

from __future__ import annotations

import hashlib

import pytest

from reelfinder.cache.cache_factory import create_cache_store
from reelfinder.cache.fingerprint import compute_input_hash, content_type_of, normalize_input
from reelfinder.cache.json_store import JsonCacheStore
from reelfinder.cache.memory_store import MemoryCacheStore
from reelfinder.cache.null_store import NullCacheStore
from reelfinder.cache.sqlite_store import SqliteCacheStore
from reelfinder.config.settings import ConfigurationError
from reelfinder.core.models import ImageQuery, TextQuery, UrlQuery


class TestCreateCacheStore:
    def test_default_is_memory(self):
        assert isinstance(create_cache_store(), MemoryCacheStore)

    def test_disabled_gives_null_store(self, settings_factory):
        store = create_cache_store(settings_factory(cache_enabled=False, cache_backend="sqlite"))
        assert isinstance(store, NullCacheStore)

    def test_json(self, settings_factory, tmp_path):
        store = create_cache_store(settings_factory(cache_backend="json", cache_root=tmp_path))
        assert isinstance(store, JsonCacheStore)

    @pytest.mark.asyncio
    async def test_sqlite_lives_under_cache_root(self, settings_factory, tmp_path):
        store = create_cache_store(settings_factory(cache_backend="sqlite", cache_root=tmp_path))
        assert isinstance(store, SqliteCacheStore)
        assert (tmp_path / "reelfinder_cache.db").exists()
        await store.close()

    def test_redis_requires_url(self, settings_factory):
        with pytest.raises(ConfigurationError, match="CACHE_REDIS_URL"):
            settings_factory(cache_backend="redis")


class TestFingerprint:
    def test_normalize(self):
        assert normalize_input("  The Matrix ") == "the matrix"

    def test_text_hash_ignores_case_and_padding(self):
        assert compute_input_hash(TextQuery(raw="The Matrix ")) == compute_input_hash(
            TextQuery(raw="the matrix")
        )

    def test_text_hash_is_sha256_of_normalized(self):
        expected = hashlib.sha256(b"the matrix").hexdigest()
        assert compute_input_hash(TextQuery(raw="The Matrix")) == expected

    def test_distinct_text_distinct_hash(self):
        assert compute_input_hash(TextQuery(raw="Heat")) != compute_input_hash(TextQuery(raw="Jaws"))

    def test_image_hashes_raw_bytes(self):
        data = b"\x89PNG\r\n\x1a\n-poster"
        assert compute_input_hash(ImageQuery(data=data)) == hashlib.sha256(data).hexdigest()

    def test_content_type(self):
        assert content_type_of(ImageQuery(data=b"x")) == "image"
        assert content_type_of(TextQuery(raw="Heat")) == "text"
        assert content_type_of(UrlQuery(raw="https://a.test")) == "url"
