# tests/unit/providers/test_unit_youtube_web_page.py - v2
"""Tests for providers/youtube.py and providers/web_page.py."""

from __future__ import annotations

import httpx
import pytest

from reelfinder.core.errors import UpstreamMalformed
from reelfinder.providers.web_page import (
    WebPageClient,
    build_page_context,
    extract_description,
    extract_title,
    is_private_host,
)
from reelfinder.providers.youtube import YouTubeClient, best_thumbnail

PAGE = (
    "<html><head><title>Inception (2010) &amp; more</title>"
    '<meta property="og:description" content="A thief who steals secrets">'
    "</head><body>dream</body></html>"
)


class TestBestThumbnail:
    def test_prefers_largest(self):
        thumbs = {"default": {"url": "d"}, "high": {"url": "h"}, "maxres": {"url": "m"}}
        assert best_thumbnail(thumbs) == "m"

    def test_skips_missing_sizes(self):
        assert best_thumbnail({"medium": {"url": "md"}, "default": {"url": "d"}}) == "md"

    def test_none(self):
        assert best_thumbnail({}) == ""


class TestYouTubeClient:
    @pytest.mark.asyncio
    async def test_video_metadata(self, router, fast_retry):
        router.add("/youtube/v3/videos", {"items": [{"snippet": {
            "title": "Big Buck Bunny",
            "publishedAt": "2008-05-20T00:00:00Z",
            "description": "Animated short",
            "channelTitle": "Blender",
            "thumbnails": {"high": {"url": "https://i.ytimg.test/hq.jpg"}},
        }}]})
        client = YouTubeClient(api_key="yt", http=router.client(), retry=fast_retry)
        video = await client.video_metadata("aqz-KE-bpKQ")
        assert video.title == "Big Buck Bunny"
        assert video.channel_title == "Blender"
        assert video.thumbnail_url == "https://i.ytimg.test/hq.jpg"
        assert video.watch_url == "https://www.youtube.com/watch?v=aqz-KE-bpKQ"
        params = router.calls["/youtube/v3/videos"][0].url.params
        assert params["id"] == "aqz-KE-bpKQ"
        assert params["part"] == "snippet"
        assert params["key"] == "yt"

    @pytest.mark.asyncio
    async def test_unknown_video(self, router, fast_retry):
        router.add("/youtube/v3/videos", {"items": []})
        client = YouTubeClient(api_key="yt", http=router.client(), retry=fast_retry)
        assert await client.video_metadata("nope") is None

    @pytest.mark.asyncio
    async def test_default_title(self, router, fast_retry):
        router.add("/youtube/v3/videos", {"items": [{"snippet": {}}]})
        client = YouTubeClient(api_key="yt", http=router.client(), retry=fast_retry)
        video = await client.video_metadata("x")
        assert video.title == "YouTube Video"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("items", [["aqz-KE-bpKQ"], [{"snippet": "x"}], {"id": 1}])
    async def test_bad_item_is_malformed(self, router, fast_retry, items):
        router.add("/youtube/v3/videos", {"items": items})
        client = YouTubeClient(api_key="yt", http=router.client(), retry=fast_retry)
        with pytest.raises(UpstreamMalformed):
            await client.video_metadata("aqz-KE-bpKQ")


class TestPageHelpers:
    def test_title_unescaped(self):
        assert extract_title(PAGE) == "Inception (2010) & more"

    def test_og_description_fallback(self):
        assert extract_description(PAGE) == "A thief who steals secrets"

    def test_meta_description_wins(self):
        page = (
            '<meta name="description" content="plain">'
            '<meta property="og:description" content="og">'
        )
        assert extract_description(page) == "plain"

    def test_context_is_bounded(self):
        context = build_page_context("https://a.test", "x" * 50, max_chars=10)
        assert context.startswith("URL: https://a.test\nPage Title: \nDescription: \n\n")
        assert context.endswith("HTML content (first 10 chars):\n" + "x" * 10)


class TestWebPageClient:
    @pytest.mark.asyncio
    async def test_fetch_context(self, router, fast_retry):
        router.add("/movie/inception", lambda request: httpx.Response(200, text=PAGE))
        client = WebPageClient(http=router.client(), retry=fast_retry, user_agent="ua-test")
        context = await client.fetch_context("https://pages.test/movie/inception")
        assert "Page Title: Inception (2010) & more" in context
        assert router.calls["/movie/inception"][0].headers["User-Agent"] == "ua-test"

    @pytest.mark.asyncio
    async def test_fetch_failure_returns_url(self, router, fast_retry):
        client = WebPageClient(http=router.client(), retry=fast_retry)
        assert client.available
        url = "https://pages.test/missing"
        assert await client.fetch_context(url) == url
        assert router.count("/missing") == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [
        "http://169.254.169.254/latest/meta-data/",
        "http://127.0.0.1:8000/admin",
        "http://localhost/admin",
        "http://[::1]/admin",
        "http://10.0.0.5/",
    ])
    async def test_non_public_host_not_fetched(self, router, fast_retry, url):
        client = WebPageClient(http=router.client(), retry=fast_retry)
        assert await client.fetch_context(url) == url
        assert router.calls == {}

    @pytest.mark.asyncio
    async def test_redirect_to_non_public_host_discarded(self, router, fast_retry):
        router.add("/go", lambda request: httpx.Response(
            302, headers={"Location": "http://192.168.1.1/secret"},
        ))
        router.add("/secret", lambda request: httpx.Response(200, text="<title>router admin</title>"))
        client = WebPageClient(http=router.client(), retry=fast_retry)
        url = "https://pages.test/go"
        assert await client.fetch_context(url) == url


@pytest.mark.parametrize("host,expected", [
    ("169.254.169.254", True),
    ("127.0.0.1", True),
    ("::1", True),
    ("192.168.0.10", True),
    ("LOCALHOST", True),
    ("api.localhost", True),
    ("", True),
    ("93.184.216.34", False),
    ("www.imdb.com", False),
])
def test_is_private_host(host, expected):
    assert is_private_host(host) is expected
