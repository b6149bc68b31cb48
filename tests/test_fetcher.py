"""Tests for Google News feed retrieval."""

import asyncio

import httpx
import pytest

from daily_brief.core.types import FeedConfig
from daily_brief.exceptions import FeedFetchError
from daily_brief.fetch.fetcher import GoogleNewsSource, build_google_news_url


def test_build_google_news_url():
    url = build_google_news_url("test query", "en", "US")

    assert url.startswith("https://news.google.com/rss/search")
    assert "q=test%20query" in url
    assert "hl=en" in url
    assert "gl=US" in url
    assert "ceid=US:en" in url


def test_build_google_news_url_encodes_operators():
    url = build_google_news_url("Venezuela (site:.ve OR Caracas)", "es", "VE")

    assert "q=Venezuela%20%28site%3A.ve%20OR%20Caracas%29" in url
    assert url.endswith("&hl=es&gl=VE&ceid=VE:es")


def test_source_returns_document_text():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["query"] = request.url.params["q"]
        seen["hl"] = request.url.params["hl"]
        seen["user_agent"] = request.headers["user-agent"]
        return httpx.Response(200, text="<rss></rss>")

    source = GoogleNewsSource(user_agent="unit-test", transport=httpx.MockTransport(handler))
    feed = FeedConfig(language="es", region="VE")

    text = asyncio.run(source.fetch_document(feed, "Caracas news"))

    assert text == "<rss></rss>"
    assert seen == {"query": "Caracas news", "hl": "es", "user_agent": "unit-test"}


def test_http_error_status_raises_feed_fetch_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    source = GoogleNewsSource(transport=transport)

    with pytest.raises(FeedFetchError, match="HTTP 503"):
        asyncio.run(source.fetch_document(FeedConfig(language="en", region="US"), "q"))


def test_transport_error_raises_feed_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    source = GoogleNewsSource(transport=httpx.MockTransport(handler))

    with pytest.raises(FeedFetchError, match="ConnectError"):
        asyncio.run(source.fetch_document(FeedConfig(language="en", region="US"), "q"))
