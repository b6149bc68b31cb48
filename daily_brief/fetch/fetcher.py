"""
Feed retrieval.

A FeedSource turns a feed configuration plus its resolved query into the raw
feed document. GoogleNewsSource is the httpx implementation used in
production; tests substitute their own sources.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from urllib.parse import quote

import httpx

from ..core.types import FeedConfig
from ..exceptions import FeedFetchError

GOOGLE_NEWS_RSS = "https://news.google.com/rss/search"


def build_google_news_url(query: str, language: str, region: str) -> str:
    """Build a Google News RSS search URL.

    Args:
        query: The search query (may include boolean operators)
        language: Language code (e.g. "es", "en")
        region: Region code (e.g. "VE", "US")

    Returns:
        The feed URL, with the query percent-encoded

    Example:
        >>> build_google_news_url("test query", "en", "US")
        'https://news.google.com/rss/search?q=test%20query&hl=en&gl=US&ceid=US:en'
    """
    encoded = quote(query, safe="")
    return f"{GOOGLE_NEWS_RSS}?q={encoded}&hl={language}&gl={region}&ceid={region}:{language}"


class FeedSource(ABC):
    """Abstract source of raw feed documents."""

    @abstractmethod
    async def fetch_document(self, feed: FeedConfig, query: str) -> str:
        """Return the raw feed document for one feed.

        Args:
            feed: Feed configuration (language, region)
            query: The resolved search query

        Returns:
            Feed document text (RSS/Atom XML)

        Raises:
            FeedFetchError: On transport or HTTP errors
        """
        raise NotImplementedError


class GoogleNewsSource(FeedSource):
    """Fetch Google News RSS search feeds with httpx."""

    def __init__(
        self,
        timeout: float = 20.0,
        user_agent: str = "daily-brief/0.1",
        trust_env: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._timeout = timeout
        self._headers = {"User-Agent": user_agent}
        self._trust_env = trust_env
        self._transport = transport

    async def fetch_document(self, feed: FeedConfig, query: str) -> str:
        url = build_google_news_url(query, feed.language, feed.region)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers,
                follow_redirects=True,
                trust_env=self._trust_env,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
        except httpx.HTTPError as exc:
            raise FeedFetchError(f"RSS fetch failed for {feed.key}: {type(exc).__name__}: {exc}") from exc

        if resp.status_code >= 400:
            raise FeedFetchError(
                f"RSS fetch failed for {feed.key}: HTTP {resp.status_code} {resp.reason_phrase}"
            )
        return resp.text
