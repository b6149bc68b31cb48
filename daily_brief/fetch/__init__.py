"""
Feed retrieval and retry handling.
"""

from .fetcher import FeedSource, GoogleNewsSource, build_google_news_url
from .retry import RetryPolicy, retry_async

__all__ = [
    "FeedSource",
    "GoogleNewsSource",
    "RetryPolicy",
    "build_google_news_url",
    "retry_async",
]
