"""
Per-topic article collection and selection.

This module coordinates the pipeline for one topic:
1. Fetch and parse every feed (sequentially, with retry)
2. Merge the feeds' records
3. Deduplicate by exact URL
4. Drop records outside the max-age window
5. Deduplicate near-identical titles
6. Sort newest first
7. Balance across perspectives, or truncate when balancing is off

A feed that exhausts its retries is logged and skipped. Any other exception
propagates and fails the topic.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .core.balance import balance_articles
from .core.dedup import dedup_by_url, dedup_similar_titles
from .core.similarity import get_scorer
from .core.types import (
    AggregationStats,
    ArticleRecord,
    FeedConfig,
    SelectionResult,
    SelectionSettings,
    Topic,
)
from .exceptions import FeedFetchError, RetryExhaustedError
from .fetch.fetcher import FeedSource
from .fetch.retry import RetryPolicy, Sleep, retry_async
from .input.rss_parser import parse_feed_document
from .logging_utils import get_logger, log_event

SUPPORTED_FEED_TYPES = ("google_news",)


@dataclass(frozen=True)
class RunContext:
    """Immutable per-run values threaded through the pipeline.

    Attributes:
        now: Reference time of the run; the max-age window ends here
        settings: Selection limits for the topic being processed
        retry_policy: Per-feed retry policy
        similarity_method: Title scorer name ("jaccard" or "fuzzy")
    """

    now: datetime
    settings: SelectionSettings = field(default_factory=SelectionSettings)
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    similarity_method: str = "jaccard"

    def for_settings(self, settings: SelectionSettings) -> RunContext:
        return RunContext(
            now=self.now,
            settings=settings,
            retry_policy=self.retry_policy,
            similarity_method=self.similarity_method,
        )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def fetch_and_select(
    topic: Topic,
    context: RunContext,
    source: FeedSource,
    logger: logging.Logger | None = None,
    sleep: Sleep = asyncio.sleep,
) -> SelectionResult:
    """Build the bounded, balanced article selection for one topic.

    Args:
        topic: Topic with feeds and declared perspectives
        context: Run time, selection settings and retry policy
        source: Where feed documents come from
        logger: Logger for pipeline events (defaults to the package logger)
        sleep: Awaitable sleep used for retry backoff

    Returns:
        SelectionResult; empty when no feed yielded any article
    """
    logger = get_logger(logger)
    settings = context.settings
    stats = AggregationStats(feeds_total=len(topic.feeds))

    log_event(logger, f"Fetching news for topic: {topic.name}", event="topic_fetch", topic=topic.id)

    collected: list[ArticleRecord] = []
    for feed in topic.feeds:
        records = await _collect_feed(topic, feed, context, source, logger, sleep, stats)
        collected.extend(records)

    stats.collected = len(collected)
    if not collected:
        log_event(
            logger,
            f"No articles found for {topic.name}",
            level=logging.WARNING,
            event="no_articles",
            topic=topic.id,
        )
        return SelectionResult(topic_id=topic.id, perspectives=topic.perspectives, stats=stats)

    log_event(logger, f"Total articles collected: {len(collected)}", event="collected", topic=topic.id, count=len(collected))

    articles = dedup_by_url(collected)
    stats.after_url_dedup = len(articles)
    log_event(logger, f"After URL deduplication: {len(articles)}", event="url_dedup", topic=topic.id, count=len(articles))

    articles = filter_by_age(articles, context.now, settings.article_max_age_days)
    stats.after_date_filter = len(articles)
    log_event(
        logger,
        f"Within {settings.article_max_age_days} day(s): {len(articles)}",
        event="date_filter",
        topic=topic.id,
        count=len(articles),
    )

    if settings.similarity_dedup_enabled:
        articles = dedup_similar_titles(
            articles,
            settings.deduplication_similarity_threshold,
            scorer=get_scorer(context.similarity_method),
            logger=logger,
        )
    stats.after_similarity_dedup = len(articles)

    articles = sort_by_recency(articles)

    shortfalls = ()
    if settings.balancing_enabled:
        outcome = balance_articles(
            articles,
            settings.max_articles_per_topic,
            settings.min_articles_per_perspective,
            topic.perspectives,
            logger=logger,
        )
        selected = outcome.articles
        shortfalls = tuple(outcome.shortfalls)
    else:
        selected = articles[: settings.max_articles_per_topic]
        log_event(
            logger,
            f"Selected top {len(selected)} articles (no balancing)",
            event="selection",
            topic=topic.id,
            count=len(selected),
        )

    stats.selected = len(selected)
    return SelectionResult(
        topic_id=topic.id,
        articles=tuple(selected),
        perspectives=topic.perspectives,
        shortfalls=shortfalls,
        stats=stats,
    )


def select_articles(
    topic: Topic,
    context: RunContext,
    source: FeedSource,
    logger: logging.Logger | None = None,
) -> SelectionResult:
    """Synchronous wrapper around ``fetch_and_select``."""
    return asyncio.run(fetch_and_select(topic, context, source, logger=logger))


def resolve_query(feed: FeedConfig, topic: Topic) -> str | None:
    """Feed-level query, falling back to the topic-level query."""
    query = (feed.query or "").strip() or (topic.query or "").strip()
    return query or None


def filter_by_age(articles: list[ArticleRecord], now: datetime, max_age_days: int) -> list[ArticleRecord]:
    """Keep records published within ``[now - max_age_days, now]``."""
    cutoff = now - timedelta(days=max_age_days)
    return [a for a in articles if cutoff <= a.published_at <= now]


def sort_by_recency(articles: list[ArticleRecord]) -> list[ArticleRecord]:
    """Newest first; ``sorted`` is stable so ties keep input order."""
    return sorted(articles, key=lambda a: a.published_at, reverse=True)


async def _collect_feed(
    topic: Topic,
    feed: FeedConfig,
    context: RunContext,
    source: FeedSource,
    logger: logging.Logger,
    sleep: Sleep,
    stats: AggregationStats,
) -> list[ArticleRecord]:
    if feed.type not in SUPPORTED_FEED_TYPES:
        stats.feeds_skipped += 1
        log_event(
            logger,
            f"Unsupported feed type '{feed.type}' for {feed.key} feed, skipping",
            level=logging.WARNING,
            event="feed_skipped",
            topic=topic.id,
            feed=feed.key,
            reason="unsupported_type",
        )
        return []

    query = resolve_query(feed, topic)
    if query is None:
        stats.feeds_skipped += 1
        log_event(
            logger,
            f"No query specified for {feed.key} feed, skipping",
            level=logging.WARNING,
            event="feed_skipped",
            topic=topic.id,
            feed=feed.key,
            reason="no_query",
        )
        return []

    log_event(
        logger,
        f"Fetching {feed.key} feed. Query: \"{_preview(query)}\"",
        event="feed_fetch_start",
        topic=topic.id,
        feed=feed.key,
    )

    async def _attempt() -> list[ArticleRecord]:
        document = await source.fetch_document(feed, query)
        return parse_feed_document(document, feed, topic, context.now)

    try:
        records = await retry_async(
            _attempt,
            context.retry_policy,
            retry_on=(FeedFetchError,),
            sleep=sleep,
            logger=logger,
            label=f"{topic.id}:{feed.key}",
        )
    except RetryExhaustedError as exc:
        stats.feeds_failed += 1
        log_event(
            logger,
            f"Failed to fetch {feed.key} feed: {exc.last_error}",
            level=logging.ERROR,
            event="feed_fetch_failed",
            topic=topic.id,
            feed=feed.key,
            attempts=exc.attempts,
            error=str(exc.last_error),
        )
        return []

    stats.feeds_succeeded += 1
    log_event(
        logger,
        f"Found: {len(records)} articles in {feed.key} feed",
        event="feed_fetch_ok",
        topic=topic.id,
        feed=feed.key,
        count=len(records),
    )
    return records


def _preview(text: str, limit: int = 80) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
