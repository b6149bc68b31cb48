"""
Multi-topic run orchestration.

This module processes every active topic once:
1. Build the topic's article selection (see ``aggregator``)
2. Skip the topic when the selection is empty
3. Hand the selection to the summarizer, if one is configured
4. Hand selection and summary to the publisher, if one is configured

Topics are independent: a failure in one topic is recorded in the run
summary and the run continues with the next topic.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from .aggregator import RunContext, fetch_and_select, utc_now
from .config import AppConfig, TopicsConfig
from .core.types import SelectionResult, Topic
from .fetch.fetcher import FeedSource
from .fetch.retry import Sleep
from .logging_utils import get_logger, log_event


class Summarizer(ABC):
    """Consumes a topic's selection and produces a summary."""

    @abstractmethod
    def summarize(self, topic: Topic, selection: SelectionResult) -> Any:
        raise NotImplementedError


class Publisher(ABC):
    """Consumes a topic's selection and summary and persists them."""

    @abstractmethod
    def publish(self, topic: Topic, selection: SelectionResult, summary: Any, generated_at: datetime) -> None:
        raise NotImplementedError


@dataclass
class TopicOutcome:
    """Result of processing one topic.

    Attributes:
        topic_id: The topic's id
        topic_name: The topic's display name
        status: "success", "skipped" (no articles) or "failed"
        article_count: Number of selected articles
        error: Error message when status is "failed"
        selection: The selection, when one was built
    """

    topic_id: str
    topic_name: str
    status: str
    article_count: int = 0
    error: str | None = None
    selection: SelectionResult | None = None


@dataclass
class RunSummary:
    timestamp: datetime
    outcomes: list[TopicOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "success")

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "skipped")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")


async def run_topics_async(
    topics: TopicsConfig,
    cfg: AppConfig,
    source: FeedSource,
    summarizer: Summarizer | None = None,
    publisher: Publisher | None = None,
    logger: logging.Logger | None = None,
    now: datetime | None = None,
    sleep: Sleep = asyncio.sleep,
    topic_ids: Iterable[str] | None = None,
) -> RunSummary:
    """Process topics one after another.

    Args:
        topics: Parsed topics configuration
        cfg: Application configuration
        source: Feed document source
        summarizer: Optional summarization collaborator
        publisher: Optional publishing collaborator
        logger: Logger for run events
        now: Reference time of the run (defaults to the current UTC time)
        sleep: Awaitable sleep for retry backoff and the pause between topics
        topic_ids: Restrict the run to these topic ids

    Returns:
        RunSummary with one outcome per processed topic
    """
    logger = get_logger(logger)
    now = now or utc_now()
    base_context = RunContext(
        now=now,
        retry_policy=cfg.retry.to_policy(),
        similarity_method=cfg.dedup.method,
    )
    summary = RunSummary(timestamp=now)

    selected_topics = list(topics.active_topics)
    if topic_ids is not None:
        wanted = set(topic_ids)
        selected_topics = [t for t in topics.topics if t.id in wanted]

    log_event(logger, f"Found {len(selected_topics)} active topics to process", event="run_start", count=len(selected_topics))

    for index, topic in enumerate(selected_topics):
        if index > 0 and cfg.run.topic_delay_seconds > 0:
            await sleep(cfg.run.topic_delay_seconds)
        context = base_context.for_settings(topics.settings_for(topic))
        outcome = await _process_topic(topic, context, source, summarizer, publisher, logger, sleep)
        summary.outcomes.append(outcome)

    log_event(
        logger,
        f"Run complete. Successful: {summary.succeeded}, skipped: {summary.skipped}, failed: {summary.failed}",
        event="run_summary",
        succeeded=summary.succeeded,
        skipped=summary.skipped,
        failed=summary.failed,
    )
    return summary


def run_topics(
    topics: TopicsConfig,
    cfg: AppConfig,
    source: FeedSource,
    summarizer: Summarizer | None = None,
    publisher: Publisher | None = None,
    logger: logging.Logger | None = None,
    topic_ids: Iterable[str] | None = None,
) -> RunSummary:
    """Synchronous wrapper around ``run_topics_async``."""
    return asyncio.run(
        run_topics_async(
            topics,
            cfg,
            source,
            summarizer=summarizer,
            publisher=publisher,
            logger=logger,
            topic_ids=topic_ids,
        )
    )


async def _process_topic(
    topic: Topic,
    context: RunContext,
    source: FeedSource,
    summarizer: Summarizer | None,
    publisher: Publisher | None,
    logger: logging.Logger,
    sleep: Sleep,
) -> TopicOutcome:
    log_event(logger, f"Processing topic: {topic.name}", event="topic_start", topic=topic.id)
    try:
        selection = await fetch_and_select(topic, context, source, logger=logger, sleep=sleep)
        if selection.is_empty:
            log_event(logger, f"No articles found for {topic.name}. Skipping.", event="topic_skipped", topic=topic.id)
            return TopicOutcome(topic.id, topic.name, status="skipped", selection=selection)

        result = summarizer.summarize(topic, selection) if summarizer is not None else None
        if publisher is not None:
            publisher.publish(topic, selection, result, context.now)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Failed to process %s: %s",
            topic.name,
            exc,
            exc_info=True,
            extra={"event": "topic_failed", "topic": topic.id},
        )
        return TopicOutcome(topic.id, topic.name, status="failed", error=f"{type(exc).__name__}: {exc}")

    log_event(
        logger,
        f"Successfully processed {topic.name}",
        event="topic_done",
        topic=topic.id,
        count=len(selection.articles),
    )
    return TopicOutcome(
        topic.id,
        topic.name,
        status="success",
        article_count=len(selection.articles),
        selection=selection,
    )
