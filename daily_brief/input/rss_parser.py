"""
RSS/Atom parsing into ArticleRecords.

Google News items carry the publisher in the title ("Headline - Publisher").
The parser splits that suffix off; for other feeds the item's <source>
element or the channel title is used instead.
"""

from __future__ import annotations

import calendar
import time
from datetime import datetime, timezone
from typing import Any

import feedparser

from ..core.classifier import classify_perspective
from ..core.types import ArticleRecord, FeedConfig, Topic
from ..exceptions import FeedFetchError, MalformedDateError

FALLBACK_SOURCE = "Google News"
UNTITLED = "Untitled"

_TITLE_SOURCE_SEPARATOR = " - "


def parse_feed_document(
    text: str,
    feed: FeedConfig,
    topic: Topic,
    now: datetime,
) -> list[ArticleRecord]:
    """Parse a feed document into records tagged with the feed's origin.

    Args:
        text: Raw RSS/Atom document
        feed: Feed configuration that produced the document
        topic: Topic the feed belongs to (used for perspective classification)
        now: Ingestion time, used for items without a publish date

    Returns:
        One ArticleRecord per item, in document order

    Raises:
        FeedFetchError: If the document cannot be parsed at all
        MalformedDateError: If an item carries an unparseable publish date
    """
    parsed = feedparser.parse(text)
    entries = parsed.get("entries") or []
    if parsed.get("bozo") and not entries:
        exc = parsed.get("bozo_exception")
        msg = f"Invalid RSS/Atom feed for {feed.key}"
        if exc:
            msg += f" ({exc})"
        raise FeedFetchError(msg)

    channel_title = ((parsed.get("feed") or {}).get("title") or "").strip()
    perspective_id = classify_perspective(feed, topic)

    return [
        _to_record(entry, feed, perspective_id, now, channel_title or FALLBACK_SOURCE)
        for entry in entries
    ]


def _to_record(
    entry: dict[str, Any],
    feed: FeedConfig,
    perspective_id: str,
    now: datetime,
    fallback_source: str,
) -> ArticleRecord:
    raw_title = (entry.get("title") or "").strip()
    title, source = split_title_source(raw_title)
    if not source:
        source = _entry_source(entry) or fallback_source

    return ArticleRecord(
        title=title or UNTITLED,
        url=(entry.get("link") or "").strip(),
        published_at=_published_at(entry, now),
        source_name=source,
        language=feed.language,
        region=feed.region,
        perspective_id=perspective_id,
        description=(entry.get("description") or entry.get("summary") or "").strip(),
    )


def split_title_source(title: str) -> tuple[str, str | None]:
    """Split a Google News style "Headline - Publisher" title.

    Examples:
        >>> split_title_source("Storm hits coast - Daily Planet")
        ('Storm hits coast', 'Daily Planet')
        >>> split_title_source("Storm hits coast")
        ('Storm hits coast', None)
    """
    parts = title.split(_TITLE_SOURCE_SEPARATOR)
    if len(parts) < 2:
        return title, None
    source = parts[-1].strip()
    headline = _TITLE_SOURCE_SEPARATOR.join(parts[:-1]).strip()
    if not source:
        return headline, None
    return headline, source


def _entry_source(entry: dict[str, Any]) -> str | None:
    src = entry.get("source") or {}
    if isinstance(src, dict):
        title = src.get("title")
        if isinstance(title, str) and title.strip():
            return title.strip()
    return None


def _published_at(entry: dict[str, Any], now: datetime) -> datetime:
    """Publish time of an entry as an aware UTC datetime.

    feedparser fills ``*_parsed`` (UTC struct_time) whenever it understands
    the date; a date string without a parsed counterpart is malformed.
    """
    for key in ("published_parsed", "updated_parsed"):
        value = entry.get(key)
        if isinstance(value, time.struct_time):
            return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)

    for key in ("published", "updated"):
        raw = entry.get(key)
        if isinstance(raw, str) and raw.strip():
            raise MalformedDateError(f"Unparseable {key} date {raw!r} for item {entry.get('link') or entry.get('title')!r}")

    return now
