"""
Core data types for the selection pipeline.

This module defines the value objects that flow through one run:
- FeedConfig / PerspectiveDefinition / PerspectiveRule / Topic: configuration read once per run
- SelectionSettings: per-topic selection limits
- ArticleRecord: one parsed feed item, tagged with its feed's origin
- SelectionResult: the bounded, balanced article list handed downstream
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

UNCLASSIFIED = "unclassified"


def normalize_perspective_id(value: str | None) -> str:
    """Trim and lower-case a perspective id. None becomes an empty string."""
    return (value or "").strip().lower()


@dataclass(frozen=True)
class FeedConfig:
    """One configured query/language/region combination.

    Attributes:
        language: Language code (e.g. "es", "en")
        region: Region code (e.g. "VE", "US")
        query: Optional search query; falls back to the topic query when empty
        perspective: Optional explicit perspective override for every item of this feed
        type: Feed backend; only "google_news" is fetched
    """

    language: str
    region: str
    query: str | None = None
    perspective: str | None = None
    type: str = "google_news"

    @property
    def key(self) -> str:
        return f"{self.language}-{self.region}"


@dataclass(frozen=True)
class PerspectiveDefinition:
    """A named viewpoint bucket that selection is balanced across.

    The id is stored normalized (trimmed, lower-case) so it matches the ids
    the classifier assigns to records.
    """

    id: str
    display_name: str = ""

    def __post_init__(self) -> None:
        if not self.display_name:
            object.__setattr__(self, "display_name", self.id)
        object.__setattr__(self, "id", normalize_perspective_id(self.id))


@dataclass(frozen=True)
class PerspectiveRule:
    """Default perspective for feeds matching a language and/or region.

    A field left as None matches any value.
    """

    perspective: str
    language: str | None = None
    region: str | None = None

    def matches(self, feed: FeedConfig) -> bool:
        if self.language and self.language.lower() != feed.language.lower():
            return False
        if self.region and self.region.upper() != feed.region.upper():
            return False
        return True


@dataclass(frozen=True)
class SelectionSettings:
    """Selection limits applied to one topic.

    Attributes:
        max_articles_per_topic: Upper bound on the final selection
        article_max_age_days: Articles older than this many days are dropped
        min_articles_per_perspective: Enables quota balancing when > 0
        deduplication_similarity_threshold: Enables title dedup when > 0
    """

    max_articles_per_topic: int = 10
    article_max_age_days: int = 7
    min_articles_per_perspective: int | None = None
    deduplication_similarity_threshold: float | None = None

    @property
    def balancing_enabled(self) -> bool:
        return bool(self.min_articles_per_perspective and self.min_articles_per_perspective > 0)

    @property
    def similarity_dedup_enabled(self) -> bool:
        threshold = self.deduplication_similarity_threshold
        return bool(threshold and threshold > 0)


@dataclass(frozen=True)
class Topic:
    """A news topic with its feeds and declared perspectives."""

    id: str
    name: str
    feeds: tuple[FeedConfig, ...] = ()
    perspectives: tuple[PerspectiveDefinition, ...] = ()
    perspective_rules: tuple[PerspectiveRule, ...] = ()
    default_perspective: str | None = None
    query: str | None = None
    active: bool = True
    settings: SelectionSettings | None = None

    @property
    def perspective_ids(self) -> tuple[str, ...]:
        return tuple(p.id for p in self.perspectives)


@dataclass(frozen=True)
class ArticleRecord:
    """A parsed feed item.

    Language, region and perspective are copied from the feed that produced
    the record and are never recomputed afterwards.
    """

    title: str
    url: str
    published_at: datetime
    source_name: str
    language: str
    region: str
    perspective_id: str = UNCLASSIFIED
    description: str = ""


@dataclass(frozen=True)
class PerspectiveShortfall:
    """A perspective bucket that held fewer articles than the configured minimum."""

    perspective_id: str
    available: int
    minimum: int


@dataclass
class AggregationStats:
    """Counts collected while building one topic's selection."""

    feeds_total: int = 0
    feeds_succeeded: int = 0
    feeds_failed: int = 0
    feeds_skipped: int = 0
    collected: int = 0
    after_url_dedup: int = 0
    after_date_filter: int = 0
    after_similarity_dedup: int = 0
    selected: int = 0


@dataclass
class SelectionResult:
    """Final article selection for one topic.

    Attributes:
        topic_id: The topic the selection belongs to
        articles: Selected records in post-balancing order
        perspectives: Declared perspectives of the topic, in declared order
        shortfalls: Perspectives that fell below the configured minimum
        stats: Pipeline counters for this topic
    """

    topic_id: str
    articles: tuple[ArticleRecord, ...] = ()
    perspectives: tuple[PerspectiveDefinition, ...] = ()
    shortfalls: tuple[PerspectiveShortfall, ...] = ()
    stats: AggregationStats = field(default_factory=AggregationStats)

    @property
    def is_empty(self) -> bool:
        return not self.articles

    def by_perspective(self) -> dict[str, list[ArticleRecord]]:
        """Group selected articles by perspective.

        Declared perspectives come first in declared order (present even when
        empty), followed by the unclassified bucket.
        """
        groups: dict[str, list[ArticleRecord]] = {p.id: [] for p in self.perspectives}
        groups[UNCLASSIFIED] = []
        for article in self.articles:
            groups.get(normalize_perspective_id(article.perspective_id), groups[UNCLASSIFIED]).append(article)
        return groups
