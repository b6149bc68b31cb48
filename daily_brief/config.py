"""
Configuration management using YAML files and dataclasses.

Two files configure a run:

1. The app config (``config.yaml``), merged over defaults:
   - FetchConfig: HTTP fetching settings
   - RetryConfig: Per-feed retry policy
   - DedupConfig: Title similarity method
   - SelectionConfig: Default selection limits
   - LoggingConfig: Logging behavior
   - OutputConfig: Handoff output directory
   - RunConfig: Multi-topic run behavior
   - AppConfig: Root configuration container

2. The topics config (``topics.yaml`` or ``topics.json``) declaring topics,
   their feeds, perspectives and selection settings. See ``load_topics``.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .core.classifier import normalize_perspective_id
from .core.types import (
    UNCLASSIFIED,
    FeedConfig,
    PerspectiveDefinition,
    PerspectiveRule,
    SelectionSettings,
    Topic,
)
from .exceptions import ConfigError
from .fetch.retry import RetryPolicy


@dataclass
class FetchConfig:
    """Configuration for feed retrieval.

    Attributes:
        timeout_seconds: HTTP request timeout
        user_agent: HTTP User-Agent header string
        trust_env: Whether to respect system proxy settings
    """

    timeout_seconds: float = 20.0
    user_agent: str = "daily-brief/0.1 (+news selection)"
    trust_env: bool = True


@dataclass
class RetryConfig:
    """Retry policy for a single feed.

    Attributes:
        max_attempts: Total attempts per feed, including the first
        base_delay_seconds: Delay after the first failed attempt
        multiplier: Factor applied to the delay after every further failure
    """

    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    multiplier: float = 2.0

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay_seconds,
            multiplier=self.multiplier,
        )


@dataclass
class DedupConfig:
    """Configuration for title deduplication.

    Attributes:
        method: "jaccard" (word-set overlap) or "fuzzy" (rapidfuzz token set ratio)
    """

    method: str = "jaccard"


@dataclass
class SelectionConfig:
    """Default selection limits, overridable per topics file and per topic."""

    max_articles_per_topic: int = 10
    article_max_age: int | str = 7
    min_articles_per_perspective: int | None = None
    deduplication_similarity_threshold: float | None = None

    def to_settings(self) -> SelectionSettings:
        return build_settings(asdict(self))


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file inside the output directory
    """

    level: str = "INFO"
    console: bool = True
    file: bool = True
    format: str = "jsonl"
    filename: str = "run.jsonl"


@dataclass
class OutputConfig:
    directory: str = "out"


@dataclass
class RunConfig:
    """Multi-topic run behavior.

    Attributes:
        topic_delay_seconds: Pause between topics to stay under rate limits
    """

    topic_delay_seconds: float = 2.0


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    run: RunConfig = field(default_factory=RunConfig)


_SECTIONS = {
    "fetch": FetchConfig,
    "retry": RetryConfig,
    "dedup": DedupConfig,
    "selection": SelectionConfig,
    "logging": LoggingConfig,
    "output": OutputConfig,
    "run": RunConfig,
}


def load_config(path: str | Path | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict):
            known = {k: v for k, v in value.items() if k in data[key]}
            data[key].update(known)
    return AppConfig(**{name: cls(**data[name]) for name, cls in _SECTIONS.items()})


# ---------------------------------------------------------------------------
# Topics configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TopicsConfig:
    """Parsed topics file: the resolved settings per topic plus the topics."""

    topics: tuple[Topic, ...]
    settings: SelectionSettings

    @property
    def active_topics(self) -> tuple[Topic, ...]:
        return tuple(t for t in self.topics if t.active)

    def settings_for(self, topic: Topic) -> SelectionSettings:
        return topic.settings or self.settings


_AGE_RE = re.compile(r"^\s*(\d+)\s*d?\s*$", re.IGNORECASE)

# Topic ids become handoff directory names: one path segment only
_TOPIC_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")

# camelCase keys accepted for settings written in the worker's topics.json style
_SETTING_ALIASES = {
    "maxArticlesPerTopic": "max_articles_per_topic",
    "articleMaxAge": "article_max_age",
    "minArticlesPerPerspective": "min_articles_per_perspective",
    "minArticlesPerFeed": "min_articles_per_perspective",
    "deduplicationSimilarityThreshold": "deduplication_similarity_threshold",
}


def parse_max_age_days(value: int | str | None, default: int = 7) -> int:
    """Parse an article max age given as days, e.g. ``7`` or ``"7d"``."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ConfigError(f"Invalid article_max_age: {value!r}")
    if isinstance(value, int):
        days = value
    else:
        match = _AGE_RE.match(str(value))
        if not match:
            raise ConfigError(f"Invalid article_max_age: {value!r} (expected days, e.g. '7d')")
        days = int(match.group(1))
    if days < 0:
        raise ConfigError(f"article_max_age must be >= 0, got {days}")
    return days


def build_settings(raw: dict[str, Any], base: SelectionSettings | None = None) -> SelectionSettings:
    """Build SelectionSettings from a raw mapping, falling back to ``base``."""
    base = base or SelectionSettings()
    values = {_SETTING_ALIASES.get(k, k): v for k, v in (raw or {}).items()}

    max_articles = values.get("max_articles_per_topic", base.max_articles_per_topic)
    if max_articles is None:
        max_articles = base.max_articles_per_topic
    try:
        max_articles = int(max_articles)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid max_articles_per_topic: {max_articles!r}") from exc
    if max_articles < 0:
        raise ConfigError(f"max_articles_per_topic must be >= 0, got {max_articles}")

    if "article_max_age" in values:
        max_age = parse_max_age_days(values["article_max_age"], base.article_max_age_days)
    else:
        max_age = base.article_max_age_days

    min_per = values.get("min_articles_per_perspective", base.min_articles_per_perspective)
    threshold = values.get(
        "deduplication_similarity_threshold", base.deduplication_similarity_threshold
    )
    try:
        min_per = int(min_per) if min_per is not None else None
        threshold = float(threshold) if threshold is not None else None
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid selection settings: {raw!r}") from exc

    return SelectionSettings(
        max_articles_per_topic=max_articles,
        article_max_age_days=max_age,
        min_articles_per_perspective=min_per,
        deduplication_similarity_threshold=threshold,
    )


def load_topics(path: str | Path, defaults: SelectionSettings | None = None) -> TopicsConfig:
    """Load the topics file (YAML or JSON).

    Settings resolve as: topic ``settings`` > file ``settings`` > ``defaults``.

    Raises:
        ConfigError: If the file is malformed or declares inconsistent perspectives
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return parse_topics(raw, defaults)


def parse_topics(raw: dict[str, Any], defaults: SelectionSettings | None = None) -> TopicsConfig:
    if not isinstance(raw, dict):
        raise ConfigError("Topics config must be a mapping with a 'topics' list")

    settings = build_settings(raw.get("settings") or {}, defaults)
    raw_topics = raw.get("topics") or []
    if not isinstance(raw_topics, list):
        raise ConfigError("'topics' must be a list")

    topics = []
    seen_ids: set[str] = set()
    for raw_topic in raw_topics:
        topic = _parse_topic(raw_topic, settings)
        if topic.id in seen_ids:
            raise ConfigError(f"Duplicate topic id: {topic.id}")
        seen_ids.add(topic.id)
        topics.append(topic)

    return TopicsConfig(topics=tuple(topics), settings=settings)


def _parse_topic(raw: Any, file_settings: SelectionSettings) -> Topic:
    if not isinstance(raw, dict):
        raise ConfigError(f"Topic entries must be mappings, got {raw!r}")
    topic_id = str(raw.get("id") or "").strip()
    if not topic_id:
        raise ConfigError(f"Topic is missing an id: {raw!r}")
    if not _TOPIC_ID_RE.match(topic_id):
        raise ConfigError(
            f"Invalid topic id {topic_id!r}: use letters, digits, '-' or '_'"
        )

    perspectives = _parse_perspectives(topic_id, raw.get("perspectives") or [])
    rules = tuple(
        PerspectiveRule(
            perspective=str(rule["perspective"]),
            language=rule.get("language"),
            region=rule.get("region"),
        )
        for rule in _list_of_mappings(topic_id, "perspective_rules", raw.get("perspective_rules"))
        if rule.get("perspective")
    )
    feeds = tuple(
        FeedConfig(
            language=str(feed.get("language") or "").strip().lower(),
            region=str(feed.get("region") or "").strip().upper(),
            query=feed.get("query") or None,
            perspective=feed.get("perspective") or None,
            type=str(feed.get("type") or "google_news"),
        )
        for feed in _list_of_mappings(topic_id, "feeds", raw.get("feeds", raw.get("rssFeeds")))
    )

    topic_settings = None
    if raw.get("settings"):
        topic_settings = build_settings(raw["settings"], file_settings)

    return Topic(
        id=topic_id,
        name=str(raw.get("name") or topic_id),
        feeds=feeds,
        perspectives=perspectives,
        perspective_rules=rules,
        default_perspective=raw.get("default_perspective"),
        query=raw.get("query") or None,
        active=bool(raw.get("active", True)),
        settings=topic_settings,
    )


def _parse_perspectives(topic_id: str, raw: Any) -> tuple[PerspectiveDefinition, ...]:
    perspectives = []
    seen: set[str] = set()
    for item in _list_of_mappings(topic_id, "perspectives", raw):
        pid = normalize_perspective_id(item.get("id"))
        if not pid:
            raise ConfigError(f"Topic {topic_id}: perspective without id")
        if pid == UNCLASSIFIED:
            raise ConfigError(f"Topic {topic_id}: '{UNCLASSIFIED}' is a reserved perspective id")
        if pid in seen:
            raise ConfigError(f"Topic {topic_id}: duplicate perspective id '{pid}'")
        seen.add(pid)
        display = item.get("name") or item.get("display_name") or pid
        perspectives.append(PerspectiveDefinition(id=pid, display_name=str(display)))
    return tuple(perspectives)


def _list_of_mappings(topic_id: str, key: str, raw: Any) -> list[dict[str, Any]]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(item, dict) for item in raw):
        raise ConfigError(f"Topic {topic_id}: '{key}' must be a list of mappings")
    return raw
