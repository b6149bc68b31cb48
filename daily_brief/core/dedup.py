"""
Article deduplication using URL matching and title similarity.

This module removes duplicate articles based on:
1. Exact URL matches (the same link returned by several feeds)
2. Title similarity (the same story syndicated under different URLs)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..logging_utils import log_event
from .similarity import Scorer, jaccard_similarity
from .types import ArticleRecord

_EXAMPLE_PAIRS = 3


@dataclass(frozen=True)
class DuplicatePair:
    kept: str
    removed: str
    score: float


def dedup_by_url(articles: list[ArticleRecord]) -> list[ArticleRecord]:
    """Drop records whose URL was already seen, keeping the first occurrence.

    Discovery order of first occurrences is preserved.
    """
    by_url: dict[str, ArticleRecord] = {}
    for article in articles:
        by_url.setdefault(article.url, article)
    return list(by_url.values())


def dedup_similar_titles(
    articles: list[ArticleRecord],
    threshold: float,
    scorer: Scorer = jaccard_similarity,
    logger: logging.Logger | None = None,
) -> list[ArticleRecord]:
    """Remove articles whose title is near-duplicate of an already-kept one.

    Articles are processed in input order. Each candidate is compared against
    the titles kept so far (never against other candidates); a score at or
    above the threshold drops the candidate and the earlier article wins.

    The threshold is used as given. Callers disable this stage entirely when
    the configured threshold is unset or <= 0.

    Args:
        articles: Articles to deduplicate, in priority order
        threshold: Similarity (0-1) at which two titles count as the same story
        scorer: Title similarity function
        logger: Optional logger for the removal report

    Returns:
        Deduplicated list of articles, preserving original order
    """
    kept: list[ArticleRecord] = []
    removed: list[DuplicatePair] = []

    for article in articles:
        match = _find_similar(article.title, kept, threshold, scorer)
        if match is None:
            kept.append(article)
            continue
        existing, score = match
        removed.append(DuplicatePair(kept=existing.title, removed=article.title, score=score))

    _report(logger, len(articles), threshold, removed)
    return kept


def _find_similar(
    title: str,
    kept: list[ArticleRecord],
    threshold: float,
    scorer: Scorer,
) -> tuple[ArticleRecord, float] | None:
    for existing in kept:
        score = scorer(title, existing.title)
        if score >= threshold:
            return existing, score
    return None


def _report(
    logger: logging.Logger | None,
    total: int,
    threshold: float,
    removed: list[DuplicatePair],
) -> None:
    if logger is None:
        return
    log_event(
        logger,
        f"Similarity dedup removed {len(removed)} of {total} article(s) (threshold {threshold})",
        event="similarity_dedup",
        total=total,
        removed=len(removed),
        threshold=threshold,
    )
    for pair in removed[:_EXAMPLE_PAIRS]:
        logger.info(
            'Similarity %.2f: kept "%s", removed "%s"',
            pair.score,
            _shorten(pair.kept),
            _shorten(pair.removed),
        )
    if len(removed) > _EXAMPLE_PAIRS:
        logger.info("... and %d more", len(removed) - _EXAMPLE_PAIRS)


def _shorten(title: str, limit: int = 50) -> str:
    if len(title) <= limit:
        return title
    return title[:limit] + "..."
