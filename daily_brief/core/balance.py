"""
Perspective-balanced article selection.

Given a recency-sorted article list, the balancer apportions a fixed budget
across the topic's declared perspectives:

1. Every perspective gets up to ``max_total // len(perspectives)`` articles.
2. Unused budget is filled round-robin from the perspectives' leftovers.
3. Anything still unused is filled from unclassified articles.

Relative order inside a perspective is never changed; the interleaving across
perspectives follows the steps above.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..logging_utils import log_event
from .types import ArticleRecord, PerspectiveDefinition, PerspectiveShortfall, normalize_perspective_id


@dataclass
class BalanceOutcome:
    """Selected articles plus the perspectives that fell below the minimum."""

    articles: list[ArticleRecord] = field(default_factory=list)
    shortfalls: list[PerspectiveShortfall] = field(default_factory=list)


def balance_articles(
    articles: Sequence[ArticleRecord],
    max_total: int,
    min_per_perspective: int | None,
    perspectives: Sequence[PerspectiveDefinition] | None,
    logger: logging.Logger | None = None,
) -> BalanceOutcome:
    """Select at most ``max_total`` articles, spread fairly across perspectives.

    Args:
        articles: Candidate articles, already deduplicated and recency-sorted
        max_total: Maximum number of articles to return (>= 0)
        min_per_perspective: Minimum expected per perspective; shortfalls are
            reported, never enforced
        perspectives: Declared perspectives; empty disables balancing
        logger: Optional logger for bucket counts and shortfall warnings

    Returns:
        BalanceOutcome with the selection and any perspective shortfalls

    Raises:
        ValueError: If max_total is negative
    """
    if max_total < 0:
        raise ValueError(f"max_total must be >= 0, got {max_total}")

    if not perspectives:
        return BalanceOutcome(articles=list(articles[:max_total]))

    buckets, other = _partition(articles, perspectives)
    if logger is not None:
        log_event(
            logger,
            "Balancing article selection",
            event="balance",
            buckets={pid: len(items) for pid, items in buckets.items()},
            unclassified=len(other),
            max_total=max_total,
        )

    shortfalls = _find_shortfalls(buckets, min_per_perspective or 0, logger)

    target = max_total // len(buckets)
    selected: list[ArticleRecord] = []
    taken: dict[str, int] = {}
    for pid, items in buckets.items():
        chunk = items[:target]
        selected.extend(chunk)
        taken[pid] = len(chunk)

    # Round-robin over leftovers, one article per perspective per round
    while len(selected) < max_total:
        progressed = False
        for pid, items in buckets.items():
            if len(selected) >= max_total:
                break
            index = taken[pid]
            if index < len(items):
                selected.append(items[index])
                taken[pid] = index + 1
                progressed = True
        if not progressed:
            break

    remaining = max_total - len(selected)
    if remaining > 0:
        selected.extend(other[:remaining])

    if logger is not None:
        final_counts = {pid: 0 for pid in buckets}
        for article in selected:
            pid = normalize_perspective_id(article.perspective_id)
            if pid in final_counts:
                final_counts[pid] += 1
        log_event(
            logger,
            f"Final balance: {final_counts} (total: {len(selected)})",
            event="balance_done",
            final=final_counts,
            total=len(selected),
        )

    return BalanceOutcome(articles=selected, shortfalls=shortfalls)


def _partition(
    articles: Sequence[ArticleRecord],
    perspectives: Sequence[PerspectiveDefinition],
) -> tuple[dict[str, list[ArticleRecord]], list[ArticleRecord]]:
    buckets: dict[str, list[ArticleRecord]] = {p.id: [] for p in perspectives}
    other: list[ArticleRecord] = []
    for article in articles:
        bucket = buckets.get(normalize_perspective_id(article.perspective_id))
        if bucket is None:
            other.append(article)
        else:
            bucket.append(article)
    return buckets, other


def _find_shortfalls(
    buckets: dict[str, list[ArticleRecord]],
    minimum: int,
    logger: logging.Logger | None,
) -> list[PerspectiveShortfall]:
    if minimum <= 0:
        return []
    shortfalls = []
    for pid, items in buckets.items():
        if len(items) >= minimum:
            continue
        shortfalls.append(PerspectiveShortfall(perspective_id=pid, available=len(items), minimum=minimum))
        if logger is not None:
            log_event(
                logger,
                f"Only {len(items)} '{pid}' article(s) found (minimum: {minimum})",
                level=logging.WARNING,
                event="perspective_shortfall",
                perspective=pid,
                available=len(items),
                minimum=minimum,
            )
    return shortfalls
