"""Tests for perspective-balanced selection."""

import itertools
import logging
from datetime import datetime, timedelta, timezone

import pytest

from daily_brief.core.balance import balance_articles
from daily_brief.core.types import UNCLASSIFIED, ArticleRecord, PerspectiveDefinition, PerspectiveShortfall

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

A = PerspectiveDefinition(id="a", display_name="A")
B = PerspectiveDefinition(id="b", display_name="B")
C = PerspectiveDefinition(id="c", display_name="C")


def _records(perspective: str, count: int) -> list[ArticleRecord]:
    return [
        ArticleRecord(
            title=f"{perspective.upper()} {i + 1}",
            url=f"https://example.com/{perspective}/{i + 1}",
            published_at=NOW - timedelta(hours=i),
            source_name="Test",
            language="en",
            region="US",
            perspective_id=perspective,
        )
        for i in range(count)
    ]


def _titles(articles) -> list[str]:
    return [a.title for a in articles]


def test_even_split_when_both_perspectives_have_enough():
    articles = _records("a", 5) + _records("b", 5)

    outcome = balance_articles(articles, 4, 1, [A, B])

    assert _titles(outcome.articles) == ["A 1", "A 2", "B 1", "B 2"]
    assert outcome.shortfalls == []


def test_short_perspective_is_backfilled_from_the_other():
    articles = _records("a", 3) + _records("b", 1)

    outcome = balance_articles(articles, 4, 1, [A, B])

    assert _titles(outcome.articles) == ["A 1", "A 2", "B 1", "A 3"]


def test_round_robin_alternates_leftovers():
    articles = _records("a", 4) + _records("b", 4) + _records("c", 1)

    outcome = balance_articles(articles, 7, 1, [A, B, C])

    # target 2: A1 A2, B1 B2, C1; then A3, B3
    assert _titles(outcome.articles) == ["A 1", "A 2", "B 1", "B 2", "C 1", "A 3", "B 3"]


def test_budget_smaller_than_perspective_count():
    articles = _records("a", 2) + _records("b", 2) + _records("c", 2)

    outcome = balance_articles(articles, 2, 1, [A, B, C])

    assert _titles(outcome.articles) == ["A 1", "B 1"]


def test_unclassified_articles_fill_remaining_budget():
    articles = _records("a", 1) + _records(UNCLASSIFIED, 3)

    outcome = balance_articles(articles, 3, 1, [A, B])

    assert _titles(outcome.articles) == ["A 1", "UNCLASSIFIED 1", "UNCLASSIFIED 2"]


def test_unclassified_only_used_after_perspectives_are_exhausted():
    articles = _records(UNCLASSIFIED, 3) + _records("a", 3)

    outcome = balance_articles(articles, 3, 1, [A, B])

    assert _titles(outcome.articles) == ["A 1", "A 2", "A 3"]


def test_missing_perspective_records_shortfall_but_still_fills(caplog):
    logger = logging.getLogger("test_balance_shortfall")
    articles = _records("a", 5)

    with caplog.at_level(logging.WARNING, logger="test_balance_shortfall"):
        outcome = balance_articles(articles, 4, 2, [A, B], logger=logger)

    assert _titles(outcome.articles) == ["A 1", "A 2", "A 3", "A 4"]
    assert outcome.shortfalls == [PerspectiveShortfall(perspective_id="b", available=0, minimum=2)]
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "'b'" in warnings[0].getMessage()


def test_no_shortfall_without_minimum():
    outcome = balance_articles(_records("a", 2), 4, 0, [A, B])
    assert outcome.shortfalls == []


def test_no_perspectives_takes_first_items_in_order():
    articles = _records("a", 3) + _records("b", 3)

    assert _titles(balance_articles(articles, 4, 2, []).articles) == ["A 1", "A 2", "A 3", "B 1"]
    assert _titles(balance_articles(articles, 2, 2, None).articles) == ["A 1", "A 2"]


def test_zero_budget_returns_empty():
    assert balance_articles(_records("a", 3), 0, 1, [A, B]).articles == []


def test_negative_budget_is_rejected():
    with pytest.raises(ValueError):
        balance_articles(_records("a", 3), -1, 1, [A, B])


def test_never_exceeds_budget_and_keeps_bucket_order():
    for count_a, count_b, count_other, max_total in itertools.product(range(4), range(4), range(3), range(7)):
        articles = _records("a", count_a) + _records("b", count_b) + _records(UNCLASSIFIED, count_other)

        selected = balance_articles(articles, max_total, 1, [A, B]).articles

        assert len(selected) == min(max_total, len(articles))
        for perspective in ("a", "b", UNCLASSIFIED):
            bucket = [a for a in selected if a.perspective_id == perspective]
            expected = [a for a in articles if a.perspective_id == perspective][: len(bucket)]
            assert bucket == expected


def test_mixed_case_perspective_ids_still_balance():
    upper_a = PerspectiveDefinition(id=" A ")
    upper_b = PerspectiveDefinition(id="B")
    articles = _records("A", 5) + _records("b", 5)

    outcome = balance_articles(articles, 4, 2, [upper_a, upper_b])

    assert _titles(outcome.articles) == ["A 1", "A 2", "B 1", "B 2"]
    assert outcome.shortfalls == []
    assert (upper_a.id, upper_a.display_name) == ("a", " A ")
