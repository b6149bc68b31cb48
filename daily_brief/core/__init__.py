"""
Core domain models and selection logic.

This package contains the data types and the pure selection stages
(similarity, dedup, classification, balancing) that are independent of
how feeds are fetched.
"""

from .balance import BalanceOutcome, balance_articles
from .classifier import classify_perspective, normalize_perspective_id
from .dedup import dedup_by_url, dedup_similar_titles
from .similarity import fuzzy_similarity, get_scorer, jaccard_similarity
from .types import (
    UNCLASSIFIED,
    AggregationStats,
    ArticleRecord,
    FeedConfig,
    PerspectiveDefinition,
    PerspectiveRule,
    PerspectiveShortfall,
    SelectionResult,
    SelectionSettings,
    Topic,
)

__all__ = [
    "UNCLASSIFIED",
    "AggregationStats",
    "ArticleRecord",
    "BalanceOutcome",
    "FeedConfig",
    "PerspectiveDefinition",
    "PerspectiveRule",
    "PerspectiveShortfall",
    "SelectionResult",
    "SelectionSettings",
    "Topic",
    "balance_articles",
    "classify_perspective",
    "dedup_by_url",
    "dedup_similar_titles",
    "fuzzy_similarity",
    "get_scorer",
    "jaccard_similarity",
    "normalize_perspective_id",
]
