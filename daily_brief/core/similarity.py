"""
Title similarity scoring.

Two scorers are available:
1. jaccard: word-set overlap of tokens longer than two characters (default)
2. fuzzy: rapidfuzz token_set_ratio, scaled to 0-1

Both are symmetric and return 1.0 when neither title has any usable token.
"""

from __future__ import annotations

from typing import Callable

from rapidfuzz import fuzz

Scorer = Callable[[str, str], float]

_MIN_TOKEN_LENGTH = 3


def tokenize(text: str) -> set[str]:
    """Lower-case and split on whitespace, dropping tokens of length <= 2."""
    return {token for token in (text or "").lower().split() if len(token) >= _MIN_TOKEN_LENGTH}


def jaccard_similarity(a: str, b: str) -> float:
    """Jaccard index of the two titles' token sets.

    Args:
        a: First title
        b: Second title

    Returns:
        A score in [0, 1]. Two titles without usable tokens score 1.0;
        exactly one empty token set scores 0.0.
    """
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    if not tokens_a and not tokens_b:
        return 1.0
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def fuzzy_similarity(a: str, b: str) -> float:
    """rapidfuzz token_set_ratio on the filtered tokens, as a 0-1 score."""
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    if not tokens_a and not tokens_b:
        return 1.0
    if not tokens_a or not tokens_b:
        return 0.0
    return fuzz.token_set_ratio(" ".join(sorted(tokens_a)), " ".join(sorted(tokens_b))) / 100.0


_SCORERS: dict[str, Scorer] = {
    "jaccard": jaccard_similarity,
    "fuzzy": fuzzy_similarity,
}


def available_scorers() -> list[str]:
    return sorted(_SCORERS)


def get_scorer(method: str) -> Scorer:
    """Return the scorer registered under ``method``."""
    key = (method or "").strip().lower()
    if key not in _SCORERS:
        supported = ", ".join(available_scorers())
        raise ValueError(f"Unsupported similarity method '{method}'. Supported: {supported}")
    return _SCORERS[key]
