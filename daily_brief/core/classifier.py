"""Perspective classification for feed items."""

from __future__ import annotations

from .types import UNCLASSIFIED, FeedConfig, Topic, normalize_perspective_id


def derive_perspective(feed: FeedConfig, topic: Topic) -> str:
    """Perspective a feed maps to before it is checked against the declared set.

    Resolution order: the feed's explicit override, then the first matching
    topic rule, then the topic's default perspective.
    """
    if feed.perspective and feed.perspective.strip():
        return normalize_perspective_id(feed.perspective)
    for rule in topic.perspective_rules:
        if rule.matches(feed):
            return normalize_perspective_id(rule.perspective)
    return normalize_perspective_id(topic.default_perspective)


def classify_perspective(feed: FeedConfig, topic: Topic) -> str:
    """Map a feed to one of the topic's declared perspective ids.

    Args:
        feed: The feed configuration that produced the records
        topic: The topic declaring perspectives and defaulting rules

    Returns:
        A declared perspective id, or ``UNCLASSIFIED`` when the derived id is
        not declared on the topic
    """
    derived = derive_perspective(feed, topic)
    declared = {normalize_perspective_id(pid) for pid in topic.perspective_ids}
    if derived and derived in declared:
        return derived
    return UNCLASSIFIED
