"""
Feed document parsing.
"""

from .rss_parser import parse_feed_document

__all__ = ["parse_feed_document"]
