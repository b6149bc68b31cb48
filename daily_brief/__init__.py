"""
Daily Brief - perspective-balanced news selection.

This package collects news for a topic from several RSS feeds, removes
redundant coverage, balances the remaining articles across the topic's
declared perspectives and hands a bounded selection downstream.

Main entry point is the CLI via `daily-brief run` command.

Example:
    $ daily-brief run -t topics.yaml -c config.yaml -o out/
"""

__all__ = [
    "__version__",
    "RunContext",
    "fetch_and_select",
    "select_articles",
    "run_topics",
    "load_config",
    "load_topics",
]
__version__ = "0.1.0"

from .aggregator import RunContext, fetch_and_select, select_articles
from .config import load_config, load_topics
from .runner import run_topics
