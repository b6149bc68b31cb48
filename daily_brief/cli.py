"""
Command-line interface for Daily Brief.

Uses Typer to run the selection pipeline over a topics file and write one
JSON handoff per topic. Supports loading .env files for local settings.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .config import TopicsConfig, load_config, load_topics
from .fetch.fetcher import GoogleNewsSource
from .logging_utils import setup_logging
from .output.handoff import JsonHandoffPublisher
from .runner import RunSummary, run_topics

app = typer.Typer(add_completion=False)
console = Console()


@app.callback()
def main() -> None:
    """Perspective-balanced news selection."""


@app.command()
def run(
    topics: Path = typer.Option(..., "--topics", "-t", exists=True, readable=True),
    output: Path | None = typer.Option(None, "--output", "-o"),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    topic: list[str] | None = typer.Option(
        None, "--topic", help="Only process this topic id (repeatable)."
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
    max_articles: int | None = typer.Option(
        None, "--max-articles", min=0, help="Override max articles per topic."
    ),
):
    """Fetch, deduplicate and balance news for every active topic.

    Args:
        topics: Path to the topics file (YAML or JSON)
        output: Directory for handoff files (defaults to output.directory in config)
        config: Optional path to YAML config file
        topic: Restrict the run to the given topic ids
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Enable/disable file logging
        max_articles: Override max_articles_per_topic from all config layers
    """
    load_dotenv()

    cfg = load_config(config)
    if log_level:
        cfg.logging.level = log_level
    if log_file is not None:
        cfg.logging.file = log_file
    if max_articles is not None:
        cfg.selection.max_articles_per_topic = max_articles

    output_dir = output or Path(cfg.output.directory)
    logger = setup_logging(cfg.logging, output_dir)

    topics_cfg = load_topics(topics, defaults=cfg.selection.to_settings())
    if max_articles is not None:
        topics_cfg = _override_max_articles(topics_cfg, max_articles)

    source = GoogleNewsSource(
        timeout=cfg.fetch.timeout_seconds,
        user_agent=cfg.fetch.user_agent,
        trust_env=cfg.fetch.trust_env,
    )
    publisher = JsonHandoffPublisher(output_dir)

    summary = run_topics(
        topics_cfg,
        cfg,
        source,
        publisher=publisher,
        logger=logger,
        topic_ids=topic or None,
    )
    _render_summary(summary, console)
    for path in publisher.written:
        console.print(f"Handoff written: {path}")

    if summary.failed:
        raise typer.Exit(code=1)


def _override_max_articles(topics_cfg: TopicsConfig, max_articles: int) -> TopicsConfig:
    return replace(
        topics_cfg,
        settings=replace(topics_cfg.settings, max_articles_per_topic=max_articles),
        topics=tuple(
            replace(t, settings=replace(t.settings, max_articles_per_topic=max_articles))
            if t.settings is not None
            else t
            for t in topics_cfg.topics
        ),
    )


def _render_summary(summary: RunSummary, console: Console) -> None:
    """Display per-topic outcomes and run totals."""
    table = Table(title=f"Run {summary.timestamp.strftime('%Y-%m-%d %H:%M')} UTC")
    table.add_column("Topic")
    table.add_column("Status")
    table.add_column("Articles", justify="right")
    table.add_column("Error")
    for outcome in summary.outcomes:
        table.add_row(outcome.topic_name, outcome.status, str(outcome.article_count), outcome.error or "")
    console.print(table)
    console.print(
        "[bold]Run summary[/bold]: "
        f"success={summary.succeeded}, skipped={summary.skipped}, failed={summary.failed}"
    )


if __name__ == "__main__":
    app()
