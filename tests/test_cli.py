import json
import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path

import pytest
from typer.testing import CliRunner

from daily_brief import cli
from daily_brief.core.types import FeedConfig
from daily_brief.exceptions import FeedFetchError
from daily_brief.fetch.fetcher import FeedSource
from daily_brief.logging_utils import LOGGER_NAME

runner = CliRunner()

TOPICS_YAML = """
topics:
  - id: venezuela
    name: Venezuela
    query: Venezuela
    perspectives:
      - id: venezuelan
        name: Venezuelan
      - id: international
        name: International
    perspective_rules:
      - language: es
        region: VE
        perspective: venezuelan
    default_perspective: international
    feeds:
      - language: es
        region: VE
      - language: en
        region: US
  - id: china
    name: China
    query: China
    feeds:
      - language: zh
        region: CN
"""

CONFIG_YAML = """
logging:
  console: false
run:
  topic_delay_seconds: 0
retry:
  base_delay_seconds: 0
"""


class StaticSource(FeedSource):
    """Feed source that never touches the network."""

    def __init__(self, **_kwargs):
        pass

    async def fetch_document(self, feed: FeedConfig, query: str) -> str:
        if feed.region == "CN":
            raise FeedFetchError("HTTP 403 Forbidden")
        pub = format_datetime(datetime.now(timezone.utc), usegmt=True)
        if query == "Broken":
            pub = "not a date"
        return (
            '<?xml version="1.0"?><rss version="2.0"><channel><title>Google News</title>'
            f"<item><title>{query} {feed.key} headline - Example</title>"
            f"<link>https://example.com/{feed.key}</link><pubDate>{pub}</pubDate></item>"
            "</channel></rss>"
        )


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cli, "GoogleNewsSource", StaticSource)
    topics = tmp_path / "topics.yaml"
    topics.write_text(TOPICS_YAML, encoding="utf-8")
    config = tmp_path / "config.yaml"
    config.write_text(CONFIG_YAML, encoding="utf-8")
    yield tmp_path, topics, config
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.propagate = True


def test_run_writes_handoff_per_topic(workspace) -> None:
    tmp_path, topics, config = workspace
    output = tmp_path / "out"

    result = runner.invoke(
        cli.app,
        ["run", "--topics", str(topics), "--config", str(config), "--output", str(output), "--no-log-file", "--topic", "venezuela"],
    )

    assert result.exit_code == 0, result.output
    written = list((output / "venezuela").glob("*.json"))
    assert len(written) == 1
    payload = json.loads(written[0].read_text(encoding="utf-8"))
    assert payload["article_count"] == 2
    counts = {p["id"]: p["article_count"] for p in payload["perspectives"]}
    assert counts == {"venezuelan": 1, "international": 1}
    assert not (output / "run.jsonl").exists()


def test_max_articles_override_and_failed_feed(workspace) -> None:
    tmp_path, topics, config = workspace
    output = tmp_path / "out"

    result = runner.invoke(
        cli.app,
        ["run", "--topics", str(topics), "--config", str(config), "--output", str(output), "--max-articles", "1"],
    )

    # china has a single failing feed, which is skipped rather than failing the topic
    assert result.exit_code == 0, result.output
    payload = json.loads(next((output / "venezuela").glob("*.json")).read_text(encoding="utf-8"))
    assert payload["article_count"] == 1
    assert not (output / "china").exists()
    assert (output / "run.jsonl").exists()


def test_failed_topic_sets_exit_code(workspace) -> None:
    tmp_path, _topics, config = workspace
    topics = tmp_path / "broken.yaml"
    topics.write_text(
        "topics:\n"
        "  - id: broken\n    query: Broken\n    feeds:\n      - {language: en, region: US}\n"
        "  - id: venezuela\n    query: Venezuela\n    feeds:\n      - {language: en, region: US}\n",
        encoding="utf-8",
    )
    output = tmp_path / "out"

    result = runner.invoke(
        cli.app,
        ["run", "--topics", str(topics), "--config", str(config), "--output", str(output), "--no-log-file"],
    )

    assert result.exit_code == 1
    assert not (output / "broken").exists()
    assert list((output / "venezuela").glob("*.json"))
