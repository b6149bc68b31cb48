import json
import logging
from pathlib import Path

import pytest

from daily_brief.config import LoggingConfig
from daily_brief.logging_utils import LOGGER_NAME, log_event, setup_logging


@pytest.fixture
def restore_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.propagate = True


def test_jsonl_file_log_carries_event_fields(tmp_path: Path, restore_logger) -> None:
    cfg = LoggingConfig(level="INFO", console=False, file=True, filename="run.jsonl")
    logger = setup_logging(cfg, tmp_path)

    log_event(logger, "Found: 3 articles in en-US feed", event="feed_fetch_ok", feed="en-US", count=3)
    log_event(logger, "hidden", level=logging.DEBUG, event="debug_only")

    lines = (tmp_path / "run.jsonl").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["message"] == "Found: 3 articles in en-US feed"
    assert record["level"] == "INFO"
    assert record["logger"] == LOGGER_NAME
    assert record["event"] == "feed_fetch_ok"
    assert record["count"] == 3
    assert "lineno" not in record


def test_setup_logging_replaces_handlers(tmp_path: Path, restore_logger) -> None:
    cfg = LoggingConfig(console=True, file=True)

    setup_logging(cfg, tmp_path)
    logger = setup_logging(cfg, tmp_path)

    assert len(logger.handlers) == 2


def test_log_event_without_logger_is_noop() -> None:
    log_event(None, "nothing", event="noop")
