"""
JSON handoff of a topic's selection to the summarization step.

The payload carries the selected articles in final order plus the
perspective bucket membership (indices into the article list), so the
consumer can group articles without re-classifying them.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any

from ..core.types import UNCLASSIFIED, ArticleRecord, SelectionResult, Topic
from ..runner import Publisher


def build_handoff(topic: Topic, selection: SelectionResult, generated_at: datetime) -> dict[str, Any]:
    """Build a JSON-serialisable payload for one topic's selection."""
    index_by_id = {id(article): i for i, article in enumerate(selection.articles)}
    groups = selection.by_perspective()

    perspectives = []
    for definition in selection.perspectives:
        members = groups.get(definition.id, [])
        perspectives.append(
            {
                "id": definition.id,
                "display_name": definition.display_name,
                "article_count": len(members),
                "articles": [index_by_id[id(a)] for a in members],
            }
        )

    return {
        "topic": {"id": topic.id, "name": topic.name},
        "generated_at": generated_at.isoformat(),
        "article_count": len(selection.articles),
        "sources": sorted({a.source_name for a in selection.articles}),
        "articles": [_article_payload(a) for a in selection.articles],
        "perspectives": perspectives,
        UNCLASSIFIED: [index_by_id[id(a)] for a in groups[UNCLASSIFIED]],
        "shortfalls": [asdict(s) for s in selection.shortfalls],
        "stats": asdict(selection.stats),
    }


def handoff_path(output_dir: Path, topic_id: str, day: date) -> Path:
    """Return ``<output_dir>/<topic_id>/<YYYY-MM-DD>.json``."""
    return output_dir / topic_id / f"{day.isoformat()}.json"


def write_handoff(path: Path, payload: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


class JsonHandoffPublisher(Publisher):
    """Publisher that writes each topic's selection as a dated JSON file."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.written: list[Path] = []

    def publish(self, topic: Topic, selection: SelectionResult, summary: Any, generated_at: datetime) -> None:
        payload = build_handoff(topic, selection, generated_at)
        if summary is not None:
            payload["summary"] = summary
        path = handoff_path(self.output_dir, topic.id, generated_at.date())
        self.written.append(write_handoff(path, payload))


def _article_payload(article: ArticleRecord) -> dict[str, Any]:
    return {
        "title": article.title,
        "url": article.url,
        "published_at": article.published_at.isoformat(),
        "source": article.source_name,
        "description": article.description,
        "language": article.language,
        "region": article.region,
        "perspective": article.perspective_id,
    }
