"""Shared test fixtures."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from future_times.errors import SourceFetchError
from future_times.ingestion.models import FeedRecord, Signal, Source, TopicDraft
from future_times.ingestion.repository import SQLiteRepository

DAY = "2026-10-18"
PUBLISHED_AT = datetime(2026, 10, 18, 5, 0, tzinfo=UTC)

WIRE_RECORDS: dict[str, list[FeedRecord]] = {
    "wire-world": [
        FeedRecord(
            title="Dock workers strike at three major ports",
            summary="Unions halt container traffic.",
            link="https://wire.example.com/world/dock-strike",
            published_at=PUBLISHED_AT,
        ),
        FeedRecord(
            title="Ceasefire talks resume in Geneva",
            summary="Negotiators return after a week.",
            link="https://wire.example.com/world/ceasefire",
            published_at=PUBLISHED_AT,
        ),
        FeedRecord(
            title="Floods displace thousands along river delta",
            summary="Relief agencies scale up.",
            link="https://wire.example.com/world/floods",
            published_at=PUBLISHED_AT,
        ),
    ],
    "wire-business": [
        FeedRecord(
            title="Central bank holds interest rates steady",
            summary="Policy makers signal patience.",
            link="https://wire.example.com/business/rates",
            published_at=PUBLISHED_AT,
        ),
        FeedRecord(
            title="Chipmaker warns of export slowdown",
            summary="Orders from overseas customers fell.",
            link="https://wire.example.com/business/chips",
            published_at=PUBLISHED_AT,
        ),
        FeedRecord(
            title="Banks deploy an AI agent fleet for back offices",
            summary="Agentic tools now reconcile ledgers overnight.",
            link="https://wire.example.com/business/agents",
            published_at=PUBLISHED_AT,
        ),
    ],
}


class StaticFetcher:
    """Serves canned records per source id; listed sources fail with HTTP 502."""

    def __init__(
        self,
        records: dict[str, list[FeedRecord]] | None = None,
        *,
        failing: tuple[str, ...] = ("broken-feed",),
    ) -> None:
        self.records = WIRE_RECORDS if records is None else records
        self.failing = failing
        self.calls: list[str] = []

    def fetch(self, source: Source, day: str) -> list[FeedRecord]:  # noqa: ARG002
        self.calls.append(source.source_id)
        if source.source_id in self.failing:
            raise SourceFetchError(
                message="HTTP 502: bad gateway",
                code="http_status",
                source_id=source.source_id,
                status=502,
            )
        return list(self.records.get(source.source_id, []))

    def __enter__(self) -> StaticFetcher:
        return self

    def __exit__(self, *_: object) -> None:
        return None


def make_signal(  # noqa: PLR0913
    signal_id: int,
    title: str,
    *,
    section: str = "Business",
    signal_type: str = "news",
    score: float = 0.5,
    summary: str = "",
    horizon: str = "near",
    entities: list[str] | None = None,
    keywords: list[str] | None = None,
    day: str = DAY,
) -> Signal:
    return Signal(
        signal_id=signal_id,
        raw_id=signal_id,
        day=day,
        section=section,
        signal_type=signal_type,
        title=title,
        summary=summary,
        published_at=datetime(2026, 10, 18, 6, 0, tzinfo=UTC),
        canonical_url=f"https://example.com/{signal_id}",
        horizon=horizon,
        score=score,
        entities=list(entities or []),
        keywords=list(keywords or []),
        citations=[{"url": f"https://example.com/{signal_id}", "source": "Example Wire"}],
    )


def make_topic(  # noqa: PLR0913
    slug: str,
    label: str,
    *,
    section: str = "World",
    score: float = 0.5,
    horizon: str = "near",
    brief: str = "",
    evidence_signal_ids: list[int] | None = None,
    day: str = DAY,
) -> TopicDraft:
    return TopicDraft(
        day=day,
        section=section,
        label=label,
        brief=brief,
        horizon=horizon,
        slug=slug,
        score=score,
        evidence_signal_ids=list(evidence_signal_ids or []),
    )


@pytest.fixture()
def repository(tmp_path: Path):
    repo = SQLiteRepository(tmp_path / "future-times.db")
    repo.init_schema()
    try:
        yield repo
    finally:
        repo.close()


@pytest.fixture()
def registry_files(tmp_path: Path) -> tuple[Path, Path]:
    """Minimal sources and standing-topic registries for pipeline runs."""

    sources_file = tmp_path / "sources.json"
    sources_file.write_text(
        json.dumps(
            {
                "sources": [
                    {
                        "source_id": "wire-world",
                        "name": "World Wire",
                        "type": "rss",
                        "section": "World",
                        "url": "https://wire.example.com/world.xml",
                    },
                    {
                        "source_id": "wire-business",
                        "name": "Business Wire",
                        "type": "rss",
                        "section": "Business",
                        "url": "https://wire.example.com/business.xml",
                    },
                    {
                        "source_id": "broken-feed",
                        "name": "Broken Feed",
                        "type": "rss",
                        "url": "https://broken.example.com/feed.xml",
                    },
                ],
            },
        ),
        encoding="utf-8",
    )
    standing_file = tmp_path / "standing-topics.json"
    standing_file.write_text(
        json.dumps(
            {
                "topics": [
                    {
                        "topic_key": "ai-agents",
                        "section": "AI",
                        "label": "Autonomous AI agents",
                        "category": "Agents",
                        "keywords": ["ai agent", "agentic", "autonomous agent"],
                        "milestones": [{"year": 2031, "event": "Agents run most back offices"}],
                    },
                ],
            },
        ),
        encoding="utf-8",
    )
    return sources_file, standing_file
