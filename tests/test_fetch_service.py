from __future__ import annotations

from datetime import UTC, datetime, timedelta

import allure

from conftest import DAY
from future_times.config import FetchSettings
from future_times.errors import SourceFetchError
from future_times.ingestion.cleaning import raw_fingerprint
from future_times.ingestion.models import FeedRecord, RefreshCounters, Source, SourceConfig
from future_times.ingestion.repository import SQLiteRepository
from future_times.ingestion.services.fetch_service import FetchStageService, build_raw_item, is_due

pytestmark = [
    allure.epic("Source Intake"),
    allure.feature("Fetch Stage"),
]

NOW = datetime(2026, 10, 18, 7, 0, tzinfo=UTC)


def _source(
    source_id: str,
    *,
    kind: str = "rss",
    section: str | None = "World",
    interval: int = 60,
    last_fetched_at: datetime | None = None,
) -> Source:
    return Source(
        source_id=source_id,
        name=source_id,
        kind=kind,
        url=f"https://{source_id}.example.com/feed",
        section=section,
        enabled=True,
        fetch_interval_minutes=interval,
        last_fetched_at=last_fetched_at,
    )


class _ScriptedFetcher:
    def __init__(self, records: dict[str, list[FeedRecord]], failures: set[str]) -> None:
        self.records = records
        self.failures = failures

    def fetch(self, source: Source, day: str) -> list[FeedRecord]:
        if source.source_id in self.failures:
            raise SourceFetchError(
                message="HTTP 503: unavailable",
                code="http_status",
                source_id=source.source_id,
                status=503,
            )
        return self.records.get(source.source_id, [])


def test_is_due_respects_interval() -> None:
    assert is_due(_source("fresh"), now=NOW)
    assert not is_due(_source("recent", last_fetched_at=NOW - timedelta(minutes=30)), now=NOW)
    assert is_due(_source("stale", last_fetched_at=NOW - timedelta(minutes=60)), now=NOW)


def test_build_raw_item_cleans_and_fingerprints() -> None:
    record = FeedRecord(
        title="  Dock strike spreads  ",
        summary=" Ports close. ",
        link="https://wire.example.com/a?utm_source=x#top",
        published_at=datetime(2026, 10, 17, 23, 0, tzinfo=UTC),
    )

    item = build_raw_item(record, source=_source("wire"), day=DAY, fetched_at=NOW)

    assert item is not None
    assert item.title == "Dock strike spreads"
    assert item.summary == "Ports close."
    assert item.canonical_url == "https://wire.example.com/a"
    assert item.section_hint == "World"
    assert item.day == DAY
    assert item.fingerprint == raw_fingerprint(
        title="Dock strike spreads",
        canonical_url="https://wire.example.com/a",
        pub_day="2026-10-17",
    )


def test_build_raw_item_series_defaults() -> None:
    record = FeedRecord(
        title="Economic indicator DGS10",
        summary="2026-10-16: 4.25",
        link="https://fred.stlouisfed.org/series/DGS10",
        published_at=datetime(2026, 10, 16, 12, 0, tzinfo=UTC),
    )

    item = build_raw_item(
        record,
        source=_source("fred-dgs10", kind="csv", section=None),
        day=DAY,
        fetched_at=NOW,
    )

    assert item is not None
    assert item.section_hint == "Business"
    assert item.fingerprint == raw_fingerprint(
        title="Economic indicator DGS10",
        canonical_url="https://fred.stlouisfed.org/series/DGS10",
        pub_day=DAY,
    )


def test_build_raw_item_drops_untitled_records() -> None:
    record = FeedRecord(title="   ", summary="x", link="https://wire.example.com/a")

    assert build_raw_item(record, source=_source("wire"), day=DAY, fetched_at=NOW) is None


def test_fetch_stage_contains_source_failures(repository: SQLiteRepository) -> None:
    repository.upsert_sources(
        [
            SourceConfig(source_id="good", name="Good", kind="rss", url="https://good.example.com/"),
            SourceConfig(source_id="bad", name="Bad", kind="rss", url="https://bad.example.com/"),
        ],
    )
    fetcher = _ScriptedFetcher(
        {
            "good": [
                FeedRecord(title="Dock strike spreads", summary="", link="https://good.example.com/1"),
                FeedRecord(title="", summary="", link="https://good.example.com/2"),
            ],
        },
        failures={"bad"},
    )
    service = FetchStageService(
        repository=repository,
        fetcher=fetcher,
        fetch_settings=FetchSettings(concurrency=2),
    )
    counters = RefreshCounters()

    service.run(day=DAY, counters=counters, now=NOW)

    assert counters.sources_fetched == 1
    assert counters.sources_failed == 1
    assert counters.raw_items_inserted == 1
    sources = {source.source_id: source for source in repository.list_sources()}
    assert sources["good"].last_status == 200
    assert sources["good"].last_item_count == 2
    assert sources["bad"].last_status == 503
    assert sources["bad"].last_error == "HTTP 503: unavailable"

    second = RefreshCounters()
    service.run(day=DAY, counters=second, now=NOW + timedelta(minutes=5))
    assert second.sources_skipped == 2
    assert second.sources_fetched == 0

    forced = RefreshCounters()
    service.run(day=DAY, counters=forced, force=True, now=NOW + timedelta(minutes=5))
    assert forced.sources_fetched == 1
    assert forced.raw_items_inserted == 0
