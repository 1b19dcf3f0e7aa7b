from __future__ import annotations

from datetime import UTC, datetime

import allure

from conftest import DAY
from future_times.ingestion.models import RawItemWrite, RefreshCounters, SourceConfig
from future_times.ingestion.repository import SQLiteRepository
from future_times.ingestion.services.signal_service import SignalStageService
from future_times.signals.extractor import SPREAD_SIGNAL_TITLE, SignalExtractor

pytestmark = [
    allure.epic("Signal Extraction"),
    allure.feature("Signal Stage"),
]

FETCHED_AT = datetime(2026, 10, 18, 7, 0, tzinfo=UTC)


def _series_item(source_id: str, series_id: str, value: str) -> RawItemWrite:
    return RawItemWrite(
        source_id=source_id,
        day=DAY,
        fetched_at=FETCHED_AT,
        published_at=FETCHED_AT,
        canonical_url=f"https://fred.stlouisfed.org/series/{series_id}",
        title=f"Economic indicator {series_id}",
        summary=f"2026-10-16: {value}",
        fingerprint=f"fp-{series_id}",
        section_hint="Business",
    )


def _seed_series(repository: SQLiteRepository) -> None:
    repository.upsert_sources(
        [
            SourceConfig(
                source_id=f"fred-{series_id.lower()}",
                name=series_id,
                kind="csv",
                url=f"https://fred.stlouisfed.org/graph/fredgraph.csv?id={series_id}",
            )
            for series_id in ("DGS10", "DGS2")
        ],
    )
    repository.insert_raw_items(
        [
            _series_item("fred-dgs10", "DGS10", "4.25"),
            _series_item("fred-dgs2", "DGS2", "3.90"),
        ],
    )


def test_signal_stage_extracts_pending_items_and_spread(repository: SQLiteRepository) -> None:
    _seed_series(repository)
    service = SignalStageService(repository=repository, extractor=SignalExtractor())
    counters = RefreshCounters()

    service.run(day=DAY, counters=counters, now=FETCHED_AT)

    assert counters.signals_created == 3
    signals = repository.list_signals(DAY)
    assert {signal.signal_type for signal in signals} == {"econ"}
    spread = next(signal for signal in signals if signal.title == SPREAD_SIGNAL_TITLE)
    assert spread.summary == "10y-2y spread: 0.35 (derived)"
    assert spread.raw_id is None
    assert repository.list_pending_raw_items(DAY) == []


def test_signal_stage_is_idempotent(repository: SQLiteRepository) -> None:
    _seed_series(repository)
    service = SignalStageService(repository=repository, extractor=SignalExtractor())
    service.run(day=DAY, counters=RefreshCounters(), now=FETCHED_AT)

    counters = RefreshCounters()
    service.run(day=DAY, counters=counters, now=FETCHED_AT)

    assert counters.signals_created == 0
    assert len(repository.list_signals(DAY)) == 3
