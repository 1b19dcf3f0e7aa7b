from __future__ import annotations

import allure

from future_times.config import FetchSettings
from future_times.ingestion.models import FeedRecord, Source
from future_times.ingestion.sources.fred import FredSeriesFetcher
from future_times.ingestion.sources.polymarket import PolymarketFetcher
from future_times.ingestion.sources.router import SourceRouter, build_source_router
from future_times.ingestion.sources.rss import RssFeedFetcher

pytestmark = [
    allure.epic("Source Intake"),
    allure.feature("Source Routing"),
]


class _RecordingFetcher:
    def __init__(self, label: str) -> None:
        self.label = label
        self.calls: list[tuple[str, str]] = []

    def fetch(self, source: Source, day: str) -> list[FeedRecord]:
        self.calls.append((source.source_id, day))
        return [FeedRecord(title=self.label, summary="", link="")]


def _source(source_id: str, kind: str) -> Source:
    return Source(
        source_id=source_id,
        name=source_id,
        kind=kind,
        url=f"https://{source_id}.example.com/",
        section=None,
        enabled=True,
        fetch_interval_minutes=60,
    )


def _router() -> tuple[SourceRouter, _RecordingFetcher, _RecordingFetcher, _RecordingFetcher]:
    rss = _RecordingFetcher("rss")
    markets = _RecordingFetcher("markets")
    series = _RecordingFetcher("series")
    return SourceRouter(rss=rss, markets=markets, series=series), rss, markets, series


def test_router_dispatches_on_kind_and_provider() -> None:
    router, rss, markets, series = _router()

    assert router.fetch(_source("bbc-world", "RSS"), "2026-10-18")[0].title == "rss"
    assert router.fetch(_source("polymarket-markets", "api_json"), "2026-10-18")[0].title == "markets"
    assert router.fetch(_source("fred-dgs10", "csv"), "2026-10-18")[0].title == "series"

    assert rss.calls == [("bbc-world", "2026-10-18")]
    assert markets.calls == [("polymarket-markets", "2026-10-18")]
    assert series.calls == [("fred-dgs10", "2026-10-18")]


def test_unknown_providers_yield_nothing() -> None:
    router, rss, markets, series = _router()

    assert router.fetch(_source("weather-api", "api_json"), "2026-10-18") == []
    assert router.fetch(_source("census-table", "csv"), "2026-10-18") == []
    assert router.fetch(_source("mystery", "graphql"), "2026-10-18") == []
    assert rss.calls == markets.calls == series.calls == []


def test_build_source_router_wires_shared_client() -> None:
    with build_source_router(FetchSettings(max_feed_items=5, max_market_items=7)) as router:
        assert isinstance(router.rss, RssFeedFetcher)
        assert isinstance(router.markets, PolymarketFetcher)
        assert isinstance(router.series, FredSeriesFetcher)
        assert router.rss.max_items == 5
        assert router.markets.max_items == 7
        assert router.rss.http is router.markets.http is router.series.http
