"""Routes each source to the fetcher for its declared kind."""

from __future__ import annotations

import logging

from future_times.config import FetchSettings
from future_times.ingestion.models import FeedRecord, Source, SourceKind
from future_times.ingestion.sources.base import FeedFetcher
from future_times.ingestion.sources.fred import FredSeriesFetcher
from future_times.ingestion.sources.http import SourceHttpClient
from future_times.ingestion.sources.polymarket import PolymarketFetcher
from future_times.ingestion.sources.rss import RssFeedFetcher

logger = logging.getLogger(__name__)


class SourceRouter:
    """``FeedFetcher`` that dispatches on source kind; unknown providers yield nothing."""

    def __init__(
        self,
        *,
        rss: FeedFetcher,
        markets: FeedFetcher,
        series: FeedFetcher,
        http: SourceHttpClient | None = None,
    ) -> None:
        self.rss = rss
        self.markets = markets
        self.series = series
        self._http = http

    def fetch(self, source: Source, day: str) -> list[FeedRecord]:
        fetcher = self.fetcher_for(source)
        if fetcher is None:
            logger.info("No fetcher for source %s (kind=%s); skipping.", source.source_id, source.kind)
            return []
        return fetcher.fetch(source, day)

    def fetcher_for(self, source: Source) -> FeedFetcher | None:
        kind = source.kind.strip().lower()
        source_id = source.source_id.lower()
        if kind == SourceKind.RSS.value:
            return self.rss
        if kind == SourceKind.API_JSON.value and "polymarket" in source_id:
            return self.markets
        if kind == SourceKind.CSV.value and "fred" in source_id:
            return self.series
        return None

    def close(self) -> None:
        if self._http is not None:
            self._http.close()

    def __enter__(self) -> SourceRouter:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def build_source_router(settings: FetchSettings) -> SourceRouter:
    http = SourceHttpClient(
        timeout_seconds=settings.timeout_seconds,
        user_agent=settings.user_agent,
    )
    return SourceRouter(
        rss=RssFeedFetcher(http, max_items=settings.max_feed_items),
        markets=PolymarketFetcher(http, max_items=settings.max_market_items),
        series=FredSeriesFetcher(http),
        http=http,
    )
