"""Fetch stage: pull every due source through a bounded worker pool."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta

from future_times.config import FetchSettings
from future_times.errors import PipelineError
from future_times.ingestion.cleaning import (
    MAX_SUMMARY_CHARS,
    MAX_TITLE_CHARS,
    canonicalize_url,
    clip,
    day_of,
    raw_fingerprint,
)
from future_times.ingestion.models import (
    FeedRecord,
    RawItemWrite,
    RefreshCounters,
    Source,
    SourceKind,
)
from future_times.ingestion.repository import SQLiteRepository
from future_times.ingestion.sources.base import FeedFetcher
from future_times.ingestion.storage.common import utc_now
from future_times.signals.extractor import normalize_section

logger = logging.getLogger(__name__)

SERIES_DEFAULT_SECTION = "Business"
SUCCESS_STATUS = 200


@dataclass(slots=True)
class SourceFetchOutcome:
    """Result of one source fetch attempt, collected before persistence."""

    source: Source
    records: list[FeedRecord]
    error: str | None = None
    status: int | None = None


class FetchStageService:
    """Fetches due sources concurrently and stores their items insert-or-ignore."""

    def __init__(
        self,
        *,
        repository: SQLiteRepository,
        fetcher: FeedFetcher,
        fetch_settings: FetchSettings,
    ) -> None:
        self.repository = repository
        self.fetcher = fetcher
        self.fetch_settings = fetch_settings

    def run(
        self,
        *,
        day: str,
        counters: RefreshCounters,
        force: bool = False,
        now: datetime | None = None,
    ) -> None:
        fetched_at = now or utc_now()
        sources = self.repository.list_sources(enabled_only=True)
        due = [source for source in sources if force or is_due(source, now=fetched_at)]
        counters.sources_skipped += len(sources) - len(due)
        if not due:
            logger.info("No sources due for %s (%d enabled).", day, len(sources))
            return

        workers = max(1, min(self.fetch_settings.concurrency, len(due)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fetch") as executor:
            # map() keeps source order so raw ids are assigned deterministically.
            outcomes = list(executor.map(lambda source: self._fetch_one(source, day), due))

        for outcome in outcomes:
            source = outcome.source
            if outcome.error is not None:
                counters.sources_failed += 1
                self.repository.record_source_failure(
                    source.source_id,
                    fetched_at=fetched_at,
                    error=outcome.error,
                    status=outcome.status,
                )
                continue
            items = [
                item
                for record in outcome.records
                if (item := build_raw_item(record, source=source, day=day, fetched_at=fetched_at))
                is not None
            ]
            counters.raw_items_inserted += self.repository.insert_raw_items(items)
            counters.sources_fetched += 1
            self.repository.record_source_success(
                source.source_id,
                fetched_at=fetched_at,
                status=outcome.status or SUCCESS_STATUS,
                item_count=len(outcome.records),
            )
        logger.info(
            "Fetched %d source(s) for %s: failed=%d skipped=%d new_items=%d.",
            counters.sources_fetched,
            day,
            counters.sources_failed,
            counters.sources_skipped,
            counters.raw_items_inserted,
        )

    def _fetch_one(self, source: Source, day: str) -> SourceFetchOutcome:
        try:
            records = self.fetcher.fetch(source, day)
        except PipelineError as error:
            logger.warning("Source %s failed: %s", source.source_id, error)
            return SourceFetchOutcome(
                source=source,
                records=[],
                error=str(error) or error.code,
                status=getattr(error, "status", None),
            )
        except Exception as error:  # noqa: BLE001
            logger.warning("Source %s failed unexpectedly: %r", source.source_id, error)
            return SourceFetchOutcome(source=source, records=[], error=str(error) or repr(error))
        return SourceFetchOutcome(source=source, records=records, status=SUCCESS_STATUS)


def is_due(source: Source, *, now: datetime) -> bool:
    """A source is due when it was never fetched or its interval has elapsed."""

    if source.fetch_interval_minutes <= 0 or source.last_fetched_at is None:
        return True
    return now - source.last_fetched_at >= timedelta(minutes=source.fetch_interval_minutes)


def build_raw_item(
    record: FeedRecord,
    *,
    source: Source,
    day: str,
    fetched_at: datetime,
) -> RawItemWrite | None:
    title = (record.title or "").strip()
    if not title:
        return None
    canonical_url = canonicalize_url(record.link)
    is_series = source.kind == SourceKind.CSV.value
    # Series snapshots are keyed by the refresh day so one value lands per day.
    pub_day = day if is_series else day_of(record.published_at, day)
    section_hint = normalize_section(source.section)
    if section_hint is None and is_series:
        section_hint = SERIES_DEFAULT_SECTION
    return RawItemWrite(
        source_id=source.source_id,
        day=day,
        fetched_at=fetched_at,
        published_at=record.published_at,
        canonical_url=canonical_url,
        title=clip(title, MAX_TITLE_CHARS),
        summary=clip((record.summary or "").strip(), MAX_SUMMARY_CHARS),
        fingerprint=raw_fingerprint(title=title, canonical_url=canonical_url, pub_day=pub_day),
        section_hint=section_hint,
        payload=record.payload,
    )
