"""Controllers for future-times CLI commands."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from future_times.config import Settings
from future_times.errors import PipelineError
from future_times.ingestion.cleaning import normalize_day
from future_times.ingestion.pipeline import FutureTimesPipeline
from future_times.ingestion.registry import load_sources
from future_times.ingestion.repository import SQLiteRepository
from future_times.ingestion.sources.router import build_source_router
from future_times.ingestion.worker import RefreshWorker


@dataclass(slots=True)
class RefreshCommand:
    """CLI inputs for the day refresh command."""

    db_path: Path | None
    day: str | None
    force: bool


@dataclass(slots=True)
class EditionCommand:
    """CLI inputs for edition display commands."""

    db_path: Path | None
    day: str | None
    offset: int
    raw: bool = False


@dataclass(slots=True)
class SnapshotCommand:
    """CLI inputs for the day snapshot command."""

    db_path: Path | None
    day: str | None


@dataclass(slots=True)
class SourcesCommand:
    """CLI inputs for the sources listing command."""

    db_path: Path | None


@dataclass(slots=True)
class EnrichCommand:
    """CLI inputs for loading enrichment records."""

    db_path: Path | None
    file: Path


@dataclass(slots=True)
class WorkerCommand:
    """CLI inputs for the scheduled refresh worker."""

    db_path: Path | None
    interval_seconds: float | None = None
    daily_at: str | None = None
    max_ticks: int | None = None


class FutureTimesCliController:
    """Coordinates CLI command execution."""

    def refresh(self, command: RefreshCommand) -> list[str]:
        settings = _settings(command.db_path)
        with _pipeline(settings) as pipeline:
            summary = pipeline.refresh(command.day, force=command.force)
            editions = pipeline.repository.list_editions(summary.day)

        counters = summary.counters
        lines = [
            "Refresh completed: "
            f"run_id={summary.run_id} day={summary.day} status={summary.status.value} "
            f"fetched={counters.sources_fetched} "
            f"failed={counters.sources_failed} "
            f"skipped={counters.sources_skipped} "
            f"raw_items={counters.raw_items_inserted} "
            f"signals={counters.signals_created} "
            f"evidence_links={counters.evidence_links} "
            f"topics={counters.topics_built} "
            f"stories={counters.stories_built}",
        ]
        for edition in editions:
            lines.append(
                f"  edition day={edition.day} offset={edition.offset} "
                f"version={edition.version} stories={edition.story_count}",
            )
        return lines

    def edition(self, command: EditionCommand) -> list[str]:
        settings = _settings(command.db_path)
        day = normalize_day(command.day)
        with _pipeline(settings) as pipeline:
            if command.raw:
                payload = pipeline.get_edition(day, command.offset, apply_curation=False)
                if payload is None:
                    payload = pipeline.require_edition(day, command.offset)
                return [json.dumps(payload, ensure_ascii=False, indent=2)]
            payload = pipeline.require_edition(day, command.offset)

        articles = payload.get("articles")
        lines = [
            f"{payload.get('date')} (+{command.offset}y) version={payload.get('version')} "
            f"hero={payload.get('heroId') or '-'}",
        ]
        for article in articles if isinstance(articles, list) else []:
            lines.append(
                f"  [{article.get('section')} #{article.get('rank')}] {article.get('title')} "
                f"(confidence={article.get('confidence')}) id={article.get('id')}",
            )
        return lines

    def candidates(self, command: EditionCommand) -> list[str]:
        settings = _settings(command.db_path)
        day = normalize_day(command.day)
        with _pipeline(settings) as pipeline:
            candidates = pipeline.list_edition_story_candidates(day, command.offset)

        if not candidates:
            return [f"No story candidates for {day} +{command.offset}y."]
        lines = [f"Story candidates for {day} +{command.offset}y: {len(candidates)}"]
        for candidate in candidates:
            lines.append(
                f"  {candidate.story_id} section={candidate.section} rank={candidate.rank} "
                f"angle={candidate.angle} title={candidate.title}",
            )
        return lines

    def snapshot(self, command: SnapshotCommand) -> list[str]:
        settings = _settings(command.db_path)
        with _pipeline(settings) as pipeline:
            snapshot = pipeline.build_day_signal_snapshot(normalize_day(command.day))
        return [json.dumps(snapshot, ensure_ascii=False, indent=2)]

    def sources(self, command: SourcesCommand) -> list[str]:
        settings = _settings(command.db_path)
        with _repository(settings) as repository:
            repository.upsert_sources(load_sources(settings.sources_file))
            sources = repository.list_sources()

        lines = [f"Sources: {len(sources)}"]
        for source in sources:
            last_fetched = source.last_fetched_at.isoformat() if source.last_fetched_at else "-"
            lines.append(
                f"  {source.source_id} kind={source.kind} enabled={'yes' if source.enabled else 'no'} "
                f"section={source.section or '-'} interval={source.fetch_interval_minutes}m "
                f"last_fetched={last_fetched} status={source.last_status or '-'} "
                f"items={source.last_item_count if source.last_item_count is not None else '-'} "
                f"error={source.last_error or '-'}",
            )
        return lines

    def enrich(self, command: EnrichCommand) -> list[str]:
        settings = _settings(command.db_path)
        records = _read_enrichment_records(command.file)
        stored = 0
        lines: list[str] = []
        with _pipeline(settings) as pipeline:
            for record in records:
                try:
                    enrichment = pipeline.store_enrichment(record)
                except PipelineError as error:
                    lines.append(f"  skipped: {error}")
                    continue
                stored += 1
                lines.append(
                    f"  stored {enrichment.story_id} "
                    f"confidence={enrichment.plan.get('confidence')} "
                    f"hero={'yes' if enrichment.hero else 'no'}",
                )
        return [f"Enrichment records stored: {stored} of {len(records)}", *lines]

    def worker(self, command: WorkerCommand) -> list[str]:
        settings = _settings(command.db_path)
        worker_settings = settings.worker
        if command.interval_seconds is not None:
            worker_settings = dataclasses.replace(
                worker_settings,
                refresh_interval_seconds=command.interval_seconds,
            )
        if command.daily_at is not None:
            worker_settings = dataclasses.replace(worker_settings, daily_time=command.daily_at)
        with _pipeline(settings) as pipeline:
            summary = RefreshWorker(pipeline=pipeline, settings=worker_settings).run_loop(
                max_ticks=command.max_ticks,
            )
        return [
            "Worker summary: "
            f"ticks={summary.ticks} succeeded={summary.succeeded} failed={summary.failed}",
        ]


def _settings(db_path: Path | None) -> Settings:
    settings = Settings.from_env(db_path=db_path)
    settings.validate()
    return settings


@contextmanager
def _repository(settings: Settings) -> Iterator[SQLiteRepository]:
    repository = SQLiteRepository(settings.db_path)
    try:
        repository.init_schema()
        yield repository
    finally:
        repository.close()


@contextmanager
def _pipeline(settings: Settings) -> Iterator[FutureTimesPipeline]:
    with _repository(settings) as repository, build_source_router(settings.fetch) as fetcher:
        yield FutureTimesPipeline(settings=settings, repository=repository, fetcher=fetcher)


def _read_enrichment_records(path: Path) -> list[dict[str, object]]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise PipelineError(
            message=f"Cannot read enrichment file {path}: {error}",
            code="invalid_enrichment_file",
        ) from error
    if isinstance(payload, dict):
        payload = payload.get("stories", payload.get("records", [payload]))
    if not isinstance(payload, list):
        raise PipelineError(
            message=f"Enrichment file {path} must hold a list of records.",
            code="invalid_enrichment_file",
        )
    return [record for record in payload if isinstance(record, dict)]
