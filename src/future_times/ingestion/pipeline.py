"""Pipeline coordinator: day refresh, edition reads, enrichment and render cache."""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Mapping
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from future_times.config import Settings
from future_times.curation.overlay import apply_enrichments, build_enrichment_plan
from future_times.curation.render_cache import (
    UNCURATED_VARIANT,
    content_variant,
    legacy_render_cache_key,
)
from future_times.curation.render_cache import render_cache_key as build_render_cache_key
from future_times.editions.assembler import EditionAssembler
from future_times.errors import EditionNotFoundError, PipelineError
from future_times.ingestion.cleaning import normalize_day, parse_datetime
from future_times.ingestion.models import (
    EditionState,
    RefreshCounters,
    RunStatus,
    StoryCandidate,
    StoryEnrichment,
)
from future_times.ingestion.registry import load_sources, load_standing_topics
from future_times.ingestion.repository import SQLiteRepository
from future_times.ingestion.services.fetch_service import FetchStageService
from future_times.ingestion.services.signal_service import SignalStageService
from future_times.ingestion.sources.base import FeedFetcher
from future_times.ingestion.storage.common import utc_now
from future_times.signals.entities import load_entity_dictionaries
from future_times.signals.extractor import SignalExtractor
from future_times.topics.cluster import cluster_day
from future_times.topics.standing import match_evidence

logger = logging.getLogger(__name__)

SNAPSHOT_SCHEMA = 1


@dataclass(slots=True)
class RefreshSummary:
    """Result of one day refresh."""

    run_id: str
    day: str
    status: RunStatus
    counters: RefreshCounters


class FutureTimesPipeline:
    """Coordinates refreshes per day and serves editions from the last committed build.

    Concurrent refreshes of the same day share one outstanding future; the
    registry entry lives from the start of a refresh until it finishes or fails.
    Read paths never take the lock.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        repository: SQLiteRepository,
        fetcher: FeedFetcher,
        extractor: SignalExtractor | None = None,
    ) -> None:
        self.settings = settings
        self.repository = repository
        self.fetcher = fetcher
        self.extractor = extractor or SignalExtractor(
            entity_dictionaries=load_entity_dictionaries(settings.entity_dicts_file),
            sections=settings.edition.sections,
            default_section=settings.edition.default_section,
        )
        self.assembler = EditionAssembler(settings.edition)
        self._lock = threading.Lock()
        self._in_flight: dict[str, Future[RefreshSummary]] = {}

    # Refresh

    def refresh(self, day: str | None = None, *, force: bool = False) -> RefreshSummary:
        """Fetch, extract, cluster and assemble ``day``; joins an in-flight refresh."""

        day_key = normalize_day(day)
        with self._lock:
            future = self._in_flight.get(day_key)
            owner = future is None
            if future is None:
                future = Future()
                self._in_flight[day_key] = future

        if not owner:
            logger.info("Joining in-flight refresh for %s.", day_key)
            return future.result()

        try:
            summary = self._run_refresh(day_key, force=force)
        except BaseException as error:
            future.set_exception(error)
            raise
        else:
            future.set_result(summary)
            return summary
        finally:
            with self._lock:
                self._in_flight.pop(day_key, None)

    def is_refreshing(self, day: str) -> bool:
        return normalize_day(day) in self._in_flight

    def ensure_day_built(self, day: str | None = None) -> str:
        """Refresh ``day`` unless every configured offset already has an edition."""

        day_key = normalize_day(day)
        missing = [
            offset
            for offset in self.settings.edition.offsets
            if self.repository.get_edition_payload(day_key, offset) is None
        ]
        if missing:
            logger.info("Day %s lacks editions for offsets %s; refreshing.", day_key, missing)
            self.refresh(day_key)
        return day_key

    def _run_refresh(self, day: str, *, force: bool) -> RefreshSummary:
        run_id = self.repository.start_run(day)
        counters = RefreshCounters()
        logger.info("Refresh %s started for %s (force=%s).", run_id, day, force)
        try:
            self.repository.upsert_sources(load_sources(self.settings.sources_file))
            self.repository.upsert_standing_topics(
                load_standing_topics(self.settings.standing_topics_file),
            )
            FetchStageService(
                repository=self.repository,
                fetcher=self.fetcher,
                fetch_settings=self.settings.fetch,
            ).run(day=day, counters=counters, force=force)
            SignalStageService(repository=self.repository, extractor=self.extractor).run(
                day=day,
                counters=counters,
            )
            self._build_day(day, counters)
        except Exception as error:
            self.repository.finish_run(
                run_id,
                RunStatus.FAILED,
                counters,
                error_summary=str(error) or repr(error),
            )
            logger.exception("Refresh %s for %s failed.", run_id, day)
            raise

        status = RunStatus.PARTIAL if counters.sources_failed else RunStatus.SUCCEEDED
        self.repository.finish_run(run_id, status, counters)
        logger.info(
            "Refresh %s for %s finished %s: topics=%d stories=%d.",
            run_id,
            day,
            status.value,
            counters.topics_built,
            counters.stories_built,
        )
        return RefreshSummary(run_id=run_id, day=day, status=status, counters=counters)

    def _build_day(self, day: str, counters: RefreshCounters) -> None:
        edition_settings = self.settings.edition
        signals = self.repository.list_signals(day)
        standing_topics = self.repository.list_standing_topics(enabled_only=True)
        new_links = match_evidence(
            signals,
            standing_topics,
            categorized_section=edition_settings.standing_section,
        )
        stored_links = self.repository.list_evidence_links(day)
        existing = {(link.standing_topic_key, link.signal_id) for link in stored_links}
        day_links = [
            *stored_links,
            *(
                link
                for link in new_links
                if (link.standing_topic_key, link.signal_id) not in existing
            ),
        ]
        has_standing = any(
            topic.section == edition_settings.standing_section for topic in standing_topics
        )
        topics = cluster_day(
            day,
            signals,
            self.settings.cluster,
            sections=edition_settings.sections,
            skip_sections=(edition_settings.standing_section,) if has_standing else (),
        )
        editions = [
            self.assembler.assemble(
                day=day,
                offset=offset,
                topics=topics,
                signals=signals,
                standing_topics=standing_topics,
                evidence_links=day_links,
            )
            for offset in edition_settings.offsets
        ]
        counters.evidence_links += self.repository.commit_day_build(
            day=day,
            evidence_links=new_links,
            topics=topics,
            editions=editions,
        )
        counters.topics_built = len(topics)
        counters.stories_built = sum(len(edition.stories) for edition in editions)

    # Editions

    def get_edition(
        self,
        day: str,
        offset: int,
        *,
        apply_curation: bool = True,
    ) -> dict[str, object] | None:
        payload = self.repository.get_edition_payload(normalize_day(day), offset)
        if payload is None or not apply_curation:
            return payload
        articles = payload.get("articles")
        story_ids = [
            str(article.get("id"))
            for article in (articles if isinstance(articles, list) else [])
            if isinstance(article, dict) and article.get("id")
        ]
        return apply_enrichments(payload, self.repository.get_enrichments(story_ids))

    def require_edition(self, day: str, offset: int) -> dict[str, object]:
        payload = self.get_edition(day, offset)
        if payload is None:
            raise EditionNotFoundError(
                message=f"No edition built for {day} +{offset}y.",
                code="edition_not_found",
                day=day,
                offset=offset,
            )
        return payload

    def edition_state(self, day: str, offset: int) -> EditionState:
        day_key = normalize_day(day)
        if self.repository.get_edition_payload(day_key, offset) is not None:
            return EditionState.BUILT
        if self.is_refreshing(day_key):
            return EditionState.BUILDING
        return EditionState.ABSENT

    def list_edition_story_candidates(self, day: str, offset: int) -> list[StoryCandidate]:
        return self.repository.list_edition_stories(normalize_day(day), offset)

    def build_day_signal_snapshot(self, day: str) -> dict[str, object]:
        """Read-only dump of everything stored for ``day``."""

        day_key = normalize_day(day)
        return {
            "schema": SNAPSHOT_SCHEMA,
            "day": day_key,
            "generatedAt": utc_now().isoformat(),
            "sources": [_jsonable(source) for source in self.repository.list_sources()],
            "rawItems": [_jsonable(item) for item in self.repository.list_raw_items(day_key)],
            "signals": [_jsonable(signal) for signal in self.repository.list_signals(day_key)],
            "topics": [_jsonable(topic) for topic in self.repository.list_topics(day_key)],
            "evidenceLinks": [
                _jsonable(link) for link in self.repository.list_evidence_links(day_key)
            ],
            "editions": [_jsonable(edition) for edition in self.repository.list_editions(day_key)],
            "runs": [
                _jsonable(run) for run in self.repository.list_recent_runs(limit=5, day=day_key)
            ],
        }

    # Enrichment

    def store_enrichment(self, record: Mapping[str, object]) -> StoryEnrichment:
        """Attach an enrichment record to an existing story; replaces any earlier one."""

        story_id = str(record.get("storyId") or "").strip()
        story = self.repository.get_story(story_id) if story_id else None
        if story is None:
            raise PipelineError(
                message=f"Unknown story id {story_id!r}.",
                code="unknown_story",
            )
        candidate = next(
            (
                item
                for item in self.repository.list_edition_stories(
                    str(story["day"]),
                    int(str(story["yearsForward"])),
                )
                if item.story_id == story_id
            ),
            None,
        )
        raw_generated_at = record.get("generatedAt")
        generated_at = (
            raw_generated_at
            if isinstance(raw_generated_at, datetime)
            else parse_datetime(str(raw_generated_at or "")) or utc_now()
        )
        plan = build_enrichment_plan(record, candidate=candidate)
        model = str(record.get("model") or "").strip() or None
        enrichment = StoryEnrichment(
            story_id=story_id,
            day=str(story["day"]),
            offset=int(str(story["yearsForward"])),
            generated_at=generated_at,
            plan=plan,
            section=str(story["section"]),
            rank=int(str(story["rank"])),
            model=model,
            key_story=bool(plan.get("key")),
        )
        self.repository.upsert_enrichment(enrichment)
        logger.info("Stored enrichment for %s (generated %s).", story_id, generated_at.isoformat())
        return enrichment

    def get_story(self, story_id: str) -> dict[str, object] | None:
        return self.repository.get_story(story_id)

    # Render cache

    def render_cache_key(
        self,
        story_id: str,
        enrichment_generated_at: datetime | str | None = None,
    ) -> str:
        """Cache key for a rendered story; defaults to the stored enrichment timestamp."""

        stamp = enrichment_generated_at
        if stamp is None:
            stamp = self._enrichment_timestamp(story_id)
        return build_render_cache_key(
            story_id,
            stamp,
            format_version=self.settings.render.format_version,
        )

    def get_rendered(self, story_id: str) -> dict[str, object] | None:
        stamp = self._enrichment_timestamp(story_id)
        article = self.repository.get_rendered(self.render_cache_key(story_id, stamp))
        if article is None and content_variant(stamp) == UNCURATED_VARIANT:
            article = self.repository.get_rendered(
                legacy_render_cache_key(
                    story_id,
                    format_version=self.settings.render.format_version,
                ),
            )
        return article

    def store_rendered(self, story_id: str, article: dict[str, object]) -> str:
        stamp = self._enrichment_timestamp(story_id)
        cache_key = self.render_cache_key(story_id, stamp)
        self.repository.store_rendered(
            cache_key=cache_key,
            story_id=story_id,
            content_variant=content_variant(stamp),
            article=article,
        )
        return cache_key

    def _enrichment_timestamp(self, story_id: str) -> datetime | None:
        enrichment = self.repository.get_enrichments([story_id]).get(story_id)
        return enrichment.generated_at if enrichment is not None else None


def _jsonable(value: object) -> object:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            item.name: _jsonable(getattr(value, item.name)) for item in dataclasses.fields(value)
        }
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_jsonable(item) for item in value]
    return value
