"""SQLModel-backed storage facade for the signal-to-edition pipeline."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, delete, select

from future_times.ingestion.models import (
    EditionDraft,
    EditionSummary,
    EvidenceLink,
    PendingRawItem,
    RawItem,
    RawItemWrite,
    RefreshCounters,
    RefreshRunView,
    RunStatus,
    Signal,
    SignalWrite,
    Source,
    SourceConfig,
    StandingTopic,
    StoryCandidate,
    StoryEnrichment,
    Topic,
    TopicDraft,
)
from future_times.ingestion.storage.alembic_runner import upgrade_head
from future_times.ingestion.storage.common import build_sqlite_engine, to_utc_aware, utc_now
from future_times.ingestion.storage.sqlmodel_models import (
    EditionRow,
    EditionStoryRow,
    RawItemRow,
    RefreshRunRow,
    RenderCacheRow,
    SignalRow,
    SourceRow,
    StandingTopicRow,
    StoryEnrichmentRow,
    TopicEvidenceRow,
    TopicRow,
)

logger = logging.getLogger(__name__)
DEFAULT_RUNNING_STALE_AFTER = timedelta(minutes=30)


class SQLiteRepository:
    """Facade that persists pipeline entities using SQLModel and Alembic."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path)

        # Keep low-level connection for tests and ad-hoc debugging queries.
        self._connection = sqlite3.connect(db_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA foreign_keys = ON")

    def close(self) -> None:
        self._connection.close()
        self.engine.dispose()

    def init_schema(self) -> None:
        upgrade_head(self.db_path)
        self._connection.execute("PRAGMA foreign_keys = ON")
        self._connection.commit()

    # Sources

    def upsert_sources(self, configs: Iterable[SourceConfig]) -> int:
        """Create or update registry sources; fetch health is left untouched."""

        count = 0
        now = utc_now()
        with Session(self.engine) as session:
            for config in configs:
                row = session.get(SourceRow, config.source_id)
                if row is None:
                    row = SourceRow(
                        source_id=config.source_id,
                        name=config.name,
                        kind=config.kind,
                        url=config.url,
                        updated_at=now,
                    )
                row.name = config.name
                row.kind = config.kind
                row.url = config.url
                row.section = config.section
                row.enabled = config.enabled
                row.fetch_interval_minutes = config.fetch_interval_minutes
                row.meta_json = json.dumps(config.meta, ensure_ascii=False, sort_keys=True)
                row.updated_at = now
                session.add(row)
                count += 1
            session.commit()
        return count

    def list_sources(self, *, enabled_only: bool = False) -> list[Source]:
        with Session(self.engine) as session:
            statement = select(SourceRow).order_by(col(SourceRow.source_id))
            if enabled_only:
                statement = statement.where(col(SourceRow.enabled).is_(True))
            rows = session.exec(statement).all()
        return [_to_source(row) for row in rows]

    def record_source_success(
        self,
        source_id: str,
        *,
        fetched_at: datetime,
        status: int,
        item_count: int,
    ) -> None:
        with Session(self.engine) as session:
            row = session.get(SourceRow, source_id)
            if row is None:
                raise RuntimeError(f"Source not found: {source_id}")
            row.last_fetched_at = fetched_at
            row.last_error = None
            row.last_status = status
            row.last_item_count = item_count
            session.add(row)
            session.commit()

    def record_source_failure(
        self,
        source_id: str,
        *,
        fetched_at: datetime,
        error: str,
        status: int | None = None,
    ) -> None:
        with Session(self.engine) as session:
            row = session.get(SourceRow, source_id)
            if row is None:
                raise RuntimeError(f"Source not found: {source_id}")
            row.last_fetched_at = fetched_at
            row.last_error = error
            row.last_status = status if status is not None else 0
            row.last_item_count = 0
            session.add(row)
            session.commit()

    # Raw items

    def insert_raw_items(self, items: Iterable[RawItemWrite]) -> int:
        """Insert-or-ignore by fingerprint; returns how many rows were new."""

        inserted = 0
        with Session(self.engine) as session:
            for item in items:
                statement = (
                    sqlite_insert(RawItemRow)
                    .values(
                        source_id=item.source_id,
                        day=item.day,
                        fetched_at=item.fetched_at,
                        published_at=item.published_at,
                        canonical_url=item.canonical_url,
                        title=item.title,
                        summary=item.summary,
                        payload_json=(
                            json.dumps(item.payload, ensure_ascii=False, sort_keys=True)
                            if item.payload is not None
                            else None
                        ),
                        section_hint=item.section_hint,
                        fingerprint=item.fingerprint,
                    )
                    .on_conflict_do_nothing(index_elements=["fingerprint"])
                )
                result = session.exec(statement)
                inserted += max(0, result.rowcount or 0)
            session.commit()
        return inserted

    def list_pending_raw_items(self, day: str) -> list[PendingRawItem]:
        """Raw items of ``day`` that have no signal yet, oldest first."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(RawItemRow, SourceRow)
                .join(SourceRow, col(SourceRow.source_id) == col(RawItemRow.source_id))
                .outerjoin(SignalRow, col(SignalRow.raw_id) == col(RawItemRow.raw_id))
                .where(RawItemRow.day == day, col(SignalRow.signal_id).is_(None))
                .order_by(col(RawItemRow.raw_id)),
            ).all()
        return [
            PendingRawItem(
                raw_id=int(raw.raw_id or 0),
                source_id=raw.source_id,
                source_name=source.name,
                source_kind=source.kind,
                source_url=source.url,
                published_at=to_utc_aware(raw.published_at),
                canonical_url=raw.canonical_url,
                title=raw.title,
                summary=raw.summary,
                section_hint=raw.section_hint,
            )
            for raw, source in rows
        ]

    def list_raw_items(self, day: str) -> list[RawItem]:
        """Raw items of ``day``, most recently published (or fetched) first."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(RawItemRow)
                .where(RawItemRow.day == day)
                .order_by(
                    func.coalesce(RawItemRow.published_at, RawItemRow.fetched_at).desc(),
                    col(RawItemRow.raw_id).desc(),
                ),
            ).all()
        return [
            RawItem(
                raw_id=int(row.raw_id or 0),
                source_id=row.source_id,
                day=row.day,
                fetched_at=to_utc_aware(row.fetched_at) or utc_now(),
                published_at=to_utc_aware(row.published_at),
                canonical_url=row.canonical_url,
                title=row.title,
                summary=row.summary,
                section_hint=row.section_hint,
            )
            for row in rows
        ]

    # Signals

    def insert_signals(self, writes: Sequence[SignalWrite]) -> int:
        """Append signals; a raw item that already has one is skipped."""

        inserted = 0
        created_at = utc_now()
        with Session(self.engine) as session:
            for write in writes:
                statement = (
                    sqlite_insert(SignalRow)
                    .values(
                        raw_id=write.raw_id,
                        day=write.day,
                        section=write.section,
                        signal_type=write.signal_type.value,
                        title=write.title,
                        summary=write.summary,
                        published_at=write.published_at,
                        canonical_url=write.canonical_url,
                        horizon=write.horizon.value,
                        score=write.score,
                        entities_json=json.dumps(write.entities, ensure_ascii=False),
                        keywords_json=json.dumps(write.keywords, ensure_ascii=False),
                        citations_json=json.dumps(write.citations, ensure_ascii=False),
                        created_at=created_at,
                    )
                    .on_conflict_do_nothing()
                )
                result = session.exec(statement)
                inserted += max(0, result.rowcount or 0)
            session.commit()
        return inserted

    def has_signal_titled(self, day: str, title: str) -> bool:
        with Session(self.engine) as session:
            found = session.exec(
                select(SignalRow.signal_id)
                .where(SignalRow.day == day, SignalRow.title == title)
                .limit(1),
            ).first()
        return found is not None

    def list_signals(self, day: str) -> list[Signal]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(SignalRow).where(SignalRow.day == day).order_by(col(SignalRow.signal_id)),
            ).all()
        return [_to_signal(row) for row in rows]

    # Standing topics

    def upsert_standing_topics(self, topics: Iterable[StandingTopic]) -> int:
        count = 0
        now = utc_now()
        with Session(self.engine) as session:
            for topic in topics:
                row = session.get(StandingTopicRow, topic.topic_key)
                if row is None:
                    row = StandingTopicRow(
                        topic_key=topic.topic_key,
                        section=topic.section,
                        label=topic.label,
                        updated_at=now,
                    )
                row.section = topic.section
                row.label = topic.label
                row.category = topic.category
                row.subcategory = topic.subcategory
                row.description = topic.description
                row.extrapolation_axes_json = json.dumps(topic.extrapolation_axes, ensure_ascii=False)
                row.keywords_json = json.dumps(topic.keywords, ensure_ascii=False)
                row.milestones_json = json.dumps(topic.milestones, ensure_ascii=False)
                row.enabled = topic.enabled
                row.updated_at = now
                session.add(row)
                count += 1
            session.commit()
        return count

    def list_standing_topics(self, *, enabled_only: bool = False) -> list[StandingTopic]:
        with Session(self.engine) as session:
            statement = select(StandingTopicRow).order_by(
                col(StandingTopicRow.category),
                col(StandingTopicRow.label),
            )
            if enabled_only:
                statement = statement.where(col(StandingTopicRow.enabled).is_(True))
            rows = session.exec(statement).all()
        return [
            StandingTopic(
                topic_key=row.topic_key,
                section=row.section,
                label=row.label,
                category=row.category,
                subcategory=row.subcategory,
                description=row.description,
                extrapolation_axes=_load_list(row.extrapolation_axes_json),
                keywords=[str(keyword) for keyword in _load_list(row.keywords_json)],
                milestones=_load_list(row.milestones_json),
                enabled=row.enabled,
            )
            for row in rows
        ]

    def list_evidence_links(self, day: str) -> list[EvidenceLink]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(TopicEvidenceRow)
                .where(TopicEvidenceRow.day == day)
                .order_by(col(TopicEvidenceRow.standing_topic_key), col(TopicEvidenceRow.signal_id)),
            ).all()
        return [
            EvidenceLink(
                standing_topic_key=row.standing_topic_key,
                signal_id=row.signal_id,
                day=row.day,
                relevance=row.relevance,
                matched_keywords=[str(item) for item in _load_list(row.matched_keywords_json)],
                category_hint=row.category_hint,
            )
            for row in rows
        ]

    # Day build

    def commit_day_build(
        self,
        *,
        day: str,
        evidence_links: Sequence[EvidenceLink],
        topics: Sequence[TopicDraft],
        editions: Sequence[EditionDraft],
    ) -> int:
        """Persist everything downstream of signals for ``day`` in one transaction.

        Evidence links are insert-or-ignore, the day's topics are replaced and
        each edition is upserted with its stories replaced. Returns the number
        of new evidence links.
        """

        now = utc_now()
        links_inserted = 0
        with Session(self.engine) as session:
            for link in evidence_links:
                result = session.exec(
                    sqlite_insert(TopicEvidenceRow)
                    .values(
                        standing_topic_key=link.standing_topic_key,
                        signal_id=link.signal_id,
                        day=link.day,
                        relevance=link.relevance,
                        matched_keywords_json=json.dumps(link.matched_keywords, ensure_ascii=False),
                        category_hint=link.category_hint,
                    )
                    .on_conflict_do_nothing(
                        index_elements=["standing_topic_key", "signal_id", "day"],
                    ),
                )
                links_inserted += max(0, result.rowcount or 0)

            session.exec(delete(TopicRow).where(col(TopicRow.day) == day))
            for topic in topics:
                session.add(
                    TopicRow(
                        day=topic.day,
                        section=topic.section,
                        label=topic.label,
                        brief=topic.brief,
                        horizon=topic.horizon,
                        slug=topic.slug,
                        score=topic.score,
                        evidence_signal_ids_json=json.dumps(topic.evidence_signal_ids),
                        evidence_links_json=json.dumps(topic.evidence_links, ensure_ascii=False),
                        created_at=now,
                    ),
                )

            for edition in editions:
                row = session.exec(
                    select(EditionRow).where(
                        EditionRow.day == edition.day,
                        EditionRow.offset_years == edition.offset,
                    ),
                ).one_or_none()
                payload_json = json.dumps(edition.payload, ensure_ascii=False)
                if row is None:
                    row = EditionRow(
                        day=edition.day,
                        offset_years=edition.offset,
                        version=edition.version,
                        generated_at=now,
                        payload_json=payload_json,
                    )
                else:
                    row.version = edition.version
                    row.generated_at = now
                    row.payload_json = payload_json
                session.add(row)
                session.flush()

                session.exec(
                    delete(EditionStoryRow).where(col(EditionStoryRow.edition_id) == row.edition_id),
                )
                for story in edition.stories:
                    session.add(
                        EditionStoryRow(
                            story_id=story.story_id,
                            edition_id=int(row.edition_id or 0),
                            day=edition.day,
                            offset_years=edition.offset,
                            section=story.section,
                            rank=story.rank,
                            topic_ref=story.topic_ref,
                            angle=story.angle,
                            headline_seed=story.headline_seed,
                            dek_seed=story.dek_seed,
                            evidence_pack_json=json.dumps(story.evidence_pack, ensure_ascii=False),
                        ),
                    )
            session.commit()
        return links_inserted

    def list_topics(self, day: str) -> list[Topic]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(TopicRow)
                .where(TopicRow.day == day)
                .order_by(col(TopicRow.score).desc(), col(TopicRow.topic_id).desc()),
            ).all()
        return [
            Topic(
                topic_id=int(row.topic_id or 0),
                day=row.day,
                section=row.section,
                label=row.label,
                brief=row.brief,
                horizon=row.horizon,
                slug=row.slug,
                score=row.score,
                evidence_signal_ids=[int(item) for item in _load_list(row.evidence_signal_ids_json)],
                evidence_links=_load_list(row.evidence_links_json),
            )
            for row in rows
        ]

    # Editions and stories

    def get_edition_payload(self, day: str, offset: int) -> dict[str, object] | None:
        with Session(self.engine) as session:
            payload_json = session.exec(
                select(EditionRow.payload_json).where(
                    EditionRow.day == day,
                    EditionRow.offset_years == offset,
                ),
            ).one_or_none()
        if payload_json is None:
            return None
        return _load_dict(payload_json)

    def list_editions(self, day: str | None = None) -> list[EditionSummary]:
        with Session(self.engine) as session:
            statement = (
                select(EditionRow, func.count(col(EditionStoryRow.story_id)))
                .outerjoin(EditionStoryRow, col(EditionStoryRow.edition_id) == col(EditionRow.edition_id))
                .group_by(col(EditionRow.edition_id))
                .order_by(col(EditionRow.day).desc(), col(EditionRow.offset_years))
            )
            if day is not None:
                statement = statement.where(EditionRow.day == day)
            rows = session.exec(statement).all()
        return [
            EditionSummary(
                day=row.day,
                offset=row.offset_years,
                version=row.version,
                generated_at=to_utc_aware(row.generated_at) or utc_now(),
                story_count=int(story_count or 0),
            )
            for row, story_count in rows
        ]

    def count_editions(self, day: str) -> int:
        with Session(self.engine) as session:
            return int(
                session.exec(
                    select(func.count()).select_from(EditionRow).where(EditionRow.day == day),
                ).one(),
            )

    def list_edition_stories(self, day: str, offset: int) -> list[StoryCandidate]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(EditionStoryRow)
                .where(EditionStoryRow.day == day, EditionStoryRow.offset_years == offset)
                .order_by(
                    col(EditionStoryRow.rank),
                    col(EditionStoryRow.section),
                    col(EditionStoryRow.story_id),
                ),
            ).all()
        candidates: list[StoryCandidate] = []
        for row in rows:
            pack = _load_dict(row.evidence_pack_json)
            topic = pack.get("topic")
            topic_block = topic if isinstance(topic, dict) else None
            candidates.append(
                StoryCandidate(
                    story_id=row.story_id,
                    section=row.section,
                    rank=row.rank,
                    angle=row.angle,
                    title=row.headline_seed,
                    dek=row.dek_seed,
                    topic_label=str((topic_block or {}).get("label") or ""),
                    topic=topic_block,
                    evidence_pack=pack,
                ),
            )
        return candidates

    def get_story(self, story_id: str) -> dict[str, object] | None:
        """Story seed joined with its edition and optional enrichment."""

        with Session(self.engine) as session:
            row = session.exec(
                select(EditionStoryRow, StoryEnrichmentRow)
                .outerjoin(
                    StoryEnrichmentRow,
                    col(StoryEnrichmentRow.story_id) == col(EditionStoryRow.story_id),
                )
                .where(EditionStoryRow.story_id == story_id),
            ).first()
        if row is None:
            return None
        story, enrichment_row = row
        plan = _load_dict(enrichment_row.plan_json) if enrichment_row is not None else None
        curated_title = str((plan or {}).get("curatedTitle") or "").strip()
        curated_dek = str((plan or {}).get("curatedDek") or "").strip()
        curation: dict[str, object] | None = None
        if plan is not None and enrichment_row is not None:
            generated_at = to_utc_aware(enrichment_row.generated_at)
            curation = {
                **plan,
                "generatedAt": generated_at.isoformat() if generated_at else None,
                "model": enrichment_row.model or plan.get("model"),
                "key": enrichment_row.key_story or bool(plan.get("key")),
                "hero": bool(plan.get("hero")),
            }
        return {
            "storyId": story.story_id,
            "day": story.day,
            "yearsForward": story.offset_years,
            "section": story.section,
            "rank": story.rank,
            "angle": story.angle,
            "headlineSeed": curated_title or story.headline_seed,
            "dekSeed": curated_dek or story.dek_seed,
            "evidencePack": _load_dict(story.evidence_pack_json),
            "curation": curation,
        }

    # Enrichments and render cache

    def upsert_enrichment(self, enrichment: StoryEnrichment) -> None:
        with Session(self.engine) as session:
            row = session.get(StoryEnrichmentRow, enrichment.story_id)
            if row is None:
                row = StoryEnrichmentRow(
                    story_id=enrichment.story_id,
                    day=enrichment.day,
                    offset_years=enrichment.offset,
                    generated_at=enrichment.generated_at,
                    plan_json="{}",
                )
            row.day = enrichment.day
            row.offset_years = enrichment.offset
            row.section = enrichment.section
            row.rank = enrichment.rank
            row.generated_at = enrichment.generated_at
            row.model = enrichment.model
            row.key_story = enrichment.key_story
            row.plan_json = json.dumps(enrichment.plan, ensure_ascii=False)
            session.add(row)
            session.commit()

    def get_enrichments(self, story_ids: Sequence[str]) -> dict[str, StoryEnrichment]:
        if not story_ids:
            return {}
        with Session(self.engine) as session:
            rows = session.exec(
                select(StoryEnrichmentRow).where(
                    col(StoryEnrichmentRow.story_id).in_(list(story_ids)),
                ),
            ).all()
        return {row.story_id: _to_enrichment(row) for row in rows}

    def delete_enrichment(self, story_id: str) -> bool:
        with Session(self.engine) as session:
            row = session.get(StoryEnrichmentRow, story_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        return True

    def get_rendered(self, cache_key: str) -> dict[str, object] | None:
        with Session(self.engine) as session:
            row = session.get(RenderCacheRow, cache_key)
        if row is None:
            return None
        return _load_dict(row.article_json)

    def store_rendered(
        self,
        *,
        cache_key: str,
        story_id: str,
        content_variant: str,
        article: dict[str, object],
    ) -> None:
        with Session(self.engine) as session:
            row = session.get(RenderCacheRow, cache_key)
            if row is None:
                row = RenderCacheRow(
                    cache_key=cache_key,
                    story_id=story_id,
                    content_variant=content_variant,
                    generated_at=utc_now(),
                    article_json="{}",
                )
            row.generated_at = utc_now()
            row.article_json = json.dumps(article, ensure_ascii=False)
            session.add(row)
            session.commit()

    # Refresh runs

    def start_run(
        self,
        day: str,
        *,
        stale_after: timedelta = DEFAULT_RUNNING_STALE_AFTER,
    ) -> str:
        if stale_after.total_seconds() <= 0:
            raise ValueError("stale_after must be > 0")

        while True:
            run_id = str(uuid4())
            with Session(self.engine) as session:
                session.add(
                    RefreshRunRow(
                        run_id=run_id,
                        day=day,
                        status=RunStatus.RUNNING.value,
                        started_at=utc_now(),
                    ),
                )
                try:
                    session.commit()
                    return run_id
                except IntegrityError as error:
                    session.rollback()
                    active_run = session.exec(
                        select(RefreshRunRow).where(
                            RefreshRunRow.day == day,
                            RefreshRunRow.status == RunStatus.RUNNING.value,
                        ),
                    ).one_or_none()
                    if active_run is None:
                        raise

                    started_at = to_utc_aware(active_run.started_at) or utc_now()
                    if datetime.now(tz=UTC) - started_at > stale_after:
                        active_run.status = RunStatus.FAILED.value
                        active_run.finished_at = utc_now()
                        active_run.error_summary = (
                            "Auto-recovered stale running refresh after crash/interruption."
                        )
                        session.add(active_run)
                        session.commit()
                        logger.warning(
                            "Recovered stale running refresh and starting a new one "
                            "(day=%s stale_run_id=%s started_at=%s).",
                            day,
                            active_run.run_id,
                            started_at.isoformat(),
                        )
                        continue

                    raise RuntimeError(
                        "Another refresh is already running for this day "
                        f"(day={day}, run_id={active_run.run_id}, "
                        f"started_at={started_at.isoformat()}).",
                    ) from error

    def finish_run(
        self,
        run_id: str,
        status: RunStatus,
        counters: RefreshCounters,
        error_summary: str | None = None,
    ) -> None:
        with Session(self.engine) as session:
            run = session.get(RefreshRunRow, run_id)
            if run is None:
                raise RuntimeError(f"Run not found: {run_id}")
            run.status = status.value
            run.finished_at = utc_now()
            run.sources_fetched = counters.sources_fetched
            run.sources_failed = counters.sources_failed
            run.sources_skipped = counters.sources_skipped
            run.raw_items_inserted = counters.raw_items_inserted
            run.signals_created = counters.signals_created
            run.evidence_links = counters.evidence_links
            run.topics_built = counters.topics_built
            run.stories_built = counters.stories_built
            run.error_summary = error_summary
            session.add(run)
            session.commit()

    def list_recent_runs(self, *, limit: int = 5, day: str | None = None) -> list[RefreshRunView]:
        with Session(self.engine) as session:
            statement = select(RefreshRunRow).order_by(
                col(RefreshRunRow.started_at).desc(),
                col(RefreshRunRow.run_id).desc(),
            )
            if day is not None:
                statement = statement.where(RefreshRunRow.day == day)
            rows = session.exec(statement.limit(max(1, limit))).all()
        return [
            RefreshRunView(
                run_id=row.run_id,
                day=row.day,
                status=row.status,
                started_at=to_utc_aware(row.started_at) or utc_now(),
                finished_at=to_utc_aware(row.finished_at),
                counters=RefreshCounters(
                    sources_fetched=row.sources_fetched,
                    sources_failed=row.sources_failed,
                    sources_skipped=row.sources_skipped,
                    raw_items_inserted=row.raw_items_inserted,
                    signals_created=row.signals_created,
                    evidence_links=row.evidence_links,
                    topics_built=row.topics_built,
                    stories_built=row.stories_built,
                ),
                error_summary=row.error_summary,
            )
            for row in rows
        ]


def _to_source(row: SourceRow) -> Source:
    return Source(
        source_id=row.source_id,
        name=row.name,
        kind=row.kind,
        url=row.url,
        section=row.section,
        enabled=row.enabled,
        fetch_interval_minutes=row.fetch_interval_minutes,
        last_fetched_at=to_utc_aware(row.last_fetched_at),
        last_error=row.last_error,
        last_status=row.last_status,
        last_item_count=row.last_item_count,
    )


def _to_signal(row: SignalRow) -> Signal:
    return Signal(
        signal_id=int(row.signal_id or 0),
        raw_id=row.raw_id,
        day=row.day,
        section=row.section,
        signal_type=row.signal_type,
        title=row.title,
        summary=row.summary,
        published_at=to_utc_aware(row.published_at),
        canonical_url=row.canonical_url,
        horizon=row.horizon,
        score=row.score,
        entities=[str(item) for item in _load_list(row.entities_json)],
        keywords=[str(item) for item in _load_list(row.keywords_json)],
        citations=_load_list(row.citations_json),
    )


def _to_enrichment(row: StoryEnrichmentRow) -> StoryEnrichment:
    return StoryEnrichment(
        story_id=row.story_id,
        day=row.day,
        offset=row.offset_years,
        generated_at=to_utc_aware(row.generated_at) or utc_now(),
        plan=_load_dict(row.plan_json),
        section=row.section,
        rank=row.rank,
        model=row.model,
        key_story=row.key_story,
    )


def _load_list(raw: str | None) -> list:
    try:
        value = json.loads(raw or "[]")
    except json.JSONDecodeError:
        return []
    return value if isinstance(value, list) else []


def _load_dict(raw: str | None) -> dict[str, object]:
    try:
        value = json.loads(raw or "{}")
    except json.JSONDecodeError:
        return {}
    return value if isinstance(value, dict) else {}
