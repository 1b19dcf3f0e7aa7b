"""SQLModel ORM tables for pipeline storage."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Text, UniqueConstraint, text
from sqlmodel import Field, SQLModel


class SourceRow(SQLModel, table=True):
    __tablename__ = "sources"  # type: ignore[bad-override]

    source_id: str = Field(primary_key=True)
    name: str
    kind: str = Field(index=True)
    url: str
    section: str | None = None
    enabled: bool = True
    fetch_interval_minutes: int = 60
    meta_json: str = Field(default="{}", sa_column=Column(Text, nullable=False))
    last_fetched_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
    last_error: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    last_status: int | None = None
    last_item_count: int | None = None
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class RawItemRow(SQLModel, table=True):
    __tablename__ = "raw_items"  # type: ignore[bad-override]

    raw_id: int | None = Field(default=None, primary_key=True)
    source_id: str = Field(
        sa_column=Column(
            ForeignKey("sources.source_id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    day: str = Field(index=True)
    fetched_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    published_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
    canonical_url: str
    title: str
    summary: str = Field(sa_column=Column(Text, nullable=False))
    payload_json: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    section_hint: str | None = None
    fingerprint: str = Field(unique=True, index=True)


class SignalRow(SQLModel, table=True):
    __tablename__ = "signals"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_signals_day_section", "day", "section"),)

    signal_id: int | None = Field(default=None, primary_key=True)
    raw_id: int | None = Field(
        default=None,
        sa_column=Column(
            ForeignKey("raw_items.raw_id", ondelete="CASCADE"),
            nullable=True,
            unique=True,
        ),
    )
    day: str = Field(index=True)
    section: str
    signal_type: str = Field(index=True)
    title: str
    summary: str = Field(sa_column=Column(Text, nullable=False))
    published_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
    canonical_url: str
    horizon: str
    score: float
    entities_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    keywords_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    citations_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class TopicRow(SQLModel, table=True):
    __tablename__ = "topics"  # type: ignore[bad-override]
    __table_args__ = (UniqueConstraint("day", "slug", name="uq_topics_day_slug"),)

    topic_id: int | None = Field(default=None, primary_key=True)
    day: str = Field(index=True)
    section: str = Field(index=True)
    label: str
    brief: str = Field(sa_column=Column(Text, nullable=False))
    horizon: str
    slug: str
    score: float
    evidence_signal_ids_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    evidence_links_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class StandingTopicRow(SQLModel, table=True):
    __tablename__ = "standing_topics"  # type: ignore[bad-override]

    topic_key: str = Field(primary_key=True)
    section: str = Field(index=True)
    category: str | None = None
    subcategory: str | None = None
    label: str
    description: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    extrapolation_axes_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    keywords_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    milestones_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    enabled: bool = True
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class TopicEvidenceRow(SQLModel, table=True):
    __tablename__ = "topic_evidence"  # type: ignore[bad-override]
    __table_args__ = (
        UniqueConstraint(
            "standing_topic_key",
            "signal_id",
            "day",
            name="uq_topic_evidence_topic_signal_day",
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    standing_topic_key: str = Field(
        sa_column=Column(
            ForeignKey("standing_topics.topic_key", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    signal_id: int = Field(
        sa_column=Column(
            ForeignKey("signals.signal_id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    day: str = Field(index=True)
    relevance: float
    matched_keywords_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    category_hint: str | None = None


class EditionRow(SQLModel, table=True):
    __tablename__ = "editions"  # type: ignore[bad-override]
    __table_args__ = (UniqueConstraint("day", "offset_years", name="uq_editions_day_offset"),)

    edition_id: int | None = Field(default=None, primary_key=True)
    day: str = Field(index=True)
    offset_years: int
    version: str
    generated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    payload_json: str = Field(sa_column=Column(Text, nullable=False))


class EditionStoryRow(SQLModel, table=True):
    __tablename__ = "edition_stories"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_edition_stories_edition_rank", "edition_id", "rank"),)

    story_id: str = Field(primary_key=True)
    edition_id: int = Field(
        sa_column=Column(
            ForeignKey("editions.edition_id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    day: str = Field(index=True)
    offset_years: int
    section: str
    rank: int
    topic_ref: str
    angle: str
    headline_seed: str
    dek_seed: str = Field(sa_column=Column(Text, nullable=False))
    evidence_pack_json: str = Field(sa_column=Column(Text, nullable=False))


class StoryEnrichmentRow(SQLModel, table=True):
    __tablename__ = "story_enrichments"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_story_enrichments_day_offset", "day", "offset_years"),)

    story_id: str = Field(primary_key=True)
    day: str
    offset_years: int
    section: str | None = None
    rank: int | None = None
    generated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    model: str | None = None
    key_story: bool = False
    plan_json: str = Field(sa_column=Column(Text, nullable=False))


class RenderCacheRow(SQLModel, table=True):
    __tablename__ = "render_cache"  # type: ignore[bad-override]

    cache_key: str = Field(primary_key=True)
    story_id: str = Field(index=True)
    content_variant: str
    generated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    article_json: str = Field(sa_column=Column(Text, nullable=False))


class RefreshRunRow(SQLModel, table=True):
    __tablename__ = "refresh_runs"  # type: ignore[bad-override]
    __table_args__ = (
        Index(
            "uq_refresh_runs_day_running",
            "day",
            unique=True,
            sqlite_where=text("status = 'running'"),
        ),
    )

    run_id: str = Field(primary_key=True)
    day: str = Field(index=True)
    status: str = Field(index=True)
    started_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    finished_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    sources_fetched: int = 0
    sources_failed: int = 0
    sources_skipped: int = 0
    raw_items_inserted: int = 0
    signals_created: int = 0
    evidence_links: int = 0
    topics_built: int = 0
    stories_built: int = 0
    error_summary: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
