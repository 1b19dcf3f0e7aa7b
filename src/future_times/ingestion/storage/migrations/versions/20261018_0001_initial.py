"""Initial signal-to-edition schema."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "sources",
        sa.Column("source_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("kind", sa.String(), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("section", sa.String(), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("fetch_interval_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("meta_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("last_fetched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("last_status", sa.Integer(), nullable=True),
        sa.Column("last_item_count", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("source_id"),
    )
    op.create_index("ix_sources_kind", "sources", ["kind"])

    op.create_table(
        "raw_items",
        sa.Column("raw_id", sa.Integer(), nullable=False),
        sa.Column("source_id", sa.String(), nullable=False),
        sa.Column("day", sa.String(), nullable=False),
        sa.Column("fetched_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("canonical_url", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=True),
        sa.Column("section_hint", sa.String(), nullable=True),
        sa.Column("fingerprint", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["source_id"], ["sources.source_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("raw_id"),
    )
    op.create_index("ix_raw_items_source_id", "raw_items", ["source_id"])
    op.create_index("ix_raw_items_day", "raw_items", ["day"])
    op.create_index("ix_raw_items_fingerprint", "raw_items", ["fingerprint"], unique=True)

    op.create_table(
        "signals",
        sa.Column("signal_id", sa.Integer(), nullable=False),
        sa.Column("raw_id", sa.Integer(), nullable=True),
        sa.Column("day", sa.String(), nullable=False),
        sa.Column("section", sa.String(), nullable=False),
        sa.Column("signal_type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("canonical_url", sa.String(), nullable=False),
        sa.Column("horizon", sa.String(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("entities_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("keywords_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("citations_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["raw_id"], ["raw_items.raw_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("signal_id"),
        sa.UniqueConstraint("raw_id"),
    )
    op.create_index("ix_signals_day", "signals", ["day"])
    op.create_index("ix_signals_signal_type", "signals", ["signal_type"])
    op.create_index("idx_signals_day_section", "signals", ["day", "section"])

    op.create_table(
        "topics",
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("day", sa.String(), nullable=False),
        sa.Column("section", sa.String(), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("brief", sa.Text(), nullable=False),
        sa.Column("horizon", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("evidence_signal_ids_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("evidence_links_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("topic_id"),
        sa.UniqueConstraint("day", "slug", name="uq_topics_day_slug"),
    )
    op.create_index("ix_topics_day", "topics", ["day"])
    op.create_index("ix_topics_section", "topics", ["section"])

    op.create_table(
        "standing_topics",
        sa.Column("topic_key", sa.String(), nullable=False),
        sa.Column("section", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("subcategory", sa.String(), nullable=True),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("extrapolation_axes_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("keywords_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("milestones_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("topic_key"),
    )
    op.create_index("ix_standing_topics_section", "standing_topics", ["section"])

    op.create_table(
        "topic_evidence",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("standing_topic_key", sa.String(), nullable=False),
        sa.Column("signal_id", sa.Integer(), nullable=False),
        sa.Column("day", sa.String(), nullable=False),
        sa.Column("relevance", sa.Float(), nullable=False),
        sa.Column("matched_keywords_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("category_hint", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ["standing_topic_key"],
            ["standing_topics.topic_key"],
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(["signal_id"], ["signals.signal_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "standing_topic_key",
            "signal_id",
            "day",
            name="uq_topic_evidence_topic_signal_day",
        ),
    )
    op.create_index("ix_topic_evidence_standing_topic_key", "topic_evidence", ["standing_topic_key"])
    op.create_index("ix_topic_evidence_signal_id", "topic_evidence", ["signal_id"])
    op.create_index("ix_topic_evidence_day", "topic_evidence", ["day"])

    op.create_table(
        "editions",
        sa.Column("edition_id", sa.Integer(), nullable=False),
        sa.Column("day", sa.String(), nullable=False),
        sa.Column("offset_years", sa.Integer(), nullable=False),
        sa.Column("version", sa.String(), nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("edition_id"),
        sa.UniqueConstraint("day", "offset_years", name="uq_editions_day_offset"),
    )
    op.create_index("ix_editions_day", "editions", ["day"])

    op.create_table(
        "edition_stories",
        sa.Column("story_id", sa.String(), nullable=False),
        sa.Column("edition_id", sa.Integer(), nullable=False),
        sa.Column("day", sa.String(), nullable=False),
        sa.Column("offset_years", sa.Integer(), nullable=False),
        sa.Column("section", sa.String(), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("topic_ref", sa.String(), nullable=False),
        sa.Column("angle", sa.String(), nullable=False),
        sa.Column("headline_seed", sa.String(), nullable=False),
        sa.Column("dek_seed", sa.Text(), nullable=False),
        sa.Column("evidence_pack_json", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["edition_id"], ["editions.edition_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("story_id"),
    )
    op.create_index("ix_edition_stories_day", "edition_stories", ["day"])
    op.create_index("idx_edition_stories_edition_rank", "edition_stories", ["edition_id", "rank"])

    op.create_table(
        "story_enrichments",
        sa.Column("story_id", sa.String(), nullable=False),
        sa.Column("day", sa.String(), nullable=False),
        sa.Column("offset_years", sa.Integer(), nullable=False),
        sa.Column("section", sa.String(), nullable=True),
        sa.Column("rank", sa.Integer(), nullable=True),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("model", sa.String(), nullable=True),
        sa.Column("key_story", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("plan_json", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("story_id"),
    )
    op.create_index(
        "idx_story_enrichments_day_offset",
        "story_enrichments",
        ["day", "offset_years"],
    )

    op.create_table(
        "render_cache",
        sa.Column("cache_key", sa.String(), nullable=False),
        sa.Column("story_id", sa.String(), nullable=False),
        sa.Column("content_variant", sa.String(), nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("article_json", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("cache_key"),
    )
    op.create_index("ix_render_cache_story_id", "render_cache", ["story_id"])

    op.create_table(
        "refresh_runs",
        sa.Column("run_id", sa.String(), nullable=False),
        sa.Column("day", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sources_fetched", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sources_failed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sources_skipped", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("raw_items_inserted", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("signals_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("evidence_links", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("topics_built", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stories_built", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_summary", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("run_id"),
    )
    op.create_index("ix_refresh_runs_day", "refresh_runs", ["day"])
    op.create_index("ix_refresh_runs_status", "refresh_runs", ["status"])
    op.create_index(
        "uq_refresh_runs_day_running",
        "refresh_runs",
        ["day"],
        unique=True,
        sqlite_where=sa.text("status = 'running'"),
    )


def downgrade() -> None:
    op.drop_index("uq_refresh_runs_day_running", table_name="refresh_runs")
    op.drop_index("ix_refresh_runs_status", table_name="refresh_runs")
    op.drop_index("ix_refresh_runs_day", table_name="refresh_runs")
    op.drop_table("refresh_runs")
    op.drop_index("ix_render_cache_story_id", table_name="render_cache")
    op.drop_table("render_cache")
    op.drop_index("idx_story_enrichments_day_offset", table_name="story_enrichments")
    op.drop_table("story_enrichments")
    op.drop_index("idx_edition_stories_edition_rank", table_name="edition_stories")
    op.drop_index("ix_edition_stories_day", table_name="edition_stories")
    op.drop_table("edition_stories")
    op.drop_index("ix_editions_day", table_name="editions")
    op.drop_table("editions")
    op.drop_index("ix_topic_evidence_day", table_name="topic_evidence")
    op.drop_index("ix_topic_evidence_signal_id", table_name="topic_evidence")
    op.drop_index("ix_topic_evidence_standing_topic_key", table_name="topic_evidence")
    op.drop_table("topic_evidence")
    op.drop_index("ix_standing_topics_section", table_name="standing_topics")
    op.drop_table("standing_topics")
    op.drop_index("ix_topics_section", table_name="topics")
    op.drop_index("ix_topics_day", table_name="topics")
    op.drop_table("topics")
    op.drop_index("idx_signals_day_section", table_name="signals")
    op.drop_index("ix_signals_signal_type", table_name="signals")
    op.drop_index("ix_signals_day", table_name="signals")
    op.drop_table("signals")
    op.drop_index("ix_raw_items_fingerprint", table_name="raw_items")
    op.drop_index("ix_raw_items_day", table_name="raw_items")
    op.drop_index("ix_raw_items_source_id", table_name="raw_items")
    op.drop_table("raw_items")
    op.drop_table("sources")
