from pathlib import Path

import allure

from future_times.ingestion.repository import SQLiteRepository

pytestmark = [
    allure.epic("Signal Store"),
    allure.feature("Persist & Run Accounting"),
]


def test_alembic_schema_is_initialized_to_head(tmp_path: Path) -> None:
    repository = SQLiteRepository(tmp_path / "migrations.db")
    repository.init_schema()

    row = repository._connection.execute(
        "SELECT version_num FROM alembic_version LIMIT 1"
    ).fetchone()
    assert row is not None
    assert str(row["version_num"]) == "20261018_0001"

    tables = repository._connection.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table' AND name != 'alembic_version'
        ORDER BY name
        """
    ).fetchall()
    assert [str(row["name"]) for row in tables] == [
        "edition_stories",
        "editions",
        "raw_items",
        "refresh_runs",
        "render_cache",
        "signals",
        "sources",
        "standing_topics",
        "story_enrichments",
        "topic_evidence",
        "topics",
    ]
    repository.close()


def test_init_schema_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "twice.db"
    first = SQLiteRepository(db_path)
    first.init_schema()
    first.start_run("2026-10-18")
    first.close()

    second = SQLiteRepository(db_path)
    second.init_schema()
    runs = second.list_recent_runs()
    second.close()

    assert len(runs) == 1
