"""CLI entrypoint for future-times."""

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import rich_click as click

from future_times import __version__
from future_times.config import resolve_log_level
from future_times.errors import PipelineError
from future_times.ingestion.controllers import (
    EditionCommand,
    EnrichCommand,
    FutureTimesCliController,
    RefreshCommand,
    SnapshotCommand,
    SourcesCommand,
    WorkerCommand,
)

click.rich_click.USE_MARKDOWN = True
CONTROLLER = FutureTimesCliController()
CommandT = TypeVar("CommandT")


@click.group()
@click.version_option(version=__version__, prog_name="future-times")
def future_times() -> None:
    """Future Times: dated editions of tomorrow's newspaper from today's signals."""

    raw_level = os.getenv("FUTURE_TIMES_LOG_LEVEL", "")
    logging.basicConfig(
        level=resolve_log_level(raw_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if raw_level.strip() and resolve_log_level(raw_level) != raw_level.strip().upper():
        logging.getLogger(__name__).warning(
            "Unknown FUTURE_TIMES_LOG_LEVEL %r; using INFO.",
            raw_level,
        )


@future_times.command("refresh")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--day", default=None, help="Day to refresh as YYYY-MM-DD (default: today, UTC).")
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Fetch every enabled source even if its fetch interval has not elapsed.",
)
def refresh(db_path: Path | None, day: str | None, force: bool) -> None:
    """Fetch sources, extract signals and rebuild the day's editions."""

    _emit_lines(_run(CONTROLLER.refresh, RefreshCommand(db_path=db_path, day=day, force=force)))


@future_times.command("edition")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--day", default=None, help="Edition day as YYYY-MM-DD (default: today, UTC).")
@click.option(
    "--offset",
    type=click.IntRange(min=0, max=10),
    default=5,
    show_default=True,
    help="Years forward.",
)
@click.option(
    "--raw",
    is_flag=True,
    default=False,
    help="Print the stored payload as JSON without the curation overlay.",
)
def edition(db_path: Path | None, day: str | None, offset: int, raw: bool) -> None:
    """Show an edition with its enrichment applied."""

    _emit_lines(
        _run(
            CONTROLLER.edition,
            EditionCommand(db_path=db_path, day=day, offset=offset, raw=raw),
        ),
    )


@future_times.command("candidates")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--day", default=None, help="Edition day as YYYY-MM-DD (default: today, UTC).")
@click.option(
    "--offset",
    type=click.IntRange(min=0, max=10),
    default=5,
    show_default=True,
    help="Years forward.",
)
def candidates(db_path: Path | None, day: str | None, offset: int) -> None:
    """List pre-enrichment story stubs for the enrichment step."""

    _emit_lines(
        _run(CONTROLLER.candidates, EditionCommand(db_path=db_path, day=day, offset=offset)),
    )


@future_times.command("snapshot")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--day", default=None, help="Day as YYYY-MM-DD (default: today, UTC).")
def snapshot(db_path: Path | None, day: str | None) -> None:
    """Dump sources, raw items, signals, topics and editions of a day as JSON."""

    _emit_lines(_run(CONTROLLER.snapshot, SnapshotCommand(db_path=db_path, day=day)))


@future_times.command("sources")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def sources(db_path: Path | None) -> None:
    """Sync the source registry and show per-source fetch health."""

    _emit_lines(_run(CONTROLLER.sources, SourcesCommand(db_path=db_path)))


@future_times.command("enrich")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--file",
    "file",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    required=True,
    help="JSON file with enrichment records keyed by `storyId`.",
)
def enrich(db_path: Path | None, file: Path) -> None:
    """Attach enrichment records to stored stories."""

    _emit_lines(_run(CONTROLLER.enrich, EnrichCommand(db_path=db_path, file=file)))


@future_times.command("worker")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--interval",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds between refreshes; 0 refreshes once a day at `--daily-at`.",
)
@click.option(
    "--daily-at",
    default=None,
    help="Local HH:MM for the daily refresh (default: FUTURE_TIMES_WORKER_DAILY_TIME or 05:30).",
)
@click.option(
    "--max-ticks",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many refreshes.",
)
def worker(
    db_path: Path | None,
    interval: float | None,
    daily_at: str | None,
    max_ticks: int | None,
) -> None:
    """Refresh today now, then keep refreshing on a schedule."""

    _emit_lines(
        _run(
            CONTROLLER.worker,
            WorkerCommand(
                db_path=db_path,
                interval_seconds=interval,
                daily_at=daily_at,
                max_ticks=max_ticks,
            ),
        ),
    )


def _run(handler: Callable[[CommandT], list[str]], command: CommandT) -> list[str]:
    try:
        return handler(command)
    except (PipelineError, ValueError) as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    future_times()
