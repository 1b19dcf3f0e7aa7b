from __future__ import annotations

from datetime import UTC, datetime

import allure
import pytest

from conftest import DAY
from future_times.config import WorkerSettings
from future_times.errors import PipelineError
from future_times.ingestion.models import RefreshCounters, RunStatus
from future_times.ingestion.pipeline import RefreshSummary
from future_times.ingestion.worker import RefreshWorker, parse_daily_time, seconds_until

pytestmark = [
    allure.epic("Future Times"),
    allure.feature("Scheduled Refresh"),
]

NOW = datetime(2026, 10, 18, 5, 0, tzinfo=UTC)


class _FlakyPipeline:
    """Fails the first ``failures`` refreshes, then succeeds."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.days: list[str] = []

    def refresh(self, day: str | None = None, *, force: bool = False) -> RefreshSummary:  # noqa: ARG002
        self.days.append(day or "")
        if len(self.days) <= self.failures:
            raise PipelineError(message="registry unreadable", code="registry_unreadable")
        return RefreshSummary(
            run_id="run-1",
            day=day or DAY,
            status=RunStatus.SUCCEEDED,
            counters=RefreshCounters(),
        )


def _worker(pipeline: _FlakyPipeline, settings: WorkerSettings, sleeps: list[float]):
    return RefreshWorker(
        pipeline=pipeline,  # type: ignore[arg-type]
        settings=settings,
        clock=lambda: NOW,
        sleep=sleeps.append,
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("06:15", (6, 15)),
        ("7:05", (7, 5)),
        ("29:75", (23, 59)),
        ("noon", (5, 30)),
        ("", (5, 30)),
        (None, (5, 30)),
    ],
)
def test_parse_daily_time(value: str | None, expected: tuple[int, int]) -> None:
    assert parse_daily_time(value) == expected


def test_seconds_until_rolls_over_to_next_day() -> None:
    assert seconds_until(NOW, 5, 30) == 1800
    assert seconds_until(NOW, 5, 0) == 24 * 3600
    assert seconds_until(NOW, 4, 0) == 23 * 3600


def test_failed_tick_is_logged_and_next_tick_retries(caplog: pytest.LogCaptureFixture) -> None:
    pipeline = _FlakyPipeline(failures=1)
    sleeps: list[float] = []

    summary = _worker(pipeline, WorkerSettings(refresh_interval_seconds=2.5), sleeps).run_loop(
        max_ticks=2,
    )

    assert (summary.ticks, summary.succeeded, summary.failed) == (2, 1, 1)
    assert pipeline.days == [DAY, DAY]
    assert sleeps == [1.0, 1.0, 0.5]
    assert "next tick will retry" in caplog.text


def test_daily_schedule_waits_until_configured_time() -> None:
    worker = _worker(_FlakyPipeline(), WorkerSettings(daily_time="05:30"), [])

    assert worker.next_delay() == 1800


def test_positive_interval_overrides_daily_time() -> None:
    settings = WorkerSettings(refresh_interval_seconds=90, daily_time="05:30")
    worker = _worker(_FlakyPipeline(), settings, [])

    assert worker.next_delay() == 90


def test_stop_request_ends_loop_after_current_tick() -> None:
    pipeline = _FlakyPipeline()
    worker = _worker(pipeline, WorkerSettings(refresh_interval_seconds=60), [])
    worker._sleep = lambda _: worker.request_stop()  # noqa: SLF001

    summary = worker.run_loop()

    assert summary.ticks == 1
    assert pipeline.days == [DAY]
