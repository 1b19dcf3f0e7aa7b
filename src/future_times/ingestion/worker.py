"""Scheduled refresh loop: refresh today immediately, then on an interval or daily."""

from __future__ import annotations

import logging
import re
import signal
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta

from future_times.config import WorkerSettings
from future_times.ingestion.cleaning import normalize_day
from future_times.ingestion.pipeline import FutureTimesPipeline

logger = logging.getLogger(__name__)

DEFAULT_DAILY_TIME = (5, 30)
_DAILY_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(slots=True)
class WorkerRunSummary:
    """Aggregate worker counters for CLI reporting."""

    ticks: int = 0
    succeeded: int = 0
    failed: int = 0


def parse_daily_time(value: str | None) -> tuple[int, int]:
    """Parse ``HH:MM``; malformed values fall back to 05:30, parts are clamped."""

    match = _DAILY_TIME_RE.match((value or "").strip())
    if not match:
        return DEFAULT_DAILY_TIME
    hour = max(0, min(23, int(match.group(1))))
    minute = max(0, min(59, int(match.group(2))))
    return hour, minute


def seconds_until(now: datetime, hour: int, minute: int) -> float:
    """Seconds from ``now`` to the next ``hour:minute`` in ``now``'s timezone."""

    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


def _local_now() -> datetime:
    return datetime.now().astimezone()


class RefreshWorker:
    """Runs ``pipeline.refresh`` for the current day on a schedule.

    A failed tick is logged and the next tick retries the whole refresh.
    """

    def __init__(
        self,
        *,
        pipeline: FutureTimesPipeline,
        settings: WorkerSettings,
        clock: Callable[[], datetime] = _local_now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.pipeline = pipeline
        self.settings = settings
        self._clock = clock
        self._sleep = sleep
        self._stop_requested = False

    def run_once(self) -> bool:
        day = normalize_day(self._clock())
        try:
            summary = self.pipeline.refresh(day)
        except Exception:
            logger.exception("Scheduled refresh for %s failed; next tick will retry.", day)
            return False
        logger.info(
            "Scheduled refresh for %s finished %s: stories=%d.",
            summary.day,
            summary.status.value,
            summary.counters.stories_built,
        )
        return True

    def next_delay(self) -> float:
        if self.settings.refresh_interval_seconds > 0:
            return self.settings.refresh_interval_seconds
        hour, minute = parse_daily_time(self.settings.daily_time)
        return seconds_until(self._clock(), hour, minute)

    def run_loop(self, *, max_ticks: int | None = None) -> WorkerRunSummary:
        """Tick immediately, then wait for the next slot until stopped or ``max_ticks``."""

        summary = WorkerRunSummary()
        with self._signal_handlers():
            while not self._stop_requested:
                ok = self.run_once()
                summary.ticks += 1
                if ok:
                    summary.succeeded += 1
                else:
                    summary.failed += 1
                if max_ticks is not None and summary.ticks >= max_ticks:
                    break
                delay = self.next_delay()
                logger.info("Next scheduled refresh in %.0f s.", delay)
                self._sleep_with_stop(delay)
        return summary

    def request_stop(self) -> None:
        self._stop_requested = True

    def _sleep_with_stop(self, seconds: float) -> None:
        remaining = seconds
        while not self._stop_requested and remaining > 0:
            step = min(1.0, remaining)
            self._sleep(step)
            remaining -= step

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)

        def _handler(signum: int, _: object | None) -> None:
            name = signal.Signals(signum).name
            logger.info("Received %s; stopping after the current tick.", name)
            self.request_stop()

        try:
            signal.signal(signal.SIGINT, _handler)
            signal.signal(signal.SIGTERM, _handler)
        except ValueError:
            # Signal handlers can only be installed in main thread.
            yield
            return
        try:
            yield
        finally:
            signal.signal(signal.SIGINT, original_sigint)
            signal.signal(signal.SIGTERM, original_sigterm)
