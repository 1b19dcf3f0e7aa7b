"""Signal stage: turn pending raw items into scored, classified signals."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from future_times.ingestion.models import RefreshCounters, Signal, SignalType
from future_times.ingestion.repository import SQLiteRepository
from future_times.signals.extractor import SPREAD_SIGNAL_TITLE, SignalExtractor

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=UTC)


class SignalStageService:
    """Extracts one signal per pending raw item and the derived yield-spread signal."""

    def __init__(self, *, repository: SQLiteRepository, extractor: SignalExtractor) -> None:
        self.repository = repository
        self.extractor = extractor

    def run(self, *, day: str, counters: RefreshCounters, now: datetime | None = None) -> None:
        pending = self.repository.list_pending_raw_items(day)
        writes = [self.extractor.extract(item, day=day, now=now) for item in pending]
        created = self.repository.insert_signals(writes)

        if not self.repository.has_signal_titled(day, SPREAD_SIGNAL_TITLE):
            econ = [
                signal
                for signal in self.repository.list_signals(day)
                if signal.signal_type == SignalType.ECON.value
            ]
            spread = self.extractor.derive_yield_spread(day=day, econ_signals=_newest_first(econ))
            if spread is not None:
                created += self.repository.insert_signals([spread])

        counters.signals_created += created
        logger.info(
            "Extracted %d signal(s) for %s from %d pending raw item(s).",
            created,
            day,
            len(pending),
        )


def _newest_first(signals: list[Signal]) -> list[Signal]:
    return sorted(
        signals,
        key=lambda signal: (signal.published_at or _OLDEST, signal.signal_id),
        reverse=True,
    )
