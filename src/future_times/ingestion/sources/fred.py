"""Economic time series fetcher for FRED ``fredgraph.csv`` downloads."""

from __future__ import annotations

import csv
import io
import math
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import parse_qs, urlparse

from future_times.errors import FeedParseError
from future_times.ingestion.cleaning import canonicalize_url
from future_times.ingestion.models import FeedRecord, Source
from future_times.ingestion.sources.http import SourceHttpClient
from future_times.ingestion.storage.common import utc_now

CSV_ACCEPT = "text/csv"
TREND_STEPS_BACK = 30
SERIES_PAGE_URL = "https://fred.stlouisfed.org/series/{series_id}"


@dataclass(slots=True)
class SeriesPoint:
    date: str
    value: float


class FredSeriesFetcher:
    """Turns one series CSV into a single snapshot record: latest value plus trend."""

    def __init__(self, http: SourceHttpClient) -> None:
        self.http = http

    def fetch(self, source: Source, day: str) -> list[FeedRecord]:  # noqa: ARG002
        response = self.http.get(source.url, accept=CSV_ACCEPT, source_id=source.source_id)
        return [
            parse_series_csv(
                response.text,
                url=source.url,
                fetched_at=utc_now(),
                source_id=source.source_id,
            ),
        ]


def series_id_from_url(url: str) -> str:
    values = parse_qs(urlparse(url).query).get("id") or [""]
    return values[0].strip()


def parse_series_rows(text: str) -> list[tuple[str, str]]:
    """``(date, value)`` rows of a two-column CSV, header skipped."""

    rows: list[tuple[str, str]] = []
    reader = csv.reader(io.StringIO(text))
    next(reader, None)
    for row in reader:
        if len(row) < 2 or not row[0].strip():
            continue
        rows.append((row[0].strip(), row[1].strip()))
    return rows


def parse_series_csv(
    text: str,
    *,
    url: str,
    fetched_at: datetime,
    source_id: str = "",
    series_id: str | None = None,
) -> FeedRecord:
    rows = parse_series_rows(text)
    last = last_numeric(rows)
    if last is None:
        raise FeedParseError(
            message="Series had no numeric points",
            code="empty_series",
            source_id=source_id,
        )
    trend = trend_delta(rows, steps_back=TREND_STEPS_BACK)
    resolved_id = series_id or series_id_from_url(url)
    link = SERIES_PAGE_URL.format(series_id=resolved_id) if resolved_id else url

    summary = f"{last.date}: {_format_value(last.value)}"
    if trend is not None:
        summary += f" • 30-step delta: {trend:+.2f}"
    return FeedRecord(
        title=f"Economic indicator {resolved_id}" if resolved_id else "Economic indicator",
        summary=summary,
        link=canonicalize_url(link),
        published_at=fetched_at,
        payload={
            "seriesId": resolved_id,
            "last": {"date": last.date, "value": last.value},
            "trendDelta": trend,
        },
    )


def last_numeric(rows: list[tuple[str, str]], *, before: int | None = None) -> SeriesPoint | None:
    end = len(rows) - 1 if before is None else min(before, len(rows) - 1)
    for index in range(end, -1, -1):
        value = _to_float(rows[index][1])
        if value is not None:
            return SeriesPoint(date=rows[index][0], value=value)
    return None


def trend_delta(rows: list[tuple[str, str]], *, steps_back: int) -> float | None:
    last = last_numeric(rows)
    if last is None:
        return None
    past = last_numeric(rows, before=max(0, len(rows) - 1 - steps_back))
    if past is None:
        return None
    return last.value - past.value


def _to_float(raw: str) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _format_value(value: float) -> str:
    return str(int(value)) if value.is_integer() else repr(value)
