"""URL, text and date normalization for raw items."""

from __future__ import annotations

import html
import re
from datetime import UTC, date, datetime, timedelta
from email.utils import parsedate_to_datetime
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from future_times.text import sha256_hex

MAX_TITLE_CHARS = 240
MAX_SUMMARY_CHARS = 1200
TRACKING_PARAMS = frozenset({"ref", "fbclid", "gclid"})

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def html_to_text(raw_html: str | None) -> str:
    """Convert HTML markup into normalized plain text."""

    if not raw_html:
        return ""
    no_scripts = _SCRIPT_STYLE_RE.sub(" ", raw_html)
    stripped = _TAG_RE.sub(" ", no_scripts)
    unescaped = html.unescape(stripped)
    normalized = _WHITESPACE_RE.sub(" ", unescaped)
    return normalized.strip()


def canonicalize_url(url: str | None) -> str:
    """Drop the fragment and tracking parameters (``utm_*``, ``ref``, ``fbclid``, ``gclid``)."""

    raw = (url or "").strip()
    if not raw:
        return ""
    parsed = urlparse(raw)
    if not parsed.scheme or not parsed.netloc:
        return raw
    query = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if not key.lower().startswith("utm_") and key.lower() not in TRACKING_PARAMS
    ]
    cleaned = parsed._replace(query=urlencode(query), fragment="")
    return str(urlunparse(cleaned))


def raw_fingerprint(*, title: str, canonical_url: str, pub_day: str) -> str:
    """Dedup fingerprint of a raw item: sha256 of ``lower(title)|url|pub_day``."""

    return sha256_hex(f"{title.lower()}|{canonical_url}|{pub_day}")


def clip(value: str, limit: int) -> str:
    return value[:limit]


def normalize_day(value: str | date | datetime | None = None) -> str:
    """Return ``YYYY-MM-DD`` for the given value (today in UTC when omitted)."""

    if value is None:
        return datetime.now(tz=UTC).date().isoformat()
    if isinstance(value, datetime):
        return value.astimezone(UTC).date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = value.strip()
    if not _DAY_RE.match(text):
        raise ValueError(f"Day must be formatted as YYYY-MM-DD, got {value!r}")
    return date.fromisoformat(text).isoformat()


def day_of(value: datetime | None, fallback: str) -> str:
    if value is None:
        return fallback
    return value.astimezone(UTC).date().isoformat()


def edition_date(day: str, offset: int) -> date:
    """Shift ``day`` forward by ``offset`` years; Feb 29 lands on Mar 1 in non-leap years."""

    base = date.fromisoformat(day)
    try:
        return base.replace(year=base.year + offset)
    except ValueError:
        return date(base.year + offset, 2, 28) + timedelta(days=1)


def format_edition_date(day: str, offset: int) -> str:
    """Human edition date such as ``October 18, 2031``."""

    target = edition_date(day, offset)
    return f"{target.strftime('%B')} {target.day}, {target.year}"


def parse_datetime(raw_value: str | None) -> datetime | None:
    """Parse RFC 2822 or ISO-8601 timestamps into aware UTC datetimes."""

    if not raw_value:
        return None
    try:
        parsed = parsedate_to_datetime(raw_value)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (TypeError, ValueError, IndexError):
        pass

    try:
        iso = datetime.fromisoformat(raw_value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if iso.tzinfo is None:
        return iso.replace(tzinfo=UTC)
    return iso.astimezone(UTC)
