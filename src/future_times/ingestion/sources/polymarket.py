"""Prediction-market fetcher for the Polymarket Gamma markets API."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from datetime import datetime

from future_times.errors import FeedParseError
from future_times.ingestion.cleaning import canonicalize_url
from future_times.ingestion.models import FeedRecord, Source
from future_times.ingestion.sources.http import SourceHttpClient
from future_times.ingestion.storage.common import utc_now
from future_times.text import round_half_up

JSON_ACCEPT = "application/json"
DEFAULT_MAX_ITEMS = 220
MARKET_URL = "https://polymarket.com/market/{slug}"


class PolymarketFetcher:
    """Fetches open markets and summarizes each as ``Yes: N% • Closes: ... • Volume: ...``."""

    def __init__(self, http: SourceHttpClient, *, max_items: int = DEFAULT_MAX_ITEMS) -> None:
        self.http = http
        self.max_items = max_items

    def fetch(self, source: Source, day: str) -> list[FeedRecord]:  # noqa: ARG002
        response = self.http.get(source.url, accept=JSON_ACCEPT, source_id=source.source_id)
        try:
            payload = json.loads(response.text)
        except json.JSONDecodeError as error:
            raise FeedParseError(
                message=f"Invalid market JSON from {source.source_id}",
                code="invalid_market_json",
                source_id=source.source_id,
            ) from error
        return parse_markets(payload, fetched_at=utc_now())[: self.max_items]


def parse_markets(payload: object, *, fetched_at: datetime) -> list[FeedRecord]:
    """Accepts either a bare list of markets or ``{"markets": [...]}``."""

    if isinstance(payload, list):
        markets = payload
    elif isinstance(payload, Mapping) and isinstance(payload.get("markets"), list):
        markets = payload["markets"]
    else:
        markets = []

    records: list[FeedRecord] = []
    for market in markets:
        if not isinstance(market, Mapping):
            continue
        question = str(market.get("question") or market.get("title") or "").strip()
        if not question:
            continue
        slug = str(market.get("slug") or "").strip()
        link = MARKET_URL.format(slug=slug) if slug else str(
            market.get("url") or market.get("link") or "",
        ).strip()
        records.append(
            FeedRecord(
                title=question,
                summary=market_summary(market),
                link=canonicalize_url(link),
                published_at=fetched_at,
                payload=dict(market),
            ),
        )
    return records


def market_summary(market: Mapping[str, object]) -> str:
    bits: list[str] = []
    probability = yes_probability(market)
    if probability is not None:
        bits.append(f"Yes: {round_half_up(probability * 100)}%")
    end_date = str(
        market.get("endDate") or market.get("closeTime") or market.get("end") or "",
    ).strip()
    if end_date:
        bits.append(f"Closes: {end_date[:10]}")
    volume = _to_number(_first_present(market, "volumeNum", "volume", "volumeUsd"))
    if volume is not None:
        bits.append(f"Volume: ${round_half_up(volume):,}")
    return " • ".join(bits)


def yes_probability(market: Mapping[str, object]) -> float | None:
    """Price of the ``Yes`` outcome as a 0..1 probability; percentages are rescaled."""

    outcomes = _as_list(market.get("outcomes"))
    prices = _as_list(market.get("outcomePrices"))
    if outcomes is None or prices is None or len(outcomes) != len(prices):
        return None
    labels = [str(outcome or "").strip().lower() for outcome in outcomes]
    if "yes" not in labels:
        return None
    price = _to_number(prices[labels.index("yes")])
    if price is None:
        return None
    if 0 <= price <= 1:
        return price
    if 1 < price <= 100:
        return price / 100
    return None


def _as_list(value: object) -> list[object] | None:
    # The Gamma API ships outcomes and prices as JSON-encoded strings.
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return None
    return list(value) if isinstance(value, list) else None


def _first_present(market: Mapping[str, object], *keys: str) -> object:
    for key in keys:
        if market.get(key) is not None:
            return market[key]
    return None


def _to_number(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value))
    except ValueError:
        return None
    return number if math.isfinite(number) else None
