from __future__ import annotations

from datetime import UTC, datetime, timedelta

import allure
import pytest

from conftest import DAY, make_signal
from future_times.ingestion.models import Horizon, PendingRawItem, SignalType
from future_times.signals.entities import EntityDictionaries
from future_times.signals.extractor import (
    SPREAD_SIGNAL_TITLE,
    SignalExtractor,
    classify_ai_category,
    classify_section,
    extract_entities,
    extract_keywords,
    normalize_section,
    score_signal,
    signal_type_for_source,
)

pytestmark = [
    allure.epic("Signal Pipeline"),
    allure.feature("Signal Extraction"),
]

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


def _pending(**overrides: object) -> PendingRawItem:
    values: dict[str, object] = {
        "raw_id": 1,
        "source_id": "wire-world",
        "source_name": "World Wire",
        "source_kind": "rss",
        "source_url": "https://wire.example.com/world.xml",
        "published_at": NOW - timedelta(hours=2),
        "canonical_url": "https://wire.example.com/a",
        "title": "NATO allies weigh new sanctions as war drags on",
        "summary": "Diplomats from Europe met in Brussels.",
        "section_hint": None,
    }
    values.update(overrides)
    return PendingRawItem(**values)  # type: ignore[arg-type]


def test_signal_type_follows_source_kind_and_name() -> None:
    assert (
        signal_type_for_source(kind="api_json", source_id="polymarket-markets", url="", name="")
        == SignalType.MARKET
    )
    assert signal_type_for_source(kind="csv", source_id="fred-dgs10", url="", name="") == (
        SignalType.ECON
    )
    assert (
        signal_type_for_source(
            kind="rss",
            source_id="papers",
            url="https://rss.arxiv.org/rss/cs.AI",
            name="Papers",
        )
        == SignalType.RESEARCH
    )
    assert signal_type_for_source(kind="csv", source_id="other", url="", name="") == SignalType.NEWS


def test_normalize_section_maps_us_aliases_and_case() -> None:
    assert normalize_section("us") == "U.S."
    assert normalize_section("technology") == "Technology"
    assert normalize_section("  ") is None
    assert normalize_section("Sports") == "Sports"


def test_classify_section_prefers_most_keyword_hits() -> None:
    assert classify_section("Stocks slide as inflation and recession fears grow") == "Business"
    assert classify_section("A quiet afternoon") == "World"
    assert classify_section("A quiet afternoon", default_section="Opinion") == "Opinion"


def test_classify_ai_category_falls_back_to_general() -> None:
    assert classify_ai_category("Humanoid robot learns locomotion") == "Robotics & Embodied AI"
    assert classify_ai_category("Nothing relevant here") == "General AI"


def test_extract_keywords_orders_by_frequency() -> None:
    keywords = extract_keywords("chip chip export controls chip export")
    assert keywords[:3] == ["chip", "export", "controls"]


def test_extract_entities_combines_dictionaries_and_proper_phrases() -> None:
    dictionaries = EntityDictionaries(companies=("Nvidia",), places=("Taiwan",), institutions=())
    entities = extract_entities("Nvidia ships to Taiwan says Jensen Huang", dictionaries)
    assert entities[:2] == ["Nvidia", "Taiwan"]
    assert "Jensen Huang" in entities


@pytest.mark.parametrize("age_hours", [None, 0.0, 1.0, 18.0, 200.0, 10_000.0])
@pytest.mark.parametrize("signal_type", list(SignalType))
def test_score_is_non_negative_and_bounded(age_hours: float | None, signal_type: SignalType) -> None:
    published = None if age_hours is None else NOW - timedelta(hours=age_hours)
    score = score_signal(signal_type, published, "Short", now=NOW)
    base = {"market": 1.15, "research": 1.10, "econ": 0.95, "news": 1.0}[signal_type.value]
    assert score >= 0
    assert 0.2 * 0.6 * base - 1e-9 <= score <= base + 1e-9


def test_score_favours_recent_and_longer_titles() -> None:
    fresh = score_signal(SignalType.NEWS, NOW, "x" * 120, now=NOW)
    stale = score_signal(SignalType.NEWS, NOW - timedelta(hours=36), "x" * 120, now=NOW)
    short = score_signal(SignalType.NEWS, NOW, "x", now=NOW)
    assert fresh == pytest.approx(1.0)
    assert stale == pytest.approx(1.0 / 3.0)
    assert short < fresh


def test_extract_uses_section_hint_before_classification() -> None:
    extractor = SignalExtractor()

    hinted = extractor.extract(_pending(section_hint="technology"), day=DAY, now=NOW)
    classified = extractor.extract(_pending(), day=DAY, now=NOW)

    assert hinted.section == "Technology"
    assert classified.section == "World"
    assert classified.signal_type == SignalType.NEWS
    assert classified.horizon == Horizon.NEAR
    assert classified.raw_id == 1
    assert classified.citations[0]["source"] == "World Wire"
    assert "Brussels" in classified.entities


def test_extract_marks_market_signals_mid_horizon() -> None:
    write = SignalExtractor().extract(
        _pending(
            source_id="polymarket-markets",
            source_kind="api_json",
            title="Will the Fed cut rates in December?",
            summary="Yes: 62% • Closes: 2026-12-10",
        ),
        day=DAY,
        now=NOW,
    )
    assert write.signal_type == SignalType.MARKET
    assert write.horizon == Horizon.MID


def test_derive_yield_spread_uses_newest_series_values() -> None:
    econ = [
        make_signal(3, "Economic indicator DGS10", signal_type="econ", summary="2026-10-16: 4.25"),
        make_signal(2, "Economic indicator DGS2", signal_type="econ", summary="2026-10-16: 3.9"),
        make_signal(1, "Economic indicator DGS10", signal_type="econ", summary="2026-10-15: 9.99"),
    ]

    spread = SignalExtractor().derive_yield_spread(day=DAY, econ_signals=econ)

    assert spread is not None
    assert spread.title == SPREAD_SIGNAL_TITLE
    assert spread.raw_id is None
    assert spread.summary == "10y-2y spread: 0.35 (derived)"
    assert spread.signal_type == SignalType.ECON
    assert len(spread.citations) == 2


def test_derive_yield_spread_needs_both_series() -> None:
    econ = [make_signal(1, "Economic indicator DGS10", signal_type="econ", summary="x: 4.2")]
    assert SignalExtractor().derive_yield_spread(day=DAY, econ_signals=econ) is None


def test_signal_type_ignores_source_id_case() -> None:
    assert (
        signal_type_for_source(kind="API_JSON", source_id="Polymarket-Top", url="", name="")
        == SignalType.MARKET
    )
    assert signal_type_for_source(kind="csv", source_id="FRED-DGS10", url="", name="") == (
        SignalType.ECON
    )


def test_extract_types_mixed_case_market_source_as_market() -> None:
    write = SignalExtractor().extract(
        _pending(
            source_id="Polymarket-Top",
            source_name="Polymarket",
            source_kind="api_json",
            source_url="https://gamma-api.polymarket.com/markets",
            title="Will the Fed cut rates by December?",
            summary="Yes: 63% • Closes: 2026-12-10",
        ),
        day=DAY,
        now=NOW,
    )

    assert write.signal_type == SignalType.MARKET
    assert write.horizon == Horizon.MID
