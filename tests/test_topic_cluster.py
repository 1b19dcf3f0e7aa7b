from __future__ import annotations

import allure
import pytest

from conftest import DAY, make_signal
from future_times.config import ClusterSettings
from future_times.topics.cluster import (
    FALLBACK_BRIEF,
    SlugRegistry,
    build_topic_brief,
    cluster_day,
    cluster_section,
)

pytestmark = [
    allure.epic("Signal Pipeline"),
    allure.feature("Topic Clustering"),
]


def _chip_signals():
    return [
        make_signal(1, "US tightens chip export controls on China", score=0.9),
        make_signal(2, "China responds to chip export controls", score=0.8),
        make_signal(3, "New chip export controls hit China", score=0.7),
        make_signal(4, "Retail sales climb in holiday season", score=0.6),
    ]


def test_related_chip_export_signals_form_one_topic() -> None:
    topics = cluster_section(
        day=DAY,
        section="Business",
        signals=_chip_signals(),
        settings=ClusterSettings(),
    )

    assert len(topics) == 2
    chips, retail = topics
    assert chips.member_signal_ids == [1, 2, 3]
    assert chips.label == "US tightens chip export controls on China"
    assert chips.score == 0.9
    assert retail.member_signal_ids == [4]


def test_every_candidate_lands_in_exactly_one_topic() -> None:
    signals = [
        *_chip_signals(),
        make_signal(5, "Holiday retail sales beat forecasts", score=0.55),
        make_signal(6, "Central bank holds rates steady", score=0.5),
        make_signal(7, "Prediction market odds", signal_type="market", score=0.99),
    ]

    topics = cluster_section(day=DAY, section="Business", signals=signals, settings=ClusterSettings())

    members = [signal_id for topic in topics for signal_id in topic.member_signal_ids]
    assert sorted(members) == [1, 2, 3, 4, 5, 6]
    assert len(members) == len(set(members))


def test_shared_entity_lowers_merge_threshold() -> None:
    signals = [
        make_signal(1, "Nvidia unveils faster accelerator lineup", score=0.9, entities=["Nvidia"]),
        make_signal(2, "Nvidia accelerator shortage worries buyers", score=0.8, entities=["Nvidia"]),
    ]

    merged = cluster_section(day=DAY, section="Technology", signals=signals, settings=ClusterSettings())
    strict = cluster_section(
        day=DAY,
        section="Technology",
        signals=signals,
        settings=ClusterSettings(entity_similarity_threshold=0.5),
    )

    assert [topic.member_signal_ids for topic in merged] == [[1, 2]]
    assert len(strict) == 2


def test_cluster_caps_topics_per_section() -> None:
    signals = [
        make_signal(index, f"Unrelated headline number {word}", score=1.0 - index / 100)
        for index, word in enumerate(["alpha", "bravo", "charlie", "delta", "echo"], start=1)
    ]
    settings = ClusterSettings(similarity_threshold=0.99, entity_similarity_threshold=0.99, max_topics=3)

    topics = cluster_section(day=DAY, section="World", signals=signals, settings=settings)

    assert len(topics) == 3


def test_slugs_are_unique_across_sections_of_a_day() -> None:
    signals = [
        make_signal(1, "Markets rally on trade deal", section="Business", score=0.9),
        make_signal(2, "Markets rally on trade deal", section="World", score=0.9),
    ]

    topics = cluster_day(DAY, signals, ClusterSettings(), sections=("Business", "World"))

    slugs = [topic.slug for topic in topics]
    assert len(slugs) == 2
    assert len(set(slugs)) == 2
    assert slugs[0] == "markets-rally-on-trade-deal"
    assert slugs[1].startswith("markets-rally-on-trade-deal-")


def test_slug_registry_is_deterministic() -> None:
    first = SlugRegistry()
    second = SlugRegistry()
    assert [first.claim("Same label"), first.claim("Same label")] == [
        second.claim("Same label"),
        second.claim("Same label"),
    ]


def test_cluster_day_skips_sections_and_empty_sections() -> None:
    signals = [
        make_signal(1, "Agents automate office work", section="AI"),
        make_signal(2, "Central bank holds rates", section="Business"),
    ]

    topics = cluster_day(DAY, signals, ClusterSettings(), sections=("AI", "Business", "Arts"), skip_sections=("AI",))

    assert [topic.section for topic in topics] == ["Business"]


def test_topic_brief_uses_member_summaries() -> None:
    signals = [
        make_signal(1, "A", summary="<p>First <b>summary</b></p>"),
        make_signal(2, "B", summary=""),
    ]
    assert build_topic_brief(signals) == "- First summary"
    assert build_topic_brief([make_signal(3, "C")]) == FALLBACK_BRIEF


def test_cluster_day_keeps_other_sections_when_one_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    original = cluster_section

    def failing_ai(**kwargs):
        if kwargs["section"] == "AI":
            raise RuntimeError("boom")
        return original(**kwargs)

    monkeypatch.setattr("future_times.topics.cluster.cluster_section", failing_ai)
    signals = [
        make_signal(1, "Agents automate office work", section="AI"),
        make_signal(2, "Central bank holds rates", section="Business"),
    ]

    topics = cluster_day(DAY, signals, ClusterSettings(), sections=("AI", "Business"))

    assert [topic.section for topic in topics] == ["Business"]
