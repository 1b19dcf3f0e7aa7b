from __future__ import annotations

import allure

from future_times.editions.seeds import (
    FALLBACK_HEADLINE,
    build_dek_seed,
    build_headline_seed,
    clean_topic_for_headline,
    headline_subject,
)
from future_times.editions.themes import (
    FALLBACK_THEME,
    brief_text,
    derive_theme_phrase,
    strip_proper_nouns,
)

pytestmark = [
    allure.epic("Edition Assembly"),
    allure.feature("Headlines & Themes"),
]


def test_clean_topic_rewrites_market_questions() -> None:
    assert clean_topic_for_headline("Will Lakers win the NBA title? | Polymarket") == (
        "Lakers Wins the NBA title"
    )
    assert clean_topic_for_headline("Will inflation be above 3% in 2027?") == (
        "inflation Is above 3% in 2027"
    )
    assert clean_topic_for_headline("Will the Senate pass the budget") == (
        "the Senate pass the budget"
    )


def test_clean_topic_drops_review_suffix_and_caps_length() -> None:
    assert clean_topic_for_headline("Dune Part Three review: a desert epic") == "Dune Part Three"
    cleaned = clean_topic_for_headline("word " * 40)
    assert len(cleaned) <= 100
    assert clean_topic_for_headline("") == FALLBACK_HEADLINE


def test_headline_subject_shortens_long_clauses() -> None:
    assert headline_subject("The Fed raises rates, markets wobble") == "Fed raises rates"
    assert headline_subject("AI") == FALLBACK_HEADLINE


def test_headline_seed_depends_on_offset() -> None:
    label = "Ports automate cargo handling"
    assert build_headline_seed(label, offset=0, target_year=2026) == label
    assert build_headline_seed(label, offset=5, target_year=2031) == (
        "Ports automate cargo handling in 2031"
    )


def test_dek_seed_uses_brief_today_and_report_line_ahead() -> None:
    brief = "- Cranes now run overnight\n- Unions negotiate"
    assert build_dek_seed("Ports automate", brief, offset=0, target_year=2026) == (
        "Cranes now run overnight Unions negotiate"
    )
    assert build_dek_seed("Ports automate", "", offset=0, target_year=2026) == "Ports automate"
    assert build_dek_seed("Ports Automate Cargo", brief, offset=5, target_year=2031) == (
        "A 2031 report on ports automate cargo."
    )


def test_strip_proper_nouns_keeps_acronyms() -> None:
    assert strip_proper_nouns("Dockworkers at East Coast ports strike with NATO") == (
        "at ports strike with NATO"
    )


def test_theme_phrase_uses_rule_priority() -> None:
    assert derive_theme_phrase("Dockworkers strike at East Coast ports", "") == (
        "Protests and Strikes"
    )
    assert derive_theme_phrase("chip tariffs spark war fears", "") == "Geopolitical Conflict"
    assert derive_theme_phrase("mortgage rates climb", "") == "Interest Rates"


def test_theme_phrase_falls_back_to_leading_tokens() -> None:
    assert derive_theme_phrase("harbor reopens quietly today", None) == "Harbor Reopens Quietly"
    assert derive_theme_phrase("", "") == FALLBACK_THEME


def test_brief_text_joins_bullets() -> None:
    assert brief_text("- one\n\n- two") == "one two"
