import allure

from future_times.text import (
    jaccard,
    pick_deterministic,
    round_half_up,
    slugify,
    stable_hash,
    tokenize,
)

pytestmark = [
    allure.epic("Signal Pipeline"),
    allure.feature("Deterministic Helpers"),
]


def test_stable_hash_is_32_bit_fnv1a() -> None:
    assert stable_hash("") == 2_166_136_261
    assert stable_hash("a") == 0xE40C292C
    assert stable_hash("2026-10-18|5|World|near|slug") == stable_hash(
        "2026-10-18|5|World|near|slug",
    )
    assert 0 <= stable_hash("é unicode ✓") <= 0xFFFF_FFFF


def test_pick_deterministic_uses_hash_modulo() -> None:
    items = ["near", "mid", "long"]
    assert pick_deterministic(items, "seed") == items[stable_hash("seed") % 3]
    assert pick_deterministic([], "seed") is None


def test_tokenize_drops_short_words_and_stopwords() -> None:
    assert tokenize("The U.S. tightens chip export controls on China!") == [
        "tightens",
        "chip",
        "export",
        "controls",
        "china",
    ]
    assert tokenize(None) == []


def test_jaccard_handles_empty_inputs() -> None:
    assert jaccard([], ["a"]) == 0.0
    assert jaccard(["chip", "export"], ["chip", "export", "china"]) == 2 / 3


def test_slugify_caps_length_and_falls_back() -> None:
    assert slugify("Fed's Rates & Bonds") == "feds-rates-and-bonds"
    assert slugify("!!!") == "topic"
    assert slugify("a" * 30 + " " + "b" * 30, 20) == "a" * 20


def test_round_half_up_rounds_halves_away_from_zero() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(87.6) == 88
    assert round_half_up(1.49) == 1
