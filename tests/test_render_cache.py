from __future__ import annotations

from datetime import UTC, datetime

import allure

from future_times.curation.render_cache import (
    UNCURATED_VARIANT,
    content_variant,
    legacy_render_cache_key,
    render_cache_key,
)
from future_times.text import sha256_hex

pytestmark = [
    allure.epic("Curation"),
    allure.feature("Render Cache"),
]


def test_uncurated_story_uses_c0_variant() -> None:
    assert content_variant(None) == UNCURATED_VARIANT == "c0"
    assert content_variant("  ") == "c0"
    assert render_cache_key("story-a", None, format_version="19") == "story-a|c0|r19"


def test_variant_hashes_enrichment_timestamp() -> None:
    stamp = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)

    variant = content_variant(stamp)

    assert variant == "c" + sha256_hex(stamp.isoformat())[:10]
    assert content_variant(stamp.isoformat()) == variant
    assert render_cache_key("story-a", stamp, format_version="19") == f"story-a|{variant}|r19"


def test_new_timestamp_or_format_invalidates_key() -> None:
    first = render_cache_key("story-a", "2026-10-18T09:30:00+00:00", format_version="19")
    regenerated = render_cache_key("story-a", "2026-10-18T10:00:00+00:00", format_version="19")
    reformatted = render_cache_key("story-a", "2026-10-18T09:30:00+00:00", format_version="20")

    assert len({first, regenerated, reformatted}) == 3


def test_legacy_key_has_no_variant() -> None:
    assert legacy_render_cache_key(" story-a ", format_version="19") == "story-a|r19"
