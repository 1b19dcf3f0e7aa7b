"""Content-derived keys for rendered article caching."""

from __future__ import annotations

from datetime import datetime

from future_times.text import sha256_hex

UNCURATED_VARIANT = "c0"
VARIANT_HASH_CHARS = 10


def content_variant(enrichment_generated_at: datetime | str | None) -> str:
    """Variant tag that changes whenever the story's enrichment is regenerated."""

    if isinstance(enrichment_generated_at, datetime):
        stamp = enrichment_generated_at.isoformat()
    else:
        stamp = (enrichment_generated_at or "").strip()
    if not stamp:
        return UNCURATED_VARIANT
    return f"c{sha256_hex(stamp)[:VARIANT_HASH_CHARS]}"


def render_cache_key(
    story_id: str,
    enrichment_generated_at: datetime | str | None,
    *,
    format_version: str,
) -> str:
    return f"{story_id.strip()}|{content_variant(enrichment_generated_at)}|r{format_version}"


def legacy_render_cache_key(story_id: str, *, format_version: str) -> str:
    """Key used before variants existed; only consulted for uncurated stories."""

    return f"{story_id.strip()}|r{format_version}"
