"""Read-time overlay of enrichment records onto assembled edition payloads."""

from __future__ import annotations

import copy
import logging
import math
from collections.abc import Mapping
from datetime import datetime

from future_times.ingestion.models import StoryCandidate, StoryEnrichment
from future_times.text import round_half_up

logger = logging.getLogger(__name__)

MIN_DRAFT_BODY_CHARS = 100
MAX_OUTLINE_ITEMS = 10
MAX_PLAN_LIST_ITEMS = 8
PLAN_SCHEMA = 1


def coerce_confidence(value: object) -> int:
    """Clamp an arbitrary confidence value to an integer in ``[0, 100]``."""

    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, min(100, round_half_up(number)))


def build_enrichment_plan(
    entry: Mapping[str, object],
    *,
    candidate: StoryCandidate | None = None,
) -> dict[str, object]:
    """Normalize a raw enrichment entry into the stored plan shape."""

    def text(key: str) -> str:
        return str(entry.get(key) or "").strip()

    def text_list(key: str, limit: int) -> list[str]:
        raw = entry.get(key)
        if not isinstance(raw, list):
            return []
        return [str(item).strip() for item in raw[:limit] if str(item or "").strip()]

    topic = (candidate.topic or {}) if candidate is not None else {}
    draft = entry.get("draftArticle")
    outline = entry.get("outline")
    return {
        "schema": PLAN_SCHEMA,
        "storyId": text("storyId") or (candidate.story_id if candidate else ""),
        "curatedTitle": text("curatedTitle"),
        "curatedDek": text("curatedDek"),
        "key": bool(entry.get("key")),
        "hero": bool(entry.get("hero")),
        "topicTitle": text("topicTitle")
        or str(topic.get("theme") or topic.get("label") or "").strip(),
        "sparkDirections": text("sparkDirections"),
        "futureEventSeed": text("futureEventSeed"),
        "outline": list(outline[:MAX_PLAN_LIST_ITEMS]) if isinstance(outline, list) else [],
        "rationale": text_list("rationale", MAX_PLAN_LIST_ITEMS),
        "extrapolationTrace": text_list("extrapolationTrace", MAX_PLAN_LIST_ITEMS),
        "confidence": coerce_confidence(entry.get("confidence")),
        "draftArticle": (
            {
                "title": str(draft.get("title") or "").strip(),
                "dek": str(draft.get("dek") or "").strip(),
                "body": str(draft.get("body") or "").strip(),
            }
            if isinstance(draft, Mapping)
            else None
        ),
    }


def apply_enrichments(
    payload: Mapping[str, object],
    enrichments: Mapping[str, StoryEnrichment],
) -> dict[str, object]:
    """Decorate edition articles with their enrichment; never adds or drops stories.

    A story without a record keeps its seed title, dek and body with confidence 0.
    The default hero is replaced only when exactly one story is flagged as hero.
    """

    result = copy.deepcopy(dict(payload))
    articles = result.get("articles")
    if not isinstance(articles, list):
        return result

    patched: list[object] = []
    heroes: list[str] = []
    latest: datetime | None = None
    for article in articles:
        if not isinstance(article, dict):
            patched.append(article)
            continue
        enrichment = enrichments.get(str(article.get("id") or ""))
        if enrichment is None:
            article["confidence"] = coerce_confidence(article.get("confidence"))
            article.setdefault("curation", None)
            patched.append(article)
            continue
        if enrichment.hero:
            heroes.append(enrichment.story_id)
        if latest is None or enrichment.generated_at > latest:
            latest = enrichment.generated_at
        patched.append(_enrich_article(article, enrichment))

    result["articles"] = patched
    if len(heroes) == 1:
        result["heroId"] = heroes[0]
        result["heroStoryId"] = heroes[0]
    elif len(heroes) > 1:
        logger.debug("Ignoring hero flags on %d stories of %s.", len(heroes), result.get("day"))

    generated_at = latest.isoformat() if latest is not None else None
    result["curationGeneratedAt"] = generated_at
    result["curation"] = (
        {"generatedAt": generated_at, "provider": None, "model": None, "error": None}
        if generated_at
        else None
    )
    return result


def _enrich_article(article: dict[str, object], enrichment: StoryEnrichment) -> dict[str, object]:
    plan = enrichment.plan
    curated_title = str(plan.get("curatedTitle") or plan.get("title") or "").strip()
    curated_dek = str(plan.get("curatedDek") or plan.get("dek") or "").strip()
    draft = plan.get("draftArticle")
    draft_body = str(draft.get("body") or "") if isinstance(draft, Mapping) else ""
    confidence = coerce_confidence(plan.get("confidence"))
    outline = plan.get("outline")

    return {
        **article,
        "title": curated_title or article.get("title") or "",
        "dek": curated_dek or article.get("dek") or "",
        "body": draft_body if len(draft_body) > MIN_DRAFT_BODY_CHARS else article.get("body") or "",
        "confidence": confidence,
        "curation": {
            "key": enrichment.key_story or bool(plan.get("key")),
            "hero": enrichment.hero,
            "model": enrichment.model,
            "generatedAt": enrichment.generated_at.isoformat(),
            "curatedTitle": curated_title,
            "curatedDek": curated_dek,
            "topicTitle": str(plan.get("topicTitle") or ""),
            "sparkDirections": str(plan.get("sparkDirections") or ""),
            "futureEventSeed": str(plan.get("futureEventSeed") or ""),
            "rationale": plan.get("rationale") or [],
            "confidence": confidence,
            "outline": list(outline[:MAX_OUTLINE_ITEMS]) if isinstance(outline, list) else [],
            "draftArticle": draft if isinstance(draft, Mapping) else None,
        },
    }
