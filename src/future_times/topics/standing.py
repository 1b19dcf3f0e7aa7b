"""Keyword evidence matching between signals and hand-curated standing topics."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from future_times.ingestion.models import EvidenceLink, Signal, StandingTopic
from future_times.signals.extractor import classify_ai_category

logger = logging.getLogger(__name__)

MIN_LINK_SCORE = 2.0
MIN_MATCHED_KEYWORDS = 2
RELEVANCE_SCALE = 8.0


def match_signal(
    signal: Signal,
    topic: StandingTopic,
    *,
    categorized_section: str | None = "AI",
) -> EvidenceLink | None:
    """Score one signal against one standing topic.

    Each topic keyword found in the lowercase title and summary scores 2 when it
    is a multi-word phrase and 1 otherwise. A topic keyword equal to one of the
    signal's own keywords that was not already matched adds 0.5. The link is
    kept when the score reaches 2 or two keywords matched.
    """

    combined = f"{signal.title} {signal.summary or ''}".lower()
    matched: list[str] = []
    score = 0.0
    for keyword in topic.keywords:
        needle = keyword.lower()
        if needle and needle in combined:
            matched.append(keyword)
            score += 2.0 if " " in needle else 1.0

    signal_keywords = {keyword.lower() for keyword in signal.keywords}
    for keyword in topic.keywords:
        if keyword.lower() in signal_keywords and keyword not in matched:
            matched.append(keyword)
            score += 0.5

    if score < MIN_LINK_SCORE and len(matched) < MIN_MATCHED_KEYWORDS:
        return None
    category_hint = (
        classify_ai_category(combined)
        if categorized_section is not None and topic.section == categorized_section
        else None
    )
    return EvidenceLink(
        standing_topic_key=topic.topic_key,
        signal_id=signal.signal_id,
        day=signal.day,
        relevance=min(1.0, score / RELEVANCE_SCALE),
        matched_keywords=matched,
        category_hint=category_hint,
    )


def match_evidence(
    signals: Sequence[Signal],
    topics: Sequence[StandingTopic],
    *,
    categorized_section: str | None = "AI",
) -> list[EvidenceLink]:
    enabled = [topic for topic in topics if topic.enabled]
    links: list[EvidenceLink] = []
    for signal in signals:
        for topic in enabled:
            link = match_signal(signal, topic, categorized_section=categorized_section)
            if link is not None:
                links.append(link)
    logger.info(
        "Matched %d evidence link(s) across %d standing topic(s) and %d signal(s).",
        len(links),
        len(enabled),
        len(signals),
    )
    return links
