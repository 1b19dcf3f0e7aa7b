"""Stories for the standing section, driven by curated topics and their evidence."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from future_times.editions.evidence import build_citations, build_sidebar_signals
from future_times.editions.seeds import clean_topic_for_headline
from future_times.ingestion.cleaning import html_to_text
from future_times.ingestion.models import EvidenceLink, Signal, StandingTopic, StoryDraft
from future_times.text import stable_hash
from future_times.topics.cluster import SlugRegistry

logger = logging.getLogger(__name__)

MAX_EVIDENCE_PER_TOPIC = 8
MAX_BRIEF_EVIDENCE = 3
MAX_BRIEF_LINE_CHARS = 200
MAX_CITATIONS = 6
MAX_PACK_KEYWORDS = 12
MAX_MILESTONE_EVENT_CHARS = 80
MAX_DESCRIPTION_DEK_CHARS = 120
DEFAULT_THEME = "AI and Automation"

HEADLINE_TEMPLATES: tuple[str, ...] = (
    "{label} Reaches New Milestone in {year}",
    "{year}: {label} Enters a New Phase",
    "{category} Industry Crosses Critical Threshold in {year}",
    "The {year} {label} Landscape: What's Changed",
    "{label} Deployment Accelerates as {year} Reshapes the Market",
    "New {label} Capabilities Arrive Ahead of Schedule in {year}",
)


@dataclass(slots=True)
class StandingCandidate:
    topic: StandingTopic
    evidence: list[tuple[EvidenceLink, Signal]]

    @property
    def evidence_count(self) -> int:
        return len(self.evidence)


def horizon_for_offset(offset: int) -> str:
    if offset <= 2:
        return "near"
    if offset <= 5:
        return "mid"
    return "long"


def select_standing_topics(
    topics: Sequence[StandingTopic],
    links: Sequence[EvidenceLink],
    signals_by_id: Mapping[int, Signal],
    *,
    limit: int,
) -> list[StandingCandidate]:
    """Most active topics first, one per category before repeating a category."""

    evidence_by_topic: dict[str, list[tuple[EvidenceLink, Signal]]] = {}
    for link in links:
        signal = signals_by_id.get(link.signal_id)
        if signal is not None:
            evidence_by_topic.setdefault(link.standing_topic_key, []).append((link, signal))

    candidates = []
    for topic in sorted(topics, key=lambda item: (item.category or "", item.label)):
        if not topic.enabled:
            continue
        evidence = sorted(
            evidence_by_topic.get(topic.topic_key, []),
            key=lambda row: (-row[0].relevance, row[0].signal_id),
        )[:MAX_EVIDENCE_PER_TOPIC]
        candidates.append(StandingCandidate(topic=topic, evidence=evidence))
    candidates.sort(key=lambda candidate: -candidate.evidence_count)

    selected: list[StandingCandidate] = []
    used_categories: set[str] = set()
    for candidate in candidates:
        if len(selected) >= limit:
            break
        category = candidate.topic.category
        if category and category in used_categories:
            continue
        selected.append(candidate)
        if category:
            used_categories.add(category)
    for candidate in candidates:
        if len(selected) >= limit:
            break
        if candidate not in selected:
            selected.append(candidate)
    return selected


def build_standing_stories(  # noqa: PLR0913
    *,
    day: str,
    offset: int,
    section: str,
    section_slug: str,
    edition_date: str,
    target_year: int,
    topics: Sequence[StandingTopic],
    links: Sequence[EvidenceLink],
    signals_by_id: Mapping[int, Signal],
    angles: Sequence[str],
    limit: int,
) -> list[StoryDraft]:
    selected = select_standing_topics(topics, links, signals_by_id, limit=limit)
    if not selected:
        logger.info("Standing section %s has no enabled topics for %s.", section, day)
    slugs = SlugRegistry()
    stories: list[StoryDraft] = []
    for index, candidate in enumerate(selected):
        topic = candidate.topic
        angle = angles[index % len(angles)]
        topic_slug = slugs.claim(topic.topic_key)
        story_id = f"ft-{day}-y{offset}-{section_slug}-{topic_slug}-{angle}"
        milestone = find_milestone(topic, target_year)
        signals = [signal for _, signal in candidate.evidence]

        if offset == 0:
            headline = clean_topic_for_headline(signals[0].title) if signals else topic.label
            dek = _present_day_dek(topic, candidate.evidence_count)
        else:
            headline = future_headline(topic, target_year, milestone, seed=story_id)
            dek = future_dek(topic, target_year, milestone, edition_date=edition_date)

        category_label = f"{section} / {topic.category}" if topic.category else section
        stories.append(
            StoryDraft(
                story_id=story_id,
                section=section,
                rank=index + 1,
                angle=angle,
                topic_ref=topic.topic_key,
                topic_label=topic.label,
                headline_seed=headline,
                dek_seed=dek,
                meta=f"{category_label} • {edition_date}",
                prompt=(
                    f"Futuristic editorial illustration: {topic.label} in {target_year}. "
                    f"{topic.category or section} theme. Newspaper photography style."
                ),
                evidence_pack=_evidence_pack(
                    candidate,
                    section=section,
                    topic_slug=topic_slug,
                    edition_date=edition_date,
                    offset=offset,
                    target_year=target_year,
                ),
            ),
        )
    return stories


def find_milestone(topic: StandingTopic, target_year: int) -> dict[str, object] | None:
    for milestone in topic.milestones:
        year = milestone_year(milestone)
        if year is not None and abs(year - target_year) <= 1:
            return milestone
    return None


def milestone_year(milestone: Mapping[str, object]) -> int | None:
    try:
        return int(milestone.get("year"))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def future_headline(
    topic: StandingTopic,
    target_year: int,
    milestone: Mapping[str, object] | None,
    *,
    seed: str,
) -> str:
    label = topic.label or "AI"
    event = str((milestone or {}).get("event") or "")
    if event:
        return f"{target_year}: {event[:MAX_MILESTONE_EVENT_CHARS]}"
    template = HEADLINE_TEMPLATES[stable_hash(seed) % len(HEADLINE_TEMPLATES)]
    return template.format(label=label, year=target_year, category=topic.category or label)


def future_dek(
    topic: StandingTopic,
    target_year: int,
    milestone: Mapping[str, object] | None,
    *,
    edition_date: str,
) -> str:
    label = (topic.label or "AI").lower()
    event = str((milestone or {}).get("event") or "")
    if event:
        return (
            f"By {edition_date}, {event.lower()}. The pace of change in {label} "
            "continues to surprise even optimistic forecasters."
        )
    axis_names = [
        axis.get("axis") or axis.get("description") or ""
        for axis in topic.extrapolation_axes[:2]
    ]
    axis_names = [name for name in axis_names if name]
    if axis_names:
        return (
            f"Advances in {' and '.join(axis_names)} are reshaping {label} in {target_year}, "
            "with concrete implications for industries, workers, and policymakers worldwide."
        )
    return (
        f"The {label} landscape of {target_year} has evolved rapidly, with new capabilities, "
        "market dynamics, and regulatory frameworks redefining the field."
    )


def _present_day_dek(topic: StandingTopic, evidence_count: int) -> str:
    description = topic.description or ""
    if evidence_count:
        return (
            f"{topic.label}: {evidence_count} signals tracked today. "
            f"{description[:MAX_DESCRIPTION_DEK_CHARS]}"
        ).strip()
    return description or topic.label


def _standing_brief(topic: StandingTopic, signals: Sequence[Signal]) -> str:
    lines = [
        f"- {html_to_text(signal.summary)[:MAX_BRIEF_LINE_CHARS]}"
        for signal in signals[:MAX_BRIEF_EVIDENCE]
    ]
    evidence = "\n".join(lines) or "(No fresh signals today)"
    return f"{topic.description or ''}\n\nLatest evidence:\n{evidence}"


def _dominant_category_hint(evidence: Sequence[tuple[EvidenceLink, Signal]]) -> str | None:
    hints = Counter(link.category_hint for link, _ in evidence if link.category_hint)
    if not hints:
        return None
    return hints.most_common(1)[0][0]


def _evidence_pack(  # noqa: PLR0913
    candidate: StandingCandidate,
    *,
    section: str,
    topic_slug: str,
    edition_date: str,
    offset: int,
    target_year: int,
) -> dict[str, object]:
    topic = candidate.topic
    signals = [signal for _, signal in candidate.evidence]
    milestones = [
        milestone
        for milestone in topic.milestones
        if (year := milestone_year(milestone)) is not None
        and target_year - 1 <= year <= target_year + 2
    ]
    return {
        "grounding": "standing_topic",
        "section": section,
        "editionDate": edition_date,
        "yearsForward": offset,
        "standingTopic": {
            "key": topic.topic_key,
            "label": topic.label,
            "category": topic.category,
            "description": topic.description,
            "extrapolationAxes": list(topic.extrapolation_axes),
            "milestones": milestones,
            "keywords": list(topic.keywords[:MAX_PACK_KEYWORDS]),
        },
        "topic": {
            "topicId": topic.topic_key,
            "slug": topic_slug,
            "label": topic.label,
            "theme": topic.category or DEFAULT_THEME,
            "brief": _standing_brief(topic, signals),
            "horizon": horizon_for_offset(offset),
        },
        "citations": build_citations(signals[:MAX_CITATIONS]),
        "markets": [],
        "econ": {},
        "signals": build_sidebar_signals(signals),
        "aiCategory": topic.category or _dominant_category_hint(candidate.evidence),
        "evidenceCount": candidate.evidence_count,
    }
