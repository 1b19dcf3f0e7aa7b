"""Deterministic assembly of a dated edition from a day's topics."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date

from future_times.config import EditionSettings
from future_times.editions.evidence import build_evidence_pack, related_markets
from future_times.editions.seeds import build_dek_seed, build_headline_seed
from future_times.editions.standing_section import build_standing_stories
from future_times.editions.themes import derive_theme_phrase
from future_times.ingestion.cleaning import format_edition_date
from future_times.ingestion.models import (
    EditionDraft,
    EvidenceLink,
    Horizon,
    Signal,
    SignalType,
    StandingTopic,
    StoryDraft,
    TopicDraft,
)
from future_times.text import jaccard, round_half_up, sha256_hex, slugify, stable_hash, tokenize

logger = logging.getLogger(__name__)

PAYLOAD_SCHEMA = 2
ANGLES: tuple[str, ...] = ("impact", "markets", "policy", "tech", "society")
MIN_TOP_POOL = 18
MAX_MARKETS_SUMMARY = 4
MAX_ECON_SUMMARY = 6


def choose_horizon_mix(offset: int) -> tuple[float, float, float]:
    """Share of near/mid/long topics for an edition ``offset`` years ahead."""

    if offset <= 2:
        return (0.6, 0.3, 0.1)
    if offset <= 5:
        return (0.3, 0.5, 0.2)
    return (0.1, 0.4, 0.5)


def horizon_targets(needed: int, offset: int) -> dict[str, int]:
    near_share, mid_share, _ = choose_horizon_mix(offset)
    near = round_half_up(needed * near_share)
    mid = round_half_up(needed * mid_share)
    return {
        Horizon.NEAR.value: near,
        Horizon.MID.value: mid,
        Horizon.LONG.value: max(0, needed - near - mid),
    }


def section_slug(section: str) -> str:
    return slugify("us" if section == "U.S." else section, 20)


def build_story_id(day: str, offset: int, section: str, topic_slug: str, angle: str) -> str:
    return f"ft-{day}-y{offset}-{section_slug(section)}-{topic_slug}-{angle}"


def edition_version(day: str, offset: int) -> str:
    return sha256_hex(f"{day}|{offset}|v1")[:12]


def target_year_for(day: str, offset: int) -> int:
    return date.fromisoformat(day).year + offset


@dataclass(slots=True)
class EditionPicks:
    """Picks already made for one edition; shared across its sections."""

    used_slugs: set[str] = field(default_factory=set)
    used_label_tokens: list[list[str]] = field(default_factory=list)

    def too_similar(self, tokens: list[str], threshold: float) -> bool:
        return any(jaccard(tokens, previous) >= threshold for previous in self.used_label_tokens)


@dataclass(slots=True)
class _SectionPicker:
    day: str
    offset: int
    section: str
    needed: int
    threshold: float
    edition: EditionPicks
    themes: dict[str, str]
    selected: list[TopicDraft] = field(default_factory=list)
    used_themes: set[str] = field(default_factory=set)

    def full(self) -> bool:
        return len(self.selected) >= self.needed

    def take(
        self,
        ordered: Sequence[TopicDraft],
        *,
        limit: int,
        check_theme: bool = True,
        check_similarity: bool = True,
    ) -> int:
        taken = 0
        for topic in ordered:
            if taken >= limit or self.full():
                break
            if topic.slug in self.edition.used_slugs:
                continue
            theme = self.themes[topic.slug]
            if check_theme and theme in self.used_themes:
                continue
            tokens = tokenize(topic.label)
            if check_similarity and self.edition.too_similar(tokens, self.threshold):
                continue
            self.selected.append(topic)
            self.edition.used_slugs.add(topic.slug)
            self.edition.used_label_tokens.append(tokens)
            self.used_themes.add(theme)
            taken += 1
        return taken

    def shuffled(self, topics: Sequence[TopicDraft], bucket: str) -> list[TopicDraft]:
        seed = f"{self.day}|{self.offset}|{self.section}|{bucket}"
        return sorted(topics, key=lambda topic: (stable_hash(f"{seed}|{topic.slug}"), topic.slug))


def select_section_topics(  # noqa: PLR0913
    *,
    day: str,
    offset: int,
    section: str,
    topics: Sequence[TopicDraft],
    needed: int,
    edition: EditionPicks,
    similarity_threshold: float,
    theme_of: Callable[[TopicDraft], str] | None = None,
) -> list[TopicDraft]:
    """Pick up to ``needed`` topics of one section for one edition.

    Buckets are filled to their own horizon targets from a deterministically
    shuffled top pool. Missing picks are backfilled by progressively relaxing
    the theme and similarity constraints, then from the section's remaining
    topics outside the pool. A section with too few topics stays short.
    """

    theme_fn = theme_of or (lambda topic: derive_theme_phrase(topic.label, topic.brief))
    ranked = sorted(topics, key=lambda topic: (-topic.score, topic.slug))
    pool = ranked[: max(needed * 3, MIN_TOP_POOL)]
    picker = _SectionPicker(
        day=day,
        offset=offset,
        section=section,
        needed=needed,
        threshold=similarity_threshold,
        edition=edition,
        themes={topic.slug: theme_fn(topic) for topic in ranked},
    )

    for bucket, target in horizon_targets(needed, offset).items():
        bucket_pool = [topic for topic in pool if topic.horizon == bucket]
        picker.take(picker.shuffled(bucket_pool, bucket), limit=target)

    if not picker.full():
        backfill = picker.shuffled(pool, "any")
        picker.take(backfill, limit=needed)
        picker.take(backfill, limit=needed, check_theme=False)
        picker.take(backfill, limit=needed, check_theme=False, check_similarity=False)
    if not picker.full():
        outside = ranked[len(pool) :]
        seed = f"{day}|{offset}|{section}|any|backup"
        ordered = sorted(outside, key=lambda topic: (stable_hash(f"{seed}|{topic.slug}"), topic.slug))
        picker.take(ordered, limit=needed, check_theme=False, check_similarity=False)

    if not picker.full():
        logger.info(
            "Section %s of %s +%dy is short: %d of %d stories.",
            section,
            day,
            offset,
            len(picker.selected),
            needed,
        )
    logger.debug(
        "Section %s of %s +%dy picked: %s",
        section,
        day,
        offset,
        ", ".join(topic.slug for topic in picker.selected),
    )
    return picker.selected


class EditionAssembler:
    """Builds the edition payload and its story stubs for one (day, offset)."""

    def __init__(self, settings: EditionSettings) -> None:
        self.settings = settings

    def assemble(  # noqa: PLR0913
        self,
        *,
        day: str,
        offset: int,
        topics: Sequence[TopicDraft],
        signals: Sequence[Signal],
        standing_topics: Sequence[StandingTopic] = (),
        evidence_links: Sequence[EvidenceLink] = (),
    ) -> EditionDraft:
        settings = self.settings
        edition_date = format_edition_date(day, offset)
        target_year = target_year_for(day, offset)
        ordered_signals = sorted(signals, key=lambda signal: signal.signal_id)
        signals_by_id = {signal.signal_id: signal for signal in ordered_signals}
        econ_signals = [s for s in ordered_signals if s.signal_type == SignalType.ECON.value]
        market_signals = [s for s in ordered_signals if s.signal_type == SignalType.MARKET.value]
        themes: dict[str, str] = {}

        def theme_of(topic: TopicDraft) -> str:
            if topic.slug not in themes:
                themes[topic.slug] = derive_theme_phrase(topic.label, topic.brief)
            return themes[topic.slug]

        edition = EditionPicks()

        def section_stories(section: str) -> list[StoryDraft]:
            section_standing = [t for t in standing_topics if t.section == section]
            if section == settings.standing_section and section_standing:
                return build_standing_stories(
                    day=day,
                    offset=offset,
                    section=section,
                    section_slug=section_slug(section),
                    edition_date=edition_date,
                    target_year=target_year,
                    topics=section_standing,
                    links=[link for link in evidence_links if link.day == day],
                    signals_by_id=signals_by_id,
                    angles=ANGLES,
                    limit=settings.standing_topic_limit,
                )

            picks = select_section_topics(
                day=day,
                offset=offset,
                section=section,
                topics=[topic for topic in topics if topic.section == section],
                needed=settings.stories_per_section,
                edition=edition,
                similarity_threshold=settings.theme_similarity_threshold,
                theme_of=theme_of,
            )
            built: list[StoryDraft] = []
            for index, topic in enumerate(picks):
                angle = ANGLES[index % len(ANGLES)]
                evidence_signals = [
                    signals_by_id[signal_id]
                    for signal_id in topic.evidence_signal_ids
                    if signal_id in signals_by_id
                ]
                built.append(
                    StoryDraft(
                        story_id=build_story_id(day, offset, section, topic.slug, angle),
                        section=section,
                        rank=index + 1,
                        angle=angle,
                        topic_ref=topic.slug,
                        topic_label=topic.label,
                        headline_seed=build_headline_seed(
                            topic.label,
                            offset=offset,
                            target_year=target_year,
                        ),
                        dek_seed=build_dek_seed(
                            topic.label,
                            topic.brief,
                            offset=offset,
                            target_year=target_year,
                        ),
                        meta=f"{section} • {edition_date}",
                        prompt=(
                            f"Editorial photo illustration of: {topic.label}. "
                            f"Newspaper photography style. Dated {edition_date}."
                        ),
                        evidence_pack=build_evidence_pack(
                            topic=topic,
                            evidence_signals=evidence_signals,
                            econ_signals=econ_signals,
                            market_signals=related_markets(
                                topic.label,
                                market_signals,
                                threshold=settings.market_similarity_threshold,
                            ),
                            edition_date=edition_date,
                            offset=offset,
                        ),
                    ),
                )
            return built

        stories: list[StoryDraft] = []
        for section in settings.sections:
            try:
                stories.extend(section_stories(section))
            except Exception:
                logger.exception(
                    "Assembling section %s of %s +%dy failed; section left empty.",
                    section,
                    day,
                    offset,
                )

        version = edition_version(day, offset)
        hero_id = stories[0].story_id if stories else None
        payload: dict[str, object] = {
            "schema": PAYLOAD_SCHEMA,
            "day": day,
            "offsetYears": offset,
            "date": edition_date,
            "generatedFrom": f"signals-pipeline / {day}",
            "version": version,
            "heroId": hero_id,
            "heroStoryId": hero_id,
            "articles": [_article(story) for story in stories],
            "marketsSummary": [
                {"label": signal.title, "prob": signal.summary or ""}
                for signal in market_signals[:MAX_MARKETS_SUMMARY]
            ],
            "econSummary": [
                {"label": signal.title, "value": signal.summary or ""}
                for signal in econ_signals[:MAX_ECON_SUMMARY]
            ],
        }
        logger.info(
            "Assembled edition %s +%dy (%s): %d stories.",
            day,
            offset,
            version,
            len(stories),
        )
        return EditionDraft(day=day, offset=offset, version=version, payload=payload, stories=stories)


def _article(story: StoryDraft) -> dict[str, object]:
    return {
        "id": story.story_id,
        "section": story.section,
        "rank": story.rank,
        "angle": story.angle,
        "title": story.headline_seed,
        "dek": story.dek_seed,
        "body": "",
        "meta": story.meta,
        "image": "",
        "prompt": story.prompt,
        "topicLabel": story.topic_label,
        "confidence": 0,
    }
