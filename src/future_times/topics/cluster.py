"""Greedy title-token clustering of a day's signals into topics."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from future_times.config import DEFAULT_SECTION_ORDER, ClusterSettings
from future_times.ingestion.cleaning import html_to_text
from future_times.ingestion.models import Signal, SignalType, TopicDraft
from future_times.text import jaccard, pick_deterministic, slugify, stable_hash, tokenize

logger = logging.getLogger(__name__)

EXCLUDED_SIGNAL_TYPES = frozenset({SignalType.MARKET.value, SignalType.ECON.value})
MAX_LABEL_CHARS = 220
MAX_EVIDENCE_SIGNALS = 6
MAX_BRIEF_LINES = 4
MAX_BRIEF_LINE_CHARS = 220
SLUG_MAX_CHARS = 58
FALLBACK_BRIEF = "A cluster of signals suggests a developing storyline worth tracking."


@dataclass(slots=True)
class _Cluster:
    label: str
    members: list[Signal]
    tokens: set[str]
    entities: set[str]
    score: float


@dataclass(slots=True)
class SlugRegistry:
    """Hands out topic slugs that are unique for one day across all sections."""

    used: set[str] = field(default_factory=set)

    def claim(self, label: str) -> str:
        slug = slugify(label, SLUG_MAX_CHARS)
        if slug in self.used:
            slug = f"{slug}-{stable_hash(label) % 97 + 2}"
        candidate = slug
        counter = 2
        while candidate in self.used:
            candidate = f"{slug}-{counter}"
            counter += 1
        self.used.add(candidate)
        return candidate


def cluster_day(
    day: str,
    signals: Sequence[Signal],
    settings: ClusterSettings,
    *,
    sections: Sequence[str] = DEFAULT_SECTION_ORDER,
    skip_sections: Sequence[str] = (),
) -> list[TopicDraft]:
    """Cluster every section of ``day`` in section order."""

    slugs = SlugRegistry()
    topics: list[TopicDraft] = []
    for section in sections:
        if section in skip_sections:
            continue
        try:
            section_topics = cluster_section(
                day=day,
                section=section,
                signals=[signal for signal in signals if signal.section == section],
                settings=settings,
                slugs=slugs,
            )
        except Exception:
            logger.exception("Clustering section %s for %s failed; section skipped.", section, day)
            continue
        if not section_topics:
            logger.debug("No topics for section %s on %s (no eligible signals).", section, day)
        topics.extend(section_topics)
    logger.info("Clustered %d topic(s) for %s.", len(topics), day)
    return topics


def cluster_section(
    *,
    day: str,
    section: str,
    signals: Sequence[Signal],
    settings: ClusterSettings,
    slugs: SlugRegistry | None = None,
) -> list[TopicDraft]:
    candidates = sorted(
        (signal for signal in signals if signal.signal_type not in EXCLUDED_SIGNAL_TYPES),
        key=lambda signal: (-signal.score, signal.signal_id),
    )[: settings.max_candidates]
    clusters = _greedy_clusters(candidates, settings)
    registry = slugs if slugs is not None else SlugRegistry()
    return [_build_topic(day, section, cluster, registry) for cluster in clusters]


def build_topic_brief(signals: Sequence[Signal]) -> str:
    lines: list[str] = []
    for signal in signals[:MAX_BRIEF_LINES]:
        summary = html_to_text(signal.summary)
        if summary:
            lines.append(f"- {summary[:MAX_BRIEF_LINE_CHARS]}")
    return "\n".join(lines) if lines else FALLBACK_BRIEF


def _greedy_clusters(candidates: Sequence[Signal], settings: ClusterSettings) -> list[_Cluster]:
    clusters: list[_Cluster] = []
    for signal in candidates:
        tokens = tokenize(signal.title)
        entities = list(signal.entities)

        best_index = -1
        best_similarity = 0.0
        best_shares_entity = False
        for index, cluster in enumerate(clusters):
            similarity = jaccard(tokens, cluster.tokens)
            if similarity > best_similarity:
                best_index = index
                best_similarity = similarity
                best_shares_entity = any(entity in cluster.entities for entity in entities)

        should_merge = best_index >= 0 and (
            best_similarity >= settings.similarity_threshold
            or (best_shares_entity and best_similarity >= settings.entity_similarity_threshold)
        )
        if should_merge:
            cluster = clusters[best_index]
            cluster.members.append(signal)
            cluster.tokens.update(tokens)
            cluster.entities.update(entities)
            cluster.score = max(cluster.score, signal.score)
            continue

        clusters.append(
            _Cluster(
                label=signal.title,
                members=[signal],
                tokens=set(tokens),
                entities=set(entities),
                score=signal.score,
            ),
        )
        if len(clusters) >= settings.max_topics:
            break
    return clusters


def _build_topic(day: str, section: str, cluster: _Cluster, slugs: SlugRegistry) -> TopicDraft:
    evidence = cluster.members[:MAX_EVIDENCE_SIGNALS]
    label = cluster.label[:MAX_LABEL_CHARS]
    horizon = pick_deterministic([signal.horizon for signal in evidence], f"{day}-{label}")
    return TopicDraft(
        day=day,
        section=section,
        label=label,
        brief=build_topic_brief(evidence),
        horizon=horizon or "near",
        slug=slugs.claim(label),
        score=cluster.score,
        evidence_signal_ids=[signal.signal_id for signal in evidence],
        evidence_links=[
            {"title": signal.title, "url": signal.canonical_url or ""} for signal in evidence
        ],
        member_signal_ids=[signal.signal_id for signal in cluster.members],
    )
