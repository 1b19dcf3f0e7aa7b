"""Evidence packs attached to each story stub."""

from __future__ import annotations

from collections.abc import Sequence

from future_times.editions.themes import derive_theme_phrase
from future_times.ingestion.cleaning import html_to_text
from future_times.ingestion.models import Signal, TopicDraft
from future_times.text import jaccard, tokenize

MAX_CITATION_SUMMARY_CHARS = 280
MAX_RELATED_MARKETS = 4
MAX_SIDEBAR_SIGNALS = 6
MAX_MARKET_PROB_CHARS = 60


def related_markets(
    label: str,
    market_signals: Sequence[Signal],
    *,
    threshold: float,
    limit: int = MAX_RELATED_MARKETS,
) -> list[Signal]:
    """Markets whose title and summary overlap the topic label, most similar first."""

    label_tokens = tokenize(label)
    scored = [
        (jaccard(label_tokens, tokenize(f"{signal.title} {signal.summary}")), signal)
        for signal in market_signals
    ]
    scored.sort(key=lambda row: row[0], reverse=True)
    return [signal for similarity, signal in scored if similarity >= threshold][:limit]


def build_citations(signals: Sequence[Signal]) -> list[dict[str, object]]:
    return [
        {
            "id": f"c{index}",
            "title": signal.title,
            "url": signal.canonical_url or "",
            "source": signal.source_label,
            "publishedAt": _iso(signal),
            "summary": html_to_text(signal.summary)[:MAX_CITATION_SUMMARY_CHARS],
        }
        for index, signal in enumerate(signals, start=1)
    ]


def build_sidebar_signals(signals: Sequence[Signal]) -> list[dict[str, str]]:
    return [
        {"label": signal.title, "value": signal.source_label}
        for signal in signals[:MAX_SIDEBAR_SIGNALS]
    ]


def build_econ_snapshot(econ_signals: Sequence[Signal]) -> dict[str, dict[str, object]]:
    snapshot: dict[str, dict[str, object]] = {}
    for signal in econ_signals:
        snapshot[signal.title] = {
            "summary": signal.summary or "",
            "url": signal.canonical_url or "",
            "citation": signal.citations[0] if signal.citations else None,
        }
    return snapshot


def build_market_rows(market_signals: Sequence[Signal]) -> list[dict[str, str]]:
    return [
        {
            "label": signal.title.rstrip("?"),
            "prob": (signal.summary or "")[:MAX_MARKET_PROB_CHARS],
            "url": signal.canonical_url or "",
        }
        for signal in market_signals[:MAX_RELATED_MARKETS]
    ]


def build_evidence_pack(
    *,
    topic: TopicDraft,
    evidence_signals: Sequence[Signal],
    econ_signals: Sequence[Signal],
    market_signals: Sequence[Signal],
    edition_date: str,
    offset: int,
) -> dict[str, object]:
    """Grounding bundle for a clustered topic story (``hard_citations``)."""

    return {
        "grounding": "hard_citations",
        "section": topic.section,
        "editionDate": edition_date,
        "yearsForward": offset,
        "topic": {
            "topicId": topic.slug,
            "slug": topic.slug,
            "label": topic.label,
            "theme": derive_theme_phrase(topic.label, topic.brief),
            "brief": topic.brief,
            "horizon": topic.horizon,
        },
        "citations": build_citations(evidence_signals),
        "markets": build_market_rows(market_signals),
        "econ": build_econ_snapshot(econ_signals),
        "signals": build_sidebar_signals(evidence_signals),
    }


def _iso(signal: Signal) -> str | None:
    return signal.published_at.isoformat() if signal.published_at else None
