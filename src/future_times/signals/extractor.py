"""Turn raw items into scored, classified signals."""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime

from future_times.config import DEFAULT_SECTION_ORDER
from future_times.ingestion.models import (
    Horizon,
    PendingRawItem,
    Signal,
    SignalType,
    SignalWrite,
    SourceKind,
)
from future_times.signals.entities import EntityDictionaries
from future_times.text import tokenize

logger = logging.getLogger(__name__)

KEYWORD_LIMIT = 12
ENTITY_LIMIT = 10
PROPER_PHRASE_LIMIT = 6
MISSING_PUBLISHED_AGE_HOURS = 24.0
RECENCY_HALF_LIFE_HOURS = 18.0
MAX_SIGNAL_TITLE_CHARS = 240
MAX_SIGNAL_SUMMARY_CHARS = 1200

SPREAD_SIGNAL_TITLE = "Economic indicator YC_SPREAD_10Y2Y"
SPREAD_SIGNAL_SCORE = 0.92
SPREAD_CITATIONS: tuple[dict[str, object], ...] = (
    {
        "url": "https://fred.stlouisfed.org/series/DGS10",
        "title": "FRED DGS10",
        "source": "FRED",
        "publishedAt": None,
    },
    {
        "url": "https://fred.stlouisfed.org/series/DGS2",
        "title": "FRED DGS2",
        "source": "FRED",
        "publishedAt": None,
    },
)

BASE_SCORE_BY_TYPE: dict[SignalType, float] = {
    SignalType.MARKET: 1.15,
    SignalType.RESEARCH: 1.10,
    SignalType.ECON: 0.95,
    SignalType.NEWS: 1.0,
}

HORIZON_BY_SIGNAL_TYPE: dict[SignalType, Horizon] = {
    SignalType.NEWS: Horizon.NEAR,
    SignalType.ECON: Horizon.NEAR,
    SignalType.MARKET: Horizon.MID,
    SignalType.RESEARCH: Horizon.MID,
}

KEYWORDS_BY_SECTION: dict[str, tuple[str, ...]] = {
    "U.S.": (
        "congress", "senate", "house", "supreme", "court", "election", "federal", "state",
        "governor", "immigration",
    ),
    "World": (
        "china", "russia", "europe", "eu", "ukraine", "gaza", "israel", "iran", "trade", "nato",
        "war", "global",
    ),
    "Business": (
        "market", "stocks", "earnings", "inflation", "jobs", "economy", "recession", "rates",
        "bond", "bank", "ipo",
    ),
    "Technology": (
        "chip", "semiconductor", "software", "cloud", "security", "cyber", "gpu", "open-source",
        "quantum", "blockchain", "crypto",
    ),
    "AI": (
        "ai", "artificial intelligence", "machine learning", "deep learning", "neural network",
        "llm", "large language model", "gpt", "claude", "gemini", "openai", "anthropic",
        "deepmind", "transformer", "diffusion", "robot", "robotics", "humanoid", "autonomous",
        "self-driving", "autopilot", "agent", "agents", "agentic", "multi-agent", "reasoning",
        "inference", "chatbot", "copilot", "foundation model", "fine-tuning", "rlhf",
        "alignment", "computer vision", "nlp", "natural language", "text-to-image",
        "text-to-video", "agi", "superintelligence", "ai safety", "ai regulation",
        "ai governance", "benchmark", "training", "compute", "scaling", "emergent",
        "multimodal",
    ),
    "Arts": (
        "film", "music", "book", "museum", "artist", "gallery", "festival", "theatre", "theater",
        "culture",
    ),
    "Lifestyle": (
        "health", "travel", "food", "wellness", "housing", "fitness", "work", "school", "family",
        "fashion",
    ),
    "Opinion": (
        "opinion", "editorial", "column", "debate", "analysis", "rights", "privacy", "democracy",
    ),
}  # fmt: skip

GENERAL_AI_CATEGORY = "General AI"
AI_CATEGORIES: dict[str, tuple[str, ...]] = {
    "Foundation Models": (
        "llm", "large language model", "gpt", "claude", "gemini", "foundation model",
        "transformer", "scaling", "training", "benchmark", "multimodal", "diffusion",
    ),
    "Robotics & Embodied AI": (
        "robot", "robotics", "humanoid", "autonomous", "self-driving", "autopilot", "embodied",
        "manipulation", "locomotion", "drone",
    ),
    "AI Agents": (
        "agent", "agents", "agentic", "multi-agent", "tool use", "function calling", "reasoning",
        "planning", "orchestration", "workflow",
    ),
    "AI Safety & Governance": (
        "ai safety", "alignment", "ai regulation", "ai governance", "agi", "superintelligence",
        "existential risk", "bias", "fairness", "interpretability", "explainability",
    ),
    "Applied AI": (
        "computer vision", "nlp", "natural language", "text-to-image", "text-to-video", "speech",
        "medical ai", "drug discovery", "protein", "weather", "climate ai",
    ),
    "AI Industry": (
        "openai", "anthropic", "deepmind", "google ai", "meta ai", "microsoft ai", "nvidia",
        "compute", "data center", "gpu", "tpu", "chip", "funding", "valuation", "acquisition",
    ),
}  # fmt: skip

_PROPER_PHRASE_RE = re.compile(r"\b[A-Z][A-Za-z0-9]+(?:\s+[A-Z][A-Za-z0-9]+)+\b")
_SERIES_VALUE_RE = re.compile(r":\s*([0-9]+(?:\.[0-9]+)?)")


def signal_type_for_source(*, kind: str, source_id: str, url: str, name: str) -> SignalType:
    """Classify the evidence kind carried by a source's items."""

    kind_lower = (kind or "").lower()
    source_lower = (source_id or "").lower()
    if kind_lower == SourceKind.API_JSON.value and "polymarket" in source_lower:
        return SignalType.MARKET
    if kind_lower == SourceKind.CSV.value and "fred" in source_lower:
        return SignalType.ECON
    if "arxiv.org" in (url or "").lower() or "arxiv" in (name or "").lower():
        return SignalType.RESEARCH
    return SignalType.NEWS


def normalize_section(
    value: str | None,
    sections: Sequence[str] = DEFAULT_SECTION_ORDER,
) -> str | None:
    """Map a free-form section hint onto a known section name."""

    raw = (value or "").strip()
    if not raw:
        return None
    lowered = raw.lower()
    if lowered in {"us", "u.s."}:
        return "U.S."
    for section in sections:
        if section.lower() == lowered:
            return section
    return raw


def classify_section(
    text: str,
    sections: Sequence[str] = DEFAULT_SECTION_ORDER,
    default_section: str = "World",
) -> str:
    """Pick the section whose keyword table has the most substring hits.

    Ties keep the earlier section in ``sections``; no hits yields ``default_section``.
    """

    lowered = (text or "").lower()
    best_section = default_section
    best_score = 0
    for section in sections:
        score = sum(1 for keyword in KEYWORDS_BY_SECTION.get(section, ()) if keyword in lowered)
        if score > best_score:
            best_section = section
            best_score = score
    return best_section


def classify_ai_category(text: str) -> str:
    lowered = (text or "").lower()
    best_category = GENERAL_AI_CATEGORY
    best_score = 0
    for category, keywords in AI_CATEGORIES.items():
        score = sum(1 for keyword in keywords if keyword in lowered)
        if score > best_score:
            best_category = category
            best_score = score
    return best_category


def extract_keywords(text: str, limit: int = KEYWORD_LIMIT) -> list[str]:
    """Most frequent tokens first; equal counts keep first-seen order."""

    counts = Counter(tokenize(text))
    return [word for word, _ in counts.most_common(limit)]


def extract_entities(text: str, dictionaries: EntityDictionaries) -> list[str]:
    raw = text or ""
    if not raw:
        return []
    lowered = raw.lower()
    found: list[str] = []
    for term in dictionaries.all_terms():
        needle = term.lower()
        if needle and needle in lowered:
            found.append(term)
    for phrase in _PROPER_PHRASE_RE.findall(raw)[:PROPER_PHRASE_LIMIT]:
        if phrase not in found:
            found.append(phrase)
    return found[:ENTITY_LIMIT]


def score_signal(
    signal_type: SignalType,
    published_at: datetime | None,
    title: str,
    *,
    now: datetime,
) -> float:
    """``base(type) * recency * length``; always within ``[0.2 * 0.6 * base, base]``."""

    if published_at is None:
        age_hours = MISSING_PUBLISHED_AGE_HOURS
    else:
        age_hours = max(0.0, (now - published_at).total_seconds() / 3600.0)
    recency = max(0.2, min(1.0, 1.0 / (1.0 + age_hours / RECENCY_HALF_LIFE_HOURS)))
    length = min(1.0, 0.6 + min(0.4, len(title or "") / 120.0))
    return BASE_SCORE_BY_TYPE[signal_type] * recency * length


class SignalExtractor:
    """Classifies and scores raw items; synthesizes derived indicator signals."""

    def __init__(
        self,
        *,
        entity_dictionaries: EntityDictionaries | None = None,
        sections: Sequence[str] = DEFAULT_SECTION_ORDER,
        default_section: str = "World",
    ) -> None:
        self.entity_dictionaries = entity_dictionaries or EntityDictionaries()
        self.sections = tuple(sections)
        self.default_section = default_section

    def extract(self, item: PendingRawItem, *, day: str, now: datetime | None = None) -> SignalWrite:
        signal_type = signal_type_for_source(
            kind=item.source_kind,
            source_id=item.source_id,
            url=item.source_url,
            name=item.source_name,
        )
        title = (item.title or "").strip()
        summary = (item.summary or "").strip()
        combined = f"{title}\n{summary}"
        section = normalize_section(item.section_hint, self.sections) or classify_section(
            combined,
            self.sections,
            self.default_section,
        )
        score = score_signal(
            signal_type,
            item.published_at,
            title,
            now=now or datetime.now(tz=UTC),
        )
        published_iso = item.published_at.isoformat() if item.published_at else None
        return SignalWrite(
            raw_id=item.raw_id,
            day=day,
            section=section,
            signal_type=signal_type,
            title=title[:MAX_SIGNAL_TITLE_CHARS],
            summary=summary[:MAX_SIGNAL_SUMMARY_CHARS],
            published_at=item.published_at,
            canonical_url=item.canonical_url,
            horizon=HORIZON_BY_SIGNAL_TYPE[signal_type],
            score=score,
            entities=extract_entities(combined, self.entity_dictionaries),
            keywords=extract_keywords(combined),
            citations=[
                {
                    "url": item.canonical_url,
                    "title": title,
                    "source": item.source_name or item.source_id,
                    "publishedAt": published_iso,
                },
            ],
        )

    def derive_yield_spread(self, *, day: str, econ_signals: Sequence[Signal]) -> SignalWrite | None:
        """Build the 10y-2y Treasury spread signal when both series are present.

        ``econ_signals`` is expected newest first; the first title carrying a
        series id wins.
        """

        ten_year = _series_value(econ_signals, "DGS10")
        two_year = _series_value(econ_signals, "DGS2")
        if ten_year is None or two_year is None:
            return None
        spread = ten_year - two_year
        logger.debug("Derived yield spread for %s: %.2f", day, spread)
        return SignalWrite(
            raw_id=None,
            day=day,
            section="Business",
            signal_type=SignalType.ECON,
            title=SPREAD_SIGNAL_TITLE,
            summary=f"10y-2y spread: {spread:.2f} (derived)",
            published_at=None,
            canonical_url="",
            horizon=Horizon.NEAR,
            score=SPREAD_SIGNAL_SCORE,
            citations=[dict(citation) for citation in SPREAD_CITATIONS],
        )


def _series_value(signals: Sequence[Signal], series_id: str) -> float | None:
    match = next((signal for signal in signals if series_id in signal.title), None)
    if match is None:
        return None
    value = _SERIES_VALUE_RE.search(match.summary or "")
    if value is None:
        return None
    return float(value.group(1))
