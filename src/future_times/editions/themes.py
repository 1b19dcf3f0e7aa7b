"""Coarse theme phrases used to keep a section's picks thematically distinct."""

from __future__ import annotations

import re

from future_times.text import tokenize

FALLBACK_THEME = "A Major Shift"

_PROPER_NOUN_RE = re.compile(
    r"\b[A-Z][a-z][A-Za-z'-]+(?:['’][A-Za-z]+)?"
    r"(?:\s+[A-Z][a-z][A-Za-z'-]+(?:['’][A-Za-z]+)?){0,3}\b",
)
_BRIEF_BULLET_RE = re.compile(r"^\s*-\s+")
_WHITESPACE_RE = re.compile(r"\s+")

# Checked in order; the first category with any token hit wins.
THEME_RULES: tuple[tuple[str, frozenset[str]], ...] = (
    (
        "Protests and Strikes",
        frozenset(
            {
                "protest", "protests", "strike", "strikes", "walkout", "walkouts",
                "demonstration", "demonstrations",
            },
        ),
    ),
    (
        "Geopolitical Conflict",
        frozenset({"war", "conflict", "invasion", "ceasefire", "sanctions", "missile", "nato"}),
    ),
    ("Immigration Enforcement", frozenset({"immigration", "border", "asylum", "deportation"})),
    ("Election Politics", frozenset({"election", "ballot", "campaign", "voter", "primary"})),
    ("Inflation and Prices", frozenset({"inflation", "cpi", "prices", "pricing"})),
    ("The Labor Market", frozenset({"unemployment", "jobs", "wages", "labor", "pay"})),
    ("Interest Rates", frozenset({"rates", "yield", "bond", "bonds", "fed", "fedfunds"})),
    (
        "Foundation Models",
        frozenset({"llm", "language", "gpt", "claude", "gemini", "transformer", "chatbot"}),
    ),
    ("AI Agents", frozenset({"agent", "agents", "agentic", "orchestration", "reasoning"})),
    (
        "Robotics and Autonomy",
        frozenset({"robot", "robots", "robotics", "humanoid", "autonomous", "self-driving"}),
    ),
    (
        "AI Safety and Governance",
        frozenset(
            {"alignment", "safety", "regulation", "governance", "superintelligence", "agi"},
        ),
    ),
    ("AI and Automation", frozenset({"ai", "model", "models", "automation", "machine", "neural"})),
    (
        "The Chip Supply Chain",
        frozenset({"chip", "chips", "semiconductor", "semiconductors", "gpu", "gpus"}),
    ),
    (
        "Climate Adaptation",
        frozenset(
            {
                "climate", "wildfire", "wildfires", "hurricane", "hurricanes", "heat", "flood",
                "floods",
            },
        ),
    ),
    ("Housing Affordability", frozenset({"housing", "rent", "mortgage", "mortgages"})),
    (
        "Public Health",
        frozenset({"health", "vaccine", "vaccines", "hospital", "hospitals", "medicine"}),
    ),
    (
        "Arts and Culture",
        frozenset(
            {
                "film", "music", "book", "books", "museum", "museums", "artist", "artists",
                "theater", "theatre",
            },
        ),
    ),
    ("Privacy and Surveillance", frozenset({"privacy", "surveillance", "tracking"})),
    (
        "Courts and Regulation",
        frozenset(
            {"court", "courts", "supreme", "lawsuit", "lawsuits", "appeals", "judge", "judges"},
        ),
    ),
    (
        "High-Profile Criminal Cases",
        frozenset(
            {
                "assault", "shooting", "shootings", "charges", "charged", "trial", "sentence",
                "sentenced", "strangulation", "murder",
            },
        ),
    ),
)  # fmt: skip


def strip_proper_nouns(text: str | None) -> str:
    """Remove runs of Title Case words (names, places, brands); acronyms survive."""

    raw = text or ""
    if not raw:
        return ""
    return _WHITESPACE_RE.sub(" ", _PROPER_NOUN_RE.sub(" ", raw)).strip()


def brief_text(brief: str | None) -> str:
    """Join the bullet lines of a topic brief into one sentence-like string."""

    lines = (_BRIEF_BULLET_RE.sub("", line).strip() for line in (brief or "").split("\n"))
    return " ".join(line for line in lines if line)


def derive_theme_phrase(label: str | None, brief: str | None) -> str:
    label_text = (label or "").strip()
    without_names = _WHITESPACE_RE.sub(
        " ",
        f"{strip_proper_nouns(label_text)} {strip_proper_nouns(brief_text(brief))}",
    ).strip()
    tokens = tokenize(without_names or label_text)
    token_set = set(tokens)
    for theme, words in THEME_RULES:
        if token_set & words:
            return theme
    if tokens:
        return " ".join(word.capitalize() for word in tokens[:3])
    return FALLBACK_THEME
