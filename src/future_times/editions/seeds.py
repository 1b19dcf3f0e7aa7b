"""Headline and dek seeds for story stubs before enrichment."""

from __future__ import annotations

import re

from future_times.editions.themes import brief_text
from future_times.ingestion.cleaning import html_to_text

FALLBACK_HEADLINE = "Signal shift"
MAX_HEADLINE_CHARS = 100
MAX_SUBJECT_CHARS = 45
MAX_DEK_CHARS = 280
MAX_DEK_LABEL_CHARS = 80

_WHITESPACE_RE = re.compile(r"\s+")
_ATTRIBUTION_RE = re.compile(r"\s*\|\s*[^|]{2,120}$")
_QUESTION_LEAD_RE = re.compile(r"[.?!]\s*(Why|How|What|When|Where|Who)\b", re.IGNORECASE)
_TRAILING_QUESTION_RE = re.compile(r"\?+$")
_TRAILING_STOP_RE = re.compile(r"[.:]\s*$")
_WILL_WIN_RE = re.compile(r"^Will\s+(.+?)\s+win\s+(.+)$", re.IGNORECASE)
_WILL_BE_RE = re.compile(r"^Will\s+(.+?)\s+be\s+(.+)$", re.IGNORECASE)
_WILL_LEAD_RE = re.compile(r"^Will\s+", re.IGNORECASE)
_REVIEW_RE = re.compile(r"\s+review\b.*$", re.IGNORECASE)
_TRAILING_PUNCT_RE = re.compile(r"[,\s;:.]+$")
_QUOTES_RE = re.compile(r"[\"'‘’“”]")
_PARENTHETICAL_RE = re.compile(r"\(.*?\)")
_LEAD_IN_RE = re.compile(r"^(The|A|An|Why|How|What|Who|When|Where)\s+", re.IGNORECASE)
_CLAUSE_BREAK_RE = re.compile(r"[,;:–—|]")
_IMPORTANT_WORD_RE = re.compile(r"^(?:AI|US|UK|EU|GDP|NASA|UN)\b", re.IGNORECASE)
_TRAILING_PARTIAL_WORD_RE = re.compile(r"\s+\S*$")


def clean_topic_for_headline(label: str | None) -> str:
    """Turn a raw topic label into a declarative headline fragment."""

    base = _WHITESPACE_RE.sub(" ", label or "").strip()
    base = _ATTRIBUTION_RE.sub("", base).strip()
    if "?" in base:
        base = base.split("?", 1)[0].strip()
    question_lead = _QUESTION_LEAD_RE.search(base)
    if question_lead is not None:
        base = base[: question_lead.start()].strip()
    base = _TRAILING_STOP_RE.sub("", _TRAILING_QUESTION_RE.sub("", base)).strip()

    will_win = _WILL_WIN_RE.match(base)
    will_be = _WILL_BE_RE.match(base)
    if will_win is not None:
        base = f"{will_win.group(1)} Wins {will_win.group(2)}"
    elif will_be is not None:
        base = f"{will_be.group(1)} Is {will_be.group(2)}"
    elif _WILL_LEAD_RE.match(base):
        base = _WILL_LEAD_RE.sub("", base).strip()

    base = _REVIEW_RE.sub("", base).strip()
    if len(base) > MAX_HEADLINE_CHARS:
        base = _TRAILING_PUNCT_RE.sub("", base[:MAX_HEADLINE_CHARS]).strip()
    return base or FALLBACK_HEADLINE


def headline_subject(cleaned: str) -> str:
    """Shorten a cleaned label to a compact subject phrase."""

    subject = _PARENTHETICAL_RE.sub("", _QUOTES_RE.sub("", cleaned)).strip()
    subject = _LEAD_IN_RE.sub("", subject).strip()
    clause_break = _CLAUSE_BREAK_RE.search(subject)
    if clause_break is not None and 5 < clause_break.start() < 50:
        subject = subject[: clause_break.start()].strip()
    if len(subject) > MAX_SUBJECT_CHARS:
        words = [word for word in subject.split() if len(word) > 2]
        important = [
            word for word in words if word[:1].isupper() or _IMPORTANT_WORD_RE.match(word)
        ]
        subject = " ".join(important[:4]) if len(important) >= 2 else " ".join(words[:5])
    if len(subject) < 4:
        return FALLBACK_HEADLINE
    return subject


def build_headline_seed(label: str | None, *, offset: int, target_year: int) -> str:
    base = clean_topic_for_headline(label)
    if len(base) < 4:
        base = FALLBACK_HEADLINE
    if offset == 0:
        return base
    return f"{headline_subject(base)} in {target_year}"


def build_dek_seed(
    label: str | None,
    brief: str | None,
    *,
    offset: int,
    target_year: int,
) -> str:
    cleaned_label = clean_topic_for_headline(label)
    if offset == 0:
        cleaned_brief = html_to_text(brief_text(brief))
        return cleaned_brief[:MAX_DEK_CHARS] or cleaned_label

    short_label = cleaned_label
    if len(short_label) > MAX_DEK_LABEL_CHARS:
        short_label = _TRAILING_PARTIAL_WORD_RE.sub("", short_label[:MAX_DEK_LABEL_CHARS]).strip()
    return f"A {target_year} report on {short_label.lower()}."
