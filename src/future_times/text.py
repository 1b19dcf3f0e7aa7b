"""Token, slug and deterministic-hash helpers shared by every pipeline stage."""

from __future__ import annotations

import hashlib
import re
from collections.abc import Iterable, Sequence
from typing import TypeVar

T = TypeVar("T")

FNV32_OFFSET_BASIS = 2_166_136_261
FNV32_PRIME = 16_777_619
_UINT32_MASK = 0xFFFF_FFFF

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_SLUG_RE = re.compile(r"[^a-z0-9]+")

STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "from", "that", "this", "into", "over", "after",
        "their", "they", "them", "will", "what", "when", "where", "who", "why", "how",
        "are", "was", "were", "has", "have", "had", "new", "now", "more", "than", "its",
        "as", "at", "by", "in", "on", "to", "of", "a", "an", "is", "it", "be", "or",
        "up", "down", "out", "about", "not", "no",
    },
)  # fmt: skip


def tokenize(text: str | None) -> list[str]:
    """Lowercase alphanumeric words of length >= 3 without stopwords, in order."""

    lowered = _NON_ALNUM_RE.sub(" ", (text or "").lower())
    return [word for word in lowered.split() if len(word) >= 3 and word not in STOPWORDS]


def jaccard(left: Iterable[str], right: Iterable[str]) -> float:
    """Jaccard similarity of two token collections (0.0 when either is empty)."""

    left_set = set(left)
    right_set = set(right)
    if not left_set or not right_set:
        return 0.0
    intersection = len(left_set & right_set)
    union = len(left_set) + len(right_set) - intersection
    return intersection / union if union else 0.0


def stable_hash(value: str) -> int:
    """32-bit FNV-1a hash over the UTF-8 bytes of ``value``.

    Used wherever the pipeline needs reproducible "randomness": shuffling a
    selection pool, choosing a headline template or disambiguating slugs. The
    result depends only on the input string, never on process state, so
    rebuilding a day always yields the same choices.
    """

    digest = FNV32_OFFSET_BASIS
    for byte in value.encode("utf-8"):
        digest ^= byte
        digest = (digest * FNV32_PRIME) & _UINT32_MASK
    return digest


def pick_deterministic(items: Sequence[T], seed: str) -> T | None:
    """Pick one item by ``stable_hash(seed) % len(items)``."""

    if not items:
        return None
    return items[stable_hash(seed) % len(items)]


def slugify(value: str | None, max_len: int = 60) -> str:
    raw = (value or "").lower().replace("'", "").replace('"', "").replace("&", " and ")
    slug = _SLUG_RE.sub("-", raw).strip("-")
    if not slug:
        return "topic"
    if len(slug) > max_len:
        slug = slug[:max_len].rstrip("-")
    return slug


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values, matching editorial counts."""

    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)
