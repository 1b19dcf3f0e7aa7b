"""Source and standing-topic registries loaded from JSON configuration files."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from future_times.errors import RegistryError
from future_times.ingestion.models import SourceConfig, SourceKind, StandingTopic
from future_times.signals.extractor import normalize_section

logger = logging.getLogger(__name__)

DEFAULT_FETCH_INTERVAL_MINUTES = 60
DEFAULT_STANDING_SECTION = "AI"


def load_sources(path: Path) -> list[SourceConfig]:
    """Read ``{"sources": [...]}``; a missing or unreadable file is fatal."""

    payload = _read_json(path)
    entries = payload.get("sources") if isinstance(payload, dict) else None
    if not isinstance(entries, list):
        raise RegistryError(
            message=f"Sources file {path} must contain a 'sources' list.",
            code="invalid_registry",
            path=str(path),
        )

    sources: list[SourceConfig] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise RegistryError(
                message=f"Source #{index} in {path} must be an object.",
                code="invalid_registry",
                path=str(path),
            )
        source_id = str(entry.get("source_id") or entry.get("id") or "").strip()
        url = str(entry.get("url") or "").strip()
        if not source_id or not url:
            raise RegistryError(
                message=f"Source #{index} in {path} needs both 'source_id' and 'url'.",
                code="invalid_registry",
                path=str(path),
            )
        if source_id in seen:
            raise RegistryError(
                message=f"Duplicate source id {source_id!r} in {path}.",
                code="duplicate_source",
                path=str(path),
            )
        seen.add(source_id)
        section = entry.get("section")
        sources.append(
            SourceConfig(
                source_id=source_id,
                name=str(entry.get("name") or source_id),
                kind=str(entry.get("type") or entry.get("kind") or SourceKind.RSS.value).lower(),
                url=url,
                section=normalize_section(str(section)) if section else None,
                enabled=entry.get("enabled") is not False,
                fetch_interval_minutes=_positive_int(
                    entry.get("fetch_interval_minutes"),
                    default=DEFAULT_FETCH_INTERVAL_MINUTES,
                ),
                meta=dict(entry),
            ),
        )
    return sources


def load_standing_topics(path: Path) -> list[StandingTopic]:
    """Read ``{"topics": [...]}``; a missing file means there are no standing topics."""

    if not path.exists():
        logger.info("Standing topics file %s not found; standing section stays empty.", path)
        return []
    payload = _read_json(path)
    entries = payload.get("topics") if isinstance(payload, dict) else None
    if not isinstance(entries, list):
        raise RegistryError(
            message=f"Standing topics file {path} must contain a 'topics' list.",
            code="invalid_registry",
            path=str(path),
        )

    topics: list[StandingTopic] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        topic_key = str(entry.get("topic_key") or "").strip()
        if not topic_key:
            logger.warning("Skipping standing topic without topic_key in %s.", path)
            continue
        topics.append(
            StandingTopic(
                topic_key=topic_key,
                section=normalize_section(str(entry.get("section") or ""))
                or DEFAULT_STANDING_SECTION,
                label=str(entry.get("label") or topic_key),
                category=_optional_str(entry.get("category")),
                subcategory=_optional_str(entry.get("subcategory")),
                description=_optional_str(entry.get("description")),
                extrapolation_axes=[
                    {str(key): str(value) for key, value in axis.items()}
                    for axis in _as_list(entry.get("extrapolation_axes"))
                    if isinstance(axis, dict)
                ],
                keywords=[str(keyword) for keyword in _as_list(entry.get("keywords")) if keyword],
                milestones=[
                    dict(milestone)
                    for milestone in _as_list(entry.get("milestones"))
                    if isinstance(milestone, dict)
                ],
                enabled=entry.get("enabled") is not False,
            ),
        )
    return topics


def _read_json(path: Path) -> object:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as error:
        raise RegistryError(
            message=f"Cannot read registry file {path}: {error}",
            code="registry_unreadable",
            path=str(path),
        ) from error
    try:
        return json.loads(raw)
    except json.JSONDecodeError as error:
        raise RegistryError(
            message=f"Registry file {path} is not valid JSON: {error}",
            code="invalid_registry",
            path=str(path),
        ) from error


def _positive_int(value: object, *, default: int) -> int:
    try:
        parsed = int(str(value))
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _optional_str(value: object) -> str | None:
    text = str(value).strip() if value is not None else ""
    return text or None


def _as_list(value: object) -> list:
    return value if isinstance(value, list) else []
