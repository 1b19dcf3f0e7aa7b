"""Runtime configuration for the signal-to-edition pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_SECTION_ORDER: tuple[str, ...] = (
    "U.S.",
    "World",
    "Business",
    "Technology",
    "AI",
    "Arts",
    "Lifestyle",
    "Opinion",
)

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class FetchSettings:
    """Source fetch stage settings."""

    concurrency: int = 6
    timeout_seconds: float = 6.5
    max_feed_items: int = 40
    max_market_items: int = 220
    user_agent: str = "FutureTimesBot/1.0"


@dataclass(slots=True)
class ClusterSettings:
    """Greedy topic clustering thresholds."""

    similarity_threshold: float = 0.36
    entity_similarity_threshold: float = 0.18
    max_candidates: int = 60
    max_topics: int = 24


@dataclass(slots=True)
class EditionSettings:
    """Edition assembly settings."""

    offsets: tuple[int, ...] = (5,)
    stories_per_section: int = 5
    theme_similarity_threshold: float = 0.55
    market_similarity_threshold: float = 0.22
    standing_section: str = "AI"
    standing_topic_limit: int = 6
    sections: tuple[str, ...] = DEFAULT_SECTION_ORDER
    default_section: str = "World"


@dataclass(slots=True)
class RenderSettings:
    """Render cache settings."""

    format_version: str = "19"


@dataclass(slots=True)
class WorkerSettings:
    """Scheduled refresh settings; a positive interval overrides the daily time."""

    refresh_interval_seconds: float = 0.0
    daily_time: str = "05:30"


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".future_times.db")
    sources_file: Path = Path("config/sources.json")
    standing_topics_file: Path = Path("config/standing-topics.json")
    entity_dicts_file: Path | None = None
    log_level: str = "INFO"
    fetch: FetchSettings = field(default_factory=FetchSettings)
    cluster: ClusterSettings = field(default_factory=ClusterSettings)
    edition: EditionSettings = field(default_factory=EditionSettings)
    render: RenderSettings = field(default_factory=RenderSettings)
    worker: WorkerSettings = field(default_factory=WorkerSettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        entity_dicts = os.getenv("FUTURE_TIMES_ENTITY_DICTS_FILE", "").strip()
        return cls(
            db_path=db_path or Path(os.getenv("FUTURE_TIMES_DB_PATH", ".future_times.db")),
            sources_file=Path(os.getenv("FUTURE_TIMES_SOURCES_FILE", "config/sources.json")),
            standing_topics_file=Path(
                os.getenv("FUTURE_TIMES_STANDING_TOPICS_FILE", "config/standing-topics.json"),
            ),
            entity_dicts_file=Path(entity_dicts) if entity_dicts else None,
            log_level=resolve_log_level(os.getenv("FUTURE_TIMES_LOG_LEVEL")),
            fetch=FetchSettings(
                concurrency=_clamp_int(
                    int(os.getenv("FUTURE_TIMES_FETCH_CONCURRENCY", "6")),
                    low=2,
                    high=10,
                ),
                timeout_seconds=_clamp_float(
                    float(os.getenv("FUTURE_TIMES_FETCH_TIMEOUT_SECONDS", "6.5")),
                    low=2.5,
                    high=12.0,
                ),
                max_feed_items=int(os.getenv("FUTURE_TIMES_FETCH_MAX_FEED_ITEMS", "40")),
                max_market_items=int(os.getenv("FUTURE_TIMES_FETCH_MAX_MARKET_ITEMS", "220")),
                user_agent=os.getenv("FUTURE_TIMES_FETCH_USER_AGENT", "FutureTimesBot/1.0"),
            ),
            cluster=ClusterSettings(
                similarity_threshold=float(
                    os.getenv("FUTURE_TIMES_CLUSTER_SIMILARITY_THRESHOLD", "0.36"),
                ),
                entity_similarity_threshold=float(
                    os.getenv("FUTURE_TIMES_CLUSTER_ENTITY_SIMILARITY_THRESHOLD", "0.18"),
                ),
                max_candidates=int(os.getenv("FUTURE_TIMES_CLUSTER_MAX_CANDIDATES", "60")),
                max_topics=int(os.getenv("FUTURE_TIMES_CLUSTER_MAX_TOPICS", "24")),
            ),
            edition=EditionSettings(
                offsets=_collect_offsets(os.getenv("FUTURE_TIMES_EDITION_OFFSETS", "5")),
                stories_per_section=int(
                    os.getenv("FUTURE_TIMES_EDITION_STORIES_PER_SECTION", "5"),
                ),
                theme_similarity_threshold=float(
                    os.getenv("FUTURE_TIMES_EDITION_THEME_SIMILARITY_THRESHOLD", "0.55"),
                ),
                market_similarity_threshold=float(
                    os.getenv("FUTURE_TIMES_EDITION_MARKET_SIMILARITY_THRESHOLD", "0.22"),
                ),
                standing_section=os.getenv("FUTURE_TIMES_EDITION_STANDING_SECTION", "AI"),
                standing_topic_limit=int(
                    os.getenv("FUTURE_TIMES_EDITION_STANDING_TOPIC_LIMIT", "6"),
                ),
            ),
            render=RenderSettings(
                format_version=os.getenv("FUTURE_TIMES_RENDER_FORMAT_VERSION", "19"),
            ),
            worker=WorkerSettings(
                refresh_interval_seconds=float(
                    os.getenv("FUTURE_TIMES_WORKER_REFRESH_SECONDS", "0"),
                ),
                daily_time=os.getenv("FUTURE_TIMES_WORKER_DAILY_TIME", "05:30"),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if any tunable is out of range."""

        if self.fetch.concurrency <= 0:
            raise ValueError("FUTURE_TIMES_FETCH_CONCURRENCY must be > 0.")
        if self.fetch.timeout_seconds <= 0:
            raise ValueError("FUTURE_TIMES_FETCH_TIMEOUT_SECONDS must be > 0.")
        for name, value in (
            ("FUTURE_TIMES_CLUSTER_SIMILARITY_THRESHOLD", self.cluster.similarity_threshold),
            (
                "FUTURE_TIMES_CLUSTER_ENTITY_SIMILARITY_THRESHOLD",
                self.cluster.entity_similarity_threshold,
            ),
            (
                "FUTURE_TIMES_EDITION_THEME_SIMILARITY_THRESHOLD",
                self.edition.theme_similarity_threshold,
            ),
            (
                "FUTURE_TIMES_EDITION_MARKET_SIMILARITY_THRESHOLD",
                self.edition.market_similarity_threshold,
            ),
        ):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value!r}.")
        if self.cluster.max_candidates <= 0 or self.cluster.max_topics <= 0:
            raise ValueError("Cluster candidate and topic caps must be positive.")
        if self.edition.stories_per_section <= 0:
            raise ValueError("FUTURE_TIMES_EDITION_STORIES_PER_SECTION must be > 0.")
        if not self.edition.offsets:
            raise ValueError("At least one edition offset is required.")
        for offset in self.edition.offsets:
            if not 0 <= offset <= 10:
                raise ValueError(f"Edition offset must be within 0..10, got {offset!r}.")
        if self.worker.refresh_interval_seconds < 0:
            raise ValueError("FUTURE_TIMES_WORKER_REFRESH_SECONDS must be >= 0.")
        if self.edition.default_section not in self.edition.sections:
            raise ValueError(
                f"Default section {self.edition.default_section!r} is not a known section.",
            )


def _collect_offsets(raw: str) -> tuple[int, ...]:
    offsets: list[int] = []
    for part in raw.split(","):
        token = part.strip()
        if not token:
            continue
        try:
            value = int(token)
        except ValueError as error:
            raise ValueError(f"Invalid FUTURE_TIMES_EDITION_OFFSETS entry: {token!r}") from error
        if value not in offsets:
            offsets.append(value)
    return tuple(offsets)


def _clamp_int(value: int, *, low: int, high: int) -> int:
    return max(low, min(high, value))


def _clamp_float(value: float, *, low: float, high: float) -> float:
    return max(low, min(high, value))


def resolve_log_level(raw: str | None) -> str:
    """Upper-cased level name; unknown or empty values fall back to INFO."""

    name = (raw or "").strip().upper()
    return name if name in LOG_LEVELS else "INFO"
