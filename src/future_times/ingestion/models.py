"""Domain models for ingestion, signals, topics and editions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SourceKind(str, Enum):
    """Declared payload kind of a configured source."""

    RSS = "rss"
    API_JSON = "api_json"
    CSV = "csv"


class SignalType(str, Enum):
    """Classification of a signal by what kind of evidence it carries."""

    NEWS = "news"
    MARKET = "market"
    ECON = "econ"
    RESEARCH = "research"


class Horizon(str, Enum):
    """Coarse forecasting distance attached to signals and topics."""

    NEAR = "near"
    MID = "mid"
    LONG = "long"


class RunStatus(str, Enum):
    """Lifecycle states for day refresh runs."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    PARTIAL = "partial"
    FAILED = "failed"


class EditionState(str, Enum):
    """Observable lifecycle of one (day, offset) edition."""

    ABSENT = "absent"
    BUILDING = "building"
    BUILT = "built"


@dataclass(slots=True)
class SourceConfig:
    """Source descriptor as declared in the registry file."""

    source_id: str
    name: str
    kind: str
    url: str
    section: str | None = None
    enabled: bool = True
    fetch_interval_minutes: int = 60
    meta: dict[str, object] = field(default_factory=dict)


@dataclass(slots=True)
class Source:
    """Registered source with its last-fetch health."""

    source_id: str
    name: str
    kind: str
    url: str
    section: str | None
    enabled: bool
    fetch_interval_minutes: int
    last_fetched_at: datetime | None = None
    last_error: str | None = None
    last_status: int | None = None
    last_item_count: int | None = None


@dataclass(slots=True)
class FeedRecord:
    """One item produced by a fetch collaborator."""

    title: str
    summary: str
    link: str
    published_at: datetime | None = None
    payload: dict[str, object] | None = None


@dataclass(slots=True)
class RawItemWrite:
    """Normalized raw item ready for insert-or-ignore persistence."""

    source_id: str
    day: str
    fetched_at: datetime
    published_at: datetime | None
    canonical_url: str
    title: str
    summary: str
    fingerprint: str
    section_hint: str | None = None
    payload: dict[str, object] | None = None


@dataclass(slots=True)
class PendingRawItem:
    """Raw item joined with its source, awaiting signal extraction."""

    raw_id: int
    source_id: str
    source_name: str
    source_kind: str
    source_url: str
    published_at: datetime | None
    canonical_url: str
    title: str
    summary: str
    section_hint: str | None


@dataclass(slots=True)
class SignalWrite:
    """Signal derived from a raw item (or synthesized), before persistence."""

    raw_id: int | None
    day: str
    section: str
    signal_type: SignalType
    title: str
    summary: str
    published_at: datetime | None
    canonical_url: str
    horizon: Horizon
    score: float
    entities: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    citations: list[dict[str, object]] = field(default_factory=list)


@dataclass(slots=True)
class Signal:
    """Persisted signal."""

    signal_id: int
    raw_id: int | None
    day: str
    section: str
    signal_type: str
    title: str
    summary: str
    published_at: datetime | None
    canonical_url: str
    horizon: str
    score: float
    entities: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    citations: list[dict[str, object]] = field(default_factory=list)

    @property
    def source_label(self) -> str:
        if not self.citations:
            return ""
        return str(self.citations[0].get("source") or "")


@dataclass(slots=True)
class TopicDraft:
    """Topic produced by the clusterer for one (day, section)."""

    day: str
    section: str
    label: str
    brief: str
    horizon: str
    slug: str
    score: float
    evidence_signal_ids: list[int] = field(default_factory=list)
    evidence_links: list[dict[str, str]] = field(default_factory=list)
    member_signal_ids: list[int] = field(default_factory=list)


@dataclass(slots=True)
class StandingTopic:
    """Hand-curated topic that persists across days."""

    topic_key: str
    section: str
    label: str
    category: str | None = None
    subcategory: str | None = None
    description: str | None = None
    extrapolation_axes: list[dict[str, str]] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    milestones: list[dict[str, object]] = field(default_factory=list)
    enabled: bool = True


@dataclass(slots=True)
class EvidenceLink:
    """Relevance link between a standing topic and a signal for one day."""

    standing_topic_key: str
    signal_id: int
    day: str
    relevance: float
    matched_keywords: list[str] = field(default_factory=list)
    category_hint: str | None = None


@dataclass(slots=True)
class StoryDraft:
    """Story stub selected by the edition assembler."""

    story_id: str
    section: str
    rank: int
    angle: str
    topic_ref: str
    topic_label: str
    headline_seed: str
    dek_seed: str
    meta: str
    prompt: str
    evidence_pack: dict[str, object] = field(default_factory=dict)


@dataclass(slots=True)
class EditionDraft:
    """Fully assembled edition for one (day, offset), before persistence."""

    day: str
    offset: int
    version: str
    payload: dict[str, object]
    stories: list[StoryDraft] = field(default_factory=list)


@dataclass(slots=True)
class StoryCandidate:
    """Pre-enrichment story stub exposed to the enrichment collaborator."""

    story_id: str
    section: str
    rank: int
    angle: str
    title: str
    dek: str
    topic_label: str
    topic: dict[str, object] | None
    evidence_pack: dict[str, object]


@dataclass(slots=True)
class RefreshCounters:
    """Counters tracked for refresh run statistics."""

    sources_fetched: int = 0
    sources_failed: int = 0
    sources_skipped: int = 0
    raw_items_inserted: int = 0
    signals_created: int = 0
    evidence_links: int = 0
    topics_built: int = 0
    stories_built: int = 0


@dataclass(slots=True)
class RefreshRunView:
    """Compact run view for CLI reporting."""

    run_id: str
    day: str
    status: str
    started_at: datetime
    finished_at: datetime | None
    counters: RefreshCounters
    error_summary: str | None = None


@dataclass(slots=True)
class StoryEnrichment:
    """Curation record attached to one story by the enrichment collaborator."""

    story_id: str
    day: str
    offset: int
    generated_at: datetime
    plan: dict[str, object]
    section: str | None = None
    rank: int | None = None
    model: str | None = None
    key_story: bool = False

    @property
    def hero(self) -> bool:
        return bool(self.plan.get("hero"))


@dataclass(slots=True)
class RawItem:
    """Persisted raw item as listed in day snapshots."""

    raw_id: int
    source_id: str
    day: str
    fetched_at: datetime
    published_at: datetime | None
    canonical_url: str
    title: str
    summary: str
    section_hint: str | None = None


@dataclass(slots=True)
class Topic:
    """Persisted topic row; ids change whenever the day is rebuilt."""

    topic_id: int
    day: str
    section: str
    label: str
    brief: str
    horizon: str
    slug: str
    score: float
    evidence_signal_ids: list[int] = field(default_factory=list)
    evidence_links: list[dict[str, str]] = field(default_factory=list)


@dataclass(slots=True)
class EditionSummary:
    """Edition header without its payload."""

    day: str
    offset: int
    version: str
    generated_at: datetime
    story_count: int = 0
