"""Error taxonomy for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class PipelineError(Exception):
    """Base pipeline error."""

    message: str
    code: str = "pipeline_error"

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class SourceFetchError(PipelineError):
    """Per-source fetch failure; recorded on the source and never fatal."""

    source_id: str = ""
    status: int | None = None


@dataclass(slots=True)
class FeedParseError(PipelineError):
    """Malformed feed, series or market payload; the source yields zero items."""

    source_id: str = ""


@dataclass(slots=True)
class RegistryError(PipelineError):
    """Source or standing-topic registry could not be read; aborts a refresh."""

    path: str = ""


@dataclass(slots=True)
class EditionNotFoundError(PipelineError):
    """Requested (day, offset) edition was never built."""

    day: str = ""
    offset: int = 0
