"""Common fetch collaborator contracts."""

from __future__ import annotations

from typing import Protocol

from future_times.ingestion.models import FeedRecord, Source


class FeedFetcher(Protocol):
    """Produces the current items of one source.

    Implementations raise :class:`~future_times.errors.SourceFetchError` or
    :class:`~future_times.errors.FeedParseError`; callers record the failure on
    the source and move on.
    """

    def fetch(self, source: Source, day: str) -> list[FeedRecord]:
        """Fetch and parse the items currently published by ``source``."""
        raise NotImplementedError
