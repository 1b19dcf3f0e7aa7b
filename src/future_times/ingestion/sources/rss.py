"""Generic RSS/Atom feed fetcher."""

from __future__ import annotations

import logging

from defusedxml import ElementTree

from future_times.errors import FeedParseError
from future_times.ingestion.cleaning import html_to_text, parse_datetime
from future_times.ingestion.models import FeedRecord, Source
from future_times.ingestion.sources.http import SourceHttpClient

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"
DEFAULT_MAX_ITEMS = 40
logger = logging.getLogger(__name__)


class RssFeedFetcher:
    """Fetches one RSS or Atom feed and keeps its first ``max_items`` titled entries."""

    def __init__(self, http: SourceHttpClient, *, max_items: int = DEFAULT_MAX_ITEMS) -> None:
        self.http = http
        self.max_items = max_items

    def fetch(self, source: Source, day: str) -> list[FeedRecord]:  # noqa: ARG002
        response = self.http.get(source.url, accept=FEED_ACCEPT, source_id=source.source_id)
        records = parse_feed(response.text, source_id=source.source_id)
        logger.debug("Feed %s returned %d entries.", source.source_id, len(records))
        return records[: self.max_items]


def parse_feed(raw_xml: str, *, source_id: str = "") -> list[FeedRecord]:
    """Parse RSS 2.0 or Atom XML; entries without a title are dropped."""

    if not raw_xml.strip():
        return []
    try:
        root = ElementTree.fromstring(raw_xml)
    except ElementTree.ParseError as error:
        raise FeedParseError(
            message=f"Invalid RSS/Atom XML from {source_id or 'feed'}",
            code="invalid_feed_xml",
            source_id=source_id,
        ) from error

    root_name = _local_name(root.tag)
    if root_name == "feed":
        return _parse_atom(root)
    if root_name == "rss":
        return _parse_rss(root)

    # Some feeds (RDF/RSS 1.0) keep items outside a channel element.
    if any(_local_name(element.tag) == "item" for element in root.iter()):
        return _parse_rss(root)
    if any(_local_name(element.tag) == "entry" for element in root.iter()):
        return _parse_atom(root)
    raise FeedParseError(
        message=f"Unsupported feed format from {source_id or 'feed'}",
        code="unsupported_feed_format",
        source_id=source_id,
    )


def _parse_rss(root: ElementTree.Element) -> list[FeedRecord]:
    results: list[FeedRecord] = []
    for item in root.iter():
        if _local_name(item.tag) != "item":
            continue
        title = html_to_text(_child_text(item, "title"))
        if not title:
            continue
        summary = _child_text(item, "description") or _child_text(item, "encoded")
        link = _child_text(item, "link") or _child_text(item, "guid") or ""
        raw_published = (
            _child_text(item, "pubDate")
            or _child_text(item, "date")
            or _child_text(item, "updated")
        )
        results.append(
            FeedRecord(
                title=title,
                summary=html_to_text(summary),
                link=link.strip(),
                published_at=parse_datetime(raw_published),
            ),
        )
    return results


def _parse_atom(root: ElementTree.Element) -> list[FeedRecord]:
    results: list[FeedRecord] = []
    for entry in root.iter():
        if _local_name(entry.tag) != "entry":
            continue
        title = html_to_text(_child_text(entry, "title"))
        if not title:
            continue
        summary = _child_text(entry, "summary") or _child_text(entry, "content")
        raw_published = _child_text(entry, "published") or _child_text(entry, "updated")
        results.append(
            FeedRecord(
                title=title,
                summary=html_to_text(summary),
                link=_atom_link(entry) or "",
                published_at=parse_datetime(raw_published),
            ),
        )
    return results


def _atom_link(entry: ElementTree.Element) -> str | None:
    fallback: str | None = None
    for child in entry:
        if _local_name(child.tag) != "link":
            continue
        href = child.attrib.get("href", "").strip()
        if not href:
            continue
        rel = child.attrib.get("rel", "").strip().lower()
        if not rel or rel == "alternate":
            return href
        fallback = fallback or href
    return fallback


def _child_text(element: ElementTree.Element, name: str) -> str | None:
    target = name.lower()
    for child in element:
        if _local_name(child.tag) != target:
            continue
        full_text = "".join(child.itertext()).strip()
        if full_text:
            return full_text
    return None


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    if "}" in tag:
        return tag.rsplit("}", 1)[1].lower()
    return tag.lower()
