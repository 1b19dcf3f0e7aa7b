from __future__ import annotations

from datetime import UTC, datetime

import allure
import httpx
import pytest

from future_times.errors import FeedParseError, SourceFetchError
from future_times.ingestion.models import Source
from future_times.ingestion.sources.http import SourceHttpClient
from future_times.ingestion.sources.rss import RssFeedFetcher, parse_feed

pytestmark = [
    allure.epic("Source Intake"),
    allure.feature("Feed Intake & Cleaning"),
]

RSS_XML = """<rss version="2.0">
  <channel>
    <title>World Wire</title>
    <item>
      <title>Dock workers strike at three ports</title>
      <link>https://wire.example.com/dock-strike?utm_source=rss</link>
      <description><![CDATA[<p>Ports &amp; rail <b>halt</b> shipments.</p>]]></description>
      <pubDate>Sat, 17 Oct 2026 22:15:00 GMT</pubDate>
    </item>
    <item>
      <title></title>
      <link>https://wire.example.com/untitled</link>
    </item>
    <item>
      <title>Chip export rules tighten</title>
      <guid>https://wire.example.com/chips</guid>
    </item>
  </channel>
</rss>
"""

ATOM_XML = """<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Research Feed</title>
  <entry>
    <title>Agentic systems benchmark</title>
    <link rel="related" href="https://research.example.com/related"/>
    <link rel="alternate" href="https://research.example.com/agents"/>
    <summary>New evaluation of autonomous agents.</summary>
    <published>2026-10-18T04:30:00Z</published>
  </entry>
  <entry>
    <title>Compute scaling notes</title>
    <link rel="enclosure" href="https://research.example.com/compute.pdf"/>
    <updated>2026-10-17T12:00:00+02:00</updated>
  </entry>
</feed>
"""


def _source(url: str = "https://wire.example.com/world.xml") -> Source:
    return Source(
        source_id="wire-world",
        name="World Wire",
        kind="rss",
        url=url,
        section="World",
        enabled=True,
        fetch_interval_minutes=60,
    )


def test_parse_rss_items() -> None:
    records = parse_feed(RSS_XML, source_id="wire-world")

    assert [record.title for record in records] == [
        "Dock workers strike at three ports",
        "Chip export rules tighten",
    ]
    first, second = records
    assert first.summary == "Ports & rail halt shipments."
    assert first.link == "https://wire.example.com/dock-strike?utm_source=rss"
    assert first.published_at == datetime(2026, 10, 17, 22, 15, tzinfo=UTC)
    assert second.link == "https://wire.example.com/chips"
    assert second.summary == ""
    assert second.published_at is None


def test_parse_atom_entries_prefers_alternate_link() -> None:
    records = parse_feed(ATOM_XML, source_id="research")

    assert [record.title for record in records] == [
        "Agentic systems benchmark",
        "Compute scaling notes",
    ]
    assert records[0].link == "https://research.example.com/agents"
    assert records[0].published_at == datetime(2026, 10, 18, 4, 30, tzinfo=UTC)
    assert records[1].link == "https://research.example.com/compute.pdf"
    assert records[1].published_at == datetime(2026, 10, 17, 10, 0, tzinfo=UTC)


def test_empty_feed_body_yields_no_records() -> None:
    assert parse_feed("   ") == []


def test_invalid_xml_raises_feed_parse_error() -> None:
    with pytest.raises(FeedParseError) as error:
        parse_feed("<rss><channel><item>", source_id="wire-world")

    assert error.value.code == "invalid_feed_xml"
    assert error.value.source_id == "wire-world"


def test_unknown_document_raises_feed_parse_error() -> None:
    with pytest.raises(FeedParseError, match="Unsupported feed format"):
        parse_feed("<html><body>Not a feed</body></html>")


def test_fetcher_requests_feed_and_caps_items() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=RSS_XML, headers={"content-type": "application/rss+xml"})

    with SourceHttpClient(transport=httpx.MockTransport(handler)) as http:
        records = RssFeedFetcher(http, max_items=1).fetch(_source(), "2026-10-18")

    assert [record.title for record in records] == ["Dock workers strike at three ports"]
    assert str(seen[0].url) == "https://wire.example.com/world.xml"
    assert seen[0].headers["User-Agent"] == "FutureTimesBot/1.0"
    assert "application/rss+xml" in seen[0].headers["Accept"]


def test_fetcher_reports_http_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with SourceHttpClient(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(SourceFetchError) as error:
            RssFeedFetcher(http).fetch(_source(), "2026-10-18")

    assert error.value.status == 500
    assert error.value.code == "http_status"
    assert str(error.value) == "HTTP 500: boom"


def test_fetcher_reports_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with SourceHttpClient(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(SourceFetchError) as error:
            RssFeedFetcher(http).fetch(_source(), "2026-10-18")

    assert error.value.code == "timeout"
    assert error.value.status is None
