import asyncio
import logging
import time
from datetime import datetime

import aiohttp
import feedparser
import pytest
import pytz

from insights.sources import async_feed_fetcher as feed_module
from insights.sources.async_feed_fetcher import (
    AsyncFeedFetcher, fetch_feeds, parse_feed_entries, parse_published_date
)

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Diabetes forum</title>
    <item>
      <title>Lemon for lows</title>
      <link>https://forum.example/t/1</link>
      <guid>post-1</guid>
      <description>&lt;p&gt;Lemon &lt;b&gt;works&lt;/b&gt; for me&lt;/p&gt;</description>
      <pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Undated post</title>
      <link>https://forum.example/t/2</link>
    </item>
    <item>
      <description>No title here</description>
      <pubDate>Tue, 16 Jan 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Same text</title>
      <description>Same text</description>
      <pubDate>Wed, 17 Jan 2024 10:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""

EMPTY_FEED = "<rss version=\"2.0\"><channel><title>Quiet</title></channel></rss>"


# Entry parsing

@pytest.mark.parametrize("entry,expected", [
    ({"published": "Mon, 15 Jan 2024 10:00:00 GMT"}, datetime(2024, 1, 15, 10, tzinfo=pytz.utc)),
    ({"published": "2024-01-15 10:00"}, datetime(2024, 1, 15, 10, tzinfo=pytz.utc)),
    ({"published": "someday", "updated": "2024-01-16T08:00:00+02:00"},
     datetime(2024, 1, 16, 6, tzinfo=pytz.utc)),
    ({"published_parsed": (2024, 1, 17, 9, 30, 0, 2, 17, 0)}, datetime(2024, 1, 17, 9, 30, tzinfo=pytz.utc)),
    ({"updated_parsed": time.struct_time((2024, 1, 18, 7, 0, 0, 3, 18, 0))},
     datetime(2024, 1, 18, 7, tzinfo=pytz.utc)),
    ({}, None),
])
def test_parse_published_date(entry, expected):
    assert parse_published_date(entry) == expected


def test_parse_feed_entries_skips_incomplete_entries():
    records = parse_feed_entries(feedparser.parse(RSS_FEED), "forum", platform="forum")

    assert [record.content for record in records] == ["Lemon for lows\n\nLemon works for me", "Same text"]
    first = records[0]
    assert first.platform == "forum"
    assert first.record_id.startswith("forum_")
    assert first.timestamp == datetime(2024, 1, 15, 10, tzinfo=pytz.utc)
    assert first.tags["feed"] == "forum"
    assert first.tags["url"] == "https://forum.example/t/1"
    assert "lemon" in first.keywords


def test_parse_feed_entries_ids_are_stable():
    feed = feedparser.parse(RSS_FEED)

    first = [record.record_id for record in parse_feed_entries(feed, "forum")]
    second = [record.record_id for record in parse_feed_entries(feed, "forum")]

    assert first == second
    assert len(set(first)) == len(first)


def test_empty_feed_gives_no_records(caplog):
    caplog.set_level(logging.WARNING, logger="insights.sources.async_feed_fetcher")

    assert parse_feed_entries(feedparser.parse(EMPTY_FEED), "quiet") == []
    assert "No entries found in feed for quiet" in caplog.text


# Fetching

class FakeFeedResponse:
    def __init__(self, session, body):
        self.session = session
        self.body = body

    async def __aenter__(self):
        self.session.active += 1
        self.session.peak = max(self.session.peak, self.session.active)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.session.active -= 1

    def raise_for_status(self):
        pass

    async def read(self):
        await asyncio.sleep(0.01)
        if isinstance(self.body, Exception):
            raise self.body
        return self.body.encode("utf-8")


class FakeClientSession:
    """Stands in for aiohttp.ClientSession; serves bodies or errors by URL."""

    bodies = {}
    instances = []

    def __init__(self, timeout=None, headers=None):
        self.timeout = timeout
        self.headers = headers or {}
        self.requested = []
        self.active = 0
        self.peak = 0
        self.closed = False
        FakeClientSession.instances.append(self)

    def get(self, url):
        self.requested.append(url)
        body = self.bodies[url]
        if isinstance(body, aiohttp.ClientError):
            raise body
        return FakeFeedResponse(self, body)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_aiohttp(monkeypatch):
    FakeClientSession.bodies = {}
    FakeClientSession.instances = []
    monkeypatch.setattr(feed_module.aiohttp, "ClientSession", FakeClientSession)
    return FakeClientSession


def test_fetch_all_feeds_limits_concurrency_and_captures_failures(fake_aiohttp):
    fake_aiohttp.bodies = {
        "https://feeds.example/a": RSS_FEED,
        "https://feeds.example/b": RSS_FEED,
        "https://feeds.example/c": RSS_FEED,
        "https://feeds.example/down": aiohttp.ClientConnectionError("refused"),
        "https://feeds.example/slow": asyncio.TimeoutError(),
        "https://feeds.example/broken": RuntimeError("decoder crashed"),
    }
    urls = {name: f"https://feeds.example/{name}" for name in ["a", "b", "c", "down", "slow", "broken"]}

    async def run():
        async with AsyncFeedFetcher(timeout=5, max_concurrent=2, user_agent="TestAgent/1.0") as fetcher:
            return await fetcher.fetch_all_feeds(urls)

    feeds = asyncio.run(run())

    session = fake_aiohttp.instances[0]
    assert list(feeds) == ["a", "b", "c", "down", "slow", "broken"]
    assert [name for name, feed in feeds.items() if feed is not None] == ["a", "b", "c"]
    assert len(feeds["a"].entries) == 4
    assert session.peak == 2
    assert session.headers == {"User-Agent": "TestAgent/1.0"}
    assert session.closed


def test_fetch_feed_requires_context_manager():
    with pytest.raises(RuntimeError):
        asyncio.run(AsyncFeedFetcher().fetch_feed("https://feeds.example/a"))


def test_fetch_feeds_runs_from_sync_code(fake_aiohttp):
    fake_aiohttp.bodies = {"https://feeds.example/a": RSS_FEED}

    feeds = fetch_feeds({"forum": "https://feeds.example/a"}, timeout=3, max_concurrent=1)

    assert len(parse_feed_entries(feeds["forum"], "forum")) == 2
    assert fake_aiohttp.instances[0].timeout.total == 3
