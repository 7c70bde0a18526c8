import json
import logging

import feedparser
import pytest
import requests

from insights.config import CollectionConfig
from insights.exceptions import (
    SourceConnectionError, SourceError, SourceParseError, SourceTimeoutError
)
from insights.sources import http as http_module
from insights.sources.base import RecordSource, SourceMetadata
from insights.sources.collector import RecordCollector
from insights.sources.http import HttpFetcher
from insights.sources.local import JsonFileSource, SampleSource, records_from_dicts, save_records
from insights.sources.openfda import OpenFDADeviceSource
from insights.sources.pubmed import PubMedSource
from insights.sources.reddit import RedditSource
from insights.sources.registry import SourceRegistry, build_default_registry
from insights.sources.text_features import (
    analyze_sentiment, classify_diabetes_type, extract_features, extract_keywords, extract_location,
    html_to_text
)

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>r/test</title>
    <item>
      <title>Lemon helps my lows</title>
      <link>https://www.reddit.com/r/test/comments/abc</link>
      <guid>t3_abc</guid>
      <description>Really better than juice for type 1 confusion</description>
      <pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>No date on this one</title>
      <link>https://www.reddit.com/r/test/comments/def</link>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def no_sleep(monkeypatch):
    delays = []
    monkeypatch.setattr(http_module.time, "sleep", delays.append)
    return delays


def make_fetcher(session, **kwargs):
    return HttpFetcher("test", session=session, **kwargs)


# Text features

def test_extract_keywords_drops_short_words_and_stopwords():
    keywords = extract_keywords("Lemon lemon helps with confusion when sugar drops. Lemon!")
    assert keywords[0] == "lemon"
    assert "with" not in keywords
    assert "when" not in keywords


@pytest.mark.parametrize("text,expected", [
    ("This is a great and effective help", "positive"),
    ("Terrible problem with my pump", "negative"),
    ("Changed my sensor today", "neutral"),
])
def test_analyze_sentiment(text, expected):
    assert analyze_sentiment(text) == expected


def test_classify_and_locate():
    assert classify_diabetes_type("Newly diagnosed T1D here") == "type1"
    assert classify_diabetes_type("Managing gestational diabetes") == "gestational"
    assert extract_location("Shipping insulin to the UK is hard") == "UK"
    assert extract_location("My ukulele has no location") == "Global"


def test_extract_features_matches_record_fields():
    features = extract_features("Cinnamon and exercise help my type 2 insulin needs")
    assert features["treatments"] == ["insulin", "exercise", "cinnamon"]
    assert features["medications"] == ["insulin"]
    assert features["lifestyle_factors"] == ["exercise"]
    assert features["tags"] == {"diabetes_type": "type2"}


def test_html_to_text_strips_markup():
    markup = '<!-- SC_OFF --><div class="md"><p>Lemon <b>works</b></p><script>x()</script></div>'
    assert html_to_text(markup) == "Lemon works"
    assert html_to_text("  plain text ") == "plain text"


# HTTP fetcher

def test_fetcher_retries_server_errors(fake_session_factory, response_factory, no_sleep):
    session = fake_session_factory([response_factory(503), response_factory(200, {"ok": True})])

    assert make_fetcher(session).get_json("https://example.org/data") == {"ok": True}
    assert len(session.calls) == 2
    assert no_sleep == [1.0]
    assert session.headers["User-Agent"].startswith("DiabetesInsightEngine")


def test_fetcher_honours_retry_after(fake_session_factory, response_factory, no_sleep):
    session = fake_session_factory([response_factory(429, headers={"Retry-After": "5"}),
                                    response_factory(200, {})])

    make_fetcher(session).get("https://example.org/data")

    assert no_sleep == [5.0]


def test_fetcher_caps_backoff(fake_session_factory, response_factory, no_sleep):
    session = fake_session_factory([response_factory(429, headers={"Retry-After": "600"}),
                                    response_factory(200, {})])

    make_fetcher(session, backoff_max=30).get("https://example.org/data")

    assert no_sleep == [30]


def test_fetcher_does_not_retry_client_errors(fake_session_factory, response_factory, no_sleep):
    session = fake_session_factory([response_factory(404)])

    with pytest.raises(SourceConnectionError) as excinfo:
        make_fetcher(session).get("https://example.org/missing")

    assert excinfo.value.context["status_code"] == 404
    assert len(session.calls) == 1
    assert no_sleep == []


def test_fetcher_raises_timeout_after_retries(fake_session_factory, no_sleep):
    session = fake_session_factory([requests.exceptions.Timeout()] * 3)

    with pytest.raises(SourceTimeoutError):
        make_fetcher(session, max_retries=3).get("https://example.org/slow")

    assert len(session.calls) == 3
    assert no_sleep == [1.0, 2.0]


def test_fetcher_wraps_connection_errors(fake_session_factory, no_sleep):
    session = fake_session_factory([requests.exceptions.ConnectionError("refused")] * 2)

    with pytest.raises(SourceConnectionError):
        make_fetcher(session, max_retries=2).get("https://example.org/down")


def test_get_json_rejects_invalid_body(fake_session_factory, response_factory):
    session = fake_session_factory([response_factory(200, None, text="<html>")])

    with pytest.raises(SourceParseError):
        make_fetcher(session).get_json("https://example.org/html")


def test_check_available_reports_status(fake_session_factory, response_factory):
    session = fake_session_factory([response_factory(200)])
    assert make_fetcher(session).check_available("https://example.org") == {
        "available": True, "status_code": 200, "response_time_ms": pytest.approx(42.0)
    }


# Reddit

def reddit_listing(*posts):
    return {"data": {"children": [{"data": post} for post in posts]}}


def test_reddit_listing_becomes_posts():
    source = RedditSource(CollectionConfig(), fetcher=object())
    listing = reddit_listing(
        {"id": "abc", "title": "Lemon for lows?", "selftext": "It really helps me",
         "created_utc": 1705312800, "ups": 12, "num_comments": 4, "permalink": "/r/diabetes/abc"},
        {"id": "nodate", "title": "Missing timestamp"},
    )

    records = source.parse_listing(listing, "r/diabetes")

    assert len(records) == 1
    record = records[0]
    assert record.record_id == "reddit_abc"
    assert record.platform == "reddit"
    assert record.engagement == {"likes": 12, "comments": 4}
    assert record.tags["subreddit"] == "r/diabetes"
    assert "lemon" in record.keywords
    assert record.sentiment == "positive"


class FailingFetcher:
    def get_json(self, url, params=None):
        raise SourceConnectionError("reddit", url, RuntimeError("blocked"))


def test_reddit_falls_back_to_rss():
    config = CollectionConfig(reddit_feeds={"r/test": "https://www.reddit.com/r/test"})
    requested = {}

    def feed_loader(feed_urls):
        requested.update(feed_urls)
        return {name: feedparser.parse(RSS_FEED) for name in feed_urls}

    records = RedditSource(config, fetcher=FailingFetcher(), feed_loader=feed_loader).fetch_records()

    assert requested == {"r/test": "https://www.reddit.com/r/test/.rss"}
    assert len(records) == 1
    assert records[0].content.startswith("Lemon helps my lows")
    assert records[0].tags["feed"] == "r/test"
    assert records[0].tags["diabetes_type"] == "type1"


def test_reddit_raises_when_everything_fails():
    config = CollectionConfig(reddit_feeds={"r/test": "https://www.reddit.com/r/test"})
    source = RedditSource(config, fetcher=FailingFetcher(), feed_loader=lambda urls: {name: None for name in urls})

    with pytest.raises(SourceConnectionError):
        source.fetch_records()


@pytest.mark.parametrize("listing", [
    [{"kind": "Listing"}],
    {"data": ["not", "a", "listing"]},
    {"data": {"children": [1, 2]}},
])
def test_reddit_malformed_listing_raises_parse_error(listing):
    source = RedditSource(CollectionConfig(), fetcher=object())

    with pytest.raises(SourceParseError):
        source.parse_listing(listing, "r/diabetes")


def test_reddit_skips_posts_with_bad_fields():
    source = RedditSource(CollectionConfig(), fetcher=object())
    listing = reddit_listing(
        {"id": "a", "title": "Bad date", "created_utc": "yesterday"},
        {"id": "b", "title": "Bad votes", "created_utc": 1705312800, "ups": "many"},
        {"id": "c", "title": ["not", "text"], "created_utc": 1705312800},
        {"id": "d", "title": "Kept", "created_utc": "1705312800"},
    )

    records = source.parse_listing(listing, "r/diabetes")

    assert [record.record_id for record in records] == ["reddit_d"]


# PubMed

def test_pubmed_search_and_summary(fake_session_factory, response_factory):
    session = fake_session_factory([
        response_factory(200, {"esearchresult": {"idlist": ["111", "222"]}}),
        response_factory(200, {"result": {
            "uids": ["111", "222"],
            "111": {"title": "Closed-loop insulin delivery in adolescents",
                    "sortpubdate": "2024/01/10 00:00", "fulljournalname": "Diabetes Care"},
            "222": {"title": "", "sortpubdate": "2024/01/11 00:00"},
        }}),
    ])
    source = PubMedSource(CollectionConfig(pubmed_term="type 1 diabetes"), fetcher=make_fetcher(session))

    records = source.fetch_records()

    assert [record.record_id for record in records] == ["pubmed_111"]
    assert records[0].kind == "research"
    assert records[0].tags == {"pmid": "111", "journal": "Diabetes Care"}
    assert session.calls[0]["params"]["term"] == "type 1 diabetes"
    assert session.calls[1]["params"]["id"] == "111,222"


def test_pubmed_rejects_unexpected_payload(fake_session_factory, response_factory):
    session = fake_session_factory([response_factory(200, {"unexpected": {}})])

    with pytest.raises(SourceParseError):
        PubMedSource(CollectionConfig(), fetcher=make_fetcher(session)).fetch_records()


@pytest.mark.parametrize("summary", [
    {"result": ["111"]},
    {"result": {"uids": 7}},
    [{"result": {}}],
])
def test_pubmed_malformed_summary_raises_parse_error(summary):
    source = PubMedSource(CollectionConfig(), fetcher=object())

    with pytest.raises(SourceParseError):
        source.parse_summary(summary, ["111"])


def test_pubmed_skips_items_that_are_not_objects():
    source = PubMedSource(CollectionConfig(), fetcher=object())
    summary = {"result": {
        "uids": ["111", "222"],
        "111": "withdrawn",
        "222": {"title": "Insulin pump outcomes", "pubdate": "2024 Jan 12"},
    }}

    assert [record.record_id for record in source.parse_summary(summary, [])] == ["pubmed_222"]


# openFDA

def test_openfda_no_matches_is_empty(fake_session_factory, response_factory):
    session = fake_session_factory([response_factory(404)])
    source = OpenFDADeviceSource(CollectionConfig(openfda_device_terms=["insulin pump"]),
                                 fetcher=make_fetcher(session))

    assert source.fetch_records() == []


def test_openfda_event_becomes_complaint():
    source = OpenFDADeviceSource(CollectionConfig(), fetcher=object())
    record = source.parse_event({
        "report_number": "3004464228-2024-00001",
        "event_type": "Death",
        "date_received": "20240115",
        "device": [{"brand_name": "Acme Pump", "generic_name": "insulin pump",
                    "manufacturer_d_name": "Acme"}],
        "mdr_text": [{"text": "Pump stopped delivering insulin."}],
    })

    assert record.record_id == "maude_3004464228-2024-00001"
    assert record.kind == "complaint"
    assert record.tags["severity"] == "critical"
    assert record.tags["device_type"] == "insulin_pump"
    assert record.content == "Pump stopped delivering insulin."
    assert record.sentiment == "negative"


def test_openfda_event_without_date_is_skipped():
    source = OpenFDADeviceSource(CollectionConfig(), fetcher=object())
    assert source.parse_event({"event_type": "Malfunction"}) is None


@pytest.mark.parametrize("event", [
    "not an event",
    {"device": "Acme Pump", "date_received": "20240115"},
    {"device": [{}], "mdr_text": ["plain string"], "date_received": "20240115"},
])
def test_openfda_malformed_event_raises_parse_error(event):
    source = OpenFDADeviceSource(CollectionConfig(), fetcher=object())

    with pytest.raises(SourceParseError):
        source.parse_event(event)


# Local sources

def test_json_file_source_formats(tmp_path):
    item = {"id": "x1", "content": "Dexcom reading", "timestamp": "2024-01-15T00:00:00Z"}
    array_file = tmp_path / "records.json"
    array_file.write_text(json.dumps([item, {"id": "bad"}]), encoding="utf-8")
    wrapped_file = tmp_path / "wrapped.json"
    wrapped_file.write_text(json.dumps({"records": [item]}), encoding="utf-8")
    lines_file = tmp_path / "records.jsonl"
    lines_file.write_text(json.dumps(item) + "\n\n" + json.dumps(item) + "\n", encoding="utf-8")

    assert len(JsonFileSource(array_file).load_raw()) == 2
    assert [r.record_id for r in JsonFileSource(array_file).fetch_records()] == ["x1"]
    assert len(JsonFileSource(wrapped_file).fetch_records()) == 1
    assert len(JsonFileSource(lines_file).fetch_records()) == 2


def test_json_file_source_errors(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    with pytest.raises(SourceError):
        JsonFileSource(tmp_path / "missing.json").load_raw()
    with pytest.raises(SourceParseError):
        JsonFileSource(broken).load_raw()
    assert JsonFileSource(tmp_path / "missing.json").health_check()["available"] is False


def test_json_file_source_rejects_invalid_utf8(tmp_path):
    path = tmp_path / "records.json"
    path.write_bytes(b"\xff\xfe[]")

    with pytest.raises(SourceParseError) as excinfo:
        JsonFileSource(path).load_raw()

    assert excinfo.value.context["source_name"] == "file"


def test_records_from_dicts_skips_uncoercible_fields(caplog):
    caplog.set_level(logging.WARNING, logger="insights.sources.local")
    items = [
        {"id": "ok", "content": "Dexcom reading", "timestamp": "2024-01-15T00:00:00Z"},
        {"id": "votes", "content": "Lemon", "timestamp": "2024-01-15T00:00:00Z", "engagement": {"likes": "many"}},
        {"id": "tags", "content": "Lemon", "timestamp": "2024-01-15T00:00:00Z", "tags": ["device"]},
        "not a record",
    ]

    records = records_from_dicts(items, "test")

    assert [record.record_id for record in records] == ["ok"]
    assert "skipping entry #1" in caplog.text


def test_save_records_writes_loadable_file(tmp_path):
    records = SampleSource().fetch_records()[:5]
    path = tmp_path / "out" / "records.json"

    assert save_records(records, path) == 5
    assert JsonFileSource(path).fetch_records() == records


# Registry and collector

class BrokenSource(RecordSource):
    name = "broken"

    def fetch_records(self):
        raise SourceConnectionError(self.name, "https://broken.example", RuntimeError("down"))

    def get_metadata(self):
        return SourceMetadata("broken", "Broken", "post", "", 0, 0.0)


def test_default_registry_sources():
    registry = build_default_registry()

    assert registry.list_available_sources() == ["reddit", "pubmed", "openfda", "sample"]
    assert isinstance(registry.get_source("sample"), SampleSource)
    assert registry.get_sources_by_kind("complaint") == ["openfda"]
    with pytest.raises(KeyError):
        registry.get_source("myspace")


def test_collector_isolates_failing_sources(caplog):
    caplog.set_level(logging.ERROR, logger="insights.sources.collector")
    registry = SourceRegistry()
    registry.register_source(SampleSource)
    registry.register_source(BrokenSource)

    result = RecordCollector(registry).collect(["sample", "broken", "unknown"])

    assert result.counts["sample"] == len(result.records) > 0
    assert set(result.errors) == {"broken", "unknown"}
    assert result.errors["broken"]["error_type"] == "SourceConnectionError"
    assert not result.success
    assert "Source broken failed" in caplog.text


def test_collector_health_check():
    registry = SourceRegistry()
    registry.register_source(SampleSource)

    status = RecordCollector(registry).health_check(["sample", "unknown"])

    assert status["sample"] == {"available": True}
    assert status["unknown"]["available"] is False


def test_collector_reports_malformed_reddit_listing(fake_session_factory, response_factory, no_sleep):
    session = fake_session_factory([response_factory(200, [{"kind": "Listing"}])])

    class StubbedReddit(RedditSource):
        def __init__(self, config=None):
            super().__init__(config, fetcher=HttpFetcher("reddit", session=session),
                             feed_loader=lambda urls: {name: None for name in urls})

    registry = SourceRegistry()
    registry.register_source(StubbedReddit, name="reddit")
    registry.register_source(SampleSource)
    config = CollectionConfig(reddit_feeds={"r/test": "https://www.reddit.com/r/test"})

    result = RecordCollector(registry, config).collect(["reddit", "sample"])

    assert "reddit" in result.errors
    assert result.counts["sample"] == len(result.records) > 0


class ExplodingSource(RecordSource):
    name = "exploding"

    def fetch_records(self):
        raise RuntimeError("unexpected payload")

    def health_check(self):
        raise RuntimeError("unexpected payload")

    def get_metadata(self):
        return SourceMetadata("exploding", "Exploding", "post", "", 0, 0.0)


def test_collector_reports_unexpected_exceptions():
    registry = SourceRegistry()
    registry.register_source(SampleSource)
    registry.register_source(ExplodingSource)
    collector = RecordCollector(registry)

    result = collector.collect(["exploding", "sample"])
    status = collector.health_check(["exploding"])

    assert result.errors["exploding"] == {"error_type": "RuntimeError", "message": "unexpected payload"}
    assert result.counts["sample"] > 0
    assert status["exploding"] == {"available": False, "error": "unexpected payload"}


def test_source_metadata_validates_reliability():
    with pytest.raises(ValueError):
        SourceMetadata("x", "X", "post", "", 0, 1.5)
