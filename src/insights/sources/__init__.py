#!/usr/bin/env python3
"""
Record sources: network collectors, local files and bundled sample data.
"""

from .base import RecordSource, HttpRecordSource, SourceMetadata
from .http import HttpFetcher
from .async_feed_fetcher import AsyncFeedFetcher, fetch_feeds, parse_feed_entries
from .reddit import RedditSource
from .pubmed import PubMedSource
from .openfda import OpenFDADeviceSource
from .local import JsonFileSource, SampleSource, save_records
from .registry import SourceRegistry, build_default_registry
from .collector import RecordCollector, CollectionResult

__all__ = [
    'RecordSource', 'HttpRecordSource', 'SourceMetadata',
    'HttpFetcher',
    'AsyncFeedFetcher', 'fetch_feeds', 'parse_feed_entries',
    'RedditSource', 'PubMedSource', 'OpenFDADeviceSource',
    'JsonFileSource', 'SampleSource', 'save_records',
    'SourceRegistry', 'build_default_registry',
    'RecordCollector', 'CollectionResult',
]
