#!/usr/bin/env python3
"""
Async RSS feed fetcher.

Fetches several RSS/Atom feeds in parallel and converts their entries into
tagged post records.
"""

import asyncio
import hashlib
import logging
import time
from datetime import datetime
from typing import Dict, List, Optional

import aiohttp
import feedparser
import pytz
from dateutil import parser as date_parser

from ..exceptions import MalformedRecordError
from ..models.record import Record
from .base import RecordSource
from .text_features import html_to_text

logger = logging.getLogger(__name__)


class AsyncFeedFetcher:
    """Async feed fetcher with bounded parallelism."""

    def __init__(self,
                 timeout: int = 10,
                 max_concurrent: int = 5,
                 user_agent: str = 'Mozilla/5.0 (compatible; DiabetesInsightEngine/1.0)'):
        """
        Initialize async feed fetcher.

        Args:
            timeout: Request timeout in seconds
            max_concurrent: Maximum concurrent requests
            user_agent: User-Agent header
        """
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.user_agent = user_agent
        self._session = None

    async def __aenter__(self):
        """Async context manager entry."""
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={'User-Agent': self.user_agent}
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._session:
            await self._session.close()

    async def fetch_feed(self, url: str) -> Optional[feedparser.FeedParserDict]:
        """
        Fetch and parse one feed.

        Returns:
            Parsed feed or None if failed
        """
        if not self._session:
            raise RuntimeError("AsyncFeedFetcher must be used as async context manager")

        try:
            logger.info(f"Fetching feed from: {url}")
            async with self._session.get(url) as response:
                response.raise_for_status()
                content = await response.read()

            feed = feedparser.parse(content)
            if feed.bozo:
                logger.warning(f"Feed parsing warning for {url}: {feed.bozo_exception}")
            return feed

        except asyncio.TimeoutError:
            logger.error(f"Timeout fetching feed {url}")
            return None
        except aiohttp.ClientError as e:
            logger.error(f"HTTP error fetching feed {url}: {e}")
            return None

    async def fetch_all_feeds(self, feed_urls: Dict[str, str]) -> Dict[str, Optional[feedparser.FeedParserDict]]:
        """
        Fetch multiple feeds in parallel.

        Args:
            feed_urls: Dictionary of {feed_name: url}

        Returns:
            Dictionary of {feed_name: parsed_feed or None}
        """
        logger.info(f"Fetching {len(feed_urls)} feeds in parallel")
        start_time = time.time()

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def fetch_with_semaphore(feed_name: str, url: str):
            async with semaphore:
                return feed_name, await self.fetch_feed(url)

        results = await asyncio.gather(
            *(fetch_with_semaphore(name, url) for name, url in feed_urls.items()),
            return_exceptions=True
        )

        feeds: Dict[str, Optional[feedparser.FeedParserDict]] = {name: None for name in feed_urls}
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Feed fetch failed: {result}")
                continue
            feed_name, feed = result
            feeds[feed_name] = feed

        duration = time.time() - start_time
        successful = sum(1 for feed in feeds.values() if feed is not None)
        logger.info(f"Fetched {successful}/{len(feed_urls)} feeds in {duration:.2f}s")
        return feeds


def parse_published_date(entry) -> Optional[datetime]:
    """Published date of a feed entry as an aware UTC datetime."""
    for field_name in ('published', 'updated', 'created'):
        date_str = entry.get(field_name)
        if not date_str:
            continue
        try:
            dt = date_parser.parse(date_str)
        except (ValueError, OverflowError) as e:
            logger.debug(f"Failed to parse date '{date_str}': {e}")
            continue
        if dt.tzinfo is None:
            dt = pytz.utc.localize(dt)
        return dt.astimezone(pytz.utc)

    parsed = entry.get('published_parsed') or entry.get('updated_parsed')
    if parsed:
        return pytz.utc.localize(datetime(*parsed[:6]))

    return None


def parse_feed_entries(feed: feedparser.FeedParserDict, feed_name: str, platform: str = 'reddit') -> List[Record]:
    """
    Convert feed entries into post records.

    Entries without a title, body or date are skipped.
    """
    records: List[Record] = []
    entries = feed.get('entries') or []
    if not entries:
        logger.warning(f"No entries found in feed for {feed_name}")
        return records

    for entry in entries:
        title = (entry.get('title') or '').strip()
        summary = html_to_text(entry.get('summary') or '')
        published = parse_published_date(entry)
        if not title or published is None:
            logger.debug(f"Skipping incomplete entry from {feed_name}")
            continue

        link = entry.get('link') or ''
        id_hint = entry.get('id') or link or f"{title}{summary}"
        record_id = f"{platform}_{hashlib.md5(id_hint.encode('utf-8')).hexdigest()[:10]}"
        text = f"{title}\n\n{summary}" if summary and summary != title else title

        try:
            records.append(RecordSource.make_post(
                record_id=record_id,
                text=text,
                platform=platform,
                timestamp=published,
                tags={'feed': feed_name, 'url': link},
            ))
        except MalformedRecordError as e:
            logger.debug(f"Skipping entry from {feed_name}: {e.message}")

    return records


def fetch_feeds(feed_urls: Dict[str, str], timeout: int = 10, max_concurrent: int = 5,
                user_agent: str = 'Mozilla/5.0 (compatible; DiabetesInsightEngine/1.0)'
                ) -> Dict[str, Optional[feedparser.FeedParserDict]]:
    """
    Fetch feeds asynchronously from synchronous code.

    Must not be called from a running event loop.
    """
    async def _fetch():
        async with AsyncFeedFetcher(timeout=timeout, max_concurrent=max_concurrent,
                                    user_agent=user_agent) as fetcher:
            return await fetcher.fetch_all_feeds(feed_urls)

    return asyncio.run(_fetch())
