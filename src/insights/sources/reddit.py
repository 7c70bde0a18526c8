#!/usr/bin/env python3
"""
Reddit record source.

Reads diabetes subreddits through their JSON listings and falls back to
the RSS feed of any subreddit whose listing could not be fetched.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..config import CollectionConfig
from ..exceptions import MalformedRecordError, SourceConnectionError, SourceError, SourceParseError
from ..models.record import Record
from .async_feed_fetcher import fetch_feeds, parse_feed_entries
from .base import HttpRecordSource, SourceMetadata
from .http import HttpFetcher

logger = logging.getLogger(__name__)

FeedLoader = Callable[[Dict[str, str]], Dict[str, Any]]


class RedditSource(HttpRecordSource):
    """Community posts from diabetes subreddits."""

    name = 'reddit'
    health_url = 'https://www.reddit.com/r/diabetes/about.json'

    def __init__(self, config: Optional[CollectionConfig] = None,
                 fetcher: Optional[HttpFetcher] = None,
                 feed_loader: Optional[FeedLoader] = None,
                 listing_limit: int = 25):
        """
        Initialize Reddit source.

        Args:
            config: Collection settings (subreddit feeds, timeouts)
            fetcher: Optional preconfigured HTTP fetcher
            feed_loader: Callable fetching {name: rss_url} feeds, for the RSS fallback
            listing_limit: Posts requested per subreddit listing
        """
        super().__init__(config, fetcher)
        self.feed_loader = feed_loader or self._load_feeds
        self.listing_limit = listing_limit

    def get_metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self.name,
            display_name='Reddit diabetes communities',
            record_kind='post',
            description=f"{len(self.config.reddit_feeds)} subreddits via JSON listing with RSS fallback",
            update_frequency_minutes=30,
            reliability_score=0.6,
            categories=['community', 'social'],
        )

    def fetch_records(self) -> List[Record]:
        """
        Fetch recent posts from every configured subreddit.

        Raises:
            SourceConnectionError: If no subreddit could be read at all
        """
        records: List[Record] = []
        fallback: Dict[str, str] = {}

        for subreddit, base_url in self.config.reddit_feeds.items():
            try:
                listing = self.fetcher.get_json(f"{base_url}.json", params={'limit': self.listing_limit})
                records.extend(self.parse_listing(listing, subreddit))
            except SourceError as e:
                logger.warning(f"JSON listing failed for {subreddit}, trying RSS: {e.message}")
                fallback[subreddit] = f"{base_url}/.rss"

        succeeded = len(self.config.reddit_feeds) - len(fallback)
        if fallback:
            feeds = self.feed_loader(fallback)
            for subreddit, feed in feeds.items():
                if feed is None:
                    logger.error(f"RSS fetch also failed for {subreddit}")
                    continue
                succeeded += 1
                records.extend(parse_feed_entries(feed, subreddit, platform='reddit'))

        if self.config.reddit_feeds and succeeded == 0:
            raise SourceConnectionError(self.name, 'https://www.reddit.com',
                                        RuntimeError('all subreddit listings and feeds failed'))

        logger.info(f"Collected {len(records)} Reddit posts")
        return records

    def parse_listing(self, listing: Dict[str, Any], subreddit: str) -> List[Record]:
        """
        Convert a subreddit JSON listing into post records.

        Raises:
            SourceParseError: If the listing is not shaped like a Reddit listing
        """
        try:
            children = (listing.get('data') or {}).get('children') or []
            posts = [child.get('data') or {} for child in children]
        except (AttributeError, TypeError) as e:
            raise SourceParseError(self.name, f"listing for {subreddit}", e)

        records: List[Record] = []
        for post in posts:
            if not isinstance(post, dict):
                continue
            title = post.get('title')
            if not isinstance(title, str) or not title.strip() or post.get('created_utc') is None:
                continue

            try:
                created = float(post['created_utc'])
            except (TypeError, ValueError):
                logger.debug(f"Skipping post in {subreddit}: created_utc is not numeric")
                continue

            title = title.strip()
            body = post.get('selftext')
            body = body.strip() if isinstance(body, str) else ''
            text = f"{title}\n\n{body}" if body else title
            permalink = post.get('permalink') or ''

            try:
                records.append(self.make_post(
                    record_id=f"reddit_{post.get('id') or permalink}",
                    text=text,
                    platform='reddit',
                    timestamp=created,
                    engagement={
                        'likes': post.get('ups') or 0,
                        'comments': post.get('num_comments') or 0,
                    },
                    tags={'subreddit': subreddit, 'url': f"https://reddit.com{permalink}"},
                ))
            except MalformedRecordError as e:
                logger.debug(f"Skipping post in {subreddit}: {e.message}")

        return records

    def _load_feeds(self, feed_urls: Dict[str, str]) -> Dict[str, Any]:
        return fetch_feeds(
            feed_urls,
            timeout=self.config.request_timeout,
            max_concurrent=self.config.max_concurrent_feeds,
            user_agent=self.config.user_agent,
        )
