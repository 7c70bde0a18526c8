#!/usr/bin/env python3
"""
Supplementary trend reports.

Emerging keywords, keyword co-occurrence and per-platform activity over a
batch of records, plus free-text search over assembled insights.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Set

from ..models.insight import EmergingTrend, Insight, KeywordAssociation, PlatformActivity
from ..models.record import Record, parse_timestamp

logger = logging.getLogger(__name__)


def find_emerging_trends(records: Sequence[Record], as_of: Optional[datetime] = None,
                         window_days: int = 7, min_mentions: int = 2,
                         growth_threshold: float = 1.5) -> List[EmergingTrend]:
    """
    Find keywords mentioned more often in the recent window than before it.

    Args:
        records: Records to scan
        as_of: End of the recent window, defaults to the newest record
        window_days: Length of the recent window
        min_mentions: Minimum recent mentions for a keyword to qualify
        growth_threshold: Minimum recent / earlier mention ratio

    Returns:
        Trends sorted by growth rate, then recent mentions
    """
    keyed = [record for record in records if record.keywords]
    if not keyed:
        return []

    as_of = parse_timestamp(as_of) if as_of is not None else max(record.timestamp for record in keyed)
    window_start = as_of - timedelta(days=window_days)

    recent: Dict[str, int] = defaultdict(int)
    earlier: Dict[str, int] = defaultdict(int)
    platforms: Dict[str, Set[str]] = defaultdict(set)

    for record in keyed:
        if record.timestamp > as_of:
            continue
        for keyword in record.keywords:
            if record.timestamp > window_start:
                recent[keyword] += 1
                platforms[keyword].add(record.platform)
            else:
                earlier[keyword] += 1

    trends = []
    for keyword, mentions in recent.items():
        if mentions < min_mentions:
            continue
        growth_rate = mentions / max(earlier.get(keyword, 0), 1)
        if growth_rate > growth_threshold:
            trends.append(EmergingTrend(
                keyword=keyword,
                recent_mentions=mentions,
                previous_mentions=earlier.get(keyword, 0),
                growth_rate=growth_rate,
                platforms=sorted(platforms[keyword]),
            ))

    trends.sort(key=lambda trend: (-trend.growth_rate, -trend.recent_mentions, trend.keyword))
    logger.debug(f"Found {len(trends)} emerging trends as of {as_of.isoformat()}")
    return trends


def find_keyword_associations(records: Sequence[Record], threshold: float = 0.6) -> List[KeywordAssociation]:
    """
    Pairs of keywords whose record sets overlap by more than threshold (Jaccard).
    """
    record_sets: Dict[str, Set[str]] = defaultdict(set)
    for record in records:
        for keyword in record.keywords:
            record_sets[keyword].add(record.record_id)

    associations = []
    for first, second in combinations(sorted(record_sets), 2):
        shared = record_sets[first] & record_sets[second]
        if not shared:
            continue
        similarity = len(shared) / len(record_sets[first] | record_sets[second])
        if similarity > threshold:
            associations.append(KeywordAssociation(
                first=first,
                second=second,
                similarity=similarity,
                shared_records=len(shared),
            ))

    associations.sort(key=lambda item: (-item.similarity, -item.shared_records, item.first, item.second))
    return associations


def platform_activity(records: Sequence[Record]) -> List[PlatformActivity]:
    """Record count and engagement per platform, busiest first."""
    counts: Dict[str, int] = defaultdict(int)
    engagement: Dict[str, int] = defaultdict(int)
    for record in records:
        counts[record.platform] += 1
        engagement[record.platform] += record.engagement_total

    activity = [
        PlatformActivity(
            platform=platform,
            record_count=count,
            engagement_total=engagement[platform],
            average_engagement=engagement[platform] / count,
        )
        for platform, count in counts.items()
    ]
    activity.sort(key=lambda item: (-item.record_count, item.platform))
    return activity


def search_insights(insights: Sequence[Insight], query: str) -> List[Insight]:
    """Insights whose pattern, title, description or keywords contain query."""
    return [insight for insight in insights if insight.matches(query)]
