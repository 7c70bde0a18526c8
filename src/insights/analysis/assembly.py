#!/usr/bin/env python3
"""
Insight assembly.

Packages a group, its statistics and its score into an Insight with
evidence counts and rule-selected recommendations.
"""

import re
import hashlib
import logging
from typing import Any, Dict, List, Optional, Sequence

from ..models.insight import Evidence, Insight, Score
from ..models.record import Record
from ..models.statistics import GroupStatistics
from .dimensions import AnalysisDimension
from .knowledge import find_topic
from .recommendations import RecommendationRule, build_metric_context, select_recommendations

logger = logging.getLogger(__name__)


def make_insight_id(analysis_type: str, key: str) -> str:
    """Stable identifier from analysis type and group key."""
    slug = re.sub(r'[^a-z0-9]+', '_', key.lower()).strip('_') or 'group'
    digest = hashlib.md5(f"{analysis_type}:{key}".encode('utf-8')).hexdigest()[:8]
    return f"{analysis_type}_{slug}_{digest}"


def temporal_trend(records: Sequence[Record]) -> str:
    """
    Compare record volume in the earlier and later half of the group's span.

    Returns 'increasing', 'decreasing' or 'stable'.
    """
    if len(records) < 2:
        return 'stable'

    timestamps = [record.timestamp for record in records]
    first, last = min(timestamps), max(timestamps)
    if first == last:
        return 'stable'

    midpoint = first + (last - first) / 2
    earlier = sum(1 for ts in timestamps if ts < midpoint)
    later = sum(1 for ts in timestamps if ts > midpoint)

    if later > earlier:
        return 'increasing'
    if later < earlier:
        return 'decreasing'
    return 'stable'


def _render(template: str, context: Dict[str, Any], fallback: str) -> str:
    try:
        return template.format(**context)
    except (KeyError, ValueError, IndexError) as e:
        logger.debug(f"Template '{template}' fell back: {e}")
        return fallback


def assemble_insight(dimension: AnalysisDimension, key: str, records: Sequence[Record],
                     statistics: GroupStatistics, score: Score,
                     rules: Optional[Sequence[RecommendationRule]] = None) -> Insight:
    """
    Build the Insight for one scored group.

    Args:
        dimension: Dimension the group belongs to
        key: Group key (becomes the insight pattern)
        records: Records in the group
        statistics: Group statistics
        score: Group score
        rules: Recommendation rule table, defaults to the built-in table

    Returns:
        Assembled Insight
    """
    context = build_metric_context(key, statistics, score)

    title = _render(dimension.title_template, context, f"{dimension.name}: {key}")
    description = _render(
        dimension.description_template, context,
        f"{statistics.count} record(s) grouped under '{key}'."
    )
    recommendations = select_recommendations(dimension.name, context, rules)

    evidence = Evidence(
        record_count=statistics.count,
        platforms=list(statistics.platforms),
        regions=list(statistics.regions),
        geographic_distribution=dict(statistics.geographic_distribution),
        first_seen=statistics.first_seen,
        last_seen=statistics.last_seen,
        temporal_trend=temporal_trend(records),
    )

    insight = Insight(
        insight_id=make_insight_id(dimension.name, key),
        analysis_type=dimension.name,
        pattern=key,
        title=title,
        description=description,
        confidence=score.confidence,
        direction=score.direction,
        strength=score.strength,
        evidence=evidence,
        statistics=statistics,
        recommendations=recommendations,
    )

    if dimension.use_topics:
        _apply_topic(insight)

    return insight


def _apply_topic(insight: Insight) -> None:
    topic = find_topic(insight.pattern)
    if topic is None:
        return

    insight.title = topic.title
    insight.description = f"{topic.description} {insight.description}"
    insight.mechanism = topic.mechanism
    insight.evidence_level = topic.evidence_level
    insight.risk_factors = list(topic.risk_factors)
    insight.benefits = list(topic.benefits)

    merged: List[str] = list(topic.recommendations)
    merged.extend(text for text in insight.recommendations if text not in merged)
    insight.recommendations = merged
