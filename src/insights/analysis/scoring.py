#!/usr/bin/env python3
"""
Scoring stage.

Turns group statistics into a deterministic strength / confidence /
direction score. Every component is a pure function of the statistics.
"""

import math
import logging
from typing import Dict, Optional

from ..config import AnalysisConfig
from ..exceptions import ScoringOverflowError
from ..models.insight import Score
from ..models.statistics import GroupStatistics

logger = logging.getLogger(__name__)

SEVERITY_WEIGHTS: Dict[str, int] = {
    'critical': 4,
    'high': 3,
    'medium': 2,
    'low': 1,
}


def clamp_component(component: str, value: float) -> float:
    """
    Return value if it is a finite number in [0, 1].

    Out-of-range values are logged and clamped; NaN becomes 0.
    """
    try:
        if not math.isfinite(value) or value < 0.0 or value > 1.0:
            raise ScoringOverflowError(component, value)
    except ScoringOverflowError as e:
        logger.warning(f"{e.message}; clamping")
        if math.isnan(value):
            return 0.0
        return max(0.0, min(1.0, value))
    return value


def support(count: int, half_saturation: float) -> float:
    """Saturating support term: count / (count + half_saturation)."""
    if count <= 0:
        return 0.0
    return count / (count + half_saturation)


def sentiment_direction(sentiment_counts: Dict[str, int], dominance_ratio: float = 1.5) -> str:
    positive = sentiment_counts.get('positive', 0)
    negative = sentiment_counts.get('negative', 0)
    if positive > negative * dominance_ratio:
        return 'positive'
    if negative > positive * dominance_ratio:
        return 'negative'
    return 'neutral'


def mean_severity(statistics: GroupStatistics) -> Optional[float]:
    """Mean complaint severity weight (1-4), or None without severity tags."""
    severities = statistics.tag_counts.get('severity')
    if not severities:
        return None
    weighted = sum(SEVERITY_WEIGHTS.get(label, 1) * count for label, count in severities.items())
    total = sum(severities.values())
    return weighted / total if total else None


def _score_series(statistics: GroupStatistics, group_support: float, config: AnalysisConfig):
    series = statistics.series
    strength = (series.in_range_ratio + min(series.stability / 2.0, 1.0)) / 2.0
    strength = clamp_component('strength', strength)
    confidence = strength * (0.5 + 0.5 * group_support)

    if strength > config.positive_strength_threshold:
        direction = 'positive'
    elif strength < config.negative_strength_threshold:
        direction = 'negative'
    else:
        direction = 'neutral'
    return strength, confidence, direction


def _score_complaints(severity: float, group_support: float):
    strength = clamp_component('strength', severity / 4.0)
    confidence = strength * (0.5 + 0.5 * group_support)
    direction = 'negative' if severity >= SEVERITY_WEIGHTS['high'] else 'neutral'
    return strength, confidence, direction


def _score_text(statistics: GroupStatistics, group_support: float, config: AnalysisConfig):
    cap = float(config.diversity_cap)
    platform_coverage = min(len(statistics.platforms), cap) / cap
    region_coverage = min(len(statistics.regions), cap) / cap
    diversity = clamp_component('diversity', (platform_coverage + region_coverage) / 2.0)

    dominant = max(statistics.sentiment_counts.values()) if statistics.sentiment_counts else 0
    agreement = clamp_component('agreement', dominant / statistics.count)

    confidence = 0.5 * group_support + 0.3 * diversity + 0.2 * agreement
    direction = sentiment_direction(statistics.sentiment_counts, config.sentiment_dominance_ratio)
    return group_support, confidence, direction


def score_group(statistics: GroupStatistics, min_group_size: int = 1,
                config: Optional[AnalysisConfig] = None) -> Score:
    """
    Score one group.

    Groups with a numeric series are scored on time-in-range and stability,
    complaint groups on severity, and everything else on support, source
    diversity and sentiment agreement.

    Args:
        statistics: Group statistics
        min_group_size: Minimum group size for the insight to be reportable
        config: Scoring thresholds

    Returns:
        Score with components in [0, 1]
    """
    config = config or AnalysisConfig()
    group_support = clamp_component('support', support(statistics.count, config.support_half_saturation))

    severity = mean_severity(statistics)
    if statistics.series is not None:
        strength, confidence, direction = _score_series(statistics, group_support, config)
    elif severity is not None:
        strength, confidence, direction = _score_complaints(severity, group_support)
    else:
        strength, confidence, direction = _score_text(statistics, group_support, config)

    confidence = clamp_component('confidence', confidence)
    reportable = confidence > config.min_confidence and statistics.count >= min_group_size

    return Score(
        strength=strength,
        confidence=confidence,
        direction=direction,
        reportable=reportable,
    )
