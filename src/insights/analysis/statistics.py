#!/usr/bin/env python3
"""
Statistics stage.

Descriptive statistics over a group of records: series summaries for
numeric values and distribution counts for platforms, regions, sentiment
and tags.

Series summaries also flag z-score outliers, fit a least-squares trend
over reading order and grade the deepest low against the 54 and 40 mg/dL
hypoglycemia levels.
"""

import math
import logging
import statistics
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from ..categories import UNKNOWN
from ..config import AnalysisConfig
from ..exceptions import EmptyInputError
from ..models.record import Record
from ..models.statistics import SeriesSummary, GroupStatistics

logger = logging.getLogger(__name__)

ANOMALY_Z_THRESHOLD = 2.0
FLAT_TREND_SLOPE = 0.1
LEVEL_2_HYPOGLYCEMIA = 54.0
SEVERE_HYPOGLYCEMIA = 40.0


def find_anomalies(values: Sequence[float], threshold: float = ANOMALY_Z_THRESHOLD) -> List[float]:
    """
    Values whose z-score (sample standard deviation) exceeds threshold.

    Fewer than two values, or a series with no spread, has no anomalies.
    """
    if len(values) < 2:
        return []
    mean = statistics.mean(values)
    std = statistics.stdev(values)
    if std == 0:
        return []
    return [value for value in values if abs((value - mean) / std) > threshold]


def trend_slope(values: Sequence[float]) -> float:
    """Least-squares slope of values against their position; 0.0 below three values."""
    if len(values) < 3:
        return 0.0
    positions = range(len(values))
    mean_x = statistics.mean(positions)
    mean_y = statistics.mean(values)
    covariance = sum((x - mean_x) * (y - mean_y) for x, y in zip(positions, values))
    spread = sum((x - mean_x) ** 2 for x in positions)
    return covariance / spread


def classify_trend(slope: float, flat: float = FLAT_TREND_SLOPE) -> str:
    if abs(slope) < flat:
        return 'stable'
    return 'increasing' if slope > 0 else 'decreasing'


def hypoglycemia_severity(values: Sequence[float], threshold: float = 70.0) -> str:
    """
    Grade the lowest reading below threshold.

    Returns 'none' without any low, otherwise 'mild' (>= 54 mg/dL),
    'moderate' (>= 40 mg/dL) or 'severe'.
    """
    lows = [value for value in values if value < threshold]
    if not lows:
        return 'none'
    lowest = min(lows)
    if lowest >= LEVEL_2_HYPOGLYCEMIA:
        return 'mild'
    if lowest >= SEVERE_HYPOGLYCEMIA:
        return 'moderate'
    return 'severe'


def describe_series(values: Sequence[float], target_low: float = 70.0, target_high: float = 180.0,
                    stability_cap: float = 10.0) -> SeriesSummary:
    """
    Summarize a numeric series given in chronological order.

    Uses the sample standard deviation (n - 1); a single value has a
    standard deviation of 0. Stability is mean / std capped at
    stability_cap, the cap itself when std is 0, and 0 when the mean is
    not positive.

    Raises:
        EmptyInputError: If values is empty
    """
    values = list(values)
    count = len(values)
    if count == 0:
        raise EmptyInputError('statistics')

    mean = statistics.mean(values)
    std = statistics.stdev(values) if count > 1 else 0.0

    in_range = sum(1 for v in values if target_low <= v <= target_high)
    below = sum(1 for v in values if v < target_low)
    above = sum(1 for v in values if v > target_high)

    coefficient_of_variation = std / mean if mean > 0 else 0.0

    if mean <= 0:
        stability = 0.0
    elif std == 0:
        stability = stability_cap
    else:
        stability = min(mean / std, stability_cap)

    slope = trend_slope(values)

    return SeriesSummary(
        count=count,
        mean=mean,
        std=std,
        minimum=min(values),
        maximum=max(values),
        in_range_ratio=in_range / count,
        below_range_ratio=below / count,
        above_range_ratio=above / count,
        coefficient_of_variation=coefficient_of_variation,
        stability=stability,
        anomaly_count=len(find_anomalies(values)),
        trend_slope=slope,
        trend=classify_trend(slope),
        hypoglycemia_severity=hypoglycemia_severity(values, target_low),
    )


def _sorted_counts(counter: Counter) -> Dict[str, int]:
    return dict(sorted(counter.items()))


def _finite_values(records: Iterable[Record], key: str) -> List[float]:
    values = []
    for record in records:
        if record.value is None:
            continue
        if math.isfinite(record.value):
            values.append(record.value)
        else:
            logger.warning(f"Ignoring non-finite value on record {record.record_id} in group '{key}'")
    return values


def compute_group_statistics(key: str, records: Sequence[Record],
                             config: Optional[AnalysisConfig] = None) -> GroupStatistics:
    """
    Compute statistics for one group.

    Args:
        key: Group key
        records: Records in the group
        config: Analysis settings (target range, stability cap)

    Returns:
        GroupStatistics whose count equals len(records)

    Raises:
        EmptyInputError: If the group has no records
    """
    if not records:
        raise EmptyInputError('statistics', key)

    config = config or AnalysisConfig()

    platforms = Counter(record.platform for record in records)
    regions = Counter(record.region for record in records)
    sentiments = Counter(record.sentiment for record in records)
    keywords = Counter(keyword for record in records for keyword in record.keywords)

    tag_counts: Dict[str, Counter] = {}
    for record in records:
        for name, value in record.tags.items():
            tag_counts.setdefault(name, Counter())[value] += 1

    values = _finite_values(sorted(records, key=lambda record: record.timestamp), key)
    series = None
    if values:
        series = describe_series(values, config.target_low, config.target_high, config.stability_cap)

    timestamps = [record.timestamp for record in records]

    return GroupStatistics(
        key=key,
        count=len(records),
        platforms=sorted(platforms),
        regions=sorted(region for region in regions if region != UNKNOWN),
        geographic_distribution=_sorted_counts(regions),
        sentiment_counts=_sorted_counts(sentiments),
        engagement_total=sum(record.engagement_total for record in records),
        first_seen=min(timestamps),
        last_seen=max(timestamps),
        series=series,
        tag_counts={name: _sorted_counts(counts) for name, counts in sorted(tag_counts.items())},
        keyword_counts=_sorted_counts(keywords),
    )
