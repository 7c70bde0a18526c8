#!/usr/bin/env python3
"""
Statistics data models.

Descriptive summaries computed for each group of records.
"""

from datetime import datetime
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SeriesSummary:
    """
    Descriptive statistics for a numeric series (glucose mg/dL).

    `std` doubles as the series volatility. `trend_slope` is in mg/dL per
    reading and `hypoglycemia_severity` is one of none, mild, moderate or
    severe.
    """
    count: int
    mean: float
    std: float
    minimum: float
    maximum: float
    in_range_ratio: float
    below_range_ratio: float
    above_range_ratio: float
    coefficient_of_variation: float
    stability: float
    anomaly_count: int
    trend_slope: float
    trend: str
    hypoglycemia_severity: str

    @property
    def time_in_range(self) -> float:
        """In-range share as a percentage."""
        return self.in_range_ratio * 100

    @property
    def hypoglycemia_risk(self) -> float:
        """Below-range share as a percentage."""
        return self.below_range_ratio * 100

    @property
    def hyperglycemia_risk(self) -> float:
        return self.above_range_ratio * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            'count': self.count,
            'mean': round(self.mean, 2),
            'std': round(self.std, 2),
            'minimum': self.minimum,
            'maximum': self.maximum,
            'time_in_range': round(self.time_in_range, 1),
            'hypoglycemia_risk': round(self.hypoglycemia_risk, 1),
            'hyperglycemia_risk': round(self.hyperglycemia_risk, 1),
            'coefficient_of_variation': round(self.coefficient_of_variation, 3),
            'stability': round(self.stability, 3),
            'anomaly_count': self.anomaly_count,
            'trend': self.trend,
            'trend_slope': round(self.trend_slope, 3),
            'hypoglycemia_severity': self.hypoglycemia_severity,
        }


@dataclass
class GroupStatistics:
    """
    Summary of one group of records.

    `count` always equals the number of records the statistics were
    computed from. `series` is None when no record carries a numeric value.
    """
    key: str
    count: int
    platforms: List[str]
    regions: List[str]
    geographic_distribution: Dict[str, int]
    sentiment_counts: Dict[str, int]
    engagement_total: int
    first_seen: datetime
    last_seen: datetime
    series: Optional[SeriesSummary] = None
    tag_counts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    keyword_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def has_series(self) -> bool:
        return self.series is not None

    @property
    def dominant_sentiment(self) -> str:
        if not self.sentiment_counts:
            return 'neutral'
        return sorted(self.sentiment_counts.items(), key=lambda item: (-item[1], item[0]))[0][0]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'key': self.key,
            'count': self.count,
            'platforms': list(self.platforms),
            'regions': list(self.regions),
            'geographic_distribution': dict(self.geographic_distribution),
            'sentiment_counts': dict(self.sentiment_counts),
            'engagement_total': self.engagement_total,
            'first_seen': self.first_seen.isoformat(),
            'last_seen': self.last_seen.isoformat(),
            'series': self.series.to_dict() if self.series else None,
            'tag_counts': {name: dict(counts) for name, counts in self.tag_counts.items()},
            'keyword_counts': dict(self.keyword_counts),
        }
