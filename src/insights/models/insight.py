#!/usr/bin/env python3
"""
Insight data models.

Contains scores, ranked insights and the report envelope returned by a run,
plus the supplementary trend report objects.
"""

from datetime import datetime
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field

from .statistics import GroupStatistics

DIRECTIONS = ('positive', 'negative', 'neutral')


@dataclass(frozen=True)
class Score:
    """Deterministic score of one group."""
    strength: float
    confidence: float
    direction: str
    reportable: bool = False

    def __post_init__(self):
        """Clamp components into range."""
        object.__setattr__(self, 'strength', max(0.0, min(1.0, self.strength)))
        object.__setattr__(self, 'confidence', max(0.0, min(1.0, self.confidence)))
        if self.direction not in DIRECTIONS:
            object.__setattr__(self, 'direction', 'neutral')


@dataclass
class Evidence:
    """Evidence backing an insight."""
    record_count: int
    platforms: List[str]
    regions: List[str]
    geographic_distribution: Dict[str, int]
    first_seen: datetime
    last_seen: datetime
    temporal_trend: str = 'stable'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'record_count': self.record_count,
            'platforms': list(self.platforms),
            'regions': list(self.regions),
            'geographic_distribution': dict(self.geographic_distribution),
            'first_seen': self.first_seen.isoformat(),
            'last_seen': self.last_seen.isoformat(),
            'temporal_trend': self.temporal_trend,
        }


@dataclass
class Insight:
    """A ranked, human-readable finding about one group of records."""
    insight_id: str
    analysis_type: str
    pattern: str
    title: str
    description: str
    confidence: float
    direction: str
    strength: float
    evidence: Evidence
    statistics: GroupStatistics
    recommendations: List[str] = field(default_factory=list)

    # Topic enrichment, set when the pattern matches known subject matter
    mechanism: Optional[str] = None
    evidence_level: Optional[str] = None
    risk_factors: List[str] = field(default_factory=list)
    benefits: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Validate and clean data."""
        self.confidence = max(0.0, min(1.0, self.confidence))
        self.strength = max(0.0, min(1.0, self.strength))
        self.title = self.title.strip()
        self.description = self.description.strip()

    def matches(self, query: str) -> bool:
        """Case-insensitive match against pattern, title, description and keywords."""
        needle = query.strip().lower()
        if not needle:
            return True
        haystack = [self.pattern, self.title, self.description]
        haystack.extend(self.statistics.keyword_counts.keys())
        return any(needle in text.lower() for text in haystack)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            'insight_id': self.insight_id,
            'analysis_type': self.analysis_type,
            'pattern': self.pattern,
            'title': self.title,
            'description': self.description,
            'confidence': round(self.confidence, 4),
            'direction': self.direction,
            'strength': round(self.strength, 4),
            'evidence': self.evidence.to_dict(),
            'statistics': self.statistics.to_dict(),
            'recommendations': list(self.recommendations),
        }
        if self.mechanism:
            data['mechanism'] = self.mechanism
            data['evidence_level'] = self.evidence_level
            data['risk_factors'] = list(self.risk_factors)
            data['benefits'] = list(self.benefits)
        return data


@dataclass
class InsightReport:
    """Envelope returned by one analysis run."""
    run_id: str
    generated_at: datetime
    records_received: int = 0
    records_analyzed: int = 0
    records_skipped: int = 0
    insights: List[Insight] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    timed_out: bool = False
    stage_durations: Dict[str, float] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.timed_out

    def to_dict(self) -> Dict[str, Any]:
        return {
            'run_id': self.run_id,
            'generated_at': self.generated_at.isoformat(),
            'records_received': self.records_received,
            'records_analyzed': self.records_analyzed,
            'records_skipped': self.records_skipped,
            'timed_out': self.timed_out,
            'errors': list(self.errors),
            'stage_durations': {name: round(value, 4) for name, value in self.stage_durations.items()},
            'insights': [insight.to_dict() for insight in self.insights],
        }


@dataclass(frozen=True)
class EmergingTrend:
    """A keyword whose recent mention rate is growing."""
    keyword: str
    recent_mentions: int
    previous_mentions: int
    growth_rate: float
    platforms: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'keyword': self.keyword,
            'recent_mentions': self.recent_mentions,
            'previous_mentions': self.previous_mentions,
            'growth_rate': round(self.growth_rate, 3),
            'platforms': list(self.platforms),
        }


@dataclass(frozen=True)
class KeywordAssociation:
    """Two keywords that co-occur across records."""
    first: str
    second: str
    similarity: float
    shared_records: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'first': self.first,
            'second': self.second,
            'similarity': round(self.similarity, 3),
            'shared_records': self.shared_records,
        }


@dataclass(frozen=True)
class PlatformActivity:
    """Volume and engagement per platform."""
    platform: str
    record_count: int
    engagement_total: int
    average_engagement: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'platform': self.platform,
            'record_count': self.record_count,
            'engagement_total': self.engagement_total,
            'average_engagement': round(self.average_engagement, 2),
        }
