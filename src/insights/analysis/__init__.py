#!/usr/bin/env python3
"""
Analysis stages: grouping, statistics, scoring and insight assembly.
"""

from .grouping import group_records
from .statistics import describe_series, compute_group_statistics
from .scoring import score_group
from .recommendations import Condition, RecommendationRule, DEFAULT_RULES, select_recommendations
from .assembly import assemble_insight
from .dimensions import AnalysisDimension, DIMENSIONS, get_dimensions
from .pipeline import (
    AnalysisPipeline, AnalysisStage, ValidationStage, GroupingStage,
    StatisticsStage, ScoringStage, AssemblyStage
)
from .engine import InsightEngine
from .trends import find_emerging_trends, find_keyword_associations, platform_activity, search_insights

__all__ = [
    'group_records',
    'describe_series', 'compute_group_statistics',
    'score_group',
    'Condition', 'RecommendationRule', 'DEFAULT_RULES', 'select_recommendations',
    'assemble_insight',
    'AnalysisDimension', 'DIMENSIONS', 'get_dimensions',
    'AnalysisPipeline', 'AnalysisStage', 'ValidationStage', 'GroupingStage',
    'StatisticsStage', 'ScoringStage', 'AssemblyStage',
    'InsightEngine',
    'find_emerging_trends', 'find_keyword_associations', 'platform_activity', 'search_insights',
]
