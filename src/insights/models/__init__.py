#!/usr/bin/env python3
"""
Core data models for the insight engine.

Contains all data structures used throughout the application.
"""

from .record import Record, parse_timestamp, RECORD_KINDS, SENTIMENTS
from .statistics import SeriesSummary, GroupStatistics
from .insight import (
    Score, Evidence, Insight, InsightReport,
    EmergingTrend, KeywordAssociation, PlatformActivity
)

__all__ = [
    'Record', 'parse_timestamp', 'RECORD_KINDS', 'SENTIMENTS',
    'SeriesSummary', 'GroupStatistics',
    'Score', 'Evidence', 'Insight', 'InsightReport',
    'EmergingTrend', 'KeywordAssociation', 'PlatformActivity'
]
