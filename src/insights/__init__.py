#!/usr/bin/env python3
"""
Diabetes insight engine.

Collects tagged records, groups and scores them, and reports ranked
insights with evidence and recommendations.
"""

from .models import Record, Insight, InsightReport
from .analysis.engine import InsightEngine
from .config import Config, ConfigManager, AnalysisConfig, CollectionConfig

__version__ = '1.0.0'

__all__ = [
    'Record', 'Insight', 'InsightReport',
    'InsightEngine',
    'Config', 'ConfigManager', 'AnalysisConfig', 'CollectionConfig',
]
