#!/usr/bin/env python3
"""
Insight engine.

Runs the analysis pipeline over a batch of records under an overall time
limit and packages the outcome as an InsightReport.
"""

import uuid
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

import pytz

from ..config import AnalysisConfig
from ..exceptions import AnalysisTimeoutError
from ..models.insight import InsightReport
from .dimensions import AnalysisDimension, get_dimensions
from .pipeline import (
    AnalysisPipeline, ValidationStage, GroupingStage,
    StatisticsStage, ScoringStage, AssemblyStage
)
from .recommendations import RecommendationRule

logger = logging.getLogger(__name__)


class InsightEngine:
    """
    Turns records into ranked insights.

    The engine holds no per-run state, so one instance can serve many runs.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None,
                 rules: Optional[Sequence[RecommendationRule]] = None):
        """
        Initialize engine.

        Args:
            config: Analysis settings
            rules: Recommendation rule table, defaults to the built-in table
        """
        self.config = config or AnalysisConfig()
        self.rules = rules

    def build_pipeline(self, dimensions: Sequence[AnalysisDimension]) -> AnalysisPipeline:
        """Assemble the five-stage pipeline for the given dimensions."""
        return (AnalysisPipeline()
                .add_stage(ValidationStage(self.config))
                .add_stage(GroupingStage(dimensions, self.config))
                .add_stage(StatisticsStage(self.config))
                .add_stage(ScoringStage(self.config))
                .add_stage(AssemblyStage(self.rules, self.config)))

    def analyze(self, records: Iterable[Any], dimensions: Optional[Sequence[str]] = None) -> InsightReport:
        """
        Analyze records and return a report of ranked insights.

        Empty input yields an empty report. When the run exceeds the
        configured timeout the report carries no insights and is marked
        timed out.

        Args:
            records: Records or record mappings
            dimensions: Dimension names to run, all when None

        Returns:
            InsightReport

        Raises:
            ValueError: If a dimension name is unknown
        """
        selected = get_dimensions(dimensions)
        records = list(records)

        report = InsightReport(
            run_id=str(uuid.uuid4())[:8],
            generated_at=datetime.now(pytz.utc),
            records_received=len(records),
        )

        if not records:
            logger.info("No records to analyze")
            return report

        pipeline = self.build_pipeline(selected)
        cancel_event = threading.Event()
        timeout = self.config.analysis_timeout_seconds

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='insight-run')
        try:
            future = executor.submit(pipeline.run, records, {'cancel_event': cancel_event})
            try:
                context = future.result(timeout=timeout)
            except FuturesTimeoutError:
                cancel_event.set()
                error = AnalysisTimeoutError('insight', timeout)
                logger.error(error.message)
                report.timed_out = True
                report.errors.append(error.to_dict())
                return report
        finally:
            executor.shutdown(wait=False)

        report.records_analyzed = context.get('records_valid', 0)
        report.records_skipped = context.get('records_skipped', 0)
        report.insights = context.get('insights', [])
        report.stage_durations = dict(context.get('stage_durations', {}))
        report.errors.extend(context.get('validation_errors', []))
        report.errors.extend(context.get('statistics_errors', []))
        for stage_name, message in context.get('stage_errors', {}).items():
            report.errors.append({
                'error_type': 'StageError',
                'error_code': 'StageError',
                'message': message,
                'context': {'stage': stage_name},
            })

        logger.info(f"Run {report.run_id}: {len(report.insights)} insights from "
                    f"{report.records_analyzed}/{report.records_received} records")
        return report
