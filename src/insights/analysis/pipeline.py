#!/usr/bin/env python3
"""
Analysis pipeline orchestration.

Provides the framework for running the validation, grouping, statistics,
scoring and assembly stages over a batch of records, sharing results
through a context dictionary.
"""

import time
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import AnalysisConfig
from ..exceptions import EmptyInputError, MalformedRecordError
from ..models.insight import Insight, Score
from ..models.record import Record
from ..models.statistics import GroupStatistics
from .assembly import assemble_insight
from .dimensions import AnalysisDimension
from .grouping import group_records
from .recommendations import RecommendationRule
from .scoring import score_group
from .statistics import compute_group_statistics

logger = logging.getLogger(__name__)


class AnalysisStage(ABC):
    """Abstract base class for analysis pipeline stages."""

    # A failing critical stage aborts the run instead of being recorded
    critical = False

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize analysis stage.

        Args:
            config: Analysis settings shared by all stages
        """
        self.config = config or AnalysisConfig()
        self.name = self.__class__.__name__

    @abstractmethod
    def process(self, records: Sequence[Any], context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process records through this analysis stage.

        Args:
            records: Raw input records (Record instances or mappings)
            context: Shared context from previous stages

        Returns:
            Results dictionary to be merged into context
        """
        pass

    def can_process(self, records: Sequence[Any], context: Dict[str, Any]) -> bool:
        """
        Check if this stage can process the current context.

        Returns:
            True if stage can process, False otherwise
        """
        return True

    def get_dependencies(self) -> List[str]:
        """
        Get list of stage names this stage depends on.

        Returns:
            List of stage names that must run before this one
        """
        return []


def _cancelled(context: Dict[str, Any]) -> bool:
    event = context.get('cancel_event')
    return event is not None and event.is_set()


class AnalysisPipeline:
    """
    Analysis pipeline that orchestrates multiple analysis stages.

    Supports dependency resolution and per-stage error handling.
    """

    def __init__(self):
        """Initialize empty pipeline."""
        self.stages: Dict[str, AnalysisStage] = {}
        self.stage_order: List[str] = []

    def add_stage(self, stage: AnalysisStage, name: Optional[str] = None) -> 'AnalysisPipeline':
        """
        Add an analysis stage to the pipeline.

        Args:
            stage: Analysis stage to add
            name: Optional custom name (uses class name if not provided)

        Returns:
            Self for method chaining

        Raises:
            ValueError: If the stage introduces a circular dependency
        """
        stage_name = name or stage.__class__.__name__
        self.stages[stage_name] = stage

        try:
            self._resolve_stage_order()
        except ValueError:
            del self.stages[stage_name]
            raise

        logger.debug(f"Added analysis stage: {stage_name}")
        return self

    def run(self, records: Sequence[Any], initial_context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run the analysis pipeline on records.

        Args:
            records: Records to analyze
            initial_context: Initial context for pipeline

        Returns:
            Final context with every stage's results
        """
        if not records:
            logger.warning("No records provided to analysis pipeline")
            return {}

        context = initial_context if initial_context is not None else {}
        context.setdefault('stage_durations', {})
        context.setdefault('stage_errors', {})
        context['records_count'] = len(records)
        pipeline_start = time.perf_counter()

        logger.info(f"Starting analysis pipeline with {len(records)} records")

        for stage_name in self.stage_order:
            if _cancelled(context):
                logger.warning(f"Pipeline cancelled before stage {stage_name}")
                break

            stage = self.stages[stage_name]

            if not stage.can_process(records, context):
                logger.info(f"Skipping stage {stage_name} - cannot process current context")
                continue

            try:
                logger.debug(f"Running analysis stage: {stage_name}")
                stage_start = time.perf_counter()

                stage_results = stage.process(records, context)

                if stage_results:
                    context.update(stage_results)

                stage_duration = time.perf_counter() - stage_start
                context['stage_durations'][stage_name] = stage_duration

                logger.info(f"Completed stage {stage_name} in {stage_duration:.2f}s")

            except Exception as e:
                logger.error(f"Stage {stage_name} failed: {e}", exc_info=True)
                context['stage_errors'][stage_name] = str(e)

                if stage.critical:
                    raise

        pipeline_duration = time.perf_counter() - pipeline_start
        context['pipeline_duration'] = pipeline_duration
        context['pipeline_completed'] = not _cancelled(context)

        logger.info(f"Analysis pipeline completed in {pipeline_duration:.2f}s")
        return context

    def get_stage_info(self) -> Dict[str, Dict[str, Any]]:
        """
        Get information about all stages in the pipeline.

        Returns:
            Dictionary with stage information
        """
        info = {}
        for name, stage in self.stages.items():
            info[name] = {
                'class': stage.__class__.__name__,
                'dependencies': stage.get_dependencies(),
                'critical': stage.critical,
                'order': self.stage_order.index(name) if name in self.stage_order else -1
            }

        return info

    def _resolve_stage_order(self):
        """Resolve stage execution order based on dependencies."""
        visited = set()
        temp_visited = set()
        order = []

        def visit(stage_name: str):
            if stage_name in temp_visited:
                raise ValueError(f"Circular dependency detected involving {stage_name}")

            if stage_name in visited:
                return

            temp_visited.add(stage_name)

            stage = self.stages.get(stage_name)
            if stage:
                for dep in stage.get_dependencies():
                    if dep in self.stages:
                        visit(dep)
                    else:
                        logger.warning(f"Dependency {dep} not found for stage {stage_name}")

            temp_visited.remove(stage_name)
            visited.add(stage_name)
            order.append(stage_name)

        for stage_name in self.stages:
            if stage_name not in visited:
                visit(stage_name)

        self.stage_order = order
        logger.debug(f"Resolved stage order: {self.stage_order}")


# Pre-built stage implementations

class ValidationStage(AnalysisStage):
    """Converts raw inputs to Records and drops malformed ones."""

    def process(self, records: Sequence[Any], context: Dict[str, Any]) -> Dict[str, Any]:
        """Validate records and filter invalid ones."""
        valid_records: List[Record] = []
        validation_errors: List[Dict[str, Any]] = []

        for index, raw in enumerate(records):
            try:
                record = raw if isinstance(raw, Record) else Record.from_dict(raw)
            except MalformedRecordError as e:
                logger.warning(f"Skipping record #{index}: {e.message}")
                error = e.to_dict()
                error['context']['index'] = index
                validation_errors.append(error)
                continue
            valid_records.append(record)

        logger.info(f"Validated {len(valid_records)}/{len(records)} records")

        return {
            'valid_records': valid_records,
            'validation_errors': validation_errors,
            'records_received': len(records),
            'records_valid': len(valid_records),
            'records_skipped': len(records) - len(valid_records),
        }


class GroupingStage(AnalysisStage):
    """Partitions valid records once per analysis dimension."""

    def __init__(self, dimensions: Sequence[AnalysisDimension], config: Optional[AnalysisConfig] = None):
        super().__init__(config)
        self.dimensions = list(dimensions)

    def get_dependencies(self) -> List[str]:
        return ['ValidationStage']

    def process(self, records: Sequence[Any], context: Dict[str, Any]) -> Dict[str, Any]:
        source_records = context.get('valid_records', [])
        groups: Dict[str, Dict[str, List[Record]]] = {}

        for dimension in self.dimensions:
            selected = dimension.select(source_records)
            groups[dimension.name] = group_records(selected, dimension.key_fn)
            logger.debug(f"{dimension.name}: {len(selected)} records in {len(groups[dimension.name])} groups")

        total = sum(len(by_key) for by_key in groups.values())
        logger.info(f"Formed {total} groups across {len(self.dimensions)} dimensions")

        return {
            'dimensions': {dimension.name: dimension for dimension in self.dimensions},
            'groups': groups,
            'groups_formed': total,
        }


class StatisticsStage(AnalysisStage):
    """Computes group statistics in parallel and joins before scoring."""

    def get_dependencies(self) -> List[str]:
        return ['GroupingStage']

    def can_process(self, records: Sequence[Any], context: Dict[str, Any]) -> bool:
        return 'groups' in context

    def process(self, records: Sequence[Any], context: Dict[str, Any]) -> Dict[str, Any]:
        groups: Dict[str, Dict[str, List[Record]]] = context['groups']
        jobs: List[Tuple[str, str, List[Record]]] = [
            (dimension_name, key, members)
            for dimension_name, by_key in groups.items()
            for key, members in by_key.items()
        ]

        statistics: Dict[str, Dict[str, GroupStatistics]] = {name: {} for name in groups}
        statistics_errors: List[Dict[str, Any]] = []

        if not jobs:
            return {'group_statistics': statistics, 'statistics_errors': statistics_errors}

        with ThreadPoolExecutor(max_workers=self.config.max_workers,
                                thread_name_prefix='group-stats') as executor:
            futures = [
                (dimension_name, key, executor.submit(self._compute, key, members, context))
                for dimension_name, key, members in jobs
            ]

            # Collected in submission order so results do not depend on scheduling
            for dimension_name, key, future in futures:
                try:
                    result = future.result()
                except EmptyInputError as e:
                    logger.warning(f"{dimension_name}/{key}: {e.message}")
                    statistics_errors.append(e.to_dict())
                    continue
                except Exception as e:
                    logger.error(f"Statistics failed for {dimension_name}/{key}: {e}", exc_info=True)
                    statistics_errors.append({
                        'error_type': type(e).__name__,
                        'error_code': 'StatisticsError',
                        'message': str(e),
                        'context': {'dimension': dimension_name, 'key': key},
                    })
                    continue
                if result is not None:
                    statistics[dimension_name][key] = result

        computed = sum(len(by_key) for by_key in statistics.values())
        logger.info(f"Computed statistics for {computed}/{len(jobs)} groups")

        return {'group_statistics': statistics, 'statistics_errors': statistics_errors}

    def _compute(self, key: str, members: List[Record], context: Dict[str, Any]) -> Optional[GroupStatistics]:
        if _cancelled(context):
            return None
        return compute_group_statistics(key, members, self.config)


class ScoringStage(AnalysisStage):
    """Scores every group that has statistics."""

    def get_dependencies(self) -> List[str]:
        return ['StatisticsStage']

    def can_process(self, records: Sequence[Any], context: Dict[str, Any]) -> bool:
        return 'group_statistics' in context

    def process(self, records: Sequence[Any], context: Dict[str, Any]) -> Dict[str, Any]:
        scores: Dict[str, Dict[str, Score]] = {}
        reportable = 0

        for dimension_name, by_key in context['group_statistics'].items():
            min_size = self.config.min_group_size(dimension_name)
            scores[dimension_name] = {}
            for key, group_statistics in by_key.items():
                score = score_group(group_statistics, min_size, self.config)
                scores[dimension_name][key] = score
                reportable += int(score.reportable)

        logger.info(f"Scored groups, {reportable} reportable")
        return {'scores': scores, 'reportable_groups': reportable}


class AssemblyStage(AnalysisStage):
    """Assembles insights for reportable groups, ranked by confidence."""

    def __init__(self, rules: Optional[Sequence[RecommendationRule]] = None,
                 config: Optional[AnalysisConfig] = None):
        super().__init__(config)
        self.rules = rules

    def get_dependencies(self) -> List[str]:
        return ['ScoringStage']

    def can_process(self, records: Sequence[Any], context: Dict[str, Any]) -> bool:
        return 'scores' in context

    def process(self, records: Sequence[Any], context: Dict[str, Any]) -> Dict[str, Any]:
        dimensions: Dict[str, AnalysisDimension] = context['dimensions']
        insights: List[Insight] = []

        for dimension_name, by_key in context['scores'].items():
            dimension = dimensions[dimension_name]
            for key, score in by_key.items():
                if not score.reportable:
                    continue
                insights.append(assemble_insight(
                    dimension,
                    key,
                    context['groups'][dimension_name][key],
                    context['group_statistics'][dimension_name][key],
                    score,
                    self.rules,
                ))

        insights.sort(key=lambda insight: (-insight.confidence, insight.insight_id))
        logger.info(f"Assembled {len(insights)} insights")
        return {'insights': insights}
