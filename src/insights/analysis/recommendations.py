#!/usr/bin/env python3
"""
Recommendation rules.

Recommendations are declared as a table of rules. Each rule lists the
analysis types it applies to, a set of conditions over a flat metric
context, and a text template rendered with that context.
"""

import operator
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..models.insight import Score
from ..models.statistics import GroupStatistics
from .scoring import mean_severity

logger = logging.getLogger(__name__)


def _contains(value: Any, threshold: Any) -> bool:
    return str(threshold).lower() in str(value).lower()


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    '>': operator.gt,
    '>=': operator.ge,
    '<': operator.lt,
    '<=': operator.le,
    '==': operator.eq,
    '!=': operator.ne,
    'contains': _contains,
}


@dataclass(frozen=True)
class Condition:
    """One comparison against the metric context."""
    metric: str
    operator: str
    threshold: Any

    def __post_init__(self):
        if self.operator not in OPERATORS:
            raise ValueError(f"Unknown operator '{self.operator}'")

    def evaluate(self, context: Dict[str, Any]) -> bool:
        """False when the metric is absent from the context."""
        value = context.get(self.metric)
        if value is None:
            return False
        try:
            return OPERATORS[self.operator](value, self.threshold)
        except TypeError:
            return False


@dataclass(frozen=True)
class RecommendationRule:
    """A recommendation emitted when all conditions hold."""
    name: str
    analysis_types: Tuple[str, ...]
    conditions: Tuple[Condition, ...]
    template: str

    def applies(self, analysis_type: str, context: Dict[str, Any]) -> bool:
        if self.analysis_types and analysis_type not in self.analysis_types:
            return False
        return all(condition.evaluate(context) for condition in self.conditions)

    def render(self, context: Dict[str, Any]) -> str:
        return self.template.format(**context)


def rule(name: str, analysis_types: Sequence[str], conditions: Sequence[Tuple[str, str, Any]],
         template: str) -> RecommendationRule:
    """Shorthand for declaring a rule from (metric, operator, threshold) triples."""
    return RecommendationRule(
        name=name,
        analysis_types=tuple(analysis_types),
        conditions=tuple(Condition(*condition) for condition in conditions),
        template=template,
    )


ALL_TYPES: Tuple[str, ...] = ()

DEFAULT_RULES: List[RecommendationRule] = [
    rule('increased_monitoring', ALL_TYPES,
         [('confidence', '>', 0.8), ('hypoglycemia_ratio', '>', 0.1)],
         'Increase glucose monitoring frequency while this pattern persists'),
    rule('severe_hypoglycemia', ALL_TYPES, [('hypoglycemia_severity', '==', 'severe')],
         'Readings below 40 mg/dL were recorded - review the hypoglycemia treatment plan with a healthcare provider'),
    rule('glucose_outliers', ALL_TYPES, [('anomaly_count', '>', 0)],
         'Outlying glucose readings detected - check sensor accuracy and note what preceded them'),
    rule('rising_out_of_range', ALL_TYPES, [('glucose_trend', '==', 'increasing'), ('time_in_range', '<', 70)],
         'Glucose is trending upward while out of range - review recent changes in routine'),

    # Device performance
    rule('device_settings', ['device_glucose'], [('time_in_range', '<', 70)],
         'Consider adjusting {pattern} settings for better glucose control'),
    rule('device_reports', ['device_glucose'], [('complaint_count', '>', 5)],
         'Monitor {pattern} for potential issues based on user reports'),
    rule('device_safety', ['device_glucose'], [('hypoglycemia_risk', '>', 10)],
         'Review {pattern} safety settings to reduce hypoglycemia risk'),

    # Medication effectiveness
    rule('medication_alternatives', ['medication_effectiveness'], [('effectiveness', '<', 5)],
         'Consider alternative medications if {pattern} is not providing adequate control'),
    rule('medication_dosing', ['medication_effectiveness'], [('hypoglycemia_risk', '>', 15)],
         'Monitor {pattern} dosing to prevent hypoglycemia episodes'),

    # Environment
    rule('environment_strong', ['environmental_impact'], [('strength', '>', 0.6)],
         'Environmental conditions significantly affect glucose control - monitor closely'),
    rule('environment_heat', ['environmental_impact'], [('pattern', 'contains', 'hot')],
         'High temperatures may affect insulin absorption - store properly'),
    rule('environment_humidity', ['environmental_impact'], [('pattern', 'contains', 'humid')],
         'Humidity may affect device performance - keep devices dry'),

    # Geography
    rule('geographic_devices', ['geographic_patterns'], [('device_diversity', '<', 3)],
         'Limited device options in {pattern} - explore additional diabetes management tools'),
    rule('geographic_medications', ['geographic_patterns'], [('medication_diversity', '<', 2)],
         'Limited medication variety in {pattern} - discuss alternatives with healthcare provider'),
    rule('geographic_control', ['geographic_patterns'], [('time_in_range', '<', 70)],
         'Glucose control in {pattern} could be improved - consider regional diabetes management programs'),

    # Time of day
    rule('overnight_hypoglycemia', ['temporal_patterns'],
         [('pattern', '==', 'night'), ('hypoglycemia_risk', '>', 10)],
         'Nighttime hypoglycemia risk detected - consider overnight glucose monitoring'),
    rule('dawn_phenomenon', ['temporal_patterns'],
         [('pattern', '==', 'morning'), ('mean', '>', 200)],
         'Morning glucose spikes detected - review dawn phenomenon management'),
    rule('temporal_strong', ['temporal_patterns'], [('strength', '>', 0.6)],
         'Time of day significantly affects glucose control - adjust management accordingly'),

    # Device and medication combinations
    rule('interaction_good', ['device_medication_interaction'], [('interaction_score', '>', 8)],
         '{device} and {medication} work well together - maintain current regimen'),
    rule('interaction_poor', ['device_medication_interaction'], [('interaction_score', '<', 5)],
         'Consider alternative {device} or {medication} combinations for better control'),
    rule('interaction_hypoglycemia', ['device_medication_interaction'], [('hypoglycemia_risk', '>', 15)],
         'Monitor for potential interactions between {device} and {medication}'),

    # Lifestyle
    rule('lifestyle_impact', ['lifestyle_factors'], [('lifestyle_impact', '==', 'high')],
         'Lifestyle factors have significant impact on glucose control - focus on optimization'),
    rule('lifestyle_exercise', ['lifestyle_factors'],
         [('pattern', 'contains', 'none'), ('time_in_range', '<', 70)],
         'Consider adding exercise to improve glucose control'),
    rule('lifestyle_stress', ['lifestyle_factors'],
         [('pattern', 'contains', 'stress:high'), ('mean', '>', 180)],
         'High stress levels may affect glucose control - consider stress management'),
    rule('lifestyle_sleep', ['lifestyle_factors'],
         [('pattern', 'contains', 'insufficient'), ('hypoglycemia_risk', '>', 10)],
         'Insufficient sleep may contribute to glucose control issues - aim for 7-9 hours'),

    # Device complaints
    rule('complaints_critical', ['device_complaints'], [('mean_severity', '>=', 3)],
         'Serious adverse events reported for {pattern} - review device safety communications'),
    rule('complaints_volume', ['device_complaints'], [('record_count', '>', 5)],
         'Monitor {pattern} for potential issues based on user reports'),

    # Community reports
    rule('community_validation', ['keyword_correlation'],
         [('platform_count', '>=', 2), ('direction', '==', 'positive')],
         'Reports of "{pattern}" recur across platforms - track individual response before adopting'),
    rule('community_caution', ['keyword_correlation'], [('direction', '==', 'negative')],
         'Reports of "{pattern}" are mostly negative - discuss with a healthcare provider'),
]


def build_metric_context(pattern: str, statistics: GroupStatistics, score: Score) -> Dict[str, Any]:
    """
    Flatten statistics and score into the context rules are evaluated against.

    Series fields appear both as percentages (time_in_range,
    hypoglycemia_risk) and as ratios (hypoglycemia_ratio).
    """
    device, _, medication = pattern.partition('+')
    context: Dict[str, Any] = {
        'pattern': pattern,
        'device': device,
        'medication': medication or pattern,
        'confidence': score.confidence,
        'strength': score.strength,
        'direction': score.direction,
        'record_count': statistics.count,
        'platform_count': len(statistics.platforms),
        'region_count': len(statistics.regions),
        'device_diversity': len(statistics.tag_counts.get('device', {})),
        'medication_diversity': len(statistics.tag_counts.get('insulin', {})),
        'complaint_count': sum(statistics.tag_counts.get('complaint', {}).values()),
    }

    severity = mean_severity(statistics)
    if severity is not None:
        context['mean_severity'] = severity

    series = statistics.series
    if series is not None:
        stability_points = min(series.stability / 2.0, 1.0)
        context.update({
            'mean': series.mean,
            'std': series.std,
            'stability': series.stability,
            'time_in_range': series.time_in_range,
            'hypoglycemia_risk': series.hypoglycemia_risk,
            'hyperglycemia_risk': series.hyperglycemia_risk,
            'in_range_ratio': series.in_range_ratio,
            'hypoglycemia_ratio': series.below_range_ratio,
            'hypoglycemia_severity': series.hypoglycemia_severity,
            'anomaly_count': series.anomaly_count,
            'glucose_trend': series.trend,
            'trend_slope': series.trend_slope,
            # 0-10 scales
            'effectiveness': (series.in_range_ratio * 4
                              + min(series.stability / 2.0, 3.0)
                              + (1 - series.below_range_ratio) * 3),
            'interaction_score': (series.in_range_ratio * 5
                                  + max(0.0, (10 - context['complaint_count']) / 10 * 3)
                                  + min(series.stability / 2.0, 2.0)),
        })
        correlation = (series.in_range_ratio + stability_points) / 2.0
        if correlation > 0.7:
            context['lifestyle_impact'] = 'high'
        elif correlation > 0.4:
            context['lifestyle_impact'] = 'medium'
        else:
            context['lifestyle_impact'] = 'low'

    return context


def select_recommendations(analysis_type: str, context: Dict[str, Any],
                           rules: Optional[Sequence[RecommendationRule]] = None) -> List[str]:
    """
    Evaluate the rule table and return matching recommendation texts.

    Texts keep rule order and are de-duplicated.
    """
    selected: List[str] = []
    for candidate in (DEFAULT_RULES if rules is None else rules):
        if not candidate.applies(analysis_type, context):
            continue
        try:
            text = candidate.render(context)
        except (KeyError, IndexError) as e:
            logger.warning(f"Recommendation rule {candidate.name} could not be rendered: {e}")
            continue
        if text not in selected:
            selected.append(text)
    return selected
