#!/usr/bin/env python3
"""
Analysis dimensions.

Each dimension names the record kinds it consumes, how they are grouped,
and how resulting insights are titled and described.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.record import Record
from .grouping import (
    KeyFunction, by_keyword, by_tag, by_environment, by_region,
    by_time_period, by_device_medication, by_lifestyle
)


@dataclass(frozen=True)
class AnalysisDimension:
    """One way of slicing records into groups."""
    name: str
    key_fn: KeyFunction
    record_kinds: Tuple[str, ...]
    title_template: str
    description_template: str
    use_topics: bool = False

    def select(self, records: Iterable[Record]) -> List[Record]:
        """Records this dimension consumes, in input order."""
        return [record for record in records if record.kind in self.record_kinds]


GLUCOSE = ('glucose',)

DIMENSIONS: Dict[str, AnalysisDimension] = {
    dimension.name: dimension for dimension in (
        AnalysisDimension(
            name='keyword_correlation',
            key_fn=by_keyword,
            record_kinds=('post', 'research'),
            title_template='Community Reports: {pattern}',
            description_template=("{record_count} record(s) mention '{pattern}' across "
                                  "{platform_count} platform(s) and {region_count} region(s)."),
            use_topics=True,
        ),
        AnalysisDimension(
            name='device_glucose',
            key_fn=by_tag('device'),
            record_kinds=GLUCOSE,
            title_template='Device Performance: {pattern}',
            description_template=('Glucose control with {pattern}: {time_in_range:.1f}% time in range, '
                                  'mean {mean:.0f} mg/dL over {record_count} readings.'),
        ),
        AnalysisDimension(
            name='medication_effectiveness',
            key_fn=by_tag('insulin'),
            record_kinds=GLUCOSE,
            title_template='Medication Effectiveness: {pattern}',
            description_template=('{pattern} scores {effectiveness:.1f}/10 for glucose control '
                                  'with {time_in_range:.1f}% time in range.'),
        ),
        AnalysisDimension(
            name='environmental_impact',
            key_fn=by_environment,
            record_kinds=GLUCOSE,
            title_template='Environmental Impact: {pattern}',
            description_template=('Under {pattern} conditions readings average {mean:.0f} mg/dL '
                                  'with {time_in_range:.1f}% time in range.'),
        ),
        AnalysisDimension(
            name='geographic_patterns',
            key_fn=by_region,
            record_kinds=GLUCOSE,
            title_template='Geographic Pattern: {pattern}',
            description_template=('Readings from {pattern} show {time_in_range:.1f}% time in range '
                                  'across {device_diversity} device(s).'),
        ),
        AnalysisDimension(
            name='temporal_patterns',
            key_fn=by_time_period,
            record_kinds=GLUCOSE,
            title_template='Temporal Pattern: {pattern}',
            description_template=('{pattern} readings average {mean:.0f} mg/dL with '
                                  '{hypoglycemia_risk:.1f}% below range.'),
        ),
        AnalysisDimension(
            name='device_medication_interaction',
            key_fn=by_device_medication,
            record_kinds=GLUCOSE,
            title_template='Device-Medication Interaction: {device} + {medication}',
            description_template=('{device} with {medication} scores {interaction_score:.1f}/10 '
                                  'for combined glucose control.'),
        ),
        AnalysisDimension(
            name='lifestyle_factors',
            key_fn=by_lifestyle,
            record_kinds=GLUCOSE,
            title_template='Lifestyle Impact: {pattern}',
            description_template=('Lifestyle profile {pattern} shows {time_in_range:.1f}% time in range '
                                  '({lifestyle_impact} impact).'),
        ),
        AnalysisDimension(
            name='device_complaints',
            key_fn=by_tag('device'),
            record_kinds=('complaint',),
            title_template='Device Complaints: {pattern}',
            description_template=('{record_count} adverse event report(s) for {pattern} '
                                  'with mean severity {mean_severity:.1f}/4.'),
        ),
    )
}


def get_dimensions(names: Optional[Sequence[str]] = None) -> List[AnalysisDimension]:
    """
    Resolve dimension names, all dimensions when names is empty.

    Raises:
        ValueError: If a name is unknown
    """
    if not names:
        return list(DIMENSIONS.values())

    unknown = [name for name in names if name not in DIMENSIONS]
    if unknown:
        raise ValueError(f"Unknown analysis dimension(s): {', '.join(unknown)}. "
                         f"Available: {', '.join(DIMENSIONS)}")
    return [DIMENSIONS[name] for name in names]
