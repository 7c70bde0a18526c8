#!/usr/bin/env python3
"""
Topic knowledge table.

Background for community-reported remedies that recur in keyword groups.
A keyword group is enriched with the first topic whose marker occurs in the
group key.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class TopicKnowledge:
    """Background for one recurring topic."""
    marker: str
    title: str
    description: str
    mechanism: str
    evidence_level: str
    risk_factors: List[str] = field(default_factory=list)
    benefits: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


TOPICS: Sequence[TopicKnowledge] = (
    TopicKnowledge(
        marker='lemon',
        title='Lemon for Hypoglycemic Confusion Relief',
        description=('Posts across platforms indicate that lemon consumption helps with '
                     'confusion during low blood sugar episodes.'),
        mechanism=('Citric acid stimulates saliva production and may improve electrolyte '
                   'balance, while the sour taste triggers alertness responses.'),
        evidence_level='emerging',
        risk_factors=['Citrus allergies', 'Acid reflux', 'Dental sensitivity'],
        benefits=['Rapid confusion relief', 'Natural remedy', 'No additional glucose intake'],
        recommendations=[
            'Keep fresh lemons available during activities',
            'Monitor individual effectiveness',
            'Consider lemon-flavored alternatives if needed',
        ],
    ),
    TopicKnowledge(
        marker='cinnamon',
        title='Cinnamon for Blood Sugar Stabilization',
        description=('Reports suggest cinnamon supplementation may help stabilize blood '
                     'sugar levels in Type 1 diabetes.'),
        mechanism=('Cinnamon contains compounds that may improve insulin sensitivity and '
                   'slow glucose absorption.'),
        evidence_level='emerging',
        risk_factors=['Liver conditions', 'Blood thinning medications'],
        benefits=['Improved glucose stability', 'Natural supplement', 'Potential cardiovascular benefits'],
        recommendations=[
            'Consider 1-2g daily cinnamon supplementation',
            'Monitor glucose response patterns',
            'Consult healthcare provider before starting',
        ],
    ),
    TopicKnowledge(
        marker='cold',
        title='Cold Exposure Therapy for Insulin Sensitivity',
        description=('Reports indicate cold exposure (cold showers, ice baths) may improve '
                     'insulin sensitivity and glucose control.'),
        mechanism=('Cold exposure activates brown fat tissue, which burns glucose and may '
                   'improve insulin sensitivity.'),
        evidence_level='emerging',
        risk_factors=['Heart conditions', 'Cold intolerance', "Raynaud's phenomenon"],
        benefits=['Improved insulin sensitivity', 'Enhanced metabolism', 'Potential weight management'],
        recommendations=[
            'Start with cold showers (30-60 seconds)',
            'Gradually increase exposure time',
            'Monitor glucose response and consult healthcare provider',
        ],
    ),
    TopicKnowledge(
        marker='fasting',
        title='Intermittent Fasting and Glucose Control',
        description=('People with Type 1 diabetes report better glucose control when '
                     'experimenting with intermittent fasting.'),
        mechanism='Longer fasting windows reduce post-meal glucose excursions and change basal insulin needs.',
        evidence_level='anecdotal',
        risk_factors=['Hypoglycemia during fasting windows', 'Ketone buildup'],
        benefits=['Fewer post-meal spikes', 'Simpler meal planning'],
        recommendations=[
            'Review basal insulin settings before extending fasting windows',
            'Check ketones during prolonged fasts',
        ],
    ),
)


def find_topic(pattern: str, topics: Sequence[TopicKnowledge] = TOPICS) -> Optional[TopicKnowledge]:
    """Return the first topic whose marker occurs in the pattern."""
    lowered = pattern.lower()
    for topic in topics:
        if topic.marker in lowered:
            return topic
    return None
