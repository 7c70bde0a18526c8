#!/usr/bin/env python3
"""
Categorical bucketing helpers.

Maps raw observations (locations, hours, environmental readings, lifestyle
scores) onto the coarse labels used as grouping keys.
"""

import re
from typing import Optional, Sequence, Tuple

# Ordered lookup: first matching marker wins.
REGION_MARKERS: Sequence[Tuple[str, str]] = (
    ('USA', 'North America'),
    ('United States', 'North America'),
    ('California', 'North America'),
    ('Texas', 'North America'),
    ('Canada', 'North America'),
    ('Toronto', 'North America'),
    ('UK', 'Europe'),
    ('United Kingdom', 'Europe'),
    ('London', 'Europe'),
    ('Germany', 'Europe'),
    ('Berlin', 'Europe'),
    ('France', 'Europe'),
    ('Europe', 'Europe'),
    ('Australia', 'Oceania'),
    ('Melbourne', 'Oceania'),
    ('Japan', 'Asia'),
    ('India', 'Asia'),
    ('China', 'Asia'),
    ('Asia', 'Asia'),
    ('Brazil', 'South America'),
    ('Africa', 'Africa'),
)

UNKNOWN = 'Unknown'

_REGION_PATTERNS = [
    (re.compile(rf"\b{re.escape(marker)}\b", re.IGNORECASE), region)
    for marker, region in REGION_MARKERS
]


def extract_region(location: Optional[str]) -> str:
    """Map a free-text location onto a coarse world region by whole-word markers."""
    if not location:
        return UNKNOWN
    for pattern, region in _REGION_PATTERNS:
        if pattern.search(location):
            return region
    return 'Other'


def categorize_time_period(hour: int) -> str:
    if 6 <= hour < 12:
        return 'morning'
    if 12 <= hour < 18:
        return 'afternoon'
    if 18 <= hour < 22:
        return 'evening'
    return 'night'


def categorize_temperature(celsius: float) -> str:
    if celsius < 10:
        return 'cold'
    if celsius < 20:
        return 'cool'
    if celsius < 30:
        return 'warm'
    return 'hot'


def categorize_humidity(percent: float) -> str:
    if percent < 30:
        return 'dry'
    if percent < 60:
        return 'moderate'
    return 'humid'


def categorize_air_quality(aqi: float) -> str:
    if aqi < 50:
        return 'good'
    if aqi < 100:
        return 'moderate'
    if aqi < 150:
        return 'unhealthy_sensitive'
    return 'unhealthy'


def categorize_stress(level: float) -> str:
    """Stress on a 0-10 self-reported scale."""
    if level < 3:
        return 'low'
    if level < 7:
        return 'moderate'
    return 'high'


def categorize_sleep(hours: float) -> str:
    if hours < 6:
        return 'insufficient'
    if hours < 8:
        return 'adequate'
    return 'optimal'


def categorize_device(device_name: Optional[str]) -> str:
    """Coarse device class from a free-text device name."""
    name = (device_name or '').lower()
    if 'pump' in name:
        return 'insulin_pump'
    if 'cgm' in name or 'monitor' in name:
        return 'glucose_monitor'
    if 'pen' in name:
        return 'insulin_pen'
    if 'supply' in name:
        return 'pump_supplies'
    return 'other'


def assess_complaint_severity(event_type: Optional[str]) -> str:
    """Severity label for an adverse-event type."""
    text = (event_type or '').lower()
    if 'death' in text:
        return 'critical'
    if 'injury' in text:
        return 'high'
    if 'malfunction' in text:
        return 'medium'
    return 'low'
