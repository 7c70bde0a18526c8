#!/usr/bin/env python3
"""
Bundled sample data for offline runs.

Five community posts, a handful of device complaints and a deterministic
two-week series of tagged glucose readings.
"""

import math
from datetime import datetime, timedelta
from typing import Any, Dict, List

import pytz

SAMPLE_POSTS: List[Dict[str, Any]] = [
    {
        'id': 'post_001',
        'platform': 'reddit',
        'content': ('Anyone else find that sucking on a lemon helps with confusion during low blood sugar? '
                    'It really helps me think clearly!'),
        'location': 'California, USA',
        'timestamp': '2024-01-15T00:00:00Z',
        'engagement': {'likes': 45, 'shares': 12, 'comments': 23, 'views': 1200},
        'sentiment': 'positive',
        'keywords': ['lemon', 'confusion', 'low blood sugar', 'clarity'],
        'tags': {'diabetes_type': 'type1'},
        'symptoms': ['confusion', 'low blood sugar'],
        'treatments': ['lemon'],
        'lifestyle_factors': ['diet'],
    },
    {
        'id': 'post_002',
        'platform': 'twitter',
        'content': ('Pro tip: Keep lemon slices in your diabetes kit. The citric acid helps with electrolyte '
                    'balance during hypos. Works wonders!'),
        'location': 'London, UK',
        'timestamp': '2024-01-16T00:00:00Z',
        'engagement': {'likes': 89, 'shares': 34, 'comments': 15, 'views': 3400},
        'sentiment': 'positive',
        'keywords': ['lemon', 'lemon slices', 'diabetes kit', 'citric acid', 'electrolyte balance', 'hypos'],
        'tags': {'diabetes_type': 'type1'},
        'symptoms': ['hypoglycemia'],
        'treatments': ['lemon slices'],
        'lifestyle_factors': ['diet', 'preparation'],
    },
    {
        'id': 'post_003',
        'platform': 'facebook',
        'content': ('My daughter has T1D and we discovered that cinnamon helps stabilize her blood sugar. '
                    'Anyone else have experience with this?'),
        'location': 'Toronto, Canada',
        'timestamp': '2024-01-17T00:00:00Z',
        'engagement': {'likes': 156, 'shares': 67, 'comments': 89, 'views': 8900},
        'sentiment': 'positive',
        'keywords': ['cinnamon', 'stabilize', 'blood sugar', 't1d', 'daughter'],
        'tags': {'diabetes_type': 'type1'},
        'symptoms': ['blood sugar instability'],
        'treatments': ['cinnamon'],
        'lifestyle_factors': ['diet', 'supplements'],
    },
    {
        'id': 'post_004',
        'platform': 'instagram',
        'content': ('Cold showers in the morning have been amazing for my insulin sensitivity! '
                    '#biohacking #diabetes #coldtherapy'),
        'location': 'Berlin, Germany',
        'timestamp': '2024-01-18T00:00:00Z',
        'engagement': {'likes': 234, 'shares': 89, 'comments': 45, 'views': 15600},
        'sentiment': 'positive',
        'keywords': ['cold showers', 'morning', 'insulin sensitivity', 'biohacking', 'cold therapy'],
        'tags': {'diabetes_type': 'type1'},
        'symptoms': ['insulin resistance'],
        'treatments': ['cold showers'],
        'lifestyle_factors': ['exercise', 'temperature'],
    },
    {
        'id': 'post_005',
        'platform': 'reddit',
        'content': ("Anyone tried intermittent fasting with T1D? I've noticed better glucose control "
                    "but want to hear others' experiences."),
        'location': 'Melbourne, Australia',
        'timestamp': '2024-01-19T00:00:00Z',
        'engagement': {'likes': 78, 'shares': 23, 'comments': 67, 'views': 2100},
        'sentiment': 'neutral',
        'keywords': ['intermittent fasting', 't1d', 'glucose control', 'experiences'],
        'tags': {'diabetes_type': 'type1'},
        'symptoms': ['glucose control issues'],
        'treatments': ['intermittent fasting'],
        'lifestyle_factors': ['diet', 'timing'],
    },
]

SAMPLE_COMPLAINTS: List[Dict[str, Any]] = [
    {
        'id': 'maude_sample_001',
        'kind': 'complaint',
        'platform': 'FDA MAUDE',
        'content': 'Pod occlusion alarm during bolus delivery; patient experienced hyperglycemia.',
        'timestamp': '2024-01-10T00:00:00Z',
        'tags': {'device': 'Omnipod 5', 'device_type': 'insulin_pump', 'event_type': 'Malfunction',
                 'severity': 'medium'},
        'sentiment': 'negative',
    },
    {
        'id': 'maude_sample_002',
        'kind': 'complaint',
        'platform': 'FDA MAUDE',
        'content': 'Pod failed shortly after activation and had to be replaced.',
        'timestamp': '2024-01-12T00:00:00Z',
        'tags': {'device': 'Omnipod 5', 'device_type': 'insulin_pump', 'event_type': 'Malfunction',
                 'severity': 'medium'},
        'sentiment': 'negative',
    },
    {
        'id': 'maude_sample_003',
        'kind': 'complaint',
        'platform': 'FDA MAUDE',
        'content': 'Delivery error led to severe hyperglycemia requiring emergency treatment.',
        'timestamp': '2024-01-16T00:00:00Z',
        'tags': {'device': 'Omnipod 5', 'device_type': 'insulin_pump', 'event_type': 'Injury',
                 'severity': 'high'},
        'sentiment': 'negative',
    },
    {
        'id': 'maude_sample_004',
        'kind': 'complaint',
        'platform': 'FDA MAUDE',
        'content': 'Sensor readings significantly lower than fingerstick values.',
        'timestamp': '2024-01-11T00:00:00Z',
        'tags': {'device': 'Dexcom G7', 'device_type': 'glucose_monitor', 'event_type': 'Malfunction',
                 'severity': 'medium'},
        'sentiment': 'negative',
    },
    {
        'id': 'maude_sample_005',
        'kind': 'complaint',
        'platform': 'FDA MAUDE',
        'content': 'Sensor signal loss overnight; no alerts were delivered.',
        'timestamp': '2024-01-17T00:00:00Z',
        'tags': {'device': 'Dexcom G7', 'device_type': 'glucose_monitor', 'event_type': 'Malfunction',
                 'severity': 'medium'},
        'sentiment': 'negative',
    },
    {
        'id': 'maude_sample_006',
        'kind': 'complaint',
        'platform': 'FDA MAUDE',
        'content': 'Cartridge leak caused missed insulin and hospitalization for DKA.',
        'timestamp': '2024-01-18T00:00:00Z',
        'tags': {'device': 'Tandem t:slim X2', 'device_type': 'insulin_pump', 'event_type': 'Injury',
                 'severity': 'high'},
        'sentiment': 'negative',
    },
]

DEVICES = ('Dexcom G7', 'Omnipod 5', 'Tandem t:slim X2')
INSULINS = ('Humalog', 'Novolog', 'Fiasp')
LOCATIONS = ('California, USA', 'London, UK', 'Toronto, Canada', 'Berlin, Germany', 'Melbourne, Australia')
EXERCISE_LEVELS = ('none', 'light', 'moderate')
READING_HOURS = (3, 7, 10, 14, 19, 23)

DEVICE_OFFSETS = {'Dexcom G7': -10.0, 'Omnipod 5': 5.0, 'Tandem t:slim X2': 20.0}
INSULIN_OFFSETS = {'Humalog': 0.0, 'Novolog': 8.0, 'Fiasp': -6.0}
HOUR_OFFSETS = {3: -55.0, 7: 75.0, 10: 65.0, 14: 0.0, 19: 15.0, 23: -50.0}
BASE_GLUCOSE = 135.0


def generate_glucose_readings(days: int = 14,
                              start: datetime = datetime(2024, 1, 6, tzinfo=pytz.utc)) -> List[Dict[str, Any]]:
    """
    Deterministic tagged glucose readings.

    Every reading carries device, insulin, environment and lifestyle tags so
    each glucose dimension has groups to analyze.
    """
    readings: List[Dict[str, Any]] = []
    index = 0
    for day in range(days):
        for slot, hour in enumerate(READING_HOURS):
            device = DEVICES[index % len(DEVICES)]
            insulin = INSULINS[(index // len(DEVICES)) % len(INSULINS)]
            value = (BASE_GLUCOSE + HOUR_OFFSETS[hour] + DEVICE_OFFSETS[device]
                     + INSULIN_OFFSETS[insulin] + 30.0 * math.sin(index * 1.3))
            timestamp = start + timedelta(days=day, hours=hour)

            readings.append({
                'id': f"glucose_{index:03d}",
                'kind': 'glucose',
                'platform': 'CGM',
                'content': f"{value:.0f} mg/dL on {device} with {insulin}",
                'timestamp': timestamp.isoformat(),
                'location': LOCATIONS[day % len(LOCATIONS)],
                'value': round(value, 1),
                'tags': {
                    'device': device,
                    'insulin': insulin,
                    'temperature': str(4 + (day * 7) % 32),
                    'humidity': str(25 + (day * 13) % 60),
                    'air_quality': str(20 + (day * 17) % 140),
                    'stress': str((day * 3 + slot) % 10),
                    'sleep_hours': str(5 + day % 5),
                    'exercise': EXERCISE_LEVELS[day % len(EXERCISE_LEVELS)],
                },
            })
            index += 1
    return readings


def sample_records_data() -> List[Dict[str, Any]]:
    """All bundled sample records as dictionaries."""
    return [dict(post) for post in SAMPLE_POSTS] + [dict(c) for c in SAMPLE_COMPLAINTS] + generate_glucose_readings()
