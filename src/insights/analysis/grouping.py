#!/usr/bin/env python3
"""
Grouping stage.

Partitions records by a key extractor. A key extractor returns a single
key, None (record omitted) or an iterable of keys (record placed in each).
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Union

from ..categories import (
    categorize_time_period, categorize_temperature, categorize_humidity,
    categorize_air_quality, categorize_stress, categorize_sleep
)
from ..models.record import Record

logger = logging.getLogger(__name__)

KeyResult = Union[None, str, Iterable[str]]
KeyFunction = Callable[[Record], KeyResult]


def group_records(records: Iterable[Record], key_fn: KeyFunction) -> Dict[str, List[Record]]:
    """
    Group records by the keys produced by key_fn.

    Records keep their input order within each group. A record whose key
    extraction fails is logged and left out.

    Args:
        records: Records to group
        key_fn: Key extractor

    Returns:
        Mapping of group key to records, in first-seen key order
    """
    groups: Dict[str, List[Record]] = {}

    for record in records:
        try:
            keys = _normalize_keys(key_fn(record))
        except Exception as e:
            logger.warning(f"Key extraction failed for record {record.record_id}: {e}")
            continue

        for key in keys:
            groups.setdefault(key, []).append(record)

    return groups


def _normalize_keys(result: KeyResult) -> List[str]:
    if result is None:
        return []
    if isinstance(result, str):
        return [result] if result else []

    keys: List[str] = []
    for item in result:
        if item is None:
            continue
        key = str(item)
        if key and key not in keys:
            keys.append(key)
    return keys


# Key extractors

def by_keyword(record: Record) -> KeyResult:
    return record.keywords or None


def by_region(record: Record) -> KeyResult:
    return record.region


def by_tag(name: str) -> KeyFunction:
    """Build an extractor that groups by the value of one tag."""
    def extract(record: Record) -> KeyResult:
        value = record.tags.get(name)
        return value or None
    extract.__name__ = f"by_tag_{name}"
    return extract


def by_time_period(record: Record) -> KeyResult:
    return categorize_time_period(record.timestamp.hour)


def _numeric_tag(record: Record, name: str) -> Optional[float]:
    raw = record.tags.get(name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def by_environment(record: Record) -> KeyResult:
    """Combined temperature / humidity / air-quality category."""
    parts = []

    temperature = _numeric_tag(record, 'temperature')
    if temperature is not None:
        parts.append(categorize_temperature(temperature))

    humidity = _numeric_tag(record, 'humidity')
    if humidity is not None:
        parts.append(categorize_humidity(humidity))

    air_quality = _numeric_tag(record, 'air_quality')
    if air_quality is not None:
        parts.append(f"aqi_{categorize_air_quality(air_quality)}")

    return '_'.join(parts) or None


def by_lifestyle(record: Record) -> KeyResult:
    """
    Exercise / stress / sleep profile.

    Keys look like ``exercise:none|stress:high|sleep:adequate``. Records with
    no lifestyle tags fall back to their extracted lifestyle terms.
    """
    stress = _numeric_tag(record, 'stress')
    sleep = _numeric_tag(record, 'sleep_hours')
    exercise = record.tags.get('exercise')

    if stress is None and sleep is None and exercise is None:
        return record.lifestyle_factors or None

    parts = [f"exercise:{exercise or 'none'}"]
    if stress is not None:
        parts.append(f"stress:{categorize_stress(stress)}")
    if sleep is not None:
        parts.append(f"sleep:{categorize_sleep(sleep)}")
    return '|'.join(parts)


def by_device_medication(record: Record) -> KeyResult:
    device = record.tags.get('device')
    insulin = record.tags.get('insulin')
    if not device or not insulin:
        return None
    return f"{device}+{insulin}"
