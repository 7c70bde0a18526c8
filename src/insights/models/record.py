#!/usr/bin/env python3
"""
Record data model.

A Record is one tagged observation: a social post, a glucose reading, a
device complaint or a research abstract. Records are immutable once built.
"""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

import pytz
from dateutil import parser as date_parser

from ..categories import extract_region
from ..exceptions import MalformedRecordError

RECORD_KINDS = ('post', 'glucose', 'complaint', 'research')
SENTIMENTS = ('positive', 'negative', 'neutral', 'mixed')


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp into a timezone-aware datetime.

    Accepts datetimes, epoch seconds and date strings. Naive values are
    assumed to be UTC. Returns None when the value cannot be parsed.
    """
    if value is None or value == '':
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=pytz.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            dt = date_parser.parse(value)
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt


def _normalize_terms(terms: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Lower-case, strip and de-duplicate terms, keeping first-seen order."""
    if not terms:
        return ()
    if isinstance(terms, str):
        terms = [terms]
    seen = []
    for term in terms:
        if term is None:
            continue
        cleaned = str(term).strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return tuple(seen)


def _text(field_name: str, value: Any, record_id: Optional[str]) -> str:
    if value is None:
        return ''
    if not isinstance(value, str):
        raise MalformedRecordError(field_name, f"must be text, got {type(value).__name__}", record_id)
    return value.strip()


def _terms(field_name: str, value: Any, record_id: Optional[str]) -> Tuple[str, ...]:
    try:
        return _normalize_terms(value)
    except TypeError:
        raise MalformedRecordError(field_name, 'must be a list of terms', record_id)


def _mapping(field_name: str, value: Any, convert, record_id: Optional[str]) -> Dict[str, Any]:
    """Mapping with string keys and converted values, None values dropped."""
    if not value:
        return {}
    if not isinstance(value, dict):
        raise MalformedRecordError(field_name, f"must be a mapping, got {type(value).__name__}", record_id)
    try:
        return {str(k): convert(v) for k, v in value.items() if v is not None}
    except (TypeError, ValueError) as e:
        raise MalformedRecordError(field_name, f"has an invalid value ({e})", record_id)


def _content_id(platform: str, timestamp: datetime, content: str) -> str:
    digest = hashlib.md5(f"{platform}|{timestamp.isoformat()}|{content}".encode('utf-8')).hexdigest()
    return f"rec_{digest[:12]}"


@dataclass(frozen=True)
class Record:
    """
    A single tagged observation consumed by the insight pipeline.

    `keywords` and the extracted term tuples are normalized to lower case.
    `value` holds the numeric metric for glucose readings (mg/dL).
    """
    content: str
    platform: str
    timestamp: datetime
    kind: str = 'post'
    record_id: str = ''
    location: str = ''
    keywords: Tuple[str, ...] = ()
    tags: Dict[str, str] = field(default_factory=dict)
    value: Optional[float] = None
    sentiment: str = 'neutral'
    engagement: Dict[str, int] = field(default_factory=dict)
    symptoms: Tuple[str, ...] = ()
    treatments: Tuple[str, ...] = ()
    medications: Tuple[str, ...] = ()
    lifestyle_factors: Tuple[str, ...] = ()

    def __post_init__(self):
        """
        Validate required fields and normalize tag collections.

        Raises:
            MalformedRecordError: For any field that cannot be converted
        """
        record_id = str(self.record_id) if self.record_id else None

        content = _text('content', self.content, record_id)
        if not content:
            raise MalformedRecordError('content', 'is empty', record_id)

        timestamp = parse_timestamp(self.timestamp)
        if timestamp is None:
            raise MalformedRecordError('timestamp', 'is missing or unparseable', record_id)

        kind = _text('kind', self.kind, record_id).lower() or 'post'
        if kind not in RECORD_KINDS:
            raise MalformedRecordError('kind', f"must be one of {', '.join(RECORD_KINDS)}", record_id)

        sentiment = _text('sentiment', self.sentiment, record_id).lower()
        if sentiment not in SENTIMENTS:
            sentiment = 'neutral'

        value = self.value
        if value is not None:
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise MalformedRecordError('value', 'is not numeric', record_id)

        platform = _text('platform', self.platform, record_id) or 'unknown'

        object.__setattr__(self, 'record_id', record_id or '')
        object.__setattr__(self, 'content', content)
        object.__setattr__(self, 'timestamp', timestamp)
        object.__setattr__(self, 'kind', kind)
        object.__setattr__(self, 'sentiment', sentiment)
        object.__setattr__(self, 'value', value)
        object.__setattr__(self, 'platform', platform)
        object.__setattr__(self, 'location', _text('location', self.location, record_id))
        for name in ('keywords', 'symptoms', 'treatments', 'medications', 'lifestyle_factors'):
            object.__setattr__(self, name, _terms(name, getattr(self, name), record_id))
        object.__setattr__(self, 'tags', _mapping('tags', self.tags, str, record_id))
        object.__setattr__(self, 'engagement', _mapping('engagement', self.engagement, int, record_id))

        if not self.record_id:
            object.__setattr__(self, 'record_id', _content_id(platform, timestamp, content))

    @property
    def region(self) -> str:
        """Coarse world region derived from the location label."""
        return extract_region(self.location)

    @property
    def engagement_total(self) -> int:
        """Likes + shares + comments (views excluded)."""
        return sum(self.engagement.get(name, 0) for name in ('likes', 'shares', 'comments'))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'record_id': self.record_id,
            'kind': self.kind,
            'content': self.content,
            'platform': self.platform,
            'timestamp': self.timestamp.isoformat(),
            'location': self.location,
            'keywords': list(self.keywords),
            'tags': dict(self.tags),
            'value': self.value,
            'sentiment': self.sentiment,
            'engagement': dict(self.engagement),
            'symptoms': list(self.symptoms),
            'treatments': list(self.treatments),
            'medications': list(self.medications),
            'lifestyle_factors': list(self.lifestyle_factors),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Record':
        """
        Create a Record from a dictionary.

        Raises:
            MalformedRecordError: If content or timestamp is missing or invalid
        """
        if not isinstance(data, dict):
            raise MalformedRecordError('record', f"expected mapping, got {type(data).__name__}")

        record_id = str(data.get('record_id') or data.get('id') or '')
        content = data.get('content')
        if not isinstance(content, str) or not content.strip():
            raise MalformedRecordError('content', 'is missing', record_id or None)

        raw_timestamp = data.get('timestamp')
        if parse_timestamp(raw_timestamp) is None:
            raise MalformedRecordError('timestamp', 'is missing or unparseable', record_id or None)

        return cls(
            record_id=record_id,
            kind=data.get('kind', 'post'),
            content=content,
            platform=data.get('platform') or data.get('source') or 'unknown',
            timestamp=raw_timestamp,
            location=data.get('location') or '',
            keywords=data.get('keywords') or (),
            tags=data.get('tags') or {},
            value=data.get('value'),
            sentiment=data.get('sentiment') or 'neutral',
            engagement=data.get('engagement') or {},
            symptoms=data.get('symptoms') or (),
            treatments=data.get('treatments') or (),
            medications=data.get('medications') or (),
            lifestyle_factors=data.get('lifestyle_factors') or (),
        )

    def __repr__(self):
        return f"Record(id='{self.record_id}', kind='{self.kind}', platform='{self.platform}', content='{self.content[:40]}...')"
