#!/usr/bin/env python3
"""
Base classes for record sources.

Defines the interface for pluggable sources that fetch and tag records.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config import CollectionConfig
from ..models.record import Record
from .http import HttpFetcher
from .text_features import extract_features


@dataclass
class SourceMetadata:
    """Metadata about a record source."""
    name: str
    display_name: str
    record_kind: str
    description: str
    update_frequency_minutes: int
    reliability_score: float  # 0.0-1.0
    categories: List[str] = field(default_factory=list)
    requires_network: bool = True

    def __post_init__(self):
        """Validate metadata."""
        if not 0.0 <= self.reliability_score <= 1.0:
            raise ValueError("reliability_score must be between 0.0 and 1.0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'display_name': self.display_name,
            'record_kind': self.record_kind,
            'description': self.description,
            'update_frequency_minutes': self.update_frequency_minutes,
            'reliability_score': self.reliability_score,
            'categories': list(self.categories),
            'requires_network': self.requires_network,
        }


class RecordSource(ABC):
    """
    Abstract base class for all record sources.

    Implementations must provide methods to fetch records and metadata.
    """

    def __init__(self, config: Optional[CollectionConfig] = None):
        """
        Initialize record source.

        Args:
            config: Collection settings
        """
        self.config = config or CollectionConfig()

    @abstractmethod
    def fetch_records(self) -> List[Record]:
        """
        Fetch records from this source.

        Returns:
            List of tagged records

        Raises:
            SourceError: If fetching fails
        """
        pass

    @abstractmethod
    def get_metadata(self) -> SourceMetadata:
        pass

    def health_check(self) -> Dict[str, Any]:
        """
        Check if source is available and working.

        Returns:
            Health status dictionary
        """
        return {'available': True}

    @staticmethod
    def make_post(record_id: str, text: str, platform: str, timestamp: Any,
                  engagement: Optional[Dict[str, int]] = None,
                  tags: Optional[Dict[str, str]] = None,
                  kind: str = 'post') -> Record:
        """Build a record from free text, tagging it with extracted features."""
        features = extract_features(text)
        merged_tags = dict(features.pop('tags'))
        merged_tags.update(tags or {})
        return Record(
            record_id=record_id,
            kind=kind,
            content=text,
            platform=platform,
            timestamp=timestamp,
            engagement=engagement or {},
            tags=merged_tags,
            **features
        )


class HttpRecordSource(RecordSource):
    """
    Base class for sources fetched over HTTP.

    Owns an HttpFetcher configured from the collection settings.
    """

    name = 'http'
    health_url = ''

    def __init__(self, config: Optional[CollectionConfig] = None, fetcher: Optional[HttpFetcher] = None):
        """
        Initialize HTTP source.

        Args:
            config: Collection settings
            fetcher: Optional preconfigured fetcher
        """
        super().__init__(config)
        self.fetcher = fetcher or HttpFetcher.from_config(self.name, self.config)

    def health_check(self) -> Dict[str, Any]:
        """Request the source endpoint once."""
        return self.fetcher.check_available(self.health_url)
