#!/usr/bin/env python3
"""
Local record sources.

Reads records from JSON / JSON Lines files and serves the bundled sample
data set for offline runs.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..config import CollectionConfig
from ..exceptions import MalformedRecordError, SourceError, SourceParseError
from ..models.record import Record
from .base import RecordSource, SourceMetadata
from .sample_data import sample_records_data

logger = logging.getLogger(__name__)


def records_from_dicts(items: Iterable[Dict[str, Any]], source_name: str) -> List[Record]:
    """Build records, logging and skipping malformed entries."""
    records: List[Record] = []
    for index, item in enumerate(items):
        try:
            records.append(Record.from_dict(item))
        except MalformedRecordError as e:
            logger.warning(f"{source_name}: skipping entry #{index}: {e.message}")
    return records


class JsonFileSource(RecordSource):
    """Records stored in a JSON array, a {"records": [...]} object or a JSON Lines file."""

    name = 'file'

    def __init__(self, path: Union[str, Path], config: Optional[CollectionConfig] = None):
        super().__init__(config)
        self.path = Path(path)

    def get_metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self.name,
            display_name=f"Local file {self.path.name}",
            record_kind='mixed',
            description=str(self.path),
            update_frequency_minutes=0,
            reliability_score=1.0,
            categories=['local'],
            requires_network=False,
        )

    def load_raw(self) -> List[Dict[str, Any]]:
        """
        Read raw record dictionaries without validating them.

        Raises:
            SourceError: If the file is missing
            SourceParseError: If the file is not valid UTF-8 JSON
        """
        if not self.path.exists():
            raise SourceError(f"Record file not found: {self.path}", context={'path': str(self.path)})

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                if self.path.suffix == '.jsonl':
                    return [json.loads(line) for line in f if line.strip()]
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SourceParseError(self.name, str(self.path), e)

        if isinstance(data, dict):
            data = data.get('records', [])
        if not isinstance(data, list):
            raise SourceParseError(self.name, str(self.path), ValueError('expected a list of records'))
        return data

    def fetch_records(self) -> List[Record]:
        return records_from_dicts(self.load_raw(), self.name)

    def health_check(self) -> Dict[str, Any]:
        return {'available': self.path.exists(), 'path': str(self.path)}


class SampleSource(RecordSource):
    """Bundled posts, complaints and glucose readings."""

    name = 'sample'

    def get_metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self.name,
            display_name='Bundled sample data',
            record_kind='mixed',
            description='Five community posts, six device complaints and two weeks of glucose readings',
            update_frequency_minutes=0,
            reliability_score=1.0,
            categories=['sample', 'offline'],
            requires_network=False,
        )

    def fetch_records(self) -> List[Record]:
        return records_from_dicts(sample_records_data(), self.name)


def save_records(records: Iterable[Record], path: Union[str, Path]) -> int:
    """
    Write records as a JSON array.

    Returns:
        Number of records written
    """
    items = [record.to_dict() for record in records]
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        json.dump(items, f, indent=2, ensure_ascii=False)
    logger.info(f"Wrote {len(items)} records to {output}")
    return len(items)
