#!/usr/bin/env python3
"""
openFDA device adverse event source.

Queries the openFDA device event endpoint (MAUDE reports) and turns each
report into a complaint record tagged with device and severity.
"""

import logging
from typing import Any, Dict, List

from ..categories import assess_complaint_severity, categorize_device
from ..exceptions import MalformedRecordError, SourceConnectionError, SourceParseError
from ..models.record import Record
from .base import HttpRecordSource, SourceMetadata

logger = logging.getLogger(__name__)

DEVICE_EVENT_URL = 'https://api.fda.gov/device/event.json'


class OpenFDADeviceSource(HttpRecordSource):
    """Adverse event reports for diabetes devices."""

    name = 'openfda'
    health_url = f'{DEVICE_EVENT_URL}?limit=1'

    def get_metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self.name,
            display_name='openFDA device events',
            record_kind='complaint',
            description=f"MAUDE reports for {', '.join(self.config.openfda_device_terms)}",
            update_frequency_minutes=24 * 60,
            reliability_score=0.85,
            categories=['regulatory', 'devices'],
        )

    def fetch_records(self) -> List[Record]:
        records: List[Record] = []
        for term in self.config.openfda_device_terms:
            records.extend(self.fetch_term(term))
        logger.info(f"Collected {len(records)} device event reports")
        return records

    def fetch_term(self, term: str) -> List[Record]:
        """Reports for one generic device name; openFDA answers 404 when nothing matches."""
        params = {
            'search': f'device.generic_name:"{term}"',
            'limit': self.config.openfda_limit,
        }
        try:
            data = self.fetcher.get_json(DEVICE_EVENT_URL, params=params)
        except SourceConnectionError as e:
            if e.context.get('status_code') == 404:
                logger.info(f"No device events for '{term}'")
                return []
            raise

        try:
            results = data['results']
        except (KeyError, TypeError) as e:
            raise SourceParseError(self.name, 'device event results', e)

        return [record for record in (self.parse_event(event) for event in results) if record is not None]

    def parse_event(self, event: Dict[str, Any]):
        """
        Convert one device event into a complaint record, None if unusable.

        Raises:
            SourceParseError: If the event is not shaped like a device event report
        """
        try:
            devices = event.get('device') or [{}]
            device = devices[0]
            brand = str(device.get('brand_name') or device.get('generic_name') or 'unknown device')
            generic = str(device.get('generic_name') or '')
            manufacturer = str(device.get('manufacturer_d_name') or '')
            event_type = str(event.get('event_type') or 'Other')
            narrative = ' '.join(
                str(text.get('text') or '').strip() for text in (event.get('mdr_text') or [])
            ).strip()
            report_number = event.get('report_number') or event.get('mdr_report_key')
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise SourceParseError(self.name, 'device event', e)

        content = narrative or f"{event_type} reported for {brand}"

        try:
            return Record(
                record_id=f"maude_{report_number}" if report_number else '',
                kind='complaint',
                content=content,
                platform='FDA MAUDE',
                timestamp=event.get('date_received'),
                tags={
                    'device': brand,
                    'device_type': categorize_device(generic or brand),
                    'event_type': event_type,
                    'severity': assess_complaint_severity(event_type),
                    'manufacturer': manufacturer,
                },
                sentiment='negative',
            )
        except MalformedRecordError as e:
            logger.debug(f"Skipping device event: {e.message}")
            return None
