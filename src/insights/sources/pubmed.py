#!/usr/bin/env python3
"""
PubMed record source.

Searches PubMed through the NCBI E-utilities (esearch, then esummary) and
turns article summaries into research records.
"""

import logging
from typing import Any, Dict, List

from ..exceptions import MalformedRecordError, SourceParseError
from ..models.record import Record
from .base import HttpRecordSource, SourceMetadata
from .text_features import extract_keywords

logger = logging.getLogger(__name__)

EUTILS_BASE = 'https://eutils.ncbi.nlm.nih.gov/entrez/eutils'
ESEARCH_URL = f'{EUTILS_BASE}/esearch.fcgi'
ESUMMARY_URL = f'{EUTILS_BASE}/esummary.fcgi'


class PubMedSource(HttpRecordSource):
    """Recent research abstracts matching the configured search term."""

    name = 'pubmed'
    health_url = f'{EUTILS_BASE}/einfo.fcgi?retmode=json'

    def get_metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self.name,
            display_name='PubMed',
            record_kind='research',
            description=f"NCBI E-utilities search for '{self.config.pubmed_term}'",
            update_frequency_minutes=24 * 60,
            reliability_score=0.9,
            categories=['research'],
        )

    def fetch_records(self) -> List[Record]:
        """
        Search PubMed and summarize the matching articles.

        Raises:
            SourceError: On connection failures or unexpected payloads
        """
        ids = self.search_ids()
        if not ids:
            logger.info(f"PubMed search for '{self.config.pubmed_term}' returned no articles")
            return []

        summary = self.fetcher.get_json(ESUMMARY_URL, params={
            'db': 'pubmed',
            'id': ','.join(ids),
            'retmode': 'json',
        })
        records = self.parse_summary(summary, ids)
        logger.info(f"Collected {len(records)} PubMed articles")
        return records

    def search_ids(self) -> List[str]:
        data = self.fetcher.get_json(ESEARCH_URL, params={
            'db': 'pubmed',
            'term': self.config.pubmed_term,
            'retmode': 'json',
            'retmax': self.config.pubmed_max_results,
            'sort': 'pub_date',
        })
        try:
            return [str(pmid) for pmid in data['esearchresult']['idlist']]
        except (KeyError, TypeError) as e:
            raise SourceParseError(self.name, 'esearch result', e)

    def parse_summary(self, summary: Dict[str, Any], ids: List[str]) -> List[Record]:
        """
        Convert an esummary payload into research records.

        Raises:
            SourceParseError: If the payload is not shaped like an esummary result
        """
        try:
            result = summary['result']
            items = [(str(pmid), result.get(str(pmid))) for pmid in result.get('uids', ids)]
        except (AttributeError, KeyError, TypeError) as e:
            raise SourceParseError(self.name, 'esummary result', e)

        records: List[Record] = []
        for pmid, item in items:
            if not isinstance(item, dict):
                continue

            title = item.get('title')
            title = title.strip() if isinstance(title, str) else ''
            published = item.get('sortpubdate') or item.get('pubdate') or item.get('epubdate')
            journal = item.get('fulljournalname') or item.get('source') or ''

            try:
                records.append(Record(
                    record_id=f"pubmed_{pmid}",
                    kind='research',
                    content=title,
                    platform='PubMed',
                    timestamp=published,
                    keywords=extract_keywords(title),
                    tags={'pmid': pmid, 'journal': journal},
                ))
            except MalformedRecordError as e:
                logger.debug(f"Skipping PubMed article {pmid}: {e.message}")

        return records
