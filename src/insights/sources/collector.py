#!/usr/bin/env python3
"""
Record collector.

Runs several record sources concurrently. A failing source is logged and
reported; it never aborts the collection.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..config import CollectionConfig
from ..exceptions import SourceError
from ..models.record import Record
from .registry import SourceRegistry

logger = logging.getLogger(__name__)


@dataclass
class CollectionResult:
    """Records and per-source outcome of one collection run."""
    records: List[Record] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
    errors: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors

    def summary(self) -> Dict[str, Any]:
        return {
            'records': len(self.records),
            'counts': dict(self.counts),
            'errors': dict(self.errors),
            'duration': round(self.duration, 2),
        }


class RecordCollector:
    """Collects records from registered sources in parallel."""

    def __init__(self, registry: SourceRegistry, config: Optional[CollectionConfig] = None):
        """
        Initialize collector.

        Args:
            registry: Source registry to resolve names against
            config: Collection settings passed to every source
        """
        self.registry = registry
        self.config = config or CollectionConfig()

    def collect(self, source_names: Optional[Sequence[str]] = None) -> CollectionResult:
        """
        Fetch records from the named sources, all registered sources when None.

        Records are returned grouped by source in the order names were given.
        """
        names = list(source_names) if source_names else self.registry.list_available_sources()
        result = CollectionResult()
        start_time = time.time()

        logger.info(f"Collecting from {len(names)} sources: {', '.join(names)}")

        with ThreadPoolExecutor(max_workers=self.config.max_concurrent_sources,
                                thread_name_prefix='collect') as executor:
            futures = [(name, executor.submit(self._fetch, name)) for name in names]

            for name, future in futures:
                try:
                    records = future.result()
                except KeyError as e:
                    logger.error(f"Unknown source {name}: {e}")
                    result.errors[name] = {'error_type': 'KeyError', 'message': str(e)}
                    continue
                except SourceError as e:
                    logger.error(f"Source {name} failed: {e.message}")
                    result.errors[name] = e.to_dict()
                    continue
                except Exception as e:
                    logger.error(f"Source {name} failed unexpectedly: {e}", exc_info=True)
                    result.errors[name] = {'error_type': type(e).__name__, 'message': str(e)}
                    continue

                result.counts[name] = len(records)
                result.records.extend(records)

        result.duration = time.time() - start_time
        logger.info(f"Collected {len(result.records)} records from "
                    f"{len(result.counts)}/{len(names)} sources in {result.duration:.2f}s")
        return result

    def _fetch(self, name: str) -> List[Record]:
        source = self.registry.get_source(name, self.config)
        return source.fetch_records()

    def health_check(self, source_names: Optional[Sequence[str]] = None) -> Dict[str, Dict[str, Any]]:
        """Health status for each named source."""
        names = list(source_names) if source_names else self.registry.list_available_sources()
        status = {}
        for name in names:
            try:
                status[name] = self.registry.get_source(name, self.config).health_check()
            except KeyError as e:
                status[name] = {'available': False, 'error': str(e)}
            except Exception as e:
                logger.error(f"Health check for {name} failed: {e}")
                status[name] = {'available': False, 'error': str(e)}
        return status
