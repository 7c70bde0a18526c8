#!/usr/bin/env python3
"""
Record source registry.

Maps source names to source classes. Registries are built explicitly and
passed to whoever needs them.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from ..config import CollectionConfig
from .base import RecordSource
from .local import SampleSource
from .openfda import OpenFDADeviceSource
from .pubmed import PubMedSource
from .reddit import RedditSource

logger = logging.getLogger(__name__)


class SourceRegistry:
    """Registry of record source classes."""

    def __init__(self):
        """Initialize empty registry."""
        self._sources: Dict[str, Type[RecordSource]] = {}

    def register_source(self, source_class: Type[RecordSource], name: Optional[str] = None) -> None:
        """
        Register a record source class.

        Args:
            source_class: RecordSource subclass to register
            name: Optional custom name (uses the class name attribute if not provided)
        """
        if name is None:
            name = getattr(source_class, 'name', None) or source_class.__name__.lower().replace('source', '')

        self._sources[name] = source_class
        logger.debug(f"Registered record source: {name}")

    def get_source(self, name: str, config: Optional[CollectionConfig] = None, **kwargs: Any) -> RecordSource:
        """
        Create a record source instance.

        Args:
            name: Source name
            config: Collection settings for the source
            **kwargs: Extra constructor arguments

        Returns:
            RecordSource instance

        Raises:
            KeyError: If source not found
        """
        if name not in self._sources:
            available = list(self._sources.keys())
            raise KeyError(f"Source '{name}' not found. Available: {available}")

        # New instance each time to avoid shared state
        return self._sources[name](config, **kwargs)

    def get_all_sources(self, config: Optional[CollectionConfig] = None) -> Dict[str, RecordSource]:
        """Instances of every registered source; failures to construct are logged."""
        sources = {}
        for name in self._sources:
            try:
                sources[name] = self.get_source(name, config)
            except Exception as e:
                logger.error(f"Failed to initialize source {name}: {e}")
        return sources

    def list_available_sources(self) -> List[str]:
        return list(self._sources.keys())

    def get_sources_by_kind(self, record_kind: str, config: Optional[CollectionConfig] = None) -> List[str]:
        """Names of sources producing the given record kind."""
        matching = []
        for name, source in self.get_all_sources(config).items():
            if source.get_metadata().record_kind == record_kind:
                matching.append(name)
        return matching


def build_default_registry() -> SourceRegistry:
    """Registry with the built-in network and sample sources."""
    registry = SourceRegistry()
    registry.register_source(RedditSource)
    registry.register_source(PubMedSource)
    registry.register_source(OpenFDADeviceSource)
    registry.register_source(SampleSource)
    return registry
