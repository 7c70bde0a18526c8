#!/usr/bin/env python3
"""
Service container for the CLI.

Builds the collector and engine lazily from one Config so every command
shares the same wiring.
"""

import logging
import threading
from typing import Any, Callable, Dict

from .analysis.engine import InsightEngine
from .config import Config
from .sources.collector import RecordCollector
from .sources.registry import build_default_registry

logger = logging.getLogger(__name__)


class Container:
    """Named services, each created at most once."""

    def __init__(self):
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._instances: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def register_instance(self, service_name: str, instance: Any) -> None:
        with self._lock:
            self._instances[service_name] = instance

    def register_singleton(self, service_name: str, factory: Callable[[], Any]) -> None:
        """Register a factory called on first get() and cached afterwards."""
        with self._lock:
            self._factories[service_name] = factory
            self._instances.pop(service_name, None)

    def get(self, service_name: str) -> Any:
        """
        Get service instance by name.

        Raises:
            KeyError: If service is not registered
        """
        with self._lock:
            if service_name in self._instances:
                return self._instances[service_name]
            if service_name not in self._factories:
                raise KeyError(f"Service '{service_name}' not registered")

            instance = self._factories[service_name]()
            self._instances[service_name] = instance
            logger.debug(f"Created '{service_name}'")
            return instance


def build_container(config: Config) -> Container:
    """
    Container wired with the services the CLI uses.

    Registered services: config, source_registry, collector, engine.
    """
    container = Container()
    container.register_instance('config', config)
    container.register_singleton('source_registry', build_default_registry)
    container.register_singleton(
        'collector',
        lambda: RecordCollector(container.get('source_registry'), config.collection)
    )
    container.register_singleton('engine', lambda: InsightEngine(config.analysis))
    return container
