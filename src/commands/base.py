#!/usr/bin/env python3
"""
Base command class for the modular command architecture.

Provides common functionality and interface that all commands inherit.
Services come from an explicitly built dependency injection container.
"""

import logging
from abc import ABC, abstractmethod
from argparse import Namespace
from typing import Any, List, Optional

from insights.container import Container
from insights.exceptions import InsightEngineError, SourceError
from insights.sources.local import JsonFileSource

logger = logging.getLogger(__name__)


class BaseCommand(ABC):
    """
    Base class for all command endpoints.

    Provides access to the configured services and shared error handling.
    """

    def __init__(self, container: Container):
        """
        Initialize base command.

        Args:
            container: Container holding config, source_registry, collector and engine
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self._container = container

    @property
    def config(self):
        """Get configuration from container."""
        return self._container.get('config')

    @property
    def source_registry(self):
        return self._container.get('source_registry')

    @property
    def collector(self):
        return self._container.get('collector')

    @property
    def engine(self):
        return self._container.get('engine')

    @abstractmethod
    def execute(self, subcommand: str, args: Namespace) -> int:
        """
        Execute the command with given subcommand and arguments.

        Args:
            subcommand: The specific action to perform
            args: Parsed command line arguments

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        pass

    def get_available_subcommands(self) -> List[str]:
        """
        Get list of available subcommands for this command.

        Returns:
            List of subcommand names
        """
        skipped = {'execute', 'get_available_subcommands', 'handle_error', 'load_input',
                   'load_records', 'config', 'source_registry', 'collector', 'engine'}
        methods = []
        for attr_name in dir(self):
            if attr_name.startswith('_') or attr_name in skipped:
                continue
            if callable(getattr(self, attr_name)):
                methods.append(attr_name)
        return methods

    def load_input(self, args: Namespace) -> List[Any]:
        """
        Raw input for an analysis run.

        A file given with --input is read without validation so malformed
        entries are counted by the engine. Otherwise records are collected
        from --sources.

        Raises:
            SourceError: If the input file cannot be read
        """
        input_path: Optional[str] = getattr(args, 'input', None)
        if input_path:
            return JsonFileSource(input_path, self.config.collection).load_raw()

        result = self.collector.collect(getattr(args, 'sources', None) or ['sample'])
        for name, error in result.errors.items():
            print(f"⚠️ {name}: {error.get('message', 'failed')}")
        return result.records

    def load_records(self, args: Namespace):
        """Validated records from --input or --sources."""
        input_path: Optional[str] = getattr(args, 'input', None)
        if input_path:
            return JsonFileSource(input_path, self.config.collection).fetch_records()
        return self.collector.collect(getattr(args, 'sources', None) or ['sample']).records

    def handle_error(self, error: BaseException, context: str = "") -> int:
        """
        Standard error handling for commands.

        Args:
            error: The exception that occurred
            context: Additional context about where the error occurred

        Returns:
            Appropriate exit code
        """
        error_msg = f"{context}: {error}" if context else str(error)

        if isinstance(error, KeyboardInterrupt):
            self.logger.info("Command interrupted by user")
            return 130

        if isinstance(error, InsightEngineError):
            self.logger.error(error_msg)
        else:
            self.logger.error(error_msg, exc_info=True)

        if isinstance(error, (FileNotFoundError, SourceError)):
            return 2
        elif isinstance(error, PermissionError):
            return 13
        elif isinstance(error, ValueError):
            return 22
        else:
            return 1
