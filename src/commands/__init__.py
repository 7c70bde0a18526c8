#!/usr/bin/env python3
"""
Command endpoints for the insight engine.

Each major functionality is handled by a dedicated command class that
receives its services from an explicitly built container.
"""

from typing import Dict, Type

from insights.container import Container
from .base import BaseCommand
from .analyze import AnalyzeCommand
from .sources import SourcesCommand
from .trends import TrendsCommand

COMMANDS: Dict[str, Type[BaseCommand]] = {
    'analyze': AnalyzeCommand,
    'sources': SourcesCommand,
    'trends': TrendsCommand,
}


def get_command(command_name: str, container: Container) -> BaseCommand:
    """Get a command instance by name."""
    if command_name not in COMMANDS:
        available = ', '.join(COMMANDS.keys())
        raise ValueError(f"Unknown command '{command_name}'. Available: {available}")

    command_class = COMMANDS[command_name]
    return command_class(container)
