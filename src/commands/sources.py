#!/usr/bin/env python3
"""
Source command endpoints for listing, checking and collecting from record sources.
"""

import json
import logging
from argparse import Namespace

from .base import BaseCommand
from insights.formatters import format_source_status
from insights.sources.local import save_records

logger = logging.getLogger(__name__)


class SourcesCommand(BaseCommand):
    """Handle record source operations."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute sources subcommand."""
        try:
            if subcommand == "list":
                return self.list(args)
            elif subcommand == "health":
                return self.health(args)
            elif subcommand == "collect":
                return self.collect(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except (Exception, KeyboardInterrupt) as e:
            return self.handle_error(e, f"sources {subcommand}")

    def list(self, args: Namespace) -> int:
        """Show registered sources and their metadata."""
        registry = self.source_registry
        print("\n=== Record Sources ===")
        for name in registry.list_available_sources():
            metadata = registry.get_source(name, self.config.collection).get_metadata()
            network = "🌐" if metadata.requires_network else "💾"
            print(f"{network} {name}: {metadata.display_name} [{metadata.record_kind}]")
            if metadata.description:
                print(f"   {metadata.description}")
        return 0

    def health(self, args: Namespace) -> int:
        """Check each source and report availability."""
        status = self.collector.health_check(getattr(args, 'sources', None))
        print(format_source_status(status))
        return 0 if all(result.get('available') for result in status.values()) else 1

    def collect(self, args: Namespace) -> int:
        """Collect records and optionally save them for later analysis."""
        result = self.collector.collect(getattr(args, 'sources', None))

        print(f"📥 Collected {len(result.records)} records in {result.duration:.1f}s")
        for name, count in result.counts.items():
            print(f"  • {name}: {count}")
        for name, error in result.errors.items():
            print(f"  ❌ {name}: {error.get('message', 'failed')}")

        output = getattr(args, 'output', None)
        if output:
            written = save_records(result.records, output)
            print(f"💾 Saved {written} records to {output}")
        elif getattr(args, 'json', False):
            print(json.dumps([record.to_dict() for record in result.records], indent=2, ensure_ascii=False))

        return 0 if result.records or not result.errors else 1
