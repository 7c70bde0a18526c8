#!/usr/bin/env python3
"""
Analyze command endpoints for running the insight engine.
"""

import json
import logging
from argparse import Namespace
from dataclasses import replace
from pathlib import Path

from .base import BaseCommand
from insights.analysis.engine import InsightEngine
from insights.analysis.trends import search_insights
from insights.formatters import format_report, format_insight, insights_to_dict
from insights.sources.sample_data import sample_records_data

logger = logging.getLogger(__name__)


class AnalyzeCommand(BaseCommand):
    """Run the insight engine over collected or stored records."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute analyze subcommand."""
        try:
            if subcommand == "run":
                return self.run(args)
            elif subcommand == "sample":
                return self.sample(args)
            elif subcommand == "search":
                return self.search(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except (Exception, KeyboardInterrupt) as e:
            return self.handle_error(e, f"analyze {subcommand}")

    def _engine_for(self, args: Namespace) -> InsightEngine:
        min_confidence = getattr(args, 'min_confidence', None)
        if min_confidence is None:
            return self.engine
        if not 0 <= min_confidence <= 1:
            raise ValueError(f"--min-confidence must be between 0 and 1, got {min_confidence}")
        return InsightEngine(replace(self.config.analysis, min_confidence=min_confidence))

    def _report(self, records, args: Namespace) -> int:
        engine = self._engine_for(args)
        report = engine.analyze(records, getattr(args, 'dimensions', None))

        output = getattr(args, 'output', None)
        if output:
            path = Path(output)
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
            print(f"💾 Report saved to {path}")

        if getattr(args, 'json', False):
            print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        else:
            print(format_report(report, getattr(args, 'limit', 0) or 0))

        return 0 if report.success else 1

    def run(self, args: Namespace) -> int:
        """Analyze records from --input or the selected sources."""
        records = self.load_input(args)
        print(f"🔍 Analyzing {len(records)} records...")
        return self._report(records, args)

    def sample(self, args: Namespace) -> int:
        """Analyze the bundled sample data set."""
        return self._report(sample_records_data(), args)

    def search(self, args: Namespace) -> int:
        """Analyze records and show insights matching --query."""
        records = self.load_input(args)
        report = self._engine_for(args).analyze(records, getattr(args, 'dimensions', None))
        matches = search_insights(report.insights, args.query)

        if getattr(args, 'json', False):
            print(json.dumps(insights_to_dict(matches), indent=2, ensure_ascii=False))
            return 0

        print(f"\n🔎 {len(matches)} insight(s) matching '{args.query}'")
        for position, insight in enumerate(matches, 1):
            print(format_insight(insight, position))
            print()
        return 0
