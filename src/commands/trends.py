#!/usr/bin/env python3
"""
Trend command endpoints: emerging keywords, keyword associations and platform activity.
"""

import logging
from argparse import Namespace

from .base import BaseCommand
from insights.analysis.trends import (
    find_emerging_trends, find_keyword_associations, platform_activity
)
from insights.formatters import (
    format_emerging_trends, format_keyword_associations, format_platform_activity
)

logger = logging.getLogger(__name__)


class TrendsCommand(BaseCommand):
    """Supplementary trend reports over a batch of records."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute trends subcommand."""
        try:
            if subcommand == "emerging":
                return self.emerging(args)
            elif subcommand == "keywords":
                return self.keywords(args)
            elif subcommand == "platforms":
                return self.platforms(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except (Exception, KeyboardInterrupt) as e:
            return self.handle_error(e, f"trends {subcommand}")

    def emerging(self, args: Namespace) -> int:
        """Keywords growing in the recent window."""
        analysis = self.config.analysis
        window_days = getattr(args, 'days', None) or analysis.emerging_window_days
        trends = find_emerging_trends(
            self.load_records(args),
            window_days=window_days,
            min_mentions=analysis.emerging_min_mentions,
            growth_threshold=analysis.emerging_growth_threshold,
        )
        print(format_emerging_trends(trends))
        return 0

    def keywords(self, args: Namespace) -> int:
        """Keywords that tend to appear in the same records."""
        threshold = getattr(args, 'threshold', None)
        if threshold is None:
            threshold = self.config.analysis.association_threshold
        print(format_keyword_associations(find_keyword_associations(self.load_records(args), threshold)))
        return 0

    def platforms(self, args: Namespace) -> int:
        """Record counts and engagement per platform."""
        print(format_platform_activity(platform_activity(self.load_records(args))))
        return 0
