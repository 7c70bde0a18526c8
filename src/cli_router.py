#!/usr/bin/env python3
"""
CLI Router for the Diabetes Insight Engine.

Modular command architecture: collect records, analyze them and report trends.
"""

import argparse
import logging
import sys
from typing import Dict, Optional, List

from insights.config import ConfigManager
from insights.analysis.dimensions import DIMENSIONS
from insights.container import Container, build_container
from insights.exceptions import ConfigurationError

from commands import get_command, COMMANDS

logger = logging.getLogger(__name__)

SOURCE_CHOICES = ['reddit', 'pubmed', 'openfda', 'sample']


class CLIRouter:
    """
    CLI router for insight engine commands.

    Command structure:
    - python run.py analyze sample
    - python run.py analyze run --input records.json --json
    - python run.py sources collect --sources reddit pubmed --output data/records.json
    - python run.py trends emerging --input data/records.json
    """

    def __init__(self, container: Optional[Container] = None):
        """
        Initialize CLI router.

        Args:
            container: Services for the commands, built from the environment on first use if None
        """
        self._container = container
        self._command_parsers: Dict[str, argparse.ArgumentParser] = {}
        self.parser = self._create_parser()

    def _get_container(self) -> Container:
        if self._container is None:
            manager = ConfigManager()
            manager.update_logging()
            self._container = build_container(manager.get_config())
        return self._container

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description="Diabetes Insight Engine - community, research and device data analysis",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_examples_text()
        )

        subparsers = parser.add_subparsers(
            dest='command',
            help='Available commands',
            metavar='{command}'
        )

        self._add_analyze_parser(subparsers)
        self._add_sources_parser(subparsers)
        self._add_trends_parser(subparsers)

        return parser

    @staticmethod
    def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument('--input', help='JSON or JSON Lines file of records (overrides --sources)')
        parser.add_argument('--sources', nargs='+', choices=SOURCE_CHOICES, default=None,
                            help='Sources to collect from when no --input is given (default: sample)')

    @staticmethod
    def _add_analysis_arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument('--dimensions', nargs='+', choices=sorted(DIMENSIONS), default=None,
                            help='Analysis dimensions to run (default: all)')
        parser.add_argument('--min-confidence', type=float, default=None,
                            help='Override the minimum confidence for reportable insights')
        parser.add_argument('--json', action='store_true', help='Print JSON instead of text')

    def _add_analyze_parser(self, subparsers):
        """Add analyze command parser."""
        analyze_parser = self._command_parsers['analyze'] = subparsers.add_parser(
            'analyze',
            help='Run the insight engine'
        )

        analyze_subparsers = analyze_parser.add_subparsers(
            dest='subcommand',
            help='Analyze operations',
            metavar='{run,sample,search}'
        )

        run_parser = analyze_subparsers.add_parser('run', help='Analyze records from a file or live sources')
        self._add_input_arguments(run_parser)
        self._add_analysis_arguments(run_parser)
        run_parser.add_argument('--limit', type=int, default=0, help='Show only the top N insights')
        run_parser.add_argument('--output', help='Also save the JSON report to this path')

        sample_parser = analyze_subparsers.add_parser('sample', help='Analyze the bundled sample data')
        self._add_analysis_arguments(sample_parser)
        sample_parser.add_argument('--limit', type=int, default=0, help='Show only the top N insights')
        sample_parser.add_argument('--output', help='Also save the JSON report to this path')

        search_parser = analyze_subparsers.add_parser('search', help='Show insights matching a query')
        search_parser.add_argument('query', help='Text to look for in insight patterns, titles and keywords')
        self._add_input_arguments(search_parser)
        self._add_analysis_arguments(search_parser)

    def _add_sources_parser(self, subparsers):
        """Add sources command parser."""
        sources_parser = self._command_parsers['sources'] = subparsers.add_parser(
            'sources',
            help='Record source operations'
        )

        sources_subparsers = sources_parser.add_subparsers(
            dest='subcommand',
            help='Source operations',
            metavar='{list,health,collect}'
        )

        sources_subparsers.add_parser('list', help='List registered sources')

        health_parser = sources_subparsers.add_parser('health', help='Check source availability')
        health_parser.add_argument('--sources', nargs='+', choices=SOURCE_CHOICES, default=None,
                                   help='Sources to check (default: all)')

        collect_parser = sources_subparsers.add_parser('collect', help='Collect records from sources')
        collect_parser.add_argument('--sources', nargs='+', choices=SOURCE_CHOICES, default=None,
                                    help='Sources to collect from (default: all)')
        collect_parser.add_argument('--output', help='Save collected records to this JSON file')
        collect_parser.add_argument('--json', action='store_true', help='Print records as JSON')

    def _add_trends_parser(self, subparsers):
        """Add trends command parser."""
        trends_parser = self._command_parsers['trends'] = subparsers.add_parser(
            'trends',
            help='Emerging keywords, associations and platform activity'
        )

        trends_subparsers = trends_parser.add_subparsers(
            dest='subcommand',
            help='Trend operations',
            metavar='{emerging,keywords,platforms}'
        )

        emerging_parser = trends_subparsers.add_parser('emerging', help='Keywords growing in the recent window')
        self._add_input_arguments(emerging_parser)
        emerging_parser.add_argument('--days', type=int, default=None, help='Recent window in days (default: 7)')

        keywords_parser = trends_subparsers.add_parser('keywords', help='Keywords that appear together')
        self._add_input_arguments(keywords_parser)
        keywords_parser.add_argument('--threshold', type=float, default=None,
                                     help='Minimum Jaccard similarity (default: 0.6)')

        platforms_parser = trends_subparsers.add_parser('platforms', help='Activity per platform')
        self._add_input_arguments(platforms_parser)

    def _get_examples_text(self) -> str:
        """Get examples text for help."""
        return """
Examples:
  # Offline run on bundled data
  python run.py analyze sample
  python run.py analyze sample --dimensions keyword_correlation device_complaints --json

  # Collect once, analyze many times
  python run.py sources collect --sources reddit pubmed openfda --output data/records.json
  python run.py analyze run --input data/records.json --limit 10
  python run.py analyze search lemon --input data/records.json

  # Trend reports
  python run.py trends emerging --input data/records.json --days 3
  python run.py sources health

"""

    def route_command(self, args: Optional[List[str]] = None) -> int:
        """
        Route command to appropriate handler.

        Args:
            args: Command line arguments (uses sys.argv if None)

        Returns:
            Exit code
        """
        try:
            if args is None:
                args = sys.argv[1:]

            parsed_args = self.parser.parse_args(args)

            if not parsed_args.command:
                self.parser.print_help()
                return 1

            return self._handle_command(parsed_args)

        except SystemExit as e:
            # argparse calls sys.exit() on error or help
            return e.code if e.code is not None else 0
        except Exception as e:
            logger.error(f"CLI routing error: {e}", exc_info=True)
            return 1

    def _handle_command(self, args: argparse.Namespace) -> int:
        """Handle command structure."""
        logger.debug(f"Handling command: {args.command}")

        if args.command not in COMMANDS:
            available = ', '.join(COMMANDS.keys())
            logger.error(f"Unknown command '{args.command}'. Available: {available}")
            return 1

        subcommand = getattr(args, 'subcommand', None)
        if not subcommand:
            logger.error(f"No subcommand specified for '{args.command}'")
            self._command_parsers[args.command].print_help()
            return 1

        try:
            command = get_command(args.command, self._get_container())
            return command.execute(subcommand, args)
        except (ValueError, ConfigurationError) as e:
            logger.error(f"Invalid configuration: {e}")
            return 22
        except Exception as e:
            logger.error(f"Error executing {args.command} {subcommand}: {e}", exc_info=True)
            return 1


def main(args: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    router = CLIRouter()
    return router.route_command(args)


if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
