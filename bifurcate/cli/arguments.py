"""
Command Line Argument Parsing for the Bifurcate crawler

Handles the crawl, extract, mirror, analyze, sanitize and history
subcommands and their configuration overrides.
"""

import argparse
from pathlib import Path
from typing import List, Optional

from bifurcate import __version__


class CLIManager:
    """
    Command line interface manager for the crawler

    Builds the subcommand parser, validates the parsed arguments and
    provides help documentation.
    """

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands

        Returns:
            Configured argument parser
        """
        parser = argparse.ArgumentParser(
            prog="bifurcate",
            description="Site crawler and AI-mirror feed builder",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_epilog()
        )

        # Configuration options shared by every command
        config_group = parser.add_argument_group("Configuration")
        config_group.add_argument(
            "--config",
            default="config/config.yaml",
            help="Path to configuration file (default: %(default)s)"
        )
        config_group.add_argument(
            "--log-level",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Logging level"
        )
        config_group.add_argument(
            "--timeout",
            type=float,
            help="Request timeout in seconds"
        )
        config_group.add_argument(
            "--storage-path",
            help="Directory for stored crawl sessions and mirrors"
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"bifurcate v{__version__}"
        )

        commands = parser.add_subparsers(dest="command", metavar="COMMAND")
        commands.required = True

        crawl = commands.add_parser("crawl", help="Crawl a site and build its sitemap feeds")
        crawl.add_argument("url", help="Root URL to crawl")
        crawl.add_argument(
            "--max-depth",
            type=int,
            help="Link depth to follow, clamped to 1-4 (default: crawl.default_depth, 3)"
        )
        crawl.add_argument(
            "--format",
            choices=["json", "xml", "md"],
            default="json",
            help="Output format (default: %(default)s)"
        )
        crawl.add_argument("--output", "-o", help="Write output to this file instead of stdout")
        crawl.add_argument(
            "--no-save",
            dest="save",
            action="store_false",
            help="Do not store the crawl session"
        )

        extract = commands.add_parser("extract", help="Extract one page as an MDF or markdown document")
        extract.add_argument("url", help="Page URL")
        extract.add_argument(
            "--format",
            choices=["mdf", "markdown"],
            default="mdf",
            help="Document format (default: %(default)s)"
        )
        extract.add_argument("--analyze", action="store_true", help="Append a structure report")
        extract.add_argument("--output", "-o", help="Write output to this file instead of stdout")

        mirror = commands.add_parser("mirror", help="Build the AI-mirror JSON for one page")
        mirror.add_argument("url", help="Page URL")
        mirror.add_argument("--force-refresh", action="store_true", help="Ignore a stored mirror")
        mirror.add_argument("--session-id", help="Crawl session to link the mirror to")
        mirror.add_argument("--output", "-o", help="Write output to this file instead of stdout")

        analyze = commands.add_parser("analyze", help="Score a markdown file for AI readability")
        analyze.add_argument("file", help="Markdown file to analyze")
        analyze.add_argument("--json", action="store_true", help="Print the analysis as JSON")

        sanitize = commands.add_parser("sanitize", help="Clean and restructure a markdown file")
        sanitize.add_argument("file", help="Markdown file to sanitize")
        sanitize.add_argument("--output", "-o", help="Write output to this file instead of stdout")

        history = commands.add_parser("history", help="List or manage stored crawl sessions")
        history_action = history.add_mutually_exclusive_group()
        history_action.add_argument("--show", metavar="SESSION_ID", help="Show the pages of one session")
        history_action.add_argument("--delete", metavar="SESSION_ID", help="Delete one session")
        history_action.add_argument("--stats", action="store_true", help="Show document counts per collection")

        return parser

    def _get_epilog(self) -> str:
        """
        Get epilog text for help message

        Returns:
            Formatted epilog text
        """
        return """
Examples:
  # Crawl a site three levels deep and print the JSON feed
  python -m bifurcate crawl https://example.com

  # Write the XML sitemap to a file
  python -m bifurcate crawl example.com --max-depth 2 --format xml -o sitemap.xml

  # Extract a single page as front-matter markdown with a structure report
  python -m bifurcate extract https://example.com/blog/post --format markdown --analyze

  # Build the AI-mirror JSON, bypassing the stored copy
  python -m bifurcate mirror https://example.com/pricing --force-refresh

  # Score or clean an existing markdown file
  python -m bifurcate analyze page.md
  python -m bifurcate sanitize page.md -o page.clean.md

Notes:
  - Crawls stay on the root host and honour robots.txt
  - A crawl records at most 120 pages
  - Environment overrides: BIFURCATE_LOG_LEVEL, BIFURCATE_TIMEOUT,
    BIFURCATE_STORAGE_PATH, BIFURCATE_USER_AGENT
"""

    def parse_arguments(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        """
        Parse command line arguments

        Args:
            args: Command line arguments (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        parsed_args = self.parser.parse_args(args)
        self.validate_arguments(parsed_args)
        return parsed_args

    def validate_arguments(self, args: argparse.Namespace) -> bool:
        """
        Validate parsed arguments for consistency

        Args:
            args: Parsed arguments

        Returns:
            True if arguments are valid
        """
        if args.timeout is not None and args.timeout <= 0:
            self.parser.error("--timeout must be positive")

        if args.command in ("crawl", "extract", "mirror") and not args.url.strip():
            self.parser.error(f"{args.command}: URL must not be empty")

        if args.command in ("analyze", "sanitize"):
            path = Path(args.file)
            if not path.is_file():
                self.parser.error(f"{args.command}: file not found: {args.file}")

        return True

    def print_help(self) -> None:
        """Print help message"""
        self.parser.print_help()
