"""
PlatformKit CLI argument parser.

This module implements the command-line interface for PlatformKit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("platformkit")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

# Default age after which staging directories and lock files count as stale
DEFAULT_MAX_AGE_HOURS = 24


class CLI:
    """PlatformKit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="platformkit",
            description="PlatformKit - Lazy platform library acquisition and caching",
            epilog='Use "platformkit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"PlatformKit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--lib-dir",
            type=Path,
            metavar="PATH",
            help="Library root directory (default: $PLATFORMKIT_HOME/lib or ~/.platformkit/lib)",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            default=Path.cwd(),
            help="Project root directory (default: current directory)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_fetch_command(subparsers)
        self._add_path_command(subparsers)
        self._add_clean_command(subparsers)

        return parser

    def _add_fetch_command(self, subparsers):
        """Add 'fetch' subcommand."""
        parser = subparsers.add_parser(
            "fetch",
            help="Acquire a platform library",
            description="Acquire a platform library, downloading it if not cached, "
            "and print its directory",
        )
        parser.add_argument(
            "platform",
            metavar="PLATFORM[@VERSION]",
            help="Platform name with optional version (e.g., android, ios@3.6.3)",
        )
        parser.add_argument(
            "--use-git",
            action="store_true",
            help="Fetch a version-control snapshot instead of the released package",
        )

    def _add_path_command(self, subparsers):
        """Add 'path' subcommand."""
        parser = subparsers.add_parser(
            "path",
            help="Show where a platform library is cached",
            description="Print the cached directory of a platform library "
            "(exit code 1 if not cached)",
        )
        parser.add_argument(
            "platform",
            metavar="PLATFORM[@VERSION]",
            help="Platform name with optional version",
        )
        parser.add_argument(
            "--use-git",
            action="store_true",
            help="Only look for version-control snapshots",
        )

    def _add_clean_command(self, subparsers):
        """Add 'clean' subcommand."""
        parser = subparsers.add_parser(
            "clean",
            help="Remove leftovers of interrupted downloads",
            description="Remove stale staging directories and lock files",
        )
        parser.add_argument(
            "--max-age-hours",
            type=float,
            default=DEFAULT_MAX_AGE_HOURS,
            metavar="HOURS",
            help=f"Only remove entries older than HOURS (default: {DEFAULT_MAX_AGE_HOURS})",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "fetch": "platformkit.cli.commands.fetch",
            "path": "platformkit.cli.commands.path",
            "clean": "platformkit.cli.commands.clean",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
