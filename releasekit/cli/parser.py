"""
releasekit CLI argument parser.

This module implements the command-line interface for releasekit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..config import load_settings
from ..core.exceptions import ConfigError
from ..core.platform import detect_host

# Get version from package
try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("releasekit")
except PackageNotFoundError:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """releasekit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        host = detect_host()

        parser = argparse.ArgumentParser(
            prog="releasekit",
            description="releasekit - toolchain lookup and verified release downloads",
            epilog='Use "releasekit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"releasekit {__version__}"
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
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./releasekit.yaml)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        # toolchain
        toolchain_parser = subparsers.add_parser(
            "toolchain",
            help="Resolve the cross-compilation toolchain binary",
            description="Resolve the compiler binary for a target platform",
        )
        toolchain_parser.add_argument(
            "--platform",
            default=host.os,
            help=f"Target platform (default: {host.os})",
        )
        toolchain_parser.add_argument(
            "--arch",
            help="Target architecture; when given, print the full cc invocation",
        )

        # info
        info_parser = subparsers.add_parser(
            "info",
            help="Show latest release metadata",
            description="Fetch metadata of the latest release of a repository",
        )
        info_parser.add_argument("repository", help="Repository as ORG/REPO")
        info_parser.add_argument(
            "--json", action="store_true", help="Print metadata as JSON"
        )

        # download
        download_parser = subparsers.add_parser(
            "download",
            help="Download and verify the latest release asset",
            description=(
                "Download the latest release asset for a platform/arch pair, "
                "verify it against the release checksum file and write it "
                "to DEST"
            ),
        )
        download_parser.add_argument("repository", help="Repository as ORG/REPO")
        download_parser.add_argument(
            "dest", type=Path, help="Destination file or directory"
        )
        download_parser.add_argument(
            "--platform",
            default=host.os,
            help=f"Target platform (default: {host.os})",
        )
        download_parser.add_argument(
            "--arch",
            default=host.arch,
            help=f"Target architecture (default: {host.arch})",
        )
        download_parser.add_argument(
            "--executable",
            action="store_true",
            help="Mark the written file executable (0o755)",
        )

        return parser

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

        # Configure logging
        self._configure_logging(parsed_args)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return 1

        # Environment and config file are read once, here
        try:
            parsed_args.settings = load_settings(parsed_args.config)
        except ConfigError as e:
            logger.error(f"Configuration error: {e}")
            return 2

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT

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
            "toolchain": "releasekit.cli.commands.toolchain",
            "info": "releasekit.cli.commands.info",
            "download": "releasekit.cli.commands.download",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def split_repository(value: str):
    """
    Split an 'ORG/REPO' argument.

    Raises:
        ValueError: If the value is not of the form ORG/REPO
    """
    parts = value.strip("/").split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Repository must be ORG/REPO, got '{value}'")
    return parts[0], parts[1]


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
