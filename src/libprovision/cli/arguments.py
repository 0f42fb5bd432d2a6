"""Argument parser construction for libprovision CLI.

This module builds the argument parser with subcommands:
- libprovision ensure   - Download the prebuilt library if needed
- libprovision status   - Show platform, artifact and version state
- libprovision triple   - Print the target triple for this platform
- libprovision validate - Validate a configuration file
"""

from __future__ import annotations

import argparse
from pathlib import Path


def _add_global_options(parser: argparse.ArgumentParser) -> None:
    """Add global options available to all commands."""
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show libprovision version and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (info-level) logging.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Reduce logging output to errors only.",
    )


def _add_provisioning_options(parser: argparse.ArgumentParser) -> None:
    """Add options shared by commands that load configuration."""
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Installation root of the library checkout (default: current directory).",
    )

    config_group = parser.add_argument_group("configuration")
    config_group.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a config file (default: .libprovision.yml in the installation root).",
    )
    config_group.add_argument(
        "--force-version",
        default=None,
        metavar="TAG",
        help="Download this release tag instead of the checkout's git tag.",
    )
    config_group.add_argument(
        "--force-triple",
        default=None,
        metavar="TRIPLE",
        help="Use this target triple instead of detecting the platform.",
    )
    config_group.add_argument(
        "--no-download",
        action="store_true",
        help="Never download prebuilt binaries.",
    )
    config_group.add_argument(
        "--lib-name",
        default=None,
        help="Library name without 'lib' prefix or extension.",
    )


def _build_ensure_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'ensure' subcommand parser."""
    ensure_parser = subparsers.add_parser(
        "ensure",
        help="Download the prebuilt library if it is missing or outdated.",
        description=(
            "Decide whether the prebuilt library must be downloaded, and if so "
            "download it and record its version."
        ),
    )
    _add_provisioning_options(ensure_parser)
    ensure_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the decision without downloading anything.",
    )


def _build_status_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'status' subcommand parser."""
    status_parser = subparsers.add_parser(
        "status",
        help="Show platform, artifact and version state.",
        description=(
            "Display libprovision version, platform info, target triple, "
            "artifact presence and installed/desired versions."
        ),
    )
    _add_provisioning_options(status_parser)


def _build_triple_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'triple' subcommand parser."""
    triple_parser = subparsers.add_parser(
        "triple",
        help="Print the target triple for this platform.",
        description=(
            "Print the target triple used to name release assets, honoring "
            "prebuilt_binaries.force_system_triple from the configuration."
        ),
    )
    triple_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Installation root whose configuration is used (default: current directory).",
    )
    triple_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a config file (default: .libprovision.yml in the installation root).",
    )
    triple_parser.add_argument(
        "--force-triple",
        default=None,
        metavar="TRIPLE",
        help="Print this triple instead of detecting the platform.",
    )


def _build_validate_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'validate' subcommand parser."""
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a libprovision configuration file.",
    )
    validate_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file to validate (default: .libprovision.yml in the current directory).",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for libprovision CLI.

    Returns:
        Configured ArgumentParser instance with subcommands.
    """
    parser = argparse.ArgumentParser(
        prog="libprovision",
        description="libprovision - Fetch and track prebuilt native libraries.",
        epilog=(
            "Examples:\n"
            "  libprovision ensure                       # Download if needed\n"
            "  libprovision ensure --force-version v1.2.3\n"
            "  libprovision status                       # Show current state\n"
            "  libprovision triple                       # Print target triple\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    _add_global_options(parser)

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands:",
        metavar="COMMAND",
    )

    _build_ensure_parser(subparsers)
    _build_status_parser(subparsers)
    _build_triple_parser(subparsers)
    _build_validate_parser(subparsers)

    return parser
