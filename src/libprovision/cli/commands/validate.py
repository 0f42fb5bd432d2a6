"""Validate command implementation.

Validates libprovision configuration files and reports issues.
"""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from libprovision.config.models import LibprovisionConfig

from libprovision.cli.commands import Command
from libprovision.cli.exit_codes import (
    EXIT_INVALID_USAGE,
    EXIT_ISSUES_FOUND,
    EXIT_SUCCESS,
)
from libprovision.config.loader import PROJECT_CONFIG_NAMES, find_project_config
from libprovision.config.validation import (
    ConfigValidationIssue,
    validate_config_file,
    ValidationSeverity,
)


class ValidateCommand(Command):
    """Validates libprovision configuration files."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "validate"

    def execute(self, args: Namespace, config: "LibprovisionConfig | None" = None) -> int:
        """Execute the validate command.

        Args:
            args: Parsed command-line arguments.
            config: Unused.

        Returns:
            Exit code: 0 = valid, 1 = has errors, 3 = file not found.
        """
        config_path = getattr(args, "config", None)
        if config_path:
            config_path = Path(config_path)
        else:
            config_path = find_project_config(Path.cwd())

        if config_path is None:
            print("No configuration file found.")
            print(f"Looked for: {', '.join(PROJECT_CONFIG_NAMES)}")
            return EXIT_INVALID_USAGE

        if not config_path.exists():
            print(f"Configuration file not found: {config_path}")
            return EXIT_INVALID_USAGE

        print(f"Validating {config_path}...")

        is_valid, issues = validate_config_file(config_path)

        if not issues:
            print("Configuration is valid.")
            return EXIT_SUCCESS

        errors = [i for i in issues if i.severity == ValidationSeverity.ERROR]
        warnings = [i for i in issues if i.severity == ValidationSeverity.WARNING]

        if errors:
            print(f"\nErrors ({len(errors)}):")
            for issue in errors:
                self._print_issue(issue)

        if warnings:
            print(f"\nWarnings ({len(warnings)}):")
            for issue in warnings:
                self._print_issue(issue)

        if not is_valid:
            print(f"\nConfiguration is invalid ({len(errors)} error(s)).")
            return EXIT_ISSUES_FOUND

        print(f"\nConfiguration is valid with {len(warnings)} warning(s).")
        return EXIT_SUCCESS

    def _print_issue(self, issue: ConfigValidationIssue) -> None:
        """Print a formatted issue."""
        location = f" [{issue.key}]" if issue.key else ""
        print(f"  - {issue.message}{location}")
        if issue.suggestion:
            print(f"    Did you mean '{issue.suggestion}'?")
