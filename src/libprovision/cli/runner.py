"""CLI runner orchestration.

This module handles command dispatch and execution for the libprovision CLI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from importlib.metadata import version, PackageNotFoundError

from libprovision.cli.arguments import build_parser
from libprovision.cli.commands.ensure import EnsureCommand
from libprovision.cli.commands.status import StatusCommand
from libprovision.cli.commands.triple import TripleCommand
from libprovision.cli.commands.validate import ValidateCommand
from libprovision.cli.config_bridge import ConfigBridge
from libprovision.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from libprovision.config import load_config
from libprovision.config.loader import ConfigError
from libprovision.config.models import LibprovisionConfig
from libprovision.core.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)


def get_version() -> str:
    """Get libprovision version.

    Returns:
        Version string from package metadata or fallback.
    """
    try:
        return version("libprovision")
    except PackageNotFoundError:
        # Fallback for editable installs that have not yet built metadata.
        from libprovision import __version__
        return __version__


class CLIRunner:
    """Orchestrates CLI execution with subcommand dispatch."""

    def __init__(self) -> None:
        """Initialize CLIRunner with parser and commands."""
        self.parser = build_parser()
        self._version = get_version()
        self.ensure_cmd = EnsureCommand()
        self.status_cmd = StatusCommand(version=self._version)
        self.triple_cmd = TripleCommand()
        self.validate_cmd = ValidateCommand()

    def run(self, argv: Optional[Iterable[str]] = None) -> int:
        """Run the CLI.

        Args:
            argv: Command-line arguments (defaults to sys.argv).

        Returns:
            Exit code.
        """
        # Handle --help specially to return 0
        if argv is not None:
            argv_list = list(argv)
            if "--help" in argv_list or "-h" in argv_list:
                self.parser.print_help()
                return EXIT_SUCCESS
        else:
            argv_list = None

        args = self.parser.parse_args(argv_list)

        configure_logging(
            debug=args.debug,
            verbose=args.verbose,
            quiet=args.quiet,
        )

        if args.version:
            print(self._version)
            return EXIT_SUCCESS

        command = getattr(args, "command", None)

        if command == "ensure":
            return self._run_with_config(self.ensure_cmd, args)
        elif command == "status":
            return self._run_with_config(self.status_cmd, args)
        elif command == "triple":
            return self._run_with_config(self.triple_cmd, args)
        elif command == "validate":
            return self.validate_cmd.execute(args)
        else:
            self.parser.print_help()
            return EXIT_SUCCESS

    def _load_config(self, args) -> Optional[LibprovisionConfig]:
        """Load layered configuration for commands that provision.

        Args:
            args: Parsed command-line arguments.

        Returns:
            The merged configuration, or None if loading failed.
        """
        project_root = Path(args.path).resolve()
        try:
            return load_config(
                project_root=project_root,
                cli_config_path=getattr(args, "config", None),
                cli_overrides=ConfigBridge.args_to_overrides(args),
            )
        except ConfigError as e:
            LOGGER.error(str(e))
            return None

    def _run_with_config(self, command, args) -> int:
        """Load configuration, then execute ``command`` with it."""
        config = self._load_config(args)
        if config is None:
            return EXIT_INVALID_USAGE
        return command.execute(args, config)
