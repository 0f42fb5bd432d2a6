"""CLI commands package.

This module provides the base Command class and exports all command implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from libprovision.config.models import LibprovisionConfig


class Command(ABC):
    """Base class for CLI commands.

    All CLI commands should inherit from this class and implement
    the execute method.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Command identifier."""

    @abstractmethod
    def execute(self, args: Namespace, config: "LibprovisionConfig | None" = None) -> int:
        """Execute the command.

        Args:
            args: Parsed command-line arguments.
            config: Optional libprovision configuration.

        Returns:
            Exit code (0 for success, non-zero for error).
        """


# ruff: noqa: E402
from libprovision.cli.commands.ensure import EnsureCommand
from libprovision.cli.commands.status import StatusCommand
from libprovision.cli.commands.triple import TripleCommand
from libprovision.cli.commands.validate import ValidateCommand

__all__ = [
    "Command",
    "EnsureCommand",
    "StatusCommand",
    "TripleCommand",
    "ValidateCommand",
]
