"""Triple command implementation."""

from __future__ import annotations

from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from libprovision.config.models import LibprovisionConfig

from libprovision.bootstrap.platform import get_system_triple_sync
from libprovision.cli.commands import Command
from libprovision.cli.exit_codes import EXIT_PROVISIONING_FAILED, EXIT_SUCCESS


class TripleCommand(Command):
    """Prints the target triple of the running platform."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "triple"

    def execute(self, args: Namespace, config: "LibprovisionConfig | None" = None) -> int:
        """Print the triple, or "unsupported" with exit code 1."""
        force = getattr(args, "force_triple", None)
        if not force and config is not None:
            force = config.prebuilt_binaries.force_system_triple

        triple = get_system_triple_sync(force)
        if triple is None:
            print("unsupported")
            return EXIT_PROVISIONING_FAILED

        print(triple)
        return EXIT_SUCCESS
