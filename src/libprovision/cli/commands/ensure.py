"""Ensure command implementation."""

from __future__ import annotations

import asyncio
from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from libprovision.config.models import LibprovisionConfig

from libprovision.bootstrap.provisioner import DecisionAction, DecisionReason
from libprovision.cli.commands import Command
from libprovision.cli.config_bridge import ConfigBridge
from libprovision.cli.exit_codes import (
    EXIT_PROVISIONING_FAILED,
    EXIT_SUCCESS,
)
from libprovision.config.loader import get_default_config
from libprovision.core.errors import ProvisioningError
from libprovision.core.logging import get_logger

LOGGER = get_logger(__name__)

_NOOP_MESSAGES = {
    DecisionReason.DOWNLOAD_DISABLED: "Prebuilt downloads are disabled; nothing to do.",
    DecisionReason.LOCAL_BUILD: "Using local build (no version marker found).",
    DecisionReason.UP_TO_DATE: "Prebuilt library is up to date.",
}


class EnsureCommand(Command):
    """Runs one provisioning run."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "ensure"

    def execute(self, args: Namespace, config: "LibprovisionConfig | None" = None) -> int:
        """Execute the ensure command.

        Args:
            args: Parsed command-line arguments.
            config: Loaded configuration; defaults are used when None.

        Returns:
            Exit code: 0 on success, 1 when provisioning failed.
        """
        if config is None:
            config = get_default_config()
        provisioner = ConfigBridge.build_provisioner(args, config)

        if getattr(args, "dry_run", False):
            try:
                decision = asyncio.run(provisioner.plan())
            except ProvisioningError as e:
                LOGGER.error(str(e))
                return EXIT_PROVISIONING_FAILED
            print(f"Decision: {decision.action.value} ({decision.reason.value})")
            if decision.action == DecisionAction.FATAL:
                print(decision.to_error())
            if decision.version:
                print(f"Version: {decision.version}")
            return EXIT_SUCCESS

        try:
            result = provisioner.ensure_downloaded_sync()
        except ProvisioningError as e:
            LOGGER.error(str(e))
            return EXIT_PROVISIONING_FAILED

        if result.fetched:
            print(f"Downloaded {result.decision.version} ({result.triple}) from {result.url}")
            print(f"Installed to {provisioner.paths.artifact_path}")
        else:
            print(_NOOP_MESSAGES.get(result.decision.reason, "Nothing to do."))

        return EXIT_SUCCESS
