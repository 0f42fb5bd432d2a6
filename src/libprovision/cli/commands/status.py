"""Status command implementation."""

from __future__ import annotations

import asyncio
from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from libprovision.config.models import LibprovisionConfig

from libprovision.bootstrap.platform import get_system_info, get_system_triple_sync
from libprovision.bootstrap.provisioner import decide
from libprovision.cli.commands import Command
from libprovision.cli.config_bridge import ConfigBridge
from libprovision.cli.exit_codes import EXIT_PROVISIONING_FAILED, EXIT_SUCCESS
from libprovision.config.loader import get_default_config
from libprovision.core.errors import ProvisioningError


class StatusCommand(Command):
    """Shows platform, artifact and version state."""

    def __init__(self, version: str):
        """Initialize StatusCommand.

        Args:
            version: Current libprovision version string.
        """
        self._version = version

    @property
    def name(self) -> str:
        """Command identifier."""
        return "status"

    def execute(self, args: Namespace, config: "LibprovisionConfig | None" = None) -> int:
        """Execute the status command.

        Args:
            args: Parsed command-line arguments.
            config: Loaded configuration; defaults are used when None.

        Returns:
            Exit code: 0, or 1 if the git tag lookup failed.
        """
        if config is None:
            config = get_default_config()
        prebuilt = config.prebuilt_binaries
        provisioner = ConfigBridge.build_provisioner(args, config)
        paths = provisioner.paths
        platform_info = get_system_info()
        triple = get_system_triple_sync(prebuilt.force_system_triple)

        print(f"libprovision version: {self._version}")
        print(f"Platform: {platform_info.label}")
        print(f"Target triple: {triple or 'unsupported'}")
        print(f"Library: {paths.artifact_path}")
        print(f"Downloads enabled: {'yes' if prebuilt.download else 'no'}")
        if config.sources:
            print(f"Config sources: {', '.join(config.sources)}")
        print()

        try:
            state = asyncio.run(provisioner.gather_state())
        except ProvisioningError as e:
            print(f"Error: {e}")
            return EXIT_PROVISIONING_FAILED

        installed = state.installed.version if state.installed.ok else None
        print(f"Artifact present: {'yes' if state.downloaded else 'no'}")
        print(f"Installed version: {installed if installed is not None else '(no marker)'}")
        print(f"Desired version: {state.desired_version or '(none)'}")

        decision = decide(prebuilt.download, state)
        print(f"Next run would: {decision.action.value} ({decision.reason.value})")

        return EXIT_SUCCESS
