"""Bridge between CLI arguments and configuration models."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict

from libprovision.bootstrap.provisioner import Provisioner, create_provisioner
from libprovision.config.models import LibprovisionConfig


class ConfigBridge:
    """Translates CLI arguments to configuration overrides."""

    @staticmethod
    def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
        """Convert CLI arguments to config override dict.

        Only flags given explicitly on the command line produce overrides.

        Args:
            args: Parsed CLI arguments.

        Returns:
            Dictionary of config overrides.
        """
        overrides: Dict[str, Any] = {}
        prebuilt: Dict[str, Any] = {}
        artifact: Dict[str, Any] = {}

        force_version = getattr(args, "force_version", None)
        force_triple = getattr(args, "force_triple", None)
        lib_name = getattr(args, "lib_name", None)

        if force_version:
            prebuilt["force_version"] = force_version
        if force_triple:
            prebuilt["force_system_triple"] = force_triple
        if getattr(args, "no_download", False):
            prebuilt["download"] = False
        if lib_name:
            artifact["lib_name"] = lib_name

        if prebuilt:
            overrides["prebuilt_binaries"] = prebuilt
        if artifact:
            overrides["artifact"] = artifact

        return overrides

    @staticmethod
    def build_provisioner(args: argparse.Namespace, config: LibprovisionConfig) -> Provisioner:
        """Create a Provisioner for the configured installation root.

        ``artifact.install_root`` from config wins over the positional path.
        """
        install_root = config.artifact.install_root or Path(getattr(args, "path", ".")).resolve()
        return create_provisioner(
            config.prebuilt_binaries,
            install_root,
            config.artifact.lib_name,
        )
