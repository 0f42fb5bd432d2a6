"""Tests for the CLI to config bridge."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from libprovision.cli.config_bridge import ConfigBridge
from libprovision.config.models import ArtifactConfig, LibprovisionConfig


class TestArgsToOverrides:
    """Tests for ConfigBridge.args_to_overrides."""

    def test_no_flags(self) -> None:
        args = Namespace(force_version=None, force_triple=None, no_download=False, lib_name=None)
        assert ConfigBridge.args_to_overrides(args) == {}

    def test_all_flags(self) -> None:
        args = Namespace(
            force_version="v1.0.0",
            force_triple="aarch64-unknown-linux-musl",
            no_download=True,
            lib_name="fuzzy",
        )

        assert ConfigBridge.args_to_overrides(args) == {
            "prebuilt_binaries": {
                "force_version": "v1.0.0",
                "force_system_triple": "aarch64-unknown-linux-musl",
                "download": False,
            },
            "artifact": {"lib_name": "fuzzy"},
        }

    def test_missing_attributes(self) -> None:
        assert ConfigBridge.args_to_overrides(Namespace()) == {}


class TestBuildProvisioner:
    """Tests for ConfigBridge.build_provisioner."""

    def test_uses_positional_path(self, tmp_path: Path) -> None:
        provisioner = ConfigBridge.build_provisioner(
            Namespace(path=str(tmp_path)), LibprovisionConfig()
        )
        assert provisioner.paths.install_root == tmp_path.resolve()

    def test_config_install_root_wins(self, tmp_path: Path) -> None:
        root = tmp_path / "checkout"
        config = LibprovisionConfig(artifact=ArtifactConfig(lib_name="fuzzy", install_root=root))

        provisioner = ConfigBridge.build_provisioner(Namespace(path="."), config)

        assert provisioner.paths.install_root == root
        assert provisioner.paths.alternate_artifact_path.stem == "fuzzy"
