"""Tests for the provisioning decision table and runs."""

from __future__ import annotations

from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest

from libprovision.bootstrap.marker import MarkerReadResult
from libprovision.bootstrap.paths import ArtifactPaths
from libprovision.bootstrap.provisioner import (
    Decision,
    DecisionAction,
    DecisionReason,
    Provisioner,
    ProvisioningState,
    create_provisioner,
    decide,
)
from libprovision.config.models import PrebuiltBinariesConfig
from libprovision.core.errors import (
    ConfigurationInsufficientError,
    FetchError,
    GitError,
    MarkerError,
    UnknownStateError,
    UnsupportedPlatformError,
)

MODULE = "libprovision.bootstrap.provisioner"
BASE_URL = "https://example.com/releases"
TRIPLE = "x86_64-unknown-linux-gnu"

NO_MARKER = MarkerReadResult(error="No such file or directory")


def _state(
    desired: Optional[str],
    installed: MarkerReadResult,
    downloaded: bool,
) -> ProvisioningState:
    return ProvisioningState(desired_version=desired, installed=installed, downloaded=downloaded)


def _marker(version: str) -> MarkerReadResult:
    return MarkerReadResult(version=version)


@pytest.fixture
def paths(tmp_path: Path) -> ArtifactPaths:
    return ArtifactPaths.for_root(tmp_path, "native_core", extension=".so")


def _fake_download(payload: bytes = b"\x7fELF"):
    async def _download(url: str, dest_path: Path) -> None:
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        dest_path.write_bytes(payload)

    return AsyncMock(side_effect=_download)


class TestDecide:
    """Tests for the decision table."""

    def test_disabled_is_noop_without_state(self) -> None:
        assert decide(False, None) == Decision.noop(DecisionReason.DOWNLOAD_DISABLED)

    def test_disabled_ignores_state(self) -> None:
        decision = decide(False, _state(None, NO_MARKER, False))
        assert decision.action == DecisionAction.NOOP

    def test_nothing_built_and_no_version_is_fatal(self) -> None:
        decision = decide(True, _state(None, NO_MARKER, False))

        assert decision == Decision.fatal(DecisionReason.NO_TARGET_VERSION)
        assert isinstance(decision.to_error(), ConfigurationInsufficientError)

    def test_nothing_built_with_stale_marker_and_no_version_is_fatal(self) -> None:
        decision = decide(True, _state(None, _marker("v1.0.0"), False))
        assert decision.reason == DecisionReason.NO_TARGET_VERSION

    def test_local_build_without_marker_is_left_alone(self) -> None:
        decision = decide(True, _state("v2.0.0", NO_MARKER, True))
        assert decision == Decision.noop(DecisionReason.LOCAL_BUILD)

    def test_local_build_without_desired_version(self) -> None:
        decision = decide(True, _state(None, NO_MARKER, True))
        assert decision.reason == DecisionReason.LOCAL_BUILD

    def test_up_to_date(self) -> None:
        decision = decide(True, _state("v1.0.0", _marker("v1.0.0"), True))
        assert decision == Decision.noop(DecisionReason.UP_TO_DATE)

    def test_version_mismatch_fetches(self) -> None:
        decision = decide(True, _state("v2.0.0", _marker("v1.0.0"), True))

        assert decision.action == DecisionAction.FETCH
        assert decision.version == "v2.0.0"

    def test_empty_marker_is_a_recorded_version(self) -> None:
        decision = decide(True, _state("v2.0.0", _marker(""), True))
        assert decision == Decision.fetch("v2.0.0")

    def test_marker_compared_without_normalization(self) -> None:
        decision = decide(True, _state("v1.0.0", _marker("v1.0.0\n"), True))
        assert decision.action == DecisionAction.FETCH

    def test_missing_artifact_with_version_fetches(self) -> None:
        decision = decide(True, _state("v1.0.0", NO_MARKER, False))
        assert decision == Decision.fetch("v1.0.0")

    def test_missing_artifact_with_matching_marker_fetches(self) -> None:
        decision = decide(True, _state("v1.0.0", _marker("v1.0.0"), False))
        assert decision.action == DecisionAction.FETCH

    def test_prebuilt_without_desired_version_is_unknown(self) -> None:
        decision = decide(True, _state(None, _marker("v1.0.0"), True))

        assert decision == Decision.fatal(DecisionReason.UNKNOWN_STATE)
        assert isinstance(decision.to_error(), UnknownStateError)


class TestDownloadDisabled:
    """A disabled run must not touch git, the filesystem or the network."""

    @pytest.mark.asyncio
    async def test_no_probes_or_side_effects(self, paths: ArtifactPaths) -> None:
        provisioner = Provisioner(PrebuiltBinariesConfig(download=False), paths)

        with patch(f"{MODULE}.get_git_tag", new_callable=AsyncMock) as mock_tag, patch(
            f"{MODULE}.read_marker", new_callable=AsyncMock
        ) as mock_read, patch(
            f"{MODULE}.is_downloaded", new_callable=AsyncMock
        ) as mock_exists, patch(
            f"{MODULE}.download_artifact", new_callable=AsyncMock
        ) as mock_download, patch(
            f"{MODULE}.write_marker", new_callable=AsyncMock
        ) as mock_write:
            result = await provisioner.ensure_downloaded()

        assert result.decision.reason == DecisionReason.DOWNLOAD_DISABLED
        assert result.fetched is False
        for mock in (mock_tag, mock_read, mock_exists, mock_download, mock_write):
            mock.assert_not_called()
        assert not paths.release_dir.exists()


class TestEnsureDownloaded:
    """Tests for full provisioning runs against a real directory."""

    @pytest.mark.asyncio
    async def test_missing_configuration(self, paths: ArtifactPaths) -> None:
        provisioner = Provisioner(PrebuiltBinariesConfig(), paths)
        mock_download = _fake_download()

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value=None)), patch(
            f"{MODULE}.download_artifact", mock_download
        ):
            with pytest.raises(ConfigurationInsufficientError) as exc_info:
                await provisioner.ensure_downloaded()

        message = str(exc_info.value)
        assert "cargo build --release" in message
        assert "git tag" in message
        assert "force_version" in message
        mock_download.assert_not_called()

    @pytest.mark.asyncio
    async def test_local_build_is_not_replaced(self, paths: ArtifactPaths) -> None:
        paths.release_dir.mkdir(parents=True)
        paths.artifact_path.write_bytes(b"local build")
        provisioner = Provisioner(PrebuiltBinariesConfig(force_version="v9.9.9"), paths)
        mock_download = _fake_download()

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value=None)), patch(
            f"{MODULE}.download_artifact", mock_download
        ):
            result = await provisioner.ensure_downloaded()

        assert result.decision.reason == DecisionReason.LOCAL_BUILD
        mock_download.assert_not_called()
        assert paths.artifact_path.read_bytes() == b"local build"
        assert not paths.version_path.exists()

    @pytest.mark.asyncio
    async def test_prefix_stripped_local_build_is_detected(self, paths: ArtifactPaths) -> None:
        paths.release_dir.mkdir(parents=True)
        paths.alternate_artifact_path.write_bytes(b"local build")
        provisioner = Provisioner(PrebuiltBinariesConfig(), paths)

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value="v1.0.0")):
            result = await provisioner.ensure_downloaded()

        assert result.decision.reason == DecisionReason.LOCAL_BUILD

    @pytest.mark.asyncio
    async def test_up_to_date(self, paths: ArtifactPaths) -> None:
        paths.release_dir.mkdir(parents=True)
        paths.artifact_path.write_bytes(b"prebuilt")
        paths.version_path.write_text("v1.0.0")
        provisioner = Provisioner(PrebuiltBinariesConfig(), paths)
        mock_download = _fake_download()

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value="v1.0.0")), patch(
            f"{MODULE}.download_artifact", mock_download
        ):
            result = await provisioner.ensure_downloaded()

        assert result.decision.reason == DecisionReason.UP_TO_DATE
        mock_download.assert_not_called()

    @pytest.mark.asyncio
    async def test_forced_version_fetches_once(self, paths: ArtifactPaths) -> None:
        config = PrebuiltBinariesConfig(
            force_version="1.2.3",
            force_system_triple=TRIPLE,
            release_base_url=BASE_URL,
        )
        provisioner = Provisioner(config, paths)
        mock_download = _fake_download()

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value="v0.1.0")), patch(
            f"{MODULE}.download_artifact", mock_download
        ):
            first = await provisioner.ensure_downloaded()
            second = await provisioner.ensure_downloaded()

        expected_url = f"{BASE_URL}/1.2.3/{TRIPLE}.so"
        assert first.fetched is True
        assert first.url == expected_url
        assert first.triple == TRIPLE
        mock_download.assert_awaited_once_with(expected_url, paths.artifact_path)
        assert paths.version_path.read_text() == "1.2.3"

        assert second.fetched is False
        assert second.decision.reason == DecisionReason.UP_TO_DATE

    @pytest.mark.asyncio
    async def test_new_tag_replaces_old_prebuilt(self, paths: ArtifactPaths) -> None:
        paths.release_dir.mkdir(parents=True)
        paths.artifact_path.write_bytes(b"old")
        paths.version_path.write_text("v1.0.0")
        config = PrebuiltBinariesConfig(force_system_triple=TRIPLE, release_base_url=BASE_URL)
        provisioner = Provisioner(config, paths)

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value="v1.1.0")), patch(
            f"{MODULE}.download_artifact", _fake_download(b"new")
        ):
            result = await provisioner.ensure_downloaded()

        assert result.url == f"{BASE_URL}/v1.1.0/{TRIPLE}.so"
        assert paths.artifact_path.read_bytes() == b"new"
        assert paths.version_path.read_text() == "v1.1.0"

    @pytest.mark.asyncio
    async def test_download_failure_leaves_marker_untouched(self, paths: ArtifactPaths) -> None:
        config = PrebuiltBinariesConfig(force_version="v2.0.0", force_system_triple=TRIPLE)
        provisioner = Provisioner(config, paths)
        mock_write = AsyncMock()

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value=None)), patch(
            f"{MODULE}.download_artifact",
            AsyncMock(side_effect=FetchError("Failed to download pre-built binaries: HTTP 404")),
        ), patch(f"{MODULE}.write_marker", mock_write):
            with pytest.raises(FetchError, match="HTTP 404"):
                await provisioner.ensure_downloaded()

        mock_write.assert_not_called()

    @pytest.mark.asyncio
    async def test_marker_write_failure_surfaces(self, paths: ArtifactPaths) -> None:
        config = PrebuiltBinariesConfig(force_version="v2.0.0", force_system_triple=TRIPLE)
        provisioner = Provisioner(config, paths)

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value=None)), patch(
            f"{MODULE}.download_artifact", _fake_download()
        ), patch(
            f"{MODULE}.write_marker",
            AsyncMock(side_effect=MarkerError("Failed to write version marker: read-only")),
        ):
            with pytest.raises(MarkerError, match="read-only"):
                await provisioner.ensure_downloaded()

        assert paths.artifact_path.exists()

    @pytest.mark.asyncio
    async def test_unsupported_platform(self, paths: ArtifactPaths) -> None:
        provisioner = Provisioner(PrebuiltBinariesConfig(force_version="v1.0.0"), paths)
        mock_download = _fake_download()

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value=None)), patch(
            f"{MODULE}.get_system_triple", AsyncMock(return_value=None)
        ), patch("platform.system", return_value="Linux"), patch(
            "platform.machine", return_value="riscv64"
        ), patch(f"{MODULE}.download_artifact", mock_download):
            with pytest.raises(UnsupportedPlatformError, match="linux-riscv64"):
                await provisioner.ensure_downloaded()

        mock_download.assert_not_called()
        assert not paths.version_path.exists()

    @pytest.mark.asyncio
    async def test_git_failure_surfaces(self, paths: ArtifactPaths) -> None:
        provisioner = Provisioner(PrebuiltBinariesConfig(), paths)

        with patch(
            f"{MODULE}.get_git_tag",
            AsyncMock(side_effect=GitError("While getting git tag, git exited with code 1")),
        ):
            with pytest.raises(GitError, match="While getting git tag"):
                await provisioner.ensure_downloaded()


    @pytest.mark.asyncio
    async def test_fetch_without_version_is_unknown_state(self, paths: ArtifactPaths) -> None:
        provisioner = Provisioner(PrebuiltBinariesConfig(), paths)
        mock_download = _fake_download()
        broken = Decision(DecisionAction.FETCH, DecisionReason.VERSION_MISMATCH, None)

        with patch.object(Provisioner, "plan", AsyncMock(return_value=broken)):
            with patch(f"{MODULE}.download_artifact", mock_download):
                with pytest.raises(UnknownStateError):
                    await provisioner.ensure_downloaded()

        mock_download.assert_not_called()
        assert not paths.version_path.exists()

class TestPlan:
    """Tests for planning without acting."""

    @pytest.mark.asyncio
    async def test_plan_does_not_fetch(self, paths: ArtifactPaths) -> None:
        provisioner = Provisioner(PrebuiltBinariesConfig(force_version="v3.0.0"), paths)
        mock_download = _fake_download()

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value=None)), patch(
            f"{MODULE}.download_artifact", mock_download
        ):
            decision = await provisioner.plan()

        assert decision == Decision.fetch("v3.0.0")
        mock_download.assert_not_called()

    @pytest.mark.asyncio
    async def test_gather_state(self, paths: ArtifactPaths) -> None:
        paths.release_dir.mkdir(parents=True)
        paths.artifact_path.write_bytes(b"prebuilt")
        paths.version_path.write_text("v1.0.0")
        provisioner = Provisioner(PrebuiltBinariesConfig(), paths)

        with patch(f"{MODULE}.get_git_tag", AsyncMock(return_value="v1.0.0")):
            state = await provisioner.gather_state()

        assert state == ProvisioningState(
            desired_version="v1.0.0",
            installed=MarkerReadResult(version="v1.0.0"),
            downloaded=True,
        )


class TestSyncWrapper:
    """Tests for callers without an event loop."""

    def test_ensure_downloaded_sync(self, paths: ArtifactPaths) -> None:
        provisioner = Provisioner(PrebuiltBinariesConfig(download=False), paths)
        result = provisioner.ensure_downloaded_sync()
        assert result.decision.action == DecisionAction.NOOP


class TestCreateProvisioner:
    """Tests for the factory."""

    def test_default_lib_name(self, tmp_path: Path) -> None:
        provisioner = create_provisioner(PrebuiltBinariesConfig(), tmp_path)
        assert provisioner.paths.install_root == tmp_path
        assert provisioner.paths.artifact_path.name.startswith("libnative_core")

    def test_custom_lib_name(self, tmp_path: Path) -> None:
        provisioner = create_provisioner(PrebuiltBinariesConfig(), tmp_path, "fuzzy")
        assert provisioner.paths.alternate_artifact_path.name.startswith("fuzzy")
