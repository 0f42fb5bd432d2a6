"""Provisioning of the prebuilt native library.

One provisioning run gathers three independent facts (desired version,
installed version marker, artifact presence), decides between doing
nothing, failing, or fetching exactly once, and on fetch downloads the
artifact and then records the fetched version in the marker.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Tuple

from libprovision.bootstrap.download import construct_download_url, download_artifact
from libprovision.bootstrap.git import get_git_tag, resolve_desired_version
from libprovision.bootstrap.locator import is_downloaded
from libprovision.bootstrap.marker import MarkerReadResult, read_marker, write_marker
from libprovision.bootstrap.paths import ArtifactPaths
from libprovision.bootstrap.platform import get_system_info, get_system_triple
from libprovision.core.errors import (
    ConfigurationInsufficientError,
    ProvisioningError,
    UnknownStateError,
    UnsupportedPlatformError,
)
from libprovision.core.logging import get_logger

if TYPE_CHECKING:
    from libprovision.config.models import PrebuiltBinariesConfig

LOGGER = get_logger(__name__)


class DecisionAction(str, Enum):
    """What a provisioning run will do."""

    NOOP = "noop"
    FATAL = "fatal"
    FETCH = "fetch"


class DecisionReason(str, Enum):
    """Which rule produced the decision."""

    DOWNLOAD_DISABLED = "download_disabled"
    NO_TARGET_VERSION = "no_target_version"
    LOCAL_BUILD = "local_build"
    UP_TO_DATE = "up_to_date"
    UNKNOWN_STATE = "unknown_state"
    VERSION_MISMATCH = "version_mismatch"


@dataclass(frozen=True)
class Decision:
    """Outcome of the provisioning decision table.

    Attributes:
        action: NOOP, FATAL or FETCH.
        reason: Rule that matched.
        version: Version to fetch (FETCH only).
    """

    action: DecisionAction
    reason: DecisionReason
    version: Optional[str] = None

    @classmethod
    def noop(cls, reason: DecisionReason) -> "Decision":
        return cls(DecisionAction.NOOP, reason)

    @classmethod
    def fatal(cls, reason: DecisionReason) -> "Decision":
        return cls(DecisionAction.FATAL, reason)

    @classmethod
    def fetch(cls, version: str) -> "Decision":
        return cls(DecisionAction.FETCH, DecisionReason.VERSION_MISMATCH, version)

    def to_error(self) -> ProvisioningError:
        """Build the user-facing error for a FATAL decision."""
        if self.reason == DecisionReason.NO_TARGET_VERSION:
            return ConfigurationInsufficientError()
        return UnknownStateError()


@dataclass(frozen=True)
class ProvisioningState:
    """Facts gathered before deciding."""

    desired_version: Optional[str]
    installed: MarkerReadResult
    downloaded: bool


@dataclass(frozen=True)
class ProvisionResult:
    """Result of a successful provisioning run.

    Attributes:
        decision: The decision that was carried out.
        url: Download URL, when a fetch happened.
        triple: Target triple used for the fetch.
    """

    decision: Decision
    url: Optional[str] = None
    triple: Optional[str] = None

    @property
    def fetched(self) -> bool:
        return self.decision.action == DecisionAction.FETCH


def decide(download_enabled: bool, state: Optional[ProvisioningState]) -> Decision:
    """Evaluate the provisioning decision table in order.

    Args:
        download_enabled: Whether prebuilt downloads are enabled.
        state: Gathered facts; ignored (and may be None) when downloads are disabled.

    Returns:
        The decision for this run.
    """
    if not download_enabled or state is None:
        return Decision.noop(DecisionReason.DOWNLOAD_DISABLED)

    desired = state.desired_version
    installed = state.installed

    # not built locally and nothing to download
    if not state.downloaded and not desired:
        return Decision.fatal(DecisionReason.NO_TARGET_VERSION)

    # built locally, leave it alone
    if state.downloaded and (not installed.ok or installed.version is None):
        return Decision.noop(DecisionReason.LOCAL_BUILD)

    if state.downloaded and installed.version == desired:
        return Decision.noop(DecisionReason.UP_TO_DATE)

    if not desired:
        return Decision.fatal(DecisionReason.UNKNOWN_STATE)

    return Decision.fetch(desired)


class Provisioner:
    """Ensures the prebuilt native library matches the desired version.

    The configuration is read once per run; paths are fixed at construction.
    Concurrent runs against the same paths are not guarded.
    """

    def __init__(self, config: "PrebuiltBinariesConfig", paths: ArtifactPaths) -> None:
        """Initialize the provisioner.

        Args:
            config: Download policy and overrides.
            paths: Artifact and marker locations.
        """
        self._config = config
        self._paths = paths

    @property
    def paths(self) -> ArtifactPaths:
        return self._paths

    async def gather_state(self) -> ProvisioningState:
        """Collect desired version, marker contents and artifact presence concurrently.

        Raises:
            GitError: If the tag lookup fails unexpectedly.
        """
        git_tag, installed, downloaded = await asyncio.gather(
            get_git_tag(self._paths.install_root),
            read_marker(self._paths.version_path),
            is_downloaded(self._paths),
        )
        desired = resolve_desired_version(self._config.force_version, git_tag)
        LOGGER.debug(
            f"Provisioning state: desired={desired!r} installed={installed.version!r} "
            f"marker_error={installed.error!r} downloaded={downloaded}"
        )
        return ProvisioningState(
            desired_version=desired,
            installed=installed,
            downloaded=downloaded,
        )

    async def plan(self) -> Decision:
        """Gather state and decide, without acting."""
        if not self._config.download:
            return decide(False, None)
        return decide(True, await self.gather_state())

    async def ensure_downloaded(self) -> ProvisionResult:
        """Run one provisioning run.

        Returns:
            ProvisionResult describing what was done.

        Raises:
            ProvisioningError: On any failure; the message is user-facing.
        """
        decision = await self.plan()
        LOGGER.debug(f"Provisioning decision: {decision.action.value} ({decision.reason.value})")

        if decision.action == DecisionAction.FATAL:
            raise decision.to_error()
        if decision.action == DecisionAction.NOOP:
            return ProvisionResult(decision=decision)

        if decision.version is None:
            raise UnknownStateError()
        url, triple = await self.fetch(decision.version)
        return ProvisionResult(decision=decision, url=url, triple=triple)

    async def fetch(self, version: str) -> Tuple[str, str]:
        """Download ``version`` for this platform and record it in the marker.

        Returns:
            Tuple of (url, triple).

        Raises:
            UnsupportedPlatformError: If no triple exists for this platform.
            FetchError: If the download fails.
            MarkerError: If the marker cannot be written.
        """
        triple = await get_system_triple(self._config.force_system_triple)
        if triple is None:
            raise UnsupportedPlatformError(get_system_info().label)

        url = construct_download_url(
            version,
            triple,
            self._paths.extension,
            self._config.release_base_url,
        )
        await download_artifact(url, self._paths.artifact_path)
        await write_marker(self._paths.version_path, version)
        LOGGER.info(f"Provisioned pre-built binary {version} ({triple})")
        return url, triple

    def ensure_downloaded_sync(self) -> ProvisionResult:
        """Run ensure_downloaded() for callers without an event loop."""
        return asyncio.run(self.ensure_downloaded())


def create_provisioner(
    config: "PrebuiltBinariesConfig",
    install_root: Path,
    lib_name: Optional[str] = None,
) -> Provisioner:
    """Build a Provisioner for an installation root."""
    if lib_name:
        paths = ArtifactPaths.for_root(install_root, lib_name)
    else:
        paths = ArtifactPaths.for_root(install_root)
    return Provisioner(config, paths)
