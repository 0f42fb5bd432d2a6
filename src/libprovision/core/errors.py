"""Error types raised during a provisioning run.

Every failure reaches the caller as a single descriptive message. Nothing
here is retried automatically; the caller re-invokes the run.
"""

from __future__ import annotations


class ProvisioningError(Exception):
    """Base class for all provisioning failures."""

    pass


class ConfigurationInsufficientError(ProvisioningError):
    """No local build exists and no target version can be resolved."""

    def __init__(self) -> None:
        super().__init__(
            "Can't download pre-built binaries: not on a git tag and no "
            "prebuilt_binaries.force_version set, and no locally built library was found. "
            "Either build the library locally (cargo build --release), "
            "switch to a tagged checkout, "
            "or set prebuilt_binaries.force_version in your config."
        )


class UnsupportedPlatformError(ProvisioningError):
    """No prebuilt binary exists for the running platform."""

    def __init__(self, platform_label: str = "") -> None:
        detail = f" ({platform_label})" if platform_label else ""
        super().__init__(
            f"Your system{detail} is not supported by pre-built binaries. "
            "You must build the library locally with cargo build --release."
        )


class UnknownStateError(ProvisioningError):
    """Catch-all when no decision rule applies."""

    def __init__(self) -> None:
        super().__init__(
            "Unknown error while getting pre-built binary. Consider re-installing."
        )


class ToolError(ProvisioningError):
    """An external tool (git, network transfer) failed."""

    pass


class GitError(ToolError):
    """git exited with an unexpected status."""

    pass


class FetchError(ToolError):
    """Downloading the artifact failed."""

    pass


class MarkerError(ProvisioningError):
    """The version marker could not be written."""

    pass
