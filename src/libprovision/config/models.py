"""Typed configuration models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from libprovision.bootstrap.download import DEFAULT_RELEASE_BASE_URL
from libprovision.bootstrap.paths import DEFAULT_LIB_NAME


@dataclass
class PrebuiltBinariesConfig:
    """Download policy for prebuilt binaries.

    Attributes:
        download: Master switch; when False no probes or downloads happen.
        force_version: Version to provision regardless of the git tag.
        force_system_triple: Target triple to use instead of detection.
        release_base_url: Base URL of release assets.
    """

    download: bool = True
    force_version: Optional[str] = None
    force_system_triple: Optional[str] = None
    release_base_url: str = DEFAULT_RELEASE_BASE_URL


@dataclass
class ArtifactConfig:
    """Which artifact is provisioned and where."""

    lib_name: str = DEFAULT_LIB_NAME
    install_root: Optional[Path] = None


@dataclass
class LibprovisionConfig:
    """Complete libprovision configuration."""

    artifact: ArtifactConfig = field(default_factory=ArtifactConfig)
    prebuilt_binaries: PrebuiltBinariesConfig = field(default_factory=PrebuiltBinariesConfig)

    # Track config sources for debugging
    _config_sources: List[str] = field(default_factory=list, repr=False)

    @property
    def sources(self) -> List[str]:
        """Where this configuration was loaded from, lowest precedence first."""
        return list(self._config_sources)
