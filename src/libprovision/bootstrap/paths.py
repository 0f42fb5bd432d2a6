"""Path management for the provisioned artifact.

Handles the ~/.libprovision home directory (global config) and the fixed
artifact layout under an installation root:

    <install-root>/
        target/
            release/
                lib<name><ext>   - the native library (prebuilt or local build)
                version.txt      - version marker for a prebuilt download
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from libprovision.bootstrap.platform import get_lib_extension

# Default directory name under user home
DEFAULT_HOME_DIR_NAME = ".libprovision"

# Environment variable to override home directory
LIBPROVISION_HOME_ENV = "LIBPROVISION_HOME"

# Name of the native library without prefix or extension
DEFAULT_LIB_NAME = "native_core"

# Conventional prefix some build tooling omits (notably on Windows)
LIB_PREFIX = "lib"

RELEASE_DIR = Path("target") / "release"
VERSION_FILE_NAME = "version.txt"


def get_libprovision_home() -> Path:
    """Get the libprovision home directory path.

    Resolution order:
    1. LIBPROVISION_HOME environment variable (if set)
    2. ~/.libprovision (default)

    Returns:
        Path to the libprovision home directory.
    """
    env_home = os.environ.get(LIBPROVISION_HOME_ENV)
    if env_home:
        return Path(env_home)
    return Path.home() / DEFAULT_HOME_DIR_NAME


@dataclass(frozen=True)
class ArtifactPaths:
    """Fixed locations of the artifact and its version marker.

    Computed once from the installation root and never changed during a
    provisioning run.

    Attributes:
        install_root: Root of the checkout the artifact belongs to.
        artifact_path: Canonical artifact path (with ``lib`` prefix).
        alternate_artifact_path: Sibling path without the ``lib`` prefix.
        version_path: Path of the version marker file.
        extension: Platform library extension, including the dot.
    """

    install_root: Path
    artifact_path: Path
    alternate_artifact_path: Path
    version_path: Path
    extension: str

    @classmethod
    def for_root(
        cls,
        install_root: Path,
        lib_name: str = DEFAULT_LIB_NAME,
        extension: Optional[str] = None,
    ) -> "ArtifactPaths":
        """Compute the artifact layout for an installation root.

        Args:
            install_root: Root of the checkout.
            lib_name: Library name without prefix or extension.
            extension: Library extension; detected from the running OS if omitted.

        Returns:
            ArtifactPaths for the given root.
        """
        ext = extension if extension is not None else get_lib_extension()
        release_dir = install_root / RELEASE_DIR
        return cls(
            install_root=install_root,
            artifact_path=release_dir / f"{LIB_PREFIX}{lib_name}{ext}",
            alternate_artifact_path=release_dir / f"{lib_name}{ext}",
            version_path=release_dir / VERSION_FILE_NAME,
            extension=ext,
        )

    @property
    def release_dir(self) -> Path:
        """Directory holding the artifact and the marker."""
        return self.artifact_path.parent
