"""
Bootstrap module for prebuilt native library provisioning.

This module handles:
- Platform detection (OS + architecture + libc → target triple)
- Artifact layout and presence checks (target/release/)
- Version marker persistence (target/release/version.txt)
- Desired version resolution from git tags and overrides
- Downloading release assets and the provisioning decision itself
"""

from libprovision.bootstrap.paths import ArtifactPaths, get_libprovision_home
from libprovision.bootstrap.platform import (
    get_lib_extension,
    get_system_info,
    get_system_triple,
    get_system_triple_sync,
    PlatformInfo,
)
from libprovision.bootstrap.provisioner import (
    Decision,
    DecisionAction,
    Provisioner,
    ProvisionResult,
    create_provisioner,
    decide,
)

__all__ = [
    "ArtifactPaths",
    "get_libprovision_home",
    "get_lib_extension",
    "get_system_info",
    "get_system_triple",
    "get_system_triple_sync",
    "PlatformInfo",
    "Decision",
    "DecisionAction",
    "Provisioner",
    "ProvisionResult",
    "create_provisioner",
    "decide",
]
