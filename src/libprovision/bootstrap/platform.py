"""Platform detection for prebuilt binary selection.

Maps the running OS family, CPU architecture and (on Linux) libc flavor to
the target triple used to name release assets.
"""

from __future__ import annotations

import asyncio
import os
import platform
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

from libprovision.core.logging import get_logger

LOGGER = get_logger(__name__)

# File shipped by musl-based (Alpine) distributions
MUSL_MARKER_FILE = Path("/etc/alpine-release")

# Environment variables set by the Android runtime
_ANDROID_ENV_VARS = ("ANDROID_ROOT", "ANDROID_DATA")

# OS family aliases (lowercase)
_OS_ALIASES = {
    "darwin": "mac",
    "osx": "mac",
}


class ProbeResult(str, Enum):
    """Outcome of a best-effort platform probe.

    Any probe error maps to NOT_CONFIRMED; a missing marker file is the
    common case, not a failure.
    """

    CONFIRMED = "confirmed"
    NOT_CONFIRMED = "not_confirmed"


@dataclass(frozen=True)
class FixedTriple:
    """Triple that does not depend on the libc flavor."""

    triple: str

    def resolve(self, libc: str) -> str:
        return self.triple


@dataclass(frozen=True)
class LibcTriple:
    """Triple template completed with the libc flavor (gnu or musl)."""

    template: str

    def resolve(self, libc: str) -> str:
        return self.template.format(libc=libc)


TripleRule = Union[FixedTriple, LibcTriple]

# os -> arch bucket -> triple rule. "android" is a pseudo-arch under linux.
SYSTEM_TRIPLES: Dict[str, Dict[str, TripleRule]] = {
    "mac": {
        "arm": FixedTriple("aarch64-apple-darwin"),
        "x64": FixedTriple("x86_64-apple-darwin"),
    },
    "windows": {
        "x64": FixedTriple("x86_64-pc-windows-msvc"),
    },
    "linux": {
        "android": FixedTriple("aarch64-linux-android"),
        "arm": LibcTriple("aarch64-unknown-linux-{libc}"),
        "x64": LibcTriple("x86_64-unknown-linux-{libc}"),
    },
}


def detect_os() -> str:
    """Detect the current OS family.

    Returns:
        Lowercase OS family (mac, windows, linux, or the raw system name).
    """
    system = platform.system().lower()
    return _OS_ALIASES.get(system, system)


def normalize_arch(machine: str) -> Optional[str]:
    """Normalize an architecture string to an arch bucket.

    Args:
        machine: Raw architecture string from platform.machine().

    Returns:
        "arm", "x64", or None if unrecognized.
    """
    machine = machine.lower()
    if "arm" in machine or "aarch64" in machine:
        return "arm"
    if "x64" in machine or "x86_64" in machine or "amd64" in machine:
        return "x64"
    return None


def get_lib_extension(os_name: Optional[str] = None) -> str:
    """Return the shared library extension for an OS family."""
    os_name = os_name if os_name is not None else detect_os()
    if os_name == "mac":
        return ".dylib"
    if os_name == "windows":
        return ".dll"
    return ".so"


@dataclass(frozen=True)
class PlatformInfo:
    """Information about the current platform.

    Attributes:
        os: OS family (mac, windows, linux, ...).
        arch: Arch bucket (arm, x64) or None if unrecognized.
    """

    os: str
    arch: Optional[str]

    @property
    def label(self) -> str:
        """Human-readable label, e.g. "linux-x64"."""
        return f"{self.os}-{self.arch or platform.machine().lower()}"


def get_system_info() -> PlatformInfo:
    """Detect the OS family and arch bucket of the running system."""
    return PlatformInfo(os=detect_os(), arch=normalize_arch(platform.machine()))


def probe_musl(marker: Path = MUSL_MARKER_FILE) -> ProbeResult:
    """Check whether the running Linux distribution is musl-based."""
    try:
        marker.stat()
    except OSError:
        return ProbeResult.NOT_CONFIRMED
    return ProbeResult.CONFIRMED


def probe_android() -> ProbeResult:
    """Check whether the process runs under Android."""
    if sys.platform == "android":
        return ProbeResult.CONFIRMED
    if all(os.environ.get(var) for var in _ANDROID_ENV_VARS):
        return ProbeResult.CONFIRMED
    return ProbeResult.NOT_CONFIRMED


def resolve_triple(
    os_name: str,
    arch: Optional[str],
    *,
    musl: ProbeResult = ProbeResult.NOT_CONFIRMED,
    android: ProbeResult = ProbeResult.NOT_CONFIRMED,
) -> Optional[str]:
    """Map platform facts to a target triple.

    Args:
        os_name: OS family.
        arch: Arch bucket or None.
        musl: Result of the musl probe (only consulted on linux).
        android: Result of the android probe (only consulted on linux).

    Returns:
        The target triple, or None if no prebuilt binary exists.
    """
    triples = SYSTEM_TRIPLES.get(os_name)
    if triples is None:
        return None

    if os_name == "linux" and android is ProbeResult.CONFIRMED:
        return triples["android"].resolve("")

    if arch is None:
        return None
    rule = triples.get(arch)
    if rule is None:
        return None

    libc = "musl" if musl is ProbeResult.CONFIRMED else "gnu"
    return rule.resolve(libc)


def get_system_triple_sync(force_system_triple: Optional[str] = None) -> Optional[str]:
    """Resolve the target triple without suspending.

    Args:
        force_system_triple: Override returned verbatim when set.

    Returns:
        The target triple, or None if the platform is unsupported.
    """
    if force_system_triple:
        return force_system_triple

    info = get_system_info()
    if info.os != "linux":
        return resolve_triple(info.os, info.arch)

    android = probe_android()
    musl = ProbeResult.NOT_CONFIRMED
    if android is not ProbeResult.CONFIRMED:
        musl = probe_musl()
    return resolve_triple(info.os, info.arch, musl=musl, android=android)


async def get_system_triple(force_system_triple: Optional[str] = None) -> Optional[str]:
    """Resolve the target triple, running the filesystem probe off the loop.

    Shares resolve_triple() with get_system_triple_sync().
    """
    if force_system_triple:
        return force_system_triple

    info = get_system_info()
    if info.os != "linux":
        return resolve_triple(info.os, info.arch)

    android = probe_android()
    musl = ProbeResult.NOT_CONFIRMED
    if android is not ProbeResult.CONFIRMED:
        loop = asyncio.get_running_loop()
        musl = await loop.run_in_executor(None, probe_musl)
    triple = resolve_triple(info.os, info.arch, musl=musl, android=android)
    LOGGER.debug(f"Resolved system triple for {info.label}: {triple}")
    return triple
