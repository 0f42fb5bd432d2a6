"""Version marker persistence.

The marker is a tiny text file next to the artifact recording which
prebuilt version was downloaded. Its absence is a valid state, so reads
report failures instead of raising; writes raise MarkerError.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from libprovision.core.errors import MarkerError
from libprovision.core.logging import get_logger

LOGGER = get_logger(__name__)

# Only this many bytes of the marker are read back
VERSION_READ_LIMIT = 32


@dataclass(frozen=True)
class MarkerReadResult:
    """Result of reading the version marker.

    Attributes:
        version: Marker contents, "" for an empty file, None if unreadable.
        error: Description of the open/read failure, if any.
    """

    version: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def read_marker_sync(path: Path) -> MarkerReadResult:
    """Read the installed version from the marker file.

    Args:
        path: Marker file path.

    Returns:
        MarkerReadResult; a missing or unreadable file sets ``error``.
    """
    try:
        with open(path, "rb") as f:
            data = f.read(VERSION_READ_LIMIT + 1)
    except OSError as e:
        LOGGER.debug(f"Could not read version marker {path}: {e}")
        return MarkerReadResult(error=str(e))

    if len(data) > VERSION_READ_LIMIT:
        LOGGER.warning(
            f"Version marker {path} is longer than {VERSION_READ_LIMIT} bytes; "
            "only the prefix is compared"
        )
        data = data[:VERSION_READ_LIMIT]

    return MarkerReadResult(version=data.decode("utf-8", errors="replace"))


def write_marker_sync(path: Path, version: str) -> None:
    """Persist the installed version, replacing any previous marker.

    Args:
        path: Marker file path.
        version: Version string to record.

    Raises:
        MarkerError: If the version does not fit the read limit or the
            file cannot be opened or written.
    """
    data = version.encode("utf-8")
    if len(data) > VERSION_READ_LIMIT:
        raise MarkerError(
            f"Version {version!r} is longer than {VERSION_READ_LIMIT} bytes "
            "and cannot be recorded in the version marker"
        )

    try:
        with open(path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        raise MarkerError(f"Failed to write version marker {path}: {e}") from e

    LOGGER.debug(f"Recorded version {version} in {path}")


async def read_marker(path: Path) -> MarkerReadResult:
    """Async variant of read_marker_sync()."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, read_marker_sync, path)


async def write_marker(path: Path, version: str) -> None:
    """Async variant of write_marker_sync()."""
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, write_marker_sync, path, version)
