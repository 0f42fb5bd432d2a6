"""Artifact presence checks."""

from __future__ import annotations

import asyncio

from libprovision.bootstrap.paths import ArtifactPaths
from libprovision.core.logging import get_logger

LOGGER = get_logger(__name__)


def is_downloaded_sync(paths: ArtifactPaths) -> bool:
    """Check whether the artifact exists under either accepted filename.

    The canonical name is probed first, then the sibling without the
    ``lib`` prefix.
    """
    if paths.artifact_path.exists():
        LOGGER.debug(f"Artifact found at {paths.artifact_path}")
        return True

    if paths.alternate_artifact_path.exists():
        LOGGER.debug(f"Artifact found at {paths.alternate_artifact_path}")
        return True

    LOGGER.debug(f"No artifact at {paths.artifact_path} or {paths.alternate_artifact_path}")
    return False


async def is_downloaded(paths: ArtifactPaths) -> bool:
    """Async variant of is_downloaded_sync()."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, is_downloaded_sync, paths)
