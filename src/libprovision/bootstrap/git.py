"""Desired version resolution from config overrides and git tags."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional

from libprovision.core.errors import GitError
from libprovision.core.logging import get_logger
from libprovision.core.subprocess_runner import run_command

LOGGER = get_logger(__name__)

GIT_DIR_NAME = ".git"

# git exits with 128 when the checkout has no tag at HEAD (or is not a repo)
GIT_NO_TAG_EXIT_CODE = 128


def find_repo_root(start: Path) -> Optional[Path]:
    """Find the nearest directory at or above ``start`` containing .git.

    Args:
        start: Directory to start searching from.

    Returns:
        The repository root, or None if no repository is found.
    """
    start = start.resolve()
    for candidate in (start, *start.parents):
        if (candidate / GIT_DIR_NAME).exists():
            return candidate
    return None


def build_describe_command(repo_root: Path) -> List[str]:
    """Build the git command asking for an exact tag at HEAD."""
    return [
        "git",
        "--git-dir",
        str(repo_root / GIT_DIR_NAME),
        "--work-tree",
        str(repo_root),
        "describe",
        "--tags",
        "--exact-match",
    ]


async def get_git_tag(install_root: Path) -> Optional[str]:
    """Return the tag pointing exactly at HEAD of the checkout.

    A missing repository or a commit without an exact tag yields None;
    a nearest-ancestor tag is never used.

    Args:
        install_root: Directory inside the checkout.

    Returns:
        The tag name, or None.

    Raises:
        GitError: If git fails for any other reason.
    """
    repo_root = find_repo_root(install_root)
    if repo_root is None:
        LOGGER.debug(f"No git repository found at or above {install_root}")
        return None

    try:
        result = await run_command(
            build_describe_command(repo_root), cwd=repo_root, tool_name="git"
        )
    except subprocess.SubprocessError as e:
        raise GitError(f"While getting git tag, {e}") from e

    if result.returncode == GIT_NO_TAG_EXIT_CODE:
        LOGGER.debug("HEAD is not on an exact tag")
        return None
    if result.returncode != 0:
        raise GitError(
            f"While getting git tag, git exited with code {result.returncode}: {result.stderr}"
        )

    lines = result.stdout.splitlines()
    if not lines or not lines[0].strip():
        raise GitError("Expected at least 1 line of output from git describe")

    tag = lines[0].strip()
    LOGGER.debug(f"Checkout is on tag {tag}")
    return tag


def resolve_desired_version(
    force_version: Optional[str], git_tag: Optional[str]
) -> Optional[str]:
    """Pick the version to provision: forced version first, then git tag."""
    return force_version or git_tag
