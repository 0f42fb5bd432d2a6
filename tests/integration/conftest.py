"""Pytest configuration and fixtures for integration tests."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable

import pytest

_git_available = shutil.which("git") is not None

git_available = pytest.mark.skipif(
    not _git_available,
    reason="git is not installed"
)


def _git(repo: Path, *args: str) -> None:
    subprocess.run(
        [
            "git",
            "-c", "user.name=libprovision",
            "-c", "user.email=libprovision@example.com",
            "-c", "commit.gpgsign=false",
            "-c", "tag.gpgsign=false",
            *args,
        ],
        cwd=repo,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a checkout with a single commit and no tags."""
    repo = tmp_path / "checkout"
    repo.mkdir()
    _git(repo, "init", "-q")
    (repo / "README.md").write_text("native core\n")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "-q", "-m", "Initial commit")
    return repo


@pytest.fixture
def tag_head() -> Callable[[Path, str], None]:
    """Return a helper that tags HEAD of a repository."""

    def _tag(repo: Path, tag: str) -> None:
        _git(repo, "tag", tag)

    return _tag


@pytest.fixture
def commit() -> Callable[[Path, str], None]:
    """Return a helper that adds an empty commit."""

    def _commit(repo: Path, message: str) -> None:
        _git(repo, "commit", "-q", "--allow-empty", "-m", message)

    return _commit
