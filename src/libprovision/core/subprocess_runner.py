"""Non-blocking subprocess execution.

Provides a coroutine for running external tools without stalling the
caller's event loop. Output is captured and returned for parsing.
"""

from __future__ import annotations

import asyncio
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from libprovision.core.logging import get_logger

LOGGER = get_logger(__name__)


async def run_command(
    cmd: List[str],
    cwd: Optional[Union[str, Path]] = None,
    tool_name: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """Run a command and wait for it asynchronously.

    Args:
        cmd: Command and arguments to run.
        cwd: Working directory for the command.
        tool_name: Name of the tool (used in log messages). Defaults to cmd[0].

    Returns:
        CompletedProcess with decoded stdout/stderr.

    Raises:
        subprocess.SubprocessError: If the command fails to start.
    """
    name = tool_name or cmd[0]
    LOGGER.debug(f"Running {name}: {' '.join(cmd)}")

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
        )
    except OSError as e:
        raise subprocess.SubprocessError(f"Failed to run {name}: {e}") from e

    stdout, stderr = await proc.communicate()
    returncode = proc.returncode if proc.returncode is not None else -1
    LOGGER.debug(f"{name} exited with code {returncode}")

    return subprocess.CompletedProcess(
        args=cmd,
        returncode=returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
