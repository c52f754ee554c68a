"""Subprocess and filesystem helpers."""

import asyncio
import contextlib
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, List, Optional


logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result from running a command."""
    returncode: int
    stdout: str = ""
    stderr: str = ""


async def run_command(
    cmd: List[str],
    check: bool = True,
    capture_output: bool = True,
    timeout: Optional[int] = None,
    input: Optional[str] = None,
    **kwargs
) -> CommandResult:
    """Run a command asynchronously."""
    logger.debug(f"Running command: {' '.join(cmd)}")
    
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdin=asyncio.subprocess.PIPE if input is not None else None,
        stdout=asyncio.subprocess.PIPE if capture_output else None,
        stderr=asyncio.subprocess.PIPE if capture_output else None,
        **kwargs
    )
    
    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(input.encode() if input is not None else None),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise subprocess.TimeoutExpired(cmd, timeout)
        
    result = CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode() if stdout else "",
        stderr=stderr.decode() if stderr else "",
    )
    
    if check and process.returncode != 0:
        error = subprocess.CalledProcessError(
            process.returncode, cmd
        )
        error.stdout = result.stdout
        error.stderr = result.stderr
        raise error
        
    return result


def dir_size(path: Path) -> int:
    """Disk usage of a tree in bytes, not following symlinks."""
    total = 0
    for entry in os.scandir(path):
        if entry.is_symlink():
            continue
        elif entry.is_file():
            total += entry.stat().st_blocks * 512
        elif entry.is_dir():
            total += dir_size(Path(entry.path))
    return total


@contextlib.asynccontextmanager
async def mounted(device: str, where: Path, options: Optional[str] = None) -> AsyncIterator[Path]:
    """Mount a device for the duration of the block."""
    where.mkdir(parents=True, exist_ok=True)
    cmd = ["mount", "-n"]
    if options:
        cmd += ["-o", options]
    await run_command(cmd + [device, str(where)])
    try:
        yield where
    finally:
        result = await run_command(["umount", "--recursive", "-n", str(where)], check=False)
        if result.returncode != 0:
            logger.warning(f"Failed to unmount {where}: {result.stderr.strip()}")
