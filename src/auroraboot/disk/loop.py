"""Serialized loop device allocation.

Loop device numbers are a host-wide resource. Every binding first takes a
slot: an exclusive ``flock`` on ``<lock_dir>/loop-<n>.lock``. Locks taken
through separate open file descriptions conflict with each other, so the
same mechanism serializes concurrent builds inside one process and across
processes. A crashed process releases its flock but may leave the loop
device itself attached; detaching it is left to the operator.
"""

import asyncio
import contextlib
import fcntl
import logging
import os
import subprocess
from pathlib import Path
from typing import AsyncIterator, Optional, Tuple

from auroraboot.exceptions import ResourceAcquisitionError
from auroraboot.utils.process import run_command


logger = logging.getLogger(__name__)


def partition_device(loopdev: str, partno: int) -> str:
    return f"{loopdev}p{partno}"


async def wait_for_device(path: str, timeout: float = 10.0, interval: float = 0.1) -> None:
    """Wait for udev to create a partition node."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not await asyncio.to_thread(os.path.exists, path):
        if loop.time() >= deadline:
            raise ResourceAcquisitionError(f"Device {path} did not appear within {timeout}s")
        await asyncio.sleep(interval)


class LoopDeviceManager:
    """Hands out at most ``slots`` loop device bindings at a time."""
    
    def __init__(self, lock_dir: Path, slots: int = 1, timeout: float = 300.0, poll_interval: float = 0.5):
        self.lock_dir = Path(lock_dir)
        self.slots = slots
        self.timeout = timeout
        self.poll_interval = poll_interval
        
    def _try_lock_slot(self) -> Optional[Tuple[int, int]]:
        for slot in range(self.slots):
            path = self.lock_dir / f"loop-{slot}.lock"
            fd = os.open(path, os.O_RDWR | os.O_CREAT | os.O_CLOEXEC, 0o644)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                os.close(fd)
                continue
            return slot, fd
        return None
        
    async def acquire_slot(self) -> Tuple[int, int]:
        """Block until a slot is free, returning ``(slot, lock_fd)``."""
        try:
            self.lock_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ResourceAcquisitionError(f"Cannot create loop lock directory {self.lock_dir}: {e}") from e
            
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        while True:
            try:
                acquired = self._try_lock_slot()
            except OSError as e:
                raise ResourceAcquisitionError(f"Cannot lock loop slot in {self.lock_dir}: {e}") from e
            if acquired is not None:
                logger.debug(f"Acquired loop slot {acquired[0]}")
                return acquired
            if loop.time() >= deadline:
                raise ResourceAcquisitionError(
                    f"No loop device slot became free within {self.timeout}s"
                )
            await asyncio.sleep(self.poll_interval)
            
    def release_slot(self, slot: int, fd: int) -> None:
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)
        logger.debug(f"Released loop slot {slot}")
        
    async def _detach(self, loopdev: str) -> None:
        try:
            result = await run_command(["losetup", "--detach", loopdev], check=False)
        except OSError as e:
            logger.warning(f"Failed to detach {loopdev}: {e}")
            return
        if result.returncode != 0:
            logger.warning(f"Failed to detach {loopdev}: {result.stderr.strip()}")
        else:
            logger.debug(f"Detached {loopdev}")
            
    @contextlib.asynccontextmanager
    async def attach(self, image: Path) -> AsyncIterator[str]:
        """Bind ``image`` to a loop device with partition scanning enabled."""
        slot, fd = await self.acquire_slot()
        try:
            try:
                result = await run_command(
                    ["losetup", "--find", "--show", "--partscan", str(image)]
                )
            except (subprocess.CalledProcessError, OSError) as e:
                stderr = getattr(e, "stderr", "") or ""
                raise ResourceAcquisitionError(
                    f"Failed to attach {image} to a loop device: {e} {stderr.strip()}"
                ) from e
                
            loopdev = result.stdout.strip()
            if not loopdev:
                raise ResourceAcquisitionError(f"losetup did not return a loop device for {image}")
            logger.info(f"Attached {image} as {loopdev}")
            
            try:
                yield loopdev
            finally:
                await self._detach(loopdev)
        finally:
            self.release_slot(slot, fd)
