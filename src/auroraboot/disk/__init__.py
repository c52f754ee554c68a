"""Raw disk generation."""

from auroraboot.disk.builder import DiskBuilder, RawDiskImage
from auroraboot.disk.loop import LoopDeviceManager

__all__ = ["DiskBuilder", "LoopDeviceManager", "RawDiskImage"]
