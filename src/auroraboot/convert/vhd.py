"""Fixed VHD conversion.

A fixed VHD is the raw disk data followed by a 512-byte footer. The footer
layout (all integers big-endian):

    cookie(8) features(4) version(4) data-offset(8) timestamp(4)
    creator-app(4) creator-version(4) creator-host-os(4)
    original-size(8) current-size(8) geometry(4) disk-type(4)
    checksum(4) unique-id(16) saved-state(1) reserved(427)
"""

import logging
import shutil
import struct
import time
import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

from auroraboot.convert.common import MIB, SECTOR_SIZE, check_precursor, pad_file


logger = logging.getLogger(__name__)

FOOTER_SIZE = 512
FOOTER_FORMAT = ">8sIIQI4sI4sQQHBBII16sB427x"

VHD_COOKIE = b"conectix"
VHD_FEATURES = 0x00000002
VHD_VERSION = 0x00010000
VHD_FIXED_DATA_OFFSET = 0xFFFFFFFFFFFFFFFF
VHD_DISK_TYPE_FIXED = 0x00000002
VHD_EPOCH = 946684800  # 2000-01-01T00:00:00Z

CHECKSUM_OFFSET = 64


def vhd_timestamp(now: Optional[float] = None) -> int:
    """Seconds since the VHD epoch."""
    if now is None:
        now = time.time()
    return max(0, int(now) - VHD_EPOCH)


def chs_geometry(size: int) -> Tuple[int, int, int]:
    """Cylinders, heads and sectors per track for a disk of ``size`` bytes."""
    total_sectors = size // SECTOR_SIZE
    if total_sectors > 65535 * 16 * 255:
        total_sectors = 65535 * 16 * 255

    if total_sectors >= 65535 * 16 * 63:
        sectors = 255
        heads = 16
        cylinder_times_heads = total_sectors // sectors
    else:
        sectors = 17
        cylinder_times_heads = total_sectors // sectors
        heads = (cylinder_times_heads + 1023) // 1024
        if heads < 4:
            heads = 4
        if cylinder_times_heads >= heads * 1024 or heads > 16:
            sectors = 31
            heads = 16
            cylinder_times_heads = total_sectors // sectors
        if cylinder_times_heads >= heads * 1024:
            sectors = 63
            heads = 16
            cylinder_times_heads = total_sectors // sectors

    return cylinder_times_heads // heads, heads, sectors


def footer_checksum(footer: bytes) -> int:
    """Ones' complement of the byte sum, with the checksum field zeroed."""
    data = footer[:CHECKSUM_OFFSET] + b"\x00" * 4 + footer[CHECKSUM_OFFSET + 4:]
    return ~sum(data) & 0xFFFFFFFF


@dataclass(frozen=True)
class VHDFooter:
    """The 512-byte trailer of a fixed VHD."""
    original_size: int
    current_size: int
    cylinders: int
    heads: int
    sectors: int
    timestamp: int = field(default_factory=vhd_timestamp)
    unique_id: bytes = field(default_factory=lambda: uuid.uuid4().bytes)
    creator_application: bytes = b"elem"
    creator_version: int = 0x00010000
    creator_host_os: bytes = b"suse"
    cookie: bytes = VHD_COOKIE
    features: int = VHD_FEATURES
    version: int = VHD_VERSION
    data_offset: int = VHD_FIXED_DATA_OFFSET
    disk_type: int = VHD_DISK_TYPE_FIXED
    checksum: int = 0
    saved_state: int = 0

    @classmethod
    def for_size(cls, size: int, **kwargs) -> "VHDFooter":
        """Footer for a fixed disk holding ``size`` bytes of data."""
        cylinders, heads, sectors = chs_geometry(size)
        footer = cls(
            original_size=size,
            current_size=size,
            cylinders=cylinders,
            heads=heads,
            sectors=sectors,
            **kwargs,
        )
        return replace(footer, checksum=footer_checksum(footer._pack(0)))

    def _pack(self, checksum: int) -> bytes:
        return struct.pack(
            FOOTER_FORMAT,
            self.cookie,
            self.features,
            self.version,
            self.data_offset,
            self.timestamp,
            self.creator_application,
            self.creator_version,
            self.creator_host_os,
            self.original_size,
            self.current_size,
            self.cylinders,
            self.heads,
            self.sectors,
            self.disk_type,
            checksum,
            self.unique_id,
            self.saved_state,
        )

    def pack(self) -> bytes:
        return self._pack(self.checksum)

    @classmethod
    def unpack(cls, data: bytes) -> "VHDFooter":
        if len(data) != FOOTER_SIZE:
            raise ValueError(f"VHD footer must be {FOOTER_SIZE} bytes, got {len(data)}")
        (cookie, features, version, data_offset, timestamp, creator_application,
         creator_version, creator_host_os, original_size, current_size, cylinders,
         heads, sectors, disk_type, checksum, unique_id, saved_state) = struct.unpack(FOOTER_FORMAT, data)
        return cls(
            original_size=original_size,
            current_size=current_size,
            cylinders=cylinders,
            heads=heads,
            sectors=sectors,
            timestamp=timestamp,
            unique_id=unique_id,
            creator_application=creator_application,
            creator_version=creator_version,
            creator_host_os=creator_host_os,
            cookie=cookie,
            features=features,
            version=version,
            data_offset=data_offset,
            disk_type=disk_type,
            checksum=checksum,
            saved_state=saved_state,
        )

    def is_valid(self) -> bool:
        return self.cookie == VHD_COOKIE and self.checksum == footer_checksum(self.pack())


def vhd_data_size(size: int) -> int:
    """Smallest data size >= ``size`` for which data plus footer is a whole number of MiB."""
    total = -(-(size + FOOTER_SIZE) // MIB) * MIB
    return total - FOOTER_SIZE


def raw_to_vhd(raw: Path, output_dir: Path, name: str) -> Path:
    """Write ``<name>.raw.vhd`` next to the other outputs. ``raw`` is left untouched."""
    size = check_precursor(raw)
    output = Path(output_dir) / f"{name}.raw.vhd"
    data_size = vhd_data_size(size)

    logger.info(f"Converting {raw} to fixed VHD {output}")
    with open(raw, "rb") as src, open(output, "wb") as dst:
        shutil.copyfileobj(src, dst, length=4 * MIB)
        pad_file(dst, data_size)
        dst.write(VHDFooter.for_size(data_size).pack())

    logger.debug(f"VHD data size {data_size} bytes for {size} byte raw image")
    return output
