"""MBR partition table emitter."""

import random
import struct
from pathlib import Path
from typing import List, NamedTuple, Optional, Sequence, Tuple


MBR_SIGNATURE = b"\x55\xaa"
MBR_BOOTABLE = 0x80
MBR_TYPE_LINUX = 0x83
MAX_PARTITIONS = 4

# Translation geometry used by every modern partitioning tool
HEADS = 255
SECTORS_PER_TRACK = 63


class MBRPartition(NamedTuple):
    start_lba: int
    sectors: int
    bootable: bool = False
    type: int = MBR_TYPE_LINUX


def lba_to_chs(lba: int) -> Tuple[int, int, int]:
    """CHS address of ``lba``, clamped to the largest encodable value."""
    cylinder = lba // (HEADS * SECTORS_PER_TRACK)
    if cylinder > 1023:
        return 1023, 254, 63
    head = (lba // SECTORS_PER_TRACK) % HEADS
    sector = lba % SECTORS_PER_TRACK + 1
    return cylinder, head, sector


def encode_chs(lba: int) -> bytes:
    cylinder, head, sector = lba_to_chs(lba)
    return bytes([head, (sector & 0x3F) | ((cylinder >> 2) & 0xC0), cylinder & 0xFF])


def encode_partition(partition: Optional[MBRPartition]) -> bytes:
    if partition is None:
        return b"\x00" * 16
    if partition.sectors <= 0:
        raise ValueError("partition must contain at least one sector")
    last = partition.start_lba + partition.sectors - 1
    if last > 0xFFFFFFFF:
        raise ValueError("partition does not fit in a 32-bit MBR entry")
    return (
        bytes([MBR_BOOTABLE if partition.bootable else 0x00])
        + encode_chs(partition.start_lba)
        + bytes([partition.type])
        + encode_chs(last)
        + struct.pack("<II", partition.start_lba, partition.sectors)
    )


def build_mbr(partitions: Sequence[MBRPartition], disk_signature: Optional[int] = None) -> bytes:
    """Build a 512-byte master boot record with an empty boot code area."""
    if len(partitions) > MAX_PARTITIONS:
        raise ValueError(f"MBR holds at most {MAX_PARTITIONS} primary partitions")
    if sum(1 for p in partitions if p.bootable) > 1:
        raise ValueError("only one partition can be marked bootable")
    if disk_signature is None:
        disk_signature = random.getrandbits(32)

    entries: List[Optional[MBRPartition]] = list(partitions) + [None] * (MAX_PARTITIONS - len(partitions))
    table = b"".join(encode_partition(p) for p in entries)

    record = b"\x00" * 440 + struct.pack("<I", disk_signature) + b"\x00\x00" + table + MBR_SIGNATURE
    return record


def write_mbr(image: Path, partitions: Sequence[MBRPartition], disk_signature: Optional[int] = None) -> None:
    """Write the partition table into the first sector of ``image``."""
    record = build_mbr(partitions, disk_signature)
    with open(image, "r+b") as f:
        f.seek(0)
        f.write(record)
