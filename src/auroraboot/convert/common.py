"""Shared size helpers for disk format converters."""

import os
from pathlib import Path
from typing import BinaryIO

from auroraboot.exceptions import FormatInvariantError


SECTOR_SIZE = 512
MIB = 1024 * 1024
GIB = 1024 * MIB


def round_up(size: int, alignment: int) -> int:
    return -(-size // alignment) * alignment


def check_precursor(raw: Path) -> int:
    """Return the size of a finished raw image or raise FormatInvariantError."""
    try:
        size = os.stat(raw).st_size
    except FileNotFoundError as e:
        raise FormatInvariantError(f"raw disk image {raw} does not exist") from e
    if size == 0:
        raise FormatInvariantError(f"raw disk image {raw} is empty")
    if size % SECTOR_SIZE:
        raise FormatInvariantError(
            f"raw disk image {raw} is {size} bytes, not a whole number of {SECTOR_SIZE}-byte sectors"
        )
    return size


def pad_file(f: BinaryIO, size: int) -> None:
    """Zero-extend an open file to ``size`` bytes and move to its end."""
    f.flush()
    if os.fstat(f.fileno()).st_size < size:
        f.truncate(size)
    f.seek(size)
