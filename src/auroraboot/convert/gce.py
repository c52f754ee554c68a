"""Google Compute Engine image conversion.

GCE imports a gzip-compressed tarball holding a single ``disk.raw`` whose
size is a whole number of GiB.
"""

import logging
import tarfile
import time
from pathlib import Path
from typing import BinaryIO

from auroraboot.convert.common import GIB, check_precursor, round_up


logger = logging.getLogger(__name__)

GCE_ENTRY_NAME = "disk.raw"


class PaddedReader:
    """File-like reader returning the source bytes followed by zeros up to ``size``."""

    def __init__(self, source: BinaryIO, size: int):
        self.source = source
        self.size = size
        self.position = 0

    def read(self, n: int = -1) -> bytes:
        remaining = self.size - self.position
        if n is None or n < 0 or n > remaining:
            n = remaining
        if n <= 0:
            return b""
        chunk = self.source.read(n)
        if len(chunk) < n:
            chunk += b"\x00" * (n - len(chunk))
        self.position += n
        return chunk


def gce_size(size: int) -> int:
    """Smallest whole number of GiB holding ``size`` bytes."""
    return round_up(size, GIB)


def raw_to_gce(raw: Path, output_dir: Path, name: str, compresslevel: int = 6) -> Path:
    """Write ``<name>.raw.gce.tar.gz``. ``raw`` is streamed, never modified."""
    size = check_precursor(raw)
    padded = gce_size(size)
    output = Path(output_dir) / f"{name}.raw.gce.tar.gz"

    logger.info(f"Converting {raw} to GCE archive {output} ({padded} bytes)")
    info = tarfile.TarInfo(name=GCE_ENTRY_NAME)
    info.size = padded
    info.mode = 0o644
    info.mtime = int(time.time())

    with open(raw, "rb") as src:
        with tarfile.open(output, "w:gz", format=tarfile.GNU_FORMAT, compresslevel=compresslevel) as tar:
            tar.addfile(info, PaddedReader(src, padded))

    return output
