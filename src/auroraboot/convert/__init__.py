"""Converters from a finished raw disk to cloud formats."""

from auroraboot.convert.gce import raw_to_gce
from auroraboot.convert.vhd import VHDFooter, raw_to_vhd

__all__ = ["VHDFooter", "raw_to_gce", "raw_to_vhd"]
