"""Pydantic models for build options and artifacts."""

from auroraboot.models.options import (
    BootMode,
    BuildOptions,
    DiskOptions,
    LoopOptions,
    OutputFormat,
    SourceKind,
)
from auroraboot.models.artifact import ArtifactInfo

__all__ = [
    "ArtifactInfo",
    "BootMode",
    "BuildOptions",
    "DiskOptions",
    "LoopOptions",
    "OutputFormat",
    "SourceKind",
]
