"""
AuroraBoot - disk image builder for Kairos.

Turns an ISO release or a container image into raw EFI, MBR, GCE and VHD
disk images through an ordered pipeline of named stages.
"""

__version__ = "1.0.0"

# Re-export key components for easier access
from auroraboot.models.options import BuildOptions, DiskOptions
from auroraboot.pipeline.builder import PipelineBuilder
from auroraboot.pipeline.executor import PipelineExecutor

__all__ = [
    "BuildOptions",
    "DiskOptions",
    "PipelineBuilder",
    "PipelineExecutor",
]
