"""Exceptions raised by auroraboot."""

from typing import List, Optional


class AuroraBootError(RuntimeError):
    """Base class for all build errors."""


class ConfigurationError(AuroraBootError):
    """Build options are invalid or contradictory."""


class ResourceAcquisitionError(AuroraBootError):
    """A loop device slot could not be acquired or bound."""


class FormatInvariantError(AuroraBootError):
    """A converter precursor is missing or has an inconsistent size."""


class StageExecutionError(AuroraBootError):
    """A pipeline stage failed."""

    def __init__(self, stage_id: str, cause: BaseException, trail: Optional[List[str]] = None):
        self.stage_id = stage_id
        self.cause = cause
        self.trail = list(trail or [])
        super().__init__(f"stage {stage_id} failed: {cause}")
