"""Base root filesystem provider interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from auroraboot.models.artifact import ArtifactInfo
from auroraboot.models.options import BuildOptions


@dataclass
class Rootfs:
    """A materialized root filesystem tree."""
    path: Path
    size: int
    artifact: Optional[ArtifactInfo] = None


class RootfsProvider(ABC):
    """Base interface that all root filesystem sources implement."""
    
    @abstractmethod
    async def materialize(self, options: BuildOptions, dest: Path) -> Rootfs:
        """Produce the root filesystem at ``dest``."""
        pass
