"""Mutable state shared by the stages of one build."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from auroraboot.disk.builder import RawDiskImage
from auroraboot.disk.loop import LoopDeviceManager
from auroraboot.models.artifact import ArtifactInfo
from auroraboot.models.options import BuildOptions
from auroraboot.providers import ProviderRegistry, Rootfs


ArmBuilder = Callable[["BuildContext"], Awaitable[Path]]


@dataclass
class BuildContext:
    """Working directory handle and artifacts passed from stage to stage."""
    options: BuildOptions
    loop_manager: LoopDeviceManager
    providers: ProviderRegistry
    arm_builder: Optional[ArmBuilder] = None
    squashfs: Optional[Path] = None
    rootfs: Optional[Rootfs] = None
    artifact: Optional[ArtifactInfo] = None
    raw_disk: Optional[RawDiskImage] = None
    outputs: List[Path] = field(default_factory=list)

    @property
    def state_dir(self) -> Path:
        return Path(self.options.state_dir)

    @property
    def rootfs_dir(self) -> Path:
        return self.state_dir / "temp-rootfs"

    @property
    def build_dir(self) -> Path:
        return self.state_dir / "build"

    @property
    def mount_dir(self) -> Path:
        return self.state_dir / "mnt"

    @property
    def cloud_config(self) -> Optional[Path]:
        return Path(self.options.cloud_config) if self.options.cloud_config else None

    @classmethod
    def create(cls, options: BuildOptions, arm_builder: Optional[ArmBuilder] = None) -> "BuildContext":
        """Context with a loop manager and the source providers for ``options``."""
        providers = ProviderRegistry()
        loop_manager = LoopDeviceManager(
            lock_dir=Path(options.loop.lock_dir),
            slots=options.loop.slots,
            timeout=options.loop.timeout,
        )
        return cls(
            options=options,
            loop_manager=loop_manager,
            providers=providers,
            arm_builder=arm_builder,
        )
