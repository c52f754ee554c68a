"""Build option models."""

from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_ARTIFACT_NAME_TEMPLATE = (
    "kairos-{{ flavor }}-{{ flavor_release }}-core-{{ arch }}-{{ variant }}-{{ version }}"
)
DEFAULT_SQUASHFS_URL_TEMPLATE = (
    "https://github.com/{{ repository }}/releases/download/"
    "{{ release_version }}/{{ artifact_name }}.squashfs"
)


class SourceKind(str, Enum):
    """Where the root filesystem comes from."""
    ISO = "iso"
    CONTAINER = "container"


class BootMode(str, Enum):
    """Firmware boot mode of the generated disk."""
    EFI = "efi"
    LEGACY = "legacy"


class OutputFormat(str, Enum):
    """Selectable disk outputs."""
    RAW = "raw"
    GCE = "gce"
    VHD = "vhd"
    MBR = "mbr"
    ARM = "arm"


class DiskOptions(BaseModel):
    """Requested disk outputs (the ``disk.*`` keys)."""
    raw: bool = False
    gce: bool = False
    vhd: bool = False
    mbr: bool = False
    arm: bool = False
    size: Optional[int] = Field(None, ge=1, description="Minimum disk size in MiB")

    model_config = ConfigDict(extra="ignore", frozen=True)


class LoopOptions(BaseModel):
    """Loop device slot pool settings."""
    slots: int = Field(default=1, ge=1)
    lock_dir: str = Field(default="/run/lock/auroraboot")
    timeout: float = Field(default=300.0, gt=0)

    model_config = ConfigDict(extra="ignore", frozen=True)


class BuildOptions(BaseModel):
    """Immutable snapshot of the requested build."""
    container_image: Optional[str] = Field(None, description="docker://<ref> source")
    squashfs_url: Optional[str] = Field(None, description="Explicit SquashFS location")
    state_dir: str = Field(default="/tmp/auroraboot")

    # Release artifact naming
    flavor: Optional[str] = None
    flavor_release: Optional[str] = None
    artifact_version: Optional[str] = None
    release_version: Optional[str] = None
    repository: str = Field(default="kairos-io/kairos")
    arch: str = Field(default="amd64")
    variant: str = Field(default="generic")

    cloud_config: Optional[str] = None
    container_runtime: str = Field(default="docker")
    artifact_name_template: str = Field(default=DEFAULT_ARTIFACT_NAME_TEMPLATE)
    squashfs_url_template: str = Field(default=DEFAULT_SQUASHFS_URL_TEMPLATE)

    # Serving toggles, carried but not acted upon by the disk pipeline
    disable_http_server: bool = False
    disable_netboot: bool = False

    log_level: str = Field(default="INFO")
    disk: DiskOptions = Field(default_factory=DiskOptions)
    loop: LoopOptions = Field(default_factory=LoopOptions)

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("container_runtime")
    @classmethod
    def validate_runtime(cls, v):
        """Only docker-compatible runtimes are supported."""
        if v not in ("docker", "podman"):
            raise ValueError(f"Unsupported container runtime: {v}")
        return v

    @property
    def source_kind(self) -> Optional[SourceKind]:
        if self.container_image:
            return SourceKind.CONTAINER
        if self.squashfs_url or self.flavor or self.artifact_version:
            return SourceKind.ISO
        return None

    @property
    def image_reference(self) -> Optional[str]:
        """Container image reference without the transport prefix."""
        if not self.container_image:
            return None
        return self.container_image.removeprefix("docker://")

    @property
    def boot_mode(self) -> BootMode:
        return BootMode.LEGACY if self.disk.mbr else BootMode.EFI

    @property
    def requested_formats(self) -> FrozenSet[OutputFormat]:
        return frozenset(f for f in OutputFormat if getattr(self.disk, f.value))

    @property
    def wants_raw_disk(self) -> bool:
        """Whether the GPT/EFI raw disk must be generated."""
        if self.boot_mode is BootMode.LEGACY:
            return False
        return bool(self.requested_formats & {OutputFormat.RAW, OutputFormat.GCE, OutputFormat.VHD})

    @property
    def effective_release_version(self) -> Optional[str]:
        return self.release_version or self.artifact_version
