"""Artifact naming metadata."""

import re
import shlex
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from auroraboot.models.options import BuildOptions
from auroraboot.utils.templates import render_template


# <flavor_release>-core-<arch>-<variant>-<version>, as published by the Kairos release pipeline
_TAG_RE = re.compile(
    r"^(?P<flavor_release>.+?)-(?:core|standard)-(?P<arch>[^-]+)-(?P<variant>[^-]+)-(?P<version>v\d.*)$"
)

RELEASE_FILE = Path("etc/kairos-release")


class ArtifactInfo(BaseModel):
    """Fields combined into output file names."""
    flavor: str = Field(..., description="Distribution flavor, e.g. opensuse")
    flavor_release: str = Field(..., description="Flavor release, e.g. tumbleweed")
    arch: str = Field(default="amd64")
    variant: str = Field(default="generic")
    version: str = Field(..., description="Kairos version, e.g. v3.2.1")

    model_config = ConfigDict(frozen=True)

    def name(self, template: str) -> str:
        """Render the artifact base name (no extension)."""
        return render_template(template, **self.model_dump())

    @classmethod
    def from_options(cls, options: BuildOptions) -> Optional["ArtifactInfo"]:
        if not (options.flavor and options.flavor_release and options.artifact_version):
            return None
        return cls(
            flavor=options.flavor,
            flavor_release=options.flavor_release,
            arch=options.arch,
            variant=options.variant,
            version=options.artifact_version,
        )

    @classmethod
    def from_image_reference(cls, reference: str) -> Optional["ArtifactInfo"]:
        """Parse a reference like quay.io/kairos/opensuse:tumbleweed-core-amd64-generic-v3.2.1."""
        if "@" in reference:
            reference = reference.split("@", 1)[0]
        repository, sep, tag = reference.rpartition(":")
        if not sep or "/" in tag:
            return None
        match = _TAG_RE.match(tag)
        if not match:
            return None
        return cls(flavor=repository.rsplit("/", 1)[-1], **match.groupdict())

    @classmethod
    def from_release_file(cls, rootfs: Path) -> Optional["ArtifactInfo"]:
        """Read naming fields from a materialized root filesystem."""
        path = rootfs / RELEASE_FILE
        if not path.is_file():
            return None
        values = parse_release_file(path.read_text())
        try:
            return cls(
                flavor=values["KAIROS_FLAVOR"],
                flavor_release=values["KAIROS_FLAVOR_RELEASE"],
                arch=values.get("KAIROS_TARGETARCH") or values.get("KAIROS_ARCH") or "amd64",
                variant=values.get("KAIROS_MODEL") or "generic",
                version=values["KAIROS_VERSION"],
            )
        except KeyError:
            return None


def parse_release_file(content: str) -> Dict[str, str]:
    """Parse an os-release style KEY=value file."""
    values = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw = line.partition("=")
        try:
            parts = shlex.split(raw)
        except ValueError:
            continue
        values[key.strip()] = parts[0] if parts else ""
    return values
