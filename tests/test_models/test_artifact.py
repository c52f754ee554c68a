"""Tests for artifact naming."""

import pytest
from jinja2 import UndefinedError

from auroraboot.models.artifact import ArtifactInfo, parse_release_file
from auroraboot.models.options import DEFAULT_ARTIFACT_NAME_TEMPLATE, BuildOptions


class TestArtifactInfo:
    """Test ArtifactInfo model."""
    
    def test_default_name(self):
        """Test the default artifact name template."""
        artifact = ArtifactInfo(flavor="rockylinux", flavor_release="9", version="v3.2.1")
        
        assert artifact.name(DEFAULT_ARTIFACT_NAME_TEMPLATE) == (
            "kairos-rockylinux-9-core-amd64-generic-v3.2.1"
        )
        
    def test_custom_template(self):
        artifact = ArtifactInfo(flavor="ubuntu", flavor_release="24.04", version="v3.2.1", arch="arm64")
        
        assert artifact.name("{{ flavor }}_{{ arch }}") == "ubuntu_arm64"
        
    def test_unknown_template_variable(self):
        """Test templates referencing unknown fields fail loudly."""
        artifact = ArtifactInfo(flavor="ubuntu", flavor_release="24.04", version="v3.2.1")
        
        with pytest.raises(UndefinedError):
            artifact.name("{{ codename }}")
            
    def test_from_options(self):
        options = BuildOptions(flavor="rockylinux", flavor_release="9", artifact_version="v3.2.1")
        
        artifact = ArtifactInfo.from_options(options)
        
        assert artifact.flavor == "rockylinux"
        assert artifact.flavor_release == "9"
        assert artifact.version == "v3.2.1"
        
    def test_from_options_incomplete(self):
        assert ArtifactInfo.from_options(BuildOptions(flavor="rockylinux")) is None
        
    def test_from_image_reference(self):
        """Test parsing a Kairos image reference."""
        artifact = ArtifactInfo.from_image_reference(
            "quay.io/kairos/opensuse:tumbleweed-core-amd64-generic-v3.2.1"
        )
        
        assert artifact.flavor == "opensuse"
        assert artifact.flavor_release == "tumbleweed"
        assert artifact.arch == "amd64"
        assert artifact.variant == "generic"
        assert artifact.version == "v3.2.1"
        
    def test_from_image_reference_with_digest(self):
        artifact = ArtifactInfo.from_image_reference(
            "quay.io/kairos/ubuntu:24.04-standard-arm64-rpi4-v3.2.1-k3sv1.30.0@sha256:abcd"
        )
        
        assert artifact.flavor == "ubuntu"
        assert artifact.flavor_release == "24.04"
        assert artifact.variant == "rpi4"
        assert artifact.version == "v3.2.1-k3sv1.30.0"
        
    @pytest.mark.parametrize("reference", [
        "quay.io/kairos/opensuse",
        "quay.io/kairos/opensuse:latest",
        "localhost:5000/kairos",
    ])
    def test_from_image_reference_unparseable(self, reference):
        assert ArtifactInfo.from_image_reference(reference) is None
        
    def test_from_release_file(self, tmp_path):
        """Test reading naming fields from the root filesystem."""
        (tmp_path / "etc").mkdir()
        (tmp_path / "etc" / "kairos-release").write_text(
            'KAIROS_FLAVOR="alpine"\n'
            'KAIROS_FLAVOR_RELEASE="3.19"\n'
            'KAIROS_TARGETARCH="amd64"\n'
            'KAIROS_MODEL="generic"\n'
            'KAIROS_VERSION="v3.2.1"\n'
        )
        
        artifact = ArtifactInfo.from_release_file(tmp_path)
        
        assert artifact == ArtifactInfo(
            flavor="alpine", flavor_release="3.19", arch="amd64", variant="generic", version="v3.2.1"
        )
        
    def test_from_release_file_missing(self, tmp_path):
        assert ArtifactInfo.from_release_file(tmp_path) is None
        
    def test_from_release_file_incomplete(self, tmp_path):
        (tmp_path / "etc").mkdir()
        (tmp_path / "etc" / "kairos-release").write_text('KAIROS_FLAVOR="alpine"\n')
        
        assert ArtifactInfo.from_release_file(tmp_path) is None


def test_parse_release_file():
    """Test os-release style parsing."""
    values = parse_release_file(
        "# comment\n"
        "\n"
        "NAME='Kairos Linux'\n"
        "KAIROS_VERSION=v3.2.1\n"
        "BROKEN\n"
        "EMPTY=\n"
    )
    
    assert values == {"NAME": "Kairos Linux", "KAIROS_VERSION": "v3.2.1", "EMPTY": ""}
