"""Shared test fixtures."""

import pytest

from auroraboot.models.options import BuildOptions


@pytest.fixture
def iso_options(tmp_path):
    """ISO-sourced options requesting a raw EFI disk."""
    def _make(**disk):
        return BuildOptions(
            flavor="rockylinux",
            flavor_release="9",
            artifact_version="v3.2.1",
            release_version="v3.2.1",
            repository="kairos-io/kairos",
            state_dir=str(tmp_path / "state"),
            disable_http_server=True,
            disable_netboot=True,
            disk=disk or {"raw": True},
            loop={"lock_dir": str(tmp_path / "locks")},
        )
    return _make


@pytest.fixture
def container_options(tmp_path):
    """Container-sourced options."""
    def _make(**disk):
        return BuildOptions(
            container_image="docker://quay.io/kairos/opensuse:tumbleweed-core-amd64-generic-v3.2.1",
            state_dir=str(tmp_path / "state"),
            disable_http_server=True,
            disable_netboot=True,
            disk=disk or {"raw": True},
            loop={"lock_dir": str(tmp_path / "locks")},
        )
    return _make


@pytest.fixture
def make_raw(tmp_path):
    """Create a sparse raw image of the given size with a marker at the start."""
    def _make(size: int, name: str = "disk.raw"):
        path = tmp_path / name
        with open(path, "wb") as f:
            f.write(b"KAIROS")
            f.truncate(size)
        return path
    return _make
