"""Root filesystem providers."""

from auroraboot.providers.base import Rootfs, RootfsProvider
from auroraboot.providers.registry import ProviderRegistry

__all__ = [
    "ProviderRegistry",
    "Rootfs",
    "RootfsProvider",
]
