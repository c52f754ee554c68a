"""Provider registry for root filesystem sources."""

import logging
from typing import Dict, Optional, Type

from auroraboot.models.options import SourceKind
from auroraboot.providers.base import RootfsProvider
from auroraboot.providers.container import ContainerRootfsProvider
from auroraboot.providers.squashfs import SquashfsRootfsProvider


logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry mapping source kinds to providers, created on first use."""
    
    def __init__(self):
        """Initialize provider registry."""
        self._providers: Dict[SourceKind, RootfsProvider] = {}
        self._provider_classes: Dict[SourceKind, Type[RootfsProvider]] = {
            SourceKind.CONTAINER: ContainerRootfsProvider,
            SourceKind.ISO: SquashfsRootfsProvider,
        }
        
    def get_provider(self, kind: SourceKind) -> Optional[RootfsProvider]:
        """Get the provider for a source kind, or None when there is none."""
        if kind not in self._providers:
            provider_class = self._provider_classes.get(kind)
            if provider_class is None:
                return None
            self._providers[kind] = provider_class()
            logger.debug(f"Created provider: {kind.value}")
        return self._providers[kind]
