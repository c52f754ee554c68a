"""Build option loading from YAML files and --set overrides."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from pydantic import ValidationError
from ruamel.yaml import YAML, YAMLError

from auroraboot.exceptions import ConfigurationError
from auroraboot.models.options import BuildOptions
from auroraboot.utils.templates import merge_dicts


logger = logging.getLogger(__name__)


def parse_override(item: str) -> Dict[str, Any]:
    """Turn ``disk.raw=true`` into ``{"disk": {"raw": "true"}}``.
    
    Values stay strings; the option models coerce them.
    """
    key, sep, value = item.partition("=")
    key = key.strip()
    if not sep or not key:
        raise ConfigurationError(f"Invalid --set value {item!r}, expected key=value")
        
    result: Dict[str, Any] = {}
    node = result
    parts = key.split(".")
    for part in parts[:-1]:
        node = node.setdefault(part, {})
    node[parts[-1]] = value
    return result


class ConfigManager:
    """Builds BuildOptions from an optional YAML file plus overrides."""
    
    def __init__(self):
        """Initialize configuration manager."""
        self.yaml = YAML(typ="safe")
        self.data: Dict[str, Any] = {}
        self.options: Optional[BuildOptions] = None
        
    async def load(
        self,
        config_file: Optional[Path] = None,
        overrides: Iterable[str] = (),
        cloud_config: Optional[Path] = None,
    ) -> BuildOptions:
        """Load configuration and return validated options."""
        data: Dict[str, Any] = {}
        if config_file is not None:
            logger.info(f"Loading configuration from {config_file}")
            data = await self._read_yaml(Path(config_file))
            
        for item in overrides:
            data = merge_dicts(data, parse_override(item))
            
        if cloud_config is not None:
            if not await asyncio.to_thread(Path(cloud_config).is_file):
                raise ConfigurationError(f"Cloud config not found: {cloud_config}")
            data["cloud_config"] = str(cloud_config)
            
        self.data = data
        try:
            self.options = BuildOptions(**data)
        except ValidationError as e:
            logger.error(f"Invalid build options: {e}")
            raise ConfigurationError(f"Invalid build options: {e}") from e
            
        logger.debug(f"Loaded build options: {self.options.model_dump()}")
        return self.options
        
    async def _read_yaml(self, file_path: Path) -> Dict[str, Any]:
        """Read and parse a YAML mapping."""
        try:
            content = await asyncio.to_thread(file_path.read_text)
        except OSError as e:
            raise ConfigurationError(f"Cannot read {file_path}: {e}") from e
        try:
            data = self.yaml.load(content)
        except YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {file_path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{file_path} must contain a mapping")
        return data
