"""Release SquashFS root filesystem provider."""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx

from auroraboot.models.artifact import ArtifactInfo
from auroraboot.models.options import BuildOptions
from auroraboot.providers.base import Rootfs, RootfsProvider
from auroraboot.utils.process import dir_size, run_command
from auroraboot.utils.templates import render_template


logger = logging.getLogger(__name__)

SQUASHFS_NAME = "rootfs.squashfs"
DOWNLOAD_CHUNK = 1024 * 1024


def local_path(url: str) -> Optional[Path]:
    """Return the filesystem path for plain paths and file:// URLs."""
    parsed = urlparse(url)
    if parsed.scheme in ("", "file"):
        return Path(parsed.path)
    return None


class SquashfsRootfsProvider(RootfsProvider):
    """Downloads a release SquashFS and unpacks it."""
    
    def __init__(self):
        self.timeout = httpx.Timeout(60.0, read=300.0)
        
    def squashfs_url(self, options: BuildOptions) -> str:
        """Location of the SquashFS for the requested release."""
        if options.squashfs_url:
            return options.squashfs_url
        artifact = ArtifactInfo.from_options(options)
        if artifact is None:
            raise ValueError("flavor, flavor_release and artifact_version are required for an ISO source")
        return render_template(
            options.squashfs_url_template,
            repository=options.repository,
            release_version=options.effective_release_version,
            artifact_name=artifact.name(options.artifact_name_template),
            **artifact.model_dump(),
        )
        
    async def download(self, options: BuildOptions, dest_dir: Path) -> Path:
        """Fetch the SquashFS into ``dest_dir``, or point at a local copy."""
        url = self.squashfs_url(options)
        path = local_path(url)
        if path is not None:
            if not await asyncio.to_thread(path.is_file):
                raise FileNotFoundError(f"SquashFS not found: {path}")
            logger.info(f"Using local SquashFS {path}")
            return path
            
        dest_dir.mkdir(parents=True, exist_ok=True)
        target = dest_dir / SQUASHFS_NAME
        partial = dest_dir / f"{SQUASHFS_NAME}.part"
        
        logger.info(f"Downloading {url}")
        async with httpx.AsyncClient(follow_redirects=True, timeout=self.timeout) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                with open(partial, "wb") as f:
                    async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK):
                        f.write(chunk)
                        
        await asyncio.to_thread(shutil.move, partial, target)
        logger.debug(f"Downloaded SquashFS to {target}")
        return target
        
    async def extract(self, squashfs: Path, dest: Path, options: BuildOptions) -> Rootfs:
        """Unpack ``squashfs`` into ``dest``."""
        dest.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Extracting {squashfs} to {dest}")
        await run_command(["unsquashfs", "-f", "-d", str(dest), str(squashfs)])
        
        size = await asyncio.to_thread(dir_size, dest)
        artifact = (
            ArtifactInfo.from_options(options)
            or await asyncio.to_thread(ArtifactInfo.from_release_file, dest)
        )
        return Rootfs(path=dest, size=size, artifact=artifact)
        
    async def materialize(self, options: BuildOptions, dest: Path) -> Rootfs:
        squashfs = await self.download(options, dest.parent / "build")
        return await self.extract(squashfs, dest, options)
