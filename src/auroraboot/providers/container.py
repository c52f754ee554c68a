"""Container image root filesystem provider."""

import asyncio
import logging
import subprocess
from pathlib import Path

from auroraboot.models.artifact import ArtifactInfo
from auroraboot.models.options import BuildOptions
from auroraboot.providers.base import Rootfs, RootfsProvider
from auroraboot.utils.process import dir_size, run_command


logger = logging.getLogger(__name__)


class ContainerRootfsProvider(RootfsProvider):
    """Dumps a container image filesystem with docker or podman."""
    
    async def materialize(self, options: BuildOptions, dest: Path) -> Rootfs:
        """Export the image into ``dest`` and resolve its artifact metadata."""
        runtime = options.container_runtime
        reference = options.image_reference
        
        await self._ensure_image(runtime, reference)
        
        dest.mkdir(parents=True, exist_ok=True)
        tarball = dest.parent / f"{dest.name}.tar"
        
        logger.info(f"Dumping {reference} into {dest}")
        result = await run_command([runtime, "create", reference, "sh"])
        container_id = result.stdout.strip()
        try:
            await run_command([runtime, "export", "-o", str(tarball), container_id], timeout=3600)
            await run_command([
                "tar", "-xpf", str(tarball), "-C", str(dest),
                "--xattrs", "--xattrs-include=*", "--numeric-owner",
            ], timeout=3600)
        finally:
            await run_command([runtime, "rm", "-f", container_id], check=False)
            await asyncio.to_thread(tarball.unlink, missing_ok=True)
            
        size = await asyncio.to_thread(dir_size, dest)
        artifact = (
            await asyncio.to_thread(ArtifactInfo.from_release_file, dest)
            or ArtifactInfo.from_options(options)
            or ArtifactInfo.from_image_reference(reference)
        )
        if artifact is None:
            logger.warning(f"Could not determine artifact metadata for {reference}")
        return Rootfs(path=dest, size=size, artifact=artifact)
        
    async def _ensure_image(self, runtime: str, reference: str) -> None:
        """Use a local image when present, pull it otherwise."""
        result = await run_command([runtime, "image", "inspect", reference], check=False)
        if result.returncode == 0:
            logger.debug(f"Using local image {reference}")
            return
            
        logger.info(f"Pulling image {reference}")
        try:
            await run_command([runtime, "pull", reference], timeout=3600)
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to pull image {reference}: {e}. Stderr: {e.stderr}")
            raise
