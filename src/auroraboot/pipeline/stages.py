"""The master list of pipeline stages.

Each stage is an identifier, an applicability predicate over BuildOptions
and an async action over the shared BuildContext. The order of STAGES is the
execution order: producers of the root filesystem come before the disk
stages, and the raw disk stages come before the converters.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from auroraboot.convert import raw_to_gce, raw_to_vhd
from auroraboot.disk.builder import DiskBuilder
from auroraboot.exceptions import AuroraBootError, FormatInvariantError
from auroraboot.models.artifact import ArtifactInfo
from auroraboot.models.options import BuildOptions, SourceKind
from auroraboot.pipeline.context import BuildContext
from auroraboot.providers import Rootfs


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stage:
    """One named, conditionally applicable unit of work."""
    id: str
    description: str
    applies: Callable[[BuildOptions], bool]
    action: Callable[[BuildContext], Awaitable[None]]


def _artifact_name(ctx: BuildContext) -> str:
    if ctx.artifact is None:
        ctx.artifact = ArtifactInfo.from_options(ctx.options)
        if ctx.artifact is None and ctx.options.image_reference:
            ctx.artifact = ArtifactInfo.from_image_reference(ctx.options.image_reference)
    if ctx.artifact is None:
        raise AuroraBootError(
            "Cannot name the output: set flavor, flavor_release and artifact_version"
        )
    return ctx.artifact.name(ctx.options.artifact_name_template)


def _require_rootfs(ctx: BuildContext) -> Rootfs:
    if ctx.rootfs is None:
        raise AuroraBootError("Root filesystem has not been materialized")
    return ctx.rootfs


def _require_raw_disk(ctx: BuildContext) -> Path:
    if ctx.raw_disk is None:
        raise FormatInvariantError("No raw disk image has been generated")
    return ctx.raw_disk.path


def _disk_builder(ctx: BuildContext) -> DiskBuilder:
    return DiskBuilder(
        loop_manager=ctx.loop_manager,
        mount_dir=ctx.mount_dir,
        arch=ctx.options.arch,
        cloud_config=ctx.cloud_config,
    )


def _converted_name(raw: Path) -> str:
    return raw.name.removesuffix(".raw")


async def prepare_dirs(ctx: BuildContext) -> None:
    for path in (ctx.state_dir, ctx.build_dir, ctx.mount_dir):
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)


async def dump_source(ctx: BuildContext) -> None:
    provider = ctx.providers.get_provider(SourceKind.CONTAINER)
    ctx.rootfs = await provider.materialize(ctx.options, ctx.rootfs_dir)
    if ctx.rootfs.artifact is not None:
        ctx.artifact = ctx.rootfs.artifact


async def download_squashfs(ctx: BuildContext) -> None:
    provider = ctx.providers.get_provider(SourceKind.ISO)
    ctx.squashfs = await provider.download(ctx.options, ctx.build_dir)


async def extract_squashfs(ctx: BuildContext) -> None:
    if ctx.squashfs is None:
        raise AuroraBootError("SquashFS has not been downloaded")
    provider = ctx.providers.get_provider(SourceKind.ISO)
    ctx.rootfs = await provider.extract(ctx.squashfs, ctx.rootfs_dir, ctx.options)
    if ctx.rootfs.artifact is not None:
        ctx.artifact = ctx.rootfs.artifact


async def build_arm_image(ctx: BuildContext) -> None:
    if ctx.arm_builder is None:
        raise AuroraBootError("ARM images need an external ARM image builder")
    _require_rootfs(ctx)
    ctx.outputs.append(await ctx.arm_builder(ctx))


async def gen_raw_disk(ctx: BuildContext) -> None:
    rootfs = _require_rootfs(ctx)
    output = ctx.state_dir / f"{_artifact_name(ctx)}.raw"
    ctx.raw_disk = await _disk_builder(ctx).build_efi(
        rootfs.path, rootfs.size, output, minimum_mib=ctx.options.disk.size
    )
    if ctx.options.disk.raw:
        ctx.outputs.append(ctx.raw_disk.path)


async def gen_raw_mbr_disk(ctx: BuildContext) -> None:
    rootfs = _require_rootfs(ctx)
    ctx.raw_disk = await _disk_builder(ctx).build_mbr(
        rootfs.path, rootfs.size, ctx.state_dir, minimum_mib=ctx.options.disk.size
    )
    ctx.outputs.append(ctx.raw_disk.path)


async def convert_gce(ctx: BuildContext) -> None:
    raw = _require_raw_disk(ctx)
    ctx.outputs.append(
        await asyncio.to_thread(raw_to_gce, raw, ctx.state_dir, _converted_name(raw))
    )


async def convert_vhd(ctx: BuildContext) -> None:
    raw = _require_raw_disk(ctx)
    ctx.outputs.append(
        await asyncio.to_thread(raw_to_vhd, raw, ctx.state_dir, _converted_name(raw))
    )


def _is_container(options: BuildOptions) -> bool:
    return options.source_kind is SourceKind.CONTAINER


def _is_iso(options: BuildOptions) -> bool:
    return options.source_kind is SourceKind.ISO


STAGES = (
    Stage("prepare-dirs", "Create working directories", lambda o: True, prepare_dirs),
    Stage("dump-source", "Dump container image root filesystem", _is_container, dump_source),
    Stage("download-squashfs", "Download release SquashFS", _is_iso, download_squashfs),
    Stage("extract-squashfs", "Extract SquashFS root filesystem", _is_iso, extract_squashfs),
    Stage("build-arm-image", "Build ARM image", lambda o: o.disk.arm, build_arm_image),
    Stage("gen-raw-disk", "Generate EFI raw disk", lambda o: o.wants_raw_disk, gen_raw_disk),
    Stage("gen-raw-mbr-disk", "Generate MBR raw disk", lambda o: o.disk.mbr, gen_raw_mbr_disk),
    Stage("convert-gce", "Convert raw disk to GCE", lambda o: o.disk.gce, convert_gce),
    Stage("convert-vhd", "Convert raw disk to VHD", lambda o: o.disk.vhd, convert_vhd),
)
