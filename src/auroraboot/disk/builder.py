"""Bootable disk image assembly."""

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from auroraboot.convert.common import MIB, SECTOR_SIZE, round_up
from auroraboot.disk.loop import LoopDeviceManager, partition_device, wait_for_device
from auroraboot.disk.mbr import MBRPartition, write_mbr
from auroraboot.models.options import BootMode
from auroraboot.utils.process import mounted, run_command


logger = logging.getLogger(__name__)

GPT_ESP = "C12A7328-F81F-11D2-BA4B-00A0C93EC93B"
GPT_LINUX_DATA = "0FC63DAF-8483-4772-8E79-3D69D8477DE4"

# 1 MiB in front of the first partition, and another at the end for the
# backup GPT
PARTITION_OFFSET = MIB
GPT_FOOTER_SIZE = MIB
ESP_SIZE = 64 * MIB
HEADROOM = 256 * MIB

ESP_LABEL = "COS_GRUB"
DATA_LABEL = "COS_RECOVERY"
CLOUD_CONFIG_PATH = Path("oem/90_custom.yaml")
MBR_DISK_NAME = "disk.raw"

EFI_TARGETS = {
    "amd64": "x86_64-efi",
    "arm64": "arm64-efi",
}

GRUB_BOOTSTRAP = f"""search --no-floppy --label --set=root {DATA_LABEL}
set prefix=($root)/boot/grub
configfile ($root)/etc/cos/grub.cfg
"""


@dataclass
class RawDiskImage:
    """A raw block device image on disk."""
    path: Path
    size: int
    table: str = "none"


def disk_size(rootfs_size: int, boot_mode: BootMode, minimum_mib: Optional[int] = None) -> int:
    """Image size for a root filesystem of ``rootfs_size`` bytes, in whole MiB."""
    size = PARTITION_OFFSET + rootfs_size + rootfs_size // 4 + HEADROOM
    if boot_mode is BootMode.EFI:
        size += ESP_SIZE + GPT_FOOTER_SIZE
    if minimum_mib:
        size = max(size, minimum_mib * MIB)
    return round_up(size, MIB)


def create_sparse_file(path: Path, size: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)


def gpt_script() -> str:
    """sfdisk input for an ESP followed by a data partition filling the disk."""
    esp_start = PARTITION_OFFSET // SECTOR_SIZE
    esp_sectors = ESP_SIZE // SECTOR_SIZE
    return "\n".join([
        "label: gpt",
        f"start={esp_start}, size={esp_sectors}, type={GPT_ESP}, name=\"efi\"",
        f"start={esp_start + esp_sectors}, type={GPT_LINUX_DATA}, name=\"recovery\"",
        "",
    ])


class DiskBuilder:
    """Partitions, formats and populates raw disk images."""
    
    def __init__(
        self,
        loop_manager: LoopDeviceManager,
        mount_dir: Path,
        arch: str = "amd64",
        cloud_config: Optional[Path] = None,
    ):
        self.loop_manager = loop_manager
        self.mount_dir = Path(mount_dir)
        self.arch = arch
        self.cloud_config = Path(cloud_config) if cloud_config else None
        
    async def build_efi(
        self,
        rootfs: Path,
        rootfs_size: int,
        output: Path,
        minimum_mib: Optional[int] = None,
    ) -> RawDiskImage:
        """GPT disk with an EFI system partition and the root filesystem."""
        if self.arch not in EFI_TARGETS:
            raise ValueError(f"No EFI grub target for architecture {self.arch}")
            
        size = disk_size(rootfs_size, BootMode.EFI, minimum_mib)
        logger.info(f"Generating raw disk {output} ({size // MIB} MiB)")
        
        await asyncio.to_thread(create_sparse_file, output, size)
        await run_command(["sfdisk", "--color=never", str(output)], input=gpt_script())
        
        async with self.loop_manager.attach(output) as loopdev:
            esp = partition_device(loopdev, 1)
            data = partition_device(loopdev, 2)
            await wait_for_device(esp)
            await wait_for_device(data)
            
            await run_command(["mkfs.fat", "-F32", "-n", ESP_LABEL, esp])
            await run_command(["mkfs.ext4", "-F", "-L", DATA_LABEL, data])
            
            async with mounted(data, self.mount_dir / "data") as data_root:
                async with mounted(esp, self.mount_dir / "efi") as esp_root:
                    await self._populate(rootfs, data_root)
                    await self._install_grub_efi(esp_root, data_root)
                    
        return RawDiskImage(path=output, size=size, table="gpt")
        
    async def build_mbr(
        self,
        rootfs: Path,
        rootfs_size: int,
        output_dir: Path,
        minimum_mib: Optional[int] = None,
    ) -> RawDiskImage:
        """MBR disk with a single bootable primary partition.
        
        The output is always named disk.raw, whatever the artifact metadata.
        """
        output = Path(output_dir) / MBR_DISK_NAME
        size = disk_size(rootfs_size, BootMode.LEGACY, minimum_mib)
        logger.info(f"Generating MBR disk {output} ({size // MIB} MiB)")
        
        await asyncio.to_thread(create_sparse_file, output, size)
        start = PARTITION_OFFSET // SECTOR_SIZE
        partition = MBRPartition(start_lba=start, sectors=size // SECTOR_SIZE - start, bootable=True)
        await asyncio.to_thread(write_mbr, output, [partition])
        
        async with self.loop_manager.attach(output) as loopdev:
            data = partition_device(loopdev, 1)
            await wait_for_device(data)
            await run_command(["mkfs.ext4", "-F", "-L", DATA_LABEL, data])
            
            async with mounted(data, self.mount_dir / "data") as data_root:
                await self._populate(rootfs, data_root)
                await self._install_grub_legacy(loopdev, data_root)
                
        return RawDiskImage(path=output, size=size, table="mbr")
        
    async def _populate(self, rootfs: Path, data_root: Path) -> None:
        """Copy the tree keeping permissions, ownership, hardlinks, ACLs and xattrs."""
        logger.info(f"Copying {rootfs} into the data partition")
        await run_command([
            "rsync", "-aHAX", "--numeric-ids", f"{rootfs}/", f"{data_root}/",
        ])
        
        if self.cloud_config:
            target = data_root / CLOUD_CONFIG_PATH
            await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.copyfile, self.cloud_config, target)
            logger.debug(f"Installed cloud config at {target}")
            
    async def _write_grub_config(self, boot_dir: Path) -> None:
        grub_dir = boot_dir / "grub"
        await asyncio.to_thread(grub_dir.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread((grub_dir / "grub.cfg").write_text, GRUB_BOOTSTRAP)
        
    async def _install_grub_efi(self, esp_root: Path, data_root: Path) -> None:
        boot_dir = data_root / "boot"
        await run_command([
            "grub-install",
            f"--target={EFI_TARGETS[self.arch]}",
            f"--efi-directory={esp_root}",
            f"--boot-directory={boot_dir}",
            "--removable",
            "--no-nvram",
        ])
        await self._write_grub_config(boot_dir)
        
    async def _install_grub_legacy(self, loopdev: str, data_root: Path) -> None:
        boot_dir = data_root / "boot"
        await run_command([
            "grub-install",
            "--target=i386-pc",
            f"--boot-directory={boot_dir}",
            "--modules=part_msdos ext2",
            loopdev,
        ])
        await self._write_grub_config(boot_dir)
