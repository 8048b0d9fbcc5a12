"""
fsdbg - Live ISO Checklist

Layout of the bootable live ISO:

    boot/       kernel, live and installed initramfs, pre-built UKIs
    live/       filesystem.erofs rootfs plus the live overlay directory
    EFI/BOOT/   systemd-boot (BOOTX64.EFI)
    EFI/Linux/  live UKIs, auto-discovered by systemd-boot
    loader/     loader.conf
    efiboot.img FAT EFI boot image
"""

from ..core.checklist_engine import CheckCategory, Criticality, directory, exists
from .components import (
    ISO_BOOT_FILES,
    ISO_DIRS,
    ISO_EFI_BOOTLOADER,
    ISO_EFIBOOT_IMAGE,
    ISO_INSTALLED_UKIS,
    ISO_LIVE_OVERLAY,
    ISO_LIVE_UKIS,
    ISO_LOADER_CONF,
    ISO_ROOTFS,
)

REQUIREMENTS = (
    tuple(directory(path) for path in ISO_DIRS)
    + tuple(exists(path, CheckCategory.BINARY, reason="system won't boot")
            for path in ISO_BOOT_FILES)
    + (
        exists(ISO_ROOTFS, CheckCategory.OTHER, reason="no system to boot into"),
        directory(ISO_LIVE_OVERLAY, criticality=Criticality.OPTIONAL,
                  reason="live system won't have autologin/serial console"),
        exists(ISO_EFI_BOOTLOADER, CheckCategory.BINARY,
               reason="UEFI won't find bootloader"),
        exists(ISO_EFIBOOT_IMAGE, CheckCategory.OTHER, reason="EFI boot partition image"),
    )
    + tuple(exists(f"EFI/Linux/{uki}", CheckCategory.BINARY,
                   reason="boot menu entry won't appear")
            for uki in ISO_LIVE_UKIS)
    + tuple(exists(path, CheckCategory.BINARY, Criticality.OPTIONAL,
                   reason="users can't easily install bootloader")
            for path in ISO_INSTALLED_UKIS)
    + (exists(ISO_LOADER_CONF, CheckCategory.ETC_FILE, reason="systemd-boot config"),)
)
