"""
fsdbg - Install Initramfs Checklist

Expected contents of the systemd-based initramfs used by installed systems:
systemd and udev binaries, initrd targets, merged-usr symlinks, udev rules,
generators and the kernel modules needed to find and mount the root disk.
"""

from ..core.checklist_engine import (
    CheckCategory,
    Criticality,
    directory,
    executable,
    exists,
    glob_at_least,
    symlink_resolves,
    symlink_to,
    symlinks_resolve_under,
)
from .components import INSTALL_MODULES, INSTALL_MODULES_BUILTIN

BINARIES = (
    "usr/lib/systemd/systemd",
    "usr/lib/systemd/systemd-udevd",
    "usr/lib/systemd/systemd-journald",
    "usr/lib/systemd/systemd-modules-load",
    "usr/lib/systemd/systemd-sysctl",
    "usr/lib/systemd/systemd-fsck",
    "usr/lib/systemd/systemd-remount-fs",
    "usr/lib/systemd/systemd-sulogin-shell",
    "usr/lib/systemd/systemd-shutdown",
    "usr/lib/systemd/systemd-executor",
    "usr/lib/systemd/systemd-makefs",
    "usr/bin/systemctl",
    "usr/bin/systemd-tmpfiles",
    "usr/bin/udevadm",
    "usr/sbin/modprobe",
    "usr/sbin/insmod",
    "usr/bin/kmod",
    "usr/sbin/fsck",
    "usr/sbin/fsck.ext4",
    "usr/sbin/e2fsck",
    "usr/sbin/blkid",
    "usr/bin/mount",
    "usr/bin/umount",
    "usr/sbin/switch_root",
    "usr/bin/bash",
    "usr/bin/sh",
)

UNITS = (
    "initrd.target",
    "initrd-root-fs.target",
    "initrd-root-device.target",
    "initrd-switch-root.target",
    "initrd-fs.target",
    "sysinit.target",
    "basic.target",
    "local-fs.target",
    "local-fs-pre.target",
    "slices.target",
    "sockets.target",
    "paths.target",
    "timers.target",
    "swap.target",
    "emergency.target",
    "rescue.target",
    "systemd-journald.service",
    "systemd-udevd.service",
    "systemd-udev-trigger.service",
    "systemd-modules-load.service",
    "systemd-sysctl.service",
    "systemd-fsck@.service",
    "systemd-fsck-root.service",
    "systemd-remount-fs.service",
    "initrd-switch-root.service",
    "initrd-cleanup.service",
    "initrd-udevadm-cleanup-db.service",
    "initrd-parse-etc.service",
    "systemd-journald.socket",
    "systemd-journald-dev-log.socket",
    "systemd-udevd-control.socket",
    "systemd-udevd-kernel.socket",
)

SYMLINKS = (
    ("init", ("/usr/lib/systemd/systemd",)),
    ("bin", ("usr/bin",)),
    ("sbin", ("usr/sbin",)),
    ("lib", ("usr/lib",)),
    ("lib64", ("usr/lib64",)),
)

ETC_FILES = (
    "etc/initrd-release",
    "etc/passwd",
    "etc/group",
    "etc/shadow",
    "etc/nsswitch.conf",
)

UDEV_RULES = (
    "50-udev-default.rules",
    "60-block.rules",
    "60-persistent-storage.rules",
    "80-drivers.rules",
    "99-systemd.rules",
)

UDEV_HELPERS = (
    "usr/lib/udev/ata_id",
    "usr/lib/udev/scsi_id",
    "usr/lib/udev/cdrom_id",
    "usr/lib/udev/mtd_probe",
    "usr/lib/udev/v4l_id",
)

GENERATORS = (
    "usr/lib/systemd/system-generators/systemd-fstab-generator",
    "usr/lib/systemd/system-generators/systemd-gpt-auto-generator",
    "usr/lib/systemd/system-generators/systemd-debug-generator",
)

TMPFILES = (
    "usr/lib/tmpfiles.d/static-nodes-permissions.conf",
    "usr/lib/tmpfiles.d/systemd.conf",
    "usr/lib/tmpfiles.d/tmp.conf",
    "usr/lib/tmpfiles.d/var.conf",
)

WANTS_SYMLINKS = (
    "usr/lib/systemd/system/sysinit.target.wants/systemd-modules-load.service",
    "usr/lib/systemd/system/sysinit.target.wants/systemd-sysctl.service",
    "usr/lib/systemd/system/sysinit.target.wants/systemd-udevd.service",
    "usr/lib/systemd/system/sysinit.target.wants/systemd-udev-trigger.service",
    "usr/lib/systemd/system/sockets.target.wants/systemd-journald-dev-log.socket",
    "usr/lib/systemd/system/sockets.target.wants/systemd-journald.socket",
    "usr/lib/systemd/system/sockets.target.wants/systemd-udevd-control.socket",
    "usr/lib/systemd/system/sockets.target.wants/systemd-udevd-kernel.socket",
    "usr/lib/systemd/system/initrd.target.wants/initrd-parse-etc.service",
    "usr/lib/systemd/system/initrd.target.wants/initrd-udevadm-cleanup-db.service",
    "usr/lib/systemd/system/initrd-switch-root.target.wants/initrd-cleanup.service",
)

DIRS = (
    "usr/bin",
    "usr/sbin",
    "usr/lib",
    "usr/lib64",
    "etc",
    "dev",
    "proc",
    "sys",
    "run",
    "tmp",
    "var",
    "usr/lib/systemd",
    "usr/lib/systemd/system",
    "usr/lib/systemd/system/initrd.target.wants",
    "usr/lib/systemd/system/sysinit.target.wants",
    "usr/lib/systemd/system-generators",
    "etc/systemd/system",
    "usr/lib/modules",
    "usr/lib/firmware",
    "usr/lib/udev",
    "usr/lib/udev/rules.d",
)


REQUIREMENTS = (
    tuple(executable(path) for path in BINARIES)
    + tuple(exists(f"usr/lib/systemd/system/{unit}", CheckCategory.UNIT) for unit in UNITS)
    + tuple(symlink_to(link, targets, reason="merged-usr layout")
            for link, targets in SYMLINKS)
    + tuple(exists(path, CheckCategory.ETC_FILE) for path in ETC_FILES)
    + tuple(exists(f"usr/lib/udev/rules.d/{rule}", CheckCategory.UDEV_RULE,
                   reason="needed for /dev/disk/by-uuid")
            for rule in UDEV_RULES)
    + tuple(executable(path, reason="udev device identification") for path in UDEV_HELPERS)
    + tuple(executable(path, reason="needed for root= parsing") for path in GENERATORS)
    + tuple(exists(path, CheckCategory.ETC_FILE, reason="systemd-tmpfiles")
            for path in TMPFILES)
    + tuple(symlink_resolves(path, reason="service not enabled") for path in WANTS_SYMLINKS)
    + tuple(directory(path) for path in DIRS)
    + tuple(glob_at_least(f"usr/lib/modules/*/{module}.ko*", 1, CheckCategory.KERNEL_MODULE,
                          Criticality.OPTIONAL if module in INSTALL_MODULES_BUILTIN
                          else Criticality.CRITICAL,
                          reason="check kernel config if built-in")
            for module in INSTALL_MODULES)
    + (symlinks_resolve_under("", CheckCategory.LIBRARY,
                              reason="target does not exist in archive"),)
)
