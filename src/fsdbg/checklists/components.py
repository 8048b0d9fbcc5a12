"""
fsdbg - Shared Component Lists

Single source of truth for what a LevitateOS-style system ships. Every
named checklist builds its Requirements from these lists, so a component
added here is picked up by all checklists that include it.
"""

# =============================================================================
# Filesystem layout (merged-usr)
# =============================================================================

FHS_DIRS = (
    "usr/bin", "usr/sbin", "usr/lib", "usr/lib64", "usr/libexec", "usr/share",
    "etc", "dev", "proc", "sys", "run", "tmp", "var", "var/log", "var/tmp",
    "home", "root", "mnt", "opt", "srv", "boot",
)

# (link, accepted targets)
FHS_SYMLINKS = (
    ("bin", ("usr/bin", "/usr/bin")),
    ("sbin", ("usr/sbin", "/usr/sbin")),
    ("lib", ("usr/lib", "/usr/lib")),
    ("lib64", ("usr/lib64", "/usr/lib64")),
    ("var/run", ("../run", "/run")),
)

# =============================================================================
# Binaries
# =============================================================================

BIN_UTILS = (
    "bash", "sh", "ls", "cat", "cp", "mv", "rm", "mkdir", "ln", "chmod", "chown",
    "grep", "sed", "awk", "find", "tar", "gzip", "xz", "less", "mount", "umount",
    "systemctl", "journalctl", "udevadm", "openssl",
)

SBIN_UTILS = (
    "blkid", "fsck", "fsck.ext4", "mkfs.ext4", "e2fsck", "modprobe", "insmod",
    "switch_root", "ip", "sfdisk",
)

# Binaries under usr/lib/systemd
SYSTEMD_BINARIES = (
    "systemd", "systemd-udevd", "systemd-journald", "systemd-logind",
    "systemd-modules-load", "systemd-sysctl", "systemd-fsck", "systemd-remount-fs",
    "systemd-executor", "systemd-shutdown",
)

ESSENTIAL_UNITS = (
    "multi-user.target", "graphical.target", "basic.target", "sysinit.target",
    "local-fs.target", "sockets.target", "getty.target", "getty@.service",
    "systemd-journald.service", "systemd-udevd.service", "systemd-logind.service",
    "dbus.service",
)

UDEV_HELPERS = ("ata_id", "scsi_id", "cdrom_id")

CRITICAL_LIBS = (
    "usr/lib64/ld-linux-x86-64.so.2",
    "usr/lib64/libc.so.6",
    "usr/lib64/libm.so.6",
    "usr/lib64/libpam.so.0",
    "usr/lib64/libcrypt.so.2",
    "usr/lib64/libsystemd.so.0",
    "usr/lib64/libudev.so.1",
)

ETC_FILES = (
    "etc/passwd", "etc/group", "etc/shadow", "etc/gshadow", "etc/hostname",
    "etc/os-release", "etc/fstab", "etc/nsswitch.conf", "etc/shells",
    "etc/login.defs",
)

# =============================================================================
# Authentication
# =============================================================================

AUTH_BIN = ("sudo", "su", "passwd", "newgrp")

AUTH_SBIN = ("unix_chkpwd", "login", "agetty", "chpasswd", "nologin")

SHADOW_SBIN = ("useradd", "userdel", "usermod", "groupadd", "chage", "faillock")

PAM_MODULE_DIR = "usr/lib64/security"

PAM_MODULES = (
    "pam_unix.so",
    "pam_permit.so",
    "pam_deny.so",
    "pam_systemd.so",
    "pam_env.so",
    "pam_limits.so",
    "pam_faillock.so",
    "pam_pwquality.so",
    "pam_wheel.so",
    "pam_securetty.so",
    "pam_nologin.so",
    "pam_loginuid.so",
    "pam_keyinit.so",
    "pam_rootok.so",
    "pam_shells.so",
    "pam_succeed_if.so",
    "pam_motd.so",
    "pam_lastlog.so",
)

PAM_CONFIGS = (
    "etc/pam.d/system-auth",
    "etc/pam.d/password-auth",
    "etc/pam.d/login",
    "etc/pam.d/sshd",
    "etc/pam.d/sudo",
    "etc/pam.d/su",
    "etc/pam.d/passwd",
    "etc/pam.d/other",
    "etc/pam.d/systemd-user",
    "etc/pam.d/chpasswd",
)

SECURITY_FILES = (
    "etc/security/limits.conf",
    "etc/security/faillock.conf",
    "etc/security/pam_env.conf",
    "etc/security/access.conf",
    "etc/security/pwquality.conf",
)

SUDO_LIBS = ("sudoers.so", "libsudo_util.so.0")

# =============================================================================
# Kernel modules
# =============================================================================

INSTALL_MODULES = (
    "ext4", "jbd2", "mbcache", "crc16", "nvme", "nvme_core", "ahci", "libahci",
    "sd_mod", "virtio_blk", "virtio_pci", "virtio_scsi", "dm_mod", "vfat",
)

# Usually compiled in; missing .ko files are informational only
INSTALL_MODULES_BUILTIN = ("crc16", "mbcache", "jbd2", "virtio_pci")

LIVE_MODULES = (
    "squashfs", "erofs", "overlay", "loop", "isofs", "cdrom", "sr_mod",
    "usb_storage", "uas", "xhci_pci", "virtio_blk", "virtio_pci", "virtio_scsi",
)

LIVE_MODULES_BUILTIN = ("loop", "cdrom", "virtio_pci")

# =============================================================================
# Live initramfs (busybox)
# =============================================================================

LIVE_DIRS = (
    "bin", "dev", "proc", "sys", "tmp", "mnt", "lib/modules", "rootfs",
    "overlay", "newroot", "live-overlay",
)

BUSYBOX_BINARY = "bin/busybox"

BUSYBOX_APPLETS = (
    "sh", "mount", "umount", "mkdir", "cat", "ls", "ln", "rm", "cp", "mv",
    "chmod", "chown", "mknod", "find", "echo", "grep", "sed", "head", "test",
    "[", "sleep", "insmod", "modprobe", "losetup", "mount.loop", "xz",
    "gunzip", "switch_root",
)

# =============================================================================
# Live ISO layout
# =============================================================================

ISO_DIRS = ("boot", "live", "EFI", "EFI/BOOT", "EFI/Linux", "loader", "boot/uki")

ISO_BOOT_FILES = ("boot/vmlinuz", "boot/initramfs-live.img", "boot/initramfs-installed.img")

ISO_ROOTFS = "live/filesystem.erofs"
ISO_LIVE_OVERLAY = "live/overlay"
ISO_EFI_BOOTLOADER = "EFI/BOOT/BOOTX64.EFI"
ISO_EFIBOOT_IMAGE = "efiboot.img"
ISO_LOADER_CONF = "loader/loader.conf"

ISO_LIVE_UKIS = ("levitateos-live.efi", "levitateos-emergency.efi", "levitateos-debug.efi")

ISO_INSTALLED_UKIS = ("boot/uki/levitateos.efi", "boot/uki/levitateos-recovery.efi")

ISO_VOLUME_ID = "LEVITATEOS"

# =============================================================================
# Licenses and data files
# =============================================================================

LICENSE_DIR = "usr/share/licenses"

# One usr/share/licenses/<package> directory each
LICENSE_PACKAGES = (
    "glibc", "bash", "coreutils", "systemd", "util-linux",
    "pam", "shadow-utils",
    "NetworkManager", "iproute", "openssh-clients",
    "e2fsprogs", "btrfs-progs", "dosfstools",
    "gzip", "xz", "tar",
    "vim-minimal",
    "kernel", "linux-firmware",
    "tzdata", "kbd",
)
