"""
fsdbg - Rootfs Checklist

Expected contents of a complete installed root filesystem (usually the
EROFS image). This is a daily-driver system, not a minimal one: a missing
component a desktop user needs is a failure.
"""

from ..core.checklist_engine import (
    CheckCategory,
    Criticality,
    absent,
    directory,
    executable,
    exists,
    glob_at_least,
    symlink_to,
    symlinks_resolve_under,
)
from .components import (
    AUTH_BIN,
    AUTH_SBIN,
    BIN_UTILS,
    CRITICAL_LIBS,
    ESSENTIAL_UNITS,
    ETC_FILES,
    FHS_DIRS,
    FHS_SYMLINKS,
    LICENSE_DIR,
    LICENSE_PACKAGES,
    PAM_CONFIGS,
    PAM_MODULE_DIR,
    PAM_MODULES,
    SBIN_UTILS,
    SECURITY_FILES,
    SHADOW_SBIN,
    SYSTEMD_BINARIES,
    UDEV_HELPERS,
)

SYMLINK_CHECK_PREFIXES = ("usr/bin", "usr/sbin", "usr/lib64", "etc")

INIT_TARGETS = ("../lib/systemd/systemd", "/usr/lib/systemd/systemd")

REQUIREMENTS = (
    tuple(directory(path) for path in FHS_DIRS)
    + tuple(symlink_to(link, targets, reason="merged-usr broken")
            for link, targets in FHS_SYMLINKS)
    + tuple(executable(f"usr/bin/{name}") for name in BIN_UTILS + AUTH_BIN)
    + tuple(executable(f"usr/sbin/{name}") for name in SBIN_UTILS + AUTH_SBIN + SHADOW_SBIN)
    + tuple(executable(f"usr/lib/systemd/{name}") for name in SYSTEMD_BINARIES)
    + tuple(exists(f"usr/lib/systemd/system/{unit}", CheckCategory.UNIT)
            for unit in ESSENTIAL_UNITS)
    + tuple(exists(path, CheckCategory.ETC_FILE) for path in ETC_FILES)
    + tuple(exists(path, CheckCategory.ETC_FILE, reason="authentication will fail")
            for path in PAM_CONFIGS)
    + tuple(exists(path, CheckCategory.ETC_FILE, reason="security policy incomplete")
            for path in SECURITY_FILES)
    + tuple(exists(f"{PAM_MODULE_DIR}/{module}", CheckCategory.LIBRARY,
                   reason="PAM authentication broken")
            for module in PAM_MODULES)
    + tuple(executable(f"usr/lib/udev/{helper}", reason="device identification broken")
            for helper in UDEV_HELPERS)
    + tuple(exists(path, CheckCategory.LIBRARY, reason="system will not boot")
            for path in CRITICAL_LIBS)
    + (symlink_to("usr/sbin/init", INIT_TARGETS, reason="kernel can't find init"),)
    + tuple(symlinks_resolve_under(prefix) for prefix in SYMLINK_CHECK_PREFIXES)
    + (
        glob_at_least("usr/lib/modules/*/kernel/*", 1, CheckCategory.KERNEL_MODULE,
                      reason="no kernel modules found"),
        glob_at_least("usr/lib/udev/rules.d/*.rules", 1, CheckCategory.UDEV_RULE,
                      reason="device detection broken"),
        glob_at_least("usr/share/terminfo/*", 1, CheckCategory.OTHER,
                      reason="terminal apps broken"),
        glob_at_least("usr/*/locale/*", 1, CheckCategory.OTHER,
                      reason="no locale data in usr/lib/locale or usr/share/locale"),
        glob_at_least("usr/share/zoneinfo/*", 1, CheckCategory.OTHER, Criticality.OPTIONAL,
                      reason="timezone data missing"),
        absent("usr/bin/busybox", reason="rootfs must not depend on busybox"),
    )
    + (glob_at_least(f"{LICENSE_DIR}/*", 1, CheckCategory.LICENSE,
                     reason="no license directory, legal compliance failure"),)
    + tuple(directory(f"{LICENSE_DIR}/{package}", CheckCategory.LICENSE,
                      reason="missing license, legal compliance")
            for package in LICENSE_PACKAGES)
)
