"""
fsdbg - Live Initramfs Checklist

Expected contents of the busybox-based live initramfs. It boots into a
shell script that loads storage modules, finds the ISO, mounts the EROFS
rootfs with an overlay and switch_roots into it.
"""

from ..core.checklist_engine import (
    CheckCategory,
    Criticality,
    directory,
    executable,
    glob_at_least,
    symlink_to,
    symlinks_resolve_under,
)
from .components import (
    BUSYBOX_APPLETS,
    BUSYBOX_BINARY,
    LIVE_DIRS,
    LIVE_MODULES,
    LIVE_MODULES_BUILTIN,
)

INIT_PATH = "init"

REQUIREMENTS = (
    tuple(directory(path) for path in LIVE_DIRS)
    + (executable(BUSYBOX_BINARY, reason="every applet links to it"),)
    + tuple(symlink_to(f"bin/{applet}", ("busybox", "/bin/busybox"))
            for applet in BUSYBOX_APPLETS)
    + (executable(INIT_PATH, reason="kernel will panic"),)
    + tuple(glob_at_least(f"lib/modules/*/{module}.ko*", 1, CheckCategory.KERNEL_MODULE,
                          Criticality.OPTIONAL if module in LIVE_MODULES_BUILTIN
                          else Criticality.CRITICAL,
                          reason="check kernel config if built-in")
            for module in LIVE_MODULES)
    + (glob_at_least("lib/modules/*/modules.dep", 1, CheckCategory.ETC_FILE,
                     Criticality.OPTIONAL, reason="modprobe won't work, insmod will"),
       symlinks_resolve_under(""))
)
