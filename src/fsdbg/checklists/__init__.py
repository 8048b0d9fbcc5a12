"""
fsdbg - Named Checklists

Closed set of verification checklists. Each ChecklistType maps to a constant
tuple of Requirements built at import time; there is no plugin registry.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from ..core.checklist_engine import Requirement
from . import auth_audit, install_initramfs, iso, live_initramfs, rootfs


class ChecklistType(Enum):
    """Named checklist, valued by its canonical CLI name"""
    INSTALL_INITRAMFS = "install-initramfs"
    LIVE_INITRAMFS = "live-initramfs"
    ROOTFS = "rootfs"
    AUTH_AUDIT = "auth-audit"
    ISO = "iso"

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]

    @property
    def aliases(self) -> Tuple[str, ...]:
        return tuple(alias for alias, kind in ALIASES.items() if kind is self)

    @property
    def requirements(self) -> Tuple[Requirement, ...]:
        return REQUIREMENTS[self]

    @property
    def requires_iso(self) -> bool:
        """ISO layout checks only make sense against an ISO 9660 image"""
        return self is ChecklistType.ISO

    @classmethod
    def from_name(cls, name: str) -> Optional["ChecklistType"]:
        """
        Look up a checklist by canonical name or alias.

        Args:
            name: e.g. "install", "auth_audit", "ROOTFS"

        Returns:
            Matching ChecklistType or None
        """
        return ALIASES.get(name.strip().lower().replace('_', '-'))


DISPLAY_NAMES: Dict[ChecklistType, str] = {
    ChecklistType.INSTALL_INITRAMFS: "Install Initramfs",
    ChecklistType.LIVE_INITRAMFS: "Live Initramfs",
    ChecklistType.ROOTFS: "Rootfs",
    ChecklistType.AUTH_AUDIT: "Authentication Audit",
    ChecklistType.ISO: "Live ISO",
}

ALIASES: Dict[str, ChecklistType] = {
    "install-initramfs": ChecklistType.INSTALL_INITRAMFS,
    "install": ChecklistType.INSTALL_INITRAMFS,
    "live-initramfs": ChecklistType.LIVE_INITRAMFS,
    "live": ChecklistType.LIVE_INITRAMFS,
    "rootfs": ChecklistType.ROOTFS,
    "root": ChecklistType.ROOTFS,
    "auth-audit": ChecklistType.AUTH_AUDIT,
    "auth": ChecklistType.AUTH_AUDIT,
    "iso": ChecklistType.ISO,
}

REQUIREMENTS: Dict[ChecklistType, Tuple[Requirement, ...]] = {
    ChecklistType.INSTALL_INITRAMFS: install_initramfs.REQUIREMENTS,
    ChecklistType.LIVE_INITRAMFS: live_initramfs.REQUIREMENTS,
    ChecklistType.ROOTFS: rootfs.REQUIREMENTS,
    ChecklistType.AUTH_AUDIT: auth_audit.REQUIREMENTS,
    ChecklistType.ISO: iso.REQUIREMENTS,
}

__all__ = ['ChecklistType', 'ALIASES', 'REQUIREMENTS']
