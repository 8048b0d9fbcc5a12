"""
fsdbg - Filesystem Archive Debugger

Audits initramfs/rootfs archives (CPIO newc, EROFS, ISO 9660) for content
correctness without mounting or extracting them.
"""

from .app import FsdbgApp, __version__

__all__ = ['FsdbgApp', '__version__']
