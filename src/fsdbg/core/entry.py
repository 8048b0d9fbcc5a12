"""
fsdbg - Archive Entry Model

One decoded archive record, independent of the backend (CPIO, EROFS, ISO)
that produced it. Paths are always stored normalized: slash-separated,
relative to the archive root, no leading or trailing slash.
"""

import stat
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class EntryKind(Enum):
    """File type carried in the mode bits"""
    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    DEVICE = "device"
    FIFO = "fifo"
    SOCKET = "socket"
    UNKNOWN = "unknown"

    @classmethod
    def from_mode(cls, mode: int) -> "EntryKind":
        """Map S_IFMT bits to an entry kind"""
        fmt = stat.S_IFMT(mode)
        if fmt == stat.S_IFREG:
            return cls.REGULAR
        if fmt == stat.S_IFDIR:
            return cls.DIRECTORY
        if fmt == stat.S_IFLNK:
            return cls.SYMLINK
        if fmt in (stat.S_IFCHR, stat.S_IFBLK):
            return cls.DEVICE
        if fmt == stat.S_IFIFO:
            return cls.FIFO
        if fmt == stat.S_IFSOCK:
            return cls.SOCKET
        return cls.UNKNOWN


def normalize_path(path: str) -> str:
    """
    Normalize an archive path to its lookup key.

    Strips leading "./" and "/", collapses repeated separators, drops "."
    segments and folds ".." segments. ".." never climbs above the archive
    root, matching how the kernel unpacks initramfs.

    Args:
        path: Raw path as stored in an archive or typed by a user

    Returns:
        Normalized key ("" for the archive root)
    """
    parts: List[str] = []
    for segment in path.split('/'):
        if segment in ('', '.'):
            continue
        if segment == '..':
            if parts:
                parts.pop()
            continue
        parts.append(segment)
    return '/'.join(parts)


def parent_path(path: str) -> str:
    """Directory containing a normalized path ("" for top-level entries)"""
    head, _, _ = path.rpartition('/')
    return head


@dataclass(frozen=True)
class Entry:
    """Single archive record"""
    path: str
    kind: EntryKind
    mode: int
    uid: int = 0
    gid: int = 0
    size: int = 0
    link_target: Optional[str] = None
    data_offset: Optional[int] = None  # into the decompressed stream, None if not addressable
    # Diagnostic header fields
    ino: int = 0
    nlink: int = 1
    mtime: int = 0
    dev_major: int = 0
    dev_minor: int = 0
    rdev_major: int = 0
    rdev_minor: int = 0
    check: int = 0

    @property
    def name(self) -> str:
        return self.path.rpartition('/')[2]

    @property
    def permissions(self) -> int:
        """Permission bits including setuid/setgid/sticky"""
        return self.mode & 0o7777

    @property
    def is_file(self) -> bool:
        return self.kind == EntryKind.REGULAR

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    @property
    def is_symlink(self) -> bool:
        return self.kind == EntryKind.SYMLINK

    @property
    def is_executable(self) -> bool:
        return bool(self.mode & 0o111)

    @property
    def is_block_device(self) -> bool:
        return stat.S_ISBLK(self.mode)

    @property
    def is_char_device(self) -> bool:
        return stat.S_ISCHR(self.mode)

    def mode_string(self) -> str:
        """
        Format mode as ls-style string (e.g. "drwxr-xr-x")

        Returns:
            Ten character permission string
        """
        # stat.filemode already renders setuid/setgid/sticky the way ls does
        if self.kind == EntryKind.UNKNOWN:
            return '?' + stat.filemode(self.mode)[1:]
        return stat.filemode(self.mode)
