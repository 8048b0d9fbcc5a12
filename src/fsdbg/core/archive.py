"""
fsdbg - Archive Formats and Reader Base

Magic-byte format detection plus the read-only surface every backend
(CPIO, EROFS, ISO 9660) exposes. Format is always decided from content,
never from a file name or caller hint.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from .entry import Entry
from .entry_index import ArchiveStats, EntryIndex
from .errors import ArchiveNotFoundError, ArchiveReadError, UnsupportedFormatError

logger = logging.getLogger(__name__)

# Compression framing
GZIP_MAGIC = b'\x1f\x8b'
XZ_MAGIC = b'\xfd7zXZ\x00'
ZSTD_MAGIC = b'\x28\xb5\x2f\xfd'

# CPIO variants
CPIO_NEWC_MAGIC = b'070701'
CPIO_NEWC_CRC_MAGIC = b'070702'
CPIO_ODC_MAGIC = b'070707'
CPIO_BINARY_MAGICS = (b'\xc7\x71', b'\x71\xc7')

# ISO 9660 primary volume descriptor: "CD001" at 0x8001
ISO9660_MAGIC = b'CD001'
ISO9660_MAGIC_OFFSET = 0x8001

# EROFS superblock magic 0xE0F5E1E2 (little-endian) at 1024
EROFS_MAGIC = b'\xe2\xe1\xf5\xe0'
EROFS_MAGIC_OFFSET = 1024

DETECT_READ_SIZE = ISO9660_MAGIC_OFFSET + len(ISO9660_MAGIC)

Source = Union[str, Path, bytes, bytearray]


class ArchiveFormat(Enum):
    """Archive formats fsdbg can inspect"""
    CPIO = "cpio"
    CPIO_GZIP = "cpio-gzip"
    CPIO_XZ = "cpio-xz"
    CPIO_ZSTD = "cpio-zstd"
    EROFS = "erofs"
    ISO = "iso"

    @property
    def is_cpio(self) -> bool:
        return self in (ArchiveFormat.CPIO, ArchiveFormat.CPIO_GZIP,
                        ArchiveFormat.CPIO_XZ, ArchiveFormat.CPIO_ZSTD)

    @property
    def display_name(self) -> str:
        return {
            ArchiveFormat.CPIO: "CPIO (uncompressed)",
            ArchiveFormat.CPIO_GZIP: "CPIO (gzip compressed)",
            ArchiveFormat.CPIO_XZ: "CPIO (xz compressed)",
            ArchiveFormat.CPIO_ZSTD: "CPIO (zstd compressed)",
            ArchiveFormat.EROFS: "EROFS",
            ArchiveFormat.ISO: "ISO 9660",
        }[self]


def _read_head(source: Source) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source[:DETECT_READ_SIZE])
    path = Path(source)
    if not path.exists():
        raise ArchiveNotFoundError(path)
    try:
        with open(path, 'rb') as f:
            return f.read(DETECT_READ_SIZE)
    except OSError as e:
        raise ArchiveReadError(f"Cannot read archive: {e}", path=path) from e


def detect_format(source: Source) -> ArchiveFormat:
    """
    Detect archive format from magic bytes.

    Args:
        source: Path to an archive or its raw bytes

    Returns:
        Detected archive format

    Raises:
        ArchiveNotFoundError: If the path does not exist
        UnsupportedFormatError: If no known magic matches
    """
    head = _read_head(source)

    if head.startswith(GZIP_MAGIC):
        return ArchiveFormat.CPIO_GZIP
    if head.startswith(XZ_MAGIC):
        return ArchiveFormat.CPIO_XZ
    if head.startswith(ZSTD_MAGIC):
        return ArchiveFormat.CPIO_ZSTD
    if head[:6] in (CPIO_NEWC_MAGIC, CPIO_NEWC_CRC_MAGIC):
        return ArchiveFormat.CPIO
    if head[ISO9660_MAGIC_OFFSET:ISO9660_MAGIC_OFFSET + 5] == ISO9660_MAGIC:
        return ArchiveFormat.ISO
    if head[EROFS_MAGIC_OFFSET:EROFS_MAGIC_OFFSET + 4] == EROFS_MAGIC:
        return ArchiveFormat.EROFS

    path = None if isinstance(source, (bytes, bytearray)) else source
    raise UnsupportedFormatError(describe_unsupported(head), path=path)


def describe_unsupported(head: bytes) -> str:
    """Human readable reason a stream was rejected"""
    if not head:
        return "Archive is empty"
    if head[:6] == CPIO_ODC_MAGIC:
        return "Unsupported CPIO variant: odc (070707), only newc (070701) is supported"
    if head[:2] in CPIO_BINARY_MAGICS:
        return "Unsupported CPIO variant: old binary, only newc (070701) is supported"
    return f"Unrecognized archive format (magic: {head[:6].hex()})"


class ArchiveReader:
    """
    Read-only view shared by every backend.

    Subclasses decode their source once and hand the ordered entries to
    this constructor; all lookups go through the EntryIndex.
    """

    format: Optional[ArchiveFormat] = None

    def __init__(self, entries: List[Entry], source: Optional[Path] = None):
        self._entries = list(entries)
        self.index = EntryIndex(self._entries)
        self.source = source

    def entries(self) -> List[Entry]:
        """Decoded entries in stream order, duplicates included"""
        return list(self._entries)

    def exists(self, path: str) -> bool:
        return self.index.exists(path)

    def get(self, path: str) -> Optional[Entry]:
        return self.index.get(path)

    def symlinks(self) -> List[Entry]:
        return self.index.symlinks()

    def stats(self) -> ArchiveStats:
        return self.index.stats()
