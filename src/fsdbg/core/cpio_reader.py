"""
fsdbg - CPIO Reader

Decodes CPIO "newc" archives (optionally gzip, xz or zstd compressed) into
the Entry model in a single pass. The decompressed stream is kept in memory
so file content can be sliced lazily via read().

newc record layout:
    110-byte ASCII header (14 fields, 8 hex digits each after the magic)
    name (namesize bytes, NUL included), padded to 4 bytes
    content (filesize bytes), padded to 4 bytes
"""

import io
import logging
import lzma
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

import zstandard

from .archive import (
    ArchiveFormat,
    ArchiveReader,
    CPIO_NEWC_CRC_MAGIC,
    CPIO_NEWC_MAGIC,
    GZIP_MAGIC,
    XZ_MAGIC,
    ZSTD_MAGIC,
    describe_unsupported,
)
from .entry import Entry, EntryKind, normalize_path
from .errors import (
    ArchiveNotFoundError,
    ArchiveReadError,
    CorruptArchiveError,
    InvalidArgumentError,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)

NEWC_HEADER_SIZE = 110
NEWC_FIELD_SIZE = 8
TRAILER_NAME = "TRAILER!!!"
HEX_DIGITS = frozenset(b'0123456789abcdefABCDEF')

DEFAULT_MAX_SIZE = 2048 * 1024 * 1024
READ_CHUNK_SIZE = 1024 * 1024

# Header field names in on-disk order, after the 6-byte magic
NEWC_FIELDS = (
    'ino', 'mode', 'uid', 'gid', 'nlink', 'mtime', 'filesize',
    'devmajor', 'devminor', 'rdevmajor', 'rdevminor', 'namesize', 'check',
)

COMPRESSION_FORMATS = {
    'none': ArchiveFormat.CPIO,
    'gzip': ArchiveFormat.CPIO_GZIP,
    'xz': ArchiveFormat.CPIO_XZ,
    'zstd': ArchiveFormat.CPIO_ZSTD,
}

Source = Union[str, Path, bytes, bytearray, BinaryIO]


def align4(offset: int) -> int:
    """Round offset up to the next 4-byte boundary"""
    return (offset + 3) & ~3


@dataclass
class NewcHeader:
    """Parsed newc header"""
    magic: bytes
    ino: int
    mode: int
    uid: int
    gid: int
    nlink: int
    mtime: int
    filesize: int
    devmajor: int
    devminor: int
    rdevmajor: int
    rdevminor: int
    namesize: int
    check: int

    @classmethod
    def parse(cls, data: bytes) -> "NewcHeader":
        """
        Parse a 110-byte header.

        Args:
            data: Exactly NEWC_HEADER_SIZE bytes

        Returns:
            Parsed header

        Raises:
            ValueError: If the magic is not newc or a field is not 8 hex digits
        """
        magic = bytes(data[:6])
        if magic not in (CPIO_NEWC_MAGIC, CPIO_NEWC_CRC_MAGIC):
            raise ValueError(f"bad magic {magic!r}")

        values = {}
        for i, field in enumerate(NEWC_FIELDS):
            start = 6 + i * NEWC_FIELD_SIZE
            raw = data[start:start + NEWC_FIELD_SIZE]
            if len(raw) != NEWC_FIELD_SIZE or not HEX_DIGITS.issuperset(raw):
                raise ValueError(f"invalid hex in field {field}: {bytes(raw)!r}")
            values[field] = int(raw, 16)

        return cls(magic=magic, **values)


class NewcDecoder:
    """
    Walks a decompressed newc stream record by record.

    Decoding stops at the TRAILER!!! record. Any framing problem raises
    CorruptArchiveError carrying every entry decoded before it.
    """

    def __init__(self, data: bytes):
        self.data = data
        self.logger = logging.getLogger(__name__)
        self.records = 0
        self.found_trailer = False

    def _corrupt(self, message: str, entries: List[Entry], offset: int) -> CorruptArchiveError:
        self.logger.warning(f"{message} (offset {offset}, {len(entries)} entries decoded)")
        return CorruptArchiveError(message, entries=entries, offset=offset)

    def decode(self) -> List[Entry]:
        """
        Decode all records up to the trailer.

        Returns:
            Entries in stream order

        Raises:
            UnsupportedFormatError: If the stream does not start with a newc magic
            CorruptArchiveError: If the stream is truncated or malformed
        """
        data = self.data
        if data[:6] not in (CPIO_NEWC_MAGIC, CPIO_NEWC_CRC_MAGIC):
            raise UnsupportedFormatError(describe_unsupported(data[:6]))

        entries: List[Entry] = []
        offset = 0
        size = len(data)

        while True:
            if offset + NEWC_HEADER_SIZE > size:
                raise self._corrupt("Truncated header: stream ended before TRAILER!!!",
                                    entries, offset)
            try:
                header = NewcHeader.parse(data[offset:offset + NEWC_HEADER_SIZE])
            except ValueError as e:
                raise self._corrupt(f"Malformed header: {e}", entries, offset) from e

            name_start = offset + NEWC_HEADER_SIZE
            name_end = name_start + header.namesize
            if header.namesize == 0:
                raise self._corrupt("Record has zero-length name", entries, offset)
            if name_end > size:
                raise self._corrupt("Truncated name", entries, offset)

            raw_name = data[name_start:name_end]
            if raw_name[-1] != 0:
                raise self._corrupt("Name is not NUL-terminated", entries, offset)
            name = raw_name[:-1].decode('utf-8', errors='replace')

            data_start = align4(name_end)
            data_end = data_start + header.filesize
            if name == TRAILER_NAME:
                self.found_trailer = True
                break
            if data_end > size:
                raise self._corrupt(f"Truncated content for {name}", entries, offset)

            self.records += 1
            offset = align4(data_end)

            path = normalize_path(name)
            if not path:
                self.logger.debug(f"Skipping root record {name!r}")
                continue

            kind = EntryKind.from_mode(header.mode)
            link_target = None
            if kind == EntryKind.SYMLINK:
                link_target = data[data_start:data_end].decode('utf-8', errors='replace')

            entries.append(Entry(
                path=path,
                kind=kind,
                mode=header.mode,
                uid=header.uid,
                gid=header.gid,
                size=header.filesize,
                link_target=link_target,
                data_offset=data_start,
                ino=header.ino,
                nlink=header.nlink,
                mtime=header.mtime,
                dev_major=header.devmajor,
                dev_minor=header.devminor,
                rdev_major=header.rdevmajor,
                rdev_minor=header.rdevminor,
                check=header.check,
            ))

        self.logger.info(f"Decoded {len(entries)} entries from {self.records} records")
        return entries


def _check_limit(out: bytearray, limit: int):
    if len(out) > limit:
        raise ArchiveReadError(f"Decompressed archive exceeds size limit ({limit} bytes)")


def _gunzip(data: bytes, limit: int) -> Tuple[bytes, Optional[str]]:
    """Decompress concatenated gzip members; returns output and a framing error, if any"""
    out = bytearray()
    remaining = data
    while remaining:
        d = zlib.decompressobj(16 + zlib.MAX_WBITS)
        try:
            out += d.decompress(remaining, limit - len(out) + 1)
        except zlib.error as e:
            return bytes(out), f"gzip stream is corrupt: {e}"
        _check_limit(out, limit)
        if not d.eof:
            return bytes(out), "gzip stream is truncated"
        remaining = d.unused_data
        if remaining and not remaining.startswith(GZIP_MAGIC):
            logger.debug(f"Ignoring {len(remaining)} bytes after last gzip member")
            break
    return bytes(out), None


def _unxz(data: bytes, limit: int) -> Tuple[bytes, Optional[str]]:
    """Decompress concatenated xz streams; returns output and a framing error, if any"""
    out = bytearray()
    remaining = data
    while remaining:
        d = lzma.LZMADecompressor(format=lzma.FORMAT_XZ)
        try:
            out += d.decompress(remaining, limit - len(out) + 1)
        except lzma.LZMAError as e:
            return bytes(out), f"xz stream is corrupt: {e}"
        _check_limit(out, limit)
        if not d.eof:
            return bytes(out), "xz stream is truncated"
        remaining = d.unused_data.lstrip(b'\x00')  # stream padding
        if remaining and not remaining.startswith(XZ_MAGIC):
            logger.debug(f"Ignoring {len(remaining)} bytes after last xz stream")
            break
    return bytes(out), None


def _unzstd(data: bytes, limit: int) -> Tuple[bytes, Optional[str]]:
    """Decompress zstd frames; returns output and a framing error, if any"""
    out = bytearray()
    dctx = zstandard.ZstdDecompressor()
    try:
        with dctx.stream_reader(io.BytesIO(data), read_across_frames=True) as reader:
            while True:
                chunk = reader.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                out += chunk
                _check_limit(out, limit)
    except zstandard.ZstdError as e:
        return bytes(out), f"zstd stream is corrupt: {e}"
    return bytes(out), None


def decompress(data: bytes, limit: int = DEFAULT_MAX_SIZE) -> Tuple[bytes, str, Optional[str]]:
    """
    Strip outer compression framing, detected from magic bytes.

    Args:
        data: Raw archive bytes
        limit: Maximum decompressed size in bytes

    Returns:
        (payload, compression name, framing error or None). A framing error
        leaves the payload holding whatever decompressed before it.

    Raises:
        ArchiveReadError: If the payload exceeds limit
    """
    if data.startswith(GZIP_MAGIC):
        payload, error = _gunzip(data, limit)
        return payload, 'gzip', error
    if data.startswith(XZ_MAGIC):
        payload, error = _unxz(data, limit)
        return payload, 'xz', error
    if data.startswith(ZSTD_MAGIC):
        payload, error = _unzstd(data, limit)
        return payload, 'zstd', error
    if len(data) > limit:
        raise ArchiveReadError(f"Archive exceeds size limit ({limit} bytes)")
    return data, 'none', None


def _read_source(source: Source) -> Tuple[bytes, Optional[Path]]:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source), None
    if hasattr(source, 'read'):
        try:
            return source.read(), None
        except OSError as e:
            raise ArchiveReadError(f"Cannot read archive: {e}") from e

    path = Path(source)
    if not path.exists():
        raise ArchiveNotFoundError(path)
    if not path.is_file():
        raise ArchiveReadError("Not a regular file", path=path)
    try:
        with open(path, 'rb') as f:
            return f.read(), path
    except OSError as e:
        raise ArchiveReadError(f"Cannot read archive: {e}", path=path) from e


class CpioReader(ArchiveReader):
    """Fully decoded CPIO newc archive"""

    def __init__(self, entries: List[Entry], payload: bytes, compression: str = 'none',
                 source: Optional[Path] = None):
        super().__init__(entries, source=source)
        self.payload = payload
        self.compression = compression

    @property
    def format(self) -> ArchiveFormat:
        return COMPRESSION_FORMATS[self.compression]

    @classmethod
    def open(cls, source: Source, max_size: Optional[int] = None) -> "CpioReader":
        """
        Open and fully decode a CPIO archive.

        Args:
            source: Filesystem path, raw bytes or a binary file object
            max_size: Maximum decompressed size in bytes

        Returns:
            Reader holding every decoded entry

        Raises:
            ArchiveNotFoundError: If the path does not exist
            ArchiveReadError: If the file cannot be read or exceeds max_size
            UnsupportedFormatError: If the payload is not CPIO newc
            CorruptArchiveError: If the stream is truncated or malformed
        """
        limit = max_size if max_size is not None else DEFAULT_MAX_SIZE
        raw, path = _read_source(source)

        try:
            payload, compression, framing_error = decompress(raw, limit)
        except ArchiveReadError as e:
            e.path = path
            raise
        logger.info(f"Opened {path or 'in-memory archive'}: compression={compression}, "
                    f"{len(payload)} bytes decompressed")

        if not payload:
            raise UnsupportedFormatError(
                framing_error or describe_unsupported(payload), path=path)

        decoder = NewcDecoder(payload)
        try:
            entries = decoder.decode()
        except CorruptArchiveError as e:
            e.path = path
            if framing_error:
                e.message = f"{e.message}; {framing_error}"
            raise
        except UnsupportedFormatError as e:
            e.path = path
            if framing_error:
                e.message = f"{e.message}; {framing_error}"
            raise

        if framing_error:
            logger.warning(framing_error)
            raise CorruptArchiveError(framing_error, entries=entries, path=path)

        return cls(entries, payload, compression=compression, source=path)

    def read(self, target: Union[str, Entry]) -> bytes:
        """
        Return the content bytes of an entry.

        Args:
            target: Archive path or an Entry from this reader

        Returns:
            Content bytes (the link target for symlinks)

        Raises:
            InvalidArgumentError: If the path is not in the archive
        """
        entry = target if isinstance(target, Entry) else self.get(target)
        if entry is None:
            raise InvalidArgumentError(f"No such entry: {target}", path=self.source)
        if entry.data_offset is None:
            return b''
        return self.payload[entry.data_offset:entry.data_offset + entry.size]
