"""Shared fixtures: an in-memory CPIO newc builder and Entry factories"""

import stat
from pathlib import Path
from typing import List

import pytest

from create_test_env import NEWC_MAGIC, TRAILER, newc_record
from fsdbg.core.entry import Entry, EntryKind, normalize_path
from fsdbg.core.entry_index import EntryIndex


class ArchiveBuilder:
    """Assembles newc records in the order they are added"""

    def __init__(self, magic: bytes = NEWC_MAGIC):
        self.magic = magic
        self.records: List[bytes] = []
        self._ino = 0

    def record(self, name: str, mode: int, data: bytes = b"", **fields) -> bytes:
        """Encode one record without adding it"""
        self._ino += 1
        return newc_record(name, mode, data, ino=self._ino, magic=self.magic, **fields)

    def add(self, name: str, mode: int, data: bytes = b"", **fields) -> "ArchiveBuilder":
        self.records.append(self.record(name, mode, data, **fields))
        return self

    def dir(self, name: str, mode: int = 0o755, **fields) -> "ArchiveBuilder":
        return self.add(name, stat.S_IFDIR | mode, **fields)

    def file(self, name: str, data: bytes = b"", mode: int = 0o644, **fields) -> "ArchiveBuilder":
        return self.add(name, stat.S_IFREG | mode, data, **fields)

    def symlink(self, name: str, target: str) -> "ArchiveBuilder":
        return self.add(name, stat.S_IFLNK | 0o777, target.encode("utf-8"))

    def raw(self, data: bytes) -> "ArchiveBuilder":
        self.records.append(data)
        return self

    def build(self, trailer: bool = True, tail: bytes = b"") -> bytes:
        out = b"".join(self.records)
        if trailer:
            out += self.record(TRAILER, 0)
        return out + tail


class EntryFactory:
    """Builds Entry objects and indices directly, skipping the decoder"""

    def file(self, path: str, mode: int = 0o644, size: int = 0, uid: int = 0,
             gid: int = 0) -> Entry:
        return Entry(normalize_path(path), EntryKind.REGULAR, stat.S_IFREG | mode,
                     uid=uid, gid=gid, size=size)

    def exe(self, path: str) -> Entry:
        return self.file(path, mode=0o755)

    def dir(self, path: str, mode: int = 0o755) -> Entry:
        return Entry(normalize_path(path), EntryKind.DIRECTORY, stat.S_IFDIR | mode)

    def link(self, path: str, target: str) -> Entry:
        return Entry(normalize_path(path), EntryKind.SYMLINK, stat.S_IFLNK | 0o777,
                     size=len(target), link_target=target)

    def index(self, *entries: Entry) -> EntryIndex:
        return EntryIndex(entries)


@pytest.fixture
def builder():
    return ArchiveBuilder()


@pytest.fixture
def fs():
    return EntryFactory()


@pytest.fixture
def write_archive(tmp_path):
    """Write archive bytes under tmp_path and return the path"""
    def _write(data: bytes, name: str = "archive.cpio") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path
    return _write
