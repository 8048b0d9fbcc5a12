"""
fsdbg - Entry Index

Immutable, path-keyed view over an archive's decoded entries. Built once per
opened archive; every query (resolver, checklists, diff) reads from it.

Duplicate paths follow unpack-and-overwrite semantics: the record that
appears later in the stream wins.
"""

import fnmatch
import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set

from .entry import Entry, EntryKind, normalize_path


@dataclass
class ArchiveStats:
    """Entry counts for an archive"""
    files: int = 0
    directories: int = 0
    symlinks: int = 0
    other: int = 0
    total_size: int = 0

    @property
    def total(self) -> int:
        return self.files + self.directories + self.symlinks + self.other


class EntryIndex:
    """
    Lookup structure over an ordered entry sequence.

    Implicit parent directories (never emitted as records but implied by a
    contained path) answer has_directory() but are not materialized as
    entries, so exists() stays strict.
    """

    def __init__(self, entries: Iterable[Entry]):
        """
        Build the index.

        Args:
            entries: Entries in stream order
        """
        self.logger = logging.getLogger(__name__)
        self._by_path: Dict[str, Entry] = {}
        self.duplicates = 0

        for entry in entries:
            key = normalize_path(entry.path)
            if not key:
                continue
            if key in self._by_path:
                # Reinsert so iteration order follows the winning record
                del self._by_path[key]
                self.duplicates += 1
                self.logger.debug(f"Duplicate path {key}: later record wins")
            self._by_path[key] = entry

        implicit: Set[str] = set()
        for key in self._by_path:
            head = key.rpartition('/')[0]
            while head and head not in implicit:
                implicit.add(head)
                head = head.rpartition('/')[0]
        self._implied_dirs: FrozenSet[str] = frozenset(implicit)

    def __len__(self) -> int:
        return len(self._by_path)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._by_path.values())

    def __contains__(self, path: str) -> bool:
        return self.exists(path)

    def entries(self) -> List[Entry]:
        """All entries in stream order"""
        return list(self._by_path.values())

    def paths(self) -> List[str]:
        """All normalized paths in stream order"""
        return list(self._by_path.keys())

    def exists(self, path: str) -> bool:
        """True iff an entry's normalized path equals normalize_path(path)"""
        return normalize_path(path) in self._by_path

    def get(self, path: str) -> Optional[Entry]:
        """Entry stored at path, or None"""
        return self._by_path.get(normalize_path(path))

    def has_directory(self, path: str) -> bool:
        """
        Check whether path is a directory, explicit or implied.

        Args:
            path: Path to check

        Returns:
            True for directory entries and for parents implied by other paths
        """
        key = normalize_path(path)
        if not key:
            return True
        entry = self._by_path.get(key)
        if entry is not None:
            return entry.kind == EntryKind.DIRECTORY
        return key in self._implied_dirs

    def is_implicit_directory(self, path: str) -> bool:
        key = normalize_path(path)
        return key not in self._by_path and key in self._implied_dirs

    def glob(self, pattern: str) -> List[str]:
        """
        Paths matching an fnmatch-style pattern.

        The pattern is normalized like a path; "*" may cross "/" boundaries.

        Args:
            pattern: Glob such as "usr/lib64/security/pam_*.so"

        Returns:
            Matching normalized paths in stream order
        """
        key = normalize_path(pattern)
        return [p for p in self._by_path if fnmatch.fnmatchcase(p, key)]

    def symlinks(self) -> List[Entry]:
        return [e for e in self._by_path.values() if e.kind == EntryKind.SYMLINK]

    def files(self) -> List[Entry]:
        return [e for e in self._by_path.values() if e.kind == EntryKind.REGULAR]

    def directories(self) -> List[Entry]:
        return [e for e in self._by_path.values() if e.kind == EntryKind.DIRECTORY]

    def stats(self) -> ArchiveStats:
        """Count entries by kind; total_size sums regular file content"""
        stats = ArchiveStats()
        for entry in self._by_path.values():
            if entry.kind == EntryKind.REGULAR:
                stats.files += 1
                stats.total_size += entry.size
            elif entry.kind == EntryKind.DIRECTORY:
                stats.directories += 1
            elif entry.kind == EntryKind.SYMLINK:
                stats.symlinks += 1
            else:
                stats.other += 1
        return stats
