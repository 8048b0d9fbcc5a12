"""
fsdbg - Symlink Resolver

Follows symlink chains inside an archive using only the EntryIndex; the host
filesystem is never consulted. Resolution is iterative and bounded by a
visited set plus a hop limit, so hostile archives terminate.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from .entry import Entry, EntryKind, normalize_path, parent_path
from .entry_index import EntryIndex

MAX_HOPS = 40  # Linux MAXSYMLINKS


@dataclass(frozen=True)
class Resolved:
    """Chain ended at a non-symlink (entry is None for an implicit directory)"""
    path: str
    entry: Optional[Entry]
    chain: Tuple[str, ...] = ()

    ok = True

    def describe(self) -> str:
        return f"resolves to /{self.path}"


@dataclass(frozen=True)
class Dangling:
    """Chain reached a path that is not in the archive"""
    path: str
    chain: Tuple[str, ...] = ()

    ok = False

    def describe(self) -> str:
        return f"dangling: /{self.path} does not exist"


@dataclass(frozen=True)
class Cycle:
    """Chain revisited a path or exceeded the hop limit"""
    path: str
    chain: Tuple[str, ...] = ()

    ok = False

    def describe(self) -> str:
        return f"cycle at /{self.path} after {max(len(self.chain) - 1, 0)} hops"


Outcome = Union[Resolved, Dangling, Cycle]


@dataclass(frozen=True)
class SymlinkCheck:
    """Resolution outcome for one symlink entry"""
    entry: Entry
    outcome: Outcome

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    @property
    def is_dangling(self) -> bool:
        return isinstance(self.outcome, Dangling)

    @property
    def is_cycle(self) -> bool:
        return isinstance(self.outcome, Cycle)


def link_destination(link_path: str, target: str) -> str:
    """
    Path a symlink points at, relative to the archive root.

    Absolute targets are re-anchored at the archive root; relative targets
    are joined to the directory holding the link.
    """
    if target.startswith('/'):
        return normalize_path(target)
    return normalize_path(f"{parent_path(link_path)}/{target}")


class SymlinkResolver:
    """Resolves symlinks against a single EntryIndex"""

    def __init__(self, index: EntryIndex, max_hops: int = MAX_HOPS):
        self.index = index
        self.max_hops = max_hops
        self.logger = logging.getLogger(__name__)

    def _symlink_ancestor(self, path: str) -> Optional[Tuple[Entry, str]]:
        """Longest ancestor of path that is a symlink, with the remaining suffix"""
        parts = path.split('/')
        for i in range(len(parts) - 1, 0, -1):
            entry = self.index.get('/'.join(parts[:i]))
            if entry is not None and entry.kind == EntryKind.SYMLINK:
                return entry, '/'.join(parts[i:])
        return None

    def resolve(self, path: str) -> Outcome:
        """
        Resolve a path to its final non-symlink destination.

        Args:
            path: Archive path, absolute or relative to the root

        Returns:
            Resolved, Dangling or Cycle
        """
        current = normalize_path(path)
        chain: List[str] = [current]
        visited = set()

        while True:
            entry = self.index.get(current)

            if entry is None:
                if self.index.has_directory(current):
                    return Resolved(current, None, tuple(chain))
                ancestor = self._symlink_ancestor(current)
                if ancestor is None or not ancestor[0].link_target:
                    return Dangling(current, tuple(chain))
                link, rest = ancestor
                next_path = normalize_path(
                    f"{link_destination(link.path, link.link_target)}/{rest}")
            elif entry.kind != EntryKind.SYMLINK:
                return Resolved(current, entry, tuple(chain))
            elif not entry.link_target:
                return Dangling(current, tuple(chain))
            else:
                next_path = link_destination(current, entry.link_target)

            visited.add(current)
            if next_path in visited or len(visited) > self.max_hops:
                self.logger.debug(f"Symlink loop resolving {path}: {' -> '.join(chain)}")
                return Cycle(next_path, tuple(chain))
            current = next_path
            chain.append(current)

    def check_all(self) -> List[SymlinkCheck]:
        """
        Resolve every symlink entry in stream order.

        Returns:
            One SymlinkCheck per symlink
        """
        results = [SymlinkCheck(link, self.resolve(link.path))
                   for link in self.index.symlinks()]
        broken = sum(1 for r in results if not r.ok)
        self.logger.info(f"Checked {len(results)} symlinks, {broken} broken")
        return results


def resolve(index: EntryIndex, path: str, max_hops: int = MAX_HOPS) -> Outcome:
    """Resolve path inside index; see SymlinkResolver.resolve"""
    return SymlinkResolver(index, max_hops).resolve(path)


def check_all(index: EntryIndex, max_hops: int = MAX_HOPS) -> List[SymlinkCheck]:
    """Resolve every symlink in index; see SymlinkResolver.check_all"""
    return SymlinkResolver(index, max_hops).check_all()
