"""
fsdbg - Diff Engine

Compares two archives path by path. The full classification is always
computed; filtering unchanged paths is a presentation concern.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .entry import Entry
from .entry_index import EntryIndex

logger = logging.getLogger(__name__)

COMPARED_FIELDS = ('mode', 'size', 'kind', 'link_target')


class ChangeKind(Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class EntrySummary:
    """The attributes a diff compares"""
    mode: int
    size: int
    kind: str
    link_target: Optional[str] = None

    @classmethod
    def of(cls, entry: Entry) -> "EntrySummary":
        return cls(entry.mode, entry.size, entry.kind.value, entry.link_target)


@dataclass(frozen=True)
class DiffEntry:
    path: str
    change: ChangeKind
    before: Optional[EntrySummary] = None
    after: Optional[EntrySummary] = None
    changed_fields: Tuple[str, ...] = ()


@dataclass
class DiffSummary:
    added: int = 0
    removed: int = 0
    modified: int = 0
    unchanged: int = 0

    @property
    def total_changes(self) -> int:
        return self.added + self.removed + self.modified

    @property
    def identical(self) -> bool:
        return self.total_changes == 0


def _changed_fields(before: EntrySummary, after: EntrySummary) -> Tuple[str, ...]:
    return tuple(name for name in COMPARED_FIELDS
                 if getattr(before, name) != getattr(after, name))


def diff(old: EntryIndex, new: EntryIndex) -> List[DiffEntry]:
    """
    Classify every path in either archive.

    Args:
        old: Baseline archive
        new: Archive compared against the baseline

    Returns:
        One DiffEntry per path in the union, sorted lexicographically
    """
    result: List[DiffEntry] = []
    for path in sorted(set(old.paths()) | set(new.paths())):
        before_entry = old.get(path)
        after_entry = new.get(path)

        if before_entry is None:
            result.append(DiffEntry(path, ChangeKind.ADDED, after=EntrySummary.of(after_entry)))
            continue
        if after_entry is None:
            result.append(DiffEntry(path, ChangeKind.REMOVED,
                                    before=EntrySummary.of(before_entry)))
            continue

        before = EntrySummary.of(before_entry)
        after = EntrySummary.of(after_entry)
        changed = _changed_fields(before, after)
        change = ChangeKind.MODIFIED if changed else ChangeKind.UNCHANGED
        result.append(DiffEntry(path, change, before, after, changed))

    logger.info(f"Compared {len(result)} paths")
    return result


def summarize(entries: List[DiffEntry]) -> DiffSummary:
    """Count diff entries per change kind"""
    summary = DiffSummary()
    for entry in entries:
        if entry.change == ChangeKind.ADDED:
            summary.added += 1
        elif entry.change == ChangeKind.REMOVED:
            summary.removed += 1
        elif entry.change == ChangeKind.MODIFIED:
            summary.modified += 1
        else:
            summary.unchanged += 1
    return summary


def only_differences(entries: List[DiffEntry]) -> List[DiffEntry]:
    return [e for e in entries if e.change != ChangeKind.UNCHANGED]
