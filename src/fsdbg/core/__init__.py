"""Archive decoding and verification engine"""

from .archive import ArchiveFormat, ArchiveReader, detect_format
from .checklist_engine import (
    CheckCategory,
    CheckResult,
    ChecklistEngine,
    Criticality,
    Predicate,
    Requirement,
    VerificationReport,
)
from .cpio_reader import CpioReader
from .diff_engine import ChangeKind, DiffEntry, diff
from .entry import Entry, EntryKind, normalize_path
from .entry_index import ArchiveStats, EntryIndex
from .errors import ErrorCode, FsdbgError
from .symlink_resolver import Cycle, Dangling, Resolved, SymlinkResolver, resolve

__all__ = [
    'ArchiveFormat', 'ArchiveReader', 'detect_format',
    'CheckCategory', 'CheckResult', 'ChecklistEngine', 'Criticality', 'Predicate',
    'Requirement', 'VerificationReport',
    'CpioReader',
    'ChangeKind', 'DiffEntry', 'diff',
    'Entry', 'EntryKind', 'normalize_path',
    'ArchiveStats', 'EntryIndex',
    'ErrorCode', 'FsdbgError',
    'Cycle', 'Dangling', 'Resolved', 'SymlinkResolver', 'resolve',
]
