"""
fsdbg - EROFS Reader

Lists EROFS images through dump.erofs (erofs-utils) without mounting them
and normalizes the listing into Entry objects.

dump.erofs --ls output varies by version; both the ls -l style
    drwxr-xr-x   2 root root    4096 Jan  1 00:00 usr
and bare path lines are understood.
"""

import logging
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .archive import ArchiveFormat, ArchiveReader
from .entry import Entry, EntryKind, normalize_path
from .errors import ArchiveNotFoundError
from .external import parse_int, parse_mode_string, run_tool, split_link

logger = logging.getLogger(__name__)

DUMP_EROFS = "dump.erofs"
INSTALL_HINT = "erofs-utils"


@dataclass
class ErofsInfo:
    uuid: Optional[str] = None
    total_blocks: int = 0
    inode_count: int = 0


def parse_dump_listing(output: str) -> List[Entry]:
    """
    Parse `dump.erofs --ls -r` output.

    Args:
        output: Captured stdout

    Returns:
        Entries in listing order
    """
    entries: List[Entry] = []
    for raw in output.splitlines():
        line = raw.strip()
        if not line:
            continue

        parts = line.split(None, 8)
        mode = parse_mode_string(parts[0]) if len(parts) == 9 else None
        if mode is not None:
            name, link_target = split_link(parts[8], stat.S_ISLNK(mode))
            path = normalize_path(name)
            size = parse_int(parts[4])
            uid, gid = parse_int(parts[2]), parse_int(parts[3])
            nlink = parse_int(parts[1])
        else:
            # Bare path; only the directory marker is known
            path = normalize_path(line)
            mode = stat.S_IFDIR if line.endswith('/') else stat.S_IFREG
            link_target, size, uid, gid, nlink = None, 0, 0, 0, 1

        if not path:
            continue
        entries.append(Entry(
            path=path,
            kind=EntryKind.from_mode(mode),
            mode=mode,
            uid=uid,
            gid=gid,
            size=size,
            link_target=link_target,
            nlink=nlink,
        ))
    return entries


def parse_erofs_info(output: str) -> ErofsInfo:
    """Parse superblock summary printed by plain `dump.erofs <image>`"""
    info = ErofsInfo()
    for line in output.splitlines():
        key, _, value = line.partition(':')
        value = value.strip()
        if 'Filesystem UUID' in key:
            info.uuid = value or None
        elif 'Filesystem total blocks' in key:
            info.total_blocks = parse_int(value.split()[0]) if value else 0
        elif 'Filesystem inode count' in key:
            info.inode_count = parse_int(value.split()[0]) if value else 0
    return info


class ErofsReader(ArchiveReader):
    """EROFS image listed via dump.erofs"""

    format = ArchiveFormat.EROFS

    @classmethod
    def open(cls, path: Union[str, Path]) -> "ErofsReader":
        """
        List an EROFS image.

        Args:
            path: Image path

        Returns:
            Reader over the listed entries

        Raises:
            ArchiveNotFoundError: If path does not exist
            ExternalToolError: If dump.erofs is missing or fails
        """
        path = Path(path)
        if not path.exists():
            raise ArchiveNotFoundError(path)

        output = run_tool(DUMP_EROFS, ['--ls', '-r', str(path)], INSTALL_HINT)
        entries = parse_dump_listing(output)
        logger.info(f"Listed {len(entries)} entries from {path}")
        return cls(entries, source=path)

    def info(self) -> ErofsInfo:
        """Superblock summary (UUID, block and inode counts)"""
        return parse_erofs_info(run_tool(DUMP_EROFS, [str(self.source)], INSTALL_HINT))
