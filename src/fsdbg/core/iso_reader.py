"""
fsdbg - ISO 9660 Reader

Lists ISO images through isoinfo (cdrtools/genisoimage) with Rock Ridge
extensions so symlinks and long names survive.

isoinfo -l output is grouped by directory:
    Directory listing of /boot/
    drwxr-xr-x   1    0    0    2048 Jan 27 2026 [     37 02]  .
    -rw-r--r--   1    0    0 1234567 Jan 27 2026 [     40 00]  vmlinuz
"""

import logging
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .archive import ArchiveFormat, ArchiveReader
from .entry import Entry, EntryKind, normalize_path
from .errors import ArchiveNotFoundError, ExternalToolError
from .external import parse_int, parse_mode_string, run_tool, split_link

logger = logging.getLogger(__name__)

ISOINFO = "isoinfo"
INSTALL_HINT = "cdrtools or genisoimage"
DIRECTORY_HEADER = "Directory listing of "


@dataclass
class IsoInfo:
    volume_id: Optional[str] = None
    volume_size: int = 0


def parse_isoinfo_listing(output: str) -> List[Entry]:
    """
    Parse `isoinfo -l -R -i <image>` output.

    Args:
        output: Captured stdout

    Returns:
        Entries in listing order ("." and ".." skipped)
    """
    entries: List[Entry] = []
    current_dir = ""

    for raw in output.splitlines():
        line = raw.strip()
        if line.startswith(DIRECTORY_HEADER):
            current_dir = normalize_path(line[len(DIRECTORY_HEADER):])
            continue
        if not line or line.startswith('---'):
            continue

        parts = line.split()
        if len(parts) < 9:
            continue
        mode = parse_mode_string(parts[0])
        if mode is None:
            continue

        # Name follows the "[ extent flags ]" column
        _, bracket, rest = line.partition(']')
        if not bracket:
            continue
        name, link_target = split_link(rest.strip(), stat.S_ISLNK(mode))
        if name in ('', '.', '..'):
            continue

        path = normalize_path(f"{current_dir}/{name}")
        entries.append(Entry(
            path=path,
            kind=EntryKind.from_mode(mode),
            mode=mode,
            uid=parse_int(parts[2]),
            gid=parse_int(parts[3]),
            size=parse_int(parts[4]),
            link_target=link_target,
            nlink=parse_int(parts[1]),
        ))
    return entries


def parse_iso_info(output: str) -> IsoInfo:
    """Parse `isoinfo -d` primary volume descriptor summary"""
    info = IsoInfo()
    for raw in output.splitlines():
        line = raw.strip()
        if line.startswith("Volume id:"):
            info.volume_id = line[len("Volume id:"):].strip() or None
        elif line.startswith("Volume size is:"):
            value = line.split(':', 1)[1].split()
            info.volume_size = parse_int(value[0]) if value else 0
    return info


class IsoReader(ArchiveReader):
    """ISO 9660 image listed via isoinfo"""

    format = ArchiveFormat.ISO

    def __init__(self, entries: List[Entry], source: Optional[Path] = None,
                 info: Optional[IsoInfo] = None):
        super().__init__(entries, source=source)
        self.info = info or IsoInfo()

    @property
    def volume_id(self) -> Optional[str]:
        return self.info.volume_id

    @classmethod
    def open(cls, path: Union[str, Path]) -> "IsoReader":
        """
        List an ISO image.

        Args:
            path: Image path

        Returns:
            Reader over the listed entries

        Raises:
            ArchiveNotFoundError: If path does not exist
            ExternalToolError: If isoinfo is missing or the listing fails
        """
        path = Path(path)
        if not path.exists():
            raise ArchiveNotFoundError(path)

        entries = parse_isoinfo_listing(
            run_tool(ISOINFO, ['-l', '-R', '-i', str(path)], INSTALL_HINT))

        # The volume descriptor is informational; a listing without it is still usable
        try:
            info = parse_iso_info(run_tool(ISOINFO, ['-d', '-i', str(path)], INSTALL_HINT))
        except ExternalToolError as e:
            logger.warning(f"Could not read volume descriptor: {e}")
            info = IsoInfo()

        logger.info(f"Listed {len(entries)} entries from {path} "
                    f"(volume id: {info.volume_id or 'unknown'})")
        return cls(entries, source=path, info=info)
