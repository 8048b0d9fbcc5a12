"""
fsdbg - External Tool Helpers

Runs listing tools (dump.erofs, isoinfo) and turns their ls-style output
into Entry fields. Parsing helpers are pure so they can be tested against
captured output.
"""

import logging
import shutil
import stat
import subprocess
from typing import List, Optional, Tuple

from .errors import ExternalToolError

logger = logging.getLogger(__name__)

TOOL_TIMEOUT_SECONDS = 300

FILE_TYPE_BITS = {
    '-': stat.S_IFREG,
    'd': stat.S_IFDIR,
    'l': stat.S_IFLNK,
    'c': stat.S_IFCHR,
    'b': stat.S_IFBLK,
    'p': stat.S_IFIFO,
    's': stat.S_IFSOCK,
}

# (position, letter, bit) for rwx triplets; special bits handled separately
PERMISSION_BITS = (
    (1, 'r', stat.S_IRUSR), (2, 'w', stat.S_IWUSR), (3, 'x', stat.S_IXUSR),
    (4, 'r', stat.S_IRGRP), (5, 'w', stat.S_IWGRP), (6, 'x', stat.S_IXGRP),
    (7, 'r', stat.S_IROTH), (8, 'w', stat.S_IWOTH), (9, 'x', stat.S_IXOTH),
)

SPECIAL_BITS = (
    (3, 's', 'S', stat.S_ISUID, stat.S_IXUSR),
    (6, 's', 'S', stat.S_ISGID, stat.S_IXGRP),
    (9, 't', 'T', stat.S_ISVTX, stat.S_IXOTH),
)


def run_tool(tool: str, args: List[str], install_hint: str = "") -> str:
    """
    Run an external tool and return its stdout.

    Args:
        tool: Executable name looked up on PATH
        args: Arguments after the executable
        install_hint: Package suggestion for the not-found message

    Returns:
        Decoded stdout

    Raises:
        ExternalToolError: If the tool is missing, times out or exits nonzero
    """
    if shutil.which(tool) is None:
        hint = f" Install {install_hint}." if install_hint else ""
        raise ExternalToolError(tool, f"{tool} not found on PATH.{hint}")

    logger.debug(f"Running {tool} {' '.join(args)}")
    try:
        result = subprocess.run(
            [tool, *args],
            capture_output=True,
            text=True,
            errors='replace',
            timeout=TOOL_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ExternalToolError(tool, str(e)) from e

    if result.returncode != 0:
        message = result.stderr.strip() or f"exit status {result.returncode}"
        raise ExternalToolError(tool, message)
    return result.stdout


def parse_mode_string(text: str) -> Optional[int]:
    """
    Convert an ls-style mode string to mode bits.

    Args:
        text: e.g. "drwxr-xr-x" or "-rwsr-xr-x"

    Returns:
        Mode including file type bits, or None if text is not a mode string
    """
    if len(text) < 10 or text[0] not in FILE_TYPE_BITS:
        return None

    mode = FILE_TYPE_BITS[text[0]]
    for pos, letter, bit in PERMISSION_BITS:
        if text[pos] == letter:
            mode |= bit
    for pos, lower, upper, special, exec_bit in SPECIAL_BITS:
        if text[pos] == lower:
            mode |= special | exec_bit
        elif text[pos] == upper:
            mode |= special
    return mode


def split_link(name: str, is_symlink: bool) -> Tuple[str, Optional[str]]:
    """Split "name -> target" for symlinks"""
    if is_symlink and ' -> ' in name:
        link, target = name.split(' -> ', 1)
        return link, target
    return name, None


def parse_int(text: str) -> int:
    """Numeric column or 0 for names like "root" """
    return int(text) if text.isdigit() else 0
