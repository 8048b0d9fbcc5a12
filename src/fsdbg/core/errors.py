"""
fsdbg - Error Catalog

Every failure that aborts an operation is an FsdbgError carrying a stable
ErrorCode. The codes are part of the command-line contract: scripts match on
the printed "E00n" token, so existing values must never be renumbered.

Check failures and unresolved symlinks are NOT errors; they are recorded in
reports (see checklist_engine and symlink_resolver).
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from .entry_index import EntryIndex


class ErrorCode(Enum):
    """Stable error-kind catalog"""
    FILE_NOT_FOUND = 1
    INVALID_FORMAT = 2
    SYMLINK_BROKEN = 3
    MISSING_REQUIRED = 4
    IO_ERROR = 5
    EXTERNAL_TOOL_FAILED = 6
    PARSE_ERROR = 7
    VERIFICATION_FAILED = 8
    UNSUPPORTED_FORMAT = 9
    INVALID_ARGUMENT = 10

    def __str__(self) -> str:
        return f"E{self.value:03d}"


class FsdbgError(Exception):
    """Base error for all terminal fsdbg failures"""

    code = ErrorCode.IO_ERROR

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None,
                 code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.path is not None:
            text += f" ({self.path})"
        return text


class ArchiveNotFoundError(FsdbgError):
    """Archive path does not exist"""
    code = ErrorCode.FILE_NOT_FOUND

    def __init__(self, path: Union[str, Path]):
        super().__init__(f"File not found: {path}", path=path)


class ArchiveReadError(FsdbgError):
    """Archive exists but could not be read"""
    code = ErrorCode.IO_ERROR


class UnsupportedFormatError(FsdbgError):
    """Input is not a format fsdbg knows how to decode"""
    code = ErrorCode.UNSUPPORTED_FORMAT


class CorruptArchiveError(FsdbgError):
    """
    Archive framing is recognized but the stream is damaged.

    Entries decoded before the damage are kept on the exception so callers
    can still report on them.
    """
    code = ErrorCode.INVALID_FORMAT

    def __init__(self, message: str, entries: Optional[List] = None,
                 offset: Optional[int] = None, path: Optional[Union[str, Path]] = None):
        super().__init__(message, path=path)
        self.entries = list(entries or [])
        self.offset = offset

    @property
    def index(self):
        """EntryIndex over the entries decoded before the corruption"""
        return EntryIndex(self.entries)


class ExternalToolError(FsdbgError):
    """An external inspection tool is missing or failed"""
    code = ErrorCode.EXTERNAL_TOOL_FAILED

    def __init__(self, tool: str, message: str):
        super().__init__(f"{tool} failed: {message}")
        self.tool = tool


class InvalidArgumentError(FsdbgError):
    """Caller asked for something that cannot apply (e.g. wrong checklist)"""
    code = ErrorCode.INVALID_ARGUMENT
