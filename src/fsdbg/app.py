"""
fsdbg - Central Application Controller

Coordinates archive inspection, checklist verification, symlink checks and
archive comparison. Owns configuration and logging so the CLI (and any
other front end) only deals with results.
"""

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .checklists import ALIASES, ChecklistType
from .core.archive import ArchiveFormat, ArchiveReader, detect_format
from .core.checklist_engine import ChecklistEngine, VerificationReport
from .core.cpio_reader import CpioReader
from .core.diff_engine import DiffEntry, diff
from .core.entry import Entry
from .core.entry_index import ArchiveStats
from .core.erofs_reader import ErofsReader
from .core.errors import ExternalToolError, InvalidArgumentError
from .core.iso_reader import IsoReader
from .core.symlink_resolver import SymlinkCheck, SymlinkResolver
from .utils import compute_file_hash

__version__ = "0.1.0"

LOG_DIR_ENV = "FSDBG_LOG_DIR"

DEFAULT_CONFIG: Dict[str, Any] = {
    "log_level": "WARNING",
    "log_dir": None,
    "max_archive_size_mb": 2048,
    "symlink_max_hops": 40,
    "diff_display_limit": 200,
    "inspect_top_level_only": True,
}


@dataclass
class InspectResult:
    """Summary of one archive for display"""
    path: Path
    format: ArchiveFormat
    file_size: int
    stats: ArchiveStats
    entries: List[Entry] = field(default_factory=list)
    top_level: List[Entry] = field(default_factory=list)
    duplicates: int = 0
    volume_id: Optional[str] = None
    uuid: Optional[str] = None
    sha256: Optional[str] = None


class FsdbgApp:
    """
    Main application class coordinating all archive checks.

    Every operation opens its archive(s) fresh; readers are not cached
    between calls.
    """

    def __init__(self, config_path: Optional[Path] = None,
                 config: Optional[Dict[str, Any]] = None):
        """
        Initialize the application.

        Args:
            config_path: Optional path to a JSON configuration file
            config: Overrides applied on top of the file (e.g. from CLI flags)
        """
        self.config = self._load_config(Path(config_path) if config_path else None)
        if config:
            self.config.update({k: v for k, v in config.items() if v is not None})
        self.logger = self._setup_logging()
        self.engine = ChecklistEngine(max_hops=self.config["symlink_max_hops"])

        self.logger.debug("fsdbg initialized")

    def _load_config(self, config_path: Optional[Path]) -> Dict[str, Any]:
        """
        Load application configuration.

        Args:
            config_path: Path to JSON configuration file

        Returns:
            Configuration dictionary with defaults
        """
        config = dict(DEFAULT_CONFIG)

        if config_path and config_path.exists():
            try:
                with open(config_path, 'r') as f:
                    user_config = json.load(f)
                config.update(user_config)
            except (OSError, ValueError) as e:
                logging.getLogger("fsdbg").warning(
                    f"Failed to load config from {config_path}: {e}")

        return config

    def _setup_logging(self) -> logging.Logger:
        """
        Configure the "fsdbg" logger.

        Console output goes to stderr so reports on stdout stay parseable.
        A timestamped log file is added when log_dir (or FSDBG_LOG_DIR) is set.

        Returns:
            Configured logger instance
        """
        level_name = str(self.config.get("log_level", "WARNING")).upper()
        log_level = getattr(logging, level_name, logging.WARNING)

        logger = logging.getLogger("fsdbg")
        logger.setLevel(log_level)
        logger.propagate = False
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        log_dir = self.config.get("log_dir") or os.environ.get(LOG_DIR_ENV)
        if log_dir:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / f"fsdbg_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        return logger

    @property
    def max_archive_size(self) -> int:
        return int(self.config["max_archive_size_mb"]) * 1024 * 1024

    def open_archive(self, path: Union[str, Path]) -> ArchiveReader:
        """
        Detect an archive's format and open it with the matching reader.

        Args:
            path: Archive path

        Returns:
            CpioReader, ErofsReader or IsoReader

        Raises:
            FsdbgError: On I/O, format or external tool failures
        """
        path = Path(path)
        archive_format = detect_format(path)
        self.logger.info(f"{path}: detected {archive_format.display_name}")

        if archive_format.is_cpio:
            return CpioReader.open(path, max_size=self.max_archive_size)
        if archive_format == ArchiveFormat.EROFS:
            return ErofsReader.open(path)
        return IsoReader.open(path)

    def inspect(self, path: Union[str, Path], pattern: Optional[str] = None) -> InspectResult:
        """
        Summarize an archive.

        Args:
            path: Archive path
            pattern: Optional glob restricting the entry listing

        Returns:
            InspectResult with stats, top-level entries and the (filtered) listing
        """
        path = Path(path)
        reader = self.open_archive(path)
        index = reader.index

        if pattern:
            matches = set(index.glob(pattern))
            entries = [e for e in index if e.path in matches]
        else:
            entries = index.entries()

        uuid = None
        if isinstance(reader, ErofsReader):
            try:
                uuid = reader.info().uuid
            except ExternalToolError as e:
                self.logger.warning(f"Could not read EROFS superblock: {e}")

        return InspectResult(
            path=path,
            format=reader.format,
            file_size=path.stat().st_size,
            stats=reader.stats(),
            entries=entries,
            top_level=[e for e in index if '/' not in e.path],
            duplicates=index.duplicates,
            volume_id=reader.volume_id if isinstance(reader, IsoReader) else None,
            uuid=uuid,
            sha256=compute_file_hash(path),
        )

    def resolve_checklist(self, checklist: Union[str, ChecklistType]) -> ChecklistType:
        """
        Accept a ChecklistType or any of its names/aliases.

        Raises:
            InvalidArgumentError: If the name is unknown
        """
        if isinstance(checklist, ChecklistType):
            return checklist
        resolved = ChecklistType.from_name(checklist)
        if resolved is None:
            raise InvalidArgumentError(
                f"Unknown checklist '{checklist}'. Valid: {', '.join(ALIASES)}")
        return resolved

    def verify(self, path: Union[str, Path],
               checklist: Union[str, ChecklistType]) -> VerificationReport:
        """
        Verify an archive against a named checklist.

        Args:
            path: Archive path
            checklist: ChecklistType or name/alias

        Returns:
            VerificationReport

        Raises:
            InvalidArgumentError: If the checklist does not apply to the archive format
        """
        checklist = self.resolve_checklist(checklist)
        reader = self.open_archive(path)

        is_iso = reader.format == ArchiveFormat.ISO
        if checklist.requires_iso and not is_iso:
            raise InvalidArgumentError(
                f"The {checklist.value} checklist needs an ISO 9660 image, "
                f"got {reader.format.display_name}", path=path)
        if is_iso and not checklist.requires_iso:
            raise InvalidArgumentError(
                f"ISO images can only be verified with the iso checklist, "
                f"not {checklist.value}", path=path)

        self.logger.info(f"Verifying {path} against {checklist.display_name}")
        return self.engine.verify(reader.index, checklist.requirements, checklist.display_name)

    def check_symlinks(self, path: Union[str, Path]) -> List[SymlinkCheck]:
        """
        Resolve every symlink in an archive.

        Args:
            path: Archive path

        Returns:
            One SymlinkCheck per symlink entry, in stream order
        """
        reader = self.open_archive(path)
        resolver = SymlinkResolver(reader.index, max_hops=self.config["symlink_max_hops"])
        return resolver.check_all()

    def diff(self, old_path: Union[str, Path], new_path: Union[str, Path]) -> List[DiffEntry]:
        """
        Compare two archives.

        Args:
            old_path: Baseline archive
            new_path: Archive to compare

        Returns:
            Full path-by-path classification, sorted by path
        """
        old_reader = self.open_archive(old_path)
        new_reader = self.open_archive(new_path)
        return diff(old_reader.index, new_reader.index)
