"""
fsdbg Utility Functions
Size formatting, archive hashing and small display helpers
"""

import hashlib
from pathlib import Path
from typing import Union

from .core.errors import ArchiveReadError

HASH_CHUNK_SIZE = 1024 * 1024


def format_size(bytes_size: float) -> str:
    """
    Format byte size to human-readable format

    Args:
        bytes_size: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB")
    """
    if bytes_size < 1024:
        return f"{int(bytes_size)} B"
    for unit in ['KB', 'MB', 'GB', 'TB']:
        bytes_size /= 1024.0
        if bytes_size < 1024.0:
            return f"{bytes_size:.1f} {unit}"
    return f"{bytes_size / 1024.0:.1f} PB"


def compute_file_hash(file_path: Union[str, Path], algorithm: str = 'sha256') -> str:
    """
    Compute hash of an archive file

    Args:
        file_path: Path to file
        algorithm: Any hashlib algorithm name ('md5', 'sha1', 'sha256')

    Returns:
        Hex string of hash

    Raises:
        ValueError: If the algorithm is unknown
        ArchiveReadError: If the file cannot be read
    """
    if algorithm not in hashlib.algorithms_available:
        raise ValueError(f"Unsupported algorithm: {algorithm}")
    hasher = hashlib.new(algorithm)

    try:
        with open(file_path, 'rb') as f:
            while chunk := f.read(HASH_CHUNK_SIZE):
                hasher.update(chunk)
    except OSError as e:
        raise ArchiveReadError(f"Cannot hash archive: {e}", path=file_path) from e
    return hasher.hexdigest()


def format_octal_mode(mode: int) -> str:
    """Permission bits as four octal digits (e.g. "0755")"""
    return f"{mode & 0o7777:04o}"


def display_path(path: str) -> str:
    """Archive path with a leading slash for output ("" becomes "/")"""
    return f"/{path}"
