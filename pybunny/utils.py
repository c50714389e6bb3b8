"""Utility functions for pybunny."""

import errno
import hashlib
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Union

from .exceptions import (
    BunnyInvalidArgumentError,
    BunnyLocalIOError,
    BunnyNotFoundError,
    BunnyUnsupportedPathError,
)

# =============================================================================
# Constants
# =============================================================================

# Length of a SHA-256 digest in bytes
CHECKSUM_LENGTH: int = 32

# Read size when hashing local files (1 MB)
HASH_CHUNK_SIZE: int = 1024 * 1024

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


# =============================================================================
# Hex encoding
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Encode bytes as a lower-case hex string.

    Examples:
        >>> bytes_to_hex(b"\\x00\\xff")
        '00ff'
    """
    return data.hex()


def hex_to_bytes(value: str) -> bytes:
    """Decode a hex string into bytes.

    Upper- and lower-case digits are accepted.

    Args:
        value: Non-empty hex string of even length

    Returns:
        Decoded bytes

    Raises:
        BunnyInvalidArgumentError: If the string is empty, has odd length or
            contains non-hex characters

    Examples:
        >>> hex_to_bytes("00FF")
        b'\\x00\\xff'
    """
    if not value or len(value) % 2 != 0 or not set(value) <= _HEX_DIGITS:
        raise BunnyInvalidArgumentError(f"Malformed digest: '{value}'")
    return bytes.fromhex(value)


# =============================================================================
# Checksums
# =============================================================================


def compute_checksum(data: bytes) -> bytes:
    """Return the raw SHA-256 digest of ``data``."""
    return hashlib.sha256(data).digest()


def compute_file_checksum(path: Union[str, Path]) -> bytes:
    """Return the raw SHA-256 digest of a local file, read in chunks.

    Raises:
        BunnyLocalIOError: If the file cannot be read
    """
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise BunnyLocalIOError(f"Cannot read '{path}': {e.strerror}") from e
    return digest.digest()


# =============================================================================
# Name set difference
# =============================================================================


@dataclass
class NameDiff:
    """Result of comparing two collections of names."""

    only_left: list[str] = field(default_factory=list)
    only_right: list[str] = field(default_factory=list)
    both: list[str] = field(default_factory=list)


def diff_names(left: Iterable[str], right: Iterable[str]) -> NameDiff:
    """Split two name collections into left-only, right-only and shared names.

    Duplicates are ignored. Every list is sorted lexically so that the
    result does not depend on listing order.

    Examples:
        >>> diff_names(["a", "b"], ["b", "c"])
        NameDiff(only_left=['a'], only_right=['c'], both=['b'])
    """
    left_set = set(left)
    right_set = set(right)
    return NameDiff(
        only_left=sorted(left_set - right_set),
        only_right=sorted(right_set - left_set),
        both=sorted(left_set & right_set),
    )


# =============================================================================
# Size formatting
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


# =============================================================================
# Local filesystem
# =============================================================================


def stat_local(path: Path) -> os.stat_result:
    """Stat a local path, following symlinks.

    Raises:
        BunnyNotFoundError: If the path (or a symlink target) does not exist
        BunnyUnsupportedPathError: If the path is part of a symlink loop
        BunnyLocalIOError: For any other failure, e.g. missing permissions
    """
    try:
        return path.stat()
    except FileNotFoundError as e:
        raise BunnyNotFoundError(f"Local path '{path}' not found") from e
    except OSError as e:
        if e.errno == errno.ELOOP:
            raise BunnyUnsupportedPathError(f"Symlink loop at '{path}'") from e
        raise BunnyLocalIOError(f"Cannot stat '{path}': {e.strerror}") from e


def list_local(path: Path) -> list[str]:
    """Return the names of a local directory's children, sorted."""
    try:
        return sorted(child.name for child in path.iterdir())
    except OSError as e:
        raise BunnyLocalIOError(f"Cannot list '{path}': {e.strerror}") from e


def read_local(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise BunnyLocalIOError(f"Cannot read '{path}': {e.strerror}") from e


def write_local(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as e:
        raise BunnyLocalIOError(f"Cannot write '{path}': {e.strerror}") from e
