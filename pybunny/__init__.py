"""PyBunny - compare and upload files to Bunny edge storage."""

from .api import BunnyStorage
from .config import BunnyRegion
from .exceptions import (
    BunnyAuthenticationError,
    BunnyChecksumMismatchError,
    BunnyConfigError,
    BunnyError,
    BunnyInvalidArgumentError,
    BunnyInvalidResponseError,
    BunnyLocalIOError,
    BunnyNetworkError,
    BunnyNotFoundError,
    BunnyOverwriteRequiredError,
    BunnyRateLimitError,
    BunnyTransportError,
    BunnyTypeMismatchError,
    BunnyUnsupportedPathError,
)
from .models import DirectoryEntry, Entry, FileEntry, is_directory, is_file
from .tree import Tree
from .utils import bytes_to_hex, hex_to_bytes

__all__ = [
    "BunnyStorage",
    "BunnyRegion",
    "DirectoryEntry",
    "Entry",
    "FileEntry",
    "Tree",
    "is_directory",
    "is_file",
    "bytes_to_hex",
    "hex_to_bytes",
    "BunnyAuthenticationError",
    "BunnyChecksumMismatchError",
    "BunnyConfigError",
    "BunnyError",
    "BunnyInvalidArgumentError",
    "BunnyInvalidResponseError",
    "BunnyLocalIOError",
    "BunnyNetworkError",
    "BunnyNotFoundError",
    "BunnyOverwriteRequiredError",
    "BunnyRateLimitError",
    "BunnyTransportError",
    "BunnyTypeMismatchError",
    "BunnyUnsupportedPathError",
]
