"""Data models for Bunny storage entries.

An entry is either a :class:`FileEntry` or a :class:`DirectoryEntry`. Only
files carry a length and a checksum; only directories can be listed or
uploaded into. Entries are immutable: operations that change remote state
return a new entry instead of mutating the old one.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from .exceptions import BunnyInvalidArgumentError, BunnyInvalidResponseError
from .utils import CHECKSUM_LENGTH, bytes_to_hex, format_size, hex_to_bytes

if TYPE_CHECKING:
    from .api import BunnyStorage

FILE_SYMBOL = "🗒️"
DIRECTORY_SYMBOL = "📁"


def join_remote(parent: str, name: str) -> str:
    """Join a remote directory path and a child name.

    Examples:
        >>> join_remote("/", "a.txt")
        '/a.txt'
        >>> join_remote("/docs", "a.txt")
        '/docs/a.txt'
    """
    return posixpath.join(parent, name)


@dataclass(frozen=True)
class BaseEntry:
    """Header shared by files and directories."""

    storage: BunnyStorage = field(repr=False, compare=False)
    parent_path: str
    """Path of the containing directory, always ending in '/'"""

    name: str
    """Object name (no '/')"""

    def __post_init__(self) -> None:
        if not self.parent_path.endswith("/"):
            raise BunnyInvalidArgumentError(
                f"Expected parent path '{self.parent_path}' to end with /"
            )
        if "/" in self.name:
            raise BunnyInvalidArgumentError(
                f"Unexpected / in object name '{self.name}'"
            )

    @property
    def path(self) -> str:
        """Full remote path (parent path + name)."""
        return f"{self.parent_path}{self.name}"


@dataclass(frozen=True)
class FileEntry(BaseEntry):
    """A remote file with its length and SHA-256 checksum."""

    length: int
    checksum: bytes
    """Raw SHA-256 digest (32 bytes)"""

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.length < 0:
            raise BunnyInvalidArgumentError(f"Negative length for '{self.path}'")
        if len(self.checksum) != CHECKSUM_LENGTH:
            raise BunnyInvalidArgumentError(
                f"Expected a {CHECKSUM_LENGTH}-byte checksum for '{self.path}'"
            )

    @property
    def checksum_hex(self) -> str:
        return bytes_to_hex(self.checksum)

    def download(self, verify_checksum: bool = False) -> bytes:
        """Fetch the file content.

        Args:
            verify_checksum: Recompute the SHA-256 of the downloaded bytes and
                compare it against this entry's checksum

        Raises:
            BunnyChecksumMismatchError: If verification fails
        """
        expected = self.checksum if verify_checksum else None
        return self.storage.download(self.path, expected)

    def replace(self, body: bytes) -> FileEntry:
        """Upload new content at this path and return the resulting entry."""
        return self.storage.upload(self.path, body)

    def delete(self) -> None:
        """Delete this file."""
        self.storage.delete(self.path)

    def format(self, full_path: bool = False) -> str:
        name = self.path if full_path else self.name
        return (
            f"{FILE_SYMBOL} {name} "
            f"(length = {self.length}, checksum = {self.checksum_hex})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "file",
            "path": self.path,
            "name": self.name,
            "length": self.length,
            "size": format_size(self.length),
            "checksum": self.checksum_hex,
        }


@dataclass(frozen=True)
class DirectoryEntry(BaseEntry):
    """A remote directory."""

    def list(self) -> list[Entry]:
        """List the direct children of this directory."""
        return self.storage.list(self.path)

    def upload(self, child_name: str, body: bytes) -> FileEntry:
        """Upload a new file into this directory."""
        return self.storage.upload(join_remote(self.path, child_name), body)

    def delete(self, recursive: bool = False) -> None:
        """Delete this directory and everything below it.

        Raises:
            BunnyInvalidArgumentError: If ``recursive`` is not set
        """
        if not recursive:
            raise BunnyInvalidArgumentError(
                "Cannot delete a directory without 'recursive' set to true"
            )
        path = self.path if self.path.endswith("/") else f"{self.path}/"
        self.storage.delete(path)

    def format(self, full_path: bool = False) -> str:
        name = self.path if full_path else self.name
        return f"{DIRECTORY_SYMBOL} {name}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "directory", "path": self.path, "name": self.name}


Entry = Union[FileEntry, DirectoryEntry]


def is_file(entry: Entry) -> bool:
    return isinstance(entry, FileEntry)


def is_directory(entry: Entry) -> bool:
    return isinstance(entry, DirectoryEntry)


# =============================================================================
# Wire decoding
# =============================================================================


def _require(data: dict[str, Any], key: str, expected: type) -> Any:
    value = data.get(key)
    # bool is a subclass of int; keep Length from accepting True/False
    if not isinstance(value, expected) or (
        expected is int and isinstance(value, bool)
    ):
        raise BunnyInvalidResponseError(
            f"Expected field '{key}' of type {expected.__name__}, got {value!r}"
        )
    return value


def entry_from_api_response(storage: BunnyStorage, data: Any) -> Entry:
    """Decode one storage object record returned by the API.

    The record's ``Path`` is prefixed with ``/<storage zone>/``; the prefix is
    stripped so that parent paths start at the zone root ('/').

    Raises:
        BunnyInvalidResponseError: If the record is malformed
    """
    if not isinstance(data, dict):
        raise BunnyInvalidResponseError(f"Expected an object, got {data!r}")

    zone = _require(data, "StorageZoneName", str)
    raw_path = _require(data, "Path", str)
    name = _require(data, "ObjectName", str)
    is_dir = _require(data, "IsDirectory", bool)
    length = _require(data, "Length", int)
    raw_checksum = data.get("Checksum")

    prefix = f"/{zone}/"
    if not raw_path.startswith(prefix):
        raise BunnyInvalidResponseError(
            f"Expected path '{raw_path}' to start with the storage zone name"
        )
    if "/" in name:
        raise BunnyInvalidResponseError(f"Unexpected / in object name '{name}'")

    parent_path = raw_path[len(prefix) - 1 :]

    if is_dir:
        if raw_checksum is not None:
            raise BunnyInvalidResponseError(
                "Mismatch between directory flag and presence of checksum "
                f"for '{name}'"
            )
        return DirectoryEntry(storage=storage, parent_path=parent_path, name=name)

    if not isinstance(raw_checksum, str):
        raise BunnyInvalidResponseError(
            "Mismatch between directory flag and presence of checksum "
            f"for '{name}'"
        )
    try:
        checksum = hex_to_bytes(raw_checksum)
    except BunnyInvalidArgumentError as e:
        raise BunnyInvalidResponseError(str(e)) from e
    if len(checksum) != CHECKSUM_LENGTH:
        raise BunnyInvalidResponseError(f"Malformed digest: '{raw_checksum}'")

    return FileEntry(
        storage=storage,
        parent_path=parent_path,
        name=name,
        length=length,
        checksum=checksum,
    )


def listing_from_api_response(storage: BunnyStorage, data: Any) -> list[Entry]:
    """Decode a directory listing (a JSON array of object records)."""
    if not isinstance(data, list):
        raise BunnyInvalidResponseError(f"Expected a listing array, got {data!r}")
    return [entry_from_api_response(storage, item) for item in data]
