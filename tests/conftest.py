"""Shared fixtures: an in-memory stand-in for BunnyStorage."""

import hashlib
import posixpath
import threading
from pathlib import Path

import pytest

from pybunny.exceptions import (
    BunnyChecksumMismatchError,
    BunnyInvalidArgumentError,
    BunnyNotFoundError,
    BunnyTypeMismatchError,
)
from pybunny.models import DirectoryEntry, FileEntry


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


class InMemoryStorage:
    """Object store keyed by full path, with the BunnyStorage interface.

    Directories exist implicitly as prefixes of stored files. Listings are
    returned in reverse name order so tests do not depend on server order.
    """

    storage_zone = "test-zone"

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.uploads: list[str] = []
        self.deleted: list[str] = []
        self.in_flight: set[str] = set()
        self.concurrent_writes: list[str] = []
        self._lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass

    @staticmethod
    def _normalize(path: str) -> str:
        return "/" + path.strip("/")

    def put(self, path: str, body: bytes) -> None:
        """Seed content without counting it as an upload."""
        self.files[self._normalize(path)] = body

    def _file_entry(self, path: str) -> FileEntry:
        parent, name = posixpath.split(path)
        body = self.files[path]
        return FileEntry(
            storage=self,
            parent_path=parent if parent.endswith("/") else parent + "/",
            name=name,
            length=len(body),
            checksum=sha256(body),
        )

    def _is_directory(self, path: str) -> bool:
        prefix = path.rstrip("/") + "/"
        return any(key.startswith(prefix) for key in self.files)

    def cd(self, path: str = "/") -> DirectoryEntry:
        normalized = self._normalize(path)
        if normalized == "/":
            return DirectoryEntry(storage=self, parent_path="/", name="")
        parent, name = posixpath.split(normalized)
        return DirectoryEntry(
            storage=self,
            parent_path=parent if parent.endswith("/") else parent + "/",
            name=name,
        )

    def list(self, path: str = "/"):
        normalized = self._normalize(path)
        if normalized in self.files:
            raise BunnyTypeMismatchError(
                f"Expected a directory, but '{path}' is a file"
            )

        prefix = normalized.rstrip("/") + "/"
        names = {
            key[len(prefix) :].split("/")[0]
            for key in self.files
            if key.startswith(prefix)
        }
        entries = []
        for name in sorted(names, reverse=True):
            child = prefix + name
            if child in self.files:
                entries.append(self._file_entry(child))
            else:
                entries.append(self.cd(child))
        return entries

    def maybe_describe(self, path: str):
        if path.endswith("/"):
            raise BunnyInvalidArgumentError(f"File expected, '{path}' received")
        normalized = self._normalize(path)
        if normalized in self.files:
            return self._file_entry(normalized)
        if self._is_directory(normalized):
            return self.cd(normalized)
        return None

    def describe(self, path: str):
        entry = self.maybe_describe(path)
        if entry is None:
            raise BunnyNotFoundError(f"File {path} not found")
        return entry

    def download(self, path: str, expected_checksum=None) -> bytes:
        normalized = self._normalize(path)
        if normalized not in self.files:
            raise BunnyNotFoundError(f"Path '{path}' not found")
        body = self.files[normalized]
        if expected_checksum is not None and sha256(body) != expected_checksum:
            raise BunnyChecksumMismatchError(
                expected_checksum.hex(), sha256(body).hex(), path
            )
        return body

    def upload(self, path: str, body: bytes, checksum=None) -> FileEntry:
        normalized = self._normalize(path)
        with self._lock:
            if normalized in self.in_flight:
                self.concurrent_writes.append(normalized)
            self.in_flight.add(normalized)
        try:
            if checksum is not None and checksum != sha256(body):
                raise BunnyChecksumMismatchError(
                    checksum.hex(), sha256(body).hex(), path
                )
            with self._lock:
                self.files[normalized] = body
                self.uploads.append(normalized)
            return self._file_entry(normalized)
        finally:
            with self._lock:
                self.in_flight.discard(normalized)

    def delete(self, path: str) -> None:
        normalized = self._normalize(path)
        self.deleted.append(path)
        if normalized in self.files:
            del self.files[normalized]
            return
        prefix = normalized.rstrip("/") + "/"
        for key in [k for k in self.files if k.startswith(prefix)]:
            del self.files[key]


def _make_tree(root: Path, files: dict[str, bytes]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for relative, body in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(body)
    return root


@pytest.fixture
def storage():
    """Provide an empty in-memory storage zone."""
    return InMemoryStorage()


@pytest.fixture
def make_tree():
    """Create local files below a root from a {relative path: content} map."""
    return _make_tree
