"""Comparison of a local path against a remote entry.

The result of a comparison is either ``None`` (no difference) or a
``Tree[Difference]``. Type and content mismatches are reported as
differences, never raised.
"""

import logging
import os
import stat
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from ..exceptions import BunnyInvalidArgumentError
from ..models import DirectoryEntry, Entry, FileEntry, join_remote
from ..tree import Tree
from ..utils import compute_file_checksum, diff_names, list_local, stat_local

if TYPE_CHECKING:
    from ..api import BunnyStorage

logger = logging.getLogger(__name__)

LocalPath = Union[str, "os.PathLike[str]"]


class DifferenceKind(str, Enum):
    """Kinds of divergence between a local and a remote path."""

    CONTENTS = "contents"
    """Both are files, checksums differ"""

    TYPE = "type"
    """One side is a file, the other a directory"""

    ONLY_LOCAL = "onlyLocal"
    """Present locally, missing remotely"""

    ONLY_REMOTE = "onlyRemote"
    """Present remotely, missing locally"""

    NONE = "none"
    """Directory heading whose children hold the differences"""


@dataclass(frozen=True)
class Difference:
    """One node of a diff report."""

    kind: DifferenceKind
    local_path: Optional[str] = None
    remote_path: Optional[str] = None

    def format(self) -> str:
        if self.kind == DifferenceKind.ONLY_LOCAL:
            return f"❌ Only local: '{self.local_path}'"
        elif self.kind == DifferenceKind.ONLY_REMOTE:
            return f"❌ Only remote: '{self.remote_path}'"
        elif self.kind == DifferenceKind.TYPE:
            return f"⚡ '{self.remote_path}' and '{self.local_path}' differ in type"
        elif self.kind == DifferenceKind.CONTENTS:
            return (
                f"📄 '{self.remote_path}' and '{self.local_path}' differ in content"
            )
        return f"📁 {self.remote_path}"

    def to_dict(self) -> dict[str, Optional[str]]:
        return {
            "kind": self.kind.value,
            "local_path": self.local_path,
            "remote_path": self.remote_path,
        }


PathDifference = Tree[Difference]


def load_path(storage: "BunnyStorage", path: str) -> Entry:
    """Resolve a remote path to an entry.

    A path ending in '/' is taken as a directory without a remote call;
    anything else is described as a single object.
    """
    if path.endswith("/"):
        return storage.cd(path)
    return storage.describe(path)


class DiffEngine:
    """Walks a local path and a remote entry in lock-step.

    File comparisons below a directory are hashed on a shared thread pool;
    sub-directories are walked in the calling thread while those run.
    Children are always reported in request order.
    """

    def __init__(
        self,
        storage: Optional["BunnyStorage"] = None,
        max_workers: int = 4,
    ):
        """Initialize diff engine.

        Args:
            storage: Storage client, needed only to resolve remote path strings
            max_workers: Number of threads hashing local files (1 = sequential)
        """
        self.storage = storage
        self.max_workers = max_workers

    def diff_paths(
        self,
        local_path: LocalPath,
        remote: Union[Entry, str],
        recursive: bool = False,
    ) -> Optional[PathDifference]:
        """Compare a local path with a remote entry or remote path string.

        Args:
            local_path: Local file or directory
            remote: Remote entry, or a remote path (trailing '/' = directory)
            recursive: Descend into directories present on both sides

        Returns:
            Diff tree, or None if the paths are identical
        """
        if isinstance(remote, str):
            if self.storage is None:
                raise BunnyInvalidArgumentError(
                    "A storage client is required to resolve remote paths"
                )
            remote = load_path(self.storage, remote)

        with self._executor() as executor:
            return self._diff_path(Path(local_path), remote, recursive, executor)

    def diff_file(
        self, local_path: LocalPath, remote_file: FileEntry
    ) -> Optional[PathDifference]:
        """Compare a local path with a remote file by SHA-256."""
        return self._diff_file(Path(local_path), remote_file)

    def diff_directory(
        self,
        local_path: LocalPath,
        remote_directory: DirectoryEntry,
        recursive: bool = False,
    ) -> Optional[PathDifference]:
        """Compare a local path with a remote directory."""
        with self._executor() as executor:
            return self._diff_directory(
                Path(local_path), remote_directory, recursive, executor
            )

    def _executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(
            max_workers=max(1, self.max_workers), thread_name_prefix="pybunny-diff"
        )

    def _diff_path(
        self,
        local_path: Path,
        remote: Entry,
        recursive: bool,
        executor: ThreadPoolExecutor,
    ) -> Optional[PathDifference]:
        if isinstance(remote, FileEntry):
            return self._diff_file(local_path, remote)
        return self._diff_directory(local_path, remote, recursive, executor)

    def _diff_file(
        self, local_path: Path, remote_file: FileEntry
    ) -> Optional[PathDifference]:
        st = stat_local(local_path)
        if not stat.S_ISREG(st.st_mode):
            logger.debug(f"{local_path} is not a regular file")
            return Tree(
                Difference(DifferenceKind.TYPE, str(local_path), remote_file.path)
            )

        if compute_file_checksum(local_path) != remote_file.checksum:
            logger.debug(f"{local_path} differs from {remote_file.path}")
            return Tree(
                Difference(DifferenceKind.CONTENTS, str(local_path), remote_file.path)
            )

        logger.debug(f"{local_path} matches {remote_file.path}")
        return None

    def _diff_directory(
        self,
        local_path: Path,
        remote_directory: DirectoryEntry,
        recursive: bool,
        executor: ThreadPoolExecutor,
    ) -> Optional[PathDifference]:
        st = stat_local(local_path)
        if not stat.S_ISDIR(st.st_mode):
            logger.debug(f"{local_path} is not a directory")
            return Tree(
                Difference(DifferenceKind.TYPE, str(local_path), remote_directory.path)
            )

        remote_entries = {entry.name: entry for entry in remote_directory.list()}
        names = diff_names(list_local(local_path), remote_entries)
        logger.debug(
            f"{local_path}: {len(names.only_left)} only local, "
            f"{len(names.only_right)} only remote, {len(names.both)} in both"
        )

        children: list[PathDifference] = [
            Tree(
                Difference(DifferenceKind.ONLY_LOCAL, local_path=str(local_path / name))
            )
            for name in names.only_left
        ]
        children.extend(
            Tree(
                Difference(
                    DifferenceKind.ONLY_REMOTE,
                    remote_path=join_remote(remote_directory.path, name),
                )
            )
            for name in names.only_right
        )

        if recursive:
            # Results are collected by request index, never by completion order
            pending: list[Union[Future, Optional[PathDifference]]] = []
            for name in names.both:
                local_child = local_path / name
                remote_child = remote_entries[name]
                if isinstance(remote_child, FileEntry):
                    pending.append(
                        executor.submit(self._diff_file, local_child, remote_child)
                    )
                else:
                    pending.append(
                        self._diff_directory(
                            local_child, remote_child, True, executor
                        )
                    )

            for item in pending:
                result = item.result() if isinstance(item, Future) else item
                if result is not None:
                    children.append(result)

        if not children:
            return None

        return Tree(
            Difference(DifferenceKind.NONE, str(local_path), remote_directory.path),
            children,
        )
