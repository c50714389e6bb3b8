"""Upload of local files and directory trees to Bunny storage.

Files whose remote checksum already matches are skipped, so re-running an
upload of an unchanged tree transfers nothing.
"""

import logging
import stat
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from ..exceptions import (
    BunnyInvalidArgumentError,
    BunnyOverwriteRequiredError,
    BunnyTypeMismatchError,
    BunnyUnsupportedPathError,
)
from ..models import FileEntry, join_remote
from ..utils import compute_checksum, list_local, read_local, stat_local
from .diff import LocalPath
from .progress import ProgressCallback, UploadProgressEvent, UploadProgressTracker

if TYPE_CHECKING:
    from ..api import BunnyStorage

logger = logging.getLogger(__name__)


class UploadEngine:
    """Makes a remote path match a local file or directory tree.

    With ``max_workers=1`` every file is handled in order, one at a time.
    With more workers the files of one directory are uploaded in parallel;
    names within a directory are unique, so no destination path is ever
    written twice at the same time. A directory's files must all succeed
    before the walk descends into a sibling sub-directory, and the first
    failure cancels the uploads not yet started.
    """

    def __init__(
        self,
        storage: "BunnyStorage",
        tracker: Optional[UploadProgressTracker] = None,
        max_workers: int = 1,
    ):
        """Initialize upload engine.

        Args:
            storage: Storage client
            tracker: Progress sink (a silent one is created if not given)
            max_workers: Number of parallel uploads per directory (default: 1)
        """
        self.storage = storage
        self.tracker = tracker or UploadProgressTracker()
        self.max_workers = max_workers

    def upload_path(
        self,
        local_path: LocalPath,
        remote_path: str,
        recursive: bool = False,
        overwrite: bool = False,
    ) -> list[FileEntry]:
        """Upload a local file or directory.

        A file uploaded to a remote path ending in '/' keeps its name inside
        that directory. A directory's children are uploaded into
        ``remote_path``.

        Args:
            local_path: Local file or directory
            remote_path: Destination path
            recursive: Required for directories
            overwrite: Replace remote files whose content differs

        Returns:
            Resulting entries for every visited file, unchanged ones included

        Raises:
            BunnyInvalidArgumentError: If a directory is given without recursive
            BunnyUnsupportedPathError: If the local path is neither file nor
                directory
            BunnyOverwriteRequiredError: If a remote file differs and overwrite
                is not set
        """
        local = Path(local_path)
        st = stat_local(local)

        if stat.S_ISREG(st.st_mode):
            if remote_path.endswith("/"):
                remote_path = join_remote(remote_path, local.name)
            return [self.upload_file(local, remote_path, overwrite)]

        if stat.S_ISDIR(st.st_mode):
            if not recursive:
                raise BunnyInvalidArgumentError(
                    f"'{local}' is a directory; recursive upload required"
                )
            return self.upload_directory(local, remote_path, overwrite)

        raise BunnyUnsupportedPathError(
            f"'{local}' is neither a regular file nor a directory"
        )

    def upload_file(
        self, local_path: LocalPath, remote_path: str, overwrite: bool = False
    ) -> FileEntry:
        """Upload one file unless the remote copy is already identical.

        Returns:
            The uploaded entry, or the existing remote entry if unchanged
        """
        local = Path(local_path)
        if not stat.S_ISREG(stat_local(local).st_mode):
            raise BunnyTypeMismatchError(f"'{local}' is not a regular file")

        existing = self.storage.maybe_describe(remote_path)
        if existing is not None and not isinstance(existing, FileEntry):
            raise BunnyTypeMismatchError(
                f"Remote path '{remote_path}' is a directory; file expected"
            )

        body = read_local(local)
        checksum = compute_checksum(body)

        if existing is not None:
            if existing.checksum == checksum:
                logger.debug(f"Skipping {local}: identical to {remote_path}")
                self.tracker.report(UploadProgressEvent.UNCHANGED, str(local), existing)
                return existing
            if not overwrite:
                raise BunnyOverwriteRequiredError(remote_path)
            logger.debug(f"Replacing {remote_path} with {local}")

        entry = self.storage.upload(remote_path, body, checksum)
        self.tracker.report(UploadProgressEvent.CHANGED, str(local), entry)
        return entry

    def upload_directory(
        self, local_path: LocalPath, remote_path: str, overwrite: bool = False
    ) -> list[FileEntry]:
        """Upload every file below a local directory into ``remote_path``."""
        local = Path(local_path)
        if self.max_workers <= 1:
            return self._upload_directory(local, remote_path, overwrite, None)

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="pybunny-upload"
        ) as executor:
            return self._upload_directory(local, remote_path, overwrite, executor)

    def _upload_directory(
        self,
        local: Path,
        remote_path: str,
        overwrite: bool,
        executor: Optional[ThreadPoolExecutor],
    ) -> list[FileEntry]:
        if not stat.S_ISDIR(stat_local(local).st_mode):
            raise BunnyTypeMismatchError(f"'{local}' is not a directory")

        names = list_local(local)
        logger.debug(f"Uploading {len(names)} entries from {local} to {remote_path}")

        pending: list[Union[Future, FileEntry, list[FileEntry]]] = []
        futures: list[Future] = []
        try:
            for name in names:
                child = local / name
                child_remote = join_remote(remote_path, name)
                mode = stat_local(child).st_mode

                if stat.S_ISREG(mode):
                    if executor is None:
                        pending.append(self.upload_file(child, child_remote, overwrite))
                        continue
                    _raise_first_failure(futures, block=False)
                    future = executor.submit(
                        self.upload_file, child, child_remote, overwrite
                    )
                    futures.append(future)
                    pending.append(future)
                elif stat.S_ISDIR(mode):
                    # Files already submitted must succeed before descending
                    _raise_first_failure(futures, block=True)
                    pending.append(
                        self._upload_directory(child, child_remote, overwrite, executor)
                    )
                else:
                    raise BunnyUnsupportedPathError(
                        f"'{child}' is neither a regular file nor a directory"
                    )
            _raise_first_failure(futures, block=True)
        except BaseException:
            cancelled = sum(future.cancel() for future in futures)
            if cancelled:
                logger.debug(f"Cancelled {cancelled} pending uploads from {local}")
            raise

        results: list[FileEntry] = []
        for item in pending:
            if isinstance(item, Future):
                item = item.result()
            if isinstance(item, list):
                results.extend(item)
            else:
                results.append(item)
        return results


def _raise_first_failure(futures: list[Future], block: bool) -> None:
    """Re-raise the error of the earliest submitted upload that failed.

    Args:
        futures: Uploads in submission order
        block: Wait until every upload has finished or one has failed
    """
    if block and futures:
        wait(futures, return_when=FIRST_EXCEPTION)
    for future in futures:
        if future.done() and not future.cancelled():
            error = future.exception()
            if error is not None:
                raise error


def upload_path(
    storage: "BunnyStorage",
    local_path: LocalPath,
    remote_path: str,
    recursive: bool = False,
    overwrite: bool = False,
    progress: Optional[ProgressCallback] = None,
    max_workers: int = 1,
) -> list[FileEntry]:
    """Upload a local file or directory; see :meth:`UploadEngine.upload_path`."""
    engine = UploadEngine(
        storage, UploadProgressTracker(progress), max_workers=max_workers
    )
    return engine.upload_path(local_path, remote_path, recursive, overwrite)
