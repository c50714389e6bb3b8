"""Progress reporting for upload operations.

The tracker is the single sink every upload branch reports to. It keeps
running totals and forwards each event to an optional callback; calls are
serialized with a lock so callbacks never run concurrently.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..models import FileEntry

logger = logging.getLogger(__name__)


class UploadProgressEvent(str, Enum):
    """Outcome of visiting one local file."""

    CHANGED = "changed"
    """Content was transferred"""

    UNCHANGED = "unchanged"
    """Remote content already matched; nothing was transferred"""


@dataclass(frozen=True)
class UploadProgressInfo:
    """Snapshot passed to progress callbacks."""

    event: UploadProgressEvent
    local_path: str
    entry: FileEntry
    """Remote entry after the visit (existing entry when unchanged)"""

    files_changed: int
    files_unchanged: int
    bytes_uploaded: int

    @property
    def remote_path(self) -> str:
        return self.entry.path

    @property
    def files_total(self) -> int:
        return self.files_changed + self.files_unchanged


ProgressCallback = Callable[[UploadProgressInfo], None]


class UploadProgressTracker:
    """Thread-safe counter and dispatcher for upload progress events."""

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self.files_changed = 0
        self.files_unchanged = 0
        self.bytes_uploaded = 0
        self._lock = threading.Lock()

    def report(
        self, event: UploadProgressEvent, local_path: str, entry: FileEntry
    ) -> UploadProgressInfo:
        """Record one visited file and notify the callback."""
        with self._lock:
            if event == UploadProgressEvent.CHANGED:
                self.files_changed += 1
                self.bytes_uploaded += entry.length
            else:
                self.files_unchanged += 1

            info = UploadProgressInfo(
                event=event,
                local_path=local_path,
                entry=entry,
                files_changed=self.files_changed,
                files_unchanged=self.files_unchanged,
                bytes_uploaded=self.bytes_uploaded,
            )
            logger.debug(f"{event.value}: {local_path} -> {entry.path}")
            if self.callback is not None:
                self.callback(info)
            return info

    def stats(self) -> dict:
        """Return the running totals as a dictionary."""
        with self._lock:
            return {
                "changed": self.files_changed,
                "unchanged": self.files_unchanged,
                "bytes_uploaded": self.bytes_uploaded,
            }
