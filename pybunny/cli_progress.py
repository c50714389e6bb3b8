"""CLI progress display for upload operations.

This module provides a Rich-based progress display driven by the
UploadProgressTracker used by the upload engine.
"""

from typing import Optional

from rich.progress import (
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .sync.progress import (
    UploadProgressEvent,
    UploadProgressInfo,
    UploadProgressTracker,
)
from .utils import format_size


class UploadProgressDisplay:
    """Rich-based progress display for uploads.

    Shows the file currently being visited together with the number of
    uploaded and skipped files and the bytes transferred so far.
    """

    def __init__(self, transient: bool = True) -> None:
        self._transient = transient
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def create_tracker(self) -> UploadProgressTracker:
        """Create an UploadProgressTracker that updates this display."""
        return UploadProgressTracker(callback=self._handle_event)

    @staticmethod
    def _format_counts(info: UploadProgressInfo) -> str:
        return (
            f"{info.files_changed} uploaded, {info.files_unchanged} unchanged, "
            f"{format_size(info.bytes_uploaded)}"
        )

    def _handle_event(self, info: UploadProgressInfo) -> None:
        if self._progress is None or self._task is None:
            return

        verb = "Uploaded" if info.event == UploadProgressEvent.CHANGED else "Skipped"
        self._progress.update(
            self._task,
            description=f"{verb}: {info.remote_path}",
            counts=self._format_counts(info),
        )
        if info.event == UploadProgressEvent.CHANGED:
            self._progress.console.print(f"[green]↑[/green] {info.remote_path}")

    def __enter__(self) -> "UploadProgressDisplay":
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            TextColumn("[cyan]{task.fields[counts]}"),
            TimeElapsedColumn(),
            transient=self._transient,
            refresh_per_second=4,
        )
        self._progress.__enter__()
        self._task = self._progress.add_task(
            "Preparing upload...",
            total=None,
            counts="0 uploaded, 0 unchanged, 0 B",
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._progress is not None:
            if self._task is not None:
                self._progress.update(self._task, description="Upload complete")
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None
