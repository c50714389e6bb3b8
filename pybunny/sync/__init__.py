"""Diff and upload engines for pybunny."""

from .diff import DiffEngine, Difference, DifferenceKind, PathDifference, load_path
from .progress import UploadProgressEvent, UploadProgressInfo, UploadProgressTracker
from .upload import UploadEngine, upload_path

__all__ = [
    "DiffEngine",
    "Difference",
    "DifferenceKind",
    "PathDifference",
    "load_path",
    "UploadEngine",
    "upload_path",
    "UploadProgressEvent",
    "UploadProgressInfo",
    "UploadProgressTracker",
]
