"""Filesystem collaborators."""

from safe_edit.io.file_ops import DEFAULT_EXCLUDE_DIRS, FileOperations, target_key

__all__ = [
    "DEFAULT_EXCLUDE_DIRS",
    "FileOperations",
    "target_key",
]
