"""Filesystem access used by the editing core."""

import logging
from datetime import datetime
from pathlib import Path

from safe_edit.exceptions import (
    AccessDeniedError,
    FileOperationError,
    SourceNotFoundError,
)
from safe_edit.models.result_models import FileStats

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_DIRS = (
    "node_modules",
    "dist",
    "build",
    ".git",
    "__pycache__",
    ".venv",
)

ENCODING = "utf-8"


def target_key(path: str) -> str:
    """Absolute, symlink-free form of a path, used to tell whether two paths name one file."""
    return str(Path(path).resolve())


class FileOperations:
    """Reads, writes and enumerates files.

    Content is read and written as UTF-8 text without newline translation,
    so a file written back is byte-identical to what was read.
    """

    def __init__(self, exclude_dirs: list[str] | None = None) -> None:
        self.exclude_dirs = list(exclude_dirs) if exclude_dirs is not None else list(
            DEFAULT_EXCLUDE_DIRS
        )

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def read(self, path: str) -> str:
        """Read a file as text.

        Raises:
            SourceNotFoundError: If the file does not exist.
            AccessDeniedError: If the file cannot be opened for reading.
            FileOperationError: For any other OS-level failure.
        """
        try:
            with open(path, encoding=ENCODING, newline="") as handle:
                content = handle.read()
        except FileNotFoundError as e:
            raise SourceNotFoundError(f"File not found: {path}") from e
        except PermissionError as e:
            raise AccessDeniedError(f"Permission denied reading {path}") from e
        except IsADirectoryError as e:
            raise FileOperationError(f"Path is a directory: {path}") from e
        except OSError as e:
            raise FileOperationError(f"Failed to read file {path}: {e}") from e

        logger.debug("Read file %s (%d chars)", path, len(content))
        return content

    def write(self, path: str, content: str) -> None:
        """Write text to a file, creating parent directories as needed.

        Raises:
            AccessDeniedError: If the file or its directory is not writable.
            FileOperationError: For any other OS-level failure.
        """
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding=ENCODING, newline="") as handle:
                handle.write(content)
        except PermissionError as e:
            raise AccessDeniedError(f"Permission denied writing {path}") from e
        except OSError as e:
            raise FileOperationError(f"Failed to write file {path}: {e}") from e

        logger.debug("Wrote file %s (%d chars)", path, len(content))

    def find(self, pattern: str, cwd: str | None = None) -> list[str]:
        """Return sorted absolute paths of files matching a glob pattern.

        Paths inside excluded directories (dependency, build and
        version-control folders) are skipped.
        """
        root = Path(cwd or ".").resolve()
        pattern_path = Path(pattern)
        if pattern_path.is_absolute():
            root = Path(pattern_path.anchor)
            pattern = str(pattern_path.relative_to(root))

        try:
            matches = []
            for path in root.glob(pattern):
                # Match on path components, not substrings
                if any(part in self.exclude_dirs for part in path.relative_to(root).parts):
                    continue
                if path.is_file():
                    matches.append(str(path.resolve()))
        except (OSError, ValueError) as e:
            raise FileOperationError(
                f"Failed to find files with pattern {pattern}: {e}"
            ) from e

        logger.debug("Found %d files matching pattern %s", len(matches), pattern)
        return sorted(matches)

    def stats(self, path: str) -> FileStats:
        try:
            stat = Path(path).stat()
        except FileNotFoundError as e:
            raise SourceNotFoundError(f"File not found: {path}") from e
        except OSError as e:
            raise FileOperationError(f"Failed to get stats for {path}: {e}") from e

        content = self.read(path)
        return FileStats(
            path=path,
            lines=len(content.split("\n")),
            size=stat.st_size,
            modified=datetime.fromtimestamp(stat.st_mtime),
        )
