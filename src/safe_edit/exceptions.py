"""Exceptions for safe-edit operations."""


class SafeEditError(Exception):
    """Base exception for all safe-edit operations."""


class FileOperationError(SafeEditError):
    """Raised when a file cannot be read, written or enumerated."""


class SourceNotFoundError(FileOperationError):
    """Raised when a target file does not exist."""


class AccessDeniedError(FileOperationError):
    """Raised when the filesystem refuses access to a target file."""


class BatchLoadError(SafeEditError):
    """Raised when a batch document cannot be parsed into descriptors."""


class ApplyError(SafeEditError):
    """Raised when a batch could not be applied. Nothing is left half-written.

    Attributes:
        rollback_errors: Messages for files that could not be restored.
    """

    def __init__(self, message: str, rollback_errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.rollback_errors: list[str] = list(rollback_errors or [])


class StaleContentError(ApplyError):
    """Raised when a target changed on disk after its edit was resolved."""


class HistoryError(SafeEditError):
    """Raised when the history store cannot persist or read an entry."""
