"""Data models for safe-edit."""

from safe_edit.models.conflict_models import Conflict, ConflictKind, ConflictReport
from safe_edit.models.edit_models import (
    EditBatch,
    EditDescriptor,
    LineRangeEdit,
    SubstringEdit,
)
from safe_edit.models.history_models import (
    Backup,
    FileSnapshot,
    HistoryEntry,
    HistoryQuery,
    RestoreResult,
    StorageUsage,
)
from safe_edit.models.result_models import (
    BatchReport,
    EditContext,
    EditFailure,
    EditResult,
    ErrorDetails,
    ErrorType,
    FileStats,
    ResolvedEdit,
    Severity,
)

__all__ = [
    "Backup",
    "BatchReport",
    "Conflict",
    "ConflictKind",
    "ConflictReport",
    "EditBatch",
    "EditContext",
    "EditDescriptor",
    "EditFailure",
    "EditResult",
    "ErrorDetails",
    "ErrorType",
    "FileSnapshot",
    "FileStats",
    "HistoryEntry",
    "HistoryQuery",
    "LineRangeEdit",
    "ResolvedEdit",
    "RestoreResult",
    "Severity",
    "StorageUsage",
    "SubstringEdit",
]
