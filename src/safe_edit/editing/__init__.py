"""Editing core: conflict detection, resolution, application and history.

BatchEditor lives in safe_edit.editing.batch_editor and is imported from
there; it depends on safe_edit.config, which depends on this package.
"""

from safe_edit.editing.applier import TransactionalApplier
from safe_edit.editing.conflict_detector import ConflictDetector
from safe_edit.editing.error_analysis import classify_error
from safe_edit.editing.history_store import HistoryStore
from safe_edit.editing.projection import resolve_batch
from safe_edit.editing.resolver import EditResolver

__all__ = [
    "ConflictDetector",
    "EditResolver",
    "HistoryStore",
    "TransactionalApplier",
    "classify_error",
    "resolve_batch",
]
