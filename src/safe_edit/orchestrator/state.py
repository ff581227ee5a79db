"""State definition for the LangGraph edit pipeline."""

import operator
from typing import Annotated, TypedDict

from safe_edit.models import (
    Backup,
    ConflictReport,
    EditBatch,
    EditDescriptor,
    EditResult,
    ResolvedEdit,
)


class EditState(TypedDict):
    """State for the batch edit pipeline.

    Fields with Annotated[list, operator.add] reducers accumulate across nodes.
    All other fields use default overwrite semantics.
    """

    # Input
    edits: list[EditDescriptor]
    dry_run: bool
    create_backups: bool
    validate_conflicts: bool
    context_lines: int
    strict: bool

    # Detection
    conflicts: list[ConflictReport]

    # Resolution
    results: list[EditResult]
    resolved: list[ResolvedEdit]

    # Application
    backups: list[Backup]
    applied: bool
    aborted: bool
    history_id: str | None

    # Error accumulation
    errors: Annotated[list[str], operator.add]


def make_initial_state(batch: EditBatch) -> EditState:
    """Create the initial state for one batch run.

    Args:
        batch: The validated batch request.

    Returns:
        EditState dict with all fields initialised to defaults.
    """
    return {
        "edits": list(batch.edits),
        "dry_run": batch.dry_run,
        "create_backups": batch.create_backups,
        "validate_conflicts": batch.validate_conflicts,
        "context_lines": batch.show_context,
        "strict": batch.strict,
        "conflicts": [],
        "results": [],
        "resolved": [],
        "backups": [],
        "applied": False,
        "aborted": False,
        "history_id": None,
        "errors": [],
    }
