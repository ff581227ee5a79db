"""LangGraph orchestrator graph for the batch edit pipeline.

Wires ConflictDetector, EditResolver, TransactionalApplier and HistoryStore
into a StateGraph that aborts on conflicts, strict failures or write errors.
"""

from typing import Callable

from langgraph.graph import END, START, StateGraph

from safe_edit.editing.applier import TransactionalApplier
from safe_edit.editing.conflict_detector import ConflictDetector
from safe_edit.editing.history_store import HistoryStore
from safe_edit.editing.projection import resolve_batch
from safe_edit.editing.resolver import EditResolver
from safe_edit.exceptions import ApplyError, HistoryError
from safe_edit.io.file_ops import FileOperations
from safe_edit.models import FileSnapshot
from safe_edit.orchestrator.exceptions import GraphBuildError
from safe_edit.orchestrator.routing import (
    count_conflicts,
    count_failed,
    route_after_apply,
    route_after_detect,
    route_after_resolve,
)
from safe_edit.orchestrator.state import EditState

# Constants
HISTORY_TOOL_NAME = "safe_edit"
HISTORY_OPERATION = "Multi-File Edit"
ABORT_PREFIX = "ABORT:"
ROLLBACK_ERROR_PREFIX = "apply_node rollback error"


def make_detect_node(detector: ConflictDetector) -> Callable[[EditState], dict]:
    """Factory: returns a node closure that checks the batch for conflicts.

    On error: returns {"errors": [str], "conflicts": []} so resolution can
    report the underlying file problem per descriptor.
    """

    def detect_node(state: EditState) -> dict:
        if not state["validate_conflicts"]:
            return {"conflicts": []}
        try:
            return {"conflicts": detector.detect(state["edits"])}
        except Exception as exc:
            return {
                "errors": [f"detect_node error: {exc}"],
                "conflicts": [],
            }

    return detect_node


def make_resolve_node(
    resolver: EditResolver,
    file_ops: FileOperations,
) -> Callable[[EditState], dict]:
    """Factory: returns a node closure that resolves every descriptor.

    The closure returns {"results": [...], "resolved": [...]}: one result per
    descriptor and one merged edit per file that changes.

    On error: returns {"errors": [str], "results": [], "resolved": []}
    """

    def resolve_node(state: EditState) -> dict:
        try:
            results, resolved = resolve_batch(
                state["edits"],
                resolver,
                file_ops,
                state["context_lines"],
            )
            return {"results": results, "resolved": resolved}
        except Exception as exc:
            return {
                "errors": [f"resolve_node error: {exc}"],
                "results": [],
                "resolved": [],
            }

    return resolve_node


def make_apply_node(applier: TransactionalApplier) -> Callable[[EditState], dict]:
    """Factory: returns a node closure that writes all resolved edits.

    The closure marks successful results as applied and stores the backups.

    On ApplyError: returns {"errors": [...], "applied": False}. The applier
    has already rolled every touched file back.
    """

    def apply_node(state: EditState) -> dict:
        try:
            backups = applier.apply_all(
                state["resolved"],
                make_backups=state["create_backups"],
            )
        except ApplyError as exc:
            errors = [f"apply_node error: {exc}"]
            errors.extend(f"{ROLLBACK_ERROR_PREFIX}: {msg}" for msg in exc.rollback_errors)
            return {"errors": errors, "applied": False}

        results = [
            result.model_copy(update={"applied": True}) if result.success else result
            for result in state["results"]
        ]
        return {"backups": backups, "applied": True, "results": results}

    return apply_node


def make_record_node(history: HistoryStore) -> Callable[[EditState], dict]:
    """Factory: returns a node closure that records the applied batch.

    Applier backups are handed to the store, which moves them under the new
    history entry; the returned backups point at their new location.

    On HistoryError: returns {"errors": [str]}. The edits stay applied.
    """

    def record_node(state: EditState) -> dict:
        backup_paths = {backup.original_path: backup.backup_path for backup in state["backups"]}
        snapshots = [
            FileSnapshot(
                file_path=edit.file,
                content_before=edit.content_before,
                content_after=edit.content_after,
                backup_path=backup_paths.get(edit.file),
            )
            for edit in state["resolved"]
        ]
        applied_count = sum(1 for result in state["results"] if result.applied)

        try:
            history_id = history.record(
                tool=HISTORY_TOOL_NAME,
                operation=HISTORY_OPERATION,
                description=(
                    f"Applied {applied_count} edits across {len(snapshots)} files"
                ),
                snapshots=snapshots,
                metadata={
                    "edits_applied": applied_count,
                    "edit_types": [edit.type for edit in state["edits"]],
                    "backups_created": len(state["backups"]),
                },
            )
        except HistoryError as exc:
            return {"errors": [f"record_node error: {exc}"]}

        entry = history.get_entry(history_id)
        if entry is None or not state["backups"]:
            return {"history_id": history_id}

        # Backups now live under the history entry
        moved = {snapshot.file_path: snapshot.backup_path for snapshot in entry.files}
        backups = [
            backup.model_copy(
                update={"backup_path": moved.get(backup.original_path) or backup.backup_path}
            )
            for backup in state["backups"]
        ]
        return {"history_id": history_id, "backups": backups}

    return record_node


def abort_node(state: EditState) -> dict:
    """Write a diagnostic abort summary to the errors list.

    Returns:
        {"aborted": True, "errors": [summary]} describing the abort reason and
        whether files may have been left modified.
    """
    outcome = "No files were modified."
    if state["conflicts"] and not state["dry_run"]:
        reason = (
            f"{count_conflicts(state)} conflict(s) detected in "
            f"{len(state['conflicts'])} file(s)"
        )
    elif state["strict"] and count_failed(state) > 0:
        reason = f"{count_failed(state)} edit(s) failed in strict mode"
    else:
        unrestored = sum(
            1 for error in state["errors"] if error.startswith(ROLLBACK_ERROR_PREFIX)
        )
        if unrestored:
            reason = f"applying edits failed and {unrestored} file(s) could not be rolled back"
            outcome = "Files named in the rollback errors may be left modified."
        else:
            reason = "applying edits failed and all changes were rolled back"

    return {
        "aborted": True,
        "errors": [f"{ABORT_PREFIX} batch aborted: {reason}. {outcome}"],
    }


def build_graph(
    detector: ConflictDetector,
    resolver: EditResolver,
    applier: TransactionalApplier,
    history: HistoryStore,
    file_ops: FileOperations,
):
    """Build and compile the edit pipeline StateGraph.

    Edge topology:
      START -> detect_node
      detect_node -> conditional(route_after_detect) -> {resolve_node, abort_node}
      resolve_node -> conditional(route_after_resolve) -> {apply_node, abort_node, END}
      apply_node -> conditional(route_after_apply) -> {record_node, abort_node}
      record_node -> END
      abort_node -> END

    Args:
        detector: ConflictDetector instance.
        resolver: EditResolver instance.
        applier: TransactionalApplier instance.
        history: HistoryStore instance.
        file_ops: FileOperations used to read targets during resolution.

    Returns:
        CompiledStateGraph ready to invoke.

    Raises:
        GraphBuildError: If graph construction fails.
    """
    try:
        graph = StateGraph(EditState)

        graph.add_node("detect_node", make_detect_node(detector))
        graph.add_node("resolve_node", make_resolve_node(resolver, file_ops))
        graph.add_node("apply_node", make_apply_node(applier))
        graph.add_node("record_node", make_record_node(history))
        graph.add_node("abort_node", abort_node)

        graph.add_edge(START, "detect_node")

        graph.add_conditional_edges(
            "detect_node",
            route_after_detect,
            {
                "resolve": "resolve_node",
                "abort": "abort_node",
            },
        )
        graph.add_conditional_edges(
            "resolve_node",
            route_after_resolve,
            {
                "apply": "apply_node",
                "abort": "abort_node",
                "done": END,
            },
        )
        graph.add_conditional_edges(
            "apply_node",
            route_after_apply,
            {
                "record": "record_node",
                "abort": "abort_node",
            },
        )

        graph.add_edge("record_node", END)
        graph.add_edge("abort_node", END)

        return graph.compile()

    except Exception as exc:
        raise GraphBuildError(f"Failed to build edit pipeline graph: {exc}") from exc
