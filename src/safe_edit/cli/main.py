"""CLI entry point for safe-edit."""
import argparse
from dotenv import load_dotenv
import json
import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from safe_edit.config import EditorSettings
from safe_edit.exceptions import BatchLoadError, SafeEditError
from safe_edit.models import BatchReport, EditBatch, HistoryQuery
from safe_edit.orchestrator.exceptions import OrchestratorError
from safe_edit.utils.report_renderer import (
    render_batch_report,
    render_entry,
    render_entry_list,
    render_restore_result,
    render_usage,
)

load_dotenv()

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_BATCH_REJECTED = 2
EXIT_APPLY_FAILED = 3
EXIT_UNEXPECTED = 5
EXIT_KEYBOARD_INTERRUPT = 130

# Prefixes written by the pipeline nodes in orchestrator/graph.py
ABORT_PREFIX = "ABORT:"
APPLY_ERROR_PREFIXES = ("apply_node error", "record_node error")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
STDIN_PATH = "-"


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="safe-edit",
        description="Transactional multi-file editing with history and undo",
    )
    parser.add_argument(
        "--history-dir",
        type=str,
        default=None,
        help="History directory (default: $SAFE_EDIT_HISTORY_DIR or ./.safe-edit-history)",
    )
    parser.add_argument(
        "--max-history",
        type=int,
        default=None,
        help="Maximum history entries kept (default: $SAFE_EDIT_MAX_HISTORY or 100)",
    )
    parser.add_argument(
        "--output-json", action="store_true", help="Output results as JSON"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser("apply", help="Apply a batch of edits")
    apply_parser.add_argument(
        "batch", type=str, help="Path to the batch JSON file ('-' for stdin)"
    )
    apply_parser.add_argument(
        "--dry-run", action="store_true", help="Preview changes without writing files"
    )
    apply_parser.add_argument(
        "--no-backups", action="store_true", help="Do not back up files before writing"
    )
    apply_parser.add_argument(
        "--no-conflict-check",
        action="store_true",
        help="Skip conflict detection before applying",
    )
    apply_parser.add_argument(
        "--context",
        type=int,
        default=None,
        help="Context lines shown around each change (0-10)",
    )
    apply_parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort the whole batch if any edit fails",
    )
    apply_parser.add_argument(
        "--expand-globs",
        action="store_true",
        help="Expand glob patterns in string edit targets",
    )

    history_parser = subparsers.add_parser("history", help="List or search history")
    history_parser.add_argument("--limit", type=int, default=None, help="Max entries shown")
    history_parser.add_argument("--tool", type=str, default=None, help="Exact tool name")
    history_parser.add_argument(
        "--operation", type=str, default=None, help="Substring of the operation label"
    )
    history_parser.add_argument(
        "--file", type=str, default=None, help="Substring of an affected file path"
    )
    history_parser.add_argument(
        "--after", type=str, default=None, help="Only entries at or after this ISO time"
    )
    history_parser.add_argument(
        "--before", type=str, default=None, help="Only entries at or before this ISO time"
    )
    history_parser.add_argument(
        "--report", action="store_true", help="Render a markdown summary report"
    )

    for name, help_text in (
        ("show", "Show one history entry"),
        ("restore", "Restore the files of a history entry"),
        ("delete", "Delete a history entry and its backups"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("entry_id", type=str, help="History entry id")

    subparsers.add_parser("clear", help="Delete all history entries")
    subparsers.add_parser("usage", help="Show history storage usage")

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _normalize_edit(raw):
    # Accept the nested form {"type": ..., "edit": {...}}
    if isinstance(raw, dict) and isinstance(raw.get("edit"), dict):
        return {"type": raw.get("type"), **raw["edit"]}
    return raw


def load_batch(path: str) -> EditBatch:
    """Load a batch from a JSON file.

    The document is either {"edits": [...], ...options} or a bare list of
    edits. Each edit is flat ({"type", "file", ...}) or nested
    ({"type", "edit": {...}}).

    Raises:
        BatchLoadError: If the file cannot be read or is not a valid batch.
    """
    try:
        if path == STDIN_PATH:
            text = sys.stdin.read()
        else:
            text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise BatchLoadError(f"Cannot read batch file {path}: {exc}") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise BatchLoadError(f"Batch file {path} is not valid JSON: {exc}") from exc

    if isinstance(data, list):
        data = {"edits": data}
    if not isinstance(data, dict):
        raise BatchLoadError(f"Batch file {path} must contain an object or a list")
    if isinstance(data.get("edits"), list):
        data = {**data, "edits": [_normalize_edit(edit) for edit in data["edits"]]}

    try:
        return EditBatch.model_validate(data)
    except ValidationError as exc:
        raise BatchLoadError(f"Invalid batch in {path}: {exc}") from exc


def apply_overrides(
    batch: EditBatch,
    args: argparse.Namespace,
    settings: EditorSettings,
) -> EditBatch:
    """Apply CLI flags on top of the options stored in the batch file."""
    updates: dict = {}
    if args.dry_run:
        updates["dry_run"] = True
    if args.no_backups:
        updates["create_backups"] = False
    if args.no_conflict_check:
        updates["validate_conflicts"] = False
    if args.strict:
        updates["strict"] = True

    if args.context is not None:
        updates["show_context"] = args.context
    elif "show_context" not in batch.model_fields_set:
        updates["show_context"] = settings.context_lines

    # Re-validate so --context is range-checked like the file option
    return EditBatch.model_validate({**batch.model_dump(), **updates})


def _parse_timestamp(value: str | None, flag: str) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"{flag} must be an ISO 8601 timestamp, got {value!r}") from exc


def format_result_json(result: dict) -> str:
    """Serialize result dict to JSON string.

    Calls .model_dump() on Pydantic model values, including models inside
    lists. Falls back to str() for non-serializable types via default=str.
    """

    def _serialize(obj):
        if obj is None:
            return None
        if hasattr(obj, "model_dump"):
            return obj.model_dump()
        if isinstance(obj, list):
            return [_serialize(item) for item in obj]
        return obj

    prepared = {k: _serialize(v) for k, v in result.items()}
    return json.dumps(prepared, indent=2, default=str)


def determine_exit_code(report: BatchReport) -> int:
    """Determine the exit code from a batch report."""
    for err in report.errors:
        if str(err).startswith(APPLY_ERROR_PREFIXES):
            return EXIT_APPLY_FAILED
    if report.aborted or any(str(err).startswith(ABORT_PREFIX) for err in report.errors):
        return EXIT_BATCH_REJECTED
    if report.conflicts or report.failed_results or report.errors:
        return EXIT_BATCH_REJECTED
    return EXIT_SUCCESS


def _emit(args: argparse.Namespace, payload: dict, human: str) -> None:
    if args.output_json:
        print(format_result_json(payload))
    else:
        print(human)


def run_apply(args: argparse.Namespace, settings: EditorSettings) -> int:
    # Deferred so --help does not build the pipeline graph
    from safe_edit.editing.batch_editor import BatchEditor

    batch = apply_overrides(load_batch(args.batch), args, settings)
    editor = BatchEditor(settings)
    report = editor.run(batch, expand_globs=args.expand_globs)

    _emit(args, {"report": report}, render_batch_report(report))
    return determine_exit_code(report)


def run_history(args: argparse.Namespace, history) -> int:
    try:
        after = _parse_timestamp(args.after, "--after")
        before = _parse_timestamp(args.before, "--before")
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    query = HistoryQuery(
        tool=args.tool,
        operation=args.operation,
        file_path=args.file,
        after=after,
        before=before,
    )
    entries = history.search(query)
    if args.limit is not None:
        entries = entries[:args.limit]

    if args.report:
        human = history.generate_report(entries)
    else:
        human = render_entry_list(entries)
    _emit(args, {"entries": entries}, human)
    return EXIT_SUCCESS


def run_show(args: argparse.Namespace, history) -> int:
    entry = history.get_entry(args.entry_id)
    if entry is None:
        print(f"Error: history entry {args.entry_id} not found.", file=sys.stderr)
        return EXIT_INVALID_INPUT
    _emit(args, {"entry": entry}, render_entry(entry))
    return EXIT_SUCCESS


def run_restore(args: argparse.Namespace, history) -> int:
    if history.get_entry(args.entry_id) is None:
        print(f"Error: history entry {args.entry_id} not found.", file=sys.stderr)
        return EXIT_INVALID_INPUT
    result = history.restore(args.entry_id)
    _emit(args, {"restore": result}, render_restore_result(result))
    return EXIT_SUCCESS if result.success else EXIT_APPLY_FAILED


def run_delete(args: argparse.Namespace, history) -> int:
    if not history.delete_entry(args.entry_id):
        print(f"Error: history entry {args.entry_id} not found.", file=sys.stderr)
        return EXIT_INVALID_INPUT
    _emit(args, {"deleted": args.entry_id}, f"Deleted history entry {args.entry_id}")
    return EXIT_SUCCESS


def run_clear(args: argparse.Namespace, history) -> int:
    deleted = history.clear()
    _emit(args, {"deleted": deleted}, f"Cleared {deleted} history entries")
    return EXIT_SUCCESS


def run_usage(args: argparse.Namespace, history) -> int:
    usage = history.storage_usage()
    _emit(args, {"usage": usage}, render_usage(usage))
    return EXIT_SUCCESS


_HISTORY_COMMANDS = {
    "history": run_history,
    "show": run_show,
    "restore": run_restore,
    "delete": run_delete,
    "clear": run_clear,
    "usage": run_usage,
}


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = EditorSettings.from_env(
            history_dir=args.history_dir,
            max_history_entries=args.max_history,
        )
    except ValidationError as exc:
        return _handle_error("Invalid configuration", exc, args.verbose, EXIT_INVALID_INPUT)

    configure_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        if args.command == "apply":
            return run_apply(args, settings)

        from safe_edit.editing.history_store import HistoryStore

        history = HistoryStore(
            settings.history_dir,
            max_entries=settings.max_history_entries,
        )
        return _HISTORY_COMMANDS[args.command](args, history)

    except BatchLoadError as exc:
        return _handle_error("Invalid input", exc, args.verbose, EXIT_INVALID_INPUT)

    except ValidationError as exc:
        return _handle_error("Invalid input", exc, args.verbose, EXIT_INVALID_INPUT)

    except SafeEditError as exc:
        return _handle_error("Edit error", exc, args.verbose, EXIT_APPLY_FAILED)

    except OrchestratorError as exc:
        return _handle_error("Orchestrator error", exc, args.verbose, EXIT_UNEXPECTED)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)
