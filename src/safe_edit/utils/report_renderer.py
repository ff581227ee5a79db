"""Markdown rendering of batch reports and history for human review."""

from safe_edit.models import (
    BatchReport,
    HistoryEntry,
    RestoreResult,
    StorageUsage,
)
from safe_edit.utils.diff_generator import render_context

# Written by the apply node in orchestrator/graph.py
ROLLBACK_ERROR_PREFIX = "apply_node rollback error"

TROUBLESHOOTING_STEPS = (
    "Verify all file paths are correct and files exist",
    "Check file permissions and ensure files are not locked",
    "Refresh file contents if they may have been modified",
    "Consider using smaller, incremental edits",
    "Test edits in dry-run mode first",
)


def _render_conflicts(report: BatchReport) -> str:
    text = "## Conflicts Detected\n\n"
    for conflict_report in report.conflicts:
        text += f"### {conflict_report.file}\n"
        for conflict in conflict_report.conflicts:
            indices = f"edit {conflict.descriptor_index + 1}"
            if conflict.descriptor_index2 is not None:
                indices += f" and edit {conflict.descriptor_index2 + 1}"
            text += f"- **{conflict.kind.value}** ({indices}): {conflict.description}\n"
        text += "\n"
    return text


def _render_preview(report: BatchReport) -> str:
    text = "## Preview of Changes\n\n"
    for result in report.results:
        text += f"### {result.index + 1}. {result.file}\n"
        if not result.success:
            text += "**Status:** Failed\n"
            text += f"**Error:** {result.error}\n\n"
            continue

        text += "**Status:** Ready to apply\n"
        if result.context is not None:
            start, end = result.context.line_range
            text += f"**Range:** Lines {start}-{end}\n"
            text += "**Context:**\n```diff\n"
            text += render_context(result.context)
            text += "\n```\n"

        for warning in result.warnings:
            text += f"- Warning: {warning}\n"
        text += "\n"
    return text


def _render_failures(report: BatchReport) -> str:
    text = "## Failed Edits\n\n"
    for result in report.failed_results:
        text += f"### {result.file}\n"
        text += f"**Error:** {result.error}\n\n"

        details = result.error_details
        if details is None:
            continue
        text += f"**Root Cause:** {details.root_cause}\n\n"
        text += f"**Severity:** {details.severity.value.upper()}\n\n"
        if details.affected_lines is not None:
            start, end = details.affected_lines
            text += f"**Affected Lines:** {start}-{end}\n\n"
        if details.expected_content:
            text += f"**Expected Content:**\n```\n{details.expected_content}\n```\n\n"
        if details.actual_content:
            text += f"**Actual Content:**\n```\n{details.actual_content}\n```\n\n"
        text += "**Suggested Solutions:**\n"
        for number, suggestion in enumerate(details.suggestions, start=1):
            text += f"{number}. {suggestion}\n"
        text += "\n"

    text += "### Error Summary\n"
    for error_type, count in report.error_summary().items():
        text += f"- **{error_type}**: {count} error(s)\n"

    text += "\n**General Troubleshooting Steps:**\n"
    for number, step in enumerate(TROUBLESHOOTING_STEPS, start=1):
        text += f"{number}. {step}\n"
    return text


def render_batch_report(report: BatchReport) -> str:
    """Render a BatchReport as markdown: preview, outcome, failures and errors."""
    text = "# Multi-File Edit Operation\n\n"
    text += f"**Mode:** {'DRY RUN (Preview)' if report.dry_run else 'LIVE EDIT'}\n"
    text += f"**Total edits:** {len(report.results)}\n\n"

    text += "**Edit Validation Results:**\n"
    text += f"- Successful edits: {len(report.successful_results)}\n"
    text += f"- Failed edits: {len(report.failed_results)}\n"
    text += f"- Conflicts detected: {sum(len(c.conflicts) for c in report.conflicts)}\n\n"

    if report.conflicts:
        text += _render_conflicts(report)

    if report.dry_run:
        text += _render_preview(report)
        text += "## Summary\n"
        if report.conflicts:
            text += "Conflicts detected. Resolve them before applying changes.\n"
        else:
            text += "All edits validated. To apply these changes, run without dry-run.\n"
    elif report.aborted:
        text += "## Operation Aborted\n\n"
        if any(error.startswith(ROLLBACK_ERROR_PREFIX) for error in report.errors):
            text += "Some files could not be rolled back and may be left modified.\n"
        else:
            text += "No files were modified.\n"
    elif report.applied:
        text += "## Multi-File Edit Successful\n\n"
        text += f"**Files modified:** {len(report.modified_files)}\n"
        if report.operation_id:
            text += f"**Operation ID:** {report.operation_id}\n"
        if report.backups:
            text += f"**Backups created:** {len(report.backups)}\n"
        text += "\n### Modified Files\n"
        for number, stats in enumerate(report.modified_files, start=1):
            text += f"{number}. **{stats.path}**\n"
            text += f"   - Lines: {stats.lines}\n"
            text += f"   - Size: {stats.size} bytes\n"
            text += f"   - Modified: {stats.modified.isoformat()}\n"
        if report.operation_id:
            text += f"\nUse operation ID {report.operation_id} to restore if needed.\n"
    else:
        text += "## No Edits Applied\n\n"
        text += "No valid edits to apply.\n"

    if report.failed_results and not report.dry_run:
        text += "\n" + _render_failures(report)

    if report.errors:
        text += "\n## Errors\n"
        for error in report.errors:
            text += f"- {error}\n"

    return text


def render_entry(entry: HistoryEntry) -> str:
    text = f"# {entry.operation}\n\n"
    text += f"- **ID:** {entry.id}\n"
    text += f"- **Tool:** {entry.tool}\n"
    text += f"- **Date:** {entry.timestamp.isoformat()}\n"
    text += f"- **Description:** {entry.description}\n\n"
    text += "## Files\n"
    for snapshot in entry.files:
        text += f"- `{snapshot.file_path}`"
        if snapshot.backup_path:
            text += f" (backup: `{snapshot.backup_path}`)"
        text += "\n"
    return text


def render_entry_list(entries: list[HistoryEntry]) -> str:
    if not entries:
        return "No operations recorded in history.\n"
    lines = [
        f"{entry.id}  {entry.timestamp.isoformat()}  {entry.tool}  "
        f"{entry.operation} ({len(entry.files)} files)"
        for entry in entries
    ]
    return "\n".join(lines) + "\n"


def render_restore_result(result: RestoreResult) -> str:
    text = f"# Restore of {result.entry_id}\n\n"
    text += f"**Status:** {'Restored' if result.success else 'Completed with errors'}\n\n"
    if result.restored_files:
        text += "## Restored Files\n"
        for path in result.restored_files:
            text += f"- {path}\n"
    if result.errors:
        text += "\n## Errors\n"
        for error in result.errors:
            text += f"- {error}\n"
    return text


def render_usage(usage: StorageUsage) -> str:
    return (
        "# History Storage\n\n"
        f"- **Entries:** {usage.entry_count}\n"
        f"- **Backups:** {usage.backup_count}\n"
        f"- **Total size:** {usage.total_size} bytes\n"
    )
