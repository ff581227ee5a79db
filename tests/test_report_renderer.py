"""Tests for markdown rendering of reports and history."""
from datetime import datetime, timezone

from safe_edit.models import (
    BatchReport,
    Conflict,
    ConflictKind,
    ConflictReport,
    EditContext,
    EditResult,
    ErrorDetails,
    ErrorType,
    FileSnapshot,
    FileStats,
    HistoryEntry,
    RestoreResult,
    Severity,
    StorageUsage,
)
from safe_edit.utils.report_renderer import (
    render_batch_report,
    render_entry,
    render_entry_list,
    render_restore_result,
    render_usage,
)

TIMESTAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _ok_result(index=0, file="a.txt"):
    return EditResult(
        index=index,
        file=file,
        edit_type="line-range",
        success=True,
        context=EditContext(
            before=["line1", "line2", "line3"],
            after=["line1", "LINE2", "line3"],
            line_range=(2, 2),
            start_line=1,
        ),
    )


def _failed_result(index=1, file="missing.txt"):
    return EditResult(
        index=index,
        file=file,
        edit_type="string",
        success=False,
        error="File not found: missing.txt",
        error_details=ErrorDetails(
            type=ErrorType.FILE_NOT_FOUND,
            root_cause="The file could not be found.",
            suggestions=["Verify the file path is correct"],
            severity=Severity.CRITICAL,
        ),
    )


def _entry(entry_id="abc", files=1):
    return HistoryEntry(
        id=entry_id,
        sequence=1,
        timestamp=TIMESTAMP,
        tool="safe_edit",
        operation="Multi-File Edit",
        description="Applied 1 edits across 1 files",
        files=[
            FileSnapshot(
                file_path=f"f{i}.txt",
                content_before="a",
                content_after="b",
                backup_path=f"/h/abc_{i}_f{i}.txt",
            )
            for i in range(files)
        ],
    )


class TestBatchReport:
    def test_dry_run_preview(self):
        report = BatchReport(dry_run=True, results=[_ok_result(), _failed_result()])
        text = render_batch_report(report)

        assert "**Mode:** DRY RUN (Preview)" in text
        assert "## Preview of Changes" in text
        assert "**Range:** Lines 2-2" in text
        assert "```diff" in text
        assert "**Status:** Failed" in text
        assert "run without dry-run" in text
        # Failure details are only listed for live runs
        assert "## Failed Edits" not in text

    def test_successful_apply(self):
        report = BatchReport(
            dry_run=False,
            results=[_ok_result()],
            applied=True,
            operation_id="op-1",
            modified_files=[
                FileStats(path="a.txt", lines=4, size=18, modified=TIMESTAMP)
            ],
        )
        text = render_batch_report(report)

        assert "**Mode:** LIVE EDIT" in text
        assert "## Multi-File Edit Successful" in text
        assert "**Operation ID:** op-1" in text
        assert "1. **a.txt**" in text
        assert "Use operation ID op-1 to restore if needed." in text

    def test_aborted_on_conflicts(self):
        report = BatchReport(
            dry_run=False,
            conflicts=[
                ConflictReport(
                    file="a.txt",
                    conflicts=[
                        Conflict(
                            kind=ConflictKind.OVERLAPPING_RANGES,
                            description="Lines 1-3 overlap lines 2-4",
                            descriptor_index=0,
                            descriptor_index2=1,
                        )
                    ],
                )
            ],
            aborted=True,
            errors=["ABORT: batch aborted: 1 conflict(s) detected in 1 file(s)."],
        )
        text = render_batch_report(report)

        assert "## Conflicts Detected" in text
        assert "**overlapping-ranges** (edit 1 and edit 2)" in text
        assert "## Operation Aborted" in text
        assert "- ABORT: batch aborted" in text
        assert "No files were modified." in text

    def test_abort_with_rollback_failures(self):
        report = BatchReport(
            dry_run=False,
            aborted=True,
            errors=[
                "apply_node error: disk full",
                "apply_node rollback error: Failed to roll back a.txt: disk full",
            ],
        )
        text = render_batch_report(report)

        assert "could not be rolled back" in text
        assert "No files were modified." not in text

    def test_failures_in_live_run(self):
        report = BatchReport(
            dry_run=False,
            results=[_ok_result(), _failed_result()],
            applied=True,
            operation_id="op-2",
        )
        text = render_batch_report(report)

        assert "## Failed Edits" in text
        assert "**Severity:** CRITICAL" in text
        assert "1. Verify the file path is correct" in text
        assert "- **file-not-found**: 1 error(s)" in text
        assert "**General Troubleshooting Steps:**" in text

    def test_nothing_to_apply(self):
        report = BatchReport(dry_run=False, results=[_failed_result(index=0)])
        assert "## No Edits Applied" in render_batch_report(report)


class TestHistoryRendering:
    def test_render_entry(self):
        text = render_entry(_entry(files=2))
        assert text.startswith("# Multi-File Edit")
        assert "- **ID:** abc" in text
        assert "- `f1.txt` (backup: `/h/abc_1_f1.txt`)" in text

    def test_render_entry_list(self):
        text = render_entry_list([_entry("one"), _entry("two", files=3)])
        lines = text.splitlines()
        assert lines[0].startswith("one  ")
        assert lines[1].endswith("(3 files)")

    def test_render_empty_entry_list(self):
        assert render_entry_list([]) == "No operations recorded in history.\n"

    def test_render_restore_result(self):
        result = RestoreResult(
            entry_id="abc",
            success=False,
            restored_files=["a.txt"],
            errors=["Backup missing for a.txt, restored from stored content"],
        )
        text = render_restore_result(result)
        assert "**Status:** Completed with errors" in text
        assert "- a.txt" in text
        assert "- Backup missing for a.txt" in text

    def test_render_usage(self):
        text = render_usage(StorageUsage(total_size=42, entry_count=2, backup_count=3))
        assert "- **Entries:** 2" in text
        assert "- **Backups:** 3" in text
        assert "- **Total size:** 42 bytes" in text
