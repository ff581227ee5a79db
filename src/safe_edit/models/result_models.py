"""Result models for resolution, preview and batch application."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from safe_edit.models.conflict_models import ConflictReport
from safe_edit.models.history_models import Backup


class ErrorType(str, Enum):
    FILE_NOT_FOUND = "file-not-found"
    PERMISSION_DENIED = "permission-denied"
    CONTENT_MISMATCH = "content-mismatch"
    LINE_RANGE_ERROR = "line-range-error"
    SYNTAX_ERROR = "syntax-error"
    ENCODING_ERROR = "encoding-error"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """Reporting severity. Used for ordering output, never for control flow."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ErrorDetails(BaseModel):
    model_config = ConfigDict(frozen=False)

    type: ErrorType
    root_cause: str
    suggestions: list[str] = Field(default_factory=list)
    affected_lines: tuple[int, int] | None = None
    expected_content: str | None = None
    actual_content: str | None = None
    severity: Severity


class ResolvedEdit(BaseModel):
    """Concrete before/after content for one file, ready to apply."""

    model_config = ConfigDict(frozen=True)

    file: str
    content_before: str
    content_after: str
    line_range: tuple[int, int] | None = None  # 1-indexed, inclusive


class EditFailure(BaseModel):
    """Why a descriptor could not be resolved against live content."""

    model_config = ConfigDict(frozen=True)

    file: str
    error: str
    details: ErrorDetails


class EditContext(BaseModel):
    """Windowed before/after lines around a change, for human review."""

    model_config = ConfigDict(frozen=False)

    before: list[str] = Field(default_factory=list)
    after: list[str] = Field(default_factory=list)
    line_range: tuple[int, int]
    start_line: int = 1  # 1-indexed line number of before[0] and after[0]


class EditResult(BaseModel):
    """Outcome for a single descriptor of a batch."""

    model_config = ConfigDict(frozen=False)

    index: int
    file: str
    edit_type: str  # "string" | "line-range"
    success: bool
    applied: bool = False
    error: str | None = None
    error_details: ErrorDetails | None = None
    context: EditContext | None = None
    diff_text: str = ""
    warnings: list[str] = Field(default_factory=list)


class FileStats(BaseModel):
    model_config = ConfigDict(frozen=False)

    path: str
    lines: int
    size: int
    modified: datetime


class BatchReport(BaseModel):
    """Everything a caller needs to know about one batch run."""

    model_config = ConfigDict(frozen=False)

    dry_run: bool
    conflicts: list[ConflictReport] = Field(default_factory=list)
    results: list[EditResult] = Field(default_factory=list)
    applied: bool = False
    aborted: bool = False
    operation_id: str | None = None  # History entry id when applied
    backups: list[Backup] = Field(default_factory=list)
    modified_files: list[FileStats] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def successful_results(self) -> list[EditResult]:
        return [result for result in self.results if result.success]

    @property
    def failed_results(self) -> list[EditResult]:
        return [result for result in self.results if not result.success]

    def error_summary(self) -> dict[str, int]:
        """Count failed descriptors per error type."""
        summary: dict[str, int] = {}
        for result in self.failed_results:
            key = (
                result.error_details.type.value
                if result.error_details is not None
                else ErrorType.UNKNOWN.value
            )
            summary[key] = summary.get(key, 0) + 1
        return summary
