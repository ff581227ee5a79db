"""Edit resolver: turns a descriptor plus live content into concrete content."""

from safe_edit.models.edit_models import EditDescriptor, LineRangeEdit, SubstringEdit
from safe_edit.models.result_models import (
    EditFailure,
    ErrorDetails,
    ErrorType,
    ResolvedEdit,
    Severity,
)
from safe_edit.utils.diff_generator import join_lines, split_lines

# Constants
SIMILARITY_THRESHOLD = 0.3  # Minimum word-overlap score for a suggestion
MIN_WORD_LENGTH = 3  # Shorter words are ignored when scoring similarity
MAX_EXPECTED_PREVIEW = 200  # Max chars of `old` echoed back on mismatch
MAX_SUGGESTION_PREVIEW = 50  # Max chars of a similar line echoed back


def _words(text: str) -> list[str]:
    return [word for word in text.lower().split() if len(word) >= MIN_WORD_LENGTH]


def find_most_similar_line(
    target: str,
    lines: list[str],
    threshold: float = SIMILARITY_THRESHOLD,
) -> tuple[int, str, float] | None:
    """Find the line that shares the most words with `target`.

    Each line is scored as |common words| / max(|target words|, |line words|).

    Args:
        target: Text that was expected in the file.
        lines: Current file lines.
        threshold: Scores must exceed this to count as a match.

    Returns:
        (1-indexed line number, line text, score) of the best line, or None
        when no line scores above the threshold. Ties keep the earliest line.
    """
    target_words = _words(target)
    if not target_words:
        return None

    best: tuple[int, str, float] | None = None
    best_score = 0.0
    for index, line in enumerate(lines):
        line_words = _words(line)
        common = [word for word in target_words if word in line_words]
        score = len(common) / max(len(target_words), len(line_words))
        if score > best_score and score > threshold:
            best = (index + 1, line, score)
            best_score = score

    return best


def find_first_occurrence_span(content: str, old: str) -> tuple[int, int] | None:
    """Return the 1-indexed inclusive line span of the first line-aligned match."""
    lines = split_lines(content)
    old_lines = split_lines(old)
    window = len(old_lines)

    for start in range(len(lines) - window + 1):
        if join_lines(lines[start:start + window]) == old:
            return start + 1, start + window

    return None


class EditResolver:
    """Resolves edit descriptors against current file content.

    Resolution is pure: it never reads or writes files and never looks at
    other descriptors in the batch.
    """

    def __init__(
        self,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        replace_all: bool = False,
    ) -> None:
        """Initialize the resolver.

        Args:
            similarity_threshold: Minimum score for a similar-line hint.
            replace_all: Replace every occurrence of a substring instead of
                only the first one.
        """
        self.similarity_threshold = similarity_threshold
        self.replace_all = replace_all

    def resolve(
        self,
        descriptor: EditDescriptor,
        current_content: str,
    ) -> ResolvedEdit | EditFailure:
        """Resolve one descriptor.

        Returns:
            ResolvedEdit on success, EditFailure describing the problem otherwise.

        Raises:
            TypeError: If the descriptor is not a known edit variant.
        """
        if isinstance(descriptor, SubstringEdit):
            return self._resolve_substring(descriptor, current_content)
        if isinstance(descriptor, LineRangeEdit):
            return self._resolve_line_range(descriptor, current_content)
        raise TypeError(f"Unsupported edit descriptor: {type(descriptor).__name__}")

    def _resolve_substring(
        self,
        edit: SubstringEdit,
        content: str,
    ) -> ResolvedEdit | EditFailure:
        if edit.old not in content:
            return self._content_mismatch(edit, content)

        count = -1 if self.replace_all else 1
        new_content = content.replace(edit.old, edit.new, count)

        return ResolvedEdit(
            file=edit.file,
            content_before=content,
            content_after=new_content,
            line_range=find_first_occurrence_span(content, edit.old),
        )

    def _content_mismatch(self, edit: SubstringEdit, content: str) -> EditFailure:
        lines = split_lines(content)
        similar = find_most_similar_line(edit.old, lines, self.similarity_threshold)

        if similar is not None:
            line_number, line_text, _score = similar
            hint = (
                f"Similar content found at line {line_number}: "
                f"\"{line_text[:MAX_SUGGESTION_PREVIEW]}...\""
            )
        else:
            hint = "Check for whitespace or formatting differences"

        expected = edit.old[:MAX_EXPECTED_PREVIEW]
        if len(edit.old) > MAX_EXPECTED_PREVIEW:
            expected += "..."

        preview = "\\n".join(lines[:3])
        return EditFailure(
            file=edit.file,
            error="Content to replace not found",
            details=ErrorDetails(
                type=ErrorType.CONTENT_MISMATCH,
                root_cause=(
                    f"The specified content was not found in '{edit.file}'. "
                    "The file may have been modified since the edit was planned."
                ),
                suggestions=[
                    "Verify the content still exists in the file",
                    "Check if the file was modified by another process",
                    "Use line-range edit instead of string replacement",
                    hint,
                ],
                expected_content=expected,
                actual_content=f"File has {len(lines)} lines, first few: {preview}",
                severity=Severity.HIGH,
            ),
        )

    def _resolve_line_range(
        self,
        edit: LineRangeEdit,
        content: str,
    ) -> ResolvedEdit | EditFailure:
        start, end = edit.start_line, edit.end_line

        if start > end:
            return EditFailure(
                file=edit.file,
                error="Invalid line range: startLine > endLine",
                details=ErrorDetails(
                    type=ErrorType.LINE_RANGE_ERROR,
                    root_cause=(
                        f"Invalid line range specified: startLine ({start}) "
                        f"is greater than endLine ({end})."
                    ),
                    suggestions=[
                        "Ensure startLine <= endLine",
                        f"Try using startLine: {end}, endLine: {start}",
                        "Check that line numbers are 1-indexed",
                    ],
                    affected_lines=(start, end),
                    severity=Severity.HIGH,
                ),
            )

        lines = split_lines(content)
        total = len(lines)

        if start < 1 or end > total:
            if start < 1:
                bound_hint = "Line numbers start from 1, not 0"
            else:
                bound_hint = f"Maximum line number is {total}"
            tail = "\\n".join(
                f"{total - len(lines[-3:]) + i + 1}: {line}"
                for i, line in enumerate(lines[-3:])
            )
            return EditFailure(
                file=edit.file,
                error="Line range out of bounds",
                details=ErrorDetails(
                    type=ErrorType.LINE_RANGE_ERROR,
                    root_cause=(
                        f"Line range {start}-{end} is outside the valid range for "
                        f"'{edit.file}' which has {total} lines."
                    ),
                    suggestions=[
                        f"Valid line range is 1-{total}",
                        bound_hint,
                        "Check the file content to verify correct line numbers",
                        "Consider using string replacement instead of line ranges",
                    ],
                    affected_lines=(max(1, start), min(total, end)),
                    actual_content=f"File has {total} lines. Last few lines: {tail}",
                    severity=Severity.HIGH,
                ),
            )

        new_lines = lines[:start - 1] + split_lines(edit.new_content) + lines[end:]
        return ResolvedEdit(
            file=edit.file,
            content_before=content,
            content_after=join_lines(new_lines),
            line_range=(start, end),
        )
