"""Utilities for generating diffs and preview context around edits."""

import difflib

from safe_edit.models.result_models import EditContext

LINE_SEPARATOR = "\n"


def split_lines(content: str) -> list[str]:
    """Split content on newlines exactly.

    A trailing newline yields a final empty line, so joining the result with
    LINE_SEPARATOR always reproduces the original content.
    """
    return content.split(LINE_SEPARATOR)


def join_lines(lines: list[str]) -> str:
    return LINE_SEPARATOR.join(lines)


def generate_unified_diff(
    file_path: str,
    original_content: str,
    modified_content: str,
) -> str:
    """Generate a git-compatible unified diff.

    Args:
        file_path: Path shown in the diff headers.
        original_content: File content before the edit.
        modified_content: File content after the edit.

    Returns:
        Unified diff string with a/ b/ prefixes. Empty string if no changes.
    """
    if original_content == modified_content:
        return ""

    original_lines = original_content.splitlines(keepends=True)
    modified_lines = modified_content.splitlines(keepends=True)

    diff_gen = difflib.unified_diff(
        original_lines,
        modified_lines,
        fromfile=f"a/{file_path}",
        tofile=f"b/{file_path}",
        lineterm="",
    )

    # Lines keep their own newline from keepends=True; strip it before joining
    diff_lines = []
    for line in diff_gen:
        if line.endswith(LINE_SEPARATOR):
            diff_lines.append(line[:-1])
        else:
            diff_lines.append(line)

    return LINE_SEPARATOR.join(diff_lines)


def find_changed_range(before_lines: list[str], after_lines: list[str]) -> tuple[int, int]:
    """Locate the changed region between two line lists.

    Returns:
        1-indexed inclusive (start, end) of the change. The start is the first
        differing line; the end is the last differing line found scanning
        backward from the shorter line count. When the common prefix is
        identical, the range covers the extra lines of the longer content.
    """
    shorter = min(len(before_lines), len(after_lines))
    longer = max(len(before_lines), len(after_lines))

    first = None
    for i in range(shorter):
        if before_lines[i] != after_lines[i]:
            first = i
            break

    if first is None:
        start = min(shorter, longer - 1)
        return start + 1, longer

    last = first
    for i in range(shorter - 1, first - 1, -1):
        if before_lines[i] != after_lines[i]:
            last = i
            break

    return first + 1, last + 1


def build_context(
    before: str,
    after: str,
    line_range: tuple[int, int] | None,
    context_lines: int,
) -> EditContext:
    """Build a windowed before/after view around an edit.

    Args:
        before: Content before the edit.
        after: Content after the edit.
        line_range: Known 1-indexed inclusive range of the edit, or None to
            derive it from the content.
        context_lines: Lines of context to show on each side.

    Returns:
        EditContext whose before/after windows both start at the same line.
    """
    before_lines = split_lines(before)
    after_lines = split_lines(after)

    if line_range is None:
        line_range = find_changed_range(before_lines, after_lines)

    window_start = max(0, line_range[0] - 1 - context_lines)
    before_end = min(len(before_lines), line_range[1] + context_lines)
    # Inserts and deletes change the length, so the after view has its own bound
    after_end = min(len(after_lines), line_range[1] + context_lines)

    return EditContext(
        before=before_lines[window_start:before_end],
        after=after_lines[window_start:after_end],
        line_range=line_range,
        start_line=window_start + 1,
    )


def render_context(context: EditContext) -> str:
    """Render an EditContext as numbered diff-style lines."""
    matcher = difflib.SequenceMatcher(a=context.before, b=context.after, autojunk=False)
    rendered: list[str] = []

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            for offset in range(i2 - i1):
                line_number = context.start_line + i1 + offset
                rendered.append(f"  {line_number:>4} | {context.before[i1 + offset]}")
            continue
        for offset in range(i2 - i1):
            line_number = context.start_line + i1 + offset
            rendered.append(f"- {line_number:>4} | {context.before[i1 + offset]}")
        for offset in range(j2 - j1):
            line_number = context.start_line + j1 + offset
            rendered.append(f"+ {line_number:>4} | {context.after[j1 + offset]}")

    return LINE_SEPARATOR.join(rendered)
