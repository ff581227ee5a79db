"""Resolve a whole batch against live content, one file at a time.

Descriptors that share a file are resolved against that file's projected
content, so every edit of the batch sees the edits before it. Line-range
edits go first and bottom-to-top, which keeps their line numbers pointing
at the file as it was before the batch.
"""

import logging

from safe_edit.editing.conflict_detector import group_by_file
from safe_edit.editing.error_analysis import classify_error
from safe_edit.editing.resolver import EditResolver
from safe_edit.exceptions import SafeEditError
from safe_edit.io.file_ops import FileOperations
from safe_edit.models.edit_models import EditDescriptor, LineRangeEdit, SubstringEdit
from safe_edit.models.result_models import EditFailure, EditResult, ResolvedEdit
from safe_edit.utils.diff_generator import build_context, generate_unified_diff

logger = logging.getLogger(__name__)


def resolution_order(edits: list[EditDescriptor], indices: list[int]) -> list[int]:
    """Order one file's descriptor indices for resolution.

    Line-range edits first by descending start line (stable for equal
    starts), then substring edits in batch order.
    """
    line_indices = [i for i in indices if isinstance(edits[i], LineRangeEdit)]
    line_indices.sort(key=lambda i: edits[i].start_line, reverse=True)
    other_indices = [i for i in indices if not isinstance(edits[i], LineRangeEdit)]
    return line_indices + other_indices


def _failure_result(index: int, edit: EditDescriptor, failure: EditFailure) -> EditResult:
    return EditResult(
        index=index,
        file=edit.file,
        edit_type=edit.type,
        success=False,
        error=failure.error,
        error_details=failure.details,
    )


def resolve_batch(
    edits: list[EditDescriptor],
    resolver: EditResolver,
    file_ops: FileOperations,
    context_lines: int,
) -> tuple[list[EditResult], list[ResolvedEdit]]:
    """Resolve every descriptor of a batch.

    Args:
        edits: The batch, in submission order.
        resolver: Resolver applied to each descriptor.
        file_ops: Used to read each target once.
        context_lines: Lines of context around each change in the preview.

    Returns:
        (results, resolved): one EditResult per descriptor in batch order, and
        one merged ResolvedEdit per file whose content actually changes.
    """
    results: dict[int, EditResult] = {}
    resolved: list[ResolvedEdit] = []

    for file_path, indices in group_by_file(edits).items():
        try:
            original = file_ops.read(file_path)
        except (SafeEditError, UnicodeError) as exc:
            details = classify_error(exc, file_path)
            for index in indices:
                results[index] = EditResult(
                    index=index,
                    file=edits[index].file,
                    edit_type=edits[index].type,
                    success=False,
                    error=str(exc),
                    error_details=details,
                )
            logger.debug("Cannot read %s: %s", file_path, exc)
            continue

        projected = original
        for index in resolution_order(edits, indices):
            edit = edits[index]
            outcome = resolver.resolve(edit, projected)
            if isinstance(outcome, EditFailure):
                results[index] = _failure_result(index, edit, outcome)
                continue

            warnings = []
            if isinstance(edit, SubstringEdit) and not resolver.replace_all:
                occurrences = projected.count(edit.old)
                if occurrences > 1:
                    warnings.append(
                        f"Content occurs {occurrences} times; "
                        "only the first occurrence was replaced"
                    )

            results[index] = EditResult(
                index=index,
                file=edit.file,
                edit_type=edit.type,
                success=True,
                context=build_context(
                    outcome.content_before,
                    outcome.content_after,
                    outcome.line_range,
                    context_lines,
                ),
                diff_text=generate_unified_diff(
                    file_path, outcome.content_before, outcome.content_after
                ),
                warnings=warnings,
            )
            projected = outcome.content_after

        if projected != original:
            resolved.append(
                ResolvedEdit(file=file_path, content_before=original, content_after=projected)
            )

    return [results[index] for index in range(len(edits))], resolved
