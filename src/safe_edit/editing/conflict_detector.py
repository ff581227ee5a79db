"""Conflict detector: finds batches that are unsafe to apply as-is."""

import logging

from safe_edit.io.file_ops import FileOperations, target_key
from safe_edit.models.conflict_models import Conflict, ConflictKind, ConflictReport
from safe_edit.models.edit_models import EditDescriptor, LineRangeEdit, SubstringEdit

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_PREVIEW = 50


def ranges_overlap(a: tuple[int, int], b: tuple[int, int]) -> bool:
    """Inclusive interval overlap: [3,5] and [5,7] overlap, [3,5] and [6,8] do not."""
    return a[1] >= b[0] and b[1] >= a[0]


def group_by_file(edits: list[EditDescriptor]) -> dict[str, list[int]]:
    """Map each target file to its descriptor indices, in first-appearance order.

    Descriptors naming the same file through different paths (relative and
    absolute, for example) share one group, keyed by the first spelling seen.
    """
    spellings: dict[str, str] = {}
    groups: dict[str, list[int]] = {}
    for index, edit in enumerate(edits):
        file_path = spellings.setdefault(target_key(edit.file), edit.file)
        groups.setdefault(file_path, []).append(index)
    return groups


class ConflictDetector:
    """Checks a batch against current file contents and against itself.

    Only files targeted by two or more descriptors are inspected. The
    detector reads files but never modifies them.
    """

    def __init__(self, file_ops: FileOperations | None = None) -> None:
        self.file_ops = file_ops or FileOperations()

    def detect(self, edits: list[EditDescriptor]) -> list[ConflictReport]:
        """Run all checks for a batch.

        Args:
            edits: The batch, in submission order.

        Returns:
            One ConflictReport per file with at least one conflict. An empty
            list means the batch is safe to apply.

        Raises:
            FileOperationError: If an existing target cannot be read.
        """
        reports: list[ConflictReport] = []

        for file_path, indices in group_by_file(edits).items():
            if len(indices) <= 1:
                continue

            conflicts = self._check_file(file_path, indices, edits)
            if conflicts:
                reports.append(ConflictReport(file=file_path, conflicts=conflicts))

        if reports:
            logger.info(
                "Detected conflicts in %d file(s): %s",
                len(reports),
                ", ".join(report.file for report in reports),
            )
        return reports

    def _check_file(
        self,
        file_path: str,
        indices: list[int],
        edits: list[EditDescriptor],
    ) -> list[Conflict]:
        if not self.file_ops.exists(file_path):
            return [
                Conflict(
                    kind=ConflictKind.MISSING_CONTENT,
                    description="File does not exist",
                    descriptor_index=indices[0],
                )
            ]

        content = self.file_ops.read(file_path)
        conflicts: list[Conflict] = []

        line_edits = [
            (index, edits[index])
            for index in indices
            if isinstance(edits[index], LineRangeEdit)
        ]
        for i, (index1, edit1) in enumerate(line_edits):
            for index2, edit2 in line_edits[i + 1:]:
                range1 = (edit1.start_line, edit1.end_line)
                range2 = (edit2.start_line, edit2.end_line)
                if ranges_overlap(range1, range2):
                    conflicts.append(
                        Conflict(
                            kind=ConflictKind.OVERLAPPING_RANGES,
                            description=(
                                f"Line ranges overlap: {range1[0]}-{range1[1]} "
                                f"and {range2[0]}-{range2[1]}"
                            ),
                            descriptor_index=index1,
                            descriptor_index2=index2,
                        )
                    )

        for index in indices:
            edit = edits[index]
            if isinstance(edit, SubstringEdit) and edit.old not in content:
                preview = edit.old[:MAX_DESCRIPTION_PREVIEW]
                if len(edit.old) > MAX_DESCRIPTION_PREVIEW:
                    preview += "..."
                conflicts.append(
                    Conflict(
                        kind=ConflictKind.MISSING_CONTENT,
                        description=f"Content to replace not found: \"{preview}\"",
                        descriptor_index=index,
                    )
                )

        return conflicts
