"""Tests for the batch conflict detector."""
from unittest.mock import MagicMock

import pytest

from safe_edit.editing.conflict_detector import ConflictDetector, group_by_file, ranges_overlap
from safe_edit.models import ConflictKind, LineRangeEdit, SubstringEdit


def line_edit(file: str, start: int, end: int) -> LineRangeEdit:
    return LineRangeEdit(file=file, start_line=start, end_line=end, new_content="X")


class TestRangesOverlap:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((3, 5), (5, 7), True),
            ((3, 5), (6, 8), False),
            ((1, 10), (4, 5), True),
            ((6, 8), (3, 5), False),
        ],
    )
    def test_inclusive_boundaries(self, a, b, expected):
        assert ranges_overlap(a, b) is expected
        assert ranges_overlap(b, a) is expected


def test_group_by_file_keeps_first_appearance_order():
    edits = [
        SubstringEdit(file="b.txt", old="x", new="y"),
        SubstringEdit(file="a.txt", old="x", new="y"),
        SubstringEdit(file="b.txt", old="z", new="y"),
    ]
    assert group_by_file(edits) == {"b.txt": [0, 2], "a.txt": [1]}


def test_group_by_file_merges_spellings_of_one_file(workspace, monkeypatch):
    monkeypatch.chdir(workspace)
    absolute = str(workspace / "a.txt")
    edits = [
        SubstringEdit(file=absolute, old="x", new="y"),
        SubstringEdit(file="a.txt", old="z", new="y"),
    ]
    assert group_by_file(edits) == {absolute: [0, 1]}


class TestDetect:
    def test_overlapping_line_ranges(self, write_file):
        path = write_file("a.txt", "\n".join(str(i) for i in range(1, 11)))
        reports = ConflictDetector().detect([line_edit(path, 3, 5), line_edit(path, 5, 7)])

        assert len(reports) == 1
        conflict = reports[0].conflicts[0]
        assert reports[0].file == path
        assert conflict.kind == ConflictKind.OVERLAPPING_RANGES
        assert conflict.description == "Line ranges overlap: 3-5 and 5-7"
        assert (conflict.descriptor_index, conflict.descriptor_index2) == (0, 1)

    def test_adjacent_ranges_do_not_conflict(self, write_file):
        path = write_file("a.txt", "\n".join(str(i) for i in range(1, 11)))
        assert ConflictDetector().detect([line_edit(path, 3, 5), line_edit(path, 6, 8)]) == []

    def test_pairs_are_not_merged_transitively(self, write_file):
        """[1,3]-[3,5] and [3,5]-[5,7] overlap; [1,3]-[5,7] does not."""
        path = write_file("a.txt", "\n".join(str(i) for i in range(1, 11)))
        edits = [line_edit(path, 1, 3), line_edit(path, 3, 5), line_edit(path, 5, 7)]
        conflicts = ConflictDetector().detect(edits)[0].conflicts

        pairs = [(c.descriptor_index, c.descriptor_index2) for c in conflicts]
        assert pairs == [(0, 1), (1, 2)]

    def test_missing_substring(self, write_file):
        path = write_file("a.txt", "hello world")
        edits = [
            SubstringEdit(file=path, old="hello", new="hi"),
            SubstringEdit(file=path, old="absent", new="x"),
        ]
        conflicts = ConflictDetector().detect(edits)[0].conflicts

        assert len(conflicts) == 1
        assert conflicts[0].kind == ConflictKind.MISSING_CONTENT
        assert conflicts[0].descriptor_index == 1
        assert "absent" in conflicts[0].description

    def test_missing_file_reports_first_descriptor_only(self, workspace):
        path = str(workspace / "missing.txt")
        edits = [
            SubstringEdit(file=path, old="a", new="b"),
            line_edit(path, 1, 2),
            line_edit(path, 2, 3),
        ]
        reports = ConflictDetector().detect(edits)

        assert len(reports) == 1
        assert len(reports[0].conflicts) == 1
        conflict = reports[0].conflicts[0]
        assert conflict.kind == ConflictKind.MISSING_CONTENT
        assert conflict.description == "File does not exist"
        assert conflict.descriptor_index == 0

    def test_single_descriptor_files_are_skipped(self, write_file):
        """Checks only apply to files with two or more descriptors."""
        path = write_file("a.txt", "hello")
        file_ops = MagicMock()

        reports = ConflictDetector(file_ops).detect([SubstringEdit(file=path, old="nope", new="x")])

        assert reports == []
        file_ops.read.assert_not_called()

    def test_detection_is_idempotent_and_read_only(self, write_file, read_file):
        path = write_file("a.txt", "one\ntwo\nthree\n")
        edits = [
            line_edit(path, 1, 2),
            line_edit(path, 2, 3),
            SubstringEdit(file=path, old="four", new="4"),
        ]
        detector = ConflictDetector()

        first = detector.detect(edits)
        second = detector.detect(edits)

        assert first == second
        assert read_file(path) == "one\ntwo\nthree\n"

    def test_reports_only_files_with_conflicts(self, write_file):
        clean = write_file("clean.txt", "a\nb\nc")
        dirty = write_file("dirty.txt", "a\nb\nc")
        edits = [
            line_edit(clean, 1, 1),
            line_edit(clean, 3, 3),
            line_edit(dirty, 1, 2),
            line_edit(dirty, 2, 3),
        ]
        reports = ConflictDetector().detect(edits)
        assert [report.file for report in reports] == [dirty]

    def test_overlap_found_across_path_spellings(self, workspace, write_file, monkeypatch):
        """A relative and an absolute path to one file are checked together."""
        path = write_file("a.txt", "1\n2\n3\n4\n5")
        monkeypatch.chdir(workspace)

        reports = ConflictDetector().detect([line_edit(path, 1, 3), line_edit("a.txt", 3, 4)])

        assert len(reports) == 1
        assert reports[0].conflicts[0].kind == ConflictKind.OVERLAPPING_RANGES
        conflict = reports[0].conflicts[0]
        assert (conflict.descriptor_index, conflict.descriptor_index2) == (0, 1)
