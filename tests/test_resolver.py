"""Tests for the edit resolver."""
import pytest

from safe_edit.editing.resolver import (
    EditResolver,
    find_first_occurrence_span,
    find_most_similar_line,
)
from safe_edit.models import (
    EditFailure,
    ErrorType,
    LineRangeEdit,
    ResolvedEdit,
    Severity,
    SubstringEdit,
)


def line_edit(start: int, end: int, new_content: str = "X") -> LineRangeEdit:
    return LineRangeEdit(file="f.txt", start_line=start, end_line=end, new_content=new_content)


# ---------------------------------------------------------------------------
# Line-range edits
# ---------------------------------------------------------------------------

class TestLineRange:
    def test_replaces_inclusive_range(self):
        """Lines 2-3 are replaced; neighbours are untouched."""
        result = EditResolver().resolve(line_edit(2, 3), "a\nb\nc\nd")
        assert isinstance(result, ResolvedEdit)
        assert result.content_before == "a\nb\nc\nd"
        assert result.content_after == "a\nX\nd"
        assert result.line_range == (2, 3)

    def test_reconstruction_matches_slice_formula(self):
        content = "l1\nl2\nl3\nl4\nl5"
        new_content = "n1\nn2\nn3"
        lines = content.split("\n")
        expected = "\n".join(lines[:1] + new_content.split("\n") + lines[4:])

        result = EditResolver().resolve(line_edit(2, 4, new_content), content)
        assert result.content_after == expected

    def test_trailing_newline_counts_as_final_empty_line(self):
        """'a\\nb\\n' has three lines; line 3 is the empty one."""
        result = EditResolver().resolve(line_edit(3, 3, "c"), "a\nb\n")
        assert result.content_after == "a\nb\nc"

    def test_concrete_scenario(self):
        result = EditResolver().resolve(line_edit(2, 2, "LINE2"), "line1\nline2\nline3\n")
        assert result.content_after == "line1\nLINE2\nline3\n"

    def test_start_after_end_fails_with_swap_suggestion(self):
        result = EditResolver().resolve(line_edit(4, 2), "a\nb\nc\nd")
        assert isinstance(result, EditFailure)
        assert result.error == "Invalid line range: startLine > endLine"
        assert result.details.type == ErrorType.LINE_RANGE_ERROR
        assert result.details.severity == Severity.HIGH
        assert "Try using startLine: 2, endLine: 4" in result.details.suggestions

    def test_range_above_maximum_fails(self):
        result = EditResolver().resolve(line_edit(2, 5), "a\nb")
        assert isinstance(result, EditFailure)
        assert result.error == "Line range out of bounds"
        assert "Valid line range is 1-2" in result.details.suggestions
        assert "Maximum line number is 2" in result.details.suggestions
        assert result.details.affected_lines == (2, 2)

    def test_range_below_one_fails(self):
        result = EditResolver().resolve(line_edit(0, 1), "a\nb")
        assert isinstance(result, EditFailure)
        assert "Line numbers start from 1, not 0" in result.details.suggestions
        assert result.details.affected_lines == (1, 1)


# ---------------------------------------------------------------------------
# Substring edits
# ---------------------------------------------------------------------------

class TestSubstring:
    def test_replaces_first_occurrence_only(self):
        edit = SubstringEdit(file="f.txt", old="foo", new="baz")
        result = EditResolver().resolve(edit, "foo bar foo")
        assert result.content_after == "baz bar foo"

    def test_replace_all(self):
        edit = SubstringEdit(file="f.txt", old="foo", new="baz")
        result = EditResolver(replace_all=True).resolve(edit, "foo bar foo")
        assert result.content_after == "baz bar baz"

    def test_reports_span_of_first_occurrence(self):
        edit = SubstringEdit(file="f.txt", old="foo\nb", new="x")
        result = EditResolver().resolve(edit, "a\nfoo\nb\nfoo\nb")
        assert result.line_range == (2, 3)

    def test_span_absent_for_mid_line_match(self):
        edit = SubstringEdit(file="f.txt", old="oo", new="x")
        result = EditResolver().resolve(edit, "a\nfoo\nb")
        assert isinstance(result, ResolvedEdit)
        assert result.line_range is None

    def test_mismatch_suggests_similar_line(self):
        content = "def calculate_total(items):\n    return 0"
        edit = SubstringEdit(file="f.txt", old="def calculate_sum(items):", new="x")
        result = EditResolver().resolve(edit, content)

        assert isinstance(result, EditFailure)
        assert result.error == "Content to replace not found"
        assert result.details.type == ErrorType.CONTENT_MISMATCH
        assert result.details.severity == Severity.HIGH
        assert result.details.expected_content == "def calculate_sum(items):"
        assert any(
            suggestion.startswith("Similar content found at line 1")
            for suggestion in result.details.suggestions
        )

    def test_mismatch_without_similar_line(self):
        edit = SubstringEdit(file="f.txt", old="completely different words", new="x")
        result = EditResolver().resolve(edit, "alpha\nbeta")
        assert "Check for whitespace or formatting differences" in result.details.suggestions

    def test_long_expected_content_is_truncated(self):
        old = "x" * 250
        edit = SubstringEdit(file="f.txt", old=old, new="y")
        result = EditResolver().resolve(edit, "nothing here")
        assert result.details.expected_content == "x" * 200 + "..."


class TestHelpers:
    def test_similar_line_ties_keep_earliest(self):
        lines = ["alpha beta", "alpha beta"]
        assert find_most_similar_line("alpha beta", lines)[0] == 1

    def test_similar_line_ignores_short_words(self):
        assert find_most_similar_line("a b c", ["a b c"]) is None

    def test_similar_line_respects_threshold(self):
        assert find_most_similar_line("alpha beta", ["alpha gamma delta"], threshold=0.5) is None
        assert find_most_similar_line("alpha beta", ["alpha gamma delta"], threshold=0.3) is not None

    def test_first_occurrence_span_multi_line(self):
        assert find_first_occurrence_span("a\nb\nc", "b\nc") == (2, 3)

    def test_first_occurrence_span_missing(self):
        assert find_first_occurrence_span("a\nb", "zz") is None


def test_unknown_descriptor_raises_type_error():
    with pytest.raises(TypeError):
        EditResolver().resolve(object(), "content")
