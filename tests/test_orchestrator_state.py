"""Tests for orchestrator state module."""
from safe_edit.models import EditBatch, LineRangeEdit, SubstringEdit
from safe_edit.orchestrator.state import make_initial_state


def _batch(**options):
    return EditBatch(
        edits=[
            SubstringEdit(file="a.txt", old="x", new="y"),
            LineRangeEdit(file="b.txt", start_line=1, end_line=1, new_content="z"),
        ],
        **options,
    )


class TestMakeInitialState:
    """Tests for the make_initial_state factory function."""

    def test_make_initial_state_defaults(self):
        """All 14 keys present with correct defaults."""
        batch = _batch()
        state = make_initial_state(batch)

        assert state["edits"] == batch.edits
        assert state["dry_run"] is False
        assert state["create_backups"] is True
        assert state["validate_conflicts"] is True
        assert state["context_lines"] == 3
        assert state["strict"] is False
        assert state["conflicts"] == []
        assert state["results"] == []
        assert state["resolved"] == []
        assert state["backups"] == []
        assert state["applied"] is False
        assert state["aborted"] is False
        assert state["history_id"] is None
        assert state["errors"] == []

        assert len(state) == 14

    def test_make_initial_state_carries_options(self):
        """Batch options map onto state flags."""
        state = make_initial_state(
            _batch(dry_run=True, create_backups=False, validate_conflicts=False,
                   show_context=0, strict=True)
        )
        assert state["dry_run"] is True
        assert state["create_backups"] is False
        assert state["validate_conflicts"] is False
        assert state["context_lines"] == 0
        assert state["strict"] is True

    def test_initial_state_edits_is_a_copy(self):
        """Mutating state edits does not touch the batch."""
        batch = _batch()
        state = make_initial_state(batch)
        state["edits"].pop()
        assert len(batch.edits) == 2
