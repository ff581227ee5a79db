"""Tests for the pipeline's pure routing functions."""
from safe_edit.models import (
    Conflict,
    ConflictKind,
    ConflictReport,
    EditBatch,
    EditResult,
    ResolvedEdit,
    SubstringEdit,
)
from safe_edit.orchestrator.routing import (
    count_conflicts,
    count_failed,
    route_after_apply,
    route_after_detect,
    route_after_resolve,
)
from safe_edit.orchestrator.state import make_initial_state


def make_state(**overrides):
    batch = EditBatch(edits=[SubstringEdit(file="a.txt", old="x", new="y")])
    state = make_initial_state(batch)
    state.update(overrides)
    return state


def conflict_report() -> ConflictReport:
    return ConflictReport(
        file="a.txt",
        conflicts=[
            Conflict(kind=ConflictKind.MISSING_CONTENT, description="missing", descriptor_index=0),
            Conflict(kind=ConflictKind.MISSING_CONTENT, description="missing", descriptor_index=1),
        ],
    )


def result(success: bool) -> EditResult:
    return EditResult(index=0, file="a.txt", edit_type="string", success=success)


def resolved() -> ResolvedEdit:
    return ResolvedEdit(file="a.txt", content_before="x", content_after="y")


class TestInitialState:
    def test_batch_options_are_copied(self):
        batch = EditBatch(
            edits=[SubstringEdit(file="a.txt", old="x", new="y")],
            dry_run=True,
            show_context=5,
            strict=True,
        )
        state = make_initial_state(batch)
        assert state["dry_run"] is True
        assert state["context_lines"] == 5
        assert state["strict"] is True
        assert state["errors"] == []
        assert state["history_id"] is None


class TestRouteAfterDetect:
    def test_no_conflicts_resolves(self):
        assert route_after_detect(make_state()) == "resolve"

    def test_conflicts_abort_live_batch(self):
        assert route_after_detect(make_state(conflicts=[conflict_report()])) == "abort"

    def test_conflicts_still_previewed_in_dry_run(self):
        state = make_state(conflicts=[conflict_report()], dry_run=True)
        assert route_after_detect(state) == "resolve"


class TestRouteAfterResolve:
    def test_dry_run_ends(self):
        state = make_state(dry_run=True, results=[result(True)], resolved=[resolved()])
        assert route_after_resolve(state) == "done"

    def test_applies_resolved_edits(self):
        state = make_state(results=[result(True)], resolved=[resolved()])
        assert route_after_resolve(state) == "apply"

    def test_failed_descriptors_do_not_block_by_default(self):
        state = make_state(results=[result(True), result(False)], resolved=[resolved()])
        assert route_after_resolve(state) == "apply"

    def test_strict_aborts_on_any_failure(self):
        state = make_state(
            strict=True, results=[result(True), result(False)], resolved=[resolved()]
        )
        assert route_after_resolve(state) == "abort"

    def test_nothing_to_apply_ends(self):
        state = make_state(results=[result(False)], resolved=[])
        assert route_after_resolve(state) == "done"


class TestRouteAfterApply:
    def test_applied_records(self):
        assert route_after_apply(make_state(applied=True)) == "record"

    def test_failed_apply_aborts(self):
        assert route_after_apply(make_state(applied=False)) == "abort"


def test_counters():
    state = make_state(conflicts=[conflict_report()], results=[result(False), result(True)])
    assert count_conflicts(state) == 2
    assert count_failed(state) == 1
