"""Pure routing functions for the edit pipeline's conditional edges.

All functions are stateless and only inspect the state they are given.
"""

from safe_edit.orchestrator.state import EditState


def count_conflicts(state: EditState) -> int:
    return sum(len(report.conflicts) for report in state["conflicts"])


def count_failed(state: EditState) -> int:
    return sum(1 for result in state["results"] if not result.success)


def route_after_detect(state: EditState) -> str:
    """Router for the post-detect conditional edge.

    Returns:
        "abort" for a live batch with conflicts, "resolve" otherwise. Preview
        batches are always resolved so conflicts can be inspected.
    """
    if state["conflicts"] and not state["dry_run"]:
        return "abort"
    return "resolve"


def route_after_resolve(state: EditState) -> str:
    """Router for the post-resolve conditional edge.

    Returns:
        "done" for previews or when nothing changes, "abort" when a strict
        batch has a failed descriptor, "apply" otherwise.
    """
    if state["dry_run"]:
        return "done"
    if state["strict"] and count_failed(state) > 0:
        return "abort"
    if not state["resolved"]:
        return "done"
    return "apply"


def route_after_apply(state: EditState) -> str:
    """Router for the post-apply conditional edge.

    Returns:
        "record" if every file was written, "abort" otherwise.
    """
    if state["applied"]:
        return "record"
    return "abort"
