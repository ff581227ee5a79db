"""LangGraph orchestrator package for the batch edit pipeline."""

from safe_edit.orchestrator.exceptions import GraphBuildError, OrchestratorError
from safe_edit.orchestrator.graph import build_graph
from safe_edit.orchestrator.state import EditState, make_initial_state

__all__ = [
    "EditState",
    "GraphBuildError",
    "OrchestratorError",
    "build_graph",
    "make_initial_state",
]
