"""Utilities for safe-edit."""

from safe_edit.utils.diff_generator import (
    build_context,
    generate_unified_diff,
    render_context,
)

__all__ = [
    "build_context",
    "generate_unified_diff",
    "render_context",
]
