"""Search package exports."""

from __future__ import annotations

from .engine import (
    LineSource,
    SearchEngine,
    SearchOutcome,
    SearchState,
    SearchStatus,
    compile_pattern,
)

__all__ = [
    "LineSource",
    "SearchEngine",
    "SearchOutcome",
    "SearchState",
    "SearchStatus",
    "compile_pattern",
]
