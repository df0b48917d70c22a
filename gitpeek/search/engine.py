"""Smart-case regex search over a line source that may still be growing.

A forward scan that runs past the loaded lines of an unfinished source parks
in a pending state; the event loop resumes it every tick through
``continue_search`` until it finds a match or the source completes.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..ansi import strip_ansi

logger = logging.getLogger(__name__)


class LineSource(Protocol):
    def get_line(self, index: int) -> str | None: ...

    def is_fully_loaded(self) -> bool: ...


class SearchStatus(Enum):
    FOUND = "found"
    PENDING = "pending"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class SearchOutcome:
    status: SearchStatus
    index: int | None = None


NOT_FOUND = SearchOutcome(SearchStatus.NOT_FOUND)


@dataclass
class SearchState:
    pattern: str
    reverse: bool = False
    pending_index: int | None = None


def compile_pattern(pattern: str, smartcase: bool = True) -> re.Pattern[str]:
    """Compile ``pattern``; invalid regex syntax falls back to a literal match.

    Under smart case the match is case-insensitive unless the pattern holds an
    uppercase letter.
    """
    flags = 0
    if smartcase and not any(ch.isupper() for ch in pattern):
        flags = re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error:
        return re.compile(re.escape(pattern), flags)


class SearchEngine:
    """Holds the active search of one view."""

    def __init__(self, smartcase: bool = True) -> None:
        self.smartcase = smartcase
        self.state: SearchState | None = None
        self._regex: re.Pattern[str] | None = None

    @property
    def regex(self) -> re.Pattern[str] | None:
        return self._regex

    @property
    def pending(self) -> bool:
        return self.state is not None and self.state.pending_index is not None

    def start(self, pattern: str, reverse: bool) -> None:
        """Begin a new search, dropping any pending scan of the previous one."""
        if not pattern:
            self.state = None
            self._regex = None
            return
        self.state = SearchState(pattern=pattern, reverse=reverse)
        self._regex = compile_pattern(pattern, self.smartcase)
        logger.debug("search %r reverse=%s", pattern, reverse)

    def clear(self) -> None:
        self.state = None
        self._regex = None

    def advance(self, source: LineSource, from_index: int, previous: bool = False) -> SearchOutcome:
        """Search from the line after (or before) ``from_index``.

        ``previous`` is combined with the stored ``reverse`` flag by XOR, so
        "previous" on a reverse search scans forward.
        """
        if self.state is None:
            return NOT_FOUND
        backward = previous != self.state.reverse
        if backward:
            return self._finish(self._scan_backward(source, from_index - 1))
        return self._finish(self._scan_forward(source, from_index + 1))

    def continue_search(self, source: LineSource) -> SearchOutcome | None:
        """Resume a pending forward scan; ``None`` when nothing is pending."""
        if self.state is None or self.state.pending_index is None:
            return None
        return self._finish(self._scan_forward(source, self.state.pending_index))

    def matches(self, line: str) -> bool:
        return self._regex is not None and self._regex.search(strip_ansi(line)) is not None

    def _finish(self, outcome: SearchOutcome) -> SearchOutcome:
        assert self.state is not None
        self.state.pending_index = outcome.index if outcome.status is SearchStatus.PENDING else None
        return outcome

    def _scan_forward(self, source: LineSource, start: int) -> SearchOutcome:
        index = max(0, start)
        while True:
            line = source.get_line(index)
            if line is None:
                if not source.is_fully_loaded():
                    return SearchOutcome(SearchStatus.PENDING, index)
                # lines may land between the read and the flag check
                line = source.get_line(index)
                if line is None:
                    return NOT_FOUND
            if self.matches(line):
                return SearchOutcome(SearchStatus.FOUND, index)
            index += 1

    def _scan_backward(self, source: LineSource, start: int) -> SearchOutcome:
        index = start
        while index >= 0:
            line = source.get_line(index)
            if line is not None and self.matches(line):
                return SearchOutcome(SearchStatus.FOUND, index)
            index -= 1
        return NOT_FOUND
