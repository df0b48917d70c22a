"""Streaming pager over ``git log|show|diff`` output or piped stdin.

The style of the stream (full log, one-line log, reflog, stash list, diff or
anything else) is guessed from its first line and decides both the mapping
scope and how file, commit and line context are read back from the text.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path

from ..actions import Action, ActionKind
from ..ansi import strip_ansi
from ..errors import ReachedLastMatch
from ..git import is_valid_revision, pager_argv
from ..input.bindings import Scope, ScopeKind
from ..render import Frame, Region
from ..runtime.config import Config
from ..runtime.stream import StreamLoader
from ..runtime.viewport import Alignment
from .base import FileRevLine, RepoView

logger = logging.getLogger(__name__)

_STAT_RE = re.compile(r"^\s*(?P<file>[^|]+)\s+\|\s+(?P<changes>\d+)\s+(?P<diff>[+\-]+)")
_HUNK_RE = re.compile(r"^@@ -\S+ \+(?P<start>\d+)")


class LogStyle(Enum):
    STANDARD = "log"
    ONELINE = "log (oneline)"
    REFLOG = "log (reflog)"
    STASH = "log (stash)"
    DIFF = "diff"
    UNKNOWN = "pager"

    @property
    def scope_kind(self) -> ScopeKind:
        if self is LogStyle.DIFF:
            return ScopeKind.DIFF
        if self is LogStyle.UNKNOWN:
            return ScopeKind.PAGER
        return ScopeKind.LOG


# Styles forced by the git command; ``log`` output is guessed.
_COMMAND_STYLES = {"show": LogStyle.STANDARD, "diff": LogStyle.DIFF}


def remove_graph_symbols(line: str) -> str:
    """Drop the ``* ``/``| `` columns that ``--graph`` puts before each line."""
    while line and line[0] in "*| ":
        line = line[2:]
    return line


def guess_log_style(line: str, git_exe: str = "git") -> LogStyle:
    first, _, rest = line.partition(" ")
    if first == "commit":
        return LogStyle.STANDARD
    if first == "diff":
        return LogStyle.DIFF
    if not first:
        return LogStyle.UNKNOWN
    if "HEAD@{0}:" in line:
        return LogStyle.REFLOG
    if line.startswith("stash@{0}:"):
        return LogStyle.STASH
    if " 1) " in line:
        # git blame output
        return LogStyle.UNKNOWN
    if rest and is_valid_revision(git_exe, first):
        return LogStyle.ONELINE
    return LogStyle.UNKNOWN


class PagerView(RepoView):
    """Scrollable view of a ``StreamLoader``; rows arrive while the user reads."""

    def __init__(
        self,
        config: Config,
        loader: StreamLoader,
        style: LogStyle | None = None,
        enter_root: bool = True,
    ) -> None:
        super().__init__(config, enter_root=enter_root)
        self.loader = loader
        first = strip_ansi(loader.get_line(0) or "")
        self.graph = first.split(" ", 1)[0] == "*"
        if style is None:
            style = guess_log_style(self._clean(first), config.git)
        self.style = style
        logger.debug("pager style %s (graph=%s)", style.value, self.graph)

    @classmethod
    def for_git(cls, config: Config, command: str, args: list[str] | None = None) -> PagerView:
        """Stream ``git <command> --color=always <args>`` run from the current directory."""
        loader = StreamLoader.from_command(pager_argv(config.git, command, list(args or [])))
        return cls(config, loader, style=_COMMAND_STYLES.get(command))

    @classmethod
    def for_stdin(cls, config: Config) -> PagerView:
        return cls(config, StreamLoader.from_stdin(), enter_root=False)

    def _clean(self, line: str) -> str:
        return remove_graph_symbols(line) if self.graph else line

    def stripped_line(self, index: int) -> str | None:
        line = self.loader.get_line(index)
        if line is None:
            return None
        return self._clean(strip_ansi(line))

    def get_line(self, index: int) -> str | None:
        return self.loader.get_line(index)

    def line_count(self) -> int:
        return len(self.loader)

    def is_loaded(self) -> bool:
        return self.loader.is_fully_loaded()

    def is_fully_loaded(self) -> bool:
        return self.loader.is_fully_loaded()

    def mapping_scopes(self) -> list[Scope]:
        return [Scope(self.style.scope_kind)]

    def status_line(self) -> str | None:
        selected = 0 if self.viewport.selected is None else self.viewport.selected + 1
        return f"{self.style.value} - line {selected} of {len(self.loader)}"

    def file_in_line(self, line: str) -> str | None:
        if self.style is LogStyle.ONELINE or not line.startswith("diff --git a/"):
            return None
        _, sep, filename = line.partition(" b/")
        return filename if sep else None

    def line_number_in_line(self, line: str) -> int | None:
        if self.style is LogStyle.ONELINE:
            return None
        match = _HUNK_RE.match(line)
        return int(match.group("start")) if match else None

    def commit_in_line(self, line: str) -> str | None:
        style = self.style
        if style is LogStyle.STANDARD or style is LogStyle.DIFF:
            keyword = "commit" if style is LogStyle.STANDARD else "index"
            words = line.split(" ")
            if len(words) > 1 and words[0] == keyword and words[1]:
                return words[1]
            return None
        if style is LogStyle.ONELINE:
            first, sep, _ = line.partition(" ")
            return first if sep else None
        if style is LogStyle.STASH:
            if line.startswith("stash@{"):
                ref, sep, _ = line.partition(":")
                return ref if sep else None
            return None
        if style is LogStyle.REFLOG:
            if "HEAD@{" in line:
                first, sep, _ = line.partition(" ")
                return first if sep else None
            return None
        return None

    def _stat_file(self, line: str) -> str | None:
        if line and Path(line).is_file():
            return line
        match = _STAT_RE.match(line)
        return match.group("file").strip() if match else None

    def file_rev_line_context(self) -> FileRevLine:
        """Scan upward from the selection for the enclosing file, commit and line.

        Inside a hunk the line number is the hunk start plus the number of
        new-side rows between the hunk header and the selection.
        """
        index = self.selected_index()
        filename: str | None = None
        commit: str | None = None
        line_number: int | None = None
        if self.style is LogStyle.STANDARD:
            filename = self._stat_file(self.stripped_line(index) or "")

        new_side_rows = 0
        for idx in range(index, -1, -1):
            line = self.stripped_line(idx)
            if line is None:
                break
            found_file = None if filename is not None else self.file_in_line(line)
            if found_file is not None:
                filename = found_file
                if self.style is LogStyle.DIFF:
                    break
            if line_number is None and filename is None:
                start = self.line_number_in_line(line)
                if start is not None:
                    line_number = start + max(0, new_side_rows - 1)
                elif not line.startswith("-"):
                    new_side_rows += 1
            found_commit = self.commit_in_line(line)
            if found_commit is not None:
                commit = found_commit
                if self.style is not LogStyle.DIFF:
                    break
        return filename, commit, line_number

    def _jump_to_commit(self, step: int) -> None:
        index = self.selected_index()
        while True:
            index += step
            if index < 0:
                return
            line = self.stripped_line(index)
            if line is None:
                raise ReachedLastMatch()
            if self.commit_in_line(line) is not None:
                self.viewport.select(index, len(self.loader))
                self.viewport.shift(Alignment.TOP)
                return

    def handle_action(self, action: Action) -> bool:
        if action.kind is ActionKind.PAGER_NEXT_COMMIT:
            self._jump_to_commit(1)
            return True
        if action.kind is ActionKind.PAGER_PREVIOUS_COMMIT:
            self._jump_to_commit(-1)
            return True
        return False

    def render(self, frame: Frame, region: Region) -> None:
        count = len(self.loader)
        self.viewport.height = max(1, region.height)
        self.viewport.resolve(count, self.config.scrolloff)
        offset = self.viewport.offset
        self.render_rows(frame, region, self.loader.read(offset, offset + region.height), count)
