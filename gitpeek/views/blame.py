"""Blame view: per-line commit info beside highlighted source.

Walking back in history pushes ``<hash>^`` (plus the file's older name when
that commit renamed it) on a revision stack; walking forward pops it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from ..actions import Action, ActionKind
from ..ansi import highlight_regex_matches
from ..errors import GitpeekError, MissingFileError
from ..git import (
    UNCOMMITTED_AUTHOR,
    BlameEntry,
    git_blame_output,
    parse_git_blame,
    previous_filename,
    repo_root,
)
from ..highlight import highlight_lines
from ..input.bindings import Scope, ScopeKind
from ..render import Frame, Region, render_list
from ..runtime.config import Config
from .base import FileRevLine, RepoView

logger = logging.getLogger(__name__)

_SEPARATOR = " \033[2m│\033[0m "


@dataclass(frozen=True)
class BlameTarget:
    revision: str | None
    filename: str


def format_blame_column(
    entry: BlameEntry | None,
    index: int,
    author_width: int,
    number_width: int,
) -> str:
    if entry is None:
        return f"{UNCOMMITTED_AUTHOR:<{author_width + 17}}{index + 1:>{number_width}}"
    return (
        f"\033[34m{entry.hash[:4]:<4}\033[0m "
        f"\033[33m{entry.author:<{author_width}}\033[0m "
        f"\033[34m{entry.date}\033[0m "
        f"\033[33m{index + 1:>{number_width}}\033[0m"
    )


class BlameView(RepoView):
    def __init__(
        self,
        config: Config,
        filename: str,
        revision: str | None = None,
        line: int | None = None,
    ) -> None:
        if revision is None and not Path(filename).exists():
            raise MissingFileError(filename)
        root = repo_root(config.git)
        relative = os.path.relpath(Path(filename).resolve(), root.resolve())
        super().__init__(config)
        self.targets: list[BlameTarget] = [BlameTarget(revision, Path(relative).as_posix())]
        self.blames: list[BlameEntry | None] = []
        self.code: list[str] = []
        self.highlighted: list[str] = []
        if line is not None:
            self.viewport.selected = max(0, line - 1)
        self.reload()

    @property
    def target(self) -> BlameTarget:
        return self.targets[-1]

    def reload(self) -> None:
        target = self.target
        output = git_blame_output(self.config.git, target.filename, target.revision)
        blames, code = parse_git_blame(output)
        if not blames and len(self.targets) > 1:
            self.targets.pop()
            return
        self.blames = blames
        self.code = code
        self.highlighted = highlight_lines(code, target.filename)
        self.viewport.clamp(len(self.code))

    def line_count(self) -> int:
        return len(self.code)

    def get_line(self, index: int) -> str | None:
        if 0 <= index < len(self.code):
            return self.code[index]
        return None

    def mapping_scopes(self) -> list[Scope]:
        return [Scope(ScopeKind.BLAME)]

    def file_rev_line_context(self) -> FileRevLine:
        index = self.selected_index()
        entry = self.blames[index]
        rev = None if entry is None else entry.hash.lstrip("^")
        return self.target.filename, rev, index + 1

    def handle_action(self, action: Action) -> bool:
        if action.kind is ActionKind.NEXT_COMMIT_BLAME:
            if len(self.targets) > 1:
                self.targets.pop()
                self.reload()
            return True
        if action.kind is ActionKind.PREVIOUS_COMMIT_BLAME:
            self._push_previous_commit()
            return True
        return False

    def _push_previous_commit(self) -> None:
        entry = self.blames[self.selected_index()]
        if entry is None:
            self.targets.append(BlameTarget("HEAD", self.target.filename))
        elif entry.hash.startswith("^"):
            # boundary commit: nothing older to blame
            return
        else:
            current = entry.filename or self.target.filename
            filename = previous_filename(self.config.git, entry.hash, current)
            self.targets.append(BlameTarget(f"{entry.hash}^", filename))
        try:
            self.reload()
        except GitpeekError:
            self.targets.pop()
            raise

    def render(self, frame: Frame, region: Region) -> None:
        self.list_region = region
        self.viewport.height = max(1, region.height)
        count = self.line_count()
        self.viewport.resolve(count, self.config.scrolloff)

        author_width = max((len(e.author) if e else 0 for e in self.blames), default=0)
        number_width = len(str(count))
        rows = []
        for index in self.viewport.visible_range(count):
            blame = format_blame_column(self.blames[index], index, author_width, number_width)
            code = highlight_regex_matches(self.highlighted[index], self.search.regex)
            rows.append(f"{blame}{_SEPARATOR}{code}")
        render_list(frame, region, rows, self.viewport.offset, self.viewport.selected)
