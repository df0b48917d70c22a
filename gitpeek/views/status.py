"""Working-tree status view with unstaged and staged tables.

Staging toggles only move files between the two tables in memory; the git
commands that make it real run on reload, before shell commands and on exit.
"""

from __future__ import annotations

import logging

from ..actions import Action, ActionKind
from ..errors import StateIndexError
from ..git import (
    FileStatus,
    GitFile,
    StagedStatus,
    apply_staging,
    git_status_output,
    parse_git_status,
)
from ..input.bindings import Scope, ScopeKind
from ..render import Frame, Region
from ..runtime.config import Config
from .base import FileRevLine, RepoView

logger = logging.getLogger(__name__)

CLEAN_MESSAGE = "Nothing to commit, working tree clean"
_TABLE_STYLES = {StagedStatus.UNSTAGED: "\033[31m", StagedStatus.STAGED: "\033[32m"}
_TABLE_TITLES = {StagedStatus.UNSTAGED: "Not staged:", StagedStatus.STAGED: "Staged:"}

StatusTable = list[tuple[FileStatus, str]]


def compute_tables(files: dict[str, GitFile]) -> tuple[StatusTable, StatusTable]:
    """Split files into (unstaged, staged) tables sorted by status then name."""
    unstaged = [(f.unstaged_status, name) for name, f in files.items() if f.unstaged_status is not FileStatus.NONE]
    staged = [(f.staged_status, name) for name, f in files.items() if f.staged_status is not FileStatus.NONE]
    unstaged.sort(key=lambda item: (item[0].value, item[1]))
    staged.sort(key=lambda item: (item[0].value, item[1]))
    return unstaged, staged


def shorten_filename(filename: str, width: int) -> str:
    """Keep the end of a path that does not fit, prefixed by ``...``."""
    if width > 5 and len(filename) + 2 > width:
        keep = width - len("X ...")
        return "..." + filename[len(filename) - keep :]
    return filename


class StatusView(RepoView):
    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self.focus = StagedStatus.UNSTAGED
        self.git_files: dict[str, GitFile] = {}
        self.unstaged_table: StatusTable = []
        self.staged_table: StatusTable = []
        self._table_regions: dict[StagedStatus, Region] = {}
        self.reload()

    def _table(self, staged: StagedStatus) -> StatusTable:
        return self.staged_table if staged is StagedStatus.STAGED else self.unstaged_table

    @property
    def current_table(self) -> StatusTable:
        return self._table(self.focus)

    def tables_are_empty(self) -> bool:
        return not self.unstaged_table and not self.staged_table

    def _recompute(self) -> None:
        self.unstaged_table, self.staged_table = compute_tables(self.git_files)
        if not self.tables_are_empty() and not self.current_table:
            self._switch_focus(self.focus.other())

    def _switch_focus(self, focus: StagedStatus) -> None:
        self.focus = focus
        self.viewport.selected = 0
        self.viewport.offset = 0

    def flush_staging(self) -> None:
        apply_staging(self.git_files, self.config.git)

    def reload(self) -> None:
        self.flush_staging()
        self.git_files = parse_git_status(git_status_output(self.config.git))
        self._recompute()

    def on_exit(self) -> None:
        try:
            self.flush_staging()
        finally:
            super().on_exit()

    def line_count(self) -> int:
        return len(self.current_table)

    def get_line(self, index: int) -> str | None:
        if 0 <= index < len(self.current_table):
            return self.current_table[index][1]
        return None

    def selected_filename(self) -> str:
        return self.current_table[self.selected_index()][1]

    def mapping_scopes(self) -> list[Scope]:
        try:
            git_file = self.git_files[self.selected_filename()]
        except (StateIndexError, KeyError):
            return [Scope(ScopeKind.STATUS)]
        file_status = git_file.staged_status if self.focus is StagedStatus.STAGED else git_file.unstaged_status
        return [
            Scope(ScopeKind.STATUS, self.focus, file_status),
            Scope(ScopeKind.STATUS, self.focus),
            Scope(ScopeKind.STATUS),
        ]

    def file_rev_line_context(self) -> FileRevLine:
        try:
            filename: str | None = self.selected_filename()
        except StateIndexError:
            filename = None
        return filename, "HEAD", None

    def handle_action(self, action: Action) -> bool:
        kind = action.kind
        if kind is ActionKind.STAGE_UNSTAGE_FILE:
            self.git_files[self.selected_filename()].toggle(self.focus)
        elif kind is ActionKind.STAGE_UNSTAGE_FILES:
            for _, filename in list(self.current_table):
                self.git_files[filename].toggle(self.focus)
        elif kind is ActionKind.STATUS_SWITCH_VIEW:
            if self._table(self.focus.other()):
                self._switch_focus(self.focus.other())
            return True
        elif kind is ActionKind.FOCUS_UNSTAGED_VIEW:
            self._switch_focus(StagedStatus.UNSTAGED)
        elif kind is ActionKind.FOCUS_STAGED_VIEW:
            self._switch_focus(StagedStatus.STAGED)
        elif kind is ActionKind.COMMAND:
            # shell commands must see the index the user sees
            self.flush_staging()
            return False
        else:
            return False
        self._recompute()
        return True

    def _table_at(self, row: int) -> StagedStatus | None:
        for staged, region in self._table_regions.items():
            if region.y <= row < region.y + region.height:
                return staged
        return None

    def on_click(self, column: int, row: int) -> bool:
        staged = self._table_at(row)
        if staged is None:
            return False
        if staged is not self.focus:
            self._switch_focus(staged)
        _, self.list_region = self._table_regions[staged].split_rows(1)
        return super().on_click(column, row)

    def on_scroll(self, down: bool, column: int, row: int) -> None:
        staged = self._table_at(row)
        if staged is not None and staged is not self.focus and self._table(staged):
            self._switch_focus(staged)
        super().on_scroll(down, column, row)

    def _format_rows(self, table: StatusTable, start: int, count: int, width: int, style: str) -> list[str]:
        rows = []
        for status, filename in table[start : start + count]:
            rows.append(f"{style}{status.character} {shorten_filename(filename, width)}\033[0m")
        return rows

    def render(self, frame: Frame, region: Region) -> None:
        self._table_regions = {}
        if self.tables_are_empty():
            self.list_region = Region(region.x, region.y, region.width, 0)
            frame.draw_lines(region, [CLEAN_MESSAGE])
            return

        top, bottom = region.split_rows(region.height // 2)
        for staged, area in ((StagedStatus.UNSTAGED, top), (StagedStatus.STAGED, bottom)):
            if area.height <= 0:
                continue
            self._table_regions[staged] = area
            frame.put(area.y, f"\033[1m{_TABLE_TITLES[staged]}\033[0m", area.x, area.width)
            _, body = area.split_rows(1)
            style = _TABLE_STYLES[staged]
            table = self._table(staged)
            if staged is self.focus:
                self.viewport.height = max(1, body.height)
                self.viewport.resolve(len(table), self.config.scrolloff)
                rows = self._format_rows(table, self.viewport.offset, body.height, body.width, style)
                self.render_rows(frame, body, rows)
            else:
                frame.draw_lines(body, self._format_rows(table, 0, body.height, body.width, style))
