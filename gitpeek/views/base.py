"""Abstract view contract consumed by the event loop.

A view owns its domain data, its ``Viewport`` and its ``SearchEngine``; the
loop owns everything interactive (keys, prompt, notifications) and reaches
the view only through the methods below.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Protocol

from ..actions import Action, CommandKind
from ..ansi import strip_ansi
from ..errors import StateIndexError
from ..git import enter_repo_root
from ..input.bindings import Scope
from ..render import Frame, Region, render_list
from ..runtime.config import Config
from ..runtime.viewport import Viewport
from ..search import SearchEngine

logger = logging.getLogger(__name__)

FileRevLine = tuple[str | None, str | None, int | None]


class ViewHost(Protocol):
    """Services the event loop offers to the running view."""

    def run_command(self, kind: CommandKind, template: str) -> None: ...

    def open_view(self, view: View) -> None: ...


class View(ABC):
    """One screen of the application (status, blame, show, stash, pager)."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.viewport = Viewport(selected=0)
        self.search = SearchEngine(smartcase=config.smartcase)
        self.host: ViewHost | None = None
        self.list_region = Region(0, 0, 0, 0)

    @abstractmethod
    def render(self, frame: Frame, region: Region) -> None:
        """Draw domain content into ``region``."""

    def reload(self) -> None:
        """Refresh domain data; views without external data keep the default no-op."""

    def is_loaded(self) -> bool:
        return True

    def is_fully_loaded(self) -> bool:
        return self.is_loaded()

    @abstractmethod
    def get_line(self, index: int) -> str | None:
        """Return the searchable text of item ``index``."""

    @abstractmethod
    def line_count(self) -> int: ...

    @abstractmethod
    def mapping_scopes(self) -> list[Scope]:
        """Most specific scope first; ``global`` is appended by the resolver."""

    def status_line(self) -> str | None:
        """Text for the line notification row, if the view wants one."""
        return None

    def file_rev_line_context(self) -> FileRevLine:
        raise StateIndexError()

    def handle_action(self, action: Action) -> bool:
        """Run a view-specific action; return false to let the core try it."""
        return False

    def on_exit(self) -> None:
        pass

    def selected_index(self) -> int:
        if self.viewport.selected is None or self.viewport.selected >= self.line_count():
            raise StateIndexError()
        return self.viewport.selected

    def selected_text(self) -> str | None:
        selected = self.viewport.selected
        if selected is None:
            return None
        line = self.get_line(selected)
        return None if line is None else strip_ansi(line)

    def on_click(self, column: int, row: int) -> bool:
        """Select the clicked row of the list region."""
        if not self.list_region.contains(column, row):
            return False
        return self.viewport.select_row(row - self.list_region.y, self.line_count())

    def on_scroll(self, down: bool, column: int, row: int) -> None:
        self.viewport.scroll(down, self.config.scroll_step, self.line_count(), self.config.scrolloff)

    def render_rows(
        self,
        frame: Frame,
        region: Region,
        rows: list[str] | None = None,
        count: int | None = None,
    ) -> None:
        """Draw the visible slice of this view's lines with selection and matches.

        ``rows`` may supply display text for the visible slice when it differs
        from the searchable ``get_line`` text. ``count`` must then be the line
        count ``rows`` was sliced against, so a growing view keeps one offset
        for the whole frame.
        """
        self.list_region = region
        self.viewport.height = max(1, region.height)
        if count is None:
            count = self.line_count()
        self.viewport.resolve(count, self.config.scrolloff)
        if rows is None:
            rows = [self.get_line(i) or "" for i in self.viewport.visible_range(count)]
        render_list(frame, region, rows, self.viewport.offset, self.viewport.selected, self.search.regex)


class RepoView(View):
    """View that runs from the repository root and restores the cwd on exit."""

    def __init__(self, config: Config, enter_root: bool = True) -> None:
        super().__init__(config)
        self._original_dir: Path | None = enter_repo_root(config.git) if enter_root else None

    def on_exit(self) -> None:
        if self._original_dir is not None:
            os.chdir(self._original_dir)
            self._original_dir = None
