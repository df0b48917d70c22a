"""Stash list view; pop/apply/drop run as foreground git commands."""

from __future__ import annotations

from ..actions import Action, ActionKind, CommandKind
from ..git import Stash, git_stash_output, parse_git_stash
from ..input.bindings import Scope, ScopeKind
from ..render import Frame, Region
from ..runtime.config import Config
from .base import FileRevLine, RepoView

EMPTY_MESSAGE = "No stash entries"
_STASH_COMMANDS = {
    ActionKind.STASH_POP: "%(git) stash pop %(rev)",
    ActionKind.STASH_APPLY: "%(git) stash apply %(rev)",
    ActionKind.STASH_DROP: "%(git) stash drop %(rev)",
}


def stash_ref(index: int) -> str:
    return f"stash@{{{index}}}"


class StashView(RepoView):
    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self.stashes: list[Stash] = []
        self.reload()

    def reload(self) -> None:
        self.stashes = parse_git_stash(git_stash_output(self.config.git))
        self.viewport.clamp(len(self.stashes))

    def line_count(self) -> int:
        return len(self.stashes)

    def get_line(self, index: int) -> str | None:
        if 0 <= index < len(self.stashes):
            return self.stashes[index].title
        return None

    def mapping_scopes(self) -> list[Scope]:
        return [Scope(ScopeKind.STASH)]

    def file_rev_line_context(self) -> FileRevLine:
        return None, stash_ref(self.selected_index()), None

    def handle_action(self, action: Action) -> bool:
        template = _STASH_COMMANDS.get(action.kind)
        if template is None or self.host is None:
            return False
        self.selected_index()  # raises StateIndexError on an empty list
        self.host.run_command(CommandKind.SYNC, template)
        return True

    def render(self, frame: Frame, region: Region) -> None:
        if not self.stashes:
            self.list_region = Region(region.x, region.y, region.width, 0)
            frame.draw_lines(region, [EMPTY_MESSAGE])
            return
        self.viewport.height = max(1, region.height)
        self.viewport.resolve(len(self.stashes), self.config.scrolloff)
        width = len(stash_ref(len(self.stashes) - 1))
        rows = [
            f"\033[33m{stash_ref(i):<{width}}\033[0m \033[34m{self.stashes[i].date}\033[0m {self.stashes[i].title}"
            for i in self.viewport.visible_range(len(self.stashes))
        ]
        self.render_rows(frame, region, rows)
