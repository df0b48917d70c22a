"""Single-commit view: metadata header above the list of changed files."""

from __future__ import annotations

from ..errors import StateIndexError
from ..git import Commit, FileStatus, git_show_output, parse_git_show
from ..input.bindings import Scope, ScopeKind
from ..render import Frame, Region
from ..runtime.config import Config
from .base import FileRevLine, RepoView

MIN_FILE_ROWS = 5
_STATUS_STYLES = {
    FileStatus.NEW: "\033[32m",
    FileStatus.DELETED: "\033[31m",
    FileStatus.MODIFIED: "\033[36m",
    FileStatus.UNMERGED: "\033[35m",
    FileStatus.NONE: "",
}


def style_metadata_line(line: str) -> str:
    if line.startswith("commit "):
        return f"\033[33m{line}\033[0m"
    if line.startswith(("Author:", "Date:", "Merge:")):
        return f"\033[2m{line}\033[0m"
    return line


class ShowView(RepoView):
    def __init__(self, config: Config, revision: str | None = None) -> None:
        super().__init__(config)
        self.revision = revision
        self.commit = Commit(metadata="", files=(), hash="")
        self.reload()

    def reload(self) -> None:
        self.commit = parse_git_show(git_show_output(self.config.git, self.revision))
        self.viewport.clamp(len(self.commit.files))

    def line_count(self) -> int:
        return len(self.commit.files)

    def get_line(self, index: int) -> str | None:
        if 0 <= index < len(self.commit.files):
            return self.commit.files[index][1]
        return None

    def selected_file(self) -> tuple[FileStatus, str]:
        return self.commit.files[self.selected_index()]

    def mapping_scopes(self) -> list[Scope]:
        try:
            status, _ = self.selected_file()
        except StateIndexError:
            return [Scope(ScopeKind.SHOW)]
        return [Scope(ScopeKind.SHOW, file_status=status), Scope(ScopeKind.SHOW)]

    def file_rev_line_context(self) -> FileRevLine:
        try:
            filename: str | None = self.selected_file()[1]
        except StateIndexError:
            filename = None
        return filename, self.commit.hash, None

    def render(self, frame: Frame, region: Region) -> None:
        metadata = self.commit.metadata.split("\n")
        header_height = min(len(metadata) + 1, max(0, region.height - MIN_FILE_ROWS))
        header, body = region.split_rows(header_height)
        frame.draw_lines(header, [style_metadata_line(line) for line in metadata])

        self.viewport.height = max(1, body.height)
        self.viewport.resolve(self.line_count(), self.config.scrolloff)
        rows = [
            f"{_STATUS_STYLES[status]}{status.character} {filename}\033[0m"
            for status, filename in self.commit.files[self.viewport.offset : self.viewport.offset + body.height]
        ]
        self.render_rows(frame, body, rows)
