"""Git subprocess boundary: command runners and output parsers.

Every view gets its data through these helpers. They raise ``GitCommandError``
on non-zero exits and ``GitParseError`` when output does not have the
expected shape, so callers never see raw ``CompletedProcess`` objects.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .errors import GitCommandError, GitParseError, NotInGitRepoError, ScopeParseError

logger = logging.getLogger(__name__)

UNCOMMITTED_AUTHOR = "Not Committed Yet"

_BLAME_RE = re.compile(
    r"^(?P<hash>\^?[0-9a-f]+)\s+(?:(?P<file>\S+)\s+)?\((?P<author>.*?)\s+"
    r"(?P<date>\d{4}-\d{2}-\d{2}) \d{2}:\d{2}:\d{2} [+-]\d{4}\s+(?P<line>\d+)\)(?P<code>.*)$"
)


class FileStatus(Enum):
    """Per-file change kind; the value doubles as the table sort key."""

    NONE = 0
    UNMERGED = 1
    NEW = 2
    MODIFIED = 3
    DELETED = 4

    @property
    def character(self) -> str:
        return _STATUS_CHARACTERS[self]

    @property
    def scope_name(self) -> str:
        return _STATUS_SCOPE_NAMES[self]

    @classmethod
    def parse(cls, text: str) -> FileStatus:
        for status, name in _STATUS_SCOPE_NAMES.items():
            if name == text and status is not cls.NONE:
                return status
        raise ScopeParseError(text)


_STATUS_CHARACTERS = {
    FileStatus.NONE: " ",
    FileStatus.UNMERGED: "@",
    FileStatus.NEW: "+",
    FileStatus.MODIFIED: ">",
    FileStatus.DELETED: "-",
}
_STATUS_SCOPE_NAMES = {
    FileStatus.NONE: "none",
    FileStatus.UNMERGED: "conflicted",
    FileStatus.NEW: "new",
    FileStatus.MODIFIED: "modified",
    FileStatus.DELETED: "deleted",
}


class StagedStatus(Enum):
    UNSTAGED = "unstaged"
    STAGED = "staged"

    @classmethod
    def parse(cls, text: str) -> StagedStatus:
        try:
            return cls(text)
        except ValueError:
            raise ScopeParseError(text) from None

    def other(self) -> StagedStatus:
        return StagedStatus.STAGED if self is StagedStatus.UNSTAGED else StagedStatus.UNSTAGED


class GitOp(Enum):
    ADD = ("add",)
    RESTORE = ("restore", "--staged")
    RM_CACHED = ("rm", "--cached")


@dataclass
class GitFile:
    """Staging state of one file: what git reported and what the user wants.

    Toggling only changes the wanted statuses; ``git_op`` derives the git
    command needed to reach them from the statuses git last reported.
    """

    unstaged_status: FileStatus
    staged_status: FileStatus
    init_unstaged_status: FileStatus = field(init=False)
    init_staged_status: FileStatus = field(init=False)

    def __post_init__(self) -> None:
        self.reinit()

    def set_status(self, unstaged_status: FileStatus, staged_status: FileStatus) -> None:
        self.unstaged_status = unstaged_status
        self.staged_status = staged_status

    def toggle(self, focus: StagedStatus) -> None:
        if focus is StagedStatus.UNSTAGED and self.unstaged_status is FileStatus.UNMERGED:
            self.set_status(FileStatus.NONE, FileStatus.MODIFIED)
        elif focus is StagedStatus.UNSTAGED:
            self.set_status(FileStatus.NONE, self.unstaged_status)
        else:
            self.set_status(self.staged_status, FileStatus.NONE)

    def git_op(self) -> GitOp | None:
        if (
            self.init_unstaged_status is not FileStatus.NONE
            and self.unstaged_status is FileStatus.NONE
            and self.staged_status is not FileStatus.NONE
        ):
            return GitOp.ADD
        if self.init_staged_status is not FileStatus.NONE and self.staged_status is FileStatus.NONE:
            if self.unstaged_status is FileStatus.NEW:
                return GitOp.RM_CACHED
            if self.unstaged_status is FileStatus.NONE:
                return None
            return GitOp.RESTORE
        return None

    def reinit(self) -> None:
        self.init_unstaged_status = self.unstaged_status
        self.init_staged_status = self.staged_status


@dataclass(frozen=True)
class BlameEntry:
    hash: str
    author: str
    date: str
    filename: str | None = None


@dataclass(frozen=True)
class Commit:
    metadata: str
    files: tuple[tuple[FileStatus, str], ...]
    hash: str


@dataclass(frozen=True)
class Stash:
    date: str
    title: str


def run_git(git_exe: str, args: list[str], *, cwd: Path | None = None) -> str:
    """Run ``git`` to completion and return its decoded stdout."""
    logger.debug("running %s %s", git_exe, " ".join(args))
    try:
        proc = subprocess.run(
            [git_exe, *args],
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as exc:
        raise GitCommandError(args, str(exc)) from exc
    if proc.returncode != 0:
        detail = proc.stderr.strip().splitlines()[0] if proc.stderr.strip() else ""
        raise GitCommandError(args, detail)
    return proc.stdout


def adapt_repo_root(root: str) -> str:
    """Translate a Windows git root reported inside WSL to its mount path."""
    if sys.platform.startswith("linux") and root.startswith("C:/"):
        return root.replace("C:/", "/mnt/c/", 1)
    return root


def repo_root(git_exe: str) -> Path:
    try:
        output = run_git(git_exe, ["rev-parse", "--show-toplevel"])
    except GitCommandError as exc:
        raise NotInGitRepoError() from exc
    return Path(adapt_repo_root(output.strip()))


def enter_repo_root(git_exe: str) -> Path:
    """Change into the repository root and return the previous directory."""
    original = Path.cwd()
    os.chdir(repo_root(git_exe))
    return original


def output_lines(output: str) -> list[str]:
    """Split git output on newlines only, dropping a trailing carriage return.

    ``str.splitlines`` would also break on form feeds and other separators
    that git passes through inside file contents and names.
    """
    lines = output.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def git_status_output(git_exe: str) -> str:
    return run_git(git_exe, ["status", "--short", "--no-renames"])


_UNSTAGED_CODES = {"?": FileStatus.NEW, "D": FileStatus.DELETED, "M": FileStatus.MODIFIED, "U": FileStatus.UNMERGED}
_STAGED_CODES = {"A": FileStatus.NEW, "D": FileStatus.DELETED, "M": FileStatus.MODIFIED}


def parse_git_status(output: str) -> dict[str, GitFile]:
    files: dict[str, GitFile] = {}
    for line in output_lines(output):
        if not line.strip():
            continue
        if len(line) < 3:
            raise GitParseError(f"short status line {line!r}")
        filename = line[2:].strip()
        files[filename] = GitFile(
            unstaged_status=_UNSTAGED_CODES.get(line[1], FileStatus.NONE),
            staged_status=_STAGED_CODES.get(line[0], FileStatus.NONE),
        )
    return files


def apply_staging(files: dict[str, GitFile], git_exe: str) -> None:
    """Run the pending add/restore/rm operations, then accept the new state."""
    for op in GitOp:
        targets = sorted(name for name, git_file in files.items() if git_file.git_op() is op)
        if not targets:
            continue
        run_git(git_exe, [*op.value, "--", *targets])
    for git_file in files.values():
        git_file.reinit()


def git_blame_output(git_exe: str, filename: str, revision: str | None = None) -> str:
    args = ["blame"]
    if revision:
        args.append(revision)
    args.extend(["--", filename])
    return run_git(git_exe, args).replace("\t", "    ")


def parse_git_blame(output: str) -> tuple[list[BlameEntry | None], list[str]]:
    """Split ``git blame`` output into per-line commit info and code."""
    blames: list[BlameEntry | None] = []
    code: list[str] = []
    for line in output_lines(output):
        match = _BLAME_RE.match(line)
        if match is None:
            raise GitParseError(f"unexpected blame line {line!r}")
        text = match.group("code")
        code.append(text[1:] if text.startswith(" ") else text)
        commit_hash = match.group("hash")
        if commit_hash.lstrip("^").startswith("0000"):
            blames.append(None)
            continue
        blames.append(
            BlameEntry(
                hash=commit_hash,
                author=match.group("author").strip(),
                date=match.group("date"),
                filename=match.group("file"),
            )
        )
    return blames, code


def git_show_output(git_exe: str, revision: str | None) -> str:
    args = ["show", "--decorate", "--name-status", "--no-renames", "--format=medium"]
    if revision:
        args.append(revision)
    return run_git(git_exe, args)


_SHOW_FILE_CODES = {"M": FileStatus.MODIFIED, "A": FileStatus.NEW, "D": FileStatus.DELETED}


def parse_git_show(output: str) -> Commit:
    lines = iter(output_lines(output))
    first = next(lines, None)
    if first is None:
        raise GitParseError("empty show output")
    words = first.split()
    if len(words) < 2:
        raise GitParseError(f"no commit hash in {first!r}")
    metadata = [first]

    for line in lines:
        metadata.append(line)
        if not line:
            break

    files: list[tuple[FileStatus, str]] = []
    parsing_files = False
    for line in lines:
        if not parsing_files:
            if line[:1].isspace() or not line:
                metadata.append(line)
                continue
            parsing_files = True
        status = _SHOW_FILE_CODES.get(line[:1])
        if status is None:
            break
        _, tab, filename = line.partition("\t")
        if not tab:
            raise GitParseError(f"unexpected file line {line!r}")
        files.append((status, filename))

    files.sort(key=lambda item: (item[0].value, item[1]))
    return Commit(metadata="\n".join(metadata), files=tuple(files), hash=words[1])


def git_stash_output(git_exe: str) -> str:
    return run_git(git_exe, ["stash", "list", "--format=%cd\t%s", "--date=iso-local"])


def parse_git_stash(output: str) -> list[Stash]:
    stashes: list[Stash] = []
    for line in output_lines(output):
        if not line:
            continue
        full_date, tab, title = line.partition("\t")
        date, space, _ = full_date.partition(" ")
        if not tab or not space:
            raise GitParseError(f"unexpected stash line {line!r}")
        stashes.append(Stash(date=date, title=title))
    return stashes


def previous_filename(git_exe: str, revision: str, current: str) -> str:
    """Return the name ``current`` had before ``revision`` renamed it."""
    output = run_git(git_exe, ["diff", "--name-status", f"{revision}^", revision])
    for line in output_lines(output):
        if not line.startswith("R"):
            continue
        parts = line.split()
        if len(parts) == 3 and parts[2] == current:
            return parts[1]
    return current


def is_valid_revision(git_exe: str, revision: str) -> bool:
    try:
        run_git(git_exe, ["rev-parse", "--verify", "--quiet", revision])
    except GitCommandError:
        return False
    return True


def pager_argv(git_exe: str, command: str, args: list[str]) -> list[str]:
    return [git_exe, command, "--color=always", *args]
