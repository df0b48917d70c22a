"""Closed action vocabulary and the text parser used by config and ``:`` mode.

An ``Action`` is an immutable tagged value. Plain keywords map to a kind with
no payload; numbers become ``goto`` and ``!``/``>``/``@`` prefixes become
shell commands.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ActionParseError


class CommandKind(Enum):
    """Execution policy of a shell command action."""

    ASYNC = "@"
    SYNC = "!"
    SYNC_QUIT = ">"


class ActionKind(Enum):
    NONE = "nop"
    RELOAD = "reload"
    QUIT = "quit"
    UP = "up"
    DOWN = "down"
    FIRST = "first"
    LAST = "last"
    HALF_PAGE_UP = "half_page_up"
    HALF_PAGE_DOWN = "half_page_down"
    GOTO = "goto"
    SHIFT_LINE_TOP = "shift_line_top"
    SHIFT_LINE_MIDDLE = "shift_line_middle"
    SHIFT_LINE_BOTTOM = "shift_line_bottom"
    SEARCH = "search"
    SEARCH_REVERSE = "search_reverse"
    NEXT_SEARCH_RESULT = "next_search_result"
    PREVIOUS_SEARCH_RESULT = "previous_search_result"
    TYPE_COMMAND = "type_command"
    COMMAND = "command"
    ECHO = "echo"
    SET = "set"
    MAP = "map"
    BUTTON = "button"
    # view-specific vocabulary
    STAGE_UNSTAGE_FILE = "stage_unstage_file"
    STAGE_UNSTAGE_FILES = "stage_unstage_files"
    STATUS_SWITCH_VIEW = "status_switch_view"
    FOCUS_UNSTAGED_VIEW = "focus_unstaged_view"
    FOCUS_STAGED_VIEW = "focus_staged_view"
    OPEN_GIT_SHOW = "open_git_show"
    OPEN_LOG_APP = "open_log_app"
    OPEN_SHOW_APP = "open_show_app"
    NEXT_COMMIT_BLAME = "next_commit_blame"
    PREVIOUS_COMMIT_BLAME = "previous_commit_blame"
    PAGER_NEXT_COMMIT = "pager_next_commit"
    PAGER_PREVIOUS_COMMIT = "pager_previous_commit"
    STASH_POP = "stash_pop"
    STASH_APPLY = "stash_apply"
    STASH_DROP = "stash_drop"


# Kinds carrying the rest of the line as free text.
_TEXT_KINDS = frozenset({ActionKind.ECHO, ActionKind.SET, ActionKind.MAP, ActionKind.BUTTON})
# Kinds that are never reachable through a bare keyword.
_NON_KEYWORD_KINDS = frozenset({ActionKind.COMMAND})

_KEYWORDS: dict[str, ActionKind] = {
    kind.value: kind for kind in ActionKind if kind not in _NON_KEYWORD_KINDS
}


@dataclass(frozen=True)
class Action:
    """One user-triggerable operation.

    ``text`` holds the payload of ``command``/``echo``/``set``/``map``/``button``
    actions, ``index`` the 0-based target of ``goto`` and ``command_kind`` the
    execution policy of ``command``.
    """

    kind: ActionKind
    text: str = ""
    index: int = 0
    command_kind: CommandKind | None = None

    @classmethod
    def goto(cls, index: int) -> Action:
        return cls(ActionKind.GOTO, index=max(0, index))

    @classmethod
    def command(cls, command_kind: CommandKind, template: str) -> Action:
        return cls(ActionKind.COMMAND, text=template, command_kind=command_kind)

    @property
    def is_none(self) -> bool:
        return self.kind is ActionKind.NONE

    def __str__(self) -> str:
        if self.kind is ActionKind.COMMAND and self.command_kind is not None:
            return f"{self.command_kind.value}{self.text}"
        if self.kind is ActionKind.GOTO:
            return f"goto {self.index + 1}"
        if self.kind in _TEXT_KINDS:
            return f"{self.kind.value} {self.text}".rstrip()
        return self.kind.value


NOOP = Action(ActionKind.NONE)


def _parse_positive_int(text: str) -> int | None:
    if not text or not (text.isascii() and text.isdigit()):
        return None
    number = int(text)
    return number if number > 0 else None


def parse_action(text: str) -> Action:
    """Parse free text into an ``Action``.

    Keywords are matched case-sensitively on the first word. Anything else is
    tried as a 1-based line number, then as a shell command introduced by
    ``!`` (sync), ``>`` (sync then quit) or ``@`` (async). ``"0"`` is not a
    valid line number and therefore fails as an unprefixed command.
    """
    keyword, _, parameters = text.partition(" ")
    kind = _KEYWORDS.get(keyword)
    if kind is not None:
        if kind in _TEXT_KINDS:
            return Action(kind, text=parameters)
        if kind is ActionKind.GOTO:
            number = _parse_positive_int(parameters.strip())
            return Action.goto(number - 1 if number is not None else 0)
        return Action(kind)

    number = _parse_positive_int(text)
    if number is not None:
        return Action.goto(number - 1)

    if text:
        try:
            command_kind = CommandKind(text[0])
        except ValueError:
            command_kind = None
        if command_kind is not None:
            return Action.command(command_kind, text[1:])
    raise ActionParseError(text)
