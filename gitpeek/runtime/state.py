"""Per-view interaction state owned by the event loop.

Nothing here is touched by the stream loader thread.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from ..input.bindings import BindingTable
from ..input.line_editor import LineEditor
from ..input.resolver import ClickRegion, KeyResolver

ERROR_SECONDS = 4.0
ECHO_SECONDS = 4.0


class Channel(Enum):
    """Notification rows, drawn in declaration order."""

    SEARCH = 0
    ECHO = 1
    LINE = 2
    KEYS = 3
    ERROR = 4


class InputMode(Enum):
    NORMAL = ""
    SEARCH = "/"
    SEARCH_REVERSE = "?"
    COMMAND = ":"

    @property
    def prefix(self) -> str:
        return self.value


@dataclass
class Notification:
    text: str
    until: float | None = None
    spinner: bool = False


class Notifications:
    """Transient status rows keyed by channel; timed rows expire on ``expire()``."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._rows: dict[Channel, Notification] = {}

    def set(self, channel: Channel, text: str, duration: float | None = None, spinner: bool = False) -> None:
        until = None if duration is None else self._clock() + duration
        self._rows[channel] = Notification(text, until, spinner)

    def clear(self, channel: Channel) -> None:
        self._rows.pop(channel, None)

    def get(self, channel: Channel) -> Notification | None:
        return self._rows.get(channel)

    def expire(self) -> bool:
        """Drop rows whose time is up; return whether anything changed."""
        now = self._clock()
        expired = [channel for channel, row in self._rows.items() if row.until is not None and now >= row.until]
        for channel in expired:
            del self._rows[channel]
        return bool(expired)

    def rows(self) -> list[tuple[Channel, Notification]]:
        return sorted(self._rows.items(), key=lambda item: item[0].value)

    def __len__(self) -> int:
        return len(self._rows)


@dataclass
class ViewSession:
    """Interaction state of one running view: keys, prompt, chrome, quit flag."""

    bindings: BindingTable
    resolver: KeyResolver = field(init=False)
    editor: LineEditor = field(default_factory=LineEditor)
    mode: InputMode = InputMode.NORMAL
    notifications: Notifications = field(default_factory=Notifications)
    regions: list[ClickRegion] = field(default_factory=list)
    mouse_position: tuple[int, int] | None = None
    mouse_down: bool = False
    quit: bool = False
    dirty: bool = True

    def __post_init__(self) -> None:
        self.resolver = KeyResolver(self.bindings)

    @property
    def editing(self) -> bool:
        return self.mode is not InputMode.NORMAL

    def enter_mode(self, mode: InputMode) -> None:
        self.editor.cancel()
        self.resolver.reset()
        self.mode = mode
        self.dirty = True

    def leave_mode(self) -> None:
        self.editor.cancel()
        self.mode = InputMode.NORMAL
        self.dirty = True

    def error(self, message: str) -> None:
        self.notifications.set(Channel.ERROR, message, ERROR_SECONDS)
        self.dirty = True

    def echo(self, message: str) -> None:
        self.notifications.set(Channel.ECHO, message, ECHO_SECONDS)
        self.dirty = True
