"""Terminal control helpers for the TUI session.

Owns raw-mode lifecycle, alternate-screen switching, and mouse toggles.
Foreground shell commands borrow the terminal through ``suspended()``.
"""

from __future__ import annotations

import contextlib
import os
import sys
import termios
import tty

_ENTER_TUI = b"\x1b[?1049h\x1b[?25l\x1b[?1000h\x1b[?1002h\x1b[?1003h\x1b[?1006h"
_LEAVE_TUI = b"\x1b[?1000l\x1b[?1002l\x1b[?1003l\x1b[?1006l\x1b[?25h\x1b[?1049l"
_MOUSE_ON = b"\x1b[?1000h\x1b[?1002h\x1b[?1003h\x1b[?1006h"
_MOUSE_OFF = b"\x1b[?1000l\x1b[?1002l\x1b[?1003l\x1b[?1006l"


class TerminalController:
    """Manage terminal mode transitions for the keyboard and screen fds."""

    def __init__(self, stdin_fd: int, stdout_fd: int, owns_stdin_fd: bool = False) -> None:
        """Capture tty state and bind keyboard/screen file descriptors."""
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._owns_stdin_fd = owns_stdin_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._tui_active = False
        self._mouse_reporting_enabled = False

    @classmethod
    def open(cls) -> TerminalController:
        """Bind to the controlling terminal, even when stdin is a pipe."""
        if sys.stdin.isatty():
            return cls(sys.stdin.fileno(), sys.stdout.fileno())
        tty_fd = os.open("/dev/tty", os.O_RDONLY)
        try:
            return cls(tty_fd, sys.stdout.fileno(), owns_stdin_fd=True)
        except termios.error:
            os.close(tty_fd)
            raise

    @property
    def tui_active(self) -> bool:
        return self._tui_active

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with mouse reporting enabled."""
        if self._tui_active:
            return
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, _ENTER_TUI)
        self._mouse_reporting_enabled = True
        self._tui_active = True

    def disable_tui_mode(self) -> None:
        """Restore normal terminal state; a no-op when already restored."""
        if not self._tui_active:
            return
        self._tui_active = False
        os.write(self.stdout_fd, _LEAVE_TUI)
        self._mouse_reporting_enabled = False
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def set_mouse_reporting(self, enabled: bool) -> None:
        """Toggle terminal mouse tracking without changing other TUI state."""
        desired = bool(enabled)
        if desired == self._mouse_reporting_enabled:
            return
        os.write(self.stdout_fd, _MOUSE_ON if desired else _MOUSE_OFF)
        self._mouse_reporting_enabled = desired

    def write(self, text: str) -> None:
        os.write(self.stdout_fd, text.encode("utf-8", errors="replace"))

    def close(self) -> None:
        self.disable_tui_mode()
        if self._owns_stdin_fd:
            os.close(self.stdin_fd)
            self._owns_stdin_fd = False

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()

    @contextlib.contextmanager
    def suspended(self):
        """Hand the terminal to a child process, then re-enter TUI mode."""
        was_active = self._tui_active
        self.disable_tui_mode()
        try:
            yield
        finally:
            if was_active:
                self.enable_tui_mode()
