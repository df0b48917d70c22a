"""Shell command execution for ``!``, ``>`` and ``@`` actions.

Templates are filled from the current view's context and run through the
platform shell. Foreground commands borrow the terminal from the TUI; a
failing foreground command pauses so its output stays readable.
"""

from __future__ import annotations

import logging
import re
import subprocess
import sys
from dataclasses import dataclass

from ..actions import CommandKind
from ..errors import CommandSpawnError
from .terminal import TerminalController

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"%\((\w+)\)")

_POSIX_PAUSE = (
    "status=$?\n"
    "if [ $status -ne 0 ]; then\n"
    "  printf '\\n[exit status %s] press enter to continue' \"$status\"\n"
    "  read -r _\n"
    "fi\n"
    "exit $status"
)


@dataclass(frozen=True)
class CommandContext:
    """Values available to ``%(name)`` placeholders; ``None`` means unset."""

    file: str | None = None
    rev: str | None = None
    line: int | None = None
    text: str | None = None
    clip: str | None = None
    git: str | None = None

    def values(self) -> dict[str, str]:
        values = {
            "file": self.file,
            "rev": self.rev,
            "line": None if self.line is None else str(self.line),
            "text": self.text,
            "clip": self.clip,
            "git": self.git,
        }
        return {name: value for name, value in values.items() if value is not None}


def substitute(template: str, context: CommandContext) -> str:
    """Replace known placeholders in one pass; unset ones stay verbatim."""
    values = context.values()
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def shell_argv(command: str, pause_on_error: bool = True) -> list[str]:
    if sys.platform.startswith("win"):
        if pause_on_error:
            return ["cmd", "/C", f"{command} || pause"]
        return ["cmd", "/C", command]
    if pause_on_error:
        return ["bash", "-c", f"{command}\n{_POSIX_PAUSE}"]
    return ["bash", "-c", command]


class CommandRunner:
    """Runs substituted commands under one of three execution policies."""

    def __init__(self, terminal: TerminalController | None) -> None:
        self.terminal = terminal
        self._background: list[subprocess.Popen] = []

    def execute(self, kind: CommandKind, template: str, context: CommandContext) -> None:
        """Run ``template`` with ``context`` according to ``kind``.

        Raises ``CommandSpawnError`` when the shell cannot be started. For
        ``SYNC_QUIT`` the terminal is left in cooked mode on success; the
        caller is expected to quit.
        """
        command = substitute(template, context)
        logger.info("running %s command: %s", kind.name.lower(), command)
        self._reap_background()
        if kind is CommandKind.ASYNC:
            self._spawn_detached(command)
        elif kind is CommandKind.SYNC:
            self._run_foreground(command)
        else:
            self._run_foreground_then_quit(command)

    def _spawn_detached(self, command: str) -> None:
        try:
            proc = subprocess.Popen(
                shell_argv(command, pause_on_error=False),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            raise CommandSpawnError(command, exc) from exc
        self._background.append(proc)

    def _run_foreground(self, command: str) -> None:
        if self.terminal is None:
            self._wait_foreground(command)
            return
        with self.terminal.suspended():
            self._wait_foreground(command)

    def _run_foreground_then_quit(self, command: str) -> None:
        if self.terminal is not None:
            self.terminal.disable_tui_mode()
        try:
            self._wait_foreground(command)
        except CommandSpawnError:
            if self.terminal is not None:
                self.terminal.enable_tui_mode()
            raise

    def _wait_foreground(self, command: str) -> None:
        try:
            proc = subprocess.run(shell_argv(command), check=False)
        except OSError as exc:
            raise CommandSpawnError(command, exc) from exc
        logger.debug("command exited with status %s", proc.returncode)

    def _reap_background(self) -> None:
        self._background = [proc for proc in self._background if proc.poll() is None]
