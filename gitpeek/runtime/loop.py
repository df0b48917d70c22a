"""Event loop: render, poll input, resolve an action, dispatch, repeat.

One ``EventLoop`` serves the whole process. ``run(view)`` drives a view until
it quits; sub-views opened from a view run in a nested ``run`` on the same
terminal and the parent reloads once they return.
"""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Callable

from ..actions import Action, ActionKind, CommandKind, parse_action
from ..errors import GitpeekError, ReachedLastMatch, StateIndexError, UnsupportedActionError
from ..input.bindings import Scope, scope_cascade
from ..input.keys import KeyEvent, MouseEvent, MouseKind
from ..input.reader import Event, read_event
from ..input.resolver import ClickRegion
from ..render import (
    SPINNER_FRAMES,
    Frame,
    render_button_bar,
    render_edit_bar,
    render_notification,
)
from ..search import SearchOutcome, SearchStatus
from ..views import PagerView, ShowView, View
from .commands import CommandContext, CommandRunner
from .config import Config
from .state import ERROR_SECONDS, Channel, InputMode, ViewSession
from .terminal import TerminalController
from .viewport import Alignment

logger = logging.getLogger(__name__)

POLL_TIMEOUT_MS = 100
SPINNER_FPS = 10

_MODE_FOR_ACTION = {
    ActionKind.SEARCH: InputMode.SEARCH,
    ActionKind.SEARCH_REVERSE: InputMode.SEARCH_REVERSE,
    ActionKind.TYPE_COMMAND: InputMode.COMMAND,
}
_ALIGNMENTS = {
    ActionKind.SHIFT_LINE_TOP: Alignment.TOP,
    ActionKind.SHIFT_LINE_MIDDLE: Alignment.MIDDLE,
    ActionKind.SHIFT_LINE_BOTTOM: Alignment.BOTTOM,
}


def _sub_view_args(rev: str | None, filename: str | None) -> list[str]:
    args = [rev] if rev else []
    if filename:
        args += ["--", filename]
    return args


class EventLoop:
    """Composition root tying input, dispatch, commands and rendering together."""

    def __init__(
        self,
        config: Config,
        terminal: TerminalController,
        runner: CommandRunner | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.terminal = terminal
        self.runner = runner if runner is not None else CommandRunner(terminal)
        self.clock = clock
        self.view: View | None = None
        self.session: ViewSession | None = None
        self.terminated = False
        self._edit_row: int | None = None
        self._pressed_region: ClickRegion | None = None
        self._last_size: tuple[int, int] | None = None

    # -- lifecycle -------------------------------------------------------

    def run(self, view: View) -> None:
        """Drive ``view`` until it quits, then restore the enclosing view."""
        parent = (self.view, self.session)
        view.host = self
        self.view = view
        self.session = ViewSession(self.config.bindings)
        logger.debug("running view %s", type(view).__name__)
        try:
            while not self.session.quit and not self.terminated:
                self.tick()
        finally:
            try:
                view.on_exit()
            finally:
                self.view, self.session = parent
                if self.session is not None:
                    self.session.dirty = True

    def tick(self) -> None:
        """One frame: refresh state, redraw if needed, poll input for up to 100ms."""
        self.refresh()
        if self._needs_redraw():
            self.render()
        event = read_event(self.terminal.stdin_fd, POLL_TIMEOUT_MS)
        if event is not None:
            self.handle_event(event)

    def _current(self) -> tuple[View, ViewSession]:
        assert self.view is not None and self.session is not None
        return self.view, self.session

    def scopes(self) -> list[Scope]:
        view, _ = self._current()
        return scope_cascade(view.mapping_scopes())

    # -- per-frame state -------------------------------------------------

    def refresh(self) -> None:
        """Expire notifications, resume a pending search, update the line row."""
        view, session = self._current()
        if session.notifications.expire():
            session.dirty = True
        try:
            outcome = view.search.continue_search(view)
            if outcome is not None:
                self._apply_search_outcome(outcome)
        except GitpeekError as exc:
            self.report(exc)

        status = view.status_line()
        if status is None:
            session.notifications.clear(Channel.LINE)
        else:
            session.notifications.set(Channel.LINE, status, spinner=not view.is_fully_loaded())

        pending = session.resolver.pending_text
        if pending:
            session.notifications.set(Channel.KEYS, pending)
        else:
            session.notifications.clear(Channel.KEYS)

    def _needs_redraw(self) -> bool:
        view, session = self._current()
        size = tuple(shutil.get_terminal_size((80, 24)))
        if size != self._last_size:
            self._last_size = size
            return True
        if session.dirty or not view.is_fully_loaded():
            return True
        return any(row.spinner for _, row in session.notifications.rows())

    def render(self) -> None:
        view, session = self._current()
        columns, lines = shutil.get_terminal_size((80, 24))
        frame = Frame(columns, lines)
        area = frame.area

        buttons = self.config.bindings.buttons_for(self.scopes())
        session.regions = []
        if buttons:
            bar, area = area.split_rows(1)
            session.regions = render_button_bar(
                frame, bar.y, buttons, session.mouse_position, self._pressed_region is not None
            )

        notifications = session.notifications.rows()
        footer_height = len(notifications) + (1 if session.editing else 0)
        body, footer = area.split_rows(area.height - footer_height)
        view.render(frame, body)

        spinner = SPINNER_FRAMES[int(self.clock() * SPINNER_FPS) % len(SPINNER_FRAMES)]
        for offset, (channel, row) in enumerate(notifications):
            render_notification(
                frame,
                footer.y + offset,
                row.text,
                error=channel is Channel.ERROR,
                spinner=spinner if row.spinner else None,
            )
        self._edit_row = None
        if session.editing and footer.height > 0:
            self._edit_row = footer.y + footer.height - 1
            render_edit_bar(frame, self._edit_row, session.mode.prefix, session.editor)

        frame.flush(self.terminal.stdout_fd)
        session.dirty = False

    # -- input -----------------------------------------------------------

    def handle_event(self, event: Event) -> None:
        _, session = self._current()
        session.dirty = True
        if isinstance(event, MouseEvent):
            self.handle_mouse(event)
        elif session.editing:
            self.handle_edit_key(event)
        else:
            action = session.resolver.feed(event, self.scopes())
            if action is not None:
                self.dispatch(action)

    def handle_mouse(self, event: MouseEvent) -> None:
        view, session = self._current()
        position = (event.column, event.row)
        session.mouse_position = position
        kind = event.kind
        if kind is MouseKind.MOVE:
            return
        if kind in (MouseKind.WHEEL_UP, MouseKind.WHEEL_DOWN):
            view.on_scroll(kind is MouseKind.WHEEL_DOWN, event.column, event.row)
            return
        if kind is MouseKind.LEFT_UP:
            session.mouse_down = False
            region, self._pressed_region = self._pressed_region, None
            if region is not None and region.contains(*position):
                self.dispatch(region.action)
            return

        if kind is MouseKind.LEFT_DOWN:
            session.mouse_down = True
            if session.editing and event.row == self._edit_row:
                session.editor.set_cursor_from_click(event.column - len(session.mode.prefix))
                return
        hit = next((region for region in session.regions if region.contains(*position)), None)
        if hit is not None:
            if kind is MouseKind.LEFT_DOWN:
                self._pressed_region = hit
            else:
                self.dispatch(hit.action)
            return
        view.on_click(event.column, event.row)
        if kind is MouseKind.RIGHT_DOWN:
            action = session.resolver.resolve_click(event.column, event.row, (), self.scopes(), right=True)
            if action is not None:
                self.dispatch(action)

    def handle_edit_key(self, event: KeyEvent) -> None:
        """Line editing for the ``/``, ``?`` and ``:`` prompts."""
        _, session = self._current()
        editor = session.editor
        key = event.key
        word = event.ctrl or event.alt
        if key == "esc" or (event.ctrl and key == "c"):
            session.leave_mode()
        elif key == "enter":
            mode = session.mode
            text = editor.commit()
            session.leave_mode()
            self.submit(mode, text)
        elif key == "backspace" or (event.ctrl and key == "w"):
            if not editor.text:
                session.leave_mode()
            else:
                editor.backspace(word=word)
        elif key == "delete":
            editor.delete()
        elif key == "left":
            editor.move_left(word=word)
        elif key == "right":
            editor.move_right(word=word)
        elif key == "home" or (event.ctrl and key == "a"):
            editor.move_home()
        elif key == "end" or (event.ctrl and key == "e"):
            editor.move_end()
        elif len(key) == 1 and not event.ctrl and not event.alt:
            editor.insert_char(key)

    def submit(self, mode: InputMode, text: str) -> None:
        view, session = self._current()
        try:
            if mode is InputMode.COMMAND:
                if text.strip():
                    self.dispatch(parse_action(text.strip()), report=False)
                return
            view.search.start(text, reverse=mode is InputMode.SEARCH_REVERSE)
            if view.search.state is None:
                session.notifications.clear(Channel.SEARCH)
                return
            self._search(previous=False)
        except GitpeekError as exc:
            self.report(exc)

    # -- dispatch --------------------------------------------------------

    def dispatch(self, action: Action, report: bool = True) -> None:
        """Run ``action`` on the view first, then the generic handler.

        Errors become notifications unless ``report`` is false, in which case
        they propagate to the caller.
        """
        view, _ = self._current()
        logger.debug("dispatch %s", action)
        try:
            if view.handle_action(action):
                return
            if not self.handle_generic(action):
                raise UnsupportedActionError(str(action))
        except GitpeekError as exc:
            if not report:
                raise
            self.report(exc)

    def handle_generic(self, action: Action) -> bool:
        view, session = self._current()
        kind = action.kind
        viewport = view.viewport
        count = view.line_count()
        if kind is ActionKind.NONE:
            pass
        elif kind is ActionKind.QUIT:
            session.quit = True
        elif kind is ActionKind.RELOAD:
            view.reload()
        elif kind is ActionKind.UP:
            viewport.move_by(-1, count)
        elif kind is ActionKind.DOWN:
            viewport.move_by(1, count)
        elif kind is ActionKind.FIRST:
            viewport.first(count)
        elif kind is ActionKind.LAST:
            viewport.last(count)
        elif kind is ActionKind.HALF_PAGE_UP:
            viewport.half_page(False, count)
        elif kind is ActionKind.HALF_PAGE_DOWN:
            viewport.half_page(True, count)
        elif kind is ActionKind.GOTO:
            viewport.select(action.index, count)
        elif kind in _ALIGNMENTS:
            viewport.shift(_ALIGNMENTS[kind])
        elif kind in _MODE_FOR_ACTION:
            session.enter_mode(_MODE_FOR_ACTION[kind])
        elif kind is ActionKind.NEXT_SEARCH_RESULT:
            self._search(previous=False)
        elif kind is ActionKind.PREVIOUS_SEARCH_RESULT:
            self._search(previous=True)
        elif kind is ActionKind.COMMAND:
            assert action.command_kind is not None
            self.run_command(action.command_kind, action.text)
        elif kind is ActionKind.ECHO:
            session.echo(action.text)
        elif kind in (ActionKind.SET, ActionKind.MAP, ActionKind.BUTTON):
            self.config.apply(action)
            view.search.smartcase = self.config.smartcase
        elif kind is ActionKind.OPEN_SHOW_APP:
            _, rev, _ = view.file_rev_line_context()
            self.open_view(ShowView(self.config, rev))
        elif kind is ActionKind.OPEN_GIT_SHOW:
            filename, rev, _ = view.file_rev_line_context()
            self.open_view(PagerView.for_git(self.config, "show", _sub_view_args(rev, filename)))
        elif kind is ActionKind.OPEN_LOG_APP:
            filename, rev, _ = self._context()
            self.open_view(PagerView.for_git(self.config, "log", _sub_view_args(rev, filename)))
        else:
            return False
        return True

    def report(self, exc: GitpeekError) -> None:
        _, session = self._current()
        if exc.informational:
            session.notifications.set(Channel.SEARCH, str(exc), ERROR_SECONDS)
            session.dirty = True
            return
        logger.warning("%s: %s", type(exc).__name__, exc)
        session.error(str(exc))

    # -- search ----------------------------------------------------------

    def _search(self, previous: bool) -> None:
        view, _ = self._current()
        if view.search.state is None:
            return
        start = view.viewport.selected if view.viewport.selected is not None else -1
        self._apply_search_outcome(view.search.advance(view, start, previous=previous))

    def _apply_search_outcome(self, outcome: SearchOutcome) -> None:
        view, session = self._current()
        state = view.search.state
        pattern = "" if state is None else state.pattern
        prefix = "?" if state is not None and state.reverse else "/"
        if outcome.status is SearchStatus.FOUND:
            view.viewport.select(outcome.index, view.line_count())
            session.notifications.set(Channel.SEARCH, f"{prefix}{pattern}")
        elif outcome.status is SearchStatus.PENDING:
            session.notifications.set(Channel.SEARCH, f"{prefix}{pattern}", spinner=True)
        else:
            raise ReachedLastMatch(pattern)
        session.dirty = True

    # -- ViewHost --------------------------------------------------------

    def _context(self) -> tuple[str | None, str | None, int | None]:
        view, _ = self._current()
        try:
            return view.file_rev_line_context()
        except StateIndexError:
            return None, None, None

    def run_command(self, kind: CommandKind, template: str) -> None:
        """Fill ``template`` from the current view and execute it."""
        view, session = self._current()
        filename, rev, line = self._context()
        context = CommandContext(
            file=filename,
            rev=rev,
            line=line,
            text=view.selected_text(),
            clip=self.config.clipboard,
            git=self.config.git,
        )
        self.runner.execute(kind, template, context)
        session.dirty = True
        if kind is CommandKind.SYNC_QUIT:
            self.terminated = True
        elif kind is CommandKind.SYNC:
            view.reload()

    def open_view(self, view: View) -> None:
        """Run ``view`` as a nested sub-view, then reload the current one."""
        parent, _ = self._current()
        self.run(view)
        if not self.terminated:
            parent.reload()
