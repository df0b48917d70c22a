"""Frame composition and the shared chrome drawn around every view.

Views paint ANSI rows into ``Region`` rectangles of a ``Frame``; the event
loop adds the button bar, notification rows and the edit bar, then writes the
whole frame in a single ``os.write``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Sequence
from dataclasses import dataclass

from ..actions import Action
from ..ansi import ANSI_ESCAPE_RE, display_width, fit_ansi_line, highlight_regex_matches
from ..input.line_editor import LineEditor
from ..input.resolver import ClickRegion

SPINNER_FRAMES: tuple[str, ...] = tuple("⣾⣽⣻⢿⡿⣟⣯⣷")
SELECTION_BG_SGR = "48;5;238"
BUTTON_STYLE = "\033[30;46m"
BUTTON_HOVER_STYLE = "\033[30;106m"
BUTTON_PRESSED_STYLE = "\033[1;97;44m"
ERROR_STYLE = "\033[1;31m"
DIM_STYLE = "\033[2m"
RESET = "\033[0m"


@dataclass(frozen=True)
class Region:
    """Screen rectangle in 0-based cell coordinates."""

    x: int
    y: int
    width: int
    height: int

    def contains(self, column: int, row: int) -> bool:
        return self.x <= column < self.x + self.width and self.y <= row < self.y + self.height

    def split_rows(self, top_height: int) -> tuple[Region, Region]:
        top_height = max(0, min(top_height, self.height))
        top = Region(self.x, self.y, self.width, top_height)
        bottom = Region(self.x, self.y + top_height, self.width, self.height - top_height)
        return top, bottom

    def split_columns(self, left_width: int) -> tuple[Region, Region]:
        left_width = max(0, min(left_width, self.width))
        left = Region(self.x, self.y, left_width, self.height)
        right = Region(self.x + left_width, self.y, self.width - left_width, self.height)
        return left, right


class Frame:
    """Off-screen buffer of styled rows, flushed in one write."""

    def __init__(self, width: int, height: int) -> None:
        self.width = max(1, width)
        self.height = max(1, height)
        self._segments: list[list[tuple[int, int, str]]] = [[] for _ in range(self.height)]

    @property
    def area(self) -> Region:
        return Region(0, 0, self.width, self.height)

    def put(self, row: int, text: str, x: int = 0, width: int | None = None) -> None:
        """Place ``text`` at (``x``, ``row``), clipped/padded to ``width`` cells."""
        if not 0 <= row < self.height or x >= self.width:
            return
        span = self.width - x if width is None else max(0, min(width, self.width - x))
        self._segments[row].append((x, span, text))

    def draw_lines(self, region: Region, lines: Sequence[str]) -> None:
        for offset in range(region.height):
            text = lines[offset] if offset < len(lines) else ""
            self.put(region.y + offset, text, region.x, region.width)

    def row_text(self, row: int) -> str:
        out: list[str] = []
        col = 0
        for x, span, text in sorted(self._segments[row], key=lambda item: item[0]):
            if x < col:
                continue
            out.append(" " * (x - col))
            out.append(fit_ansi_line(text, span))
            col = x + span
        out.append(" " * max(0, self.width - col))
        return "".join(out)

    def compose(self) -> str:
        out: list[str] = ["\033[H"]
        for row in range(self.height):
            out.append(f"\033[{row + 1};1H")
            out.append(self.row_text(row))
            out.append(f"{RESET}\033[K")
        return "".join(out)

    def flush(self, fd: int) -> None:
        os.write(fd, self.compose().encode("utf-8", errors="replace"))


def with_background(text: str, sgr: str = SELECTION_BG_SGR) -> str:
    """Paint ``text`` on a background that survives embedded SGR resets."""
    if not text:
        return text
    out: list[str] = [f"\033[{sgr}m"]
    idx = 0
    while idx < len(text):
        if text[idx] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, idx)
            if match is not None:
                seq = match.group(0)
                if seq.endswith("m"):
                    params = seq[2:-1]
                    out.append(f"\033[{params};{sgr}m" if params else f"\033[{sgr}m")
                else:
                    out.append(seq)
                idx = match.end()
                continue
        out.append(text[idx])
        idx += 1
    out.append("\033[49m")
    return "".join(out)


def render_list(
    frame: Frame,
    region: Region,
    lines: Sequence[str],
    offset: int,
    selected: int | None,
    regex: re.Pattern[str] | None = None,
) -> None:
    """Draw ``lines`` (already sliced from ``offset``) with selection and matches."""
    for row in range(region.height):
        if row >= len(lines):
            frame.put(region.y + row, "", region.x, region.width)
            continue
        text = highlight_regex_matches(lines[row], regex)
        if selected is not None and offset + row == selected:
            text = with_background(fit_ansi_line(text, region.width))
        frame.put(region.y + row, text, region.x, region.width)


def render_button_bar(
    frame: Frame,
    row: int,
    buttons: Sequence[tuple[str, Action]],
    hover: tuple[int, int] | None = None,
    pressed: bool = False,
) -> list[ClickRegion]:
    """Draw clickable buttons left to right and return their click regions."""
    regions: list[ClickRegion] = []
    out: list[str] = []
    col = 0
    for label, action in buttons:
        text = f" {label} "
        width = display_width(text)
        if col + width > frame.width:
            break
        region = ClickRegion(col, row, width, action, label)
        hovered = hover is not None and region.contains(*hover)
        if hovered and pressed:
            style = BUTTON_PRESSED_STYLE
        elif hovered:
            style = BUTTON_HOVER_STYLE
        else:
            style = BUTTON_STYLE
        out.append(f"{style}{text}{RESET} ")
        regions.append(region)
        col += width + 1
    frame.put(row, "".join(out))
    return regions


def render_notification(
    frame: Frame,
    row: int,
    text: str,
    error: bool = False,
    spinner: str | None = None,
) -> None:
    prefix = f"{spinner} " if spinner else ""
    body = f"{prefix}{text}"
    frame.put(row, f"{ERROR_STYLE}{body}{RESET}" if error else body)


def render_edit_bar(frame: Frame, row: int, prefix: str, editor: LineEditor) -> None:
    """Draw ``prefix`` and the edited text with a reverse-video cursor cell."""
    clusters = editor.clusters
    before = "".join(clusters[: editor.cursor])
    under = clusters[editor.cursor] if editor.cursor < len(clusters) else " "
    after = "".join(clusters[editor.cursor + 1 :])
    frame.put(row, f"{prefix}{before}\033[7m{under}\033[27m{after}")
