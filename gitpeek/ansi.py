"""ANSI-aware text measurement and line shaping utilities.

Git output arrives pre-colored (``--color=always``) and blamed source is
highlighted by Pygments, so every width computation must skip escape codes.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``.

    Tabs expand to the next 8-column stop, combining marks consume no columns,
    and East Asian wide/fullwidth characters consume two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def display_width(text: str) -> int:
    """Return the number of terminal columns ``text`` occupies."""
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    Tabs are expanded into spaces so clipping aligns with rendered terminal cells.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch, col)
        if col + w > max_cols:
            break
        out.append(" " * w if ch == "\t" else ch)
        col += w
        i += 1

    return "".join(out)


def fit_ansi_line(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` columns and pad it with spaces to exactly that width."""
    clipped = clip_ansi_line(text, width)
    padding = max(0, width - display_width(clipped))
    if "\x1b" in clipped:
        return f"{clipped}\033[0m{' ' * padding}"
    return clipped + " " * padding


def highlight_regex_matches(text: str, regex: re.Pattern[str] | None) -> str:
    """Wrap every ``regex`` match in reverse video without disturbing colors.

    Matching runs on the visible characters; match spans are then mapped back
    onto raw string positions so escape sequences stay in place.
    """
    if not text or regex is None:
        return text

    visible_chars: list[str] = []
    visible_start: list[int] = []
    visible_end: list[int] = []

    i = 0
    n = len(text)
    while i < n:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                i = match.end()
                continue
        visible_start.append(i)
        visible_chars.append(text[i])
        i += 1
        visible_end.append(i)

    if not visible_chars:
        return text

    spans = [m.span() for m in regex.finditer("".join(visible_chars)) if m.end() > m.start()]
    if not spans:
        return text

    out: list[str] = []
    raw_cursor = 0
    for start_vis, end_vis in spans:
        start_raw = visible_start[start_vis]
        end_raw = visible_end[end_vis - 1]
        out.append(text[raw_cursor:start_raw])
        out.append("\033[7m")
        out.append(text[start_raw:end_raw])
        out.append("\033[27m")
        raw_cursor = end_raw
    out.append(text[raw_cursor:])
    return "".join(out)
