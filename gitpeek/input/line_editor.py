"""Single-line text buffer behind the ``/``, ``?`` and ``:`` prompts."""

from __future__ import annotations

import unicodedata

from ..ansi import char_display_width


def _cell_width(cluster: str) -> int:
    return sum(char_display_width(ch, 0) for ch in cluster)


class LineEditor:
    """Cursor-addressable buffer of grapheme clusters.

    Combining marks are stored with the character they modify, so cursor
    moves and deletions never split a rendered glyph. ``cursor`` is always
    within ``0..len(clusters)``.
    """

    def __init__(self, text: str = "") -> None:
        self._clusters: list[str] = []
        self._cursor = 0
        for ch in text:
            self.insert_char(ch)

    @property
    def text(self) -> str:
        return "".join(self._clusters)

    @property
    def clusters(self) -> tuple[str, ...]:
        return tuple(self._clusters)

    @property
    def cursor(self) -> int:
        return self._cursor

    @cursor.setter
    def cursor(self, value: int) -> None:
        self._cursor = max(0, min(value, len(self._clusters)))

    def __len__(self) -> int:
        return len(self._clusters)

    def cursor_column(self) -> int:
        """Display column of the cursor, for rendering the caret."""
        return sum(_cell_width(cluster) for cluster in self._clusters[: self._cursor])

    def insert_char(self, ch: str) -> None:
        if unicodedata.combining(ch) and self._cursor > 0:
            self._clusters[self._cursor - 1] += ch
            return
        self._clusters.insert(self._cursor, ch)
        self.cursor = self._cursor + 1

    def insert_text(self, text: str) -> None:
        for ch in text:
            self.insert_char(ch)

    def _is_space(self, index: int) -> bool:
        return self._clusters[index].isspace()

    def _word_start_left(self) -> int:
        index = self._cursor
        while index > 0 and self._is_space(index - 1):
            index -= 1
        while index > 0 and not self._is_space(index - 1):
            index -= 1
        return index

    def backspace(self, word: bool = False) -> None:
        """Delete left of the cursor: one cluster, or a word and its leading blanks."""
        if self._cursor == 0:
            return
        if not word:
            start = self._cursor - 1
        else:
            start = self._cursor
            while start > 0 and not self._is_space(start - 1):
                start -= 1
            while start > 0 and self._is_space(start - 1):
                start -= 1
        del self._clusters[start : self._cursor]
        self.cursor = start

    def delete(self) -> None:
        if self._cursor < len(self._clusters):
            del self._clusters[self._cursor]

    def move_left(self, word: bool = False) -> None:
        self.cursor = self._word_start_left() if word else self._cursor - 1

    def move_right(self, word: bool = False) -> None:
        if not word:
            self.cursor = self._cursor + 1
            return
        index = self._cursor
        size = len(self._clusters)
        while index < size and self._is_space(index):
            index += 1
        while index < size and not self._is_space(index):
            index += 1
        self.cursor = index

    def move_home(self) -> None:
        self.cursor = 0

    def move_end(self) -> None:
        self.cursor = len(self._clusters)

    def set_cursor_from_click(self, column: int) -> None:
        """Place the cursor at the cluster boundary nearest to display ``column``."""
        if column <= 0:
            self.cursor = 0
            return
        boundary = 0
        for index, cluster in enumerate(self._clusters):
            width = _cell_width(cluster)
            if column < boundary + width / 2:
                self.cursor = index
                return
            boundary += width
        self.cursor = len(self._clusters)

    def commit(self) -> str:
        """Return the buffer content and clear it."""
        text = self.text
        self.cancel()
        return text

    def cancel(self) -> None:
        self._clusters.clear()
        self._cursor = 0
