"""Selection/offset bookkeeping for scrollable lists.

``resolve_offset`` keeps the selection ``scrolloff`` rows away from both
edges; wheel scrolling moves the offset first and then drags the selection
back inside the visible band.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Alignment(Enum):
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


def effective_scrolloff(scrolloff: int, height: int) -> int:
    """Clamp ``scrolloff`` so both margins fit inside ``height`` rows."""
    return max(0, min(scrolloff, (height - 1) // 2))


def resolve_offset(selected: int, offset: int, height: int, content_len: int, scrolloff: int) -> int:
    """Return the offset that keeps ``selected`` outside both scrolloff margins.

    The bottom margin is checked before the top one, because a single jump can
    violate both relative to the previous offset.
    """
    if height <= 0:
        return offset
    so = effective_scrolloff(scrolloff, height)
    if selected >= offset and selected - offset > height - so - 1:
        offset = selected - height + so + 1
        if content_len >= height:
            offset = min(offset, content_len - height)
    if offset + so >= selected:
        offset = max(0, selected - so)
    return max(0, offset)


def adapt_index_in_frame(offset: int, scrolloff: int, index: int, height: int, content_len: int) -> int:
    """Move ``index`` to the closest row inside the margin-respecting band."""
    so = effective_scrolloff(scrolloff, height)
    if offset > 0 and index < offset + so:
        index = offset + so
    index = min(index, content_len - 1)
    if offset + height < content_len and index > offset + height - so - 1:
        index = offset + height - so - 1
    return max(0, index)


@dataclass
class Viewport:
    """Selected index and first visible row of one list."""

    selected: int | None = None
    offset: int = 0
    height: int = 1

    def clamp(self, content_len: int) -> None:
        if content_len <= 0:
            self.selected = None
            self.offset = 0
            return
        selected = 0 if self.selected is None else self.selected
        self.selected = max(0, min(selected, content_len - 1))

    def resolve(self, content_len: int, scrolloff: int) -> None:
        """Clamp the selection and recompute the offset; run before each render."""
        self.clamp(content_len)
        if self.selected is None:
            return
        self.offset = resolve_offset(self.selected, self.offset, self.height, content_len, scrolloff)

    def select(self, index: int, content_len: int) -> None:
        self.selected = index
        self.clamp(content_len)

    def move_by(self, delta: int, content_len: int) -> None:
        current = 0 if self.selected is None else self.selected
        self.select(current + delta, content_len)

    def first(self, content_len: int) -> None:
        self.select(0, content_len)

    def last(self, content_len: int) -> None:
        self.select(content_len - 1, content_len)

    def half_page(self, down: bool, content_len: int) -> None:
        step = max(1, self.height // 2)
        self.move_by(step if down else -step, content_len)

    def shift(self, alignment: Alignment) -> None:
        """Realign the offset around the selection, ignoring scrolloff."""
        if self.selected is None:
            return
        if alignment is Alignment.TOP:
            self.offset = self.selected
        elif alignment is Alignment.MIDDLE:
            self.offset = max(0, self.selected - self.height // 2)
        else:
            self.offset = max(0, self.selected - self.height)

    def scroll(self, down: bool, step: int, content_len: int, scrolloff: int) -> None:
        """Scroll by ``step`` rows, moving the selection only when it leaves the band."""
        if content_len <= 0:
            return
        if down:
            self.offset += step
            limit = max(0, content_len - scrolloff - 1)
            self.offset = min(self.offset, limit)
        else:
            self.offset = max(0, self.offset - step)
        current = 0 if self.selected is None else self.selected
        self.selected = adapt_index_in_frame(self.offset, scrolloff, current, self.height, content_len)

    def select_row(self, row: int, content_len: int) -> bool:
        """Select the item drawn on visible ``row``; false when the row is empty."""
        index = self.offset + row
        if row < 0 or index >= content_len:
            return False
        self.selected = index
        return True

    def visible_range(self, content_len: int) -> range:
        return range(self.offset, min(content_len, self.offset + self.height))
