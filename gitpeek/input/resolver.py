"""Prefix-aware key-sequence resolution against a scope cascade."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..actions import Action
from .bindings import BindingTable, Scope
from .keys import RIGHT_CLICK_TOKEN, KeyEvent, KeySequence, format_key_sequence, key_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClickRegion:
    """Screen rectangle that triggers ``action`` when clicked."""

    column: int
    row: int
    width: int
    action: Action
    label: str = ""

    def contains(self, column: int, row: int) -> bool:
        return row == self.row and self.column <= column < self.column + self.width


class KeyResolver:
    """Accumulates key tokens until they name exactly one binding.

    The buffer is empty while idle. Each key is appended, then every scope is
    searched most specific first: an exact match empties the buffer and wins
    immediately, while a longer binding starting with the buffer keeps it for
    the next key. With neither, the buffer is dropped.
    """

    def __init__(self, bindings: BindingTable) -> None:
        self.bindings = bindings
        self._buffer: KeySequence = ()

    @property
    def pending(self) -> KeySequence:
        return self._buffer

    @property
    def pending_text(self) -> str:
        return format_key_sequence(self._buffer)

    def reset(self) -> None:
        self._buffer = ()

    def feed(self, event: KeyEvent, scopes: Sequence[Scope]) -> Action | None:
        """Feed one key press; return the resolved action, if any."""
        return self.feed_token(key_token(event), scopes)

    def feed_token(self, token: str, scopes: Sequence[Scope]) -> Action | None:
        self._buffer = (*self._buffer, token)
        potential = False
        for scope in scopes:
            for keys, action in self.bindings.get_bindings(scope).items():
                if keys == self._buffer:
                    logger.debug("resolved %s in %s to %s", self.pending_text, scope, action)
                    self._buffer = ()
                    return action
                if len(keys) > len(self._buffer) and keys[: len(self._buffer)] == self._buffer:
                    potential = True
        if not potential:
            self._buffer = ()
        return None

    def lookup_exact(self, keys: KeySequence, scopes: Sequence[Scope]) -> Action | None:
        """Resolve ``keys`` by exact match only, ignoring the buffer."""
        for scope in scopes:
            action = self.bindings.get_bindings(scope).get(keys)
            if action is not None:
                return action
        return None

    def resolve_click(
        self,
        column: int,
        row: int,
        regions: Sequence[ClickRegion],
        scopes: Sequence[Scope],
        right: bool = False,
    ) -> Action | None:
        """Resolve a mouse click against rendered regions, then ``<rclick>``."""
        for region in regions:
            if region.contains(column, row):
                return region.action
        if right:
            return self.lookup_exact((RIGHT_CLICK_TOKEN,), scopes)
        return None
