"""Scopes and the layered key/button binding tables.

Bindings live in two layers: ``DEFAULT`` seeded from the built-in config text
and ``USER`` filled from the user's config file and live ``map``/``button``
commands. Lookups merge both, user entries winning on collisions.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from ..actions import Action
from ..errors import ScopeParseError
from ..git import FileStatus, StagedStatus
from .keys import KeySequence


class ScopeKind(Enum):
    GLOBAL = "global"
    STATUS = "status"
    SHOW = "show"
    BLAME = "blame"
    STASH = "stash"
    LOG = "log"
    DIFF = "diff"
    PAGER = "pager"


@dataclass(frozen=True)
class Scope:
    """View (and optional sub-state) a binding applies to.

    ``staged`` is only meaningful for ``status``; ``file_status`` for ``status``
    (together with ``staged``) and ``show``.
    """

    kind: ScopeKind
    staged: StagedStatus | None = None
    file_status: FileStatus | None = None

    @classmethod
    def parse(cls, text: str) -> Scope:
        parts = text.split(":")
        try:
            kind = ScopeKind(parts[0])
        except ValueError:
            raise ScopeParseError(text) from None

        if kind is ScopeKind.STATUS and len(parts) <= 3:
            staged = StagedStatus.parse(parts[1]) if len(parts) > 1 else None
            file_status = FileStatus.parse(parts[2]) if len(parts) > 2 else None
            return cls(kind, staged, file_status)
        if kind is ScopeKind.SHOW and len(parts) <= 2:
            file_status = FileStatus.parse(parts[1]) if len(parts) > 1 else None
            return cls(kind, file_status=file_status)
        if len(parts) == 1:
            return cls(kind)
        raise ScopeParseError(text)

    def __str__(self) -> str:
        parts = [self.kind.value]
        if self.staged is not None:
            parts.append(self.staged.value)
        if self.file_status is not None:
            parts.append(self.file_status.scope_name)
        return ":".join(parts)


GLOBAL_SCOPE = Scope(ScopeKind.GLOBAL)


class Layer(Enum):
    DEFAULT = "default"
    USER = "user"


class _LayeredTable:
    """Two-layer ``scope -> key -> Action`` store shared by keys and buttons.

    A none action deletes the key from the default layer; in the user layer it
    is kept as a tombstone so it also hides the default entry.
    """

    def __init__(self) -> None:
        self._layers: dict[Layer, dict[Scope, dict[object, Action]]] = {
            Layer.DEFAULT: {},
            Layer.USER: {},
        }

    def set(self, scope: Scope, key: object, action: Action, layer: Layer) -> None:
        entries = self._layers[layer].setdefault(scope, {})
        if action.is_none and layer is Layer.DEFAULT:
            entries.pop(key, None)
            return
        entries[key] = action

    def merged(self, scope: Scope) -> dict[object, Action]:
        merged = dict(self._layers[Layer.DEFAULT].get(scope, {}))
        merged.update(self._layers[Layer.USER].get(scope, {}))
        return {key: action for key, action in merged.items() if not action.is_none}


class BindingTable:
    """Key bindings and buttons for every scope."""

    def __init__(self) -> None:
        self._keys = _LayeredTable()
        self._buttons = _LayeredTable()

    def set_binding(
        self,
        scope: Scope,
        keys: KeySequence,
        action: Action,
        layer: Layer = Layer.USER,
    ) -> None:
        """Upsert ``keys`` in ``layer``; a none action deletes it instead."""
        self._keys.set(scope, tuple(keys), action, layer)

    def get_bindings(self, scope: Scope) -> dict[KeySequence, Action]:
        """Return the effective bindings of ``scope`` (user layer wins)."""
        return self._keys.merged(scope)  # type: ignore[return-value]

    def set_button(
        self,
        scope: Scope,
        label: str,
        action: Action,
        layer: Layer = Layer.USER,
    ) -> None:
        self._buttons.set(scope, label, action, layer)

    def get_buttons(self, scope: Scope) -> dict[str, Action]:
        return self._buttons.merged(scope)  # type: ignore[return-value]

    def buttons_for(self, scopes: Iterable[Scope]) -> list[tuple[str, Action]]:
        """Collect buttons for a most-specific-first scope list.

        Buttons are laid out from the least specific scope to the most
        specific one; a label defined in a more specific scope replaces the
        action of the same label without moving it.
        """
        ordered: dict[str, Action] = {}
        for scope in reversed(list(scopes)):
            for label, action in self.get_buttons(scope).items():
                ordered[label] = action
        return list(ordered.items())


def scope_cascade(scopes: Iterable[Scope]) -> list[Scope]:
    """Return ``scopes`` followed by ``global``, without duplicates."""
    cascade: list[Scope] = []
    for scope in [*scopes, GLOBAL_SCOPE]:
        if scope not in cascade:
            cascade.append(scope)
    return cascade
