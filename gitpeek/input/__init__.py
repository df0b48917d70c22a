"""Input-layer public API: terminal decoding, bindings and key resolution.

Low-level decoding (`read_event`) is kept apart from the binding model and
the resolver used by the event loop.
"""

from .bindings import GLOBAL_SCOPE, BindingTable, Layer, Scope, ScopeKind, scope_cascade
from .keys import KeyEvent, MouseEvent, MouseKind, format_key_sequence, key_token, parse_key_sequence
from .line_editor import LineEditor
from .reader import ESC_SEQUENCE_TIMEOUT_MS, read_event
from .resolver import ClickRegion, KeyResolver

__all__ = [
    "read_event",
    "ESC_SEQUENCE_TIMEOUT_MS",
    "KeyEvent",
    "MouseEvent",
    "MouseKind",
    "key_token",
    "parse_key_sequence",
    "format_key_sequence",
    "Scope",
    "ScopeKind",
    "GLOBAL_SCOPE",
    "Layer",
    "BindingTable",
    "scope_cascade",
    "KeyResolver",
    "ClickRegion",
    "LineEditor",
]
