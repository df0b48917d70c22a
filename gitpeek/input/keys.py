"""Key and mouse event values plus canonical key-token normalization.

Bindings and live key presses meet on the same token form: a literal
character (``g``), a named key (``<enter>``) or a chord (``<c-u>``, ``<a-x>``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import KeyParseError

NAMED_KEYS = frozenset(
    {
        "enter",
        "esc",
        "tab",
        "backspace",
        "up",
        "down",
        "left",
        "right",
        "home",
        "end",
        "pageup",
        "pagedown",
        "delete",
        "space",
        "lt",
    }
)
RIGHT_CLICK_TOKEN = "<rclick>"

_ALIASES = {
    "cr": "enter",
    "return": "enter",
    "escape": "esc",
    "bs": "backspace",
    "del": "delete",
    "pgup": "pageup",
    "pgdown": "pagedown",
}

KeySequence = tuple[str, ...]


@dataclass(frozen=True)
class KeyEvent:
    """One decoded key press: a character or a name from ``NAMED_KEYS``."""

    key: str
    ctrl: bool = False
    alt: bool = False


class MouseKind(Enum):
    LEFT_DOWN = "left_down"
    LEFT_UP = "left_up"
    RIGHT_DOWN = "right_down"
    WHEEL_UP = "wheel_up"
    WHEEL_DOWN = "wheel_down"
    MOVE = "move"


@dataclass(frozen=True)
class MouseEvent:
    """Mouse report with 0-based cell coordinates."""

    kind: MouseKind
    column: int
    row: int


def _chord(name: str, ctrl: bool, alt: bool) -> str:
    prefix = ("c-" if ctrl else "") + ("a-" if alt else "")
    return f"<{prefix}{name}>"


def key_token(event: KeyEvent) -> str:
    """Normalize a physical key press into its binding token."""
    key = event.key
    if key == " ":
        key = "space"
    elif key == "<":
        key = "lt"
    if len(key) > 1:
        return _chord(key, event.ctrl, event.alt)
    if event.ctrl:
        return _chord(key.lower(), True, event.alt)
    if event.alt:
        return _chord(key, False, True)
    return key


def _normalize_bracketed(body: str, original: str) -> str:
    parts = body.split("-")
    name = parts[-1]
    if name == "" and body.endswith("-"):
        # ``<c-->`` binds control-minus
        parts = parts[:-2] + ["-"]
        name = "-"
    modifiers = {part.lower() for part in parts[:-1]}
    if not modifiers <= {"c", "a", "m"}:
        raise KeyParseError(original)
    ctrl = "c" in modifiers
    alt = bool(modifiers & {"a", "m"})
    lowered = name.lower()
    lowered = _ALIASES.get(lowered, lowered)
    if lowered == "rclick" and not modifiers:
        return RIGHT_CLICK_TOKEN
    if lowered in NAMED_KEYS:
        return _chord(lowered, ctrl, alt)
    if len(name) == 1 and (ctrl or alt):
        return key_token(KeyEvent(name, ctrl=ctrl, alt=alt))
    raise KeyParseError(original)


def parse_key_sequence(text: str) -> KeySequence:
    """Parse config key notation such as ``gg``, ``<c-u>`` or ``d<enter>``."""
    if not text:
        raise KeyParseError(text)
    tokens: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "<":
            end = text.find(">", i + 2)
            if end < 0:
                tokens.append("<lt>")
                i += 1
                continue
            tokens.append(_normalize_bracketed(text[i + 1 : end], text))
            i = end + 1
            continue
        if ch.isspace():
            raise KeyParseError(text)
        tokens.append(ch)
        i += 1
    return tuple(tokens)


def format_key_sequence(keys: KeySequence) -> str:
    return "".join(keys)
