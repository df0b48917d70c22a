"""Low-level terminal input decoding.

Reads raw bytes from the keyboard fd and translates them into ``KeyEvent`` and
``MouseEvent`` values. Handles ESC-sequence timing, CSI modifier parameters,
multi-byte UTF-8 characters and SGR mouse reports.
"""

from __future__ import annotations

import os
import select

from .keys import KeyEvent, MouseEvent, MouseKind

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

_CSI_LETTERS = {
    b"A": "up",
    b"B": "down",
    b"C": "right",
    b"D": "left",
    b"H": "home",
    b"F": "end",
    b"Z": "tab",
}
_CSI_TILDE_CODES = {
    "1": "home",
    "7": "home",
    "4": "end",
    "8": "end",
    "3": "delete",
    "5": "pageup",
    "6": "pagedown",
}
# xterm modifier parameter is 1 + bitmask
_MOD_ALT = 2
_MOD_CTRL = 4

Event = KeyEvent | MouseEvent


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _utf8_length(lead: int) -> int:
    if lead >> 5 == 0b110:
        return 2
    if lead >> 4 == 0b1110:
        return 3
    if lead >> 3 == 0b11110:
        return 4
    return 1


def _read_utf8_char(fd: int, first: bytes) -> str:
    data = first
    for _ in range(_utf8_length(first[0]) - 1):
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            break
        data += part
    return data.decode("utf-8", errors="replace")


def _decode_plain(fd: int, ch: bytes, alt: bool = False) -> KeyEvent | None:
    code = ch[0]
    if ch in {b"\r", b"\n"}:
        return KeyEvent("enter", alt=alt)
    if ch == b"\t":
        return KeyEvent("tab", alt=alt)
    if ch in {b"\x08", b"\x7f"}:
        return KeyEvent("backspace", alt=alt)
    if code == 0:
        return KeyEvent("space", ctrl=True, alt=alt)
    if 1 <= code <= 26:
        return KeyEvent(chr(code + 96), ctrl=True, alt=alt)
    if 28 <= code <= 31:
        return KeyEvent(chr(code + 64), ctrl=True, alt=alt)
    return KeyEvent(_read_utf8_char(fd, ch), alt=alt)


def _decode_modifiers(param: str) -> tuple[bool, bool]:
    try:
        mask = int(param) - 1
    except ValueError:
        return False, False
    return bool(mask & _MOD_CTRL), bool(mask & _MOD_ALT)


def _decode_mouse(payload: bytes, final: bytes) -> MouseEvent | None:
    # SGR mouse: ESC [ < btn ; col ; row (M/m)
    try:
        btn_s, col_s, row_s = payload.decode("ascii").split(";")
        btn = int(btn_s)
        col = int(col_s) - 1
        row = int(row_s) - 1
    except ValueError:
        return None
    button = btn & 0b11
    if btn & 0b0100_0000:
        if button == 0:
            return MouseEvent(MouseKind.WHEEL_UP, col, row)
        if button == 1:
            return MouseEvent(MouseKind.WHEEL_DOWN, col, row)
        return None
    if btn & 0b0010_0000:
        return MouseEvent(MouseKind.MOVE, col, row)
    if button == 0:
        kind = MouseKind.LEFT_DOWN if final == b"M" else MouseKind.LEFT_UP
        return MouseEvent(kind, col, row)
    if button == 2 and final == b"M":
        return MouseEvent(MouseKind.RIGHT_DOWN, col, row)
    return None


def _decode_csi(fd: int) -> Event | None:
    payload: list[bytes] = []
    while True:
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            return KeyEvent("esc")
        if 0x40 <= part[0] <= 0x7E:
            final = part
            break
        payload.append(part)
        if len(payload) > 64:
            return None

    params = b"".join(payload)
    if params.startswith(b"<"):
        if final not in {b"M", b"m"}:
            return None
        return _decode_mouse(params[1:], final)

    fields = params.decode("ascii", errors="replace").split(";")
    ctrl, alt = _decode_modifiers(fields[1]) if len(fields) > 1 else (False, False)
    if final in _CSI_LETTERS:
        return KeyEvent(_CSI_LETTERS[final], ctrl=ctrl, alt=alt)
    if final == b"~":
        name = _CSI_TILDE_CODES.get(fields[0])
        if name is None:
            return None
        return KeyEvent(name, ctrl=ctrl, alt=alt)
    return None


def read_event(fd: int, timeout_ms: int | None = None) -> Event | None:
    """Read one input event, or return ``None`` when ``timeout_ms`` elapses.

    Unrecognized escape sequences are consumed and also reported as ``None``.
    """
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return None

        ch = os.read(fd, 1)
        if not ch:
            return None

    if ch != b"\x1b":
        return _decode_plain(fd, ch)

    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return KeyEvent("esc")
    if seq == b"[":
        return _decode_csi(fd)
    if seq == b"O":
        final = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if final is None:
            return KeyEvent("O", alt=True)
        name = _CSI_LETTERS.get(final)
        return KeyEvent(name) if name is not None else None
    if seq == b"\x1b":
        _PENDING_BYTES.append(seq)
        return KeyEvent("esc")
    return _decode_plain(fd, seq, alt=True)
