"""Pygments highlighting for blamed source files.

Blame output is highlighted as one document so multi-line constructs color
correctly, then split back into per-line ANSI strings.
"""

from __future__ import annotations

import logging
import re

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_FORMATTER = TerminalFormatter()


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source
    return _CONTROL_RE.sub(lambda m: f"\\x{ord(m.group(0)):02x}", source)


def highlight_lines(lines: list[str], filename: str) -> list[str]:
    """Return ``lines`` highlighted for ``filename``; plain lines on failure.

    The result always has the same length as ``lines``.
    """
    if not lines:
        return []
    source = sanitize_terminal_text("\n".join(lines))
    try:
        lexer = get_lexer_for_filename(filename, source, stripnl=False, ensurenl=False)
    except ClassNotFound:
        lexer = TextLexer(stripnl=False, ensurenl=False)

    rendered = highlight(source, lexer, _FORMATTER).split("\n")
    if len(rendered) < len(lines):
        logger.debug("highlighter dropped lines for %s, using plain text", filename)
        return source.split("\n")
    return rendered[: len(lines)]
