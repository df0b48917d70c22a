"""Tests for blame source highlighting and control-byte sanitization.

Highlighted output must keep one entry per source line so blame columns
stay aligned with the code beside them.
"""

from __future__ import annotations

import unittest
from unittest import mock

from gitpeek.ansi import strip_ansi
from gitpeek.highlight import highlight_lines, sanitize_terminal_text


class SanitizeTerminalTextTests(unittest.TestCase):
    def test_control_bytes_are_escaped_but_whitespace_kept(self) -> None:
        sanitized = sanitize_terminal_text("a\tb\nc\rd\x07e\x1bf")
        self.assertEqual(sanitized, "a\tb\nc\rd\\x07e\\x1bf")

    def test_clean_text_is_returned_unchanged(self) -> None:
        text = "def main():\n    pass"
        self.assertIs(sanitize_terminal_text(text), text)


class HighlightLinesTests(unittest.TestCase):
    def test_python_source_keeps_line_count_and_text(self) -> None:
        lines = ['"""doc', 'string"""', "def main():", "", "    return 1"]
        rendered = highlight_lines(lines, "app.py")
        self.assertEqual(len(rendered), len(lines))
        self.assertEqual([strip_ansi(line) for line in rendered], lines)
        self.assertTrue(any("\x1b[" in line for line in rendered))

    def test_unknown_extension_falls_back_to_plain_text(self) -> None:
        lines = ["Permission  is  hereby granted", "free of charge"]
        rendered = highlight_lines(lines, "LICENSE.unknownext")
        self.assertEqual([strip_ansi(line) for line in rendered], lines)

    def test_empty_file(self) -> None:
        self.assertEqual(highlight_lines([], "app.py"), [])

    def test_short_formatter_output_uses_plain_lines(self) -> None:
        with mock.patch("gitpeek.highlight.highlight", return_value="one"):
            self.assertEqual(highlight_lines(["one", "two\x07"], "app.py"), ["one", "two\\x07"])


if __name__ == "__main__":
    unittest.main()
