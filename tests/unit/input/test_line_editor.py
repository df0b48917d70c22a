"""Tests for the prompt line editor.

Covers cursor clamping, word motions and word deletion, combining marks
and mapping a mouse column back to a cursor position.
"""

from __future__ import annotations

import unittest

from gitpeek.input.line_editor import LineEditor


class LineEditorTests(unittest.TestCase):
    def test_insert_advances_cursor(self) -> None:
        editor = LineEditor()
        editor.insert_text("abc")
        editor.move_left()
        editor.insert_char("X")
        self.assertEqual(editor.text, "abXc")
        self.assertEqual(editor.cursor, 3)

    def test_cursor_is_clamped(self) -> None:
        editor = LineEditor("ab")
        editor.cursor = 99
        self.assertEqual(editor.cursor, 2)
        editor.cursor = -5
        self.assertEqual(editor.cursor, 0)
        editor.move_left()
        self.assertEqual(editor.cursor, 0)
        editor.move_end()
        editor.move_right()
        self.assertEqual(editor.cursor, 2)

    def test_backspace_and_delete(self) -> None:
        editor = LineEditor("abc")
        editor.backspace()
        self.assertEqual(editor.text, "ab")
        editor.move_home()
        editor.backspace()
        self.assertEqual(editor.text, "ab")
        editor.delete()
        self.assertEqual(editor.text, "b")
        self.assertEqual(editor.cursor, 0)

    def test_word_backspace_removes_word_and_blanks_before_it(self) -> None:
        editor = LineEditor("git log  --oneline")
        editor.backspace(word=True)
        self.assertEqual(editor.text, "git log")
        self.assertEqual(editor.cursor, len("git log"))

    def test_word_motions(self) -> None:
        editor = LineEditor("one two  three")
        editor.move_left(word=True)
        self.assertEqual(editor.cursor, len("one two  "))
        editor.move_left(word=True)
        self.assertEqual(editor.cursor, len("one "))
        editor.move_home()
        editor.move_right(word=True)
        self.assertEqual(editor.cursor, len("one"))
        editor.move_right(word=True)
        self.assertEqual(editor.cursor, len("one two"))

    def test_combining_mark_stays_with_its_base(self) -> None:
        editor = LineEditor("e\u0301x")
        self.assertEqual(len(editor), 2)
        editor.move_left()
        editor.backspace()
        self.assertEqual(editor.text, "x")

    def test_click_snaps_to_nearest_boundary(self) -> None:
        editor = LineEditor("abcd")
        editor.set_cursor_from_click(2)
        self.assertEqual(editor.cursor, 2)
        editor.set_cursor_from_click(-3)
        self.assertEqual(editor.cursor, 0)
        editor.set_cursor_from_click(40)
        self.assertEqual(editor.cursor, 4)

    def test_click_on_wide_characters(self) -> None:
        editor = LineEditor("日本")
        editor.set_cursor_from_click(1)
        self.assertEqual(editor.cursor, 1)
        editor.set_cursor_from_click(3)
        self.assertEqual(editor.cursor, 2)
        self.assertEqual(editor.cursor_column(), 4)

    def test_commit_returns_text_and_clears(self) -> None:
        editor = LineEditor("pattern")
        self.assertEqual(editor.commit(), "pattern")
        self.assertEqual(editor.text, "")
        self.assertEqual(editor.cursor, 0)

    def test_cancel_clears_without_returning(self) -> None:
        editor = LineEditor("x")
        editor.cancel()
        self.assertEqual(editor.text, "")


if __name__ == "__main__":
    unittest.main()
