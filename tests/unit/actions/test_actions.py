"""Tests for action parsing and display.

Covers keyword lookup, 1-based goto numbers and shell command prefixes.
Also pins the ``0`` edge case that must fail instead of meaning goto.
"""

from __future__ import annotations

import unittest

from gitpeek.actions import NOOP, Action, ActionKind, CommandKind, parse_action
from gitpeek.errors import ActionParseError


class ActionParseTests(unittest.TestCase):
    def test_plain_keywords_map_to_their_kind(self) -> None:
        self.assertEqual(parse_action("up"), Action(ActionKind.UP))
        self.assertEqual(parse_action("half_page_down"), Action(ActionKind.HALF_PAGE_DOWN))
        self.assertEqual(parse_action("pager_next_commit"), Action(ActionKind.PAGER_NEXT_COMMIT))
        self.assertTrue(parse_action("nop").is_none)

    def test_keywords_are_case_sensitive(self) -> None:
        with self.assertRaises(ActionParseError):
            parse_action("Up")

    def test_positive_number_is_zero_based_goto(self) -> None:
        self.assertEqual(parse_action("42"), Action(ActionKind.GOTO, index=41))
        self.assertEqual(parse_action("1"), Action.goto(0))

    def test_zero_is_not_goto_and_fails_as_command(self) -> None:
        with self.assertRaises(ActionParseError) as ctx:
            parse_action("0")
        self.assertEqual(ctx.exception.text, "0")

    def test_negative_and_non_ascii_digits_are_rejected(self) -> None:
        for text in ("-3", "٣"):
            with self.subTest(text=text), self.assertRaises(ActionParseError):
                parse_action(text)

    def test_shell_prefixes_select_execution_policy(self) -> None:
        sync = parse_action("!git commit")
        self.assertEqual(sync.kind, ActionKind.COMMAND)
        self.assertEqual(sync.command_kind, CommandKind.SYNC)
        self.assertEqual(sync.text, "git commit")

        self.assertEqual(parse_action(">vim %(file)").command_kind, CommandKind.SYNC_QUIT)
        self.assertEqual(parse_action("@echo hi | %(clip)").command_kind, CommandKind.ASYNC)
        self.assertEqual(parse_action("@echo hi | %(clip)").text, "echo hi | %(clip)")

    def test_text_actions_keep_the_rest_of_the_line(self) -> None:
        action = parse_action("map status x !git add %(file)")
        self.assertEqual(action.kind, ActionKind.MAP)
        self.assertEqual(action.text, "status x !git add %(file)")
        self.assertEqual(parse_action("echo hello world").text, "hello world")

    def test_goto_keyword_takes_a_line_number(self) -> None:
        self.assertEqual(parse_action("goto 10"), Action.goto(9))
        self.assertEqual(parse_action("goto"), Action.goto(0))

    def test_command_keyword_is_not_reachable_by_name(self) -> None:
        with self.assertRaises(ActionParseError):
            parse_action("command")

    def test_unknown_text_and_empty_text_fail(self) -> None:
        for text in ("frobnicate", ""):
            with self.subTest(text=text), self.assertRaises(ActionParseError):
                parse_action(text)


class ActionDisplayTests(unittest.TestCase):
    def test_str_round_trips_through_the_parser(self) -> None:
        for text in ("quit", "!git push", "@true", "echo hi", "goto 7"):
            with self.subTest(text=text):
                self.assertEqual(str(parse_action(text)), text)

    def test_noop_is_none(self) -> None:
        self.assertTrue(NOOP.is_none)
        self.assertFalse(Action(ActionKind.QUIT).is_none)
        self.assertEqual(Action.goto(-4).index, 0)


if __name__ == "__main__":
    unittest.main()
