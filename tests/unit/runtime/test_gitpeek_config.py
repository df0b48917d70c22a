"""Tests for the directive-based configuration.

Checks the built-in defaults, user overrides layered on top of them,
``source:line`` error reporting and config file discovery.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from gitpeek.actions import Action, ActionKind, CommandKind, parse_action
from gitpeek.errors import ActionParseError, ConfigError, ScopeParseError, VariableError
from gitpeek.input.bindings import GLOBAL_SCOPE, Layer, Scope, ScopeKind
from gitpeek.runtime import config as config_module
from gitpeek.runtime.config import Config, load_config


class DefaultConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.missing = Path(self._tmp.name) / "missing"

    def test_defaults_load_without_user_file(self) -> None:
        config = load_config(self.missing)
        self.assertEqual(config.scrolloff, 3)
        self.assertEqual(config.git, "git")
        global_bindings = config.bindings.get_bindings(GLOBAL_SCOPE)
        self.assertEqual(global_bindings[("q",)], Action(ActionKind.QUIT))
        self.assertEqual(global_bindings[("g", "g")], Action(ActionKind.FIRST))
        self.assertEqual(global_bindings[("y", "y")].command_kind, CommandKind.ASYNC)

    def test_default_scoped_bindings_and_buttons(self) -> None:
        config = load_config(self.missing)
        blame = config.bindings.get_bindings(Scope(ScopeKind.BLAME))
        self.assertEqual(blame[("<enter>",)], Action(ActionKind.OPEN_SHOW_APP))
        labels = [label for label, _ in config.bindings.buttons_for([Scope(ScopeKind.STATUS), GLOBAL_SCOPE])]
        self.assertEqual(labels, ["Commit", "Push", "Refresh"])


class UserConfigTests(unittest.TestCase):
    def _load(self, text: str) -> Config:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config"
            path.write_text(text, encoding="utf-8")
            return load_config(path)

    def test_user_file_overrides_defaults(self) -> None:
        config = self._load("# comment\n\nset scrolloff 5\nmap global q down\nmap global zz nop\n")
        bindings = config.bindings.get_bindings(GLOBAL_SCOPE)
        self.assertEqual(config.scrolloff, 5)
        self.assertEqual(bindings[("q",)], Action(ActionKind.DOWN))
        self.assertNotIn(("z", "z"), bindings)
        self.assertEqual(bindings[("<esc>",)], Action(ActionKind.QUIT))

    def test_error_names_file_and_line(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config"
            path.write_text("set scrolloff 2\n\nmap nowhere x quit\n", encoding="utf-8")
            with self.assertRaises(ConfigError) as ctx:
                load_config(path)
        self.assertEqual(ctx.exception.line_number, 3)
        self.assertEqual(ctx.exception.source, str(path))
        self.assertIsInstance(ctx.exception.cause, ScopeParseError)
        self.assertTrue(str(ctx.exception).startswith(f"{path}:3: "))

    def test_non_directive_line_is_rejected(self) -> None:
        with self.assertRaises(ConfigError) as ctx:
            self._load("quit\n")
        self.assertIsInstance(ctx.exception.cause, ActionParseError)


class VariableTests(unittest.TestCase):
    def test_variables_parse_and_validate(self) -> None:
        config = Config()
        config.set_variable("scroll_step", "2")
        config.set_variable("smartcase", "off")
        config.set_variable("git", "/usr/local/bin/git")
        config.set_variable("clipboard", "wl-copy")
        self.assertEqual(config.scroll_step, 2)
        self.assertFalse(config.smartcase)
        self.assertEqual(config.git, "/usr/local/bin/git")
        self.assertEqual(config.clipboard, "wl-copy")

    def test_invalid_variables_raise(self) -> None:
        config = Config()
        for name, value in (("scroll_step", "0"), ("scrolloff", "-1"), ("smartcase", "maybe"), ("colour", "x")):
            with self.subTest(name=name), self.assertRaises(VariableError):
                config.set_variable(name, value)

    def test_live_map_action_goes_to_user_layer(self) -> None:
        config = Config()
        config.bindings.set_binding(GLOBAL_SCOPE, ("x",), Action(ActionKind.QUIT), Layer.DEFAULT)
        config.apply(parse_action("map global x !git status"))
        action = config.bindings.get_bindings(GLOBAL_SCOPE)[("x",)]
        self.assertEqual(action.command_kind, CommandKind.SYNC)
        self.assertEqual(action.text, "git status")


class ConfigPathTests(unittest.TestCase):
    def test_environment_variable_wins(self) -> None:
        with mock.patch.dict("os.environ", {"GITPEEK_CONFIG": "/tmp/custom"}):
            self.assertEqual(config_module.config_path(), Path("/tmp/custom"))

    def test_legacy_file_is_used_when_default_is_absent(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            legacy = Path(tmp) / ".gitpeekrc"
            legacy.write_text("", encoding="utf-8")
            with mock.patch.dict("os.environ", {"GITPEEK_CONFIG": ""}), mock.patch(
                "gitpeek.runtime.config.DEFAULT_CONFIG_PATH", Path(tmp) / "nope" / "config"
            ), mock.patch("gitpeek.runtime.config.LEGACY_CONFIG_PATH", legacy):
                self.assertEqual(config_module.config_path(), legacy)


if __name__ == "__main__":
    unittest.main()
