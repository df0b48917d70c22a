"""Configuration model: variables, key bindings and buttons.

Built-in defaults and the user's file are both plain directive text (``map``,
``set``, ``button``); each line is parsed as an action and funneled through
``Config.apply``, the same path the live ``:map``/``:set``/``:button``
commands use.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

from ..actions import Action, ActionKind, parse_action
from ..errors import (
    ActionParseError,
    ButtonParseError,
    ConfigError,
    GitpeekError,
    KeyParseError,
    VariableError,
)
from ..input.bindings import BindingTable, Layer, Scope
from ..input.keys import parse_key_sequence

logger = logging.getLogger(__name__)

APP_NAME = "gitpeek"
CONFIG_ENV_VAR = "GITPEEK_CONFIG"
CONFIG_FILENAME = "config"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
LEGACY_CONFIG_PATH = Path.home() / ".gitpeekrc"

DEFAULT_CONFIG = r"""
set scrolloff 3
set scroll_step 3

map global q quit
map global <esc> quit
map global j down
map global <down> down
map global k up
map global <up> up
map global gg first
map global <home> first
map global G last
map global <end> last
map global <c-d> half_page_down
map global <pagedown> half_page_down
map global <c-u> half_page_up
map global <pageup> half_page_up
map global zz shift_line_middle
map global zt shift_line_top
map global zb shift_line_bottom
map global / search
map global ? search_reverse
map global n next_search_result
map global N previous_search_result
map global : type_command
map global <c-r> reload
map global r reload
map global yy @echo -n %(text) | %(clip)

map status s stage_unstage_file
map status a stage_unstage_files
map status <tab> status_switch_view
map status J focus_staged_view
map status K focus_unstaged_view
map status cc !%(git) commit
map status ca !%(git) commit --amend
map status:unstaged dd !%(git) diff -- %(file)
map status:staged dd !%(git) diff --staged -- %(file)
map status:unstaged:new dd !less %(file)
map status:unstaged:conflicted <enter> !%(git) mergetool -- %(file)
map status <enter> !$EDITOR %(file)
map status l open_log_app

map blame <enter> open_show_app
map blame p previous_commit_blame
map blame P next_commit_blame
map blame o open_git_show
map blame l open_log_app

map show <enter> open_git_show
map show l open_log_app

map log <enter> open_show_app
map log o open_git_show
map log <c-n> pager_next_commit
map log <c-p> pager_previous_commit
map log ]] pager_next_commit
map log [[ pager_previous_commit
map diff <c-n> pager_next_commit
map diff <c-p> pager_previous_commit
map diff <enter> !$EDITOR +%(line) %(file)

map stash <enter> open_git_show
map stash P stash_pop
map stash A stash_apply
map stash D stash_drop

button status Commit !%(git) commit
button status Push !%(git) push
button status Refresh reload
button stash Pop stash_pop
button stash Apply stash_apply
button stash Drop stash_drop
button blame Older previous_commit_blame
button blame Newer next_commit_blame
"""

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}
_DIRECTIVE_KINDS = frozenset({ActionKind.SET, ActionKind.MAP, ActionKind.BUTTON})


def default_clipboard() -> str:
    if sys.platform == "darwin":
        return "pbcopy"
    if sys.platform.startswith("win"):
        return "clip"
    return "xclip -selection clipboard"


def _parse_int(name: str, value: str, minimum: int) -> int:
    try:
        number = int(value)
    except ValueError:
        raise VariableError(f"{name} {value}") from None
    if number < minimum:
        raise VariableError(f"{name} {value}")
    return number


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise VariableError(f"{name} {value}")


@dataclass
class Config:
    """Live application configuration shared by the core and every view."""

    scrolloff: int = 3
    scroll_step: int = 3
    git: str = "git"
    clipboard: str = field(default_factory=default_clipboard)
    smartcase: bool = True
    bindings: BindingTable = field(default_factory=BindingTable)

    def set_variable(self, name: str, value: str) -> None:
        value = value.strip()
        if name == "scrolloff":
            self.scrolloff = _parse_int(name, value, 0)
        elif name == "scroll_step":
            self.scroll_step = _parse_int(name, value, 1)
        elif name == "git":
            if not value:
                raise VariableError(name)
            self.git = value
        elif name == "clipboard":
            if not value:
                raise VariableError(name)
            self.clipboard = value
        elif name == "smartcase":
            self.smartcase = _parse_bool(name, value)
        else:
            raise VariableError(f"{name} {value}".rstrip())

    def apply(self, action: Action, layer: Layer = Layer.USER) -> None:
        """Apply a ``set``, ``map`` or ``button`` action to this config."""
        if action.kind is ActionKind.SET:
            parts = action.text.split(None, 1)
            if len(parts) < 2:
                raise VariableError(action.text)
            self.set_variable(parts[0], parts[1])
        elif action.kind is ActionKind.MAP:
            parts = action.text.split(None, 2)
            if len(parts) < 3:
                if len(parts) < 2:
                    raise KeyParseError(action.text)
                raise ActionParseError("")
            scope = Scope.parse(parts[0])
            keys = parse_key_sequence(parts[1])
            self.bindings.set_binding(scope, keys, parse_action(parts[2]), layer)
        elif action.kind is ActionKind.BUTTON:
            parts = action.text.split(None, 2)
            if len(parts) < 3:
                raise ButtonParseError(action.text)
            scope = Scope.parse(parts[0])
            self.bindings.set_button(scope, parts[1], parse_action(parts[2]), layer)
        else:
            raise ActionParseError(str(action))

    def apply_directive(self, text: str, layer: Layer = Layer.USER) -> None:
        action = parse_action(text.strip())
        if action.kind not in _DIRECTIVE_KINDS:
            raise ActionParseError(text.strip())
        self.apply(action, layer)

    def apply_text(self, text: str, source: str, layer: Layer = Layer.USER) -> None:
        """Apply every directive of a config text, in order.

        Blank lines and ``#`` comments are skipped. The first failing line
        raises ``ConfigError`` naming ``source`` and the 1-based line number.
        """
        for line_number, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            try:
                self.apply_directive(stripped, layer)
            except GitpeekError as exc:
                raise ConfigError(source, line_number, exc) from exc


def config_path() -> Path:
    """Return the user config path, honoring ``GITPEEK_CONFIG`` and the legacy rc file."""
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    if not DEFAULT_CONFIG_PATH.exists() and LEGACY_CONFIG_PATH.exists():
        return LEGACY_CONFIG_PATH
    return DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> Config:
    """Build the configuration from built-in defaults, then the user file.

    A missing user file is not an error; a malformed one raises ``ConfigError``.
    """
    config = Config()
    config.apply_text(DEFAULT_CONFIG, "<defaults>", Layer.DEFAULT)

    target = path if path is not None else config_path()
    try:
        text = target.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("no user config at %s", target)
        return config
    config.apply_text(text, str(target), Layer.USER)
    logger.debug("loaded user config from %s", target)
    return config
