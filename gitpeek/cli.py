"""Command-line front door for gitpeek.

Parses the subcommand, loads the configuration and builds the first view
before the terminal switches to raw mode, then hands over to the event loop.
"""

from __future__ import annotations

import argparse
import logging
import sys
import termios
from pathlib import Path

from . import __version__
from .errors import GitpeekError
from .logs import configure_logging
from .runtime.config import Config, load_config
from .runtime.loop import EventLoop
from .runtime.terminal import TerminalController
from .views import BlameView, PagerView, ShowView, StashView, StatusView, View

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def split_revision_and_path(first: str | None, second: str | None) -> tuple[str | None, str | None]:
    """Read ``[rev] [path]`` the way ``git log`` does.

    With two values the first is the revision. A single value is a path when
    it exists on disk and a revision otherwise.
    """
    if first is not None and second is not None:
        return first, second
    if first is not None:
        if Path(first).exists():
            return None, first
        return first, None
    return None, None


def _add_revision_and_path(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("first", nargs="?", default=None, help="A revision or a path.")
    parser.add_argument("second", nargs="?", default=None, help="A path, if the first argument is a revision.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitpeek",
        description="Browse git status, blame, log, diff and stashes in the terminal.",
    )
    parser.add_argument("--debug", action="store_true", help="Write a debug log file.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("status", help="Stage and unstage files of the working tree.")

    blame = commands.add_parser("blame", help="Line-by-line history of a file.")
    _add_revision_and_path(blame)
    blame.add_argument("-L", dest="line", type=_positive_int, default=None, help="Line to select first.")

    show = commands.add_parser("show", help="Metadata and changed files of one commit.")
    _add_revision_and_path(show)

    log = commands.add_parser("log", help="Page through git log output.")
    _add_revision_and_path(log)
    log.add_argument("--author", default=None, help="Only commits by this author.")

    commands.add_parser("diff", help="Page through git diff output; extra arguments go to git.")
    commands.add_parser("stash", help="List, apply, pop and drop stash entries.")
    return parser


def log_arguments(revision: str | None, path: str | None, author: str | None) -> list[str]:
    args: list[str] = []
    if author:
        args.append(f"--author={author}")
    if revision:
        args.append(revision)
    if path:
        args += ["--", path]
    return args


def build_view(
    args: argparse.Namespace,
    extras: list[str],
    config: Config,
    parser: argparse.ArgumentParser,
) -> View:
    """Construct the first view; git and file errors surface as ``GitpeekError``."""
    command = args.command
    if command == "blame":
        revision, path = split_revision_and_path(args.first, args.second)
        if path is None:
            parser.error("blame requires a file")
        return BlameView(config, path, revision, args.line)
    if command == "show":
        revision, _ = split_revision_and_path(args.first, args.second)
        return ShowView(config, revision)
    if command == "log":
        revision, path = split_revision_and_path(args.first, args.second)
        return PagerView.for_git(config, "log", log_arguments(revision, path, args.author))
    if command == "diff":
        return PagerView.for_git(config, "diff", extras)
    if command == "stash":
        return StashView(config)
    if command is None and not sys.stdin.isatty():
        return PagerView.for_stdin(config)
    return StatusView(config)


def run_view(view: View, config: Config) -> None:
    """Run ``view`` full screen; the terminal is restored before returning."""
    try:
        terminal = TerminalController.open()
    except (OSError, termios.error) as exc:
        view.on_exit()
        raise SystemExit(f"gitpeek: cannot open the terminal: {exc}") from exc
    try:
        with terminal.raw_mode():
            EventLoop(config, terminal).run(view)
    finally:
        terminal.close()


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch the requested view.

    Startup errors (bad config, not a repository, missing file, empty pager
    input) are printed as ``gitpeek: <message>`` with exit status 1.
    """
    parser = build_parser()
    args, extras = parser.parse_known_args(argv)
    if extras and args.command != "diff":
        parser.error(f"unrecognized arguments: {' '.join(extras)}")

    log_path = configure_logging(debug=args.debug)
    if log_path is not None:
        logger.info("gitpeek %s, logging to %s", __version__, log_path)

    try:
        config = load_config()
        view = build_view(args, extras, config, parser)
        run_view(view, config)
    except GitpeekError as exc:
        logger.error("startup failed: %s", exc)
        raise SystemExit(f"gitpeek: {exc}") from exc


if __name__ == "__main__":
    main()
