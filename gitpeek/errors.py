"""Exception hierarchy shared by the runtime core and the views.

Every error raised while dispatching an action derives from ``GitpeekError``
so the event loop can turn it into a notification instead of crashing.
"""

from __future__ import annotations


class GitpeekError(Exception):
    """Base class for recoverable application errors."""

    #: informational errors are shown in the search channel, not in red
    informational = False


class ActionParseError(GitpeekError):
    def __init__(self, text: str) -> None:
        super().__init__(f"unknown action `{text}`")
        self.text = text


class ScopeParseError(GitpeekError):
    def __init__(self, text: str) -> None:
        super().__init__(f"unknown mapping scope `{text}`")
        self.text = text


class KeyParseError(GitpeekError):
    def __init__(self, text: str) -> None:
        super().__init__(f"invalid key sequence `{text}`")
        self.text = text


class VariableError(GitpeekError):
    def __init__(self, text: str) -> None:
        super().__init__(f"unable to set variable `{text}`")
        self.text = text


class ButtonParseError(GitpeekError):
    def __init__(self, text: str) -> None:
        super().__init__(f"unable to parse button `{text}`")
        self.text = text


class ConfigError(GitpeekError):
    """A directive in a configuration source could not be applied."""

    def __init__(self, source: str, line_number: int, cause: GitpeekError) -> None:
        super().__init__(f"{source}:{line_number}: {cause}")
        self.source = source
        self.line_number = line_number
        self.cause = cause


class StateIndexError(GitpeekError):
    def __init__(self, message: str = "invalid state index") -> None:
        super().__init__(message)


class ReachedLastMatch(GitpeekError):
    informational = True

    def __init__(self, pattern: str = "") -> None:
        message = "reached last match" if not pattern else f"reached last match for /{pattern}"
        super().__init__(message)
        self.pattern = pattern


class UnsupportedActionError(GitpeekError):
    def __init__(self, action_name: str) -> None:
        super().__init__(f"`{action_name}` is not supported in this context")
        self.action_name = action_name


class CommandSpawnError(GitpeekError):
    def __init__(self, command: str, reason: object) -> None:
        super().__init__(f"failed to run `{command}`: {reason}")
        self.command = command


class GitCommandError(GitpeekError):
    def __init__(self, args: list[str] | tuple[str, ...], detail: str = "") -> None:
        text = " ".join(args)
        message = f"error running `git {text}`"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.git_args = tuple(args)


class NotInGitRepoError(GitpeekError):
    def __init__(self) -> None:
        super().__init__("not inside a git repository")


class GitParseError(GitpeekError):
    def __init__(self, detail: str = "") -> None:
        message = "could not properly parse git output"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EmptyStreamError(GitpeekError):
    def __init__(self) -> None:
        super().__init__("no data provided to the pager")


class MissingFileError(GitpeekError):
    def __init__(self, filename: str) -> None:
        super().__init__(f"file `{filename}` does not exist")
        self.filename = filename
