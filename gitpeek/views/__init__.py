"""Concrete screens driven by the event loop."""

from __future__ import annotations

from .base import FileRevLine, RepoView, View, ViewHost
from .blame import BlameView
from .pager import LogStyle, PagerView
from .show import ShowView
from .stash import StashView
from .status import StatusView

__all__ = [
    "BlameView",
    "FileRevLine",
    "LogStyle",
    "PagerView",
    "RepoView",
    "ShowView",
    "StashView",
    "StatusView",
    "View",
    "ViewHost",
]
