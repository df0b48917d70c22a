"""Runtime core: configuration, terminal, viewport, commands and the event loop.

The loop imports the views, which import this package's config, so it is
only loaded on first use.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .loop import EventLoop


def __getattr__(name: str):
    if name == "EventLoop":
        from .loop import EventLoop as _EventLoop

        return _EventLoop
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["EventLoop"]
