"""Terminal boundary — the narrow interfaces the dashboard draws through.

The dashboard core never talks to curses directly.  It consumes:

``CellDrawer``
    ``set_cell(x, y, rune, fg, bg)`` and ``flush()``.
``Screen``
    A ``CellDrawer`` that also reports its ``size()`` and exposes the
    ``events`` channel fed by a background input poller.

``monidash.terminal.curses_driver`` provides the real implementation.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from monidash.core.channel import Channel
from monidash.models.geometry import Size

ESCAPE_KEY = "\x1b"


class EventKind(str, Enum):
    """What kind of terminal event was polled."""

    KEY = "key"
    RESIZE = "resize"
    ERROR = "error"


class TerminalEvent(BaseModel):
    """A single polled terminal event."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    key: str = ""
    error: str = ""

    @classmethod
    def key_press(cls, key: str) -> TerminalEvent:
        return cls(kind=EventKind.KEY, key=key)

    @classmethod
    def resize(cls) -> TerminalEvent:
        return cls(kind=EventKind.RESIZE)

    @classmethod
    def failure(cls, error: str) -> TerminalEvent:
        return cls(kind=EventKind.ERROR, error=error)


@runtime_checkable
class CellDrawer(Protocol):
    """Protocol for anything the compositor can draw cells onto."""

    def set_cell(self, x: int, y: int, rune: str, fg: int, bg: int) -> None:
        """Set the rune and colour pair of the cell at ``(x, y)``."""
        ...

    def flush(self) -> None:
        """Push all pending cell writes to the terminal."""
        ...


@runtime_checkable
class Screen(CellDrawer, Protocol):
    """An acquired terminal session."""

    @property
    def events(self) -> Channel[TerminalEvent]:
        """Key, resize and error events, in the order they were polled."""
        ...

    def size(self) -> Size:
        """Current terminal size in cells."""
        ...


__all__ = [
    "CellDrawer",
    "ESCAPE_KEY",
    "EventKind",
    "Screen",
    "TerminalEvent",
]
