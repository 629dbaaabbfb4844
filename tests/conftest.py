"""Shared test fixtures for monidash."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from monidash.core.channel import Channel
from monidash.models.builds import Build, BuildState
from monidash.models.geometry import Size
from monidash.terminal import TerminalEvent


class FakeScreen:
    """In-memory ``Screen``: records every cell write and flush."""

    def __init__(self, width: int = 80, height: int = 24) -> None:
        self.width = width
        self.height = height
        self.cells: dict[tuple[int, int], tuple[str, int, int]] = {}
        self.writes = 0
        self.flushes = 0
        self.on_flush: Callable[[FakeScreen], None] | None = None
        self._events: Channel[TerminalEvent] = Channel(10, name="fake-terminal")

    @property
    def events(self) -> Channel[TerminalEvent]:
        return self._events

    def size(self) -> Size:
        return Size(w=self.width, h=self.height)

    def set_cell(self, x: int, y: int, rune: str, fg: int, bg: int) -> None:
        self.cells[(x, y)] = (rune, fg, bg)
        self.writes += 1

    def flush(self) -> None:
        self.flushes += 1
        if self.on_flush is not None:
            self.on_flush(self)

    def rune(self, x: int, y: int) -> str:
        return self.cells.get((x, y), (" ", 0, 0))[0]

    def row_text(self, y: int, start: int = 0, end: int | None = None) -> str:
        end = self.width if end is None else end
        return "".join(self.rune(x, y) for x in range(start, end))

    def press(self, key: str) -> None:
        self._events.send(TerminalEvent.key_press(key))


class FakeTerminal:
    """Context manager handing out a ``FakeScreen`` and recording release."""

    def __init__(self, screen: FakeScreen) -> None:
        self.screen = screen
        self.entered = 0
        self.exited = 0

    def __enter__(self) -> FakeScreen:
        self.entered += 1
        return self.screen

    def __exit__(self, *exc: Any) -> None:
        self.exited += 1


@pytest.fixture
def fake_screen() -> FakeScreen:
    """Provide an 80x24 in-memory screen."""
    return FakeScreen()


@pytest.fixture
def fake_terminal(fake_screen: FakeScreen) -> FakeTerminal:
    """Provide a terminal context manager around ``fake_screen``."""
    return FakeTerminal(fake_screen)


@pytest.fixture
def make_build() -> Callable[..., Build]:
    """Factory fixture: build a ``Build`` with sensible defaults."""

    def _factory(
        name: str = "Test Build",
        state: BuildState = BuildState.PASSED,
        **overrides: Any,
    ) -> Build:
        return Build(name=name, state=state, **overrides)

    return _factory


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    """Keep real MONIDASH_* variables and .env files out of every test."""
    for var in (
        "MONIDASH_ADDRESS",
        "MONIDASH_LOG_FILE",
        "MONIDASH_LOG_LEVEL",
        "MONIDASH_RETRY_DELAY",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
