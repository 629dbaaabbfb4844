"""Curses terminal driver — the real ``Screen`` behind the dashboard.

``CursesTerminal`` is a context manager: entering it puts the terminal into
curses mode and starts the input poller; leaving it (normally or via an
exception) stops the poller and restores the terminal.

All curses calls go through one lock.  The input poller waits for stdin
without holding it and only takes it for a non-blocking key read, so it
never runs concurrently with a cell write or a refresh issued by the
dashboard.
"""

from __future__ import annotations

import contextlib
import curses
import logging
import os
import select
import sys
import threading
from typing import Any

from monidash.core.channel import Channel
from monidash.errors import ChannelClosed
from monidash.models.builds import Colour
from monidash.models.geometry import Size
from monidash.terminal import TerminalEvent

logger = logging.getLogger(__name__)

EVENT_BUFFER = 10
DEFAULT_POLL_INTERVAL = 0.1

# Used when the terminal has fewer colours than the one requested.
_FALLBACK_COLOURS: dict[int, int] = {
    Colour.ORANGE: Colour.YELLOW,
}


class CursesScreen:
    """A ``Screen`` drawing into a curses window.

    Parameters
    ----------
    stdscr:
        The root window returned by ``curses.initscr()``.
    poll_interval:
        Seconds the input poller waits for stdin before re-checking for a
        resize and whether it should stop.
    """

    def __init__(
        self,
        stdscr: curses.window,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._stdscr = stdscr
        self._poll_interval = poll_interval
        self._lock = threading.RLock()
        self._pairs: dict[tuple[int, int], int] = {}
        self._colours_enabled = curses.has_colors()
        self._events: Channel[TerminalEvent] = Channel(EVENT_BUFFER, name="terminal")
        self._stop = threading.Event()
        self._poller: threading.Thread | None = None

        # Keys are read from a private 1x1 window so that polling never
        # refreshes stdscr halfway through a redraw.
        self._input = curses.newwin(1, 1, 0, 0)
        self._input.keypad(True)
        self._input.nodelay(True)
        self._input_fd = sys.stdin.fileno()

    # ------------------------------------------------------------------
    # Screen protocol
    # ------------------------------------------------------------------

    @property
    def events(self) -> Channel[TerminalEvent]:
        return self._events

    def size(self) -> Size:
        with self._lock:
            height, width = self._stdscr.getmaxyx()
        return Size(w=width, h=height)

    def set_cell(self, x: int, y: int, rune: str, fg: int, bg: int) -> None:
        with self._lock:
            height, width = self._stdscr.getmaxyx()
            if not (0 <= x < width and 0 <= y < height):
                return
            attr = self._attribute(fg, bg)
            if x == width - 1 and y == height - 1:
                # addstr at the bottom-right cell fails once the cursor
                # wraps past the end of the screen; insstr never moves it.
                self._stdscr.insstr(y, x, rune, attr)
            else:
                self._stdscr.addstr(y, x, rune, attr)

    def flush(self) -> None:
        with self._lock:
            self._stdscr.refresh()

    # ------------------------------------------------------------------
    # Input polling
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the background input poller."""
        self._poller = threading.Thread(
            target=self._poll_loop, name="monidash-input", daemon=True
        )
        self._poller.start()

    def stop(self) -> None:
        """Stop the input poller and wait for it to leave curses alone."""
        self._stop.set()
        self._events.close()
        if self._poller is not None:
            self._poller.join(timeout=self._poll_interval * 5)
            self._poller = None

    def poll_event(self) -> TerminalEvent | None:
        """Wait up to ``poll_interval`` for one event; ``None`` if none came."""
        select.select([self._input_fd], [], [], self._poll_interval)
        with self._lock:
            try:
                key = self._input.get_wch()
            except curses.error:
                # get_wch signals "no input pending" this way.
                return None

            if key == curses.KEY_RESIZE:
                curses.update_lines_cols()
                self._stdscr.clearok(True)
                return TerminalEvent.resize()

        if isinstance(key, int):
            return TerminalEvent.key_press(curses.keyname(key).decode("ascii", "replace"))
        return TerminalEvent.key_press(key)

    def _poll_loop(self) -> None:
        while not self._stop.is_set():
            try:
                event = self.poll_event()
            except Exception as exc:
                logger.exception("CursesScreen: input polling failed")
                event = TerminalEvent.failure(str(exc))
                self._stop.set()
            if event is None:
                continue
            try:
                self._events.send(event)
            except ChannelClosed:
                return

    # ------------------------------------------------------------------
    # Colours
    # ------------------------------------------------------------------

    def _attribute(self, fg: int, bg: int) -> int:
        if not self._colours_enabled:
            return curses.A_NORMAL

        key = (self._colour(fg), self._colour(bg))
        pair = self._pairs.get(key)
        if pair is None:
            pair = len(self._pairs) + 1
            if pair >= curses.COLOR_PAIRS:
                logger.warning("CursesScreen: out of colour pairs for %s", key)
                return curses.A_NORMAL
            curses.init_pair(pair, *key)
            self._pairs[key] = pair
        return curses.color_pair(pair)

    @staticmethod
    def _colour(colour: int) -> int:
        if colour < curses.COLORS:
            return int(colour)
        return int(_FALLBACK_COLOURS.get(colour, Colour.WHITE))


class CursesTerminal:
    """Scoped acquisition of the terminal in curses mode.

    Usage::

        with CursesTerminal() as screen:
            screen.set_cell(0, 0, "x", Colour.WHITE, Colour.BLACK)
            screen.flush()

    The terminal is restored on every exit path.
    """

    def __init__(self, *, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self._poll_interval = poll_interval
        self._stdscr: curses.window | None = None
        self._screen: CursesScreen | None = None

    def __enter__(self) -> CursesScreen:
        os.environ.setdefault("ESCDELAY", "25")
        self._stdscr = curses.initscr()
        try:
            curses.noecho()
            curses.cbreak()
            self._stdscr.keypad(True)
            with contextlib.suppress(curses.error):
                # not every terminal can hide the cursor
                curses.curs_set(0)
            if curses.has_colors():
                curses.start_color()
            self._screen = CursesScreen(self._stdscr, poll_interval=self._poll_interval)
            self._screen.start()
        except BaseException:
            self._restore()
            raise
        logger.info("CursesTerminal: acquired (%s)", self._screen.size())
        return self._screen

    def __exit__(self, *exc: Any) -> None:
        if self._screen is not None:
            self._screen.stop()
            self._screen = None
        self._restore()
        logger.info("CursesTerminal: released")

    def _restore(self) -> None:
        if self._stdscr is None:
            return
        self._stdscr.keypad(False)
        curses.nocbreak()
        curses.echo()
        curses.endwin()
        self._stdscr = None
