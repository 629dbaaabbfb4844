"""Dashboard — the event loop that keeps the screen in sync with the builds.

Two producers feed the loop: the terminal input poller (``screen.events``)
and the build fetcher (``updates``).  Each wake handles exactly one event
and then redraws once.  Only ``redraw`` writes to the screen.

Phases
------
``INITIALIZING``  before the terminal is acquired and first drawn
``RUNNING``       handling events
``TERMINATED``    escape / ``q`` pressed, terminal error, or the update
                  source closed; never left again
"""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from enum import Enum

from monidash.core.channel import Channel, select
from monidash.core.compositor import printable, render_box
from monidash.core.layout import layout_grid
from monidash.errors import LayoutError
from monidash.models.builds import Build, BuildUpdate, Colour
from monidash.models.geometry import Size
from monidash.terminal import ESCAPE_KEY, EventKind, Screen, TerminalEvent

logger = logging.getLogger(__name__)

DEFAULT_MINIMUM_BOX_SIZE = Size(w=30, h=5)
DEFAULT_PADDING = 1
ERROR_ROW = 3
QUIT_KEY = "q"


class DashboardPhase(str, Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    TERMINATED = "terminated"


class Dashboard:
    """Draws the latest build list as a grid of boxes.

    Parameters
    ----------
    terminal:
        Context manager that acquires the terminal and yields a ``Screen``.
        It is entered once by ``run()`` and always exited on the way out.
    updates:
        Channel of ``BuildUpdate``\\ s, usually ``BuildFetcher.updates``.
    minimum_box_size:
        Smallest box a build may be drawn into.
    padding:
        Gap in cells around and between boxes.
    """

    def __init__(
        self,
        terminal: AbstractContextManager[Screen],
        updates: Channel[BuildUpdate],
        *,
        minimum_box_size: Size = DEFAULT_MINIMUM_BOX_SIZE,
        padding: int = DEFAULT_PADDING,
    ) -> None:
        self._terminal = terminal
        self._updates = updates
        self._minimum_box_size = minimum_box_size
        self._padding = padding
        self._phase = DashboardPhase.INITIALIZING
        self.builds: tuple[Build, ...] = ()
        self.error: Exception | None = None
        self.layout_error: LayoutError | None = None

    @property
    def phase(self) -> DashboardPhase:
        return self._phase

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Acquire the terminal and process events until terminated."""
        if self._phase is not DashboardPhase.INITIALIZING:
            raise RuntimeError(f"Dashboard cannot run from phase {self._phase.value}")

        try:
            with self._terminal as screen:
                self.redraw(screen)
                self._phase = DashboardPhase.RUNNING
                logger.info("Dashboard: running")

                while self._phase is DashboardPhase.RUNNING:
                    source, value, ok = select(screen.events, self._updates)
                    if source is self._updates:
                        self._handle_update(value, ok)
                    else:
                        self._handle_terminal_event(value, ok)

                    if self._phase is DashboardPhase.RUNNING:
                        self.redraw(screen)
        finally:
            self._phase = DashboardPhase.TERMINATED
            logger.info("Dashboard: terminated")

    def _handle_update(self, update: BuildUpdate | None, ok: bool) -> None:
        if not ok or update is None:
            logger.info("Dashboard: update source closed")
            self._phase = DashboardPhase.TERMINATED
            return
        self.apply_update(update)

    def _handle_terminal_event(self, event: TerminalEvent | None, ok: bool) -> None:
        if not ok or event is None:
            logger.info("Dashboard: terminal event source closed")
            self._phase = DashboardPhase.TERMINATED
            return

        if event.kind is EventKind.KEY and event.key in (ESCAPE_KEY, QUIT_KEY):
            logger.info("Dashboard: quit requested")
            self._phase = DashboardPhase.TERMINATED
        elif event.kind is EventKind.ERROR:
            logger.error("Dashboard: terminal error: %s", event.error)
            self._phase = DashboardPhase.TERMINATED

    def apply_update(self, update: BuildUpdate) -> None:
        """Replace the current builds and error with *update*."""
        self.builds = update.builds
        self.error = update.error
        if update.error is not None:
            logger.debug("Dashboard: update carries error %r", update.error)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def redraw(self, screen: Screen) -> None:
        """Redraw the whole screen and flush exactly once.

        With no current error the builds are laid out and drawn; if the
        layout does not fit, the layout error is shown for this frame
        only, so a later resize can recover.  With an error, a single line
        of text replaces the grid.
        """
        screen_size = screen.size()
        self._clear(screen, screen_size)

        error = self.error
        self.layout_error = None
        if error is None:
            try:
                layout = layout_grid(
                    self._minimum_box_size,
                    len(self.builds),
                    self._padding,
                    screen_size,
                )
            except LayoutError as exc:
                self.layout_error = exc
                error = exc
            else:
                for build, box in zip(self.builds, layout.boxes):
                    render_box(screen, build, box)

        if error is not None:
            self._draw_error(screen, error, screen_size)

        screen.flush()

    def _clear(self, screen: Screen, screen_size: Size) -> None:
        for y in range(screen_size.h):
            for x in range(screen_size.w):
                screen.set_cell(x, y, " ", Colour.WHITE, Colour.BLACK)

    def _draw_error(self, screen: Screen, error: Exception, screen_size: Size) -> None:
        text = printable(f"Error: {error}")
        if ERROR_ROW >= screen_size.h:
            return
        for x, char in enumerate(text[: screen_size.w]):
            screen.set_cell(x, ERROR_ROW, char, Colour.WHITE, Colour.BLACK)
