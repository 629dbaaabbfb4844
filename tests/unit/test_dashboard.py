"""Unit tests for the Dashboard — redraw output and the event loop."""

from __future__ import annotations

import threading

import pytest

from monidash.core.channel import Channel
from monidash.core.compositor import BOX_TOP_LEFT
from monidash.core.dashboard import ERROR_ROW, Dashboard, DashboardPhase
from monidash.errors import InsufficientSpaceError, NetworkError, ParseError
from monidash.models.builds import BuildState, BuildUpdate
from monidash.models.geometry import Size
from monidash.terminal import ESCAPE_KEY, TerminalEvent


def _run(dashboard: Dashboard, timeout: float = 5.0) -> None:
    """Run the dashboard loop, failing the test instead of hanging."""
    errors: list[BaseException] = []

    def _target() -> None:
        try:
            dashboard.run()
        except BaseException as exc:  # re-raised in the test thread
            errors.append(exc)

    thread = threading.Thread(target=_target, daemon=True)
    thread.start()
    thread.join(timeout)
    assert not thread.is_alive(), "dashboard loop did not terminate"
    if errors:
        raise errors[0]


@pytest.fixture
def updates() -> Channel[BuildUpdate]:
    return Channel(capacity=4, name="test-updates")


@pytest.fixture
def dashboard(fake_terminal, updates) -> Dashboard:
    return Dashboard(fake_terminal, updates)


# ---------------------------------------------------------------------------
# Test: redraw
# ---------------------------------------------------------------------------


class TestRedraw:
    def test_draws_each_build_in_its_box(self, dashboard, fake_screen, make_build):
        dashboard.apply_update(
            BuildUpdate(builds=[make_build("Build"), make_build("Failing Build")])
        )
        dashboard.redraw(fake_screen)

        # two rows of 5-high boxes with 1 cell of padding
        assert fake_screen.rune(1, 1) == BOX_TOP_LEFT
        assert fake_screen.rune(1, 7) == BOX_TOP_LEFT
        assert fake_screen.row_text(2, 12, 17) == "Build"
        assert fake_screen.row_text(8, 12, 25) == "Failing Build"
        assert fake_screen.flushes == 1

    def test_writes_the_whole_screen(self, dashboard, fake_screen):
        dashboard.redraw(fake_screen)

        assert len(fake_screen.cells) == fake_screen.width * fake_screen.height
        assert fake_screen.flushes == 1

    def test_error_replaces_grid(self, dashboard, fake_screen, make_build):
        dashboard.apply_update(BuildUpdate(builds=[make_build()]))
        dashboard.apply_update(BuildUpdate.failure(NetworkError("Network Error")))
        dashboard.redraw(fake_screen)

        assert dashboard.builds == ()
        assert fake_screen.row_text(ERROR_ROW).rstrip() == "Error: Network Error"
        assert BOX_TOP_LEFT not in {cell[0] for cell in fake_screen.cells.values()}
        assert fake_screen.flushes == 1

    def test_layout_failure_is_shown_for_the_frame(
        self, dashboard, fake_screen, make_build
    ):
        screen = fake_screen
        screen.width, screen.height = 40, 12
        dashboard.apply_update(BuildUpdate(builds=[make_build(str(i)) for i in range(3)]))
        dashboard.redraw(screen)

        assert isinstance(dashboard.layout_error, InsufficientSpaceError)
        assert dashboard.error is None
        assert screen.row_text(ERROR_ROW).startswith("Error: Screen is too small")
        assert screen.flushes == 1

        screen.width, screen.height = 80, 24
        dashboard.redraw(screen)

        assert dashboard.layout_error is None
        assert screen.rune(1, 1) == BOX_TOP_LEFT

    def test_error_text_clipped_to_screen(self, dashboard, fake_screen):
        screen = fake_screen
        screen.width, screen.height = 10, 5
        dashboard.apply_update(BuildUpdate.failure(ParseError("Cannot Parse JSON")))
        dashboard.redraw(screen)

        assert screen.row_text(ERROR_ROW) == "Error: Can"
        assert all(x < 10 for x, _ in screen.cells)

    def test_multiline_error_stays_on_one_row(self, dashboard, fake_screen):
        dashboard.apply_update(
            BuildUpdate.failure(ParseError("Cannot Parse JSON: 1 error\n  failing.0"))
        )
        dashboard.redraw(fake_screen)

        assert fake_screen.row_text(ERROR_ROW).rstrip() == (
            "Error: Cannot Parse JSON: 1 error   failing.0"
        )
        assert all(rune.isprintable() for rune, _, _ in fake_screen.cells.values())

    def test_custom_box_size(self, fake_terminal, fake_screen, updates, make_build):
        dashboard = Dashboard(
            fake_terminal, updates, minimum_box_size=Size(w=20, h=3), padding=2
        )
        dashboard.apply_update(BuildUpdate(builds=[make_build("a"), make_build("b")]))
        dashboard.redraw(fake_screen)

        assert fake_screen.rune(2, 2) == BOX_TOP_LEFT
        assert fake_screen.rune(2, 7) == BOX_TOP_LEFT


# ---------------------------------------------------------------------------
# Test: event loop
# ---------------------------------------------------------------------------


class TestEventLoop:
    @pytest.mark.parametrize("key", ["q", ESCAPE_KEY])
    def test_quit_keys_terminate(self, dashboard, fake_terminal, fake_screen, key):
        fake_screen.press(key)
        _run(dashboard)

        assert dashboard.phase is DashboardPhase.TERMINATED
        assert fake_terminal.entered == 1
        assert fake_terminal.exited == 1
        # only the initial redraw; quitting does not redraw
        assert fake_screen.flushes == 1

    def test_other_events_redraw_once_each(self, dashboard, fake_screen):
        fake_screen.press("x")
        fake_screen.events.send(TerminalEvent.resize())
        fake_screen.press("q")
        _run(dashboard)

        assert fake_screen.flushes == 3

    def test_update_is_applied_then_redrawn(
        self, dashboard, fake_screen, updates, make_build
    ):
        updates.send(BuildUpdate(builds=[make_build("Build", BuildState.FAILED)]))

        def _quit_after_update(screen) -> None:
            if screen.flushes == 2:
                screen.press("q")

        fake_screen.on_flush = _quit_after_update
        _run(dashboard)

        assert [b.name for b in dashboard.builds] == ["Build"]
        assert fake_screen.row_text(2, 12, 17) == "Build"
        assert fake_screen.flushes == 2

    def test_latest_update_wins(self, dashboard, fake_screen, updates, make_build):
        updates.send(BuildUpdate(builds=[make_build("old")]))
        updates.send(BuildUpdate.failure(NetworkError("Network Error")))
        updates.send(BuildUpdate(builds=[make_build("new")]))

        def _quit_after_updates(screen) -> None:
            if screen.flushes == 4:
                screen.press("q")

        fake_screen.on_flush = _quit_after_updates
        _run(dashboard)

        assert [b.name for b in dashboard.builds] == ["new"]
        assert dashboard.error is None

    def test_closed_update_source_terminates(self, dashboard, fake_terminal, updates):
        updates.close()
        _run(dashboard)

        assert dashboard.phase is DashboardPhase.TERMINATED
        assert fake_terminal.exited == 1

    def test_terminal_error_terminates(self, dashboard, fake_screen):
        fake_screen.events.send(TerminalEvent.failure("input lost"))
        _run(dashboard)

        assert dashboard.phase is DashboardPhase.TERMINATED
        assert fake_screen.flushes == 1

    def test_terminal_released_on_exception(self, dashboard, fake_terminal, fake_screen):
        def _explode(screen) -> None:
            raise RuntimeError("driver failure")

        fake_screen.on_flush = _explode
        with pytest.raises(RuntimeError, match="driver failure"):
            _run(dashboard)

        assert fake_terminal.exited == 1
        assert dashboard.phase is DashboardPhase.TERMINATED

    def test_cannot_run_twice(self, dashboard, fake_screen):
        fake_screen.press("q")
        _run(dashboard)

        with pytest.raises(RuntimeError):
            dashboard.run()

    def test_starts_initializing(self, dashboard):
        assert dashboard.phase is DashboardPhase.INITIALIZING
