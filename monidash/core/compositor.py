"""Cell compositor — decides the rune and colours drawn at every cell of a box.

Each cell starts blank (a space, white on black) and is passed through an
ordered list of decorators.  Every decorator sees the cell produced by the
ones before it and may override the rune, the colours, or nothing.
Points handed to decorators are relative to the box origin.

Box anatomy for a build::

    ┏━━━━━━━━━━━━━━━━━━━━━━━━━━━━┓
    ┃ ░░░░░░░░ Test Build        ┃
    ┃ ░░░░░░░░ Building Dave     ┃
    ┃ ░░░░░░░░                   ┃
    ┗━━━━━━━━━━━━━━━━━━━━━━━━━━━━┛

The shaded swatch takes the build state's background colour.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from monidash.errors import LabelClipError
from monidash.models.builds import Build, Colour
from monidash.models.geometry import Point, Rect, Size
from monidash.terminal import CellDrawer

logger = logging.getLogger(__name__)

TEXT_PADDING = 1
BUILDING_MESSAGE = "Building"
ELLIPSIS = "..."

BOX_TOP_LEFT = "┏"
BOX_TOP_RIGHT = "┓"
BOX_BOTTOM_LEFT = "┗"
BOX_BOTTOM_RIGHT = "┛"
BOX_HORIZONTAL = "━"
BOX_VERTICAL = "┃"

# Offsets inside a build box.
_LABEL_COLUMN = 11
_ACKNOWLEDGER_AFTER_BUILDING_COLUMN = 20
_SWATCH = Rect.of(2, 1, 7, 2)


class Cell(BaseModel):
    """The rune and colour pair of one terminal cell."""

    model_config = ConfigDict(frozen=True)

    rune: str = " "
    fg: int = Colour.WHITE
    bg: int = Colour.BLACK


@runtime_checkable
class Decorator(Protocol):
    """Protocol for a single compositing step."""

    def decorate(self, cell: Cell, point: Point) -> Cell:
        """Return the cell to draw at *point*, given the cell so far."""
        ...


def compose(
    decorators: Iterable[Decorator], point: Point, base: Cell | None = None
) -> Cell:
    """Fold *decorators* in order over the cell at *point*."""
    cell = base if base is not None else Cell()
    for decorator in decorators:
        cell = decorator.decorate(cell, point)
    return cell


# ---------------------------------------------------------------------------
# Standard decorators
# ---------------------------------------------------------------------------


class BorderDecorator:
    """Draws a heavy box-drawing border around *rect*."""

    def __init__(self, rect: Rect) -> None:
        self.rect = rect

    def decorate(self, cell: Cell, point: Point) -> Cell:
        rect = self.rect
        left = rect.x
        right = rect.x + rect.w - 1
        top = rect.y
        bottom = rect.y + rect.h - 1

        if point.x == left:
            if point.y == top:
                return cell.model_copy(update={"rune": BOX_TOP_LEFT})
            if point.y == bottom:
                return cell.model_copy(update={"rune": BOX_BOTTOM_LEFT})
            return cell.model_copy(update={"rune": BOX_VERTICAL})

        if point.x == right:
            if point.y == top:
                return cell.model_copy(update={"rune": BOX_TOP_RIGHT})
            if point.y == bottom:
                return cell.model_copy(update={"rune": BOX_BOTTOM_RIGHT})
            return cell.model_copy(update={"rune": BOX_VERTICAL})

        if point.y in (top, bottom) and rect.contains(point):
            return cell.model_copy(update={"rune": BOX_HORIZONTAL})
        return cell


class TextDecorator:
    """Writes *text* on row ``start.y`` beginning at column ``start.x``.

    Non-printable characters are drawn as spaces; see ``printable``.
    """

    def __init__(self, text: str, start: Point) -> None:
        self.text = printable(text)
        self.start = start

    def decorate(self, cell: Cell, point: Point) -> Cell:
        if point.y != self.start.y or point.x < self.start.x:
            return cell
        index = point.x - self.start.x
        if index < len(self.text):
            return cell.model_copy(update={"rune": self.text[index]})
        return cell


class FillDecorator:
    """Sets the background of every cell inside *rect*; leaves fg alone."""

    def __init__(self, rect: Rect, colour: int) -> None:
        self.rect = rect
        self.colour = colour

    def decorate(self, cell: Cell, point: Point) -> Cell:
        if self.rect.contains(point):
            return cell.model_copy(update={"bg": self.colour})
        return cell


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


def printable(text: str) -> str:
    """Replace control characters in *text* with spaces.

    Build names and error messages come off the network; a ``\\n`` or ``\\t``
    handed to the terminal would move the cursor and tear the row.
    """
    return "".join(char if char.isprintable() else " " for char in text)


def ellipsize(text: str, max_length: int) -> str:
    """Shorten *text* to at most *max_length* characters.

    Lengths count characters, not bytes.  A label that is too long keeps
    its first ``max_length - 3`` characters followed by ``"..."``.

    Raises
    ------
    LabelClipError
        If *max_length* leaves no room for the ellipsis.
    """
    if max_length < len(ELLIPSIS):
        raise LabelClipError("Max length too short to ellipsize.")
    if len(text) > max_length:
        return text[: max_length - len(ELLIPSIS)] + ELLIPSIS
    return text


def build_decorators(build: Build, size: Size) -> list[Decorator]:
    """The decorators that draw *build* into a box of *size*."""
    available_width = size.w - 2 * TEXT_PADDING
    try:
        name = ellipsize(build.name, available_width)
    except LabelClipError:
        logger.debug(
            "build_decorators: box too narrow to clip %r (width %d)",
            build.name,
            available_width,
        )
        name = build.name

    decorators: list[Decorator] = [
        BorderDecorator(Rect.of(0, 0, size.w, size.h)),
        TextDecorator(name, Point(x=_LABEL_COLUMN, y=1)),
    ]
    if build.building:
        decorators.append(TextDecorator(BUILDING_MESSAGE, Point(x=_LABEL_COLUMN, y=2)))
        decorators.append(
            TextDecorator(
                build.acknowledger,
                Point(x=_ACKNOWLEDGER_AFTER_BUILDING_COLUMN, y=2),
            )
        )
    else:
        decorators.append(TextDecorator(build.acknowledger, Point(x=_LABEL_COLUMN, y=2)))
    decorators.append(FillDecorator(_SWATCH, build.state.background))
    return decorators


def render_box(drawer: CellDrawer, build: Build, bounds: Rect) -> None:
    """Draw *build* into *bounds*, writing every cell of the box."""
    decorators = build_decorators(build, bounds.size)
    base = Cell(fg=build.state.foreground)
    for x in range(bounds.w):
        for y in range(bounds.h):
            cell = compose(decorators, Point(x=x, y=y), base)
            drawer.set_cell(bounds.x + x, bounds.y + y, cell.rune, cell.fg, cell.bg)
