"""Grid layout — packs N fixed-height boxes into the screen, column-major.

Every column is as tall as the screen allows; the number of columns is
whatever is needed to hold all boxes, and the available width is shared
evenly between them.  The last column may be short.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from monidash.errors import InsufficientSpaceError
from monidash.models.geometry import Rect, Size

logger = logging.getLogger(__name__)


class Layout(BaseModel):
    """One rect per requested box, in request order."""

    model_config = ConfigDict(frozen=True)

    boxes: tuple[Rect, ...] = ()

    def __len__(self) -> int:
        return len(self.boxes)


def layout_grid(
    minimum_box_size: Size,
    count: int,
    padding: int,
    screen_size: Size,
) -> Layout:
    """Lay out *count* boxes of at least *minimum_box_size* on the screen.

    Parameters
    ----------
    minimum_box_size:
        Box height is always exactly ``minimum_box_size.h``; width grows to
        fill the column but may not drop below ``minimum_box_size.w``.
    count:
        Number of boxes required.
    padding:
        Gap in cells around and between boxes.
    screen_size:
        Current terminal size.

    Returns
    -------
    Layout
        Exactly *count* boxes, or an empty layout when *count* is 0.

    Raises
    ------
    InsufficientSpaceError
        If not even one row fits, or if the columns needed to hold *count*
        boxes would be narrower than ``minimum_box_size.w``.
    """
    if count == 0:
        return Layout()

    rows_per_column = (screen_size.h - padding) // (minimum_box_size.h + padding)
    if rows_per_column < 1:
        raise InsufficientSpaceError("Screen is too small to fit the grid")

    # ceiling division
    columns = -(-count // rows_per_column)
    column_width = (screen_size.w - padding) // columns
    box_width = column_width - padding
    if box_width < minimum_box_size.w:
        raise InsufficientSpaceError("Screen is too small to fit the grid")

    boxes = [
        Rect.of(
            padding + column * column_width,
            padding + row * (minimum_box_size.h + padding),
            box_width,
            minimum_box_size.h,
        )
        for column in range(columns)
        for row in range(rows_per_column)
    ][:count]

    logger.debug(
        "layout_grid: %d boxes in %d columns of %d rows (box %dx%d)",
        count,
        columns,
        rows_per_column,
        box_width,
        minimum_box_size.h,
    )
    return Layout(boxes=tuple(boxes))
