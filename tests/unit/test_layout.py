"""Unit tests for the column-major grid layout."""

from __future__ import annotations

import pytest

from monidash.core.layout import Layout, layout_grid
from monidash.errors import InsufficientSpaceError, LayoutError
from monidash.models.geometry import Rect, Size


class TestEmptyLayout:
    @pytest.mark.parametrize(
        "min_box, screen",
        [
            (Size(w=30, h=5), Size(w=80, h=24)),
            (Size(w=300, h=50), Size(w=1, h=1)),
            (Size(w=1, h=1), Size(w=0, h=0)),
        ],
    )
    def test_zero_boxes_never_fails(self, min_box, screen):
        layout = layout_grid(min_box, 0, 1, screen)
        assert layout == Layout()
        assert len(layout) == 0


class TestGrid:
    def test_three_by_three(self):
        layout = layout_grid(Size(w=300, h=3), 9, 1, Size(w=904, h=13))

        assert len(layout.boxes) == 9
        assert layout.boxes[0] == Rect.of(1, 1, 300, 3)
        assert layout.boxes[1] == Rect.of(1, 5, 300, 3)
        assert layout.boxes[2] == Rect.of(1, 9, 300, 3)
        assert layout.boxes[3] == Rect.of(1 + 301, 1, 300, 3)
        assert layout.boxes[8] == Rect.of(1 + 2 * 301, 9, 300, 3)

    def test_boxes_fill_columns_first(self):
        layout = layout_grid(Size(w=10, h=3), 4, 1, Size(w=100, h=9))

        # two rows per column: (9 - 1) // (3 + 1)
        xs = [box.x for box in layout.boxes]
        ys = [box.y for box in layout.boxes]
        assert xs[0] == xs[1]
        assert xs[2] == xs[3] > xs[0]
        assert ys == [1, 5, 1, 5]

    def test_trailing_column_may_be_short(self):
        layout = layout_grid(Size(w=300, h=3), 7, 1, Size(w=904, h=13))

        assert len(layout.boxes) == 7
        last_column = [box for box in layout.boxes if box.x == 1 + 2 * 301]
        assert len(last_column) == 1

    def test_single_column_uses_full_width(self):
        layout = layout_grid(Size(w=30, h=5), 2, 1, Size(w=80, h=24))

        assert all(box.w == 78 for box in layout.boxes)
        assert all(box.h == 5 for box in layout.boxes)

    def test_every_box_is_at_least_the_minimum(self):
        layout = layout_grid(Size(w=30, h=5), 11, 1, Size(w=200, h=40))

        assert len(layout.boxes) == 11
        assert all(box.w >= 30 and box.h == 5 for box in layout.boxes)


class TestInsufficientSpace:
    def test_too_narrow(self):
        with pytest.raises(InsufficientSpaceError):
            layout_grid(Size(w=300, h=3), 10, 1, Size(w=904, h=13))

    def test_too_short(self):
        with pytest.raises(InsufficientSpaceError):
            layout_grid(Size(w=30, h=5), 1, 1, Size(w=80, h=5))

    def test_is_a_layout_error(self):
        with pytest.raises(LayoutError):
            layout_grid(Size(w=81, h=5), 1, 1, Size(w=80, h=24))
