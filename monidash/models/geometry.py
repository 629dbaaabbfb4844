"""Geometry value types used by the grid layout and the compositor."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Point(BaseModel):
    """A single cell position on the screen."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int


class Size(BaseModel):
    """Width and height in cells."""

    model_config = ConfigDict(frozen=True)

    w: int
    h: int


class Rect(BaseModel):
    """An origin plus a size."""

    model_config = ConfigDict(frozen=True)

    origin: Point
    size: Size

    @classmethod
    def of(cls, x: int, y: int, w: int, h: int) -> Rect:
        return cls(origin=Point(x=x, y=y), size=Size(w=w, h=h))

    @property
    def x(self) -> int:
        return self.origin.x

    @property
    def y(self) -> int:
        return self.origin.y

    @property
    def w(self) -> int:
        return self.size.w

    @property
    def h(self) -> int:
        return self.size.h

    def contains(self, point: Point) -> bool:
        """Return ``True`` if *point* lies within the rect.

        Both far edges are inclusive, so ``Rect.of(2, 1, 7, 2)`` covers
        columns 2..9 and rows 1..3.
        """
        return (
            self.x <= point.x <= self.x + self.w
            and self.y <= point.y <= self.y + self.h
        )

    def __str__(self) -> str:
        return f"<Rect x:{self.x},y:{self.y} | w:{self.w},h:{self.h}>"
