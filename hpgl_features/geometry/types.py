"""Geometry value types -- points, rectangles and pen passes.

All coordinates are **integer plotter units** (1016 per inch, i.e.
0.025 mm).  Every type is an immutable, slotted dataclass: a value is
built once and never mutated, so the compiler can pass them around
freely.

Two rectangles matter to the features plot:

    hard clip (P1/P2)
        Absolute drawable bounds reported by ``OP``.
    output window (OW)
        Clipping bounds reported by ``OW``; framed by the frame test.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from hpgl_features.errors import InvalidGeometry


@dataclass(frozen=True, slots=True)
class Point:
    """A 2-D position (or displacement) in plotter units."""

    x: int
    y: int

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, k: int) -> Point:
        return Point(self.x * k, self.y * k)

    __rmul__ = __mul__

    def __neg__(self) -> Point:
        return Point(-self.x, -self.y)

    def swapped(self) -> Point:
        """Exchange the axes: ``(x, y) -> (y, x)``."""
        return Point(self.y, self.x)

    def hpgl(self) -> str:
        """Render as an HPGL argument pair, ``"x,y"``."""
        return f"{self.x},{self.y}"


@dataclass(frozen=True, slots=True)
class Rectangle:
    """Axis-aligned rectangle given by its lower-left and upper-right corners.

    Parameters
    ----------
    lower_left, upper_right : Point
        Must satisfy ``lower_left.x < upper_right.x`` and
        ``lower_left.y < upper_right.y``.

    Raises
    ------
    InvalidGeometry
        If either axis is empty or inverted.
    """

    lower_left: Point
    upper_right: Point

    def __post_init__(self) -> None:
        ll, ur = self.lower_left, self.upper_right
        if ll.x >= ur.x or ll.y >= ur.y:
            raise InvalidGeometry(
                f"rectangle corners must satisfy lower-left < upper-right, "
                f"got ({ll.hpgl()}) / ({ur.hpgl()})"
            )

    @classmethod
    def from_values(cls, x1: int, y1: int, x2: int, y2: int) -> Rectangle:
        """Build from the ``x1,y1,x2,y2`` order the plotter reports."""
        return cls(Point(x1, y1), Point(x2, y2))

    @property
    def width(self) -> int:
        return self.upper_right.x - self.lower_left.x

    @property
    def height(self) -> int:
        return self.upper_right.y - self.lower_left.y

    @property
    def lower_right(self) -> Point:
        return Point(self.upper_right.x, self.lower_left.y)

    @property
    def upper_left(self) -> Point:
        return Point(self.lower_left.x, self.upper_right.y)

    def inset(self, distance: int) -> Rectangle:
        """Move all four sides *distance* units toward the centre.

        Raises
        ------
        InvalidGeometry
            If the inset rectangle would be empty.
        """
        step = Point(distance, distance)
        return Rectangle(self.lower_left + step, self.upper_right - step)

    def corners(self) -> tuple[Point, ...]:
        """Closed corner walk: LL, LR, UR, UL, LL."""
        return (
            self.lower_left,
            self.lower_right,
            self.upper_right,
            self.upper_left,
            self.lower_left,
        )

    def values(self) -> tuple[int, int, int, int]:
        """Return ``(x1, y1, x2, y2)``."""
        ll, ur = self.lower_left, self.upper_right
        return (ll.x, ll.y, ur.x, ur.y)


@dataclass(frozen=True, slots=True)
class PenPass:
    """One pen-repeatability mark on the plot.

    Parameters
    ----------
    pass_number : int
        1..8.  The pass is drawn with the pen of the same number.
    location : Point
        Absolute position of the mark.
    pattern : 1 | 2
        Repeatability pattern drawn at *location* (Type 1 star or Type 2
        cross).
    """

    pass_number: int
    location: Point
    pattern: Literal[1, 2]

    def __post_init__(self) -> None:
        if not 1 <= self.pass_number <= 8:
            raise ValueError(
                f"pass_number must be in 1..8, got {self.pass_number}"
            )
        if self.pattern not in (1, 2):
            raise ValueError(f"pattern must be 1 or 2, got {self.pattern!r}")
