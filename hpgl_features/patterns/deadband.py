"""Deadband tick scales and reference arrows.

Deadband (positioning error at motion start/stop) is read off a pair of
facing tick scales: a *primary* scale drawn with zero offsets, and a
*vernier* scale whose tick pitch is shortened by the offset.  The two
scales run in opposite directions, their ticks meet on a shared
centreline, and tick 5 of each coincides when the plotter is accurate.

Tick placement::

    direction = +1 if offset_m == offset_l == 0 else -1
    point_i   = anchor + direction * ((i - 1) * increment + offset * (5 - i))

for ``i`` in 1..9, where ``increment`` is ``(200, 0)`` for a horizontal
scale and ``(0, 200)`` for a vertical one.
"""

from __future__ import annotations

from hpgl_features.geometry.types import Point
from hpgl_features.patterns.hpgl import stroke

# Distance between primary ticks (plotter units)
TICK_PITCH = 200

TICK_COUNT = 9

# Tick whose position does not depend on the offset
CENTRE_TICK = 5

# Arrowhead barb geometry, along and across the shaft
ARROW_BACK = 60
ARROW_SPREAD = 30


def scale_direction(offset_m: int, offset_l: int) -> int:
    """Return ``+1`` for a primary scale (both offsets zero), else ``-1``."""
    return 1 if offset_m == 0 and offset_l == 0 else -1


def tick_points(
    anchor: Point,
    horizontal: bool,
    offset_m: int = 0,
    offset_l: int = 0,
) -> list[Point]:
    """Base points of the nine ticks, in drawing order."""
    direction = scale_direction(offset_m, offset_l)
    increment = Point(TICK_PITCH, 0) if horizontal else Point(0, TICK_PITCH)
    offset = Point(offset_m, offset_l)
    return [
        anchor + direction * ((i - 1) * increment + (CENTRE_TICK - i) * offset)
        for i in range(1, TICK_COUNT + 1)
    ]


def deadband_scale(
    anchor: Point,
    horizontal: bool,
    offset_m: int = 0,
    offset_l: int = 0,
) -> list[str]:
    """Nine-tick deadband scale.

    Parameters
    ----------
    anchor : Point
        Base of the first tick.
    horizontal : bool
        Scale runs along X (ticks vertical) when ``True``, along Y
        otherwise.
    offset_m, offset_l : int
        Per-tick X / Y offset.  Both zero draws a primary scale running
        in the positive direction; anything else draws a vernier running
        the other way with ticks pointing back toward the primary.

    Returns
    -------
    list[str]
        One ``PU..;PD..;`` stroke per tick.
    """
    direction = scale_direction(offset_m, offset_l)
    increment = Point(TICK_PITCH, 0) if horizontal else Point(0, TICK_PITCH)
    tick = direction * increment.swapped()
    return [
        stroke(point, point + tick)
        for point in tick_points(anchor, horizontal, offset_m, offset_l)
    ]


def arrow(start: Point, tip: Point) -> str:
    """Axis-aligned reference line from *start* ending in an arrowhead at *tip*.

    Raises
    ------
    ValueError
        If the line is not horizontal or vertical, or has zero length.
    """
    delta = tip - start
    if (delta.x == 0) == (delta.y == 0):
        raise ValueError(
            f"arrow must be axis-aligned and non-empty, got {delta.hpgl()}"
        )
    unit = Point((delta.x > 0) - (delta.x < 0), (delta.y > 0) - (delta.y < 0))
    back = tip - ARROW_BACK * unit
    spread = ARROW_SPREAD * unit.swapped()
    barb_a = back + spread
    barb_b = back - spread
    return (
        f"PU{start.hpgl()};PD{tip.hpgl()},{barb_a.hpgl()};"
        f"PU{tip.hpgl()};PD{barb_b.hpgl()};PU;"
    )
