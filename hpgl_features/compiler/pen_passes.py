"""Pen-repeatability pairing table.

Eight locations (two columns of four) are each struck twice: once with a
Type 1 star and once with a Type 2 cross, by two different pens.  Pass
``n`` is drawn with pen ``n`` and strikes one Type 1 and one Type 2
location; passes 5..8 revisit the locations of passes 1..4 with the
pattern types swapped.

The table is the source of truth -- the compiler walks it in order, so
the walk is 1..5, 7, 8 and finally 6.
"""

from __future__ import annotations

from collections import defaultdict

from hpgl_features.geometry.types import PenPass, Point

LEFT_X = 2032
RIGHT_X = 8128

PEN_PASSES: tuple[PenPass, ...] = (
    PenPass(1, Point(LEFT_X, 6236), 1),
    PenPass(1, Point(RIGHT_X, 1892), 2),
    PenPass(2, Point(LEFT_X, 4788), 1),
    PenPass(2, Point(RIGHT_X, 3340), 2),
    PenPass(3, Point(LEFT_X, 3340), 1),
    PenPass(3, Point(RIGHT_X, 4788), 2),
    PenPass(4, Point(LEFT_X, 1892), 1),
    PenPass(4, Point(RIGHT_X, 6236), 2),
    PenPass(5, Point(RIGHT_X, 6236), 1),
    PenPass(5, Point(LEFT_X, 1892), 2),
    PenPass(7, Point(RIGHT_X, 3340), 1),
    PenPass(7, Point(LEFT_X, 4788), 2),
    PenPass(8, Point(RIGHT_X, 1892), 1),
    PenPass(8, Point(LEFT_X, 6236), 2),
    PenPass(6, Point(RIGHT_X, 4788), 1),
    PenPass(6, Point(LEFT_X, 3340), 2),
)


def passes_by_number(
    table: tuple[PenPass, ...] = PEN_PASSES,
) -> dict[int, tuple[PenPass, ...]]:
    """Group the table by pass number, keeping table order."""
    grouped: dict[int, list[PenPass]] = defaultdict(list)
    for entry in table:
        grouped[entry.pass_number].append(entry)
    return {n: tuple(entries) for n, entries in grouped.items()}


def passes_by_location(
    table: tuple[PenPass, ...] = PEN_PASSES,
) -> dict[Point, tuple[PenPass, ...]]:
    """Group the table by location, keeping table order."""
    grouped: dict[Point, list[PenPass]] = defaultdict(list)
    for entry in table:
        grouped[entry.location].append(entry)
    return {loc: tuple(entries) for loc, entries in grouped.items()}
