"""Pen-to-pen repeatability patterns.

Each repeatability location on the plot is struck twice, by two
different pens: once with the Type 1 star and once with the Type 2
cross.  If the pens do not land on the same point the two marks visibly
separate.

Both generators assume the pen is already positioned on the mark's
location (absolute mode) and leave it raised, in **relative** mode.
"""

from __future__ import annotations

from hpgl_features.errors import InvalidPass
from hpgl_features.geometry.types import Point
from hpgl_features.patterns.hpgl import coords, label

# Arm lengths of the Type 1 star (plotter units)
LONG_SEGMENT = 247
SHORT_SEGMENT = 18

# Type 1 outline as 12 relative moves, long/short alternating.  The order
# is what gets compared pen to pen -- do not reorder.
TYPE1_SEGMENTS: tuple[Point, ...] = (
    Point(LONG_SEGMENT, 0),
    Point(0, SHORT_SEGMENT),
    Point(-LONG_SEGMENT, 0),
    Point(0, LONG_SEGMENT),
    Point(-SHORT_SEGMENT, 0),
    Point(0, -LONG_SEGMENT),
    Point(-LONG_SEGMENT, 0),
    Point(0, -SHORT_SEGMENT),
    Point(LONG_SEGMENT, 0),
    Point(0, -LONG_SEGMENT),
    Point(SHORT_SEGMENT, 0),
    Point(0, LONG_SEGMENT),
)

# Offset from the mark location to the star's first vertex
TYPE1_START = Point(9, -9)

# Half-length of the Type 2 cross arms
TYPE2_ARM = 512


def _check_pass(pass_number: int) -> None:
    if pass_number <= 0:
        raise InvalidPass(pass_number)


def pen_repeatability_type1(pass_number: int) -> list[str]:
    """Type 1 mark: pass label plus a closed 12-segment star.

    Parameters
    ----------
    pass_number : int
        Printed next to the mark; must be >= 1.

    Returns
    -------
    list[str]
        Two commands: the label, then the star outline.

    Raises
    ------
    InvalidPass
        If *pass_number* <= 0.
    """
    _check_pass(pass_number)
    return [
        f"SI;CP-1.2,0.4;{label(str(pass_number))};CP0.2,-0.4;",
        f"PR{TYPE1_START.hpgl()};PD{coords(TYPE1_SEGMENTS)};PU;",
    ]


def pen_repeatability_type2(pass_number: int) -> list[str]:
    """Type 2 mark: pass label plus a plain cross.

    Raises
    ------
    InvalidPass
        If *pass_number* <= 0.
    """
    _check_pass(pass_number)
    arm = TYPE2_ARM
    return [
        f"CP.4,-.8;{label(str(pass_number))};CP-1.4,.8;",
        f"PR0,{arm};PD0,{-2 * arm};PU{-arm},{arm};PD{2 * arm},0;PU;",
    ]
