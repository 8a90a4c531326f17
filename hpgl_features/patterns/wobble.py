"""Pen wobble zigzag.

Fine staircases drawn at full speed excite any mechanical resonance in
the pen carriage; a wobbling pen shows up as ragged corners.  Nothing
here depends on the plotter geometry.

Layout (amplitude ``A``)::

    run 1: 10 x (0,+A) (-A,0)   \\ drawn continuously
    run 2: 10 x (0,+A) (+A,0)   /
    jump to JUMP_1
    run 3:  9 x (0,+A) (-A,0)
    jump to JUMP_2
    run 4:  9 x (0,+A) (+A,0)   crosses run 3
"""

from __future__ import annotations

from hpgl_features.geometry.types import Point
from hpgl_features.patterns.hpgl import coords

AMPLITUDE = 20

START = Point(2450, 2414)
JUMP_1 = Point(2150, 2414)
JUMP_2 = Point(1970, 2414)

# (repetitions, horizontal sign) per run
RUNS: tuple[tuple[int, int], ...] = ((10, -1), (10, 1), (9, -1), (9, 1))


def zigzag(repetitions: int, sign: int, amplitude: int = AMPLITUDE) -> str:
    """One pen-down run of ``repetitions`` up/sideways relative pairs."""
    step = (Point(0, amplitude), Point(sign * amplitude, 0))
    return f"PD{coords(step * repetitions)};"


def _jump(to: Point) -> str:
    return f"PU;PA{to.hpgl()};PR;"


def pen_wobble_test(amplitude: int = AMPLITUDE) -> list[str]:
    """Four zigzag runs separated by two repositioning jumps.

    Expects the pen raised in absolute mode; leaves it raised in
    absolute mode.
    """
    runs = [zigzag(reps, sign, amplitude) for reps, sign in RUNS]
    return [
        f"PU{START.hpgl()};PR;",
        runs[0],
        runs[1],
        _jump(JUMP_1),
        runs[2],
        _jump(JUMP_2),
        runs[3],
        "PU;PA;",
    ]
