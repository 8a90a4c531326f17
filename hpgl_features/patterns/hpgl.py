"""Small HPGL formatting helpers shared by the pattern generators.

Command strings are built once and never mutated.  A command string is
one line as sent to the plotter, without the line terminator (the GPIB
session appends it).
"""

from __future__ import annotations

from typing import Iterable

from hpgl_features.geometry.types import Point

# End-of-text terminates every LB (label) instruction
ETX = "\x03"

# Carriage return inside a label returns the pen to the label origin
CR = "\r"


def label(text: str) -> str:
    """``LB`` instruction for *text*, ETX-terminated (no trailing ``;``)."""
    return f"LB{text}{ETX}"


def coords(points: Iterable[Point]) -> str:
    """Flatten points into an HPGL argument list: ``"x1,y1,x2,y2,..."``."""
    return ",".join(p.hpgl() for p in points)


def stroke(start: Point, end: Point) -> str:
    """Absolute pen-up move to *start*, pen-down line to *end*."""
    return f"PU{start.hpgl()};PD{end.hpgl()};"
