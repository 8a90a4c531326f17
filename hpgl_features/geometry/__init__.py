"""
Geometry module.

Immutable value types in plotter units and the parser that turns the
plotter's coordinate replies into them.
"""

from hpgl_features.geometry.parser import (
    ParseOutcome,
    ResponseKind,
    parse_rectangle,
    try_parse_rectangle,
)
from hpgl_features.geometry.types import PenPass, Point, Rectangle

__all__ = [
    "ParseOutcome",
    "PenPass",
    "Point",
    "Rectangle",
    "ResponseKind",
    "parse_rectangle",
    "try_parse_rectangle",
]
