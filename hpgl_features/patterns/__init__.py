"""
Pattern generators.

Pure functions that return the HPGL command strings for the individual
test figures of the features plot.  All dimensions are in plotter units.
"""

from hpgl_features.patterns.deadband import (
    arrow,
    deadband_scale,
    scale_direction,
    tick_points,
)
from hpgl_features.patterns.hpgl import CR, ETX, label
from hpgl_features.patterns.repeatability import (
    TYPE1_SEGMENTS,
    pen_repeatability_type1,
    pen_repeatability_type2,
)
from hpgl_features.patterns.wobble import pen_wobble_test, zigzag

__all__ = [
    "CR",
    "ETX",
    "TYPE1_SEGMENTS",
    "arrow",
    "deadband_scale",
    "label",
    "pen_repeatability_type1",
    "pen_repeatability_type2",
    "pen_wobble_test",
    "scale_direction",
    "tick_points",
    "zigzag",
]
