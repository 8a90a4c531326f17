"""Sequence compiler -- plotter geometry to the complete features program.

The features plot is a fixed verification routine: apart from the two
device-reported rectangles every coordinate below is a program constant.
The compiler is a pure function of ``(hard_clip, output_window)``; it
holds no connection, sends nothing and keeps no state between calls.

Stages, in transmission order (order is part of the contract)::

     1  coordinate labels    P1/P2 marks and labels
     2  pen repeatability    eight passes over the pairing table
     3  axis grid            8 X ticks, 15 Y ticks
     4  axis labels          15..1 centimetres, 0..7 inches
     5  circular fan         concentric circles, fill, radial lines
     6  title labels         slanted model name, upright caption
     7  frame window         four nested frames, rising velocity
     8  deadband scales      two primary/vernier scale pairs
     9  pen wobble           zigzag runs
    10  finish               deselect pen, park at OW upper-right

Mode convention: every stage starts and ends with the pen raised and the
plotter in absolute (``PA``) mode, so stages can be sent independently.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Iterator

from hpgl_features.compiler.pen_passes import PEN_PASSES, passes_by_number
from hpgl_features.compiler.program import Program, Stage
from hpgl_features.errors import InvalidGeometry
from hpgl_features.geometry.types import PenPass, Point, Rectangle
from hpgl_features.patterns.deadband import arrow, deadband_scale, tick_points
from hpgl_features.patterns.hpgl import CR, coords, label, stroke
from hpgl_features.patterns.repeatability import (
    pen_repeatability_type1,
    pen_repeatability_type2,
)
from hpgl_features.patterns.wobble import pen_wobble_test

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stage plan
# ---------------------------------------------------------------------------

COORDINATE_LABELS = "coordinate labels"
PEN_REPEATABILITY = "pen repeatability"
AXIS_GRID = "axis grid"
AXIS_LABELS = "axis labels"
CIRCULAR_FAN = "circular fan"
TITLE_LABELS = "title labels"
FRAME_WINDOW = "frame window"
DEADBAND_SCALES = "deadband scales"
PEN_WOBBLE = "pen wobble"
FINISH = "finish"

# (name, progress increment); increments sum to 100
STAGE_PLAN: tuple[tuple[str, int], ...] = (
    (COORDINATE_LABELS, 5),
    (PEN_REPEATABILITY, 25),
    (AXIS_GRID, 10),
    (AXIS_LABELS, 10),
    (CIRCULAR_FAN, 15),
    (TITLE_LABELS, 5),
    (FRAME_WINDOW, 5),
    (DEADBAND_SCALES, 10),
    (PEN_WOBBLE, 10),
    (FINISH, 5),
)


# ---------------------------------------------------------------------------
# Program constants (plotter units)
# ---------------------------------------------------------------------------

FAN_CENTRE = Point(5100, 4064)

# Pen repeatability decorations, each drawn after the pass it is keyed on
ANCHOR_TOP = "FT4,100,45;PA9372,6440;RR700,700;SP2;ER700,700"
ANCHOR_BOTTOM = "FT4,100,45;PA9372,490;RR700,700;SP1;ER700,700"
PASS_DECORATIONS: dict[int, str] = {
    1: ANCHOR_TOP,
    2: "FT4,50,90;PA9722,5600;WG350,0,360,40;SP3;EW350,0,360,40;",
    3: "UF10,5,5;FT5;PA9722,4060;PT.5;WG700,60,60;",
    4: "UF12,8;FT5;PA9722,3570;PT.5;WG700,240,60;SP5;EW700,240,60;",
}

# Axis grid
GRID_ORIGIN = Point(9124, 1016)
X_TICK_COUNT = 8
X_TICK_STEP = Point(-1016, 0)
Y_TICK_COUNT = 15
Y_TICK_STEP = Point(0, 400)

# Axis labels
Y_LABEL_ORIGIN = Point(700, 6966)
X_LABEL_ORIGIN = Point(948, 756)
X_LABEL_MAX = 7

# Circular fan
CIRCLE_RADII = range(108, 609, 100)
INNER_RADIUS = 608
OUTER_RADIUS = 2200
RADIAL_MIN_DEG = 0
RADIAL_MAX_DEG = 355
RADIAL_STEP_DEG = 5
FAN_WINDOW = Rectangle.from_values(3600, 2564, 6600, 5564)

# Title labels
TITLE_TEXT = "7090A"

# Frame window
FRAME_COUNT = 4
FRAME_INSET = 25
FRAME_VELOCITY_START = 8
FRAME_VELOCITY_STEP = 10

# Deadband scales: (anchor, horizontal, offset_m, offset_l)
DEADBAND_LAYOUT: tuple[tuple[Point, bool, int, int], ...] = (
    (Point(5800, 1150), True, 0, 0),
    (Point(7400, 1550), True, 10, 0),
    (Point(2700, 2600), False, 0, 0),
    (Point(3100, 4200), False, 0, 10),
)
# Reference lines start here and end on the vernier's centre tick
DEADBAND_ARROW_STARTS = (Point(6600, 1800), Point(3350, 3400))

_PATTERNS: dict[int, Callable[[int], list[str]]] = {
    1: pen_repeatability_type1,
    2: pen_repeatability_type2,
}


# ---------------------------------------------------------------------------
# Geometry helpers
# ---------------------------------------------------------------------------


def radial_lines(
    centre: Point = FAN_CENTRE,
    inner_radius: int = INNER_RADIUS,
    outer_radius: int = OUTER_RADIUS,
    min_deg: int = RADIAL_MIN_DEG,
    max_deg: int = RADIAL_MAX_DEG,
    step_deg: int = RADIAL_STEP_DEG,
) -> Iterator[tuple[Point, Point]]:
    """Yield ``(inner, outer)`` end points of each fan spoke.

    Coordinates are rounded to the nearest plotter unit (ties to even).
    """
    for deg in range(min_deg, max_deg + 1, step_deg):
        theta = math.radians(deg)
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        inner = Point(
            round(centre.x + inner_radius * cos_t),
            round(centre.y + inner_radius * sin_t),
        )
        outer = Point(
            round(centre.x + outer_radius * cos_t),
            round(centre.y + outer_radius * sin_t),
        )
        yield inner, outer


def nested_frames(output_window: Rectangle) -> list[tuple[Rectangle, int]]:
    """Frame rectangles and their velocities, outermost first.

    Raises
    ------
    InvalidGeometry
        If the output window is too small for the innermost frame.
    """
    frames: list[tuple[Rectangle, int]] = []
    frame, velocity = output_window, FRAME_VELOCITY_START
    for k in range(FRAME_COUNT):
        if k:
            try:
                frame = frame.inset(FRAME_INSET)
            except InvalidGeometry as exc:
                raise InvalidGeometry(
                    f"output window {output_window.values()} too small for "
                    f"{FRAME_COUNT} frames inset by {FRAME_INSET}"
                ) from exc
            velocity += FRAME_VELOCITY_STEP
        frames.append((frame, velocity))
    return frames


# ---------------------------------------------------------------------------
# Stage builders
# ---------------------------------------------------------------------------


def _coordinate_labels(hard_clip: Rectangle) -> list[str]:
    p1, p2 = hard_clip.lower_left, hard_clip.upper_right
    return [
        f"SP1;PA{FAN_CENTRE.hpgl()};PD;SM+;PU{p1.hpgl()}",
        f"CP2,-.3;{label(f'P1=({p1.hpgl()})')}",
        f"PA{p2.hpgl()};SM;",
        f"CP-16,-.3;{label(f'P2=({p2.hpgl()})')}",
    ]


def _pen_pass(pass_number: int, entries: tuple[PenPass, ...]) -> list[str]:
    cmds = [f"SP{pass_number};"]
    for entry in entries:
        cmds.append(f"PA{entry.location.hpgl()};")
        cmds.extend(_PATTERNS[entry.pattern](pass_number))
    return cmds


def _pen_repeatability(table: tuple[PenPass, ...] = PEN_PASSES) -> list[str]:
    cmds: list[str] = []
    for pass_number, entries in passes_by_number(table).items():
        cmds.extend(_pen_pass(pass_number, entries))
        if pass_number in PASS_DECORATIONS:
            cmds.append(PASS_DECORATIONS[pass_number])
    cmds.append(ANCHOR_BOTTOM)
    return cmds


def _axis_grid() -> list[str]:
    cmds = [f"PA{GRID_ORIGIN.hpgl()};PD;"]
    cmds.extend([f"XT;PR{X_TICK_STEP.hpgl()};"] * X_TICK_COUNT)
    cmds.extend([f"PR{Y_TICK_STEP.hpgl()};YT;"] * Y_TICK_COUNT)
    cmds.append("PU;PA;")
    return cmds


def _axis_labels() -> list[str]:
    cmds = [
        f"SP3;PA600,3500;DI0,1;{label('Centimetres')};",
        f"PA{Y_LABEL_ORIGIN.hpgl()};DI;",
    ]
    for value in range(Y_TICK_COUNT, 0, -1):
        if value < 10:
            # single digits: shift one character right to align units
            cmds.append("CP1,0;")
        cmds.append(f"{label(f'{value}{CR}')};PR{(-Y_TICK_STEP).hpgl()};")

    cmds.append(f"PA{X_LABEL_ORIGIN.hpgl()};SP4;")
    for value in range(X_LABEL_MAX + 1):
        cmds.append(f"{label(f'{value}{CR}')};PR{(-X_TICK_STEP).hpgl()};")
    cmds.append(f"PA4810,516;{label('Inches')}")
    return cmds


def _circular_fan() -> list[str]:
    window = FAN_WINDOW
    cmds = [f"PA{FAN_CENTRE.hpgl()};PM0;"]
    cmds.extend(f"CI{radius};PM1;" for radius in CIRCLE_RADII)
    cmds.append("PM2;UF;FT5;FP;SP6;EP;SP7;")
    cmds.append(
        f"IW{coords((window.lower_left, window.upper_right))};"
        f"PA{window.lower_left.hpgl()};"
        f"ER{window.width},{window.height};SP8;"
    )
    cmds.extend(stroke(inner, outer) for inner, outer in radial_lines())
    cmds.append("IW;PU;")
    return cmds


def _title_labels() -> list[str]:
    return [
        "PA3610,6514;",
        f"VS;SI1,1;SL.45;{label(TITLE_TEXT)};",
        "PA4645,1778;",
        f"SI;SL;{label('Features')};",
        f"CP-6,-1;{label('Plot')};",
    ]


def _frame_window(output_window: Rectangle) -> list[str]:
    cmds = []
    for frame, velocity in nested_frames(output_window):
        walk = frame.corners()
        cmds.append(
            f"PU{walk[0].hpgl()};VS{velocity};PD{coords(walk[1:])};PU;"
        )
    cmds.append(f"PU{FAN_CENTRE.hpgl()};CI25;VS;")
    return cmds


def _deadband_scales() -> list[str]:
    cmds: list[str] = []
    pairs = (DEADBAND_LAYOUT[0:2], DEADBAND_LAYOUT[2:4])
    for (primary, vernier), start in zip(pairs, DEADBAND_ARROW_STARTS):
        cmds.extend(deadband_scale(*primary))
        cmds.extend(deadband_scale(*vernier))
        centre_tick = tick_points(*vernier)[4]
        cmds.append(arrow(start, centre_tick))
    return cmds


def _finish(output_window: Rectangle) -> list[str]:
    return [f"SP0;PA{output_window.upper_right.hpgl()};"]


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


class SequenceCompiler:
    """Compile the features plot for one plotter.

    Stateless; a single instance may compile any number of programs.

    Examples
    --------
    >>> hard_clip = Rectangle.from_values(0, 0, 10200, 7600)
    >>> window = Rectangle.from_values(1000, 700, 9200, 6900)
    >>> program = SequenceCompiler().compile(hard_clip, window)
    >>> program.commands[-1]
    'SP0;PA9200,6900;'
    """

    def compile(
        self,
        hard_clip: Rectangle,
        output_window: Rectangle,
    ) -> Program:
        """Produce the complete, ordered features program.

        Parameters
        ----------
        hard_clip : Rectangle
            P1/P2 hard clip limits reported by ``OP``.
        output_window : Rectangle
            Output window reported by ``OW``.

        Returns
        -------
        Program
            Ten stages in :data:`STAGE_PLAN` order.

        Raises
        ------
        InvalidGeometry
            If the output window cannot hold the nested frames.
        """
        builders: dict[str, Callable[[], list[str]]] = {
            COORDINATE_LABELS: lambda: _coordinate_labels(hard_clip),
            PEN_REPEATABILITY: _pen_repeatability,
            AXIS_GRID: _axis_grid,
            AXIS_LABELS: _axis_labels,
            CIRCULAR_FAN: _circular_fan,
            TITLE_LABELS: _title_labels,
            FRAME_WINDOW: lambda: _frame_window(output_window),
            DEADBAND_SCALES: _deadband_scales,
            PEN_WOBBLE: pen_wobble_test,
            FINISH: lambda: _finish(output_window),
        }

        stages = []
        for name, percent in STAGE_PLAN:
            commands = tuple(builders[name]())
            logger.debug("Compiled stage '%s': %d commands", name, len(commands))
            stages.append(Stage(name=name, percent=percent, commands=commands))

        program = Program(stages=tuple(stages))
        logger.info(
            "Compiled features program: %d stages, %d commands",
            len(program.stages),
            len(program),
        )
        return program


def compile_program(hard_clip: Rectangle, output_window: Rectangle) -> Program:
    """Module-level shortcut for :meth:`SequenceCompiler.compile`."""
    return SequenceCompiler().compile(hard_clip, output_window)
