"""
Sequence compiler module.

Turns the two device-reported rectangles into the complete, ordered
features program.  Pure -- no transport, no progress reporting.
"""

from hpgl_features.compiler.pen_passes import (
    PEN_PASSES,
    passes_by_location,
    passes_by_number,
)
from hpgl_features.compiler.program import Program, Stage
from hpgl_features.compiler.sequence import (
    STAGE_PLAN,
    SequenceCompiler,
    compile_program,
    nested_frames,
    radial_lines,
)

__all__ = [
    "PEN_PASSES",
    "Program",
    "STAGE_PLAN",
    "SequenceCompiler",
    "Stage",
    "compile_program",
    "nested_frames",
    "passes_by_location",
    "passes_by_number",
    "radial_lines",
]
