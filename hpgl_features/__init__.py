"""
HPGL Features Package.

Features-plot verification program for the HP 7090A pen plotter.  Queries
the plotter's hard clip limits and output window over GPIB, compiles the
fixed ten-stage test plot against them and sends it stage by stage.

Subpackages:
    geometry: Point / Rectangle / PenPass value types and the reply parser
    patterns: Repeatability, deadband and wobble pattern generators
    compiler: Pen-pass table and the stage-by-stage sequence compiler
    hardware: GPIB session, progress sinks and the plot runner
    configs: Plotter configuration loading and validation
    utils: YAML / atomic file helpers and logging set-up
"""

__version__ = "0.1.0"

__all__ = ["geometry", "patterns", "compiler", "hardware", "configs", "utils"]
