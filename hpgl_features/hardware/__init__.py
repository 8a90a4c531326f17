"""Instrument side: GPIB session, progress sinks and the plot runner."""

from hpgl_features.hardware.gpib_session import GpibSession
from hpgl_features.hardware.progress import (
    LoggingProgressSink,
    ProgressEvent,
    TqdmProgressSink,
)
from hpgl_features.hardware.runner import (
    FeaturesRunner,
    RunnerState,
    RunReport,
)

__all__ = [
    "FeaturesRunner",
    "GpibSession",
    "LoggingProgressSink",
    "ProgressEvent",
    "RunReport",
    "RunnerState",
    "TqdmProgressSink",
]
