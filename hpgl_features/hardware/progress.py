"""Stage progress events and the shipped sinks.

The runner fires one :class:`ProgressEvent` per stage, before the stage
is transmitted.  A sink is any ``Callable[[ProgressEvent], None]``; it
cannot influence the plot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from tqdm import tqdm

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """One stage notification.

    Attributes
    ----------
    stage : str
        Stage name, e.g. ``"axis grid"``.
    increment : int
        Percentage this stage contributes (all increments sum to 100).
    completed : int
        Cumulative percentage once this stage is done.
    """

    stage: str
    increment: int
    completed: int


ProgressSink = Callable[[ProgressEvent], None]


class LoggingProgressSink:
    """Write each stage to the log at INFO level."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def __call__(self, event: ProgressEvent) -> None:
        self._log.info(
            "Stage %-18s +%3d%%  (%3d%%)",
            event.stage, event.increment, event.completed,
        )


class TqdmProgressSink:
    """Percentage bar (0..100) labelled with the current stage.

    Use as a context manager so the bar is closed on error too::

        with TqdmProgressSink() as sink:
            runner.run(sink)
    """

    def __init__(self, desc: str = "Plotting", disable: bool = False) -> None:
        self._bar = tqdm(
            total=100,
            desc=desc,
            unit="%",
            disable=disable,
            bar_format="{desc}: {percentage:3.0f}%|{bar}| {postfix}",
        )

    def __call__(self, event: ProgressEvent) -> None:
        self._bar.set_postfix_str(event.stage)
        self._bar.update(event.increment)

    def close(self) -> None:
        self._bar.close()

    def __enter__(self) -> TqdmProgressSink:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
