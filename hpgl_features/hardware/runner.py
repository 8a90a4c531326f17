"""Features runner -- query the plotter, compile, transmit stage by stage.

Sequence:
    1. ``ESC.T`` buffer set-up and ``ESC.L`` size query (if enabled).
    2. ``PG;IN;OP;`` -> hard clip limits, ``OW;`` -> output window.
    3. Raise the session timeout to the plot timeout.
    4. Compile the program (pure, no I/O).
    5. For each stage: check the cancel flag, notify the progress sink,
       write the stage's commands.

Cancellation is checked at stage boundaries only.  On cancel, timeout or
any error the remaining stages are abandoned; nothing is sent to tidy up
the device.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Protocol

from hpgl_features.compiler.program import Program
from hpgl_features.compiler.sequence import SequenceCompiler
from hpgl_features.configs.loader import IOBufferConfig, PlotterConfig
from hpgl_features.geometry.parser import ResponseKind, parse_rectangle
from hpgl_features.geometry.types import Rectangle
from hpgl_features.hardware.progress import ProgressEvent
from hpgl_features.utils.logging_config import pop_context, push_context

logger = logging.getLogger(__name__)

# Page + initialise + output hard clip limits (P1/P2)
HARD_CLIP_QUERY = "PG;IN;OP;"
OUTPUT_WINDOW_QUERY = "OW;"


class TransportSession(Protocol):
    """What the runner needs from a session (see ``GpibSession``)."""

    def write(self, command: str) -> None: ...

    def query(self, command: str) -> str: ...

    def set_timeout(self, timeout_ms: int) -> None: ...

    def configure_buffer(self, cfg: IOBufferConfig) -> str | None: ...


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class RunnerState(Enum):
    """Current runner state."""

    IDLE = auto()
    QUERYING = auto()
    PLOTTING = auto()
    CANCELLED = auto()
    COMPLETE = auto()
    ERROR = auto()


@dataclass
class RunReport:
    """Outcome of one :meth:`FeaturesRunner.run`."""

    program: Program
    hard_clip: Rectangle
    output_window: Rectangle
    stages_sent: int = 0
    commands_sent: int = 0
    cancelled: bool = False


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class FeaturesRunner:
    """Drive one features plot over an open session.

    Parameters
    ----------
    session : TransportSession
        Open session (normally a ``GpibSession``).
    config : PlotterConfig
        Validated configuration (timeouts, buffer set-up).
    compiler : SequenceCompiler, optional
        Injected for tests; a fresh one by default.
    """

    def __init__(
        self,
        session: TransportSession,
        config: PlotterConfig,
        compiler: SequenceCompiler | None = None,
    ) -> None:
        self._session = session
        self._cfg = config
        self._compiler = compiler or SequenceCompiler()

        self._state = RunnerState.IDLE
        self._cancel_flag = threading.Event()
        self._progress_cb: Callable[[ProgressEvent], None] | None = None

    # ------------------------------------------------------------------
    # Common
    # ------------------------------------------------------------------

    def get_state(self) -> RunnerState:
        """Return current runner state."""
        return self._state

    def set_progress_callback(
        self, fn: Callable[[ProgressEvent], None] | None,
    ) -> None:
        """Register a callback invoked once per stage, before it is sent."""
        self._progress_cb = fn

    def cancel(self) -> None:
        """Request cancellation -- takes effect at the next stage boundary."""
        self._cancel_flag.set()
        logger.info("Cancel requested")

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_flag.is_set()

    def _notify(self, event: ProgressEvent) -> None:
        if self._progress_cb is None:
            return
        try:
            self._progress_cb(event)
        except Exception as exc:  # noqa: BLE001
            logger.error("Progress callback error: %s", exc)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def query_geometry(self) -> tuple[Rectangle, Rectangle]:
        """Set up the I/O buffer and read hard clip limits and output window.

        Raises
        ------
        TransportFailure
            If a query fails or times out.
        ValidationError
            If a reply cannot be parsed into a valid rectangle.
        """
        self._session.configure_buffer(self._cfg.io_buffer)

        hard_clip = parse_rectangle(
            self._session.query(HARD_CLIP_QUERY), ResponseKind.HARD_CLIP,
        )
        logger.info("Hard clip limits: %s", hard_clip.values())

        output_window = parse_rectangle(
            self._session.query(OUTPUT_WINDOW_QUERY), ResponseKind.OUTPUT_WINDOW,
        )
        logger.info("Output window: %s", output_window.values())
        return hard_clip, output_window

    def transmit(self, program: Program, report: RunReport) -> None:
        """Send *program* stage by stage, honouring the cancel flag."""
        completed = 0
        for stage in program.stages:
            if self._cancel_flag.is_set():
                logger.info(
                    "Plot cancelled before stage '%s' (%d/%d sent)",
                    stage.name, report.stages_sent, len(program.stages),
                )
                report.cancelled = True
                self._state = RunnerState.CANCELLED
                return

            completed += stage.percent
            self._notify(ProgressEvent(stage.name, stage.percent, completed))

            push_context(stage=stage.name)
            try:
                for command in stage.commands:
                    self._session.write(command)
                    report.commands_sent += 1
            finally:
                pop_context(keys=["stage"])

            report.stages_sent += 1
            logger.debug(
                "Sent stage '%s' (%d commands)", stage.name, len(stage.commands),
            )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self) -> RunReport:
        """Query, compile and plot the features program.

        Returns
        -------
        RunReport
            What was compiled and how much of it was sent.

        Raises
        ------
        TransportFailure
            On any session error; remaining stages are abandoned.
        ValidationError
            If a device reply is unusable; nothing is plotted.
        """
        self._cancel_flag.clear()
        self._state = RunnerState.QUERYING
        try:
            hard_clip, output_window = self.query_geometry()
            self._session.set_timeout(self._cfg.connection.plot_timeout_ms)

            program = self._compiler.compile(hard_clip, output_window)
            report = RunReport(
                program=program,
                hard_clip=hard_clip,
                output_window=output_window,
            )

            self._state = RunnerState.PLOTTING
            logger.info("Plotting %d stages", len(program.stages))
            self.transmit(program, report)
        except Exception:
            self._state = RunnerState.ERROR
            raise

        if not report.cancelled:
            self._state = RunnerState.COMPLETE
            logger.info(
                "Features plot complete: %d commands sent", report.commands_sent,
            )
        return report
