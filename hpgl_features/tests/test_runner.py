"""Tests for the features runner and progress sinks.

Uses an in-memory fake session to verify:
    - Query order and timeout extension before plotting
    - One progress event per stage, fired before the stage is sent
    - Cancellation at stage boundaries
    - Parse and transport failures abandon the plot
    - Sink errors are logged, not fatal
"""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from hpgl_features.compiler.sequence import STAGE_PLAN
from hpgl_features.configs.loader import IOBufferConfig, PlotterConfig, load_config
from hpgl_features.errors import (
    MalformedResponse,
    NumericFormatError,
    TransportTimeout,
)
from hpgl_features.hardware.progress import (
    LoggingProgressSink,
    ProgressEvent,
    TqdmProgressSink,
)
from hpgl_features.hardware.runner import (
    HARD_CLIP_QUERY,
    OUTPUT_WINDOW_QUERY,
    FeaturesRunner,
    RunnerState,
)


# ---------------------------------------------------------------------------
# Fake session
# ---------------------------------------------------------------------------


class FakeSession:
    """Records every call; answers the two parameter queries."""

    def __init__(
        self,
        hard_clip: str = "0,0,10365,7962",
        output_window: str = "250,596,10250,7796",
        fail_after_writes: int | None = None,
    ) -> None:
        self.replies = {
            HARD_CLIP_QUERY: hard_clip,
            OUTPUT_WINDOW_QUERY: output_window,
        }
        self.fail_after_writes = fail_after_writes
        self.log: list[tuple[str, object]] = []
        self.writes: list[str] = []

    def configure_buffer(self, cfg: IOBufferConfig) -> str | None:
        self.log.append(("buffer", cfg.enabled))
        return "5800" if cfg.enabled else None

    def query(self, command: str) -> str:
        self.log.append(("query", command))
        return self.replies[command]

    def set_timeout(self, timeout_ms: int) -> None:
        self.log.append(("timeout", timeout_ms))

    def write(self, command: str) -> None:
        if (
            self.fail_after_writes is not None
            and len(self.writes) >= self.fail_after_writes
        ):
            raise TransportTimeout("write timed out")
        self.log.append(("write", command))
        self.writes.append(command)


@pytest.fixture()
def config() -> PlotterConfig:
    return load_config()


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestRun:
    def test_query_sequence(self, config: PlotterConfig) -> None:
        session = FakeSession()
        FeaturesRunner(session, config).run()
        assert session.log[:4] == [
            ("buffer", True),
            ("query", "PG;IN;OP;"),
            ("query", "OW;"),
            ("timeout", 40000),
        ]

    def test_sends_whole_program(self, config: PlotterConfig) -> None:
        session = FakeSession()
        runner = FeaturesRunner(session, config)
        report = runner.run()
        assert session.writes == list(report.program.commands)
        assert report.stages_sent == len(STAGE_PLAN)
        assert report.commands_sent == len(report.program)
        assert not report.cancelled
        assert runner.get_state() is RunnerState.COMPLETE

    def test_report_rectangles(self, config: PlotterConfig) -> None:
        report = FeaturesRunner(FakeSession(), config).run()
        assert report.hard_clip.values() == (0, 0, 10365, 7962)
        assert report.output_window.values() == (250, 596, 10250, 7796)
        assert report.program.commands[-1] == "SP0;PA10250,7796;"


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


class TestProgress:
    def test_one_event_per_stage(self, config: PlotterConfig) -> None:
        events: list[ProgressEvent] = []
        runner = FeaturesRunner(FakeSession(), config)
        runner.set_progress_callback(events.append)
        runner.run()

        assert [e.stage for e in events] == [name for name, _ in STAGE_PLAN]
        assert [e.increment for e in events] == [pct for _, pct in STAGE_PLAN]
        assert events[-1].completed == 100
        completed = [e.completed for e in events]
        assert completed == sorted(completed)

    def test_notified_before_stage_is_sent(self, config: PlotterConfig) -> None:
        session = FakeSession()
        writes_at_event: list[int] = []
        runner = FeaturesRunner(session, config)
        runner.set_progress_callback(
            lambda e: writes_at_event.append(len(session.writes)),
        )
        report = runner.run()

        expected, sent = [], 0
        for stage in report.program.stages:
            expected.append(sent)
            sent += len(stage.commands)
        assert writes_at_event == expected

    def test_sink_error_logged_not_fatal(
        self, config: PlotterConfig, caplog: pytest.LogCaptureFixture,
    ) -> None:
        def broken(event: ProgressEvent) -> None:
            raise RuntimeError("display gone")

        runner = FeaturesRunner(FakeSession(), config)
        runner.set_progress_callback(broken)
        with caplog.at_level(logging.ERROR):
            report = runner.run()
        assert report.stages_sent == len(STAGE_PLAN)
        assert "display gone" in caplog.text

    def test_logging_sink(self, caplog: pytest.LogCaptureFixture) -> None:
        sink = LoggingProgressSink()
        with caplog.at_level(logging.INFO):
            sink(ProgressEvent("axis grid", 10, 40))
        assert "axis grid" in caplog.text

    def test_tqdm_sink_counts_to_100(self) -> None:
        with patch("hpgl_features.hardware.progress.tqdm") as tqdm_cls:
            bar = tqdm_cls.return_value
            with TqdmProgressSink() as sink:
                for name, pct in STAGE_PLAN:
                    sink(ProgressEvent(name, pct, 0))
        assert tqdm_cls.call_args.kwargs["total"] == 100
        assert sum(c.args[0] for c in bar.update.call_args_list) == 100
        bar.set_postfix_str.assert_called_with("finish")
        bar.close.assert_called_once()


# ---------------------------------------------------------------------------
# Cancellation and failures
# ---------------------------------------------------------------------------


class TestCancel:
    def test_cancel_after_third_stage(self, config: PlotterConfig) -> None:
        session = FakeSession()
        runner = FeaturesRunner(session, config)

        def on_progress(event: ProgressEvent) -> None:
            if event.stage == "axis grid":
                runner.cancel()

        runner.set_progress_callback(on_progress)
        report = runner.run()

        assert report.cancelled
        assert report.stages_sent == 3
        stages = report.program.stages
        assert session.writes == [
            cmd for stage in stages[:3] for cmd in stage.commands
        ]
        assert runner.get_state() is RunnerState.CANCELLED

    def test_cancel_before_run_is_reset(self, config: PlotterConfig) -> None:
        runner = FeaturesRunner(FakeSession(), config)
        runner.cancel()
        assert runner.cancel_requested
        report = runner.run()
        assert not report.cancelled


class TestFailures:
    def test_malformed_reply_plots_nothing(self, config: PlotterConfig) -> None:
        session = FakeSession(output_window="")
        runner = FeaturesRunner(session, config)
        with pytest.raises(MalformedResponse):
            runner.run()
        assert session.writes == []
        assert ("timeout", 40000) not in session.log
        assert runner.get_state() is RunnerState.ERROR

    def test_non_numeric_hard_clip(self, config: PlotterConfig) -> None:
        session = FakeSession(hard_clip="0,0,ten,7962")
        with pytest.raises(NumericFormatError):
            FeaturesRunner(session, config).run()
        assert session.log == [("buffer", True), ("query", "PG;IN;OP;")]

    def test_transport_timeout_abandons_rest(self, config: PlotterConfig) -> None:
        session = FakeSession(fail_after_writes=10)
        runner = FeaturesRunner(session, config)
        with pytest.raises(TransportTimeout):
            runner.run()
        assert len(session.writes) == 10
        assert runner.get_state() is RunnerState.ERROR

    def test_default_compiler_created(self, config: PlotterConfig) -> None:
        with patch(
            "hpgl_features.hardware.runner.SequenceCompiler",
        ) as compiler_cls:
            FeaturesRunner(FakeSession(), config)
            compiler_cls.assert_called_once_with()
