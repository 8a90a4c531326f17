"""Tests for the ``hpgl-features`` command line.

The instrument is replaced by a mocked session; logging set-up is
stubbed so the tests do not touch the root logger.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from hpgl_features.errors import TransportFailure
from hpgl_features.hardware.runner import HARD_CLIP_QUERY, OUTPUT_WINDOW_QUERY
from hpgl_features.scripts import run_features

HARD_CLIP = "0,0,10365,7962"
OUTPUT_WINDOW = "250,596,10250,7796"


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch.object(run_features, "setup_logging"), \
            patch.object(run_features, "install_excepthook"):
        yield


@pytest.fixture()
def session() -> MagicMock:
    replies = {HARD_CLIP_QUERY: HARD_CLIP, OUTPUT_WINDOW_QUERY: OUTPUT_WINDOW}
    s = MagicMock()
    s.query.side_effect = replies.__getitem__
    return s


@pytest.fixture()
def gpib(session: MagicMock):
    with patch.object(run_features.GpibSession, "from_config") as from_config:
        from_config.return_value.__enter__.return_value = session
        from_config.return_value.__exit__.return_value = False
        yield from_config


# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------


class TestDryRun:
    def test_program_to_stdout(self, capsys: pytest.CaptureFixture) -> None:
        code = run_features.main([
            "--dry-run", "--hard-clip", HARD_CLIP,
            "--output-window", OUTPUT_WINDOW,
        ])
        out = capsys.readouterr().out
        assert code == 0
        lines = out.split("\n")
        assert lines[0] == "SP1;PA5100,4064;PD;SM+;PU0,0"
        assert lines[-2] == "SP0;PA10250,7796;"
        assert lines[-1] == ""

    def test_program_to_file(self, tmp_path: Path) -> None:
        target = tmp_path / "features.hpgl"
        code = run_features.main([
            "--dry-run", "--hard-clip", HARD_CLIP,
            "--output-window", OUTPUT_WINDOW, "--output", str(target),
        ])
        assert code == 0
        data = target.read_bytes()
        assert b"LB7090A\x03" in data
        assert data.endswith(b"SP0;PA10250,7796;\n")

    def test_malformed_reply(self) -> None:
        code = run_features.main([
            "--dry-run", "--hard-clip", "0,0,10365",
            "--output-window", OUTPUT_WINDOW,
        ])
        assert code == 1

    def test_window_too_small(self) -> None:
        code = run_features.main([
            "--dry-run", "--hard-clip", HARD_CLIP,
            "--output-window", "0,0,100,100",
        ])
        assert code == 1

    def test_no_instrument_opened(
        self, gpib: MagicMock, tmp_path: Path,
    ) -> None:
        run_features.main([
            "--dry-run", "--hard-clip", HARD_CLIP,
            "--output-window", OUTPUT_WINDOW,
            "--output", str(tmp_path / "features.hpgl"),
        ])
        gpib.assert_not_called()


# ---------------------------------------------------------------------------
# Usage errors
# ---------------------------------------------------------------------------


class TestUsage:
    @pytest.mark.parametrize(
        "argv",
        [
            ["--dry-run", "--hard-clip", HARD_CLIP],
            ["--output", "x.hpgl"],
            ["--address", "0"],
            ["--address", "31"],
            ["--address", "six"],
            ["--log-level", "chatty"],
        ],
    )
    def test_exit_code_2(self, argv: list[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_features.main(argv)
        assert exc_info.value.code == 2

    def test_missing_config(self, tmp_path: Path) -> None:
        assert run_features.main(["--config", str(tmp_path / "none.yaml")]) == 1

    def test_unparseable_config(
        self, tmp_path: Path, capsys: pytest.CaptureFixture,
    ) -> None:
        path = tmp_path / "plotter.yaml"
        path.write_text("connection: {address: 6\n", encoding="utf-8")
        assert run_features.main(["--config", str(path)]) == 1
        assert "Invalid YAML" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Plot
# ---------------------------------------------------------------------------


class TestPlot:
    def test_success(self, gpib: MagicMock, session: MagicMock) -> None:
        assert run_features.main(["--no-progress"]) == 0
        cfg = gpib.call_args.args[0]
        assert cfg.resource_name == "GPIB0::6::INSTR"
        session.set_timeout.assert_called_once_with(40000)
        last = session.write.call_args_list[-1].args[0]
        assert last == "SP0;PA10250,7796;"

    def test_address_override(self, gpib: MagicMock) -> None:
        assert run_features.main(["--no-progress", "--address", "14"]) == 0
        assert gpib.call_args.args[0].resource_name == "GPIB0::14::INSTR"

    def test_progress_bar(self, gpib: MagicMock) -> None:
        with patch.object(run_features, "TqdmProgressSink") as sink_cls:
            assert run_features.main([]) == 0
        sink = sink_cls.return_value.__enter__.return_value
        assert sink.call_count == 10

    def test_transport_failure(self, gpib: MagicMock, session: MagicMock) -> None:
        session.query.side_effect = TransportFailure("no listener")
        assert run_features.main(["--no-progress"]) == 1
        session.write.assert_not_called()

    def test_interrupted(self, gpib: MagicMock, session: MagicMock) -> None:
        session.write.side_effect = KeyboardInterrupt
        assert run_features.main(["--no-progress"]) == 130
        gpib.return_value.__exit__.assert_called_once()
