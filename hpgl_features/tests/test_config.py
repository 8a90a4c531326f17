"""Tests for the plotter config loader and the logging set-up.

Validates that:
    - plotter.yaml loads with the current schema
    - Defaults match the HP 7090A factory set-up (address 6, 2 s / 40 s)
    - Missing keys and bad values raise ConfigError
    - setup_logging is idempotent and attaches contextual fields
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import yaml

from hpgl_features.configs import loader
from hpgl_features.configs.loader import (
    ConfigError,
    PlotterConfig,
    load_config,
)
from hpgl_features.utils import logging_config
from hpgl_features.utils.fs import atomic_write_text, load_yaml


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> PlotterConfig:
    """Load the default plotter.yaml shipped with the package."""
    return load_config()


@pytest.fixture()
def raw_config() -> dict:
    return load_yaml(Path(loader.__file__).parent / "plotter.yaml")


def _write(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "plotter.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Default config
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_connection(self, config: PlotterConfig) -> None:
        c = config.connection
        assert c.address == 6
        assert c.resource_name == "GPIB0::6::INSTR"
        assert c.timeout_ms == 2000
        assert c.plot_timeout_ms == 40000
        assert c.write_termination == "\n"
        assert c.read_termination == "\r"

    def test_io_buffer_command(self, config: PlotterConfig) -> None:
        assert config.io_buffer.enabled
        assert config.io_buffer.allocation == (1000, 6000, 0, 0, 5800)
        assert config.io_buffer.command == "\x1b.T1000;6000;0;0;5800:"

    def test_logging(self, config: PlotterConfig) -> None:
        assert config.logging.level == "INFO"
        assert config.logging.file is None
        assert config.logging.json is False

    def test_with_address(self, config: PlotterConfig) -> None:
        moved = config.with_address(12)
        assert moved.connection.resource_name == "GPIB0::12::INSTR"
        assert config.connection.address == 6

    @pytest.mark.parametrize("address", [0, 31])
    def test_with_address_out_of_range(
        self, config: PlotterConfig, address: int,
    ) -> None:
        with pytest.raises(ConfigError, match="GPIB address"):
            config.with_address(address)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "plotter.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigError, match="Empty"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "plotter.yaml"
        path.write_text("connection: [address: 6\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML") as exc_info:
            load_config(path)
        assert isinstance(exc_info.value.__cause__, yaml.YAMLError)

    def test_missing_connection(self, tmp_path: Path, raw_config: dict) -> None:
        del raw_config["connection"]
        with pytest.raises(ConfigError, match="Missing"):
            load_config(_write(tmp_path, raw_config))

    def test_optional_sections(self, tmp_path: Path, raw_config: dict) -> None:
        del raw_config["io_buffer"]
        del raw_config["logging"]
        cfg = load_config(_write(tmp_path, raw_config))
        assert cfg.io_buffer.enabled is False
        assert cfg.logging.level == "INFO"

    def test_non_integer_address(self, tmp_path: Path, raw_config: dict) -> None:
        raw_config["connection"]["address"] = "six"
        with pytest.raises(ConfigError, match="Invalid"):
            load_config(_write(tmp_path, raw_config))

    def test_plot_timeout_below_timeout(
        self, tmp_path: Path, raw_config: dict,
    ) -> None:
        raw_config["connection"]["plot_timeout_ms"] = 1000
        with pytest.raises(ConfigError, match="plot_timeout_ms"):
            load_config(_write(tmp_path, raw_config))

    def test_zero_timeout(self, tmp_path: Path, raw_config: dict) -> None:
        raw_config["connection"]["timeout_ms"] = 0
        with pytest.raises(ConfigError, match="timeout_ms"):
            load_config(_write(tmp_path, raw_config))

    def test_template_without_placeholder(
        self, tmp_path: Path, raw_config: dict,
    ) -> None:
        raw_config["connection"]["resource_template"] = "GPIB0::6::INSTR"
        with pytest.raises(ConfigError, match="resource_template"):
            load_config(_write(tmp_path, raw_config))

    def test_negative_allocation(self, tmp_path: Path, raw_config: dict) -> None:
        raw_config["io_buffer"]["allocation"] = [1000, -1]
        with pytest.raises(ConfigError, match="allocation"):
            load_config(_write(tmp_path, raw_config))

    def test_empty_allocation_when_enabled(
        self, tmp_path: Path, raw_config: dict,
    ) -> None:
        raw_config["io_buffer"]["allocation"] = []
        with pytest.raises(ConfigError, match="allocation"):
            load_config(_write(tmp_path, raw_config))

    def test_unknown_log_level(self, tmp_path: Path, raw_config: dict) -> None:
        raw_config["logging"]["level"] = "CHATTY"
        with pytest.raises(ConfigError, match="logging level"):
            load_config(_write(tmp_path, raw_config))


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_control_characters_survive(self, tmp_path: Path) -> None:
        path = tmp_path / "out" / "features.hpgl"
        atomic_write_text(path, "LB7\r\x03;\n")
        assert path.read_bytes() == b"LB7\r\x03;\n"
        assert not path.with_suffix(".hpgl.tmp").exists()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture()
def clean_logging():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in saved_handlers:
            handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)
    logging_config.pop_context()
    logging.captureWarnings(False)


@pytest.mark.usefixtures("clean_logging")
class TestLogging:
    def test_idempotent(self) -> None:
        logging_config.setup_logging("INFO")
        handlers = logging_config.setup_logging("DEBUG")
        root = logging.getLogger()
        assert len(handlers) == 1
        assert [h for h in root.handlers if h in handlers] == handlers
        assert root.level == logging.DEBUG

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError):
            logging_config.setup_logging("CHATTY")

    def test_json_file_with_context(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "features.log"
        logging_config.setup_logging(
            "INFO", str(log_file), json=True, to_stderr=False,
            context={"app": "features"},
        )
        logging_config.push_context(address=6)
        logging.getLogger("hpgl_features.test").info("hello %s", "plotter")
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert record["msg"] == "hello plotter"
        assert record["lvl"] == "INFO"
        assert record["app"] == "features"
        assert record["address"] == 6

    def test_human_format_includes_context(self) -> None:
        formatter = logging_config.ContextFormatter("human", use_color=False)
        logging_config.push_context(stage="axis grid")
        record = logging.LogRecord(
            "x", logging.INFO, __file__, 1, "Sent %d", (4,), None,
        )
        line = formatter.format(record)
        assert "| stage=axis grid |" in line
        assert line.endswith("Sent 4")

    def test_pop_context_keys(self) -> None:
        logging_config.push_context(a=1, b=2)
        logging_config.pop_context(keys=["a"])
        assert logging_config.get_context() == {"b": 2}
