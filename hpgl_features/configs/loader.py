"""Configuration loader for the features plot.

Loads and validates ``plotter.yaml`` into typed, frozen dataclasses.
Only the instrument link is configurable (address, timeouts,
terminations, buffer set-up, logging); the plot layout is fixed.

Usage::

    from hpgl_features.configs.loader import load_config
    cfg = load_config()                       # default path
    cfg = load_config("/custom/plotter.yaml") # explicit path
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from hpgl_features.utils.fs import load_yaml

logger = logging.getLogger(__name__)

# Valid primary GPIB addresses
GPIB_ADDRESS_MIN = 1
GPIB_ADDRESS_MAX = 30


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConnectionConfig:
    """GPIB/VISA session settings."""

    resource_template: str
    address: int
    timeout_ms: int
    plot_timeout_ms: int
    write_termination: str
    read_termination: str
    backend: str = ""

    @property
    def resource_name(self) -> str:
        """VISA resource name for the configured address."""
        return self.resource_template.format(address=self.address)


@dataclass(frozen=True)
class IOBufferConfig:
    """Plotter memory allocation (``ESC.T``) sent before the queries."""

    enabled: bool
    allocation: tuple[int, ...]

    @property
    def command(self) -> str:
        """The ``ESC.T`` device-control instruction."""
        params = ";".join(str(v) for v in self.allocation)
        return f"\x1b.T{params}:"


@dataclass(frozen=True)
class LoggingConfig:
    """Console/file logging settings."""

    level: str
    file: str | None
    json: bool


@dataclass(frozen=True)
class PlotterConfig:
    """Top-level validated configuration."""

    connection: ConnectionConfig
    io_buffer: IOBufferConfig
    logging: LoggingConfig

    def with_address(self, address: int) -> PlotterConfig:
        """Copy with a different GPIB address (validated).

        Raises
        ------
        ConfigError
            If *address* is outside 1..30.
        """
        cfg = replace(self, connection=replace(self.connection, address=address))
        _validate_config(cfg)
        return cfg


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: PlotterConfig) -> None:
    c = cfg.connection
    if not GPIB_ADDRESS_MIN <= c.address <= GPIB_ADDRESS_MAX:
        raise ConfigError(
            f"GPIB address must be between {GPIB_ADDRESS_MIN} and "
            f"{GPIB_ADDRESS_MAX}, got {c.address}"
        )
    if "{address}" not in c.resource_template:
        raise ConfigError(
            f"resource_template must contain '{{address}}', "
            f"got {c.resource_template!r}"
        )
    if c.timeout_ms <= 0:
        raise ConfigError(f"timeout_ms must be > 0, got {c.timeout_ms}")
    if c.plot_timeout_ms < c.timeout_ms:
        raise ConfigError(
            f"plot_timeout_ms ({c.plot_timeout_ms}) must be >= "
            f"timeout_ms ({c.timeout_ms})"
        )

    b = cfg.io_buffer
    if b.enabled and not b.allocation:
        raise ConfigError("io_buffer.allocation must not be empty when enabled")
    for value in b.allocation:
        if value < 0:
            raise ConfigError(
                f"io_buffer.allocation values must be >= 0, got {value}"
            )

    level = cfg.logging.level.upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(f"Unknown logging level: {cfg.logging.level!r}")


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> PlotterConfig:
    """Load and validate the plotter configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``plotter.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    PlotterConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If the file is not valid YAML, or any field is missing or fails
        validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "plotter.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    try:
        data: dict[str, Any] = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")

    try:
        # -- connection -----------------------------------------------------
        cd = data["connection"]
        connection = ConnectionConfig(
            resource_template=str(cd["resource_template"]),
            address=int(cd["address"]),
            timeout_ms=int(cd["timeout_ms"]),
            plot_timeout_ms=int(cd["plot_timeout_ms"]),
            write_termination=str(cd.get("write_termination", "\n")),
            read_termination=str(cd.get("read_termination", "\r")),
            backend=str(cd.get("backend") or ""),
        )

        # -- io buffer (optional) ------------------------------------------
        bd = data.get("io_buffer") or {}
        io_buffer = IOBufferConfig(
            enabled=bool(bd.get("enabled", False)),
            allocation=tuple(int(v) for v in bd.get("allocation", ())),
        )

        # -- logging (optional) --------------------------------------------
        ld = data.get("logging") or {}
        log_file = ld.get("file")
        logging_cfg = LoggingConfig(
            level=str(ld.get("level", "INFO")),
            file=str(log_file) if log_file else None,
            json=bool(ld.get("json", False)),
        )

        config = PlotterConfig(
            connection=connection,
            io_buffer=io_buffer,
            logging=logging_cfg,
        )

        _validate_config(config)
        logger.info("Configuration loaded successfully")
        return config

    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc
