"""Plotter configuration loading and validation."""

from hpgl_features.configs.loader import (
    GPIB_ADDRESS_MAX,
    GPIB_ADDRESS_MIN,
    ConfigError,
    ConnectionConfig,
    IOBufferConfig,
    LoggingConfig,
    PlotterConfig,
    load_config,
)

__all__ = [
    "GPIB_ADDRESS_MAX",
    "GPIB_ADDRESS_MIN",
    "ConfigError",
    "ConnectionConfig",
    "IOBufferConfig",
    "LoggingConfig",
    "PlotterConfig",
    "load_config",
]
