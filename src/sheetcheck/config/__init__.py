"""Configuration for sheetcheck."""

from .config import (
    Config,
    FetchConfig,
    IOConfig,
    MonitoringConfig,
    ValidationConfig,
    find_config_file,
    load_config,
)

__all__ = [
    "Config",
    "FetchConfig",
    "IOConfig",
    "MonitoringConfig",
    "ValidationConfig",
    "find_config_file",
    "load_config",
]
