"""Configuration discovery and parsing helpers."""

from pgmisc.lib.config._paths import resolve_config_path, resolve_data_directory
from pgmisc.lib.config.settings import ControlDataConfig, PgMiscConfig, load_config

__all__ = [
    "ControlDataConfig",
    "PgMiscConfig",
    "load_config",
    "resolve_config_path",
    "resolve_data_directory",
]
