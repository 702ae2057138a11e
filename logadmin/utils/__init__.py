"""Configuration and logging helpers."""

from logadmin.utils.config import Config, get_config, reset_config
from logadmin.utils.logging import configure_logging, format_table, get_logger

__all__ = [
    "Config",
    "get_config",
    "reset_config",
    "configure_logging",
    "format_table",
    "get_logger",
]
