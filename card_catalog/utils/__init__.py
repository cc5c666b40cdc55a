"""Utilities package."""

from .config import ensure_data_dir, settings
from .log import LoggerMixin, configure_logging, get_logger

__all__ = [
    "settings",
    "ensure_data_dir",
    "get_logger",
    "LoggerMixin",
    "configure_logging",
]
