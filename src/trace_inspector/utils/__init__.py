"""Utility modules for trace-inspector."""

from .datetime import format_iso, parse_timestamp, to_epoch_ms
from .settings import Settings, get_settings, save_settings

__all__ = [
    "format_iso",
    "parse_timestamp",
    "to_epoch_ms",
    "Settings",
    "get_settings",
    "save_settings",
]
