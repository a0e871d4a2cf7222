# src/evensum/core/__init__.py
"""Configuration and logging."""

from evensum.core.config import RunSettings, load_settings, resolve_config
from evensum.core.logging import configure_logging, get_logger

__all__ = [
    "RunSettings",
    "configure_logging",
    "get_logger",
    "load_settings",
    "resolve_config",
]
