"""Core shared helpers for the conjunction quiz."""

from __future__ import annotations

from .ai import load_client
from .logging import JsonLogFormatter, configure_logger, default_log_dir

__all__ = [
    "load_client",
    "configure_logger",
    "default_log_dir",
    "JsonLogFormatter",
]
