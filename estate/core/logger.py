"""Compatibility wrapper that exposes the shared logging utilities."""
from __future__ import annotations

from .log import (
    LoggingConfig,
    get_logger,
    init_logging,
    log_context,
    shutdown_logging,
    timeit,
)

__all__ = [
    "LoggingConfig",
    "get_logger",
    "init_logging",
    "shutdown_logging",
    "log_context",
    "timeit",
]
