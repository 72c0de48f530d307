"""Shared logging utilities with rich console output and per-day log files.

``init_logging`` installs a single queue handler on the root logger; the
rich console handler and the optional daily file handler hang off a
``QueueListener`` so request threads never block on terminal or disk I/O.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from datetime import date, datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import SimpleQueue
from threading import RLock
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install as install_rich_traceback

from .context import ContextFilter, log_context
from .timing import timeit

if TYPE_CHECKING:
    from estate.core.config import Settings

__all__ = [
    "LoggingConfig",
    "init_logging",
    "get_logger",
    "shutdown_logging",
    "log_context",
    "timeit",
]

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(context)s%(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LoggingConfig:
    """How log records leave the process."""

    app_name: str = "estate"
    level: str | int = "INFO"
    log_dir: Optional[Path] = None
    console: bool = True
    rich_tracebacks: bool = True
    queue: bool = True

    @classmethod
    def from_settings(cls, settings: "Settings") -> "LoggingConfig":
        return cls(level=settings.log_level, log_dir=settings.log_dir)

    @property
    def numeric_level(self) -> int:
        if isinstance(self.level, int):
            return self.level
        return getattr(logging, str(self.level).upper(), logging.INFO)


_lock = RLock()
_active: LoggingConfig | None = None
_listener: QueueListener | None = None
_context_filter = ContextFilter()


class DailyFileHandler(logging.FileHandler):
    """Append to ``<directory>/<prefix>_<YYYY-MM-DD>.log``, opening a new file at midnight."""

    def __init__(self, directory: Path, *, prefix: str = "estate", encoding: str = "utf-8") -> None:
        self.directory = Path(directory)
        self.prefix = prefix
        self.directory.mkdir(parents=True, exist_ok=True)
        self.current_day = date.today()
        super().__init__(self.path_for(self.current_day), mode="a", encoding=encoding)

    def path_for(self, day: date) -> Path:
        return self.directory / f"{self.prefix}_{day.isoformat()}.log"

    def emit(self, record: logging.LogRecord) -> None:
        record_day = datetime.fromtimestamp(record.created).date()
        if record_day != self.current_day:
            self.current_day = record_day
            self.close()
            self.baseFilename = os.fspath(self.path_for(record_day))
        # FileHandler reopens its stream lazily after close().
        super().emit(record)


def _console_handler(cfg: LoggingConfig) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=cfg.rich_tracebacks,
        show_path=False,
        markup=False,
        log_time_format=_DATE_FORMAT,
    )
    handler.setFormatter(logging.Formatter("%(context)s%(message)s"))
    return handler


def _file_handler(cfg: LoggingConfig) -> logging.Handler:
    handler = DailyFileHandler(Path(cfg.log_dir), prefix=cfg.app_name)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _build_handlers(cfg: LoggingConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if cfg.console:
        handlers.append(_console_handler(cfg))
    if cfg.log_dir:
        handlers.append(_file_handler(cfg))
    for handler in handlers:
        handler.setLevel(cfg.numeric_level)
        handler.addFilter(_context_filter)
    return handlers


def init_logging(config: LoggingConfig | None = None, **overrides: object) -> LoggingConfig:
    """Install handlers on the root logger and return the active configuration.

    Calling again with an identical configuration is a no-op; a different one
    replaces the previous handlers.
    """

    global _active, _listener

    cfg = replace(config or LoggingConfig(), **overrides)
    with _lock:
        if _active == cfg:
            return cfg
        if _active is not None:
            _teardown()

        if cfg.rich_tracebacks:
            install_rich_traceback(show_locals=False)

        root = logging.getLogger()
        root.setLevel(logging.NOTSET)
        handlers = _build_handlers(cfg)
        if cfg.queue and handlers:
            log_queue: SimpleQueue = SimpleQueue()
            queue_handler = QueueHandler(log_queue)
            queue_handler.setLevel(cfg.numeric_level)
            # Stamp the caller's context before the record changes threads.
            queue_handler.addFilter(_context_filter)
            root.addHandler(queue_handler)
            _listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
            _listener.start()
        else:
            for handler in handlers:
                root.addHandler(handler)
        _active = cfg
    return cfg


def _teardown() -> None:
    global _active, _listener

    if _listener is not None:
        _listener.stop()
        _listener = None
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    _active = None


def shutdown_logging() -> None:
    """Flush queued records and detach every handler."""

    with _lock:
        _teardown()


def get_logger(name: str | None = None) -> logging.Logger:
    with _lock:
        if _active is None:
            init_logging()
        app_name = _active.app_name if _active else LoggingConfig.app_name
    return logging.getLogger(name or app_name)
