"""
SidVid Logging Configuration

Logging for the ``sidvid`` logger tree. Every record carries a ``session_id``
field: session-scoped code logs through a SessionLogAdapter, and anything else
shows ``-`` in that column.
"""

import logging
import sys
from pathlib import Path
from typing import Any, MutableMapping, Optional, Tuple
from enum import Enum


class LogLevel(Enum):
    """Log level enumeration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def from_name(cls, name: Optional[str]) -> "LogLevel":
        try:
            return cls[(name or "").strip().upper()]
        except KeyError:
            return cls.INFO


DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(session_id)s | %(message)s"
VERBOSE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(funcName)s | %(session_id)s | %(message)s"
)

ROOT_LOGGER_NAME = "sidvid"
NO_SESSION = "-"

_loggers: dict = {}
_initialized: bool = False


class SessionContextFilter(logging.Filter):
    """Give every record a ``session_id`` so the formats can always use it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "session_id", None):
            record.session_id = NO_SESSION
        return True


class SessionLogAdapter(logging.LoggerAdapter):
    """Logger bound to one session id."""

    def __init__(self, logger: logging.Logger, session_id: Optional[str]):
        super().__init__(logger, {"session_id": session_id or NO_SESSION})

    @property
    def session_id(self) -> str:
        return self.extra["session_id"]

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False,
    console_output: bool = True
) -> None:
    """
    Set up logging for the ``sidvid`` logger tree.

    Args:
        level: Minimum log level to capture
        log_file: Optional path to log file
        verbose: If True, use verbose format with line numbers
        console_output: If True, output to console (stderr)
    """
    global _initialized

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.value)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(VERBOSE_FORMAT if verbose else DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    context = SessionContextFilter()

    handlers = []
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level.value)
        handler.setFormatter(formatter)
        handler.addFilter(context)
        root_logger.addHandler(handler)

    _initialized = True
    root_logger.debug(f"Logging initialized - Level: {level.name}, Verbose: {verbose}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``sidvid`` tree.

    Args:
        name: Dotted area name, e.g. ``"session.manager"``

    Returns:
        Configured logger instance
    """
    if not _initialized:
        setup_logging(level=LogLevel.WARNING)

    full_name = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"

    if full_name not in _loggers:
        _loggers[full_name] = logging.getLogger(full_name)

    return _loggers[full_name]


def get_session_logger(name: str, session_id: Optional[str]) -> SessionLogAdapter:
    """Logger for ``name`` whose records carry ``session_id``."""
    return SessionLogAdapter(get_logger(name), session_id)


class LogContext:
    """Context manager for temporary log level changes."""

    def __init__(self, logger: logging.Logger, level: LogLevel):
        self.logger = logger
        self.new_level = level.value
        self.old_level = logger.level

    def __enter__(self):
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.setLevel(self.old_level)
        return False
