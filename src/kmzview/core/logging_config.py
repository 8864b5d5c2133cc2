"""
Logging setup for kmzview.

The console is coloured in development. The optional log file rotates and
switches to one JSON object per line in production, carrying the contextual
fields (request id, archive name, skip reason) attached to each record.
"""

import json
import logging
import logging.handlers
import sys
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Any, Dict, Optional

from kmzview.core.config import settings

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEV_CONSOLE_FORMAT = "%(levelname)s | %(asctime)s | %(name)s:%(lineno)d | %(message)s"
CONSOLE_FORMAT = "%(levelname)s - %(asctime)s - %(name)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(funcName)s:%(lineno)d - %(message)s"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Third-party loggers that flood the output at DEBUG
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "PIL": logging.INFO,
    "multipart": logging.INFO,
}

_STANDARD_FIELDS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime"}


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the fields attached to ``record`` through ``extra`` or LogContext."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_FIELDS
    }


_log_context: ContextVar[Dict[str, Any]] = ContextVar("kmzview_log_context", default={})


def current_log_context() -> Dict[str, Any]:
    """Fields of the innermost active LogContext in the current task."""
    return _log_context.get()


class ContextFilter(logging.Filter):
    """
    Copy the active LogContext fields onto each record a handler receives.

    Values passed explicitly through ``extra`` are left untouched.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if key not in record.__dict__:
                setattr(record, key, value)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, contextual fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(record_context(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        plain = record.levelname
        record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Handlers after this one see the same record
            record.levelname = plain


def get_log_level(level_name: str) -> int:
    """
    Map a level name to its logging constant.

    Unknown names fall back to INFO.
    """
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setLevel(level)
    if settings.environment == "development":
        handler.setFormatter(ColoredFormatter(DEV_CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_file: Path, level: int, json_logs: bool) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.addFilter(ContextFilter())
    handler.setLevel(level)
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    json_logs: bool = False,
    enable_console: bool = True,
) -> None:
    """
    Replace the root logger's handlers with the kmzview configuration.

    Args:
        log_level: Level name; defaults to DEBUG in development, INFO otherwise
        log_file: Rotating log file to write to, if any
        json_logs: Write the log file as JSON lines
        enable_console: Log to stdout
    """
    if log_level is None:
        log_level = "DEBUG" if settings.environment == "development" else "INFO"
    level = get_log_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if enable_console:
        root_logger.addHandler(_console_handler(level))
    if log_file is not None:
        root_logger.addHandler(_file_handler(log_file, level, json_logs))

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    root_logger.info(
        "Logging initialized",
        extra={
            "log_level": log_level,
            "environment": settings.environment,
            "log_file": str(log_file) if log_file else None,
            "json_logs": json_logs,
        },
    )


class LogContext:
    """
    Attach fields to every record logged inside the block.

    Fields live in a context variable, so each asyncio task sees only its
    own context and nested blocks add to the enclosing one.

    Usage:
        with LogContext(archive="survey.kmz"):
            logger.info("Building tree")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._token: Optional[Token] = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set({**_log_context.get(), **self.fields})
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None
