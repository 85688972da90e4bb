"""Structured logging for svar-vocab.

Loggers live under the ``svar_vocab`` namespace. Context passed through
``extra=`` is rendered as ``key=value`` pairs in text mode, or as a
``context`` object in JSON mode.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Any

ROOT_LOGGER = "svar_vocab"

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


class LogLevel(IntEnum):
    """Log verbosity levels."""

    QUIET = 0  # Only errors
    NORMAL = 1  # Errors + warnings
    VERBOSE = 2  # Errors + warnings + info
    DEBUG = 3  # Everything, including each applied correction


_LEVEL_MAP = {
    LogLevel.QUIET: logging.ERROR,
    LogLevel.NORMAL: logging.WARNING,
    LogLevel.VERBOSE: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


@dataclass
class LogConfig:
    """Configuration for logging.

    Attributes:
        level: Verbosity level
        log_file: Optional path to log file
        json_format: Use JSON format for logs
        include_timestamp: Include timestamp in logs
        include_context: Include extra context in logs
        color: Use colored output (console only)
    """

    level: LogLevel = LogLevel.NORMAL
    log_file: Path | None = None
    json_format: bool = False
    include_timestamp: bool = True
    include_context: bool = True
    color: bool = True


class Colors:
    """ANSI color codes."""

    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRIBUTES
    }


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs structured log records as text or JSON."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GRAY,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.RED,
    }

    def __init__(
        self,
        json_format: bool = False,
        include_timestamp: bool = True,
        include_context: bool = True,
        color: bool = True,
    ):
        super().__init__()
        self.json_format = json_format
        self.include_timestamp = include_timestamp
        self.include_context = include_context
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        if self.json_format:
            return self._format_json(record)
        return self._format_text(record)

    def _paint(self, text: str, color: str) -> str:
        if not self.color:
            return text
        return f"{color}{text}{Colors.RESET}"

    def _format_json(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "level": record.levelname.lower(),
            "message": record.getMessage(),
            "logger": record.name,
        }

        if self.include_timestamp:
            data["timestamp"] = datetime.now().isoformat()

        if self.include_context:
            context = {}
            for key, value in _record_context(record).items():
                try:
                    json.dumps(value)
                    context[key] = value
                except (TypeError, ValueError):
                    context[key] = str(value)
            if context:
                data["context"] = context

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, ensure_ascii=False)

    def _format_text(self, record: logging.LogRecord) -> str:
        parts = []

        if self.include_timestamp:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            parts.append(self._paint(timestamp, Colors.GRAY))

        level = record.levelname.upper()[:5].ljust(5)
        parts.append(self._paint(level, self.LEVEL_COLORS.get(record.levelno, Colors.RESET)))

        # Keep the tail of long dotted names
        name = record.name
        if len(name) > 20:
            name = "..." + name[-17:]
        parts.append(self._paint(f"{name:>20}", Colors.CYAN))

        parts.append(record.getMessage())
        result = " | ".join(parts)

        if self.include_context:
            context = _record_context(record)
            if context:
                context_str = " ".join(f"{k}={v}" for k, v in context.items())
                result += " " + self._paint(f"[{context_str}]", Colors.GRAY)

        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)

        return result


class SvarVocabLogger(logging.Logger):
    """Logger that merges bound context into every record's extra fields."""

    def __init__(self, name: str, level: int = logging.NOTSET):
        super().__init__(name, level)
        self._context: dict[str, Any] = {}

    def with_context(self, **context: Any) -> "SvarVocabLogger":
        """Create a logger with additional bound context.

        Args:
            **context: Context key-value pairs

        Returns:
            Logger with context bound
        """
        bound = SvarVocabLogger(self.name, self.level)
        bound.parent = self.parent
        bound.handlers = self.handlers
        bound._context = {**self._context, **context}
        return bound

    def _log(
        self,
        level: int,
        msg: object,
        args: tuple,
        exc_info: Any = None,
        extra: dict | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
    ) -> None:
        merged_extra = {**self._context, **(extra or {})}
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=merged_extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


_config: LogConfig = LogConfig()
_initialized: bool = False


def configure_logging(config: LogConfig | None = None) -> None:
    """Configure the ``svar_vocab`` logger hierarchy.

    Args:
        config: Logging configuration; the current one is reused if omitted
    """
    global _config, _initialized

    if config:
        _config = config

    logging.setLoggerClass(SvarVocabLogger)

    log_level = _LEVEL_MAP[_config.level]

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.DEBUG if _config.log_file else log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        StructuredFormatter(
            json_format=_config.json_format,
            include_timestamp=_config.include_timestamp,
            include_context=_config.include_context,
            color=_config.color and sys.stderr.isatty(),
        )
    )
    root_logger.addHandler(console_handler)

    if _config.log_file:
        _config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(_config.log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.setFormatter(
            StructuredFormatter(
                json_format=_config.json_format,
                include_timestamp=True,
                include_context=True,
                color=False,
            )
        )
        root_logger.addHandler(file_handler)

    _initialized = True


def get_logger(name: str) -> SvarVocabLogger:
    """Get a logger for the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger
    """
    if not _initialized:
        configure_logging()

    logger = logging.getLogger(name)
    if not isinstance(logger, SvarVocabLogger):
        # Created before our logger class was installed
        custom_logger = SvarVocabLogger(name)
        custom_logger.parent = logger.parent
        custom_logger.handlers = logger.handlers
        custom_logger.level = logger.level
        return custom_logger

    return logger


def set_verbosity(level: LogLevel) -> None:
    """Set global verbosity level.

    Args:
        level: Verbosity level
    """
    _config.level = level
    configure_logging(_config)


def enable_file_logging(log_file: Path) -> None:
    """Enable logging to a file.

    Args:
        log_file: Path to log file
    """
    _config.log_file = log_file
    configure_logging(_config)
