# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Logger setup for the keel framework.

keel logs through Python's standard logging module under the ``keel``
namespace. This module adds a structured formatter, context binding via a
context variable, and a one-call setup for the package logger.
"""

from __future__ import annotations

import contextlib
import datetime
import enum
import json
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from keel.logging.config import LoggingSettings
from keel.logging.level import LogLevel

if TYPE_CHECKING:
    from collections.abc import Generator

ROOT_LOGGER_NAME = "keel"

# Context variable for storing log context data
_log_context: ContextVar[dict[str, Any]] = ContextVar("keel_log_context", default={})

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}

# Marker attribute on handlers installed by configure_logging
_KEEL_HANDLER = "_keel_handler"


class StructuredFormatter(logging.Formatter):
    """Formatter that supports structured logging with context data."""

    def __init__(
        self,
        json_format: bool = False,
        include_timestamp: bool = True,
        include_level: bool = True,
    ) -> None:
        """Initialize a structured formatter.

        Args:
            json_format: Whether to format logs as JSON
            include_timestamp: Whether to include timestamps in logs
            include_level: Whether to include log level in logs
        """
        self.json_format = json_format
        self.include_timestamp = include_timestamp
        self.include_level = include_level

        fmt = "%(name)s: %(message)s"
        if include_level and not json_format:
            fmt = "[%(levelname)s] " + fmt
        if include_timestamp:
            fmt = "%(asctime)s " + fmt

        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with structured data.

        Args:
            record: The log record to format

        Returns:
            Formatted log string
        """
        extra: dict[str, Any] = dict(_log_context.get())
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                extra[key] = value

        if self.json_format:
            return self._format_json(record, extra)
        message = super().format(record)
        return self._format_text(message, extra)

    def _format_json(self, record: logging.LogRecord, extra: dict[str, Any]) -> str:
        log_data: dict[str, Any] = {
            "message": record.getMessage(),
            "logger": record.name,
            **extra,
        }
        if self.include_level:
            log_data["level"] = record.levelname
        if self.include_timestamp:
            log_data["timestamp"] = self.formatTime(record, self.datefmt)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
            log_data["error"] = str(record.exc_info[1])
        return json.dumps(log_data, default=_format_value)

    def _format_text(self, message: str, extra: dict[str, Any]) -> str:
        if not extra:
            return message
        ctx_str = " ".join(f"{k}={_format_text_value(v)}" for k, v in extra.items())
        return f"{message} {ctx_str}"


def _format_value(value: Any) -> Any:
    """Convert special types to JSON-serializable values."""
    if isinstance(value, datetime.datetime | datetime.date):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return str(value)


def _format_text_value(value: Any) -> str:
    if isinstance(value, str):
        # Quote strings that contain spaces
        if " " in value:
            return f'"{value}"'
        return value
    try:
        return json.dumps(value, default=_format_value)
    except (TypeError, ValueError):
        return str(value)


@contextlib.contextmanager
def log_context(**kwargs: Any) -> Generator[None]:
    """Add context information to every keel log record emitted inside the block.

    Args:
        **kwargs: Context key-value pairs
    """
    token = _log_context.set({**_log_context.get(), **kwargs})
    try:
        yield
    finally:
        _log_context.reset(token)


def configure_logging(settings: LoggingSettings | None = None) -> logging.Logger:
    """Install keel's handlers on the package logger.

    Calling it again replaces the handlers it installed before, so it is safe
    to call once per application bootstrap.

    Args:
        settings: Logging settings (loaded from the environment if None)

    Returns:
        The configured ``keel`` logger
    """
    settings = settings or LoggingSettings.load()
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(LogLevel.from_string(settings.level).to_stdlib_level())

    for handler in list(logger.handlers):
        if getattr(handler, _KEEL_HANDLER, False):
            logger.removeHandler(handler)
            handler.close()

    formatter = StructuredFormatter(
        json_format=settings.json_format,
        include_timestamp=settings.include_timestamp,
        include_level=settings.include_level,
    )

    handlers: list[logging.Handler] = []
    if settings.console_enabled:
        handlers.append(logging.StreamHandler(sys.stdout))
    if settings.file_enabled and settings.file_path:
        handlers.append(logging.FileHandler(settings.file_path))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _KEEL_HANDLER, True)
        logger.addHandler(handler)

    return logger


def get_logger(name: str, level: LogLevel | None = None) -> logging.Logger:
    """Get a standard library logger, optionally overriding its level.

    Args:
        name: Logger name (typically __name__)
        level: Optional log level override

    Returns:
        The logger
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level.to_stdlib_level())
    return logger
