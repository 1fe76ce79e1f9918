# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Log levels accepted by keel's logging settings.

Levels can be given by name (any case), as a ``LogLevel`` or as a standard
library level number; anything else raises ``InvalidLogLevelError``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Final

from keel.errors.base import ErrorCategory, ErrorCode, KeelError

LOGGING: Final = ErrorCategory.get_or_create("LOGGING")
LOGGING_INVALID_LEVEL: Final = ErrorCode.get_or_create("LOGGING_INVALID_LEVEL", LOGGING)


class InvalidLogLevelError(KeelError, ValueError):
    """Raised when a value cannot be read as a log level.

    Also a ``ValueError`` so pydantic validators report it as a validation error.
    """

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(
            f"Invalid log level: {value!r} (expected one of {', '.join(LogLevel.names())})",
            code=LOGGING_INVALID_LEVEL,
            value=repr(value),
        )


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def names(cls) -> list[str]:
        return [level.value for level in cls]

    def to_stdlib_level(self) -> int:
        return logging.getLevelNamesMapping()[self.value]

    @classmethod
    def from_string(cls, value: str) -> LogLevel:
        """Read a level name; ``WARN`` is accepted for ``WARNING``."""
        name = value.strip().upper()
        if name == "WARN":
            name = cls.WARNING.value
        try:
            return cls(name)
        except ValueError:
            raise InvalidLogLevelError(value) from None

    @classmethod
    def parse(cls, value: Any) -> LogLevel:
        """Read a ``LogLevel``, a level name or a stdlib level number."""
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, str):
            return cls.from_string(value)
        if isinstance(value, int) and not isinstance(value, bool):
            name = logging.getLevelName(value)
            if name in cls.names():
                return cls(name)
        raise InvalidLogLevelError(value)
