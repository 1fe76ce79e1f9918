# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework

"""
Public API for the keel logging system.
"""

from __future__ import annotations

from keel.logging.config import LoggingSettings
from keel.logging.level import InvalidLogLevelError, LogLevel
from keel.logging.logger import (
    ROOT_LOGGER_NAME,
    StructuredFormatter,
    configure_logging,
    get_logger,
    log_context,
)

__all__ = [
    "InvalidLogLevelError",
    "LogLevel",
    "LoggingSettings",
    "ROOT_LOGGER_NAME",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "log_context",
]
