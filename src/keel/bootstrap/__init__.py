# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework

"""
Application bootstrap and shutdown for keel.
"""

from keel.bootstrap.application import LOGGER_TOKEN, Application
from keel.bootstrap.config import ApplicationSettings

__all__ = ["Application", "ApplicationSettings", "LOGGER_TOKEN"]
