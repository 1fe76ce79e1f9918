# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""Process-wide registry for error codes and categories."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from keel.errors.base import ErrorCategory, ErrorCode


class ErrorRegistry:
    """Singleton registry interning every error code and category by name."""

    _instance: ErrorRegistry | None = None
    _lock = threading.RLock()

    _categories: dict[str, ErrorCategory]
    _codes: dict[str, ErrorCode]

    def __new__(cls) -> ErrorRegistry:
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._categories = {}
                instance._codes = {}
                cls._instance = instance
            return cls._instance

    def get_category(
        self, name: str, parent: ErrorCategory | None = None
    ) -> ErrorCategory:
        """Get a category by name, creating it on first use.

        Args:
            name: The category name
            parent: Optional parent category (only used on creation)

        Returns:
            The interned ErrorCategory
        """
        with self._lock:
            if name in self._categories:
                return self._categories[name]

            from keel.errors.base import ErrorCategory

            category = ErrorCategory(name, parent)
            self._categories[name] = category
            return category

    def get_code(self, code: str, category: ErrorCategory) -> ErrorCode:
        """Get an error code by name, creating it under ``category`` on first use.

        Args:
            code: The error code string
            category: The category the code belongs to

        Returns:
            The interned ErrorCode
        """
        with self._lock:
            if code in self._codes:
                return self._codes[code]

            from keel.errors.base import ErrorCode

            error_code = ErrorCode(code, category)
            self._codes[code] = error_code
            return error_code

    def lookup_code(self, code: str) -> ErrorCode | None:
        """Look up an error code without creating it."""
        return self._codes.get(code)

    def get_all_categories(self) -> list[ErrorCategory]:
        return list(self._categories.values())

    def get_all_codes(self) -> list[ErrorCode]:
        return list(self._codes.values())


registry = ErrorRegistry()
