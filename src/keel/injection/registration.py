# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Registration records held by the container's registration table.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from keel.injection.config import ProviderScope


def token_for(key: str | type) -> str:
    """Normalise a token: strings are used as-is, classes by their name."""
    if isinstance(key, str):
        return key
    if isinstance(key, type):
        return key.__name__
    raise TypeError(f"Token must be a string or a class, got {type(key).__name__}")


@dataclass(frozen=True, slots=True)
class Registration:
    """A token bound to the factory that produces its instance.

    A registration is never mutated; registering the same token again
    replaces it wholesale.
    """

    token: str
    factory: Callable[[], Any]
    scope: ProviderScope = ProviderScope.TRANSIENT
    is_async: bool = False
    target: type | None = None

    @property
    def is_singleton(self) -> bool:
        return self.scope is ProviderScope.SINGLETON
