# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Alias resolvers used when a reflected parameter type has no registration.

The container asks its resolver for substitute tokens, in the order they
should be tried. An empty list leaves the parameter unresolved.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable


@runtime_checkable
class AliasResolver(Protocol):
    """Strategy mapping an unregistered type token onto registered ones."""

    def matches(self, type_token: str, candidates: Iterable[str]) -> list[str]:
        """Return the registered tokens to try for ``type_token``, best first."""
        ...


class SubstringAliasResolver:
    """Matches candidates that contain the type name or are contained by it.

    Candidates are returned in registration order. This matches loosely: with
    ``UserRepository`` and ``UserRepositoryCache`` both registered, a
    parameter typed ``UserRepo`` tries whichever was registered first.
    """

    def matches(self, type_token: str, candidates: Iterable[str]) -> list[str]:
        return [
            token
            for token in candidates
            if token and (token in type_token or type_token in token)
        ]

    def find(self, type_token: str, candidates: Iterable[str]) -> str | None:
        """Return the first match, or None."""
        return next(iter(self.matches(type_token, candidates)), None)


class ExactAliasResolver:
    """Resolves only aliases declared up front (``type name -> token``)."""

    def __init__(self, aliases: Mapping[str, str]) -> None:
        self._aliases = dict(aliases)

    def matches(self, type_token: str, candidates: Iterable[str]) -> list[str]:
        target = self._aliases.get(type_token)
        if target is not None and target in set(candidates):
            return [target]
        return []

    def find(self, type_token: str, candidates: Iterable[str]) -> str | None:
        return next(iter(self.matches(type_token, candidates)), None)
