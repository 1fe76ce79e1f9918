# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Provider descriptors accepted by the container.

A provider is one of:

- a bare class (token = class name, built by reflection, singleton),
- ``ValueProvider``: a token bound to a fixed value,
- ``ClassProvider``: a token bound to a class, optionally with explicit ``inject`` tokens,
- ``FactoryProvider``: a token bound to the result of a (possibly async) factory.

Plain dicts with the same field names are validated into these models.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from keel.injection.config import ProviderScope
from keel.injection.errors import ProviderDefinitionError
from keel.injection.registration import token_for


class Provider(BaseModel):
    """Common shape of every provider descriptor."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    provide: str

    @field_validator("provide", mode="before")
    @classmethod
    def _normalise_provide(cls, value: Any) -> Any:
        if isinstance(value, type):
            return value.__name__
        return value


class _InjectingProvider(Provider):
    inject: list[str] | None = None
    scope: ProviderScope = ProviderScope.SINGLETON

    @field_validator("inject", mode="before")
    @classmethod
    def _normalise_inject(cls, value: Any) -> Any:
        if value is None:
            return None
        try:
            return [token_for(token) for token in value]
        except TypeError as exc:
            raise ValueError(str(exc)) from exc


class ValueProvider(Provider):
    """Binds ``provide`` to ``use_value``; always a singleton."""

    use_value: Any

    @property
    def scope(self) -> ProviderScope:
        return ProviderScope.SINGLETON


class ClassProvider(_InjectingProvider):
    """Binds ``provide`` to an instance of ``use_class``.

    With ``inject`` the constructor receives the resolved tokens positionally;
    without it the constructor parameters are reflected.
    """

    use_class: type


class FactoryProvider(_InjectingProvider):
    """Binds ``provide`` to ``use_factory(*resolved_inject_tokens)``.

    The factory may be a coroutine function or return any awaitable.
    """

    use_factory: Callable[..., Any]
    inject: list[str] | None = Field(default_factory=list)


_SHAPES: tuple[tuple[str, type[Provider]], ...] = (
    ("use_value", ValueProvider),
    ("use_factory", FactoryProvider),
    ("use_class", ClassProvider),
)


def parse_provider(provider: Any) -> Provider:
    """Normalise any accepted provider shape into a descriptor model.

    Raises:
        ProviderDefinitionError: If the provider has none of the supported shapes
            or its fields are invalid
    """
    if isinstance(provider, Provider):
        return provider
    if isinstance(provider, type):
        return ClassProvider(provide=provider.__name__, use_class=provider)
    if isinstance(provider, Mapping):
        for key, model in _SHAPES:
            if key in provider:
                try:
                    return model.model_validate(dict(provider))
                except ValidationError as exc:
                    raise ProviderDefinitionError(
                        f"Invalid {model.__name__} for token "
                        f"{provider.get('provide')!r}: {exc.errors(include_url=False)}",
                        provider=provider,
                    ) from exc
        raise ProviderDefinitionError(
            "Provider must define one of use_value, use_factory or use_class",
            provider=provider,
        )
    raise ProviderDefinitionError(
        f"Unsupported provider of type {type(provider).__name__}", provider=provider
    )
