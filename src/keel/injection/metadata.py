# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Class metadata consumed by the container.

The store associates a class with declared metadata: its module descriptor,
its ordered constructor parameter types and any explicit per-parameter
injection tokens. Parameter types are reflected from the constructor
signature unless they were declared explicitly with ``set_param_types``.

Example:
    ```python
    class UserService:
        def __init__(
            self,
            repo: UserRepository,
            db: Annotated[Connection, Inject("DATABASE_CONNECTION")],
        ) -> None: ...
    ```
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Annotated, Any, Final, TypeVar, Union, get_args, get_origin, get_type_hints

from keel.injection.registration import token_for

T = TypeVar("T", bound=type)

MODULE_METADATA: Final = "keel:module"
PARAM_TYPES: Final = "keel:paramtypes"
INJECTION_TOKENS: Final = "keel:inject"

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True, slots=True)
class Inject:
    """``Annotated`` marker binding a constructor parameter to an explicit token."""

    token: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "token", token_for(self.token))


@dataclass(frozen=True, slots=True)
class ParameterInfo:
    """One reflected constructor parameter.

    ``type_token`` is the name of the parameter's class, or None when the
    annotation does not name a usable class (missing, builtin, ``Any``,
    multi-member unions, parametrised generics).
    """

    name: str
    index: int
    type_token: str | None
    kind: inspect._ParameterKind = inspect.Parameter.POSITIONAL_OR_KEYWORD
    default: Any = inspect.Parameter.empty

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


def _type_token(annotation: Any) -> tuple[str | None, str | None]:
    """Return ``(type_token, explicit_token)`` for an annotation."""
    explicit: str | None = None

    if get_origin(annotation) is Annotated:
        annotation, *extras = get_args(annotation)
        for extra in extras:
            if isinstance(extra, Inject):
                explicit = extra.token

    if get_origin(annotation) in (Union, types.UnionType):
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) != 1:
            return None, explicit
        annotation = members[0]
        if get_origin(annotation) is Annotated:
            inner, explicit_inner = _type_token(annotation)
            return inner, explicit or explicit_inner

    if annotation is inspect.Parameter.empty or annotation is None:
        return None, explicit
    if isinstance(annotation, str):
        # Unresolvable forward reference: the written name is the best token we have
        return (annotation if annotation.isidentifier() else None), explicit
    if annotation is Any or get_origin(annotation) is not None:
        return None, explicit
    if isinstance(annotation, type) and annotation.__module__ != "builtins":
        return annotation.__name__, explicit
    return None, explicit


def reflect_parameters(target: type) -> tuple[list[ParameterInfo], dict[int, str]]:
    """Reflect the constructor of ``target``.

    Returns:
        The ordered parameter list and the ``index -> token`` mapping taken
        from ``Annotated[..., Inject(...)]`` annotations.
    """
    try:
        signature = inspect.signature(target)
    except (TypeError, ValueError):
        return [], {}

    try:
        hints = get_type_hints(target.__init__, include_extras=True)
    except (NameError, TypeError, AttributeError):
        hints = {}

    parameters: list[ParameterInfo] = []
    tokens: dict[int, str] = {}
    index = 0
    for parameter in signature.parameters.values():
        if parameter.kind in _VARIADIC:
            continue
        annotation = hints.get(parameter.name, parameter.annotation)
        type_token, explicit = _type_token(annotation)
        parameters.append(
            ParameterInfo(
                name=parameter.name,
                index=index,
                type_token=type_token,
                kind=parameter.kind,
                default=parameter.default,
            )
        )
        if explicit is not None:
            tokens[index] = explicit
        index += 1
    return parameters, tokens


class MetadataStore:
    """Key/value metadata keyed by class identity."""

    def __init__(self) -> None:
        self._entries: dict[Any, dict[str, Any]] = {}

    def define(self, target: Any, key: str, value: Any) -> None:
        self._entries.setdefault(target, {})[key] = value

    def get(self, target: Any, key: str, default: Any = None) -> Any:
        return self._entries.get(target, {}).get(key, default)

    def has(self, target: Any, key: str) -> bool:
        return key in self._entries.get(target, {})

    def get_module(self, target: type) -> Any:
        """Return the module descriptor declared for ``target``, if any."""
        return self.get(target, MODULE_METADATA)

    def set_module(self, target: type, descriptor: Any) -> None:
        self.define(target, MODULE_METADATA, descriptor)

    def set_param_types(
        self, target: type, param_types: Sequence[type | str | None]
    ) -> None:
        """Declare the ordered constructor parameter types of ``target``.

        Declared parameters are passed positionally, in order.
        """
        declared = [
            ParameterInfo(
                name=f"arg{index}",
                index=index,
                type_token=None if param_type is None else token_for(param_type),
                kind=inspect.Parameter.POSITIONAL_ONLY,
            )
            for index, param_type in enumerate(param_types)
        ]
        self.define(target, PARAM_TYPES, declared)

    def get_param_types(self, target: type) -> list[ParameterInfo]:
        """Return the ordered constructor parameters of ``target``.

        Declared types win over reflection. A constructor without parameters
        yields an empty list.
        """
        declared = self.get(target, PARAM_TYPES)
        if declared is not None:
            return list(declared)
        parameters, _ = reflect_parameters(target)
        return parameters

    def set_injection_token(self, target: type, index: int, token: str | type) -> None:
        """Bind constructor parameter ``index`` of ``target`` to an explicit token."""
        tokens = dict(self.get(target, INJECTION_TOKENS, {}))
        tokens[index] = token_for(token)
        self.define(target, INJECTION_TOKENS, tokens)

    def get_injection_tokens(self, target: type) -> dict[int, str]:
        """Return the explicit ``index -> token`` mapping for ``target``.

        Tokens set through ``set_injection_token`` (or ``@inject``) override
        ``Inject`` markers found in annotations.
        """
        tokens: dict[int, str] = {}
        if not self.has(target, PARAM_TYPES):
            _, tokens = reflect_parameters(target)
        tokens.update(self.get(target, INJECTION_TOKENS, {}))
        return tokens


metadata_store = MetadataStore()


def inject(**tokens: str | type) -> Callable[[T], T]:
    """Class decorator binding constructor parameters to explicit tokens by name.

    Usage:
        @inject(db="DATABASE_CONNECTION")
        class UserService:
            def __init__(self, db: Connection) -> None:
                self.db = db
    """

    def decorator(cls: T) -> T:
        parameters = metadata_store.get_param_types(cls)
        by_name = {parameter.name: parameter.index for parameter in parameters}
        for name, token in tokens.items():
            if name not in by_name:
                raise ValueError(
                    f"{cls.__name__}.__init__ has no injectable parameter named '{name}'"
                )
            metadata_store.set_injection_token(cls, by_name[name], token)
        return cls

    return decorator
