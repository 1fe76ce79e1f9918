# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Reflection-based instantiation for the keel DI system.

The instantiator turns a class into an instance by planning one binding per
constructor parameter and resolving each binding through the container:

1. an explicit injection token for the parameter index always wins and must resolve;
2. otherwise the reflected type token is used when it is registered;
3. otherwise the alias resolver may supply substitute tokens, tried in order;
4. otherwise the parameter stays unresolved (or, in strict mode, an error is raised).

Plans are cached per class. Values are resolved on every instantiation, so
transient dependencies stay fresh.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from keel.errors import KeelError
from keel.injection.errors import MissingRegistrationError, UnresolvedDependencyError

if TYPE_CHECKING:
    from keel.injection.aliases import AliasResolver
    from keel.injection.container import Container
    from keel.injection.metadata import MetadataStore, ParameterInfo

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Binding:
    """The token a constructor parameter will be resolved from."""

    parameter: ParameterInfo
    token: str | None
    explicit: bool = False
    alias_of: str | None = None
    alternatives: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ResolvedArgument:
    """Outcome of resolving one binding.

    An unresolved argument carries no value; ``construct`` decides whether
    the parameter default or None is passed.
    """

    parameter: ParameterInfo
    resolved: bool
    value: Any = None


class Instantiator:
    """Builds instances of classes from reflected constructor metadata."""

    def __init__(
        self,
        container: Container,
        metadata: MetadataStore,
        alias_resolver: AliasResolver | None = None,
        strict: bool = False,
    ) -> None:
        self._container = container
        self._metadata = metadata
        self._alias_resolver = alias_resolver
        self._strict = strict
        self._parameter_cache: dict[type, list[ParameterInfo]] = {}
        self._token_cache: dict[type, dict[int, str]] = {}
        self._plan_cache: dict[type, list[Binding]] = {}

    def parameters(self, target: type) -> list[ParameterInfo]:
        """Return the cached constructor parameters of ``target``."""
        parameters = self._parameter_cache.get(target)
        if parameters is None:
            parameters = self._metadata.get_param_types(target)
            self._parameter_cache[target] = parameters
        return parameters

    def injection_tokens(self, target: type) -> dict[int, str]:
        """Return the cached explicit ``index -> token`` mapping of ``target``."""
        tokens = self._token_cache.get(target)
        if tokens is None:
            tokens = self._metadata.get_injection_tokens(target)
            self._token_cache[target] = tokens
        return tokens

    def invalidate(self) -> None:
        """Drop cached plans; called whenever the registration table changes."""
        self._plan_cache.clear()

    def plan(self, target: type) -> list[Binding]:
        """Return the binding for each constructor parameter of ``target``."""
        bindings = self._plan_cache.get(target)
        if bindings is None:
            explicit_tokens = self.injection_tokens(target)
            bindings = [
                self._plan_parameter(target, parameter, explicit_tokens.get(parameter.index))
                for parameter in self.parameters(target)
            ]
            self._plan_cache[target] = bindings
        return bindings

    def _plan_parameter(
        self, target: type, parameter: ParameterInfo, explicit: str | None
    ) -> Binding:
        if explicit is not None:
            return Binding(parameter, explicit, explicit=True)

        type_token = parameter.type_token
        if type_token is None:
            return Binding(parameter, None)
        if self._container.has_registration(type_token):
            return Binding(parameter, type_token)

        logger.debug(
            "No registration for %s at parameter %d of %s, trying alias resolution",
            type_token,
            parameter.index,
            target.__name__,
        )
        if self._alias_resolver is not None:
            # Never alias a class onto its own registration
            candidates = [
                token
                for token, registration in self._container.registrations().items()
                if registration.target is not target
            ]
            aliases = self._alias_resolver.matches(type_token, candidates)
            if aliases:
                return Binding(
                    parameter, aliases[0], alias_of=type_token, alternatives=tuple(aliases)
                )

        return self._unresolved(target, parameter, type_token)

    def _unresolved(self, target: type, parameter: ParameterInfo, type_token: str) -> Binding:
        if self._strict:
            raise UnresolvedDependencyError(target, parameter.name, type_token)

        logger.warning(
            "Could not resolve dependency %s for %s",
            type_token,
            target.__name__,
            extra={"parameter": parameter.name},
        )
        return Binding(parameter, None)

    def _resolve_alias(
        self, target: type, binding: Binding, type_token: str
    ) -> ResolvedArgument:
        """Try each alias of ``binding`` in order; the first that builds wins."""
        for alias in binding.alternatives:
            try:
                value = self._container.resolve(alias)
            except KeelError as exc:
                logger.debug(
                    "Alias %s for %s of %s failed: %s",
                    alias,
                    type_token,
                    target.__name__,
                    exc,
                )
                continue
            logger.debug("Bound %s of %s to alias %s", type_token, target.__name__, alias)
            return ResolvedArgument(binding.parameter, resolved=True, value=value)

        self._unresolved(target, binding.parameter, type_token)
        return ResolvedArgument(binding.parameter, resolved=False)

    def resolve_arguments(self, target: type) -> list[ResolvedArgument]:
        """Resolve every planned binding of ``target`` through the container."""
        arguments: list[ResolvedArgument] = []
        for binding in self.plan(target):
            if binding.token is None:
                arguments.append(ResolvedArgument(binding.parameter, resolved=False))
                continue
            if binding.alias_of is not None:
                arguments.append(self._resolve_alias(target, binding, binding.alias_of))
                continue
            try:
                value = self._container.resolve(binding.token)
            except MissingRegistrationError:
                if binding.explicit:
                    logger.error(
                        "Could not resolve injection token '%s' at parameter %d in %s",
                        binding.token,
                        binding.parameter.index,
                        target.__name__,
                    )
                raise
            arguments.append(ResolvedArgument(binding.parameter, resolved=True, value=value))
        return arguments

    @staticmethod
    def construct(target: type[T], arguments: list[ResolvedArgument]) -> T:
        """Call ``target`` with resolved arguments.

        Unresolved parameters fall back to their default, or to None when
        they have none.
        """
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for argument in arguments:
            parameter = argument.parameter
            positional = parameter.kind is inspect.Parameter.POSITIONAL_ONLY
            if argument.resolved:
                value = argument.value
            elif parameter.has_default:
                if positional:
                    args.append(parameter.default)
                continue
            else:
                value = None
            if positional:
                args.append(value)
            else:
                kwargs[parameter.name] = value
        return target(*args, **kwargs)

    def create_instance(self, target: type[T]) -> T:
        """Build an instance of ``target``, resolving its constructor dependencies."""
        if not self.parameters(target):
            return target()

        arguments = self.resolve_arguments(target)
        resolved = sum(1 for argument in arguments if argument.resolved)
        if resolved != len(arguments):
            logger.debug(
                "%s created with %d/%d dependencies resolved",
                target.__name__,
                resolved,
                len(arguments),
            )
        return self.construct(target, arguments)
