# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework

"""
DI container implementation for keel.

The container owns the registration table and the singleton cache. Every
registration is keyed by a string token; classes are keyed by their name.
Resolution is synchronous: async factories hand out a ``PendingProvider``
until ``resolve_async_providers`` has been awaited.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from keel.errors import KeelError
from keel.injection.aliases import AliasResolver, SubstringAliasResolver
from keel.injection.async_providers import AsyncProviderSettler, PendingProvider
from keel.injection.config import ContainerSettings, ProviderScope
from keel.injection.errors import (
    CircularDependencyError,
    ContainerDisposedError,
    MissingRegistrationError,
    ProviderCreationError,
    ProviderDefinitionError,
)
from keel.injection.lifecycle import ON_MODULE_DESTROY, ON_MODULE_INIT, LifecycleOrchestrator
from keel.injection.metadata import MetadataStore, metadata_store
from keel.injection.modules import ModuleGraphLoader
from keel.injection.providers import (
    ClassProvider,
    FactoryProvider,
    ValueProvider,
    parse_provider,
)
from keel.injection.reflection import Instantiator
from keel.injection.registration import Registration, token_for

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Container:
    """Dependency Injection container for modules, providers and controllers.

    Two lifetimes are supported:
    - Singleton: built on first resolution and cached for the container's life
    - Transient: built on every resolution, never cached

    Attributes:
        settings: ContainerSettings
            Behaviour switches (strict mode, alias fallback, timeouts).
        metadata: MetadataStore
            Where module descriptors and injection tokens are read from.
    """

    def __init__(
        self,
        settings: ContainerSettings | None = None,
        metadata: MetadataStore | None = None,
        alias_resolver: AliasResolver | None = None,
    ) -> None:
        self.settings = settings or ContainerSettings()
        self.metadata = metadata or metadata_store
        if not self.settings.alias_fallback:
            alias_resolver = None
        elif alias_resolver is None:
            alias_resolver = SubstringAliasResolver()

        self._registrations: dict[str, Registration] = {}
        self._singletons: dict[str, Any] = {}
        self._resolving: list[str] = []
        self._controllers: list[type] = []
        self._disposed: bool = False

        self._instantiator = Instantiator(
            self, self.metadata, alias_resolver, strict=self.settings.strict
        )
        self._settler = AsyncProviderSettler(self.settings.async_provider_timeout)
        self._lifecycle = LifecycleOrchestrator(self.settings.hook_timeout)
        self._modules = ModuleGraphLoader(self, self.metadata)

    def _check_not_disposed(self, operation: str) -> None:
        if self._disposed:
            raise ContainerDisposedError(operation)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    # Registration table

    def _store(self, registration: Registration) -> None:
        token = registration.token
        if token in self._registrations:
            logger.debug("Replacing registration for %s", token)
        self._registrations[token] = registration
        self._singletons.pop(token, None)
        self._settler.forget(token)
        self._instantiator.invalidate()
        logger.debug(
            "Registered %s (%s%s)",
            token,
            registration.scope.value,
            ", async" if registration.is_async else "",
        )

    def register(
        self,
        token: str | type,
        factory: Callable[[], Any],
        singleton: bool = False,
        *,
        is_async: bool = False,
        target: type | None = None,
    ) -> None:
        """Bind ``token`` to ``factory``, replacing any previous registration.

        Args:
            token: A string token or a class (keyed by its name)
            factory: Zero-argument callable producing the instance
            singleton: Cache the first instance for the container's life
            is_async: The factory is a coroutine function
            target: The class the factory constructs, if any

        Raises:
            ContainerDisposedError: If the container has been disposed
        """
        self._check_not_disposed("register")
        scope = ProviderScope.SINGLETON if singleton else ProviderScope.TRANSIENT
        self._store(Registration(token_for(token), factory, scope, is_async, target))

    def register_alias(self, alias: str | type, token: str | type) -> None:
        """Make ``alias`` resolve to whatever ``token`` resolves to."""
        target_token = token_for(token)
        self.register(alias, lambda: self.resolve(target_token))

    def register_provider(self, provider: Any) -> str:
        """Register a provider descriptor and return its token.

        Accepts a bare class, a ``ValueProvider``/``ClassProvider``/
        ``FactoryProvider`` or a dict of the same shape.

        Raises:
            ProviderDefinitionError: If the provider has an unsupported shape
        """
        self._check_not_disposed("register_provider")
        descriptor = parse_provider(provider)
        token = descriptor.provide

        if isinstance(descriptor, ValueProvider):
            value = descriptor.use_value
            self.register(token, lambda: value, singleton=True)
        elif isinstance(descriptor, FactoryProvider):
            self._register_factory(descriptor)
        elif isinstance(descriptor, ClassProvider):
            self._register_class(descriptor)
        else:
            raise ProviderDefinitionError(
                f"Unsupported provider descriptor {type(descriptor).__name__}",
                provider=provider,
            )
        return token

    def _register_factory(self, descriptor: FactoryProvider) -> None:
        token = descriptor.provide
        use_factory = descriptor.use_factory
        inject = list(descriptor.inject or [])
        singleton = descriptor.scope is ProviderScope.SINGLETON

        def factory() -> Any:
            result = use_factory(*(self.resolve(dependency) for dependency in inject))
            if inspect.isawaitable(result):
                pending = PendingProvider(token, result)
                if singleton:
                    self._settler.track(token, pending)
                return pending
            return result

        self.register(
            token,
            factory,
            singleton=singleton,
            is_async=inspect.iscoroutinefunction(use_factory),
        )

    def _register_class(self, descriptor: ClassProvider) -> None:
        cls = descriptor.use_class
        singleton = descriptor.scope is ProviderScope.SINGLETON

        if descriptor.inject is not None:
            inject = list(descriptor.inject)

            def factory() -> Any:
                return cls(*(self.resolve(dependency) for dependency in inject))

        else:

            def factory() -> Any:
                return self._instantiator.create_instance(cls)

        self.register(descriptor.provide, factory, singleton=singleton, target=cls)

    def register_controller(self, controller: type) -> None:
        """Register ``controller`` as a reflected singleton keyed by its name."""
        if not isinstance(controller, type):
            raise ProviderDefinitionError(
                f"Controller must be a class, got {type(controller).__name__}",
                provider=controller,
            )
        self.register(
            controller,
            lambda: self._instantiator.create_instance(controller),
            singleton=True,
            target=controller,
        )
        if controller not in self._controllers:
            self._controllers.append(controller)

    def register_module(self, module: Any) -> None:
        """Register a module graph rooted at ``module``.

        Each module identity is processed once; imports are registered
        before the module's own providers and controllers.

        Raises:
            MissingModuleDescriptorError: If a static module has no ``@module`` metadata
            ModuleDefinitionError: If ``module`` is not a module reference
        """
        self._check_not_disposed("register_module")
        self._modules.load(module)

    def is_module_registered(self, module: Any) -> bool:
        return self._modules.is_registered(module)

    def has_registration(self, token: str | type) -> bool:
        return token_for(token) in self._registrations

    def get_registration(self, token: str | type) -> Registration | None:
        return self._registrations.get(token_for(token))

    def registrations(self) -> dict[str, Registration]:
        """Return a snapshot of the registration table, in registration order."""
        return dict(self._registrations)

    def tokens(self) -> list[str]:
        return list(self._registrations)

    @property
    def controllers(self) -> list[type]:
        """Registered controller classes, in registration order."""
        return list(self._controllers)

    # Resolution

    def resolve(self, token: str | type) -> Any:
        """Return the instance bound to ``token``.

        Raises:
            MissingRegistrationError: If nothing is registered for ``token``
            CircularDependencyError: If ``token`` is requested while it is being built
            ProviderCreationError: If the factory raised a non-keel exception
            ContainerDisposedError: If the container has been disposed
        """
        self._check_not_disposed("resolve")
        token = token_for(token)

        registration = self._registrations.get(token)
        if registration is None:
            raise MissingRegistrationError(
                token,
                dependency_chain=self._resolving,
                available_tokens=list(self._registrations),
            )
        if registration.is_singleton and token in self._singletons:
            return self._singletons[token]
        if token in self._resolving:
            raise CircularDependencyError([*self._resolving, token])

        self._resolving.append(token)
        try:
            instance = registration.factory()
        except KeelError:
            raise
        except Exception as exc:
            raise ProviderCreationError(token, exc, dependency_chain=self._resolving) from exc
        finally:
            self._resolving.pop()

        if registration.is_singleton:
            self._singletons[token] = instance
        return instance

    def create_instance(self, cls: type[T]) -> T:
        """Build ``cls`` by reflection without registering it."""
        self._check_not_disposed("create_instance")
        return self._instantiator.create_instance(cls)

    def _store_settled(self, token: str, value: Any) -> None:
        registration = self._registrations.get(token)
        if registration is not None and registration.is_singleton:
            self._singletons[token] = value

    async def resolve_async_providers(self) -> dict[str, Any]:
        """Settle every async singleton and cache its result.

        Async singletons nobody has resolved yet are started first.

        Returns:
            ``token -> value`` for every provider settled by this call

        Raises:
            AsyncProviderError: If a provider failed or timed out
        """
        self._check_not_disposed("resolve_async_providers")
        for token, registration in list(self._registrations.items()):
            if (
                registration.is_async
                and registration.is_singleton
                and token not in self._singletons
            ):
                self.resolve(token)
        return await self._settler.settle(self._store_settled)

    # Lifecycle

    async def call_on_module_init(self) -> int:
        """Call ``on_module_init`` on every cached singleton that defines it."""
        self._check_not_disposed("call_on_module_init")
        return await self._lifecycle.call_hook(list(self._singletons.items()), ON_MODULE_INIT)

    async def call_on_module_destroy(self) -> int:
        """Call ``on_module_destroy`` on every cached singleton that defines it."""
        self._check_not_disposed("call_on_module_destroy")
        return await self._lifecycle.call_hook(
            list(self._singletons.items()), ON_MODULE_DESTROY
        )

    async def dispose(self, run_destroy_hooks: bool = True) -> None:
        """Dispose the container.

        Runs destroy hooks (unless already run by the caller), then drops all
        registrations and cached instances. Later use raises
        ``ContainerDisposedError``. Calling it again is a no-op.
        """
        if self._disposed:
            return
        try:
            if run_destroy_hooks:
                await self.call_on_module_destroy()
        finally:
            self._settler.clear()
            self._singletons.clear()
            self._registrations.clear()
            self._controllers.clear()
            self._modules.clear()
            self._instantiator.invalidate()
            self._disposed = True
            logger.debug("Container disposed")

    async def __aenter__(self) -> Container:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.dispose()
