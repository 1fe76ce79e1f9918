# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Modules group providers and controllers and import other modules.

A static module is a class decorated with ``@module(...)``. A dynamic module
is a ``DynamicModule`` value built at runtime, usually by a ``for_root``
style classmethod, naming the static class it is a variant of:

    ```python
    @module(providers=[UserRepository], controllers=[UserController])
    class UsersModule: ...


    class DatabaseModule:
        @classmethod
        def for_root(cls, url: str) -> DynamicModule:
            return DynamicModule(
                module=cls,
                providers=[{"provide": "DB", "use_factory": connect, "inject": []}],
                exports=["DB"],
            )


    @module(imports=[UsersModule, DatabaseModule.for_root("sqlite://")])
    class AppModule: ...
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from keel.injection.errors import MissingModuleDescriptorError, ModuleDefinitionError
from keel.injection.metadata import MetadataStore, metadata_store
from keel.logging import log_context

if TYPE_CHECKING:
    from keel.injection.container import Container

T = TypeVar("T", bound=type)

logger = logging.getLogger(__name__)


class ModuleMetadata(BaseModel):
    """What a module contributes to the container.

    ``exports`` is kept for introspection; every registered token is
    visible to every module.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    imports: list[Any] = Field(default_factory=list)
    providers: list[Any] = Field(default_factory=list)
    controllers: list[type] = Field(default_factory=list)
    exports: list[Any] = Field(default_factory=list)


class DynamicModule(ModuleMetadata):
    """A runtime variant of the static module class ``module``."""

    module: type

    @property
    def identity(self) -> type:
        return self.module


class StaticModule(BaseModel):
    """Reference to a class whose descriptor lives in the metadata store."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    module_class: type

    @property
    def identity(self) -> type:
        return self.module_class


ModuleReference = StaticModule | DynamicModule


def module(
    *,
    imports: Sequence[Any] = (),
    providers: Sequence[Any] = (),
    controllers: Sequence[type] = (),
    exports: Sequence[Any] = (),
    store: MetadataStore | None = None,
) -> Callable[[T], T]:
    """Class decorator declaring a static module."""
    descriptor = ModuleMetadata(
        imports=list(imports),
        providers=list(providers),
        controllers=list(controllers),
        exports=list(exports),
    )

    def decorator(cls: T) -> T:
        (store or metadata_store).set_module(cls, descriptor)
        return cls

    return decorator


def as_module_reference(value: Any) -> ModuleReference:
    """Classify ``value`` as a static or dynamic module reference.

    Classes become ``StaticModule``; mappings are validated as
    ``DynamicModule``.

    Raises:
        ModuleDefinitionError: If ``value`` cannot describe a module
    """
    if isinstance(value, (StaticModule, DynamicModule)):
        return value
    if isinstance(value, type):
        return StaticModule(module_class=value)
    if isinstance(value, Mapping):
        try:
            return DynamicModule.model_validate(dict(value))
        except ValidationError as exc:
            raise ModuleDefinitionError(
                f"Invalid dynamic module: {exc.errors(include_url=False)}"
            ) from exc
    raise ModuleDefinitionError(
        f"Expected a module class or DynamicModule, got {type(value).__name__}"
    )


class ModuleGraphLoader:
    """Walks a module graph depth-first, registering each module once."""

    def __init__(self, container: Container, metadata: MetadataStore) -> None:
        self._container = container
        self._metadata = metadata
        self._seen: set[type] = set()

    def is_registered(self, value: Any) -> bool:
        return as_module_reference(value).identity in self._seen

    def clear(self) -> None:
        self._seen.clear()

    def _descriptor(self, reference: ModuleReference) -> ModuleMetadata:
        if isinstance(reference, DynamicModule):
            return reference
        descriptor = self._metadata.get_module(reference.module_class)
        if descriptor is None:
            raise MissingModuleDescriptorError(reference.module_class)
        if isinstance(descriptor, Mapping):
            return ModuleMetadata.model_validate(dict(descriptor))
        return descriptor

    def load(self, value: Any) -> None:
        """Register ``value``, its imports first, then providers, then controllers."""
        reference = as_module_reference(value)
        identity = reference.identity
        if identity in self._seen:
            logger.debug("Module %s already registered", identity.__name__)
            return
        self._seen.add(identity)

        descriptor = self._descriptor(reference)
        with log_context(module=identity.__name__):
            for imported in descriptor.imports:
                self.load(imported)
            for provider in descriptor.providers:
                self._container.register_provider(provider)
            for controller in descriptor.controllers:
                self._container.register_controller(controller)
            logger.debug(
                "Registered module %s (%d providers, %d controllers)",
                identity.__name__,
                len(descriptor.providers),
                len(descriptor.controllers),
            )
