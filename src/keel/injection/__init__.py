# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework

"""
Public API for the keel dependency injection system.
"""

from keel.injection.aliases import AliasResolver, ExactAliasResolver, SubstringAliasResolver
from keel.injection.async_providers import AsyncProviderSettler, PendingProvider
from keel.injection.config import ContainerSettings, ProviderScope
from keel.injection.container import Container
from keel.injection.errors import (
    AsyncProviderError,
    CircularDependencyError,
    ContainerDisposedError,
    InjectionError,
    LifecycleHookError,
    MissingModuleDescriptorError,
    MissingRegistrationError,
    ModuleDefinitionError,
    ProviderCreationError,
    ProviderDefinitionError,
    UnresolvedDependencyError,
)
from keel.injection.lifecycle import LifecycleOrchestrator, OnModuleDestroy, OnModuleInit
from keel.injection.metadata import (
    Inject,
    MetadataStore,
    ParameterInfo,
    inject,
    metadata_store,
)
from keel.injection.modules import (
    DynamicModule,
    ModuleGraphLoader,
    ModuleMetadata,
    StaticModule,
    module,
)
from keel.injection.providers import ClassProvider, FactoryProvider, Provider, ValueProvider
from keel.injection.reflection import Instantiator, ResolvedArgument
from keel.injection.registration import Registration, token_for

__all__ = [
    # Container
    "Container",
    "ContainerSettings",
    "ProviderScope",
    "Registration",
    "token_for",
    # Providers
    "Provider",
    "ValueProvider",
    "ClassProvider",
    "FactoryProvider",
    "PendingProvider",
    "AsyncProviderSettler",
    # Metadata and reflection
    "Inject",
    "inject",
    "MetadataStore",
    "metadata_store",
    "ParameterInfo",
    "Instantiator",
    "ResolvedArgument",
    "AliasResolver",
    "SubstringAliasResolver",
    "ExactAliasResolver",
    # Modules and lifecycle
    "module",
    "ModuleMetadata",
    "DynamicModule",
    "StaticModule",
    "ModuleGraphLoader",
    "OnModuleInit",
    "OnModuleDestroy",
    "LifecycleOrchestrator",
    # Errors
    "InjectionError",
    "MissingRegistrationError",
    "CircularDependencyError",
    "ProviderDefinitionError",
    "ProviderCreationError",
    "UnresolvedDependencyError",
    "AsyncProviderError",
    "LifecycleHookError",
    "ContainerDisposedError",
    "MissingModuleDescriptorError",
    "ModuleDefinitionError",
]
