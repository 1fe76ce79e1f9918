# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework

"""
keel: a dependency injection container with modules, async providers and
lifecycle hooks.
"""

from keel.bootstrap import Application, ApplicationSettings
from keel.injection import (
    ClassProvider,
    Container,
    ContainerSettings,
    DynamicModule,
    FactoryProvider,
    Inject,
    OnModuleDestroy,
    OnModuleInit,
    ValueProvider,
    inject,
    module,
)

__version__ = "0.1.0"

__all__ = [
    "Application",
    "ApplicationSettings",
    "ClassProvider",
    "Container",
    "ContainerSettings",
    "DynamicModule",
    "FactoryProvider",
    "Inject",
    "OnModuleDestroy",
    "OnModuleInit",
    "ValueProvider",
    "inject",
    "module",
]
