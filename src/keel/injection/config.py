# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework

"""
Configuration for the keel dependency injection container.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field, PositiveFloat
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderScope(str, Enum):
    """Provider lifetime options for dependency injection."""

    SINGLETON = "singleton"
    TRANSIENT = "transient"


class ContainerSettings(BaseSettings):
    """Behaviour switches for a Container, loaded from ``KEEL_CONTAINER_*``."""

    model_config = SettingsConfigDict(
        env_prefix="KEEL_CONTAINER_",
        extra="ignore",
        case_sensitive=False,
    )

    strict: bool = Field(
        default=False,
        description="Raise instead of binding None when a reflected parameter has no provider",
    )
    alias_fallback: bool = Field(
        default=True,
        description="Try the alias resolver when a reflected type token is not registered",
    )
    async_provider_timeout: PositiveFloat | None = Field(
        default=None,
        description="Seconds to wait for each async factory during settlement",
    )
    hook_timeout: PositiveFloat | None = Field(
        default=None,
        description="Seconds to wait for each lifecycle hook",
    )
