# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Configuration for application bootstrap and shutdown.
"""

from __future__ import annotations

import signal
from typing import Any

from pydantic import Field, PositiveFloat, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApplicationSettings(BaseSettings):
    """
    Bootstrap and shutdown behaviour of an Application.
    Loads from ``KEEL_APP_*`` environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="KEEL_APP_",
        extra="ignore",
        case_sensitive=False,
    )

    name: str = Field(default="keel", description="Application name, used for its logger")
    eager_singletons: bool = Field(
        default=False,
        description="Build every singleton during init instead of on first use",
    )
    graceful_timeout: PositiveFloat = Field(
        default=10.0, description="Seconds allowed for shutdown before giving up"
    )
    shutdown_signals: list[str] = Field(
        default_factory=lambda: ["SIGINT", "SIGTERM"],
        description="Signals that trigger a graceful shutdown",
    )
    configure_logging: bool = Field(
        default=False, description="Install keel's log handlers during init"
    )

    @field_validator("shutdown_signals", mode="before")
    @classmethod
    def validate_signals(cls, v: Any) -> Any:
        """Accept a comma separated string and reject unknown signal names."""
        if isinstance(v, str):
            v = [name.strip() for name in v.split(",") if name.strip()]
        for name in v:
            if not isinstance(name, str) or not hasattr(signal, name.upper()):
                raise ValueError(f"Unknown signal: {name}")
        return [name.upper() for name in v]

    @classmethod
    def load(cls) -> ApplicationSettings:
        """Load application settings from environment variables or defaults."""
        return cls()
