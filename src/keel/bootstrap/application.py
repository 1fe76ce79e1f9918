# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework

"""
Application bootstrap and graceful shutdown.

Usage:
    ```python
    async with Application.create(AppModule) as app:
        controller = app.get(UserController)
        await app.wait_for_shutdown()
    ```

Bootstrap order: default providers, the module graph, async provider
settlement, controller (and optionally singleton) construction, then
``on_module_init`` hooks. Shutdown runs ``on_module_destroy`` hooks, the
registered shutdown callbacks, then disposes the container.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import signal
from collections.abc import Awaitable, Callable
from typing import Any

from keel.bootstrap.config import ApplicationSettings
from keel.injection.container import Container
from keel.injection.providers import ValueProvider
from keel.logging import configure_logging, get_logger

logger = logging.getLogger(__name__)

ShutdownCallback = Callable[[], Awaitable[None] | None]

LOGGER_TOKEN = "Logger"


class Application:
    """Owns a container built from a root module and drives its lifecycle."""

    def __init__(
        self,
        root_module: Any,
        container: Container | None = None,
        settings: ApplicationSettings | None = None,
    ) -> None:
        self.root_module = root_module
        self.container = container or Container()
        self.settings = settings or ApplicationSettings.load()
        self._shutdown_callbacks: list[ShutdownCallback] = []
        self._shutdown_requested = asyncio.Event()
        self._shutdown_task: asyncio.Task[None] | None = None
        self._installed_signals: list[signal.Signals] = []
        self._initialized = False
        self._closed = False

    @classmethod
    def create(
        cls,
        root_module: Any,
        container: Container | None = None,
        settings: ApplicationSettings | None = None,
    ) -> Application:
        """Build an application; use it as ``async with`` to init and close it."""
        return cls(root_module, container=container, settings=settings)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_closed(self) -> bool:
        return self._closed

    def get(self, token: str | type) -> Any:
        """Resolve ``token`` from the application's container."""
        return self.container.resolve(token)

    @property
    def controllers(self) -> list[type]:
        return self.container.controllers

    async def init(self) -> Application:
        """Bootstrap the module graph and run ``on_module_init`` hooks.

        Calling it again is a no-op.
        """
        if self._initialized:
            return self
        if self.settings.configure_logging:
            configure_logging()

        name = self.settings.name
        logger.info("Starting application %s", name)
        # Registered first so modules can override it
        self.container.register_provider(
            ValueProvider(provide=LOGGER_TOKEN, use_value=get_logger(f"keel.app.{name}"))
        )
        self.container.register_module(self.root_module)

        settled = await self.container.resolve_async_providers()
        if settled:
            logger.debug("Settled async providers: %s", ", ".join(settled))

        for controller in self.container.controllers:
            self.container.resolve(controller)
        if self.settings.eager_singletons:
            for token, registration in self.container.registrations().items():
                if registration.is_singleton:
                    self.container.resolve(token)
            # Singletons built above may be async factories
            await self.container.resolve_async_providers()

        called = await self.container.call_on_module_init()
        self._initialized = True
        logger.info(
            "Application %s initialized (%d controllers, %d init hooks)",
            name,
            len(self.container.controllers),
            called,
        )
        return self

    def on_shutdown(self, callback: ShutdownCallback) -> None:
        """Register a callback run during shutdown, after destroy hooks."""
        self._shutdown_callbacks.append(callback)

    async def _run_shutdown_callbacks(self) -> None:
        async def run(callback: ShutdownCallback) -> None:
            result = callback()
            if inspect.isawaitable(result):
                await result

        outcomes = await asyncio.gather(
            *(run(callback) for callback in self._shutdown_callbacks),
            return_exceptions=True,
        )
        for callback, outcome in zip(self._shutdown_callbacks, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Shutdown callback %s failed: %s",
                    getattr(callback, "__qualname__", repr(callback)),
                    outcome,
                )

    async def _shutdown(self) -> None:
        try:
            await self.container.call_on_module_destroy()
        finally:
            await self._run_shutdown_callbacks()
            await self.container.dispose(run_destroy_hooks=False)

    async def close(self) -> None:
        """Shut the application down within ``graceful_timeout`` seconds.

        Destroy hook failures are logged; the container is still disposed.
        Calling it again is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        self._shutdown_requested.set()
        self.remove_signal_handlers()

        logger.info("Shutting down application %s", self.settings.name)
        try:
            await asyncio.wait_for(self._shutdown(), self.settings.graceful_timeout)
        except asyncio.TimeoutError:
            logger.error(
                "Graceful shutdown exceeded %ss, disposing container",
                self.settings.graceful_timeout,
            )
            await self.container.dispose(run_destroy_hooks=False)
        except Exception as exc:
            logger.error("Error during shutdown: %s", exc)
        logger.info("Application %s stopped", self.settings.name)

    # Signals

    def request_shutdown(self) -> None:
        """Start a graceful shutdown in the background (used by signal handlers)."""
        if self._shutdown_task is not None:
            logger.warning("Shutdown already in progress")
            return
        self._shutdown_requested.set()
        self._shutdown_task = asyncio.get_running_loop().create_task(self.close())

    async def wait_for_shutdown(self) -> None:
        """Wait until shutdown is requested and has completed."""
        await self._shutdown_requested.wait()
        if self._shutdown_task is not None:
            await self._shutdown_task

    def install_signal_handlers(self) -> None:
        """Trigger ``request_shutdown`` on the configured signals.

        Must be called with a running event loop. Platforms without
        ``add_signal_handler`` support are skipped with a warning.
        """
        loop = asyncio.get_running_loop()
        for name in self.settings.shutdown_signals:
            sig = signal.Signals[name]
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except (NotImplementedError, RuntimeError, ValueError) as exc:
                logger.warning("Cannot install handler for %s: %s", name, exc)
                continue
            self._installed_signals.append(sig)

    def remove_signal_handlers(self) -> None:
        if not self._installed_signals:
            return
        loop = asyncio.get_running_loop()
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()

    async def __aenter__(self) -> Application:
        await self.init()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
