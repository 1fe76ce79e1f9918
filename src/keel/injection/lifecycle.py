# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Module lifecycle hooks.

Any constructed singleton exposing ``on_module_init`` or ``on_module_destroy``
takes part in the application's init and teardown phases.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Iterable
from typing import Any, Protocol, runtime_checkable

from keel.injection.errors import LifecycleHookError

logger = logging.getLogger(__name__)

ON_MODULE_INIT = "on_module_init"
ON_MODULE_DESTROY = "on_module_destroy"


@runtime_checkable
class OnModuleInit(Protocol):
    """Called once after the container has settled async providers."""

    def on_module_init(self) -> Awaitable[None] | None: ...


@runtime_checkable
class OnModuleDestroy(Protocol):
    """Called once when the application shuts down."""

    def on_module_destroy(self) -> Awaitable[None] | None: ...


class LifecycleOrchestrator:
    """Invokes a lifecycle hook on every distinct instance that defines it."""

    def __init__(self, hook_timeout: float | None = None) -> None:
        self.hook_timeout = hook_timeout

    async def _await_hook(self, token: str, hook: str, awaitable: Awaitable[Any]) -> None:
        try:
            if self.hook_timeout is not None:
                await asyncio.wait_for(awaitable, self.hook_timeout)
            else:
                await awaitable
        except asyncio.TimeoutError as exc:
            raise LifecycleHookError(token, hook, timeout=self.hook_timeout) from exc
        except Exception as exc:
            raise LifecycleHookError(token, hook, exc) from exc

    async def call_hook(self, instances: Iterable[tuple[str, Any]], hook: str) -> int:
        """Call ``hook`` on each instance and await the results concurrently.

        Args:
            instances: ``(token, instance)`` pairs; an object cached under
                several tokens is called once
            hook: Attribute name of the hook

        Returns:
            Number of instances whose hook was called

        Raises:
            LifecycleHookError: For the first hook that failed or timed out
        """
        seen: set[int] = set()
        waiting: list[tuple[str, Awaitable[Any]]] = []

        for token, instance in instances:
            if isinstance(instance, type) or id(instance) in seen:
                continue
            method = getattr(instance, hook, None)
            if not callable(method):
                continue
            seen.add(id(instance))
            try:
                result = method()
            except Exception as exc:
                logger.error("%s of %s failed: %s", hook, token, exc)
                # Close coroutines already created so they are not left un-awaited
                for _, awaitable in waiting:
                    if inspect.iscoroutine(awaitable):
                        awaitable.close()
                raise LifecycleHookError(token, hook, exc) from exc
            if inspect.isawaitable(result):
                waiting.append((token, result))

        if waiting:
            outcomes = await asyncio.gather(
                *(self._await_hook(token, hook, awaitable) for token, awaitable in waiting),
                return_exceptions=True,
            )
            failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
            for failure in failures:
                logger.error("%s", failure)
            if failures:
                raise failures[0]

        logger.debug("Called %s on %d instances", hook, len(seen))
        return len(seen)
