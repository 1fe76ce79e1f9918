# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Async factory support.

A factory returning an awaitable is wrapped in a ``PendingProvider``, which
``resolve()`` hands out until the application awaits settlement. The settler
tracks singleton pending values and replaces them with their results.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Generator
from typing import Any

from keel.injection.errors import AsyncProviderError

logger = logging.getLogger(__name__)


class PendingProvider:
    """A shareable handle on an async factory result.

    Awaiting it any number of times yields the same value: the underlying
    awaitable is scheduled once, on first await, and every waiter shares
    that task.
    """

    __slots__ = ("token", "_awaitable", "_future")

    def __init__(self, token: str, awaitable: Awaitable[Any]) -> None:
        self.token = token
        self._awaitable = awaitable
        self._future: asyncio.Future[Any] | None = None

    def _ensure_future(self) -> asyncio.Future[Any]:
        if self._future is None:
            self._future = asyncio.ensure_future(self._awaitable)
        return self._future

    def __await__(self) -> Generator[Any, None, Any]:
        return self._ensure_future().__await__()

    @property
    def started(self) -> bool:
        return self._future is not None

    @property
    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def close(self) -> None:
        """Abandon the pending value without awaiting it."""
        if self._future is None:
            if inspect.iscoroutine(self._awaitable):
                self._awaitable.close()
        elif not self._future.done():
            self._future.cancel()

    def __repr__(self) -> str:
        state = "done" if self.done else ("running" if self.started else "pending")
        return f"<PendingProvider {self.token} {state}>"


class AsyncProviderSettler:
    """Tracks singleton ``PendingProvider`` values until they are settled."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout
        self._pending: dict[str, PendingProvider] = {}

    @property
    def pending_tokens(self) -> list[str]:
        return list(self._pending)

    def track(self, token: str, pending: PendingProvider) -> None:
        """Record the pending value of a singleton; a token is tracked once."""
        if token in self._pending:
            return
        self._pending[token] = pending
        logger.debug("Tracking async provider %s", token)

    def forget(self, token: str) -> None:
        pending = self._pending.pop(token, None)
        if pending is not None:
            pending.close()

    def clear(self) -> None:
        for pending in self._pending.values():
            pending.close()
        self._pending.clear()

    async def _settle_one(self, token: str, pending: PendingProvider) -> Any:
        try:
            if self.timeout is not None:
                return await asyncio.wait_for(pending, self.timeout)
            return await pending
        except asyncio.TimeoutError as exc:
            raise AsyncProviderError(token, timeout=self.timeout) from exc
        except Exception as exc:
            raise AsyncProviderError(token, exc) from exc

    async def settle(
        self, on_settled: Callable[[str, Any], None] | None = None
    ) -> dict[str, Any]:
        """Await every tracked value concurrently.

        ``on_settled`` is called for each successful value before any
        failure is raised, so settled singletons are never lost.

        Returns:
            ``token -> result`` for every value that settled

        Raises:
            AsyncProviderError: For the first provider (in tracking order)
                that failed or timed out; the others are still awaited
        """
        if not self._pending:
            return {}

        tracked = list(self._pending.items())
        self._pending.clear()
        logger.debug("Settling %d async providers", len(tracked))
        outcomes = await asyncio.gather(
            *(self._settle_one(token, pending) for token, pending in tracked),
            return_exceptions=True,
        )

        settled: dict[str, Any] = {}
        failure: AsyncProviderError | None = None
        for (token, _), outcome in zip(tracked, outcomes, strict=True):
            if isinstance(outcome, AsyncProviderError):
                logger.error("Async provider %s failed: %s", token, outcome)
                failure = failure or outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                settled[token] = outcome
                if on_settled is not None:
                    on_settled(token, outcome)
        if failure is not None:
            raise failure
        return settled
