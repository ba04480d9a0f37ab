"""Cooperative cancellation for agent runs."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from trading_assistant.domain.exceptions import RunCancelled

T = TypeVar("T")


class CancellationToken:
    """
    Run-scoped cancellation flag threaded through every suspension point.

    Cancelling the token makes the pending (or next) `guard` call resolve as
    `RunCancelled` instead of the awaited result.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelled("Run was cancelled")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """
        Awaits a collaborator call unless the token fires first.

        Args:
            awaitable: The suspension point to await.

        Returns:
            The awaited result.

        Raises:
            RunCancelled: When the token is cancelled before or while waiting.
        """
        task = asyncio.ensure_future(awaitable)
        if self._event.is_set():
            await _discard(task)
            raise RunCancelled("Run was cancelled")

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done() and not self._event.is_set():
                # The caller itself was cancelled.
                task.cancel()

        if self._event.is_set():
            await _discard(task)
            raise RunCancelled("Run was cancelled")
        return task.result()


async def _discard(task: asyncio.Future) -> None:
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
