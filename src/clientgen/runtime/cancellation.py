"""Cooperative cancellation of generated client operations."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from clientgen.exceptions import OperationCancelledError

T = TypeVar("T")


class CancellationToken:
    """Signal that pending requests should be abandoned.

    Every generated operation accepts an optional token as its last
    argument. Cancelling the token aborts the request in flight and makes
    the operation raise :class:`~clientgen.exceptions.OperationCancelledError`.

    Example::

        token = CancellationToken()
        task = asyncio.ensure_future(client.get_projects(cancellation_token=token))
        token.cancel()
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._event: Optional[asyncio.Event] = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelledError("Operation was cancelled")

    async def wait(self) -> None:
        """Return once the token is cancelled."""
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the token is cancelled first.

        Raises:
            OperationCancelledError: If the token is or becomes cancelled
                before *awaitable* completes.
        """
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.wait())
        done, _pending = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise OperationCancelledError("Operation was cancelled")
