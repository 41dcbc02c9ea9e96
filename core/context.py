from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from core.errors import Cancelled

T = TypeVar("T")


class ExecutionContext:
    """Cancellation scope shared by every network await of one invocation.

    Cancelling the context (explicitly or through the optional deadline) makes
    every pending and future ``run`` call raise :class:`Cancelled` promptly.
    Work that already completed is not rolled back.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._deadline_handle: asyncio.TimerHandle | None = None
        if timeout is not None:
            loop = asyncio.get_running_loop()
            self._deadline_handle = loop.call_later(timeout, self.cancel, "deadline exceeded")

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        self.close()

    def close(self) -> None:
        """Drop the pending deadline, if any."""
        if self._deadline_handle is not None:
            self._deadline_handle.cancel()
            self._deadline_handle = None

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise Cancelled(self._reason or "cancelled")

    async def wait(self) -> None:
        await self._event.wait()

    async def run(self, aw: Awaitable[T]) -> T:
        """Await ``aw`` unless the context is cancelled first."""
        if self._event.is_set():
            if asyncio.iscoroutine(aw):
                aw.close()
            raise Cancelled(self._reason or "cancelled")

        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done() and not self._event.is_set():
                # outer cancellation; do not leave the work running unobserved
                task.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise Cancelled(self._reason or "cancelled")

    async def sleep(self, delay: float) -> None:
        if delay <= 0:
            self.raise_if_cancelled()
            return
        await self.run(asyncio.sleep(delay))
