from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from core.context import ExecutionContext
from core.errors import Cancelled, OversizedPayload

log = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 10

# never worth another attempt
NON_RETRYABLE: tuple[type[BaseException], ...] = (Cancelled, OversizedPayload)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = DEFAULT_ATTEMPTS,
    ctx: ExecutionContext | None = None,
    delay: float = 0.0,
    backoff: float = 2.0,
    max_delay: float = 30.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    retry_after: Callable[[BaseException], float | None] | None = None,
    label: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds or ``attempts`` runs are used up.

    Each attempt calls ``operation()`` afresh. With ``delay`` of zero the next
    attempt starts immediately; otherwise the wait grows by ``backoff`` per
    attempt, capped at ``max_delay``. Waits go through ``ctx`` so cancellation
    interrupts them. ``retry_after`` may pull a server-provided wait out of
    the error, which then replaces the computed one for that attempt. When
    the budget is exhausted the last error is raised.
    """

    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    wait = delay
    attempt = 1
    while True:
        if ctx is not None:
            ctx.raise_if_cancelled()
        try:
            return await operation()
        except NON_RETRYABLE:
            raise
        except retry_on as exc:
            log.debug("%s failed (attempt %d/%d): %s", label, attempt, attempts, exc)
            if attempt >= attempts:
                log.warning("%s gave up after %d attempt(s): %s", label, attempts, exc)
                raise
            error: BaseException = exc
        pause = wait
        if retry_after is not None:
            hinted = retry_after(error)
            if hinted is not None:
                pause = min(hinted, max_delay)
        if pause > 0:
            if ctx is not None:
                await ctx.sleep(pause)
            else:
                await asyncio.sleep(pause)
        wait = min(wait * backoff, max_delay)
        attempt += 1
