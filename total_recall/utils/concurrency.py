"""Bounded fan-out for calls against rate-limited providers.

The embedding API throttles by requests per minute, so ingestion never
sends one request per file all at once.  :func:`throttled_gather` keeps
``asyncio.gather`` ordering and exception semantics while admitting only
as many awaitables as the semaphore allows.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Await *coros* concurrently with at most ``semaphore`` of them running.

    Parameters
    ----------
    coros:
        Awaitables to run.  Each holds one semaphore slot from the moment
        it starts until it returns or raises.
    semaphore:
        Shared admission gate.  Its initial value is the concurrency cap.
    return_exceptions:
        When ``True`` (the default) a failure is placed in the result list
        at its position instead of aborting the others.  Cancellation of
        the caller is never swallowed.

    Returns
    -------
    list[_T | BaseException]
        One entry per awaitable, in input order.
    """

    async def _admit(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    return await asyncio.gather(
        *(_admit(c) for c in coros), return_exceptions=return_exceptions
    )
