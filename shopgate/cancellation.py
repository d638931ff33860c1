"""
Cancellable waits.

Callers pass an ``asyncio.Event`` as a cancellation token. When it is set
while a call is sleeping before a retry, or while it waits in the request
queue, the wait ends early and the call fails with RequestCancelledError.
Task cancellation (asyncio.CancelledError) is never converted.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from shopgate.exceptions import RequestCancelledError


async def sleep_or_cancel(
    seconds: float,
    cancel_event: Optional[asyncio.Event] = None,
    *,
    request_id: str = "",
    stage: str = "backoff",
) -> None:
    """Sleep for ``seconds`` unless ``cancel_event`` is set first.

    Raises:
        RequestCancelledError: If the event is (or becomes) set.
    """
    if cancel_event is None:
        await asyncio.sleep(seconds)
        return
    if cancel_event.is_set():
        raise RequestCancelledError(request_id, stage)
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return
    raise RequestCancelledError(request_id, stage)


async def await_or_cancel(
    future: asyncio.Future,
    cancel_event: Optional[asyncio.Event] = None,
    *,
    request_id: str = "",
    stage: str = "queue",
) -> Any:
    """Await ``future`` unless ``cancel_event`` fires first.

    On cancellation the future is cancelled so whoever would have resolved
    it can see that nobody is waiting any more.
    """
    if cancel_event is None:
        return await future
    if cancel_event.is_set():
        future.cancel()
        raise RequestCancelledError(request_id, stage)

    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({future, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        future.cancel()
        raise
    finally:
        waiter.cancel()

    if future in done:
        return future.result()
    future.cancel()
    raise RequestCancelledError(request_id, stage)
