"""
Backpressure queue for REST calls issued while the call budget is exhausted.

Deferred calls are executed strictly in submission order by a single drain
task, with a fixed pause between consecutive dispatches. The drain task
handle is the only "is draining" state: enqueue() starts a task only when
none is running, and the task clears the handle itself when the queue runs
dry, so a later enqueue() starts a fresh one.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from shopgate.cancellation import await_or_cancel
from shopgate.exceptions import RequestCancelledError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueEntry:
    """A deferred call and the future its caller is waiting on."""

    id: str
    submit: Callable[[], Awaitable[Any]]
    enqueued_at: float
    future: asyncio.Future


class RequestQueue:
    """
    FIFO of deferred calls drained by one task with a minimum dispatch interval.

    Usage:
        queue = RequestQueue(min_dispatch_interval=0.25)
        result = await queue.submit(lambda: transport.send(...))

    A failing entry resolves only its own future; the drain loop moves on to
    the next entry. Must be used from the event loop that owns it.
    """

    def __init__(self, min_dispatch_interval: float = 0.25, name: str = "shopify-rest"):
        self.min_dispatch_interval = min_dispatch_interval
        self.name = name
        self._entries: deque[QueueEntry] = deque()
        self._drain_task: Optional[asyncio.Task] = None
        self._lock = threading.Lock()
        self._dispatched = 0

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def is_draining(self) -> bool:
        with self._lock:
            return self._drain_task is not None

    @property
    def dispatched(self) -> int:
        """Number of entries executed since the queue was created."""
        return self._dispatched

    def enqueue(self, entry: QueueEntry) -> None:
        """Append ``entry`` and make sure exactly one drain task is running."""
        with self._lock:
            self._entries.append(entry)
            if self._drain_task is None:
                self._drain_task = asyncio.get_running_loop().create_task(
                    self._drain(), name=f"{self.name}-drain"
                )
                logger.debug(f"Started drain loop for {self.name}")

    async def submit(
        self,
        submit: Callable[[], Awaitable[Any]],
        cancel_event: Optional[asyncio.Event] = None,
        entry_id: Optional[str] = None,
    ) -> Any:
        """Queue ``submit`` and wait for its result (or exception)."""
        entry = QueueEntry(
            id=entry_id or uuid.uuid4().hex[:12],
            submit=submit,
            enqueued_at=time.monotonic(),
            future=asyncio.get_running_loop().create_future(),
        )
        self.enqueue(entry)
        return await await_or_cancel(
            entry.future, cancel_event, request_id=entry.id, stage="queue wait"
        )

    def _next_entry(self) -> Optional[QueueEntry]:
        with self._lock:
            if not self._entries:
                self._drain_task = None
                return None
            return self._entries.popleft()

    async def _drain(self) -> None:
        while True:
            entry = self._next_entry()
            if entry is None:
                logger.debug(f"Drain loop for {self.name} finished, queue empty")
                return

            if entry.future.done():
                # Caller gave up while waiting in line
                logger.debug(f"Skipping withdrawn queue entry {entry.id}")
                continue

            waited = time.monotonic() - entry.enqueued_at
            logger.debug(f"Dispatching queued entry {entry.id} after {waited:.3f}s in queue")
            try:
                result = await entry.submit()
            except asyncio.CancelledError:
                if not entry.future.done():
                    entry.future.cancel()
                raise
            except Exception as e:
                logger.error(f"Queued request failed: {type(e).__name__}: {e}")
                if not entry.future.done():
                    entry.future.set_exception(e)
            else:
                if not entry.future.done():
                    entry.future.set_result(result)
            self._dispatched += 1

            await asyncio.sleep(self.min_dispatch_interval)

    async def close(self) -> None:
        """Stop draining and fail every entry still waiting in the queue."""
        with self._lock:
            task = self._drain_task
            self._drain_task = None
            remaining = list(self._entries)
            self._entries.clear()

        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        for entry in remaining:
            if not entry.future.done():
                entry.future.set_exception(RequestCancelledError(entry.id, "queue shutdown"))
        if remaining:
            logger.info(f"Closed {self.name} queue with {len(remaining)} pending entries")
