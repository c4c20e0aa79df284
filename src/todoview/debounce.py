from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Debouncer(Generic[T]):
    """Run ``callback`` with the latest value once calls stop for ``delay`` seconds.

    Every call cancels the pending timer before scheduling a new one, so only
    the last value in a burst reaches the callback. Must be used from inside a
    running event loop.
    """

    def __init__(self, delay: float, callback: Callable[[T], Awaitable[None]]) -> None:
        self.delay = delay
        self.callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._scheduled: asyncio.Future[None] | None = None
        self._running: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, value: T) -> None:
        loop = asyncio.get_running_loop()
        self.cancel()
        self._scheduled = loop.create_future()
        self._handle = loop.call_later(self.delay, self._fire, value)

    def _fire(self, value: T) -> None:
        self._handle = None
        scheduled = self._scheduled
        self._scheduled = None
        self._running = asyncio.ensure_future(self.callback(value))
        self._tasks.add(self._running)
        self._running.add_done_callback(self._collect)
        if scheduled is not None and not scheduled.done():
            scheduled.set_result(None)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._scheduled is not None and not self._scheduled.done():
            self._scheduled.cancel()
        self._scheduled = None

    async def wait(self) -> None:
        """Wait for the pending call (if any) to fire and its callback to finish."""
        # A superseded call leaves a cancelled future behind; keep following the newest one.
        while self._scheduled is not None:
            await asyncio.wait([self._scheduled])
        if self._running is not None:
            await self._running

    def _collect(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced callback failed: %s", exc, exc_info=exc)
