import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger("smartnotes.sync.debounce")


class Debouncer:
    """
    Single-slot timer on the running event loop.

    `start` always cancels and replaces the pending timer, so at most one
    callback is ever scheduled. The callback is a coroutine function; it runs
    as a task once the delay elapses without another `start`.
    """

    def __init__(self, delay: float, callback: Callable[[], Awaitable[None]]):
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Cancel an unfired timer. An already running callback is left alone."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self) -> None:
        self._handle = None
        self._task = asyncio.get_running_loop().create_task(self._callback())
        self._task.add_done_callback(self._done)

    def _done(self, task: asyncio.Task) -> None:
        if task is self._task:
            self._task = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("debounced callback failed: %r", exc)
