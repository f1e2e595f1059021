# ABOUTME: Trailing-edge asyncio debouncer: the last trigger in a quiet window dispatches, earlier ones are dropped.
# ABOUTME: Cancelling affects only the pending timer; work already dispatched always runs to completion.

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class Debouncer:
    def __init__(self, delay_s: float):
        self.delay_s = delay_s
        self._timer: asyncio.TimerHandle | None = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def trigger(self, work: Callable[[], Awaitable[None]]) -> None:
        """(Re)start the quiet window; work runs once it elapses with no further trigger."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay_s, self._fire, work)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, work: Callable[[], Awaitable[None]]) -> None:
        self._timer = None
        task = asyncio.ensure_future(work())
        self._in_flight.add(task)
        task.add_done_callback(self._done)

    def _done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("debounced work failed", exc_info=task.exception())

    async def settle(self) -> None:
        """Wait until no timer is pending and every dispatched task has finished."""
        loop = asyncio.get_running_loop()
        while self._timer is not None or self._in_flight:
            if self._in_flight:
                await asyncio.gather(*list(self._in_flight), return_exceptions=True)
            else:
                await asyncio.sleep(max(0.0, self._timer.when() - loop.time()))
                # let the timer callback run before checking again
                await asyncio.sleep(0)
