"""
Timer collaborator used to wait between attempts.

A Timer fires a callback once after (at least) the given delay. The retry
driver never blocks a thread while waiting: it registers a callback and
suspends until the callback resolves a future on the event loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class Timer(Protocol):
    """Schedules a callback after a delay in seconds.

    The callback fires exactly once unless the handle is cancelled first.
    The delay is a lower bound, not an exact bound.
    """

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioTimer:
    """Timer backed by the running event loop's call_later."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)

    def __repr__(self) -> str:
        return "AsyncioTimer()"


DEFAULT_TIMER = AsyncioTimer()


async def sleep(timer: Timer, delay: float) -> None:
    """
    Suspend the current task until ``timer`` fires after ``delay`` seconds.

    The timer callback may fire on any thread. If the waiting task is
    cancelled, the pending timer is cancelled too.
    """
    loop = asyncio.get_running_loop()
    waiter: asyncio.Future[None] = loop.create_future()

    def release() -> None:
        if not waiter.done():
            waiter.set_result(None)

    def fire() -> None:
        loop.call_soon_threadsafe(release)

    handle = timer.schedule(delay, fire)
    try:
        await waiter
    finally:
        # no-op once fired
        handle.cancel()
