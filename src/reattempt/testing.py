"""
Testing utilities for code built on reattempt policies.

Provides a timer that records delays instead of waiting them out, and an
operation that replays scripted results while counting invocations.

Usage:
    from reattempt import Backoff
    from reattempt.testing import CountingOperation, RecordingTimer

    timer = RecordingTimer()
    operation = CountingOperation([ConnectionError("down"), ConnectionError("down"), "ok"])
    result = await Backoff(max_retries=3, delay=1.0, timer=timer).run(operation)

    assert result == "ok"
    assert operation.calls == 3
    assert timer.delays == [1.0, 2.0]
"""

import asyncio
import itertools
from collections.abc import Callable, Iterable
from typing import Any

from reattempt.timer import TimerHandle


class RecordingTimer:
    """Timer that records each requested delay and fires on the next loop iteration."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        self.delays.append(delay)
        return asyncio.get_running_loop().call_soon(callback)

    @property
    def total(self) -> float:
        """Sum of all recorded delays."""
        return sum(self.delays)


class CountingOperation:
    """
    Operation that replays scripted results.

    Each item of ``results`` is returned as the value of one invocation;
    exception instances or classes are raised instead. ``results`` may also be
    a callable receiving the 0-based invocation index.
    """

    def __init__(self, results: Iterable[Any] | Callable[[int], Any]) -> None:
        self._script = results if callable(results) else iter(results).__next__
        self._indexed = callable(results)
        self.calls = 0
        self.invoked_at: list[float] = []

    @classmethod
    def counting(cls, start: int = 0) -> "CountingOperation":
        """Yield start, start + 1, start + 2, ... on successive invocations."""
        return cls(itertools.count(start))

    @classmethod
    def failing(cls, error: BaseException | type[BaseException] = RuntimeError("always failing")) -> "CountingOperation":
        """Raise ``error`` on every invocation."""
        return cls(lambda _: error)

    def __call__(self) -> Any:
        index = self.calls
        self.calls += 1
        self.invoked_at.append(asyncio.get_running_loop().time())
        result = self._script(index) if self._indexed else self._script()
        return self._complete(result)

    async def _complete(self, result: Any) -> Any:
        if isinstance(result, BaseException) or (isinstance(result, type) and issubclass(result, BaseException)):
            raise result
        return result
