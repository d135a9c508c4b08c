"""
Retry driver shared by the counting policies.

Invokes the operation, classifies the outcome, and either stops or waits for
the next delay before invoking it again. Attempts of one sequence never
overlap: attempt N+1 starts only after attempt N's outcome is observed and
its delay has elapsed.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Iterator
from typing import Any, TypeVar

from reattempt.outcome import Outcome
from reattempt.success import Success
from reattempt.timer import Timer, sleep
from reattempt.utils.logging import get_logger

logger = get_logger("reattempt.driver")

T = TypeVar("T")

Operation = Callable[[], Awaitable[T] | T]


def describe(operation: Callable[..., Any]) -> str:
    """Human readable name of an operation for log messages."""
    return (
        getattr(operation, "__qualname__", None)
        or getattr(operation, "__name__", None)
        or getattr(type(operation), "__qualname__", None)
        or repr(operation)
    )


def summarize(outcome: Outcome[Any]) -> str:
    if outcome.is_failure:
        return f"failed: {outcome.error!r}"
    return f"returned unaccepted value {outcome.value!r}"


async def attempt(operation: Operation[T], success: Success[T]) -> Outcome[T]:
    """
    Invoke ``operation`` once and classify the result.

    The operation is called anew on every invocation; its result is never
    cached. A future or task returned by the operation belongs to the caller:
    it is shielded, so cancelling the retry does not cancel it. A coroutine is
    awaited inside the retry task and is cancelled along with it.

    Returns:
        SUCCESS if the value passes ``success``, UNMET if it does not,
        FAILURE if the operation raised.
    """
    try:
        result = operation()
        if asyncio.isfuture(result):
            result = await asyncio.shield(result)
        elif inspect.isawaitable(result):
            result = await result
    except Exception as e:
        return Outcome.failed(e)

    if success.evaluate(result):
        return Outcome.succeeded(result)
    return Outcome.unmet(result)


async def drive(
    operation: Operation[T],
    success: Success[T],
    *,
    max_retries: int | None,
    delays: Iterator[float] | None,
    timer: Timer,
) -> Outcome[T]:
    """
    Run one retry sequence.

    Args:
        operation: Zero-argument factory of the deferred result
        success: Evaluator for completed values
        max_retries: Retries allowed after the first attempt (None = unbounded)
        delays: Delay before each retry, in order (None = retry immediately)
        timer: Timer used to wait out the delays

    Returns:
        The first successful outcome, or the last outcome once retries are exhausted
    """
    name = describe(operation)
    total = "" if max_retries is None else f"/{max_retries + 1}"
    remaining = max_retries
    number = 0

    while True:
        number += 1
        logger.debug(f"Executing {name} (attempt {number}{total})")

        outcome = await attempt(operation, success)

        if outcome.is_success:
            if number > 1:
                logger.info(f"{name} succeeded after {number} attempts")
            return outcome

        if remaining is not None and remaining <= 0:
            logger.warning(f"{name} gave up after {number} attempts, last attempt {summarize(outcome)}")
            return outcome

        if remaining is not None:
            remaining -= 1

        delay = next(delays) if delays is not None else 0.0
        if delay > 0:
            logger.warning(f"{name} attempt {number} {summarize(outcome)}. Retrying in {delay:.2f}s...")
            await sleep(timer, delay)
        else:
            logger.debug(f"{name} attempt {number} {summarize(outcome)}. Retrying immediately")
            # Let a pending cancellation land before the next invocation
            await asyncio.sleep(0)
