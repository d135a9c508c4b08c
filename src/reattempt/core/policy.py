"""
Retry policies.

A policy is an immutable, reusable rule describing whether, when and how
often an operation is retried. Applying it to an operation starts an
independent retry sequence; all per-sequence state (attempt counter, previous
jitter delay) lives in that sequence only, so one policy value can be shared
by any number of concurrent callers.

Examples:
    >>> # Retry up to 3 times, immediately
    >>> value = await Directly(3).run(fetch)

    >>> # Wait 0.5s, 1s, 2s, 4s between attempts; accept only non-empty pages
    >>> policy = Backoff(max_retries=4, delay=0.5)
    >>> page = await policy.run(fetch_page, success=lambda page: page.items)

    >>> # Randomised delays, retrying until an outer deadline
    >>> policy = JitterBackoff.forever(0.1, jitter=Jitter.decorrelated(cap=10.0))
    >>> value = await asyncio.wait_for(policy.run(fetch), timeout=60)
"""

from __future__ import annotations

import asyncio
import itertools
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, TypeVar

from reattempt.backoff import BackoffCalculator
from reattempt.core.driver import Operation, drive
from reattempt.exceptions import ConfigurationError
from reattempt.jitter import Jitter
from reattempt.outcome import Outcome
from reattempt.success import Success, resolve_success
from reattempt.timer import DEFAULT_TIMER, Timer
from reattempt.utils.durations import Duration, require_positive

T = TypeVar("T")

SuccessLike = Success[Any] | Callable[[Any], Any] | None

DEFAULT_MAX_RETRIES = 5


class Policy(ABC):
    """Base class for all retry policies."""

    def apply(self, operation: Operation[T], success: SuccessLike = None) -> "asyncio.Task[T]":
        """
        Start a retry sequence and return its deferred result.

        Must be called with a running event loop. Cancelling the returned task
        stops any further attempt from being scheduled.

        Args:
            operation: Zero-argument callable returning an awaitable (or a plain value)
            success: Evaluator for completed values (default: accept every value)

        Returns:
            Task resolving to the final value, or raising the last failure
        """
        return asyncio.get_running_loop().create_task(self.run(operation, success))

    def __call__(self, operation: Operation[T], success: SuccessLike = None) -> "asyncio.Task[T]":
        return self.apply(operation, success)

    async def run(self, operation: Operation[T], success: SuccessLike = None) -> T:
        """
        Run a retry sequence to completion.

        Returns:
            The accepted value, or the last value if none was accepted

        Raises:
            Exception: The last failure raised by the operation
        """
        outcome = await self.outcome(operation, success)
        return outcome.unwrap()

    def run_sync(self, operation: Operation[T], success: SuccessLike = None) -> T:
        """Blocking variant of run() for code without an event loop."""
        return asyncio.run(self.run(operation, success))

    async def outcome(self, operation: Operation[T], success: SuccessLike = None) -> Outcome[T]:
        """Run a retry sequence and return its terminal Outcome instead of raising."""
        return await self._outcome(operation, resolve_success(success))

    async def _outcome(self, operation: Operation[T], success: Success[T]) -> Outcome[T]:
        """
        Drive the retry sequence with an already resolved evaluator.

        Hand-offs between policies and FollowedBy fallbacks run in this loop
        rather than nesting, so a policy that hands the sequence back to itself
        retries without bound.
        """
        policy: Policy | None = self
        fallbacks: list[Policy] = []
        while True:
            if isinstance(policy, FollowedBy):
                fallbacks.append(policy.second)
                policy = policy.first
                continue
            outcome, policy = await policy._step(operation, success)
            if policy is not None:
                continue
            if outcome.is_success or not fallbacks:
                return outcome
            policy = fallbacks.pop()

    @abstractmethod
    async def _step(self, operation: Operation[T], success: Success[T]) -> tuple[Outcome[T], "Policy | None"]:
        """
        Run this policy's own share of the sequence.

        Returns:
            The latest outcome, and the policy that takes over next (None to stop)
        """

    def delays(self) -> Iterator[float]:
        """Preview of the delays this policy waits between attempts."""
        return iter(())

    def followed_by(self, other: "Policy") -> "Policy":
        """Policy that falls back to ``other`` when this one ends without success."""
        if not isinstance(other, Policy):
            raise TypeError(f"followed_by expects a Policy, got {type(other).__name__}")
        return FollowedBy(self, other)


@dataclass(frozen=True)
class CountingPolicy(Policy):
    """
    Policy bounded by a number of retries.

    ``max_retries`` counts retries, not attempts: the operation is invoked at
    most ``max_retries + 1`` times. None means retry forever.
    """

    max_retries: int | None = DEFAULT_MAX_RETRIES

    def __post_init__(self):
        """Validate configuration."""
        if self.max_retries is None:
            return
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise ConfigurationError(f"max_retries must be an int, got {type(self.max_retries).__name__}")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be >= 0")

    def calculator(self) -> BackoffCalculator | None:
        """Delay schedule between attempts; None retries immediately."""
        return None

    def _timer(self) -> Timer:
        return getattr(self, "timer", None) or DEFAULT_TIMER

    def delays(self) -> Iterator[float]:
        calculator = self.calculator()
        sequence = calculator.delays() if calculator is not None else itertools.repeat(0.0)
        if self.max_retries is None:
            return sequence
        return itertools.islice(sequence, self.max_retries)

    async def _step(self, operation: Operation[T], success: Success[T]) -> tuple[Outcome[T], None]:
        calculator = self.calculator()
        outcome = await drive(
            operation,
            success,
            max_retries=self.max_retries,
            delays=calculator.delays() if calculator is not None else None,
            timer=self._timer(),
        )
        return outcome, None


@dataclass(frozen=True)
class Directly(CountingPolicy):
    """Retry immediately, without any delay."""

    @classmethod
    def forever(cls) -> "Directly":
        return cls(max_retries=None)


@dataclass(frozen=True)
class Pause(CountingPolicy):
    """Retry after a fixed delay."""

    # Delay between attempts (seconds or timedelta); required
    delay: Duration | None = None

    timer: Timer | None = field(default=None, kw_only=True, compare=False, repr=False)

    def __post_init__(self):
        super().__post_init__()
        if self.delay is None:
            raise ConfigurationError(f"{type(self).__name__} requires a delay")
        object.__setattr__(self, "delay", require_positive(self.delay, "delay"))

    @classmethod
    def forever(cls, delay: Duration, *, timer: Timer | None = None) -> "Pause":
        return cls(None, delay, timer=timer)

    def calculator(self) -> BackoffCalculator:
        return BackoffCalculator(base=self.delay)


@dataclass(frozen=True)
class Backoff(CountingPolicy):
    """Retry after exponentially growing delays: delay * multiplier^retry."""

    # Delay before the first retry (seconds or timedelta); required
    delay: Duration | None = None

    # Exponential growth factor
    multiplier: float = 2.0

    # Optional cap on any single delay
    max_delay: Duration | None = None

    timer: Timer | None = field(default=None, kw_only=True, compare=False, repr=False)

    def __post_init__(self):
        super().__post_init__()
        if self.delay is None:
            raise ConfigurationError(f"{type(self).__name__} requires a delay")
        object.__setattr__(self, "delay", require_positive(self.delay, "delay"))
        if self.max_delay is not None:
            object.__setattr__(self, "max_delay", require_positive(self.max_delay, "max_delay"))
        # Fail fast on multiplier/max_delay problems
        self.calculator()

    @classmethod
    def forever(
        cls,
        delay: Duration,
        multiplier: float = 2.0,
        *,
        max_delay: Duration | None = None,
        timer: Timer | None = None,
    ) -> "Backoff":
        return cls(None, delay, multiplier, max_delay, timer=timer)

    def calculator(self) -> BackoffCalculator:
        return BackoffCalculator(base=self.delay, multiplier=self.multiplier, max_delay=self.max_delay)


@dataclass(frozen=True)
class JitterBackoff(CountingPolicy):
    """Retry after exponential delays randomised by a jitter algorithm."""

    # Base delay handed to the jitter algorithm (seconds or timedelta); required
    delay: Duration | None = None

    jitter: Jitter | None = field(default=None, kw_only=True)

    timer: Timer | None = field(default=None, kw_only=True, compare=False, repr=False)

    def __post_init__(self):
        super().__post_init__()
        if self.delay is None:
            raise ConfigurationError(f"{type(self).__name__} requires a delay")
        if not isinstance(self.jitter, Jitter):
            raise ConfigurationError(f"{type(self).__name__} requires a jitter algorithm, e.g. Jitter.full(cap)")
        object.__setattr__(self, "delay", require_positive(self.delay, "delay"))
        self.calculator()

    @classmethod
    def forever(cls, delay: Duration, *, jitter: Jitter, timer: Timer | None = None) -> "JitterBackoff":
        return cls(None, delay, jitter=jitter, timer=timer)

    def calculator(self) -> BackoffCalculator:
        return BackoffCalculator(base=self.delay, jitter=self.jitter)


@dataclass(frozen=True)
class FollowedBy(Policy):
    """Run ``first``; if it ends without success, run ``second`` from scratch."""

    first: Policy
    second: Policy

    async def _step(self, operation: Operation[T], success: Success[T]) -> tuple[Outcome[T], None]:
        # _outcome unfolds first and second itself
        return await self._outcome(operation, success), None

    def delays(self) -> Iterator[float]:
        return itertools.chain(self.first.delays(), self.second.delays())
