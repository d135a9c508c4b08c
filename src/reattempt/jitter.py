"""
Jitter algorithms for exponential backoff.

Randomised delays keep many clients that failed together from retrying
together. The four algorithms follow the exponential-backoff-with-jitter
family described in:
https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/

Every algorithm is a pure function of (base, attempt, previous) plus its
random source. ``previous`` is the delay computed for the prior retry of the
same sequence; only the decorrelated variant uses it. The caller threads it
through one retry sequence, so an algorithm value is stateless and can be
shared freely.
"""

from __future__ import annotations

import math
import random
import threading
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from reattempt.utils.durations import Duration, require_positive


@runtime_checkable
class RandomSource(Protocol):
    """Source of uniformly distributed floats."""

    def uniform(self, low: float, high: float) -> float:
        """Return a float in [low, high]."""
        ...


class LockedRandom:
    """
    A random.Random guarded by a lock.

    Safe to share between concurrent retry sequences and threads. Seed it to
    get a reproducible delay sequence.
    """

    def __init__(self, rng: random.Random | None = None, seed: int | None = None) -> None:
        if rng is not None and seed is not None:
            raise ValueError("pass either rng or seed, not both")
        self._rng = rng if rng is not None else random.Random(seed)
        self._lock = threading.Lock()

    def uniform(self, low: float, high: float) -> float:
        with self._lock:
            return self._rng.uniform(low, high)


def random_source(rng: random.Random | None = None, seed: int | None = None) -> LockedRandom:
    """Build a thread-safe RandomSource from an existing generator or a seed."""
    return LockedRandom(rng=rng, seed=seed)


DEFAULT_RANDOM = LockedRandom()


def capped_exponential(base: float, attempt: int, cap: float) -> float:
    """
    ``min(cap, base * 2**attempt)`` without ever computing a huge power.

    Unbounded sequences reach attempt numbers whose power overflows a float.
    """
    if base >= cap:
        return cap
    if attempt >= math.log2(cap / base):
        return cap
    return min(cap, base * 2**attempt)


class Jitter(ABC):
    """
    Base class for jitter algorithms.

    Args:
        cap: Upper bound for any computed delay, in seconds
        random: Random source (default: process-wide DEFAULT_RANDOM)
    """

    name = "jitter"

    def __init__(self, cap: Duration, random: RandomSource | None = None) -> None:
        self.cap = require_positive(cap, "cap")
        self.random = random if random is not None else DEFAULT_RANDOM

    @abstractmethod
    def __call__(self, base: float, attempt: int, previous: float) -> float:
        """
        Compute the delay before retry ``attempt``.

        Args:
            base: Base delay of the policy, in seconds
            attempt: 0-based retry index
            previous: Delay used before the prior retry (``base`` for the first)

        Returns:
            Delay in seconds
        """

    def __repr__(self) -> str:
        return f"Jitter.{self.name}(cap={self.cap})"

    @staticmethod
    def none(cap: Duration) -> "Jitter":
        """Plain exponential delays, capped."""
        return NoJitter(cap)

    @staticmethod
    def full(cap: Duration, random: RandomSource | None = None) -> "Jitter":
        """Uniform in [0, exponential delay]."""
        return FullJitter(cap, random)

    @staticmethod
    def equal(cap: Duration, random: RandomSource | None = None) -> "Jitter":
        """Half the exponential delay, plus a uniform share of the other half."""
        return EqualJitter(cap, random)

    @staticmethod
    def decorrelated(cap: Duration, random: RandomSource | None = None) -> "Jitter":
        """Uniform in [base, 3 * previous delay], capped."""
        return DecorrelatedJitter(cap, random)


class NoJitter(Jitter):
    name = "none"

    def __call__(self, base: float, attempt: int, previous: float) -> float:
        return capped_exponential(base, attempt, self.cap)


class FullJitter(Jitter):
    name = "full"

    def __call__(self, base: float, attempt: int, previous: float) -> float:
        return self.random.uniform(0.0, capped_exponential(base, attempt, self.cap))


class EqualJitter(Jitter):
    name = "equal"

    def __call__(self, base: float, attempt: int, previous: float) -> float:
        half = capped_exponential(base, attempt, self.cap) / 2
        return half + self.random.uniform(0.0, half)


class DecorrelatedJitter(Jitter):
    name = "decorrelated"

    def __call__(self, base: float, attempt: int, previous: float) -> float:
        if attempt == 0:
            return min(self.cap, base)
        return min(self.cap, self.random.uniform(base, max(base, previous * 3)))


ALGORITHMS = {
    "none": NoJitter,
    "full": FullJitter,
    "equal": EqualJitter,
    "decorrelated": DecorrelatedJitter,
}
