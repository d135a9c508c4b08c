"""
Delay calculation between retry attempts.

A BackoffCalculator combines a base delay, a growth factor and an optional
jitter algorithm:

- multiplier == 1.0, no jitter: constant delay (Pause)
- multiplier > 1.0, no jitter:  base * multiplier^attempt (Backoff)
- jitter given:                 delegated to the jitter algorithm (JitterBackoff)
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

from reattempt.exceptions import ConfigurationError
from reattempt.jitter import Jitter


@dataclass(frozen=True)
class BackoffCalculator:
    """
    Stateless delay schedule.

    Examples:
        >>> calc = BackoffCalculator(base=0.5, multiplier=2.0)
        >>> [calc.delay(attempt) for attempt in range(3)]
        [0.5, 1.0, 2.0]
    """

    # Delay before the first retry (seconds)
    base: float

    # Growth factor applied per retry; 1.0 keeps the delay constant
    multiplier: float = 1.0

    # Randomised schedule; overrides multiplier when set
    jitter: Jitter | None = None

    # Hard upper bound applied after growth
    max_delay: float | None = None

    def __post_init__(self):
        """Validate configuration."""
        if self.base <= 0:
            raise ConfigurationError("base delay must be > 0")
        if self.multiplier < 1.0:
            raise ConfigurationError("multiplier must be >= 1.0")
        if self.max_delay is not None and self.max_delay < self.base:
            raise ConfigurationError("max_delay must be >= base delay")
        if self.jitter is not None and self.jitter.cap < self.base:
            raise ConfigurationError("jitter cap must be >= base delay")

    def delay(self, attempt: int, previous: float | None = None) -> float:
        """
        Calculate the delay before retry ``attempt``.

        Args:
            attempt: 0-based retry index
            previous: Delay returned for the prior retry of the same sequence

        Returns:
            Delay in seconds
        """
        if self.jitter is not None:
            return self.jitter(self.base, attempt, self.base if previous is None else previous)

        try:
            delay = self.base * (self.multiplier**attempt)
        except OverflowError:
            delay = math.inf

        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def delays(self) -> Iterator[float]:
        """
        Yield the delay for every retry of one sequence, in order.

        Each call starts a new sequence; the previous delay is threaded through
        the generator and never stored on the calculator.
        """
        previous = self.base
        attempt = 0
        while True:
            current = self.delay(attempt, previous)
            yield current
            previous = current
            attempt += 1
