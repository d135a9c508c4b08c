"""
Tests for jitter algorithms and the backoff calculator.
"""

import itertools
import random

import pytest

from reattempt import BackoffCalculator, ConfigurationError, Jitter, LockedRandom, RandomSource, random_source
from reattempt.jitter import DEFAULT_RANDOM, capped_exponential


def seeded(seed=42):
    return random_source(random.Random(seed))


class TestRandomSource:
    """Tests for the thread-safe random source."""

    def test_implements_protocol(self):
        assert isinstance(LockedRandom(), RandomSource)
        assert isinstance(DEFAULT_RANDOM, RandomSource)

    def test_seed_is_reproducible(self):
        first = LockedRandom(seed=7)
        second = LockedRandom(seed=7)
        assert [first.uniform(0, 1) for _ in range(5)] == [second.uniform(0, 1) for _ in range(5)]

    def test_wraps_given_generator(self):
        expected = random.Random(3).uniform(1.0, 2.0)
        assert random_source(random.Random(3)).uniform(1.0, 2.0) == expected

    def test_rejects_rng_and_seed(self):
        with pytest.raises(ValueError):
            LockedRandom(rng=random.Random(), seed=1)


class TestCappedExponential:
    def test_doubles_per_attempt(self):
        assert [capped_exponential(0.5, attempt, 100.0) for attempt in range(4)] == [0.5, 1.0, 2.0, 4.0]

    def test_caps(self):
        assert capped_exponential(1.0, 10, 30.0) == 30.0

    def test_huge_attempts_do_not_overflow(self):
        assert capped_exponential(0.1, 100_000, 5.0) == 5.0


class TestJitter:
    """Bounds of each jitter algorithm under a fixed seed."""

    BASE = 0.01
    CAP = 1.0

    def test_none_is_plain_exponential(self):
        jitter = Jitter.none(self.CAP)
        assert [jitter(self.BASE, attempt, self.BASE) for attempt in range(4)] == pytest.approx(
            [0.01, 0.02, 0.04, 0.08]
        )
        assert jitter(self.BASE, 20, self.BASE) == self.CAP

    def test_full_bounds(self):
        jitter = Jitter.full(self.CAP, random=seeded())
        for attempt in range(12):
            for _ in range(20):
                delay = jitter(self.BASE, attempt, self.BASE)
                assert 0.0 <= delay <= min(self.CAP, self.BASE * 2**attempt) + 1e-12

    def test_equal_bounds(self):
        jitter = Jitter.equal(self.CAP, random=seeded())
        for attempt in range(12):
            ceiling = min(self.CAP, self.BASE * 2**attempt)
            for _ in range(20):
                delay = jitter(self.BASE, attempt, self.BASE)
                assert ceiling / 2 <= delay <= ceiling + 1e-12

    def test_decorrelated_bounds(self):
        calculator = BackoffCalculator(self.BASE, jitter=Jitter.decorrelated(self.CAP, random=seeded()))
        delays = list(itertools.islice(calculator.delays(), 50))

        assert delays[0] == self.BASE
        for previous, current in zip(delays, delays[1:]):
            assert self.BASE <= current <= min(self.CAP, 3 * previous) + 1e-12

    def test_decorrelated_reaches_cap(self):
        calculator = BackoffCalculator(self.BASE, jitter=Jitter.decorrelated(0.05, random=seeded()))
        delays = list(itertools.islice(calculator.delays(), 200))
        assert max(delays) <= 0.05

    @pytest.mark.parametrize("factory", [Jitter.full, Jitter.equal, Jitter.decorrelated])
    def test_same_seed_same_delays(self, factory):
        first = BackoffCalculator(self.BASE, jitter=factory(self.CAP, random=seeded(99)))
        second = BackoffCalculator(self.BASE, jitter=factory(self.CAP, random=seeded(99)))
        assert list(itertools.islice(first.delays(), 10)) == list(itertools.islice(second.delays(), 10))

    @pytest.mark.parametrize("cap", [0, -1.0])
    def test_rejects_non_positive_cap(self, cap):
        with pytest.raises(ConfigurationError):
            Jitter.full(cap)

    def test_defaults_to_shared_random(self):
        assert Jitter.equal(1.0).random is DEFAULT_RANDOM

    def test_repr(self):
        assert repr(Jitter.decorrelated(2.0)) == "Jitter.decorrelated(cap=2.0)"


class TestBackoffCalculator:
    """Tests for delay schedules."""

    def test_constant(self):
        calculator = BackoffCalculator(0.5)
        assert list(itertools.islice(calculator.delays(), 3)) == [0.5, 0.5, 0.5]

    def test_multiplicative(self):
        calculator = BackoffCalculator(0.5, multiplier=2.0)
        assert [calculator.delay(attempt) for attempt in range(3)] == [0.5, 1.0, 2.0]

    def test_max_delay(self):
        calculator = BackoffCalculator(1.0, multiplier=10.0, max_delay=50.0)
        assert list(itertools.islice(calculator.delays(), 4)) == [1.0, 10.0, 50.0, 50.0]

    def test_overflow_is_capped(self):
        assert BackoffCalculator(1.0, multiplier=2.0, max_delay=60.0).delay(5000) == 60.0

    def test_sequences_are_independent(self):
        calculator = BackoffCalculator(0.1, jitter=Jitter.decorrelated(10.0, random=seeded()))
        first = calculator.delays()
        next(first)
        next(first)
        second = calculator.delays()
        assert next(second) == 0.1

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"base": 0}, "base delay must be > 0"),
            ({"base": 1.0, "multiplier": 0.9}, "multiplier must be >= 1.0"),
            ({"base": 1.0, "max_delay": 0.5}, "max_delay must be >= base delay"),
            ({"base": 2.0, "jitter": Jitter.none(1.0)}, "jitter cap must be >= base delay"),
        ],
    )
    def test_validation(self, kwargs, message):
        with pytest.raises(ConfigurationError, match=message):
            BackoffCalculator(**kwargs)
