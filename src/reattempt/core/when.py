"""
Conditional retry dispatch.

When makes one attempt and, if it did not succeed, matches the outcome
against an ordered table of cases. The first matching case picks the policy
that takes over the retry sequence; an unmatched outcome is returned as is,
without retrying.

Examples:
    >>> class RetryAfter(Exception):
    ...     def __init__(self, seconds):
    ...         self.seconds = seconds

    >>> policy = When({
    ...     # lift a failure into a policy built from its payload
    ...     RetryAfter: lambda exc: Pause(max_retries=1, delay=exc.seconds),
    ...     ConnectionError: Backoff(max_retries=3, delay=0.2),
    ...     # unaccepted values can be matched too
    ...     "busy": Pause(delay=1.0),
    ... })
    >>> result = await policy.run(call_service, success=lambda v: v == "ok")
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from reattempt.core.driver import Operation, attempt, describe, summarize
from reattempt.core.policy import Policy
from reattempt.exceptions import ConfigurationError
from reattempt.outcome import Outcome, OutcomeKind
from reattempt.success import Success
from reattempt.utils.logging import get_logger

logger = get_logger("reattempt.when")

T = TypeVar("T")

Handler = Policy | Callable[[Any], Policy | None]


class Pattern(ABC):
    """Matches a non-successful attempt outcome."""

    @abstractmethod
    def matches(self, outcome: Outcome[Any]) -> bool: ...


@dataclass(frozen=True)
class ValuePattern(Pattern):
    """
    Matches values rejected by the Success evaluator.

    ``match`` is a class (isinstance test), a predicate, or a literal compared
    with ``==``.
    """

    match: Any

    def matches(self, outcome: Outcome[Any]) -> bool:
        if outcome.kind is not OutcomeKind.UNMET:
            return False
        if isinstance(self.match, type):
            return isinstance(outcome.value, self.match)
        if callable(self.match):
            return bool(self.match(outcome.value))
        return outcome.value == self.match


@dataclass(frozen=True)
class FailurePattern(Pattern):
    """Matches failures of the given exception type(s), optionally filtered by ``where``."""

    exc_type: type[BaseException] | tuple[type[BaseException], ...] = Exception
    where: Callable[[Any], Any] | None = None

    def matches(self, outcome: Outcome[Any]) -> bool:
        if outcome.kind is not OutcomeKind.FAILURE:
            return False
        if not isinstance(outcome.error, self.exc_type):
            return False
        return self.where is None or bool(self.where(outcome.error))


@dataclass(frozen=True)
class AnyOutcome(Pattern):
    """Matches every unsuccessful outcome."""

    def matches(self, outcome: Outcome[Any]) -> bool:
        return not outcome.is_success


def on_value(match: Any) -> Pattern:
    return ValuePattern(match)


def on_failure(
    exc_type: type[BaseException] | tuple[type[BaseException], ...] = Exception,
    where: Callable[[Any], Any] | None = None,
) -> Pattern:
    return FailurePattern(exc_type, where)


def as_pattern(key: Any) -> Pattern:
    """
    Turn a case key into a Pattern.

    Exception classes match failures; every other key matches rejected values.
    """
    if isinstance(key, Pattern):
        return key
    if isinstance(key, type) and issubclass(key, BaseException):
        return FailurePattern(key)
    return ValuePattern(key)


@dataclass(frozen=True)
class Case:
    """One row of a When table."""

    pattern: Pattern
    handler: Handler

    def policy_for(self, payload: Any) -> Policy | None:
        """Resolve the follow-up policy for a matched value or exception."""
        if isinstance(self.handler, Policy):
            return self.handler
        policy = self.handler(payload)
        if policy is not None and not isinstance(policy, Policy):
            raise TypeError(f"When handler must return a Policy or None, got {type(policy).__name__}")
        return policy


def _as_case(key: Any, handler: Any) -> Case:
    if not isinstance(handler, Policy) and not callable(handler):
        raise ConfigurationError(f"When case for {key!r} must map to a Policy or a callable, got {handler!r}")
    return Case(as_pattern(key), handler)


def _build_cases(cases: Any) -> tuple[Case, ...]:
    if isinstance(cases, Mapping):
        return tuple(_as_case(key, handler) for key, handler in cases.items())
    if isinstance(cases, Policy):
        raise ConfigurationError("When expects cases, not a Policy; wrap it as {pattern: policy}")
    if callable(cases):
        return (Case(AnyOutcome(), cases),)
    if isinstance(cases, Iterable):
        built = []
        for case in cases:
            if isinstance(case, Case):
                built.append(case)
                continue
            try:
                key, handler = case
            except (TypeError, ValueError):
                raise ConfigurationError(f"When cases must be (pattern, handler) pairs, got {case!r}") from None
            built.append(_as_case(key, handler))
        return tuple(built)
    raise ConfigurationError(f"When expects a mapping, pairs or a callable, got {type(cases).__name__}")


@dataclass(frozen=True)
class When(Policy):
    """
    Retry only outcomes recognised by a case table.

    Args:
        cases: Ordered mapping of pattern -> handler, an iterable of
            (pattern, handler) pairs, or a single callable receiving the
            rejected value or raised exception. A handler is a Policy or a
            callable returning one (None declines the retry).

    A matched policy receives the same operation and owns the rest of the
    sequence: its first attempt happens immediately and its own budget and
    delays apply. Nested When policies only see their own attempts.
    """

    cases: Any = field(default=())

    def __post_init__(self):
        object.__setattr__(self, "cases", _build_cases(self.cases))

    async def _step(self, operation: Operation[T], success: Success[T]) -> tuple[Outcome[T], Policy | None]:
        name = describe(operation)
        outcome = await attempt(operation, success)
        if outcome.is_success:
            return outcome, None

        for case in self.cases:
            if not case.pattern.matches(outcome):
                continue
            policy = case.policy_for(outcome.payload)
            if policy is None:
                logger.debug(f"{name} {summarize(outcome)}; matching case declined to retry")
                return outcome, None
            logger.debug(f"{name} {summarize(outcome)}; continuing with {type(policy).__name__}")
            return outcome, policy

        logger.debug(f"{name} {summarize(outcome)}; no case matched, not retrying")
        return outcome, None
