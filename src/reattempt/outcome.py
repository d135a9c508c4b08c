"""
Terminal and per-attempt outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class OutcomeKind(StrEnum):
    """How an attempt (or a whole retry sequence) ended."""

    SUCCESS = "success"  # completed and accepted by the Success evaluator
    FAILURE = "failure"  # the operation raised
    UNMET = "unmet"  # completed, but the value was rejected


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """
    Tagged result of an attempt.

    Exactly one of ``value`` / ``error`` is meaningful, selected by ``kind``.
    """

    kind: OutcomeKind
    value: T | None = None
    error: Exception | None = None

    @classmethod
    def succeeded(cls, value: T) -> "Outcome[T]":
        return cls(OutcomeKind.SUCCESS, value=value)

    @classmethod
    def failed(cls, error: Exception) -> "Outcome[T]":
        return cls(OutcomeKind.FAILURE, error=error)

    @classmethod
    def unmet(cls, value: T) -> "Outcome[T]":
        return cls(OutcomeKind.UNMET, value=value)

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.kind is OutcomeKind.FAILURE

    @property
    def payload(self) -> Any:
        """The raised exception for failures, the value otherwise."""
        return self.error if self.kind is OutcomeKind.FAILURE else self.value

    def unwrap(self) -> T:
        """Return the value, re-raising the failure if there was one."""
        if self.kind is OutcomeKind.FAILURE:
            raise self.error  # type: ignore[misc]
        return self.value  # type: ignore[return-value]
