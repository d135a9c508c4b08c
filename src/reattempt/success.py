"""
Success evaluators.

A Success decides whether a *completed* operation produced an acceptable
value. Failed completions never reach an evaluator: they are always
retry-worthy.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar, Generic, TypeVar

T = TypeVar("T")


class Success(Generic[T]):
    """
    Predicate over an operation's result value.

    Examples:
        >>> is_three = Success(lambda value: value == 3)
        >>> is_three(3)
        True
        >>> (Success.not_none & Success(lambda v: v > 0))(5)
        True
    """

    always: ClassVar["Success[Any]"]
    never: ClassVar["Success[Any]"]
    not_none: ClassVar["Success[Any]"]
    truthy: ClassVar["Success[Any]"]

    __slots__ = ("predicate", "name")

    def __init__(self, predicate: Callable[[T], Any], name: str | None = None) -> None:
        if not callable(predicate):
            raise TypeError(f"Success predicate must be callable, got {type(predicate).__name__}")
        self.predicate = predicate
        self.name = name or getattr(predicate, "__name__", "predicate")

    def evaluate(self, value: T) -> bool:
        """Return True when ``value`` is an acceptable result."""
        return bool(self.predicate(value))

    __call__ = evaluate

    def __and__(self, other: "Success[T]") -> "Success[T]":
        other = resolve_success(other)
        return Success(lambda value: self.evaluate(value) and other.evaluate(value), f"({self.name} & {other.name})")

    def __or__(self, other: "Success[T]") -> "Success[T]":
        other = resolve_success(other)
        return Success(lambda value: self.evaluate(value) or other.evaluate(value), f"({self.name} | {other.name})")

    def __repr__(self) -> str:
        return f"Success({self.name})"


Success.always = Success(lambda _: True, "always")
Success.never = Success(lambda _: False, "never")
Success.not_none = Success(lambda value: value is not None, "not_none")
Success.truthy = Success(bool, "truthy")


def resolve_success(success: "Success[T] | Callable[[T], Any] | None") -> "Success[T]":
    """
    Resolve the evaluator in effect for one call.

    None means every completed value is accepted; a bare callable is wrapped.
    """
    if success is None:
        return Success.always
    if isinstance(success, Success):
        return success
    return Success(success)
