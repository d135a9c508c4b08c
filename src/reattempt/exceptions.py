"""
Reattempt exception hierarchy.

All framework exceptions inherit from ReattemptError, so a single except
clause catches anything raised by reattempt itself. Failures raised by the
operations being retried are never wrapped: a policy resolves with the last
failure exactly as the operation raised it.

Hierarchy::

    ReattemptError
    └── ConfigurationError        - invalid policy, jitter or config values
        └── PolicyLoadError       - policy file cannot be read or parsed
"""

from __future__ import annotations


class ReattemptError(Exception):
    """Base exception for all reattempt errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(ReattemptError, ValueError):
    """Raised when a policy or jitter algorithm is constructed with invalid values.

    Also a ``ValueError`` so callers validating plain arguments can catch it
    without importing reattempt's hierarchy.
    """


class PolicyLoadError(ConfigurationError):
    """Raised when a policy file cannot be read or parsed."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message, details={"path": path})
        self.path = path
