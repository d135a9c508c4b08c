"""
Retry engine: policies, the shared retry driver and conditional dispatch.
"""

from reattempt.core.driver import attempt, drive
from reattempt.core.policy import (
    DEFAULT_MAX_RETRIES,
    Backoff,
    CountingPolicy,
    Directly,
    FollowedBy,
    JitterBackoff,
    Pause,
    Policy,
)
from reattempt.core.when import Case, FailurePattern, Pattern, ValuePattern, When, on_failure, on_value

__all__ = [
    # Policies
    "Policy",
    "CountingPolicy",
    "Directly",
    "Pause",
    "Backoff",
    "JitterBackoff",
    "FollowedBy",
    "DEFAULT_MAX_RETRIES",
    # Conditional dispatch
    "When",
    "Case",
    "Pattern",
    "ValuePattern",
    "FailurePattern",
    "on_value",
    "on_failure",
    # Driver
    "attempt",
    "drive",
]
