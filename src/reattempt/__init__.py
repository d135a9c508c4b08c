"""
Reattempt - composable retry policies for asyncio operations.
"""

__version__ = "0.1.0"

import logging as _logging

from reattempt.backoff import BackoffCalculator
from reattempt.core import (
    Backoff,
    Directly,
    FollowedBy,
    JitterBackoff,
    Pause,
    Policy,
    When,
    on_failure,
    on_value,
)
from reattempt.config import build_policy, load_config, load_policies
from reattempt.exceptions import ConfigurationError, PolicyLoadError, ReattemptError
from reattempt.jitter import DEFAULT_RANDOM, Jitter, LockedRandom, RandomSource, random_source
from reattempt.outcome import Outcome, OutcomeKind
from reattempt.success import Success
from reattempt.timer import DEFAULT_TIMER, AsyncioTimer, Timer
from reattempt.utils.logging import get_logger, setup_logging, setup_logging_from_config

# Silent unless the application configures logging
_logging.getLogger("reattempt").addHandler(_logging.NullHandler())

__all__ = [
    # Policies
    "Policy",
    "Directly",
    "Pause",
    "Backoff",
    "JitterBackoff",
    "FollowedBy",
    "When",
    "on_value",
    "on_failure",
    # Building blocks
    "Success",
    "Outcome",
    "OutcomeKind",
    "BackoffCalculator",
    "Jitter",
    "RandomSource",
    "LockedRandom",
    "random_source",
    "DEFAULT_RANDOM",
    "Timer",
    "AsyncioTimer",
    "DEFAULT_TIMER",
    # Configuration
    "load_config",
    "load_policies",
    "build_policy",
    # Exceptions
    "ReattemptError",
    "ConfigurationError",
    "PolicyLoadError",
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
]
