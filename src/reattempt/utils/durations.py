"""
Duration normalisation.
"""

from __future__ import annotations

import math
from datetime import timedelta

from reattempt.exceptions import ConfigurationError

Duration = float | int | timedelta


def to_seconds(value: Duration, name: str = "delay") -> float:
    """
    Normalise a duration to seconds.

    Args:
        value: Seconds as int/float, or a timedelta
        name: Parameter name used in error messages

    Returns:
        Duration in seconds as float

    Raises:
        ConfigurationError: If the value is not a finite, non-negative duration
    """
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    else:
        raise ConfigurationError(f"{name} must be a number of seconds or a timedelta, got {type(value).__name__}")

    if math.isnan(seconds) or math.isinf(seconds):
        raise ConfigurationError(f"{name} must be finite, got {seconds}")
    if seconds < 0:
        raise ConfigurationError(f"{name} must be >= 0, got {seconds}")
    return seconds


def require_positive(value: Duration, name: str = "delay") -> float:
    """Like to_seconds(), but zero is rejected too."""
    seconds = to_seconds(value, name)
    if seconds <= 0:
        raise ConfigurationError(f"{name} must be > 0, got {seconds}")
    return seconds
