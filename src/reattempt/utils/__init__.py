"""
Shared utilities: logging setup and duration handling.
"""

from reattempt.utils.durations import Duration, require_positive, to_seconds
from reattempt.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    "Duration",
    "to_seconds",
    "require_positive",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
]
