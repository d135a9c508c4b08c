"""
Shared fixtures for reattempt tests.
"""

import asyncio
import logging
import time
from contextlib import contextmanager

import pytest

from reattempt.testing import RecordingTimer
from reattempt.utils.logging import ROOT_LOGGER


@pytest.fixture
def timer():
    """Timer that records delays without waiting them out."""
    return RecordingTimer()


class HeldHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class HoldingTimer:
    """Timer that never fires on its own; tests release callbacks explicitly."""

    def __init__(self):
        self.pending = []
        self.handles = []

    def schedule(self, delay, callback):
        handle = HeldHandle()
        self.pending.append((delay, callback))
        self.handles.append(handle)
        return handle

    def fire(self):
        _, callback = self.pending.pop(0)
        callback()


@pytest.fixture
def holding_timer():
    return HoldingTimer()


@contextmanager
def _stopwatch():
    """Measure wall-clock time of a block: `with stopwatch() as took: ...; took()`."""
    start = time.monotonic()
    end = None

    def took():
        return (end if end is not None else time.monotonic()) - start

    try:
        yield took
    finally:
        end = time.monotonic()


async def _settle(rounds: int = 5):
    """Let pending callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def stopwatch():
    return _stopwatch


@pytest.fixture
def settle():
    return _settle


@pytest.fixture(autouse=True)
def reset_logger():
    """Undo handlers and level installed on the reattempt logger by a test."""
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
