"""
Tests for logging setup and retry log messages.
"""

import logging

import pytest
from rich.logging import RichHandler

from reattempt import Backoff, Directly
from reattempt.config import Config
from reattempt.testing import CountingOperation
from reattempt.utils.logging import (
    ROOT_LOGGER,
    FileFormatter,
    _parse_level,
    get_logger,
    setup_logging,
    setup_logging_from_config,
)


class TestParseLevel:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("debug", logging.DEBUG),
            ("WARNING", logging.WARNING),
            (logging.ERROR, logging.ERROR),
            ("verbose", logging.INFO),
            (None, logging.INFO),
        ],
    )
    def test_parse(self, value, expected):
        assert _parse_level(value) == expected


class TestSetupLogging:
    """Tests for handler installation."""

    def test_rich_console_by_default(self):
        logger = setup_logging("DEBUG")

        assert logger.name == ROOT_LOGGER
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RichHandler) for h in logger.handlers)

    def test_plain_console(self):
        logger = setup_logging(use_rich=False, format_string="%(message)s")

        stream_handlers = [h for h in logger.handlers if type(h) is logging.StreamHandler]
        assert len(stream_handlers) == 1
        assert stream_handlers[0].formatter._fmt == "%(message)s"

    def test_repeated_setup_replaces_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1

    def test_null_handler_is_kept(self):
        logger = setup_logging()
        assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "reattempt.log"
        logger = setup_logging("INFO", log_file=log_file, use_rich=False)

        get_logger("reattempt.test").info("written to file")
        for handler in logger.handlers:
            handler.flush()

        file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert isinstance(file_handlers[0].formatter, FileFormatter)
        assert "reattempt.test: written to file" in log_file.read_text()

    def test_from_config(self, tmp_path):
        config = Config({"logging": {"level": "warning", "file": "out.log", "console_type": "plain"}})

        logger = setup_logging_from_config(config, base_dir=tmp_path)

        assert logger.level == logging.WARNING
        assert not any(isinstance(h, RichHandler) for h in logger.handlers)
        file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert file_handlers[0].baseFilename == str(tmp_path / "out.log")

    def test_from_config_without_section(self):
        logger = setup_logging_from_config({})
        assert logger.level == logging.INFO


class TestRetryMessages:
    """Tests for messages logged by the retry driver."""

    @pytest.mark.asyncio
    async def test_delayed_retry_is_a_warning(self, timer, caplog):
        operation = CountingOperation([ConnectionError("down"), "ok"])

        with caplog.at_level(logging.DEBUG, logger=ROOT_LOGGER):
            await Backoff(max_retries=2, delay=1.5, timer=timer).run(operation)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "Retrying in 1.50s" in warnings[0].getMessage()
        assert warnings[0].name == "reattempt.driver"
        assert any("succeeded after 2 attempts" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_immediate_retry_is_debug(self, caplog):
        operation = CountingOperation([ConnectionError("down"), "ok"])

        with caplog.at_level(logging.DEBUG, logger=ROOT_LOGGER):
            await Directly(1).run(operation)

        assert not any(r.levelno >= logging.WARNING for r in caplog.records)
        assert any("Retrying immediately" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_giving_up_is_a_warning(self, caplog):
        operation = CountingOperation.failing(ConnectionError("down"))

        with caplog.at_level(logging.INFO, logger=ROOT_LOGGER):
            with pytest.raises(ConnectionError):
                await Directly(2).run(operation)

        assert any("gave up after 3 attempts" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_callable_instances_are_named_by_class(self, caplog):
        operation = CountingOperation.failing(ConnectionError("down"))

        with caplog.at_level(logging.INFO, logger=ROOT_LOGGER):
            with pytest.raises(ConnectionError):
                await Directly(0).run(operation)

        messages = [r.getMessage() for r in caplog.records]
        assert any(message.startswith("CountingOperation gave up") for message in messages)
        assert not any("object at 0x" in message for message in messages)
