"""
Unit tests for the logging configuration.
"""
import logging
import re

import pytest

from infrakit_sakuracloud.common.logging_config import (
    MicrosecondFormatter,
    configure_logging,
    log_level_from_verbosity,
)


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)


def test_microsecond_formatter():
    """Test that MicrosecondFormatter formats timestamps with millisecond precision."""
    formatter = MicrosecondFormatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S.%f'
    )
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="Test message",
        args=(),
        exc_info=None
    )

    formatted = formatter.format(record)

    timestamp_pattern = r'^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3} - test - INFO'
    assert re.search(timestamp_pattern, formatted), f"Timestamp format incorrect: {formatted}"


def test_microsecond_formatter_default_datefmt():
    formatter = MicrosecondFormatter(fmt='%(asctime)s %(message)s')
    record = logging.LogRecord("test", logging.INFO, "", 0, "msg", (), None)
    assert re.match(r'\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3} msg$', formatter.format(record))


@pytest.mark.parametrize(
    "verbosity,level",
    [
        (-1, logging.CRITICAL),
        (0, logging.CRITICAL),
        (1, logging.CRITICAL),
        (2, logging.ERROR),
        (3, logging.WARNING),
        (4, logging.INFO),
        (5, logging.DEBUG),
        (9, logging.DEBUG),
    ],
)
def test_log_level_from_verbosity(verbosity, level):
    assert log_level_from_verbosity(verbosity) == level


def test_configure_logging(restore_root_logger):
    """Test that configure_logging installs exactly one handler on the root logger."""
    configure_logging(logging.DEBUG)
    root_logger = configure_logging(logging.WARNING)

    assert root_logger is logging.getLogger()
    assert root_logger.level == logging.WARNING
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, MicrosecondFormatter)
