"""
Logging configuration for the plugin process.
"""
import datetime
import logging

# Plugin verbosity scale (0 is least verbose) to logging levels
_VERBOSITY_LEVELS = {
    0: logging.CRITICAL,
    1: logging.CRITICAL,
    2: logging.ERROR,
    3: logging.WARNING,
    4: logging.INFO,
    5: logging.DEBUG,
}


class MicrosecondFormatter(logging.Formatter):
    """
    A formatter that renders timestamps with millisecond precision.
    The standard logging.Formatter doesn't support %f in datefmt.
    """

    def formatTime(self, record, datefmt=None):
        ct = datetime.datetime.fromtimestamp(record.created)
        if datefmt and '.%f' in datefmt:
            before, after = datefmt.split('.%f', 1)
            s = ct.strftime(before) + ct.strftime('.%f')[:4]
            if after:
                s += ct.strftime(after)
        elif datefmt:
            s = ct.strftime(datefmt)
        else:
            s = ct.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        return s


def log_level_from_verbosity(verbosity):
    """
    Convert a 0-5 plugin verbosity value into a logging level.

    Values outside the scale are clamped to its ends.
    """
    verbosity = max(0, min(5, int(verbosity)))
    return _VERBOSITY_LEVELS[verbosity]


def configure_logging(level=logging.INFO):
    """
    Configure the root logger for the plugin process.

    Args:
        level: Logging level to use (default: INFO)
    """
    formatter = MicrosecondFormatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S.%f'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers to avoid duplicates if called multiple times
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    return root_logger
