"""
Logging configuration, called once by the CLI at startup.

Levels are resolved in precedence order:
    --debug  >  --verbose  >  MIGRATION_LOG_LEVEL  >  WARNING
"""

import logging
import sys
from typing import Optional

_FMT_MINIMAL = "%(message)s"
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d - %(message)s"
_DATEFMT = "%H:%M:%S"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d - %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Noisy at INFO/DEBUG
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer")


def setup_logging(level: str = "WARNING",
                  log_file: Optional[str] = None,
                  quiet_third_party: bool = True) -> None:
    """
    Configure the root logger for the whole process

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file receiving full-detail records
        quiet_third_party: Keep AWS SDK loggers at WARNING unless debugging
    """
    numeric_level = _parse_level(level)

    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    effective_level = numeric_level

    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)
        effective_level = logging.DEBUG

    root.setLevel(effective_level)

    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def _parse_level(level: Optional[str]) -> int:
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
