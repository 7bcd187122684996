"""Logging setup.

Library code logs through ``loguru`` with a bound ``subsystem`` field and
never configures sinks itself; applications call :func:`configure_logging`
once at startup.
"""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[subsystem]} | {message}"
)


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    """Replace loguru's default sink with a single stderr sink.

    Args:
        level: Minimum level name (``DEBUG``, ``INFO``, ...).
        json: Emit one JSON object per record instead of text lines.
    """
    logger.remove()
    logger.configure(extra={"subsystem": "-"})
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=LOG_FORMAT,
        serialize=json,
        backtrace=False,
        diagnose=False,
    )
