"""Logging setup for the pubtrust CLI."""

from __future__ import annotations

import logging
from typing import TextIO

PACKAGE_LOGGER = "aumai_pubtrust"
_HANDLER_NAME = "pubtrust-cli"


def configure_logging(
    *, level: int = logging.WARNING, stream: TextIO | None = None
) -> logging.Logger:
    """Send ``aumai_pubtrust`` log records to *stream* at *level*.

    Only the package logger is touched, so host applications keep control
    of the root logger. Calling again replaces the handler installed by the
    previous call. *stream* defaults to the current ``sys.stderr``.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s", datefmt="%H:%M:%S"
        )
    )
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


__all__ = ["PACKAGE_LOGGER", "configure_logging"]
