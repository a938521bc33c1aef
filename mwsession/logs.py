"""
Logger callables.

Components take a ``logger(level, message)`` callable, with level one of
"debug", "info", "warn", "error". stdlib_logger() backs one with the
standard logging module.
"""
from __future__ import annotations

import logging
from typing import Callable

Logger = Callable[[str, str], None]

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def stdlib_logger(name: str = "mwsession") -> Logger:
    log = logging.getLogger(name)

    def _emit(level: str, message: str) -> None:
        log.log(_LEVELS.get(level, logging.INFO), message)

    return _emit


def null_logger(level: str, message: str) -> None:
    pass
