"""Logging setup shared by the library and the HTTP adapter."""
from __future__ import annotations

import logging
from typing import Union

_LOGGER_CONFIGURED = False


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """Attach a console handler to the package logger once."""

    global _LOGGER_CONFIGURED
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("liquidglass")
    logger.setLevel(level)
    if _LOGGER_CONFIGURED:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    _LOGGER_CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
