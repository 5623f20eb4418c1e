"""Tests for the application logger."""

from __future__ import annotations

import logging
import logging.handlers

from taskvault.utils.logger import get_logger, set_level


def test_logger_is_singleton():
    assert get_logger() is get_logger("/ignored/after/first/call")


def test_logger_writes_rotating_file():
    logger = get_logger()
    assert logger.name == "taskvault"
    assert logger.propagate is False
    handlers = [h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(handlers) == 1
    assert handlers[0].maxBytes == 5 * 1024 * 1024
    assert handlers[0].backupCount == 3


def test_set_level():
    logger = get_logger()
    previous = logger.level
    try:
        set_level("WARNING")
        assert logger.level == logging.WARNING
    finally:
        logger.setLevel(previous)
