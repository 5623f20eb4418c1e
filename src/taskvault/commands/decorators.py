"""Decorators for command functions."""

import asyncio
import functools
import inspect
import logging
import time
import traceback
from collections.abc import Callable

import typer
from pydantic import ValidationError as PydanticValidationError

from taskvault.errors import NotFoundError, TaskVaultError, ValidationError
from taskvault.utils.exit_codes import (
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    ERROR_NOT_FOUND,
)
from taskvault.utils.logger import get_logger
from taskvault.utils.ui.console import format_error


class AppError(Exception):
    """Command-level failure carrying the exit code to use."""

    def __init__(self, message: str, exit_code: int = ERROR_GENERAL):
        super().__init__(message)
        self.exit_code = exit_code


def _exit_code_for(error: Exception) -> int:
    if isinstance(error, AppError):
        return error.exit_code
    if isinstance(error, NotFoundError):
        return ERROR_NOT_FOUND
    if isinstance(error, (ValidationError, PydanticValidationError, ValueError)):
        return ERROR_INVALID_ARGS
    return ERROR_GENERAL


def _fail(logger: logging.Logger, cmd: str, started: float, error: Exception, message: str):
    """Log the failure, print ``message`` and exit with the mapped code."""
    elapsed = time.monotonic() - started
    if isinstance(error, (AppError, TaskVaultError, ValueError)):
        logger.error("command failed: %s (%.3fs) - %s", cmd, elapsed, error)
    else:
        logger.error(
            "command crashed: %s (%.3fs) - %s\n%s", cmd, elapsed, error, traceback.format_exc()
        )
    format_error(message)
    raise typer.Exit(code=_exit_code_for(error)) from error


def command_wrapper(func: Callable):
    """Run a sync or async command, logging it and mapping errors to exit codes.

    Expected failures (AppError, taskvault errors, bad values) print a one-line
    error; anything else is reported as unexpected and logged with its traceback.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger()
        cmd = func.__name__
        started = time.monotonic()
        logger.info("command started: %s", cmd)
        try:
            if inspect.iscoroutinefunction(func):
                result = asyncio.run(func(*args, **kwargs))
            else:
                result = func(*args, **kwargs)
        except typer.Exit:
            # --help, explicit Exit(n)
            raise
        except (AppError, TaskVaultError, ValueError) as e:
            _fail(logger, cmd, started, e, str(e))
        except Exception as e:
            _fail(logger, cmd, started, e, f"An unexpected error occurred: {e}")

        logger.info("command completed: %s (%.3fs)", cmd, time.monotonic() - started)
        return result

    return wrapper
