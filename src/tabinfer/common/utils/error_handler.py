"""
Error handling utilities for tabinfer.
"""

import logging
import sys
import traceback
from functools import wraps
from typing import Any, Callable, TypeVar, Optional

from rich.console import Console

from tabinfer.common.exceptions import (
    TabinferError,
    FileError,
    ConfigurationError,
    InputError,
    StatisticsStateError,
    DataLoadError,
    LoggingError,
)

console = Console()
T = TypeVar("T")


def get_error_details(error: Exception) -> dict:
    """
    Extract error details from an exception.

    Args:
        error: The exception to process

    Returns:
        Dictionary containing error details
    """
    details = {"error_type": type(error).__name__, "traceback": traceback.format_exc()}

    if isinstance(error, TabinferError):
        details.update(error.details or {})

        if isinstance(error, FileError):
            details["file_path"] = error.file_path
        elif isinstance(error, ConfigurationError):
            details["config_key"] = error.config_key

    return details


def format_error_message(error: Exception) -> str:
    """
    Format an error message for display.

    Args:
        error: The exception to format

    Returns:
        Formatted error message
    """
    if isinstance(error, FileError):
        return f"File error on {error.file_path}: {str(error)}"
    elif isinstance(error, ConfigurationError):
        return f"Configuration error ({error.config_key}): {str(error)}"
    elif isinstance(error, InputError):
        return f"Input error: {str(error)}"
    elif isinstance(error, StatisticsStateError):
        return f"Statistics state error: {str(error)}"
    elif isinstance(error, DataLoadError):
        return f"Load error: {str(error)}"
    elif isinstance(error, LoggingError):
        return f"Logging error: {str(error)}"

    return f"Error ({type(error).__name__}): {str(error)}"


def handle_error(
    error: Exception,
    log: bool = True,
    raise_error: bool = True,
    console_output: bool = True,
) -> None:
    """
    Central error handler for standardized error processing.

    Args:
        error: The exception to handle
        log: Whether to log the error
        raise_error: Whether to re-raise the error
        console_output: Whether to output to console
    """
    # Already reported further down the stack
    if getattr(error, "_handled", False):
        if raise_error:
            raise error
        return

    error._handled = True

    if isinstance(error, TabinferError):
        error_message = error.get_user_message()
    else:
        error_message = str(error)

    if log:
        # Only log full traceback for unexpected errors
        if isinstance(error, TabinferError):
            logging.error(
                "Error: %s",
                format_error_message(error),
                extra={"error_details": get_error_details(error)},
            )
        else:
            logging.error("Unexpected error: %s", error_message, exc_info=True)

    if console_output:
        console.print(f"[red]✗ {error_message}[/red]")

    if raise_error:
        if isinstance(error, TabinferError):
            raise error
        raise DataLoadError(str(error), details={"original_error": str(error)}) from error


def error_handler(
    *, log: bool = True, raise_error: bool = True, console_output: bool = True
) -> Callable:
    """
    Decorator for standardized error handling.

    Keyword Arguments:
        log (bool): Whether to log errors. Defaults to True.
        raise_error (bool): Whether to re-raise errors. Defaults to True.
        console_output (bool): Whether to output to console. Defaults to True.

    Returns:
        Callable: Decorator function that wraps the target function with error handling.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except (TabinferError, ValueError, OSError) as e:
                handle_error(
                    e, log=log, raise_error=raise_error, console_output=console_output
                )
                return None

        return wrapper

    return decorator


def setup_global_exception_handler() -> None:
    """
    Set up global exception handler for unhandled exceptions.
    """

    def global_exception_handler(
        exc_type: type, exc_value: Exception, exc_traceback: Any
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        handle_error(exc_value, log=True, raise_error=False, console_output=True)

    sys.excepthook = global_exception_handler
