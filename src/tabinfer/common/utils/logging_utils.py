"""
Logging utilities for tabinfer.
"""

import os
from pathlib import Path
import logging
from logging import LogRecord
import json
from typing import Optional
from rich.logging import RichHandler
from rich.console import Console

from tabinfer.common.exceptions import LoggingError, TabinferError
from tabinfer.common.utils import error_handler


class JsonFormatter(logging.Formatter):
    """
    Formats log records as JSON lines, including TabinferError details.
    """

    def format(self, record: LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_data["error"] = {"type": exc_type.__name__, "message": str(exc_value)}
            if isinstance(exc_value, TabinferError) and exc_value.details:
                log_data["error"]["details"] = exc_value.details

        if hasattr(record, "error_details"):
            log_data["error_details"] = record.error_details

        return json.dumps(log_data, default=str)


@error_handler(log=False)  # logging setup errors must not recurse into logging
def setup_logging(
    component_name: Optional[str] = None,
    log_directory: Optional[str] = None,
    log_level: int = logging.INFO,
    enable_console: bool = True,
    enable_file: bool = True,
    console_format: Optional[str] = None,
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Args:
        component_name: Name of the component (affects log file name)
        log_directory: Directory for log files (defaults to TABINFER_LOGS or 'logs')
        log_level: Logging level to use
        enable_console: Whether to enable console output
        enable_file: Whether to enable file logging
        console_format: Optional format for console output

    Returns:
        Configured logger instance

    Raises:
        LoggingError: If there's an error setting up logging
    """
    try:
        logger_name = component_name if component_name else "tabinfer"
        logger = logging.getLogger(logger_name)
        logger.setLevel(log_level)

        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

        handlers = []

        if enable_console:
            console_handler = RichHandler(
                rich_tracebacks=True,
                console=Console(stderr=True),
                show_time=True,
                show_path=True,
            )
            if console_format:
                console_handler.setFormatter(logging.Formatter(console_format))
            console_handler.setLevel(log_level)
            handlers.append(console_handler)

        if enable_file:
            log_dir = log_directory or os.getenv("TABINFER_LOGS", "logs")
            try:
                log_path = Path(log_dir)
                log_path.mkdir(parents=True, exist_ok=True)

                file_path = log_path / f"{logger_name.lower()}.log"
                file_handler = logging.FileHandler(str(file_path))
                file_handler.setFormatter(JsonFormatter())
                file_handler.setLevel(log_level)
                handlers.append(file_handler)

            except OSError as e:
                raise LoggingError(
                    f"Failed to set up file logging in {log_dir}",
                    details={"error": str(e), "directory": log_dir},
                )

        for handler in handlers:
            logger.addHandler(handler)

        return logger

    except LoggingError:
        raise
    except Exception as e:
        raise LoggingError(
            "Failed to setup logging",
            details={"error": str(e), "component": component_name},
        )

