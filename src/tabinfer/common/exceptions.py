"""
Custom exceptions for the tabinfer package.
"""

from typing import Optional


class TabinferError(Exception):
    """Base exception class for all tabinfer errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize the base exception.

        Args:
            message: Main error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.details = details or {}

    def get_user_message(self) -> str:
        """Returns a user-friendly error message"""
        return str(self)


# --- System Level Exceptions ---


class ConfigurationError(TabinferError):
    """Exception raised for configuration errors."""

    def __init__(self, config_key: str, message: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.config_key = config_key

    def get_user_message(self) -> str:
        """Returns a user-friendly error message with details if available"""
        message = f"{str(self)} (configuration key: {self.config_key})"

        if self.details and "help" in self.details:
            message += f"\n{self.details['help']}"
        elif self.details and "allowed_values" in self.details:
            allowed = ", ".join(str(v) for v in self.details["allowed_values"])
            message += f"\nAllowed values: {allowed}"

        return message


class EnvironmentSetupError(TabinferError):
    """Exception raised for environment setup and configuration issues."""


class LoggingError(TabinferError):
    """Exception raised for logging configuration and handling errors."""


# --- Data Handling Exceptions ---


class InputError(TabinferError):
    """Exception raised when a caller hands the engine malformed input shapes."""


class StatisticsStateError(TabinferError):
    """
    Raised when field statistics cannot be restored or combined.

    Covers serialized state with the wrong shape and merges of
    statistics that belong to different field paths.
    """


class DataLoadError(TabinferError):
    """Raised when there is an error loading data."""


# --- File System Exceptions ---


class FileError(TabinferError):
    """Base class for file related errors."""

    def __init__(self, file_path: str, message: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.file_path = file_path


class FileReadError(FileError):
    """Exception raised when there is an error reading a file."""


class FileFormatError(FileError):
    """Exception raised when file format is invalid."""
