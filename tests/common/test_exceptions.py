"""
Tests for the exception hierarchy.
"""

import pytest

from tabinfer.common.exceptions import (
    ConfigurationError,
    DataLoadError,
    EnvironmentSetupError,
    FileError,
    FileFormatError,
    FileReadError,
    InputError,
    LoggingError,
    StatisticsStateError,
    TabinferError,
)


def test_base_error():
    error = TabinferError("Base error", {"key": "value"})
    assert str(error) == "Base error"
    assert error.details == {"key": "value"}
    assert error.get_user_message() == "Base error"


def test_base_error_without_details():
    assert TabinferError("Base error").details == {}


@pytest.mark.parametrize(
    "error_class",
    [EnvironmentSetupError, LoggingError, InputError, StatisticsStateError, DataLoadError],
)
def test_subclasses(error_class):
    error = error_class("Failure", {"a": 1})
    assert isinstance(error, TabinferError)
    assert error.details == {"a": 1}


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_config_key(self):
        error = ConfigurationError("schema", "Invalid schema")
        assert error.config_key == "schema"
        assert error.get_user_message() == "Invalid schema (configuration key: schema)"

    def test_help(self):
        error = ConfigurationError("geo", "Bad value", {"help": "Use a number"})
        assert error.get_user_message().endswith("\nUse a number")

    def test_allowed_values(self):
        error = ConfigurationError(
            "enum_mode", "Bad mode", {"allowed_values": ["count", "percentage"]}
        )
        assert "Allowed values: count, percentage" in error.get_user_message()


class TestFileErrors:
    """Tests for file errors."""

    def test_file_error(self):
        error = FileError("data.csv", "Cannot open")
        assert error.file_path == "data.csv"
        assert str(error) == "Cannot open"

    def test_hierarchy(self):
        assert issubclass(FileReadError, FileError)
        assert issubclass(FileFormatError, FileError)
        error = FileFormatError("data.xml", "Unsupported", {"suffix": ".xml"})
        assert error.details["suffix"] == ".xml"
