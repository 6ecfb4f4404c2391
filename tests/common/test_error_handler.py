"""
Tests for the error handling utilities.
"""

import logging
import sys

import pytest

from tabinfer.common.exceptions import (
    ConfigurationError,
    DataLoadError,
    FileReadError,
    InputError,
    TabinferError,
)
from tabinfer.common.utils import (
    error_handler,
    format_error_message,
    get_error_details,
    handle_error,
    setup_global_exception_handler,
)


def test_format_error_message():
    assert (
        format_error_message(FileReadError("a.csv", "Missing"))
        == "File error on a.csv: Missing"
    )
    assert (
        format_error_message(ConfigurationError("geo", "Bad"))
        == "Configuration error (geo): Bad"
    )
    assert format_error_message(InputError("Rows")) == "Input error: Rows"
    assert format_error_message(KeyError("k")) == "Error (KeyError): 'k'"


def test_get_error_details():
    details = get_error_details(FileReadError("a.csv", "Missing", {"size": 0}))
    assert details["error_type"] == "FileReadError"
    assert details["file_path"] == "a.csv"
    assert details["size"] == 0

    details = get_error_details(ConfigurationError("schema", "Bad"))
    assert details["config_key"] == "schema"

    assert get_error_details(ValueError("x"))["error_type"] == "ValueError"


class TestHandleError:
    """Tests for handle_error."""

    def test_reraises_tabinfer_error(self, caplog):
        error = InputError("Bad rows")
        with caplog.at_level(logging.ERROR):
            with pytest.raises(InputError):
                handle_error(error, console_output=False)
        assert "Input error: Bad rows" in caplog.text
        assert error._handled

    def test_wraps_other_errors(self):
        with pytest.raises(DataLoadError) as exc_info:
            handle_error(ValueError("boom"), log=False, console_output=False)
        assert exc_info.value.details == {"original_error": "boom"}
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_no_raise(self):
        assert handle_error(InputError("x"), log=False, raise_error=False, console_output=False) is None

    def test_handled_errors_are_not_reported_twice(self, caplog):
        error = InputError("once")
        error._handled = True
        with caplog.at_level(logging.ERROR):
            handle_error(error, raise_error=False, console_output=False)
        assert caplog.text == ""

    def test_console_output(self, capsys):
        handle_error(InputError("visible"), log=False, raise_error=False)
        assert "visible" in capsys.readouterr().out


class TestErrorHandlerDecorator:
    """Tests for the error_handler decorator."""

    def test_passes_return_value(self):
        @error_handler(log=False, console_output=False)
        def compute():
            return 42

        assert compute() == 42

    def test_reraises(self):
        @error_handler(log=False, console_output=False)
        def fail():
            raise TabinferError("failure")

        with pytest.raises(TabinferError):
            fail()

    def test_wraps_os_error(self):
        @error_handler(log=False, console_output=False)
        def fail():
            raise OSError("disk")

        with pytest.raises(DataLoadError):
            fail()

    def test_swallows_when_asked(self):
        @error_handler(log=False, raise_error=False, console_output=False)
        def fail():
            raise ValueError("ignored")

        assert fail() is None

    def test_other_exceptions_propagate(self):
        @error_handler(log=False, console_output=False)
        def fail():
            raise KeyError("k")

        with pytest.raises(KeyError):
            fail()

    def test_preserves_metadata(self):
        @error_handler()
        def documented():
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."


def test_setup_global_exception_handler(monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.__excepthook__)
    setup_global_exception_handler()
    assert sys.excepthook is not sys.__excepthook__
    # must not raise
    sys.excepthook(InputError, InputError("late"), None)
