"""Test console utilities."""

from unittest.mock import call, patch

import pytest

from tabinfer.cli.utils import console as console_module
from tabinfer.cli.utils.console import (
    console,
    format_confidence,
    print_info,
    print_section,
    print_stats,
    print_success,
    print_warning,
)


@pytest.fixture
def mock_console():
    """Mock console for testing."""
    with patch("tabinfer.cli.utils.console.console") as mock:
        yield mock


@pytest.fixture
def emojis(monkeypatch):
    monkeypatch.setattr(console_module, "USE_EMOJIS", True)


@pytest.fixture
def no_emojis(monkeypatch):
    monkeypatch.setattr(console_module, "USE_EMOJIS", False)


def test_print_success(mock_console, emojis):
    print_success("Saved")
    mock_console.print.assert_called_once_with("✅ Saved", style="green")


def test_print_success_plain(mock_console, no_emojis):
    print_success("Saved")
    mock_console.print.assert_called_once_with("[✓] Saved", style="green")


def test_print_warning(mock_console, emojis):
    print_warning("Careful")
    mock_console.print.assert_called_once_with("⚠️  Careful", style="yellow")


def test_print_warning_without_icon(mock_console):
    print_warning("Careful", icon=False)
    mock_console.print.assert_called_once_with("Careful", style="yellow")


def test_blank_messages_are_skipped(mock_console):
    print_success("  ")
    print_warning("")
    mock_console.print.assert_not_called()


def test_print_info(mock_console, emojis):
    print_info("Loaded")
    mock_console.print.assert_called_once_with("ℹ️  Loaded", style="blue")


def test_print_info_plain_prefix_is_escaped(mock_console, no_emojis):
    print_info("Loaded")
    mock_console.print.assert_called_once_with("\\[i] Loaded", style="blue")


def test_print_info_newline(mock_console, emojis):
    print_info("\nLoaded")
    mock_console.print.assert_called_once_with("\nLoaded", style="blue")


def test_print_section(mock_console, emojis):
    print_section("Fields")
    mock_console.print.assert_called_once_with("\n📋 Fields", style="bold magenta")


def test_print_stats(mock_console):
    print_stats({"records": 1200, "language": "eng", "flag": True})
    assert mock_console.print.call_args_list == [
        call("   records: 1,200", style="cyan"),
        call("   language: eng", style="cyan"),
        call("   flag: True", style="cyan"),
    ]


def test_format_confidence():
    assert format_confidence(None) == "[dim]-[/dim]"
    assert format_confidence(0.95) == "[green]95%[/green]"
    assert format_confidence(0.6) == "[yellow]60%[/yellow]"
    assert format_confidence(0.2) == "[red]20%[/red]"


def test_plain_prefixes_render_literally(no_emojis, capsys):
    print_info("Loaded")
    print_section("Fields")
    out = capsys.readouterr().out
    assert "[i] Loaded" in out
    assert "[#] Fields" in out


def test_console_instance():
    from rich.console import Console

    assert isinstance(console, Console)
