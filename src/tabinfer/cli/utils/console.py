"""
Console output utilities for the tabinfer CLI.
Provides consistent formatting for different types of messages.
"""

import os
from typing import Any, Dict, Optional

from rich.console import Console

console = Console()


def _should_use_icons() -> bool:
    """Icons can be turned off with TABINFER_USE_EMOJIS=0."""
    value = os.getenv("TABINFER_USE_EMOJIS", "").lower()
    return value not in ("0", "false", "no", "off")


USE_EMOJIS = _should_use_icons()


def print_success(message: str, icon: bool = True) -> None:
    """Print a success message in green."""
    if not message or not message.strip():
        return
    prefix = ("✅ " if USE_EMOJIS else "[✓] ") if icon else ""
    console.print(f"{prefix}{message}", style="green")


def print_warning(message: str, icon: bool = True) -> None:
    """Print a warning message in yellow."""
    if not message or not message.strip():
        return
    prefix = ("⚠️  " if USE_EMOJIS else "[!] ") if icon else ""
    console.print(f"{prefix}{message}", style="yellow")


def print_info(message: str, icon: bool = True) -> None:
    """Print an info message in blue."""
    if message.startswith("\n") or not message.strip() or not icon:
        console.print(message, style="blue")
        return
    prefix = "ℹ️  " if USE_EMOJIS else "\\[i] "
    console.print(f"{prefix}{message}", style="blue")


def print_section(title: str) -> None:
    """Print a section header."""
    prefix = "📋 " if USE_EMOJIS else "\\[#] "
    console.print(f"\n{prefix}{title}", style="bold magenta")


def print_stats(stats: Dict[str, Any]) -> None:
    """Print key/value statistics."""
    for key, value in stats.items():
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            console.print(f"   {key}: {value:,}", style="cyan")
        else:
            console.print(f"   {key}: {value}", style="cyan")


def format_confidence(score: Optional[float]) -> str:
    """Confidence as a percentage, coloured by strength."""
    if score is None:
        return "[dim]-[/dim]"
    percent = f"{score * 100:.0f}%"
    if score >= 0.8:
        return f"[green]{percent}[/green]"
    if score >= 0.5:
        return f"[yellow]{percent}[/yellow]"
    return f"[red]{percent}[/red]"

