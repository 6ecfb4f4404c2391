"""
base.py

This module provides the base click group for the tabinfer CLI.
It defines the custom formatted help output and shared command helpers.
"""

from importlib import metadata
import logging
from pathlib import Path
from typing import List, Optional

import click
from rich import box
from rich.console import Console
from rich.table import Table

from tabinfer.common.config import Config
from tabinfer.common.utils import error_handler
from tabinfer.core.config_models import DetectionSettings

logger = logging.getLogger(__name__)


def get_version() -> str:
    """
    Version of tabinfer.

    Reads the installed package metadata, falling back to pyproject.toml
    when running from a source checkout.
    """
    try:
        return metadata.version("tabinfer")
    except metadata.PackageNotFoundError:
        pass

    import tomllib

    pyproject_path = Path(__file__).resolve().parents[4] / "pyproject.toml"
    if not pyproject_path.exists():
        return "unknown"
    with pyproject_path.open("rb") as f:
        version = tomllib.load(f).get("project", {}).get("version")
    return version if isinstance(version, str) else "unknown"


class RichCLI(click.Group):
    """
    Custom Click Group class that provides a richly formatted CLI interface.
    Commands are listed in the order they were added.
    """

    def list_commands(self, ctx: click.Context) -> List[str]:
        return list(self.commands.keys())

    @error_handler(log=True)
    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        console = Console()
        console.print(
            f"\n[bold]tabinfer, version {get_version()}[/bold]\n"
            "\n[bold yellow]Usage:[/bold yellow] tabinfer [OPTIONS] COMMAND [ARGS]...\n\n"
            "Infer schemas and field mappings from tabular files.\n\n"
            "[bold yellow]Options:[/bold yellow]\n"
            "  --help  [dim]Show this message and exit.[/dim]\n"
        )
        self._format_command_group(ctx, "Commands", self.list_commands(ctx))
        console.print("\n[dim]Run 'tabinfer <command> --help' for detailed usage[/dim]")

    @error_handler(log=True)
    def _format_command_group(
        self,
        ctx: click.Context,
        group_title: str,
        commands: List[str],
    ) -> None:
        """
        Format a group of commands into a rich table.

        Args:
            ctx (click.Context): The click context object
            group_title (str): The title for this group of commands
            commands (List[str]): List of command names to format
        """
        console = Console()
        table = Table(show_header=True, header_style="bold cyan", box=box.SIMPLE)
        table.add_column("Command", style="green")
        table.add_column("Description")

        for cmd_name in commands:
            cmd = self.get_command(ctx, cmd_name)
            if cmd is None:
                continue
            docstring = cmd.callback.__doc__
            description = (
                docstring.strip().split("\n")[0] if docstring else "No description"
            )
            table.add_row(cmd_name, description)

        console.print(f"\n[bold yellow]{group_title}[/bold yellow]\n")
        console.print(table)


def load_settings(config_path: Optional[str]) -> DetectionSettings:
    """Settings from ``--config``, ``$TABINFER_HOME`` or defaults."""
    return Config(config_path).settings


config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to tabinfer.yml (defaults to $TABINFER_HOME/tabinfer.yml).",
)
