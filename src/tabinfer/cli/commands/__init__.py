"""
Command modules for the tabinfer CLI.

Registers the available commands: ``profile`` for field statistics and
role mappings, ``match`` for catalog ranking and ``diff`` for schema
comparison.
"""

import click

from .base import RichCLI
from .diff import diff_command
from .match import match_command
from .profile import profile_command


def create_cli() -> click.Group:
    """Create the main CLI group with all commands registered.

    Returns:
        click.Group: The root command group for the tabinfer CLI.
    """

    @click.group(cls=RichCLI)
    def cli():
        """Command line interface for tabinfer."""
        pass

    cli.add_command(profile_command)
    cli.add_command(match_command)
    cli.add_command(diff_command)

    return cli
