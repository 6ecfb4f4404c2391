"""
Main entry point for the tabinfer CLI application.
"""

import logging
import os
import sys

from rich.console import Console

from tabinfer.cli import create_cli
from tabinfer.common.exceptions import LoggingError, TabinferError
from tabinfer.common.utils import error_handler, setup_global_exception_handler
from tabinfer.common.utils.logging_utils import setup_logging

console = Console()


@error_handler(log=True, raise_error=False, console_output=True)
def init_logging() -> None:
    """
    Initialize global logging for the application.

    Raises:
        LoggingError: If logging setup fails
    """
    try:
        setup_logging(
            component_name="main",
            enable_console=True,
            enable_file=bool(os.getenv("TABINFER_LOGS")),
            log_level=logging.WARNING,
        )
    except OSError as e:
        raise LoggingError("Failed to initialize logging", details={"error": str(e)})


def main() -> None:
    """
    The main entry point for tabinfer.

    Initializes logging, installs the global exception handler and runs
    the command-line interface.
    """
    try:
        init_logging()
        setup_global_exception_handler()

        cli = create_cli()
        cli()

    except TabinferError as e:
        if not getattr(e, "_handled", False):
            console.print(f"[red]✗ {e.get_user_message()}[/red]")
            if e.details:
                console.print("[red]Error Details:[/red]")
                for key, value in e.details.items():
                    console.print(f"  [yellow]{key}:[/yellow] {value}")
        if "--debug" in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
