"""
Command comparing two schema files.
"""

import json

import click
from rich import box
from rich.table import Table

from tabinfer.common.utils.error_handler import error_handler
from tabinfer.core.schema.comparison import (
    compare_schemas,
    detect_transforms,
    generate_change_summary,
)

from ..utils.console import console, print_section
from ..utils.readers import read_schema_file


@click.command(name="diff")
@click.argument("old_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("new_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@error_handler(log=True, raise_error=True)
def diff_command(old_path: str, new_path: str, as_json: bool) -> None:
    """
    Compare two schemas and suggest renames.

    Schemas are JSON or YAML, either JSON-schema-like objects or plain
    field -> type mappings.

    Examples:
        tabinfer diff schema_v1.json schema_v2.json
    """
    old_schema = read_schema_file(old_path)
    new_schema = read_schema_file(new_path)

    comparison = compare_schemas(old_schema, new_schema)
    suggestions = detect_transforms(old_schema, new_schema, comparison.changes)

    if as_json:
        payload = {
            "comparison": comparison.to_dict(),
            "transforms": [s.to_dict() for s in suggestions],
        }
        click.echo(json.dumps(payload, indent=2, default=str))
        return

    console.print(generate_change_summary(comparison), markup=False)

    if suggestions:
        print_section("Rename suggestions")
        table = Table(show_header=True, header_style="bold cyan", box=box.SIMPLE)
        table.add_column("From (new)", style="green")
        table.add_column("To (existing)", style="green")
        table.add_column("Confidence", justify="right")
        table.add_column("Reason")
        for suggestion in suggestions:
            table.add_row(
                suggestion.from_field,
                suggestion.to_field,
                f"{suggestion.confidence}%",
                suggestion.reason,
            )
        console.print(table)
