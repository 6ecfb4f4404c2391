"""
Command ranking catalog datasets against an uploaded file.
"""

import json
from typing import Optional

import click
from rich import box
from rich.table import Table

from tabinfer.common.config import load_catalog
from tabinfer.common.utils.error_handler import error_handler
from tabinfer.core.engine import SchemaInferenceEngine
from tabinfer.core.schema.similarity import datasets_from_catalog

from ..utils.console import console, print_warning
from ..utils.readers import read_batches
from .base import config_option, load_settings

SAMPLE_ROWS = 100


@click.command(name="match")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--catalog",
    "catalog_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML or JSON file listing the destination datasets.",
)
@click.option("--language", help="Language of the upload, compared with each dataset's.")
@click.option("--min-score", type=click.IntRange(0, 100), help="Drop results below this score.")
@click.option("--max-results", type=click.IntRange(min=1), help="Number of results to keep.")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@config_option
@error_handler(log=True, raise_error=True)
def match_command(
    file_path: str,
    catalog_path: str,
    language: Optional[str],
    min_score: Optional[int],
    max_results: Optional[int],
    as_json: bool,
    config_path: Optional[str],
) -> None:
    """
    Suggest the catalog datasets an upload fits best.

    Examples:
        tabinfer match upload.csv --catalog catalog.yml
        tabinfer match upload.xlsx --catalog catalog.yml --min-score 50
    """
    settings = load_settings(config_path)
    catalog = load_catalog(catalog_path)

    engine = SchemaInferenceEngine(settings)
    # similarity only looks at the header and the first rows
    engine.process_batch(next(read_batches(file_path, SAMPLE_ROWS), []))

    results = engine.suggest_datasets(
        datasets_from_catalog(catalog),
        language=language,
        min_score=min_score,
        max_results=max_results,
    )

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2, default=str))
        return

    if not results:
        print_warning("No catalog dataset is similar enough")
        return

    table = Table(show_header=True, header_style="bold cyan", box=box.SIMPLE)
    table.add_column("Dataset", style="green")
    table.add_column("Score", justify="right")
    table.add_column("Matching")
    table.add_column("Missing")
    table.add_column("New")
    for result in results:
        table.add_row(
            f"{result.dataset_name} ({result.dataset_id})",
            str(result.score),
            ", ".join(result.matching_fields),
            ", ".join(result.missing_fields),
            ", ".join(result.new_fields),
        )
    console.print(table)
