"""
Command profiling a tabular file: field statistics and role mappings.
"""

import json
from typing import Any, Dict, Optional

import click
from rich import box
from rich.table import Table

from tabinfer.common.utils.error_handler import error_handler
from tabinfer.core.engine import MappingDetection, SchemaInferenceEngine
from tabinfer.core.schema.field_statistics import FieldStatistics

from ..utils.console import (
    console,
    format_confidence,
    print_info,
    print_section,
    print_stats,
    print_success,
    print_warning,
)
from ..utils.readers import read_batches, read_state_file, write_state_file
from .base import config_option, load_settings

LOW_CONFIDENCE = 0.5

ROLE_LABELS = {
    "title": "Title",
    "description": "Description",
    "location_name": "Location name",
    "timestamp": "Timestamp",
    "latitude": "Latitude",
    "longitude": "Longitude",
    "location": "Location",
}


@click.command(name="profile")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--language", help="ISO-639-3 language of the column names (e.g. eng, deu).")
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=1000,
    show_default=True,
    help="Rows processed per batch.",
)
@click.option(
    "--state",
    "state_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Resume from a state file saved earlier.",
)
@click.option("--save-state", "save_state_path", type=click.Path(dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@config_option
@error_handler(log=True, raise_error=True)
def profile_command(
    file_path: str,
    language: Optional[str],
    batch_size: int,
    state_path: Optional[str],
    save_state_path: Optional[str],
    as_json: bool,
    config_path: Optional[str],
) -> None:
    """
    Profile a CSV, Excel or JSON file.

    Prints per-field statistics and the columns detected for each role.

    Examples:
        tabinfer profile events.csv
        tabinfer profile events.csv --language deu --json
        tabinfer profile part2.csv --state state.json --save-state state.json
    """
    settings = load_settings(config_path)
    state = read_state_file(state_path) if state_path else None
    engine = SchemaInferenceEngine(settings, state=state)

    for batch in read_batches(file_path, batch_size):
        result = engine.process_batch(batch)
        if result.schema_changed and not as_json:
            print_info(
                f"Schema version {engine.builder.version}: {len(result.changes)} changes"
            )

    detection = engine.detect(language)
    summary = engine.builder.get_summary()

    if save_state_path:
        write_state_file(save_state_path, engine.state_dict())

    if as_json:
        payload = {
            "summary": summary,
            "fields": {
                path: _field_row(stats)
                for path, stats in engine.field_stats.items()
            },
            "detection": detection.to_dict(),
            "schema": engine.builder.get_schema(),
        }
        click.echo(json.dumps(payload, indent=2, default=str))
        return

    print_section("Summary")
    print_stats(
        {
            "records": summary["record_count"],
            "fields": summary["field_count"],
            "schema version": summary["version"],
            "language": detection.language,
        }
    )
    display_field_statistics(engine.field_stats)
    display_mappings(detection)
    if save_state_path:
        print_success(f"State saved to {save_state_path}")


def _field_row(stats: FieldStatistics) -> Dict[str, Any]:
    return {
        "type": stats.dominant_type or "null",
        "occurrences": stats.occurrences,
        "nulls": stats.null_count,
        "unique": f"{stats.unique_values}+" if stats.capped else stats.unique_values,
        "formats": ", ".join(sorted(stats.formats)) or "",
        "enum": stats.is_enum_candidate,
    }


def display_field_statistics(field_stats: Dict[str, FieldStatistics]) -> None:
    print_section("Fields")
    table = Table(show_header=True, header_style="bold cyan", box=box.SIMPLE)
    for column in ("Field", "Type", "Occurrences", "Nulls", "Unique", "Formats", "Enum"):
        table.add_column(column)
    for path, stats in field_stats.items():
        row = _field_row(stats)
        table.add_row(
            path,
            row["type"],
            f"{row['occurrences']:,}",
            f"{row['nulls']:,}",
            str(row["unique"]),
            row["formats"],
            "yes" if row["enum"] else "",
        )
    console.print(table)


def display_mappings(detection: MappingDetection) -> None:
    print_section("Detected mappings")
    mappings = detection.mappings.to_dict()
    table = Table(show_header=True, header_style="bold cyan", box=box.SIMPLE)
    table.add_column("Role")
    table.add_column("Field", style="green")
    table.add_column("Confidence", justify="right")

    for role, label in ROLE_LABELS.items():
        path = mappings.get(f"{role}_path")
        score = detection.confidence.get(role) if path else None
        table.add_row(label, path or "[dim]-[/dim]", format_confidence(score))
    console.print(table)

    geo = detection.geo
    if geo.found:
        where = geo.combined_column or f"{geo.lat_column}/{geo.lon_column}"
        print_info(
            f"Coordinates in {where} ({geo.type}, {geo.detection_method}, "
            f"{geo.confidence:.0%})"
        )
        if geo.swapped_coordinates:
            print_warning("Latitude and longitude columns look swapped")

    for role in detection.low_confidence_roles(LOW_CONFIDENCE):
        print_warning(f"Low confidence for {ROLE_LABELS.get(role, role)}; review manually")
