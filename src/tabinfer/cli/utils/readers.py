"""
File readers for the CLI.

The engine consumes parsed rows; these helpers turn CSV, Excel and JSON
files into batches of row dicts with pandas, and load schema files for
``tabinfer diff``.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List

import pandas as pd
import yaml

from tabinfer.common.exceptions import FileFormatError, FileReadError

logger = logging.getLogger(__name__)

CSV_SUFFIXES = {".csv", ".tsv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
JSON_SUFFIXES = {".json"}
JSON_LINES_SUFFIXES = {".jsonl", ".ndjson"}

Row = Dict[str, Any]


def sniff_delimiter(file_path: Path) -> str:
    """Delimiter of a CSV file guessed from its first line."""
    with open(file_path, "r", encoding="utf-8", newline="") as file:
        first_line = file.readline()
    try:
        return csv.Sniffer().sniff(first_line, delimiters=",;\t|").delimiter
    except csv.Error:
        return ","


def _records(df: pd.DataFrame) -> List[Row]:
    df.columns = [str(c) for c in df.columns]
    return df.to_dict(orient="records")


def _chunks(rows: List[Row], batch_size: int) -> Iterator[List[Row]]:
    for start in range(0, len(rows), batch_size):
        yield rows[start : start + batch_size]


def _read_json_rows(path: Path) -> List[Row]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise FileFormatError(
            file_path=str(path),
            message="JSON input must be an object or a list of objects",
        )
    return data


def read_batches(file_path: str, batch_size: int = 1000) -> Iterator[List[Row]]:
    """
    Yield the rows of a tabular file in batches.

    Args:
        file_path: CSV/TSV, Excel or JSON/JSON-lines file
        batch_size: Rows per batch

    Raises:
        FileReadError: If the file is missing or cannot be read
        FileFormatError: If the format is unsupported or the content invalid
    """
    path = Path(file_path)
    if not path.exists():
        raise FileReadError(file_path=str(path), message="Input file not found")
    suffix = path.suffix.lower()

    try:
        if suffix in CSV_SUFFIXES:
            reader = pd.read_csv(
                path,
                sep=sniff_delimiter(path),
                chunksize=batch_size,
                low_memory=False,
            )
            for chunk in reader:
                yield _records(chunk)
        elif suffix in EXCEL_SUFFIXES:
            yield from _chunks(_records(pd.read_excel(path)), batch_size)
        elif suffix in JSON_LINES_SUFFIXES:
            for chunk in pd.read_json(path, lines=True, chunksize=batch_size):
                yield _records(chunk)
        elif suffix in JSON_SUFFIXES:
            yield from _chunks(_read_json_rows(path), batch_size)
        else:
            raise FileFormatError(
                file_path=str(path),
                message="Unsupported file type",
                details={"suffix": suffix},
            )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, json.JSONDecodeError) as e:
        raise FileFormatError(
            file_path=str(path),
            message="Could not parse input file",
            details={"error": str(e)},
        ) from e
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(
            file_path=str(path),
            message="Could not read input file",
            details={"error": str(e)},
        ) from e


def read_schema_file(file_path: str) -> Dict[str, Any]:
    """
    Load a schema from a JSON or YAML file.

    Either a JSON-schema-like object with ``properties`` or a plain
    ``{field: type}`` mapping.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileReadError(file_path=str(path), message="Schema file not found")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise FileFormatError(
            file_path=str(path),
            message="Invalid schema file",
            details={"error": str(e)},
        ) from e
    if not isinstance(data, dict):
        raise FileFormatError(
            file_path=str(path),
            message="Schema must be a mapping",
            details={"type": type(data).__name__},
        )
    return data


def read_state_file(file_path: str) -> Dict[str, Any]:
    """Load engine state saved with ``--save-state``."""
    path = Path(file_path)
    if not path.exists():
        raise FileReadError(file_path=str(path), message="State file not found")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise FileFormatError(
            file_path=str(path), message="Invalid state file", details={"error": str(e)}
        ) from e
    if not isinstance(data, dict):
        raise FileFormatError(file_path=str(path), message="State must be a JSON object")
    return data


def write_state_file(file_path: str, state: Dict[str, Any]) -> None:
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2, default=str)
    logger.info("Saved engine state to %s", path)
