"""Spreadsheet export of submitted records.

Records are canonical output records (keyed by backend name). On export,
enumerated codes are mapped back to the legacy numeric codes older reports
expect; ``read_export`` reverses the mapping.

Uses pandas for tabular I/O and openpyxl as the ``.xlsx`` engine.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Union

import pandas as pd

from intake.form.catalog import from_legacy, to_legacy
from intake.form.models.field_metadata import FIELD_SCHEMA, FieldSchema

logger = logging.getLogger(__name__)

__all__ = [
    "SHEET_NAME",
    "export_records",
    "from_legacy_codes",
    "read_export",
    "to_frame",
    "to_legacy_codes",
]

SHEET_NAME = "Estudiantes"
SUPPORTED_SUFFIXES = (".xlsx", ".csv")


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def to_legacy_codes(record: Mapping[str, Any], schema: FieldSchema = FIELD_SCHEMA) -> Dict[str, Any]:
    """Replace enumerated codes with legacy codes; other values unchanged."""
    definitions = schema.by_backend_name()
    row: Dict[str, Any] = {}
    for name, value in record.items():
        definition = definitions.get(name)
        if definition is not None and definition.options_category and isinstance(value, str):
            row[name] = to_legacy(definition.options_category, value)
        else:
            row[name] = value
    return row


def from_legacy_codes(row: Mapping[str, Any], schema: FieldSchema = FIELD_SCHEMA) -> Dict[str, Any]:
    """Reverse of ``to_legacy_codes`` for one spreadsheet row.

    Empty cells are dropped and numeric fields come back as ints.
    """
    definitions = schema.by_backend_name()
    record: Dict[str, Any] = {}
    for name, value in row.items():
        if _is_missing(value) or value == "":
            continue
        definition = definitions.get(name)
        if definition is None:
            record[name] = value
        elif definition.options_category:
            record[name] = from_legacy(definition.options_category, value)
        elif definition.numeric and str(value).strip().isdigit():
            record[name] = int(str(value).strip())
        elif isinstance(value, float) and value.is_integer():
            record[name] = str(int(value))
        else:
            record[name] = value if definition.numeric else str(value)
    return record


def to_frame(records: Iterable[Mapping[str, Any]], schema: FieldSchema = FIELD_SCHEMA) -> pd.DataFrame:
    """Build a DataFrame with schema columns first, extra keys after."""
    rows = [to_legacy_codes(record, schema) for record in records]
    columns: List[str] = [d.backend_name for d in schema]
    for row in rows:
        for name in row:
            if name not in columns:
                columns.append(name)
    return pd.DataFrame(rows, columns=columns)


def export_records(
    records: Iterable[Mapping[str, Any]],
    path: Union[str, Path],
    schema: FieldSchema = FIELD_SCHEMA,
) -> Path:
    """Write records to ``.xlsx`` or ``.csv``, chosen by file suffix."""
    path = Path(path)
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise ValueError(
            f"Unsupported export format '{path.suffix}'. Use one of: {', '.join(SUPPORTED_SUFFIXES)}"
        )

    df = to_frame(records, schema)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".xlsx":
        df.to_excel(path, index=False, sheet_name=SHEET_NAME, engine="openpyxl")
    else:
        df.to_csv(path, index=False)

    logger.info("Exported %d record(s) to %s", len(df), path)
    return path


def read_export(path: Union[str, Path], schema: FieldSchema = FIELD_SCHEMA) -> List[Dict[str, Any]]:
    """Read a file written by ``export_records`` back into records."""
    path = Path(path)
    if path.suffix.lower() == ".xlsx":
        df = pd.read_excel(
            path, sheet_name=SHEET_NAME, engine="openpyxl", dtype=object, keep_default_na=False
        )
    else:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return [from_legacy_codes(row, schema) for row in df.to_dict(orient="records")]
