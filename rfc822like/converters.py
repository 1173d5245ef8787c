"""
Converters - Records to/from JSON and CSV.

Every format goes both ways:
  - to_json / from_json
  - to_csv / from_csv

The to_* side takes records (or mappings); the from_* side returns plain
dicts that the writer accepts directly.
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any, Iterable, Mapping

from rfc822like.document import Record
from rfc822like.spec import MAX_FILE_SIZE


def _as_dict(record: Record | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(record, Record):
        return record.to_dict()
    return dict(record)


# =============================================================================
# JSON
# =============================================================================

def to_json(records: Iterable[Record | Mapping[str, Any]], indent: int = 2) -> str:
    """Convert records to a JSON array of objects (first duplicate key wins)."""
    return json.dumps([_as_dict(r) for r in records], indent=indent, ensure_ascii=False)


def from_json(json_str: str) -> list[dict[str, Any]]:
    """Records from a JSON array of objects.

    Values must be strings, lists of strings or null (omitted on write).
    """
    data = json.loads(json_str)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError("Invalid JSON: expected an array of objects or a single object")

    records = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"Invalid JSON: element {i} is not an object")
        record: dict[str, Any] = {}
        for key, val in item.items():
            if isinstance(val, list):
                if not all(isinstance(v, str) for v in val):
                    raise ValueError(f"Invalid JSON: list {key!r} of element {i} holds non-strings")
            elif val is not None and not isinstance(val, str):
                raise ValueError(
                    f"Invalid JSON: value {key!r} of element {i} is {type(val).__name__}, not a string"
                )
            record[key] = val
        records.append(record)
    return records


# =============================================================================
# CSV
# =============================================================================

def _escape_csv_formula(value: str) -> str:
    """Escape CSV formula injection characters (=, +, -, @, tab, CR, ;).

    Checks the first non-whitespace character so spreadsheet applications
    don't interpret cell content as a formula.
    """
    stripped = value.lstrip()
    if stripped and stripped[0] in ("=", "+", "-", "@", "\t", "\r", ";"):
        return "'" + value
    return value


def to_csv(records: Iterable[Record | Mapping[str, Any]]) -> str:
    """
    Convert records to CSV, one row per record.

    Header is the union of keys in first-seen order; a record without a key
    gets an empty cell. List values are joined with ", ".
    """
    rows = [_as_dict(r) for r in records]
    header: list[str] = []
    seen: set[str] = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                header.append(key)

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow([_escape_csv_formula(k) for k in header])
    for row in rows:
        cells = []
        for key in header:
            val = row.get(key)
            if val is None:
                cells.append("")
            elif isinstance(val, list):
                cells.append(_escape_csv_formula(", ".join(val)))
            else:
                cells.append(_escape_csv_formula(str(val)))
        writer.writerow(cells)
    return buf.getvalue()


def from_csv(csv_str: str) -> list[dict[str, str]]:
    """Records from CSV with a header row. Empty cells are omitted."""
    old_limit = csv.field_size_limit()
    csv.field_size_limit(MAX_FILE_SIZE)
    try:
        reader = csv.reader(io.StringIO(csv_str))
        header = next(reader, None)
        if header is None:
            return []
        records = []
        for row in reader:
            if not any(row):
                continue
            records.append({key: val for key, val in zip(header, row) if val})
        return records
    finally:
        csv.field_size_limit(old_limit)


# =============================================================================
# Lookup by name
# =============================================================================

CONVERTERS_TO = {
    "json": to_json,
    "csv": to_csv,
}

CONVERTERS_FROM = {
    "json": from_json,
    "csv": from_csv,
}


def convert_to(records: Iterable[Record | Mapping[str, Any]], fmt: str) -> str:
    """Convert records to the specified format."""
    converter = CONVERTERS_TO.get(fmt.lower())
    if converter is None:
        raise ValueError(f"Unknown format: {fmt}. Supported: {list(CONVERTERS_TO.keys())}")
    return converter(records)


def convert_from(data: str, fmt: str) -> list[dict[str, Any]]:
    """Records from data in the specified format."""
    converter = CONVERTERS_FROM.get(fmt.lower())
    if converter is None:
        raise ValueError(f"Unknown format: {fmt}. Supported: {list(CONVERTERS_FROM.keys())}")
    return converter(data)
