"""
Pure parsers and serializers, one per source format.

Parsers take raw text and return a Collection; they never touch the
file system. Errors are raised as ParseError without a descriptor; the
loader attaches it.
"""

import io
import json
import re
from collections.abc import Callable
from datetime import date, datetime, time
from typing import Any

import pandas as pd
import yaml

from fixturekit.errors import ParseError
from fixturekit.schemas.records import Collection, Record, SourceFormat

Parser = Callable[[str], Collection]

# Per-cell numeric coercion; anything else (leading zeros, exponents,
# booleans, blanks) stays a string.
INTEGER_PATTERN = re.compile(r"-?(?:0|[1-9]\d*)")
DECIMAL_PATTERN = re.compile(r"-?(?:0|[1-9]\d*)\.\d+")

_LINE_PATTERN = re.compile(r"\b(?:line|row) (\d+)")


def _records_from(data: Any, fmt: str) -> Collection:
    """Apply the shared top-level shape rules for JSON and YAML."""
    if data is None:
        return Collection()
    if isinstance(data, dict):
        return Collection((data,))
    if isinstance(data, list):
        for index, item in enumerate(data):
            if not isinstance(item, dict):
                msg = (
                    f"{fmt} record at index {index} is a "
                    f"{type(item).__name__}, expected an object"
                )
                raise ParseError(msg)
        return Collection(tuple(data))
    msg = f"{fmt} top level must be an array or object, got {type(data).__name__}"
    raise ParseError(msg)


def parse_json(text: str) -> Collection:
    """
    Parse JSON text into a collection.

    A top-level array of objects becomes the collection; a single object is
    wrapped as a one-record collection.

    Args:
        text: Raw JSON.

    Returns:
        Parsed collection.

    Raises:
        ParseError: On malformed JSON or an unexpected top-level shape.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Malformed JSON: {e.msg}"
        raise ParseError(msg, line=e.lineno, column=e.colno) from e
    return _records_from(data, "JSON")


def coerce_cell(cell: str) -> str | int | float:
    """
    Coerce one CSV cell.

    Only cells whose whole trimmed text is a canonical integer or decimal
    become numbers.
    """
    value = cell.strip()
    if INTEGER_PATTERN.fullmatch(value):
        return int(value)
    if DECIMAL_PATTERN.fullmatch(value):
        return float(value)
    return value


def parse_csv(text: str, delimiter: str = ",") -> Collection:
    """
    Parse CSV text into a collection.

    The first line is the header. Short rows are padded with empty
    strings; rows longer than the header are a parse error.

    Args:
        text: Raw CSV.
        delimiter: Field separator.

    Returns:
        Parsed collection (empty for empty input or a header-only file).

    Raises:
        ParseError: On tokenizer errors, with the offending line.
    """
    if not text.strip():
        return Collection()

    try:
        # header=None keeps pandas from guessing an index column when rows
        # are wider than the header
        df = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            header=None,
            dtype=str,
            na_filter=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return Collection()
    except pd.errors.ParserError as e:
        match = _LINE_PATTERN.search(str(e))
        line = int(match.group(1)) if match else None
        detail = str(e).strip().splitlines()[-1]
        msg = f"Malformed CSV: {detail}"
        raise ParseError(msg, line=line) from e

    rows = df.to_numpy(dtype=object).tolist()
    if not rows:
        return Collection()

    header = [str(h).strip() if isinstance(h, str) else "" for h in rows[0]]
    records: list[Record] = []
    for row in rows[1:]:
        record: Record = {}
        for name, cell in zip(header, row, strict=True):
            record[name] = coerce_cell(cell if isinstance(cell, str) else "")
        records.append(record)

    return Collection(tuple(records))


def _normalize_yaml(value: Any) -> Any:
    """Convert YAML-only scalars (dates, times) into JSON-compatible values."""
    if isinstance(value, dict):
        return {str(k): _normalize_yaml(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize_yaml(v) for v in value]
    if isinstance(value, datetime | date | time):
        return value.isoformat()
    return value


def parse_yaml(text: str) -> Collection:
    """
    Parse YAML text into a collection, with the same shape rules as JSON.

    Args:
        text: Raw YAML.

    Returns:
        Parsed collection (empty for an empty document).

    Raises:
        ParseError: On malformed YAML or an unexpected top-level shape.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark
        line = mark.line + 1 if mark is not None else None
        column = mark.column + 1 if mark is not None else None
        msg = f"Malformed YAML: {e.problem or e}"
        raise ParseError(msg, line=line, column=column) from e
    except yaml.YAMLError as e:
        msg = f"Malformed YAML: {e}"
        raise ParseError(msg) from e
    return _records_from(_normalize_yaml(data), "YAML")


def dump_json(collection: Collection) -> str:
    """Serialize a collection as an indented JSON array."""
    return json.dumps(list(collection), indent=2, ensure_ascii=False)


def dump_csv(collection: Collection, delimiter: str = ",") -> str:
    """
    Serialize a collection as CSV.

    Columns are the union of record fields in first-seen order; nested
    values are written with their Python text form.
    """
    if not collection:
        return ""
    return collection.to_dataframe().to_csv(index=False, sep=delimiter)


def dump_yaml(collection: Collection) -> str:
    """Serialize a collection as a YAML sequence, keeping field order."""
    return yaml.safe_dump(list(collection), sort_keys=False, allow_unicode=True)


def get_parser(fmt: SourceFormat, *, delimiter: str = ",") -> Parser:
    """
    Resolve the parser for a file-backed format.

    Raises:
        KeyError: For GENERATED, which has no text form.
    """
    parsers: dict[SourceFormat, Parser] = {
        SourceFormat.JSON: parse_json,
        SourceFormat.CSV: lambda text: parse_csv(text, delimiter),
        SourceFormat.YAML: parse_yaml,
    }
    return parsers[fmt]


def get_dumper(fmt: SourceFormat, *, delimiter: str = ",") -> Callable[
    [Collection], str
]:
    """
    Resolve the serializer for a file-backed format.

    Raises:
        KeyError: For GENERATED, which has no text form.
    """
    dumpers: dict[SourceFormat, Callable[[Collection], str]] = {
        SourceFormat.JSON: dump_json,
        SourceFormat.CSV: lambda collection: dump_csv(collection, delimiter),
        SourceFormat.YAML: dump_yaml,
    }
    return dumpers[fmt]
