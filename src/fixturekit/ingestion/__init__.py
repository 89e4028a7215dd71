"""Fixture source parsing, reading and loading."""

from fixturekit.ingestion.loader import SourceLoader, Transformations
from fixturekit.ingestion.parsers import (
    get_dumper,
    get_parser,
    parse_csv,
    parse_json,
    parse_yaml,
)
from fixturekit.ingestion.readers import Reader, Writer, file_reader, file_writer

__all__ = [
    "Reader",
    "SourceLoader",
    "Transformations",
    "Writer",
    "file_reader",
    "file_writer",
    "get_dumper",
    "get_parser",
    "parse_csv",
    "parse_json",
    "parse_yaml",
]
