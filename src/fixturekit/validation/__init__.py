"""Record validation: per-record checks, batch frame checks and reporting."""

from fixturekit.validation.core import SchemaValidator, check_record
from fixturekit.validation.frame import FrameReport, build_frame_schema, validate_frame
from fixturekit.validation.reporter import ConsoleReporter

__all__ = [
    "ConsoleReporter",
    "FrameReport",
    "SchemaValidator",
    "build_frame_schema",
    "check_record",
    "validate_frame",
]
