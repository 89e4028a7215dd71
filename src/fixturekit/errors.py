"""
Exception taxonomy for fixture loading and querying.

Load failures carry the descriptor that failed so callers can report
which source broke. Validation failures are never raised; they are
returned as ValidationResult data.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fixturekit.schemas.records import Descriptor


class FixtureError(Exception):
    """Base class for all fixturekit errors."""

    def __init__(self, message: str, descriptor: "Descriptor | None" = None) -> None:
        super().__init__(message)
        self.message = message
        self.descriptor = descriptor

    def __str__(self) -> str:
        if self.descriptor is None:
            return self.message
        return f"{self.message} [{self.descriptor.cache_key}]"


class SourceNotFoundError(FixtureError):
    """The reader could not resolve the source path or scenario."""


class UnsupportedFormatError(FixtureError):
    """The format tag is not one of the supported source formats."""


class ParseError(FixtureError):
    """Source content is malformed.

    Attributes:
        line: 1-based line of the failure, when the parser reports one.
        column: 1-based column of the failure, when the parser reports one.
    """

    def __init__(
        self,
        message: str,
        descriptor: "Descriptor | None" = None,
        *,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message, descriptor)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        location = ""
        if self.line is not None:
            location = f" (line {self.line}"
            if self.column is not None:
                location += f", column {self.column}"
            location += ")"
        base = f"{self.message}{location}"
        if self.descriptor is None:
            return base
        return f"{base} [{self.descriptor.cache_key}]"


class SourceTimeoutError(FixtureError):
    """The reader did not finish within the configured timeout."""


class QuerySpecError(FixtureError, ValueError):
    """A query uses an unknown operator or invalid option."""
