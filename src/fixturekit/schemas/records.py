"""
Records, collections and source descriptors.

A Collection is the unit that gets loaded, cached and queried. It is
immutable: every operation that changes records returns a new Collection.
"""

import copy
import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import pandas as pd

from fixturekit.errors import UnsupportedFormatError

Record = dict[str, Any]


class SourceFormat(str, Enum):
    """Closed set of supported source formats."""

    JSON = "json"
    CSV = "csv"
    YAML = "yaml"
    GENERATED = "generated"

    @property
    def extension(self) -> str | None:
        """Default file extension for file-backed formats."""
        if self is SourceFormat.GENERATED:
            return None
        return f".{self.value}"

    @classmethod
    def parse(cls, value: "str | SourceFormat") -> "SourceFormat":
        """
        Resolve a format tag.

        Args:
            value: Format tag or enum member (case-insensitive).

        Returns:
            The matching SourceFormat.

        Raises:
            UnsupportedFormatError: If the tag is not recognized.
        """
        if isinstance(value, SourceFormat):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            supported = ", ".join(f.value for f in cls)
            msg = f"Unsupported format {value!r}. Supported: {supported}"
            raise UnsupportedFormatError(msg) from None


@dataclass(frozen=True)
class Descriptor:
    """Identifies a fixture source.

    For generated sources, ``path`` is the scenario name and ``count``/``seed``
    parameterize the generator.
    """

    path: str
    format: SourceFormat
    environment: str | None = None
    count: int = 1
    seed: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "format", SourceFormat.parse(self.format))
        if not self.path:
            msg = "Descriptor path must not be empty"
            raise ValueError(msg)
        if self.count < 0:
            msg = f"Descriptor count must be >= 0, got {self.count}"
            raise ValueError(msg)

    @classmethod
    def coerce(cls, value: "Descriptor | Mapping[str, Any]") -> "Descriptor":
        """Build a Descriptor from a mapping, or return it unchanged."""
        if isinstance(value, Descriptor):
            return value
        return cls(
            path=str(value["path"]),
            format=value["format"],
            environment=value.get("environment"),
            count=int(value.get("count", 1)),
            seed=value.get("seed"),
        )

    @property
    def cache_key(self) -> str:
        """
        Deterministic cache identity for this source.

        Encoded as a JSON array, so path and environment text never run
        together and a missing environment (null) never equals a named
        one. Generated sources also carry count and seed.
        """
        parts: list[Any] = [self.format.value, self.environment, self.path]
        if self.format is SourceFormat.GENERATED:
            parts += [self.count, self.seed]
        return json.dumps(parts, ensure_ascii=False)


@dataclass(frozen=True)
class Collection:
    """Ordered, immutable sequence of records.

    Equality compares records only; the originating descriptor is kept for
    diagnostics.
    """

    records: tuple[Record, ...] = ()
    source: Descriptor | None = field(default=None, compare=False)

    @classmethod
    def of(
        cls,
        records: Iterable[Mapping[str, Any]],
        source: Descriptor | None = None,
    ) -> "Collection":
        """Build a collection from any iterable of mappings."""
        return cls(tuple(dict(r) for r in records), source)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __getitem__(self, index: int) -> Record:
        return self.records[index]

    def __bool__(self) -> bool:
        return bool(self.records)

    def to_list(self) -> list[Record]:
        """Deep copy of the records, safe for callers to mutate."""
        return copy.deepcopy(list(self.records))

    def copy(self) -> "Collection":
        """Deep copy sharing no record objects with this collection."""
        return Collection(tuple(copy.deepcopy(self.records)), self.source)

    def to_dataframe(self) -> pd.DataFrame:
        """
        Tabular view of the collection.

        Nested records stay as dict objects in their cells.

        Returns:
            DataFrame with one row per record.
        """
        return pd.DataFrame.from_records(list(self.records))
