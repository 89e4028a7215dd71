"""
Query specifications.

A QuerySpec is validated completely when it is built; an invalid spec never
reaches the engine.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fixturekit.errors import QuerySpecError
from fixturekit.query.predicates import PredicateTree, compile_where, split_path


class SortDirection(str, Enum):
    """Sort direction for one orderBy key."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortKey:
    """One orderBy entry."""

    field: str
    path: tuple[str, ...]
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(cls, value: "SortKey | Mapping[str, Any] | str") -> "SortKey":
        """
        Build a sort key from a mapping or a ``field[:direction]`` string.

        Raises:
            QuerySpecError: If the field is missing or the direction is not
                ``asc``/``desc``.
        """
        if isinstance(value, SortKey):
            return value
        if isinstance(value, str):
            field, _, direction = value.partition(":")
            direction = direction or SortDirection.ASC.value
        elif isinstance(value, Mapping):
            if "field" not in value:
                msg = f"orderBy entry needs a 'field': {dict(value)!r}"
                raise QuerySpecError(msg)
            field = value["field"]
            direction = value.get("direction", SortDirection.ASC.value)
        else:
            msg = f"Invalid orderBy entry: {value!r}"
            raise QuerySpecError(msg)

        if isinstance(direction, SortDirection):
            resolved = direction
        else:
            try:
                resolved = SortDirection(direction)
            except ValueError:
                msg = (
                    f"Invalid sort direction {direction!r} for field {field!r};"
                    " expected 'asc' or 'desc'"
                )
                raise QuerySpecError(msg) from None
        return cls(field=field, path=split_path(field), direction=resolved)


def _non_negative(name: str, value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"'{name}' must be an integer, got {value!r}"
        raise QuerySpecError(msg)
    if value < 0:
        msg = f"'{name}' must be >= 0, got {value}"
        raise QuerySpecError(msg)
    return value


@dataclass(frozen=True)
class QuerySpec:
    """Compiled query: filter, projection, ordering and pagination.

    Attributes:
        where: Predicate tree; every comparison must hold.
        select: Fields to keep, in output order, or None for all fields.
        order_by: Sort keys, most significant first.
        skip: Records to drop from the front after sorting.
        limit: Maximum number of records to return, or None.
    """

    where: PredicateTree = ()
    select: tuple[str, ...] | None = None
    order_by: tuple[SortKey, ...] = ()
    skip: int = 0
    limit: int | None = None

    @classmethod
    def build(
        cls,
        where: Mapping[str, Any] | None = None,
        select: Sequence[str] | None = None,
        order_by: Sequence[SortKey | Mapping[str, Any] | str] | None = None,
        skip: int | None = None,
        limit: int | None = None,
    ) -> "QuerySpec":
        """
        Compile and validate a query.

        Args:
            where: Mapping of field path to value or operator object.
            select: Field names to project.
            order_by: Sort keys as mappings ``{field, direction}``,
                ``"field:desc"`` strings or SortKey objects.
            skip: Number of records to skip.
            limit: Maximum number of records.

        Returns:
            Validated QuerySpec.

        Raises:
            QuerySpecError: If any part of the query is invalid.
        """
        if select is not None:
            if isinstance(select, str):
                msg = "'select' must be a list of field names"
                raise QuerySpecError(msg)
            for field in select:
                split_path(field)
            select = tuple(select)
        if order_by is not None and (
            isinstance(order_by, str | Mapping) or not isinstance(order_by, Sequence)
        ):
            msg = "'orderBy' must be a list of sort keys"
            raise QuerySpecError(msg)
        return cls(
            where=compile_where(where),
            select=select,
            order_by=tuple(SortKey.parse(k) for k in order_by or ()),
            skip=_non_negative("skip", skip) or 0,
            limit=_non_negative("limit", limit),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuerySpec":
        """
        Compile a query from a plain mapping.

        Accepts ``orderBy`` or ``order_by`` for the sort keys.

        Raises:
            QuerySpecError: On unknown top-level keys or invalid parts.
        """
        known = {"where", "select", "orderBy", "order_by", "skip", "limit"}
        unknown = set(data) - known
        if unknown:
            msg = f"Unknown query keys: {', '.join(sorted(unknown))}"
            raise QuerySpecError(msg)
        return cls.build(
            where=data.get("where"),
            select=data.get("select"),
            order_by=data.get("orderBy", data.get("order_by")),
            skip=data.get("skip"),
            limit=data.get("limit"),
        )

    @classmethod
    def coerce(cls, value: "QuerySpec | Mapping[str, Any] | None") -> "QuerySpec":
        """Return a QuerySpec unchanged or compile a mapping."""
        if value is None:
            return cls()
        if isinstance(value, QuerySpec):
            return value
        return cls.from_dict(value)
