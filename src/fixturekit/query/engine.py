"""
In-memory query evaluation over collections.

The pipeline order is fixed: filter, project, sort, skip, limit.
Evaluation is a pure function of the collection and the query.
"""

import copy
from collections.abc import Mapping
from typing import Any

from fixturekit.query.predicates import MISSING, matches_all, resolve_path, type_class
from fixturekit.query.spec import QuerySpec, SortDirection, SortKey
from fixturekit.schemas.records import Collection, Record

# Cross-type ordering for sort keys; null and absent come first
_SORT_RANK: dict[str, int] = {
    "null": 0,
    "boolean": 1,
    "number": 2,
    "string": 3,
    "object": 4,
    "array": 4,
    "other": 4,
}


def _sort_value(record: Mapping[str, Any], key: SortKey) -> tuple[int, Any]:
    value = resolve_path(record, key.path)
    if value is MISSING:
        return (0, 0)
    cls = type_class(value)
    rank = _SORT_RANK[cls]
    if cls in ("boolean", "number", "string"):
        return (rank, value)
    # Unorderable values tie; the stable sort keeps their input order
    return (rank, 0)


def project(record: Mapping[str, Any], select: tuple[str, ...]) -> Record:
    """
    Keep only the selected fields, in selection order.

    Dotted names are resolved into nested records and stored under the
    dotted name. Absent fields are left out.
    """
    projected: Record = {}
    for field in select:
        value = resolve_path(record, tuple(field.split(".")))
        if value is not MISSING:
            projected[field] = value
    return projected


class QueryEngine:
    """Evaluates QuerySpecs against collections."""

    def evaluate(
        self,
        collection: Collection,
        spec: QuerySpec | Mapping[str, Any] | None,
    ) -> Collection:
        """
        Run a query.

        Args:
            collection: Input collection; never modified.
            spec: Compiled QuerySpec, or a mapping compiled with
                QuerySpec.from_dict.

        Returns:
            New collection with copies of the matching records.

        Raises:
            QuerySpecError: If a mapping spec is invalid. Raised before any
                record is looked at.
        """
        spec = QuerySpec.coerce(spec)

        # Pairs of (source record, output record); sort keys are read from
        # the source so ordering by an unselected field still works.
        rows: list[tuple[Record, Record]] = [
            (record, record)
            for record in collection
            if matches_all(record, spec.where)
        ]

        if spec.select is not None:
            rows = [(source, project(source, spec.select)) for source, _ in rows]

        # Least significant key first; Python's sort is stable, and stays
        # stable with reverse=True.
        for key in reversed(spec.order_by):
            rows.sort(
                key=lambda row, k=key: _sort_value(row[0], k),
                reverse=key.direction is SortDirection.DESC,
            )

        output = [out for _, out in rows]
        end = None if spec.limit is None else spec.skip + spec.limit
        # Results never share record objects with the input collection
        return Collection(tuple(copy.deepcopy(output[spec.skip : end])))
