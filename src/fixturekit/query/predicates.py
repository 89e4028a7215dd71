"""
Closed representation of a query's ``where`` clause.

A where clause such as ``{"age": {"$gte": 18}, "active": True}`` is compiled
once into a tuple of Comparison leaves. Unknown operators are rejected at
compile time, so evaluation never inspects raw query objects.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fixturekit.errors import QuerySpecError


class Operator(str, Enum):
    """Comparison operators. EQ is only produced by bare values."""

    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"


# Operators accepted inside an operator object
QUERY_OPERATORS: frozenset[str] = frozenset(
    op.value for op in Operator if op is not Operator.EQ
)

_ABSENT_MATCHES = frozenset({Operator.NE, Operator.NIN})
_ORDERED_CLASSES = frozenset({"number", "string"})


class _Missing:
    """Marker for a path that does not resolve."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def type_class(value: Any) -> str:
    """
    Classify a value for strict comparison.

    Args:
        value: Any record value.

    Returns:
        One of null, boolean, number, string, object, array, other.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, list | tuple):
        return "array"
    return "other"


def strict_equals(left: Any, right: Any) -> bool:
    """
    Equality without cross-type coercion (``True != 1``).

    Objects and arrays are compared member by member with the same rule,
    so ``{"flag": True}`` never equals ``{"flag": 1}``.
    """
    cls = type_class(left)
    if cls != type_class(right):
        return False
    if cls == "object":
        if left.keys() != right.keys():
            return False
        return all(strict_equals(left[k], right[k]) for k in left)
    if cls == "array":
        if len(left) != len(right):
            return False
        return all(strict_equals(a, b) for a, b in zip(left, right))
    return bool(left == right)


def resolve_path(record: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    """
    Resolve a dot-path inside a record.

    Digit segments index into lists.

    Args:
        record: Record to look into.
        path: Path segments, e.g. ("address", "city").

    Returns:
        The value, or MISSING when any segment does not resolve.
    """
    current: Any = record
    for segment in path:
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, list | tuple) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def split_path(field: str) -> tuple[str, ...]:
    """Split a dotted field name, rejecting empty segments."""
    if not isinstance(field, str) or not field:
        msg = f"Field name must be a non-empty string, got {field!r}"
        raise QuerySpecError(msg)
    segments = tuple(field.split("."))
    if any(not s for s in segments):
        msg = f"Invalid field path {field!r}"
        raise QuerySpecError(msg)
    return segments


@dataclass(frozen=True)
class Comparison:
    """One leaf of the predicate tree: ``<field> <operator> <operand>``."""

    field: str
    path: tuple[str, ...]
    operator: Operator
    operand: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        """Evaluate the comparison against a record."""
        value = resolve_path(record, self.path)
        if value is MISSING:
            return self.operator in _ABSENT_MATCHES

        op = self.operator
        if op is Operator.EQ:
            return strict_equals(value, self.operand)
        if op is Operator.NE:
            return not strict_equals(value, self.operand)
        if op is Operator.IN:
            return any(strict_equals(value, item) for item in self.operand)
        if op is Operator.NIN:
            return not any(strict_equals(value, item) for item in self.operand)

        value_class = type_class(value)
        if value_class not in _ORDERED_CLASSES:
            return False
        if value_class != type_class(self.operand):
            return False
        if op is Operator.GT:
            return value > self.operand
        if op is Operator.GTE:
            return value >= self.operand
        if op is Operator.LT:
            return value < self.operand
        return value <= self.operand


PredicateTree = tuple[Comparison, ...]


def _is_operator_object(condition: Any) -> bool:
    return isinstance(condition, Mapping) and any(
        isinstance(k, str) and k.startswith("$") for k in condition
    )


def compile_where(where: Mapping[str, Any] | None) -> PredicateTree:
    """
    Compile a where mapping into a predicate tree.

    A bare value means equality. A mapping whose keys start with ``$`` is an
    operator object; a mapping without such keys is compared for equality
    as a nested record.

    Args:
        where: Mapping of field path to value or operator object.

    Returns:
        Tuple of comparisons, all of which must hold.

    Raises:
        QuerySpecError: On unknown operators, mixed keys or bad operands.
    """
    if where is None:
        return ()
    if not isinstance(where, Mapping):
        msg = f"'where' must be a mapping, got {type(where).__name__}"
        raise QuerySpecError(msg)

    comparisons: list[Comparison] = []
    for field, condition in where.items():
        path = split_path(field)
        if not _is_operator_object(condition):
            comparisons.append(Comparison(field, path, Operator.EQ, condition))
            continue

        for key, operand in condition.items():
            if key not in QUERY_OPERATORS:
                if isinstance(key, str) and key.startswith("$"):
                    msg = f"Unknown operator {key!r} on field {field!r}"
                else:
                    msg = (
                        f"Cannot mix operators and plain keys on field {field!r}"
                    )
                raise QuerySpecError(msg)
            operator = Operator(key)
            if operator in (Operator.IN, Operator.NIN):
                if isinstance(operand, str) or not isinstance(operand, Sequence):
                    msg = f"{key} on field {field!r} needs a list operand"
                    raise QuerySpecError(msg)
                operand = tuple(operand)
            comparisons.append(Comparison(field, path, operator, operand))
    return tuple(comparisons)


def matches_all(record: Mapping[str, Any], predicates: PredicateTree) -> bool:
    """Whether a record satisfies every comparison."""
    return all(c.matches(record) for c in predicates)
