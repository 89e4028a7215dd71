"""Filtering, projection, sorting and pagination over collections."""

from fixturekit.query.engine import QueryEngine
from fixturekit.query.predicates import Comparison, Operator, PredicateTree, compile_where
from fixturekit.query.spec import QuerySpec, SortDirection, SortKey

__all__ = [
    "Comparison",
    "Operator",
    "PredicateTree",
    "QueryEngine",
    "QuerySpec",
    "SortDirection",
    "SortKey",
    "compile_where",
]
