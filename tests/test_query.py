"""Tests for query compilation and evaluation."""

from typing import Any

import pytest

from fixturekit.errors import QuerySpecError
from fixturekit.query import Operator, QueryEngine, QuerySpec, SortDirection, SortKey, compile_where
from fixturekit.schemas.records import Collection


@pytest.fixture
def engine() -> QueryEngine:
    return QueryEngine()


@pytest.fixture
def users(sample_records: list[dict[str, Any]]) -> Collection:
    return Collection.of(sample_records)


def ids(collection: Collection) -> list[Any]:
    return [record["id"] for record in collection]


class TestFilter:
    """Tests for where clauses."""

    def test_filter_and_sort(self, engine: QueryEngine, users: Collection) -> None:
        """active=True ordered by age gives ids 2, 4, 1."""
        result = engine.evaluate(
            users,
            {"where": {"active": True}, "orderBy": [{"field": "age", "direction": "asc"}]},
        )
        assert ids(result) == [2, 4, 1]
        assert [r["age"] for r in result] == [25, 28, 30]

    def test_absent_field_fails_ordering(self, engine: QueryEngine) -> None:
        records = Collection.of([{"id": 1}, {"id": 2, "age": 20}])
        result = engine.evaluate(records, {"where": {"age": {"$gte": 18}}})
        assert ids(result) == [2]

    def test_absent_field_satisfies_ne_and_nin(self, engine: QueryEngine) -> None:
        records = Collection.of([{"id": 1}, {"id": 2, "age": 18}])
        assert ids(engine.evaluate(records, {"where": {"age": {"$ne": 18}}})) == [1]
        assert ids(engine.evaluate(records, {"where": {"age": {"$nin": [18]}}})) == [1]

    def test_strict_types(self, engine: QueryEngine) -> None:
        """Booleans are not numbers and strings never equal numbers."""
        records = Collection.of(
            [{"id": 1, "v": 1}, {"id": 2, "v": True}, {"id": 3, "v": "1"}]
        )
        assert ids(engine.evaluate(records, {"where": {"v": 1}})) == [1]
        assert ids(engine.evaluate(records, {"where": {"v": True}})) == [2]
        assert ids(engine.evaluate(records, {"where": {"v": {"$gt": 0}}})) == [1]
        assert ids(engine.evaluate(records, {"where": {"v": {"$in": ["1", 5]}}})) == [3]
        assert ids(engine.evaluate(records, {"where": {"v": {"$ne": 1}}})) == [2, 3]

    def test_string_ordering(self, engine: QueryEngine) -> None:
        records = Collection.of([{"id": 1, "name": "alice"}, {"id": 2, "name": "bob"}])
        result = engine.evaluate(records, {"where": {"name": {"$lt": "b"}}})
        assert ids(result) == [1]

    def test_range_on_one_field(self, engine: QueryEngine, users: Collection) -> None:
        result = engine.evaluate(users, {"where": {"age": {"$gt": 25, "$lte": 30}}})
        assert ids(result) == [1, 4]

    def test_dot_path(self, engine: QueryEngine) -> None:
        records = Collection.of(
            [
                {"id": 1, "address": {"city": "Berlin"}, "tags": ["a", "b"]},
                {"id": 2, "address": {"city": "Paris"}, "tags": ["c"]},
                {"id": 3, "address": "unknown"},
            ]
        )
        assert ids(engine.evaluate(records, {"where": {"address.city": "Paris"}})) == [2]
        assert ids(engine.evaluate(records, {"where": {"tags.1": "b"}})) == [1]

    def test_nested_equality(self, engine: QueryEngine) -> None:
        records = Collection.of([{"id": 1, "meta": {"a": 1}}, {"id": 2, "meta": {"a": 2}}])
        assert ids(engine.evaluate(records, {"where": {"meta": {"a": 2}}})) == [2]

    def test_nested_equality_is_strict(self, engine: QueryEngine) -> None:
        records = Collection.of(
            [
                {"id": 1, "meta": {"flag": True}, "tags": [1]},
                {"id": 2, "meta": {"flag": 1}, "tags": [True]},
                {"id": 3, "meta": {"flag": {"deep": 0}}, "tags": [[False]]},
            ]
        )
        assert ids(engine.evaluate(records, {"where": {"meta": {"flag": 1}}})) == [2]
        assert ids(engine.evaluate(records, {"where": {"meta": {"flag": True}}})) == [1]
        assert ids(engine.evaluate(records, {"where": {"tags": [1]}})) == [1]
        assert ids(engine.evaluate(records, {"where": {"meta.flag": {"deep": False}}})) == []
        assert ids(engine.evaluate(records, {"where": {"meta": {"$ne": {"flag": 1}}}})) == [1, 3]

    def test_in_with_nested_operands(self, engine: QueryEngine) -> None:
        records = Collection.of(
            [
                {"id": 1, "tags": [1]},
                {"id": 2, "tags": [True]},
                {"id": 3, "point": {"x": 0}},
                {"id": 4, "point": {"x": False}},
            ]
        )
        assert ids(engine.evaluate(records, {"where": {"tags": {"$in": [[True]]}}})) == [2]
        assert ids(engine.evaluate(records, {"where": {"tags": {"$nin": [[1]]}}})) == [2, 3, 4]
        assert ids(engine.evaluate(records, {"where": {"point": {"$in": [{"x": 0}]}}})) == [3]


class TestProjectSortPage:
    """Tests for select, orderBy, skip and limit."""

    def test_select_keeps_order_and_omits_absent(self, engine: QueryEngine) -> None:
        records = Collection.of([{"a": 1, "b": 2, "c": 3}, {"a": 4}])
        result = engine.evaluate(records, {"select": ["c", "a"]})
        assert result.to_list() == [{"c": 3, "a": 1}, {"a": 4}]
        assert list(result[0]) == ["c", "a"]

    def test_sort_by_unselected_field(self, engine: QueryEngine, users: Collection) -> None:
        result = engine.evaluate(
            users,
            {"select": ["id"], "orderBy": [{"field": "age", "direction": "desc"}]},
        )
        assert result.to_list() == [{"id": 3}, {"id": 1}, {"id": 4}, {"id": 2}]

    def test_pagination(self, engine: QueryEngine) -> None:
        """skip 2 limit 3 on ten records gives indices 2, 3, 4."""
        records = Collection.of({"id": i} for i in range(10))
        result = engine.evaluate(records, {"skip": 2, "limit": 3})
        assert ids(result) == [2, 3, 4]

    def test_limit_zero_and_skip_past_end(self, engine: QueryEngine) -> None:
        records = Collection.of({"id": i} for i in range(3))
        assert len(engine.evaluate(records, {"limit": 0})) == 0
        assert len(engine.evaluate(records, {"skip": 5})) == 0

    def test_sort_is_stable(self, engine: QueryEngine) -> None:
        records = Collection.of(
            [
                {"id": "a", "rank": 2},
                {"id": "b", "rank": 1},
                {"id": "c", "rank": 2},
                {"id": "d", "rank": 1},
            ]
        )
        asc = engine.evaluate(records, {"orderBy": [{"field": "rank"}]})
        desc = engine.evaluate(records, {"orderBy": [{"field": "rank", "direction": "desc"}]})
        assert ids(asc) == ["b", "d", "a", "c"]
        assert ids(desc) == ["a", "c", "b", "d"]

    def test_multi_key_sort(self, engine: QueryEngine) -> None:
        records = Collection.of(
            [
                {"id": 1, "team": "b", "score": 5},
                {"id": 2, "team": "a", "score": 3},
                {"id": 3, "team": "b", "score": 9},
                {"id": 4, "team": "a", "score": 7},
            ]
        )
        result = engine.evaluate(records, {"orderBy": ["team:asc", "score:desc"]})
        assert ids(result) == [4, 2, 3, 1]

    def test_mixed_types_sort_order(self, engine: QueryEngine) -> None:
        """Absent and null first, then booleans, numbers and strings."""
        records = Collection.of(
            [
                {"id": 1, "v": "x"},
                {"id": 2, "v": 3},
                {"id": 3},
                {"id": 4, "v": False},
                {"id": 5, "v": None},
            ]
        )
        result = engine.evaluate(records, {"orderBy": [{"field": "v"}]})
        assert ids(result) == [3, 5, 4, 2, 1]

    def test_input_not_modified(self, engine: QueryEngine, users: Collection) -> None:
        before = users.to_list()
        engine.evaluate(users, {"select": ["id"], "orderBy": ["age:desc"], "limit": 1})
        assert users.to_list() == before

    def test_result_does_not_share_records(self, engine: QueryEngine) -> None:
        records = Collection.of([{"id": 1, "meta": {"tags": ["a"]}}])
        result = engine.evaluate(records, {"where": {"id": 1}})
        result[0]["id"] = 2
        result[0]["meta"]["tags"].append("b")
        assert records.to_list() == [{"id": 1, "meta": {"tags": ["a"]}}]

    def test_none_spec_returns_everything(self, engine: QueryEngine, users: Collection) -> None:
        assert engine.evaluate(users, None) == users


class TestQuerySpecValidation:
    """Invalid specs fail at construction."""

    @pytest.mark.parametrize(
        "spec",
        [
            {"where": {"age": {"$regex": "x"}}},
            {"where": {"age": {"$eq": 3}}},
            {"where": {"age": {"$gt": 3, "plain": 1}}},
            {"where": {"age": {"$in": 3}}},
            {"where": {"age": {"$nin": "abc"}}},
            {"where": {"": 1}},
            {"orderBy": [{"field": "age", "direction": "up"}]},
            {"orderBy": [{"direction": "asc"}]},
            {"skip": -1},
            {"limit": -5},
            {"select": "age"},
            {"filter": {}},
        ],
    )
    def test_invalid_spec_raises(self, engine: QueryEngine, spec: dict[str, Any]) -> None:
        with pytest.raises(QuerySpecError):
            engine.evaluate(Collection(), spec)

    def test_query_spec_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            QuerySpec.build(skip=-1)

    def test_compile_where(self) -> None:
        tree = compile_where({"age": {"$gte": 18, "$lt": 65}, "active": True})
        assert [(c.field, c.operator) for c in tree] == [
            ("age", Operator.GTE),
            ("age", Operator.LT),
            ("active", Operator.EQ),
        ]

    def test_sort_key_parsing(self) -> None:
        assert SortKey.parse("age").direction is SortDirection.ASC
        key = SortKey.parse({"field": "address.city", "direction": "desc"})
        assert key.path == ("address", "city")
        assert key.direction is SortDirection.DESC

    def test_order_by_snake_case_accepted(self) -> None:
        spec = QuerySpec.from_dict({"order_by": ["age:desc"]})
        assert spec.order_by[0].field == "age"
