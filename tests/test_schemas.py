"""Tests for record, collection and rule definitions."""

import json

import pandas as pd
import pytest

from fixturekit.errors import UnsupportedFormatError
from fixturekit.schemas import (
    BUILTIN_RULES,
    Collection,
    Descriptor,
    FieldType,
    RuleRegistry,
    SourceFormat,
    ValidationRule,
)


class TestSourceFormat:
    """Tests for SourceFormat."""

    @pytest.mark.parametrize("tag", ["json", "JSON", " Json "])
    def test_parse_is_case_insensitive(self, tag: str) -> None:
        assert SourceFormat.parse(tag) is SourceFormat.JSON

    def test_unsupported_format(self) -> None:
        with pytest.raises(UnsupportedFormatError, match="xml"):
            SourceFormat.parse("xml")

    def test_extension(self) -> None:
        assert SourceFormat.CSV.extension == ".csv"
        assert SourceFormat.GENERATED.extension is None


class TestDescriptor:
    """Tests for Descriptor."""

    def test_coerce_mapping(self) -> None:
        descriptor = Descriptor.coerce({"path": "users", "format": "yaml", "environment": "ci"})
        assert descriptor == Descriptor("users", SourceFormat.YAML, "ci")

    def test_empty_path_rejected(self) -> None:
        with pytest.raises(ValueError, match="path"):
            Descriptor("", SourceFormat.JSON)

    def test_negative_count_rejected(self) -> None:
        with pytest.raises(ValueError, match="count"):
            Descriptor("login", SourceFormat.GENERATED, count=-1)

    def test_generated_key_includes_count_and_seed(self) -> None:
        a = Descriptor("login", SourceFormat.GENERATED, count=2, seed=1)
        b = Descriptor("login", SourceFormat.GENERATED, count=3, seed=1)
        assert a.cache_key != b.cache_key
        assert json.loads(a.cache_key) == ["generated", None, "login", 2, 1]


class TestCollection:
    """Tests for Collection."""

    def test_equality_ignores_source(self) -> None:
        records = [{"id": 1}]
        assert Collection.of(records, Descriptor("a", "json")) == Collection.of(records)

    def test_to_list_is_a_deep_copy(self) -> None:
        collection = Collection.of([{"id": 1, "tags": ["x"]}])
        copied = collection.to_list()
        copied[0]["tags"].append("y")
        assert collection[0]["tags"] == ["x"]

    def test_copy_shares_no_records(self) -> None:
        source = Descriptor("a", "json")
        collection = Collection.of([{"id": 1, "tags": ["x"]}], source)
        copied = collection.copy()
        copied[0]["tags"].append("y")
        assert copied.source == source
        assert collection[0]["tags"] == ["x"]

    def test_to_dataframe(self) -> None:
        df = Collection.of([{"id": 1, "name": "a"}, {"id": 2}]).to_dataframe()
        assert list(df.columns) == ["id", "name"]
        assert pd.isna(df.loc[1, "name"])

    def test_empty_collection_is_falsy(self) -> None:
        assert not Collection()
        assert len(Collection()) == 0


class TestFieldType:
    """Tests for FieldType.matches."""

    @pytest.mark.parametrize(
        ("field_type", "value", "expected"),
        [
            (FieldType.STRING, "x", True),
            (FieldType.STRING, 1, False),
            (FieldType.NUMBER, 1, True),
            (FieldType.NUMBER, 1.5, True),
            (FieldType.NUMBER, False, False),
            (FieldType.BOOLEAN, True, True),
            (FieldType.BOOLEAN, 0, False),
            (FieldType.OBJECT, {"a": 1}, True),
            (FieldType.OBJECT, [], False),
            (FieldType.ARRAY, [1], True),
            (FieldType.ARRAY, "abc", False),
        ],
    )
    def test_matches(self, field_type: FieldType, value: object, expected: bool) -> None:
        assert field_type.matches(value) is expected


class TestRuleRegistry:
    """Tests for RuleRegistry."""

    def test_builtin_rules(self) -> None:
        registry = RuleRegistry.with_defaults()
        assert set(registry.list_rules()) == {"login", "registration", "payment", "contact"}
        assert registry["login"] is BUILTIN_RULES["login"]

    def test_extras_override_builtins(self) -> None:
        registry = RuleRegistry.with_defaults(
            {"login": {"required": ["token"]}, "order": ValidationRule(required=("id",))}
        )
        assert registry["login"].required == ("token",)
        assert registry["order"].required == ("id",)
        assert len(registry) == 5

    def test_get_rule_unknown(self) -> None:
        with pytest.raises(KeyError, match="Unknown rule 'order'"):
            RuleRegistry.with_defaults().get_rule("order")

    def test_registry_is_detached_from_source(self) -> None:
        rules = {"a": ValidationRule()}
        registry = RuleRegistry(rules)
        rules["b"] = ValidationRule()
        assert "b" not in registry

    def test_empty_registry(self) -> None:
        registry = RuleRegistry()
        assert len(registry) == 0
        assert registry.get("login") is None
