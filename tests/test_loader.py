"""Tests for SourceLoader dispatch, path resolution and failures."""

import asyncio
import json
from pathlib import Path

import pytest
from fakes import DATA_ROOT, REFERENCE_DATE, InMemoryFiles

from fixturekit.config.settings import LoaderConfig
from fixturekit.errors import (
    ParseError,
    SourceNotFoundError,
    SourceTimeoutError,
    UnsupportedFormatError,
)
from fixturekit.generators import GeneratorRegistry
from fixturekit.ingestion.loader import SourceLoader
from fixturekit.ingestion.parsers import dump_json
from fixturekit.schemas.records import Descriptor, SourceFormat


@pytest.fixture
def loader_config() -> LoaderConfig:
    return LoaderConfig(
        data_root=DATA_ROOT,
        environment_paths={"staging": Path("staging")},
        timeout_s=0.05,
    )


@pytest.fixture
def loader(loader_config: LoaderConfig, memory_files: InMemoryFiles) -> SourceLoader:
    return SourceLoader(
        loader_config,
        memory_files.read,
        GeneratorRegistry.with_defaults(REFERENCE_DATE),
    )


class TestDescriptor:
    """Tests for descriptors and cache keys."""

    def test_cache_key_includes_environment(self) -> None:
        a = Descriptor("users.json", "json")
        b = Descriptor("users.json", "json", environment="staging")
        assert a.cache_key == '["json", null, "users.json"]'
        assert b.cache_key == '["json", "staging", "users.json"]'

    def test_no_environment_differs_from_default_name(self) -> None:
        a = Descriptor("users.json", "json")
        b = Descriptor("users.json", "json", environment="default")
        assert a.cache_key != b.cache_key

    def test_separator_text_does_not_collide(self) -> None:
        a = Descriptor("b:c", "json", environment="a")
        b = Descriptor("c", "json", environment="a:b")
        assert a.cache_key != b.cache_key

    def test_generated_key_includes_count_and_seed(self) -> None:
        a = Descriptor("login", SourceFormat.GENERATED, count=2, seed=1)
        b = Descriptor("login", SourceFormat.GENERATED, count=2, seed=2)
        c = Descriptor("login", SourceFormat.GENERATED, count=2)
        assert a.cache_key != b.cache_key
        assert json.loads(c.cache_key) == ["generated", None, "login", 2, None]

    def test_unknown_format_rejected(self) -> None:
        with pytest.raises(UnsupportedFormatError, match="xml"):
            Descriptor("users.xml", "xml")

    def test_format_is_case_insensitive(self) -> None:
        assert Descriptor("a", "JSON").format is SourceFormat.JSON

    def test_coerce_mapping(self) -> None:
        descriptor = Descriptor.coerce({"path": "users", "format": "csv", "environment": "qa"})
        assert descriptor == Descriptor("users", SourceFormat.CSV, "qa")

    def test_invalid_values(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            Descriptor("", "json")
        with pytest.raises(ValueError, match="count"):
            Descriptor("login", "generated", count=-1)


class TestResolvePath:
    """Tests for data root, environment directories and extensions."""

    def test_plain_path(self, loader: SourceLoader) -> None:
        assert loader.resolve_path(Descriptor("users.json", "json")) == DATA_ROOT / "users.json"

    def test_extension_appended(self, loader: SourceLoader) -> None:
        assert loader.resolve_path(Descriptor("users", "yaml")) == DATA_ROOT / "users.yaml"
        assert loader.resolve_path(Descriptor("nested/users", "csv")) == (
            DATA_ROOT / "nested" / "users.csv"
        )

    def test_environment_directory(self, loader: SourceLoader) -> None:
        staging = Descriptor("users.json", "json", environment="staging")
        unknown = Descriptor("users.json", "json", environment="prod")
        assert loader.resolve_path(staging) == DATA_ROOT / "staging" / "users.json"
        assert loader.resolve_path(unknown) == DATA_ROOT / "users.json"


class TestLoad:
    """Tests for SourceLoader.load."""

    def test_load_json(self, loader: SourceLoader) -> None:
        descriptor = Descriptor("users", "json")
        collection = asyncio.run(loader.load(descriptor))
        assert [r["name"] for r in collection] == ["Ada", "Grace"]
        assert collection.source == descriptor

    def test_load_csv_and_yaml(self, loader: SourceLoader, memory_files: InMemoryFiles) -> None:
        memory_files.add("orders.csv", "id,total\n1,9.99\n")
        memory_files.add("orders.yaml", "- id: 1\n  total: 9.99\n")

        csv = asyncio.run(loader.load(Descriptor("orders", "csv")))
        yaml = asyncio.run(loader.load(Descriptor("orders", "yaml")))
        assert csv == yaml
        assert csv.to_list() == [{"id": 1, "total": 9.99}]

    def test_environment_reads_its_directory(
        self, loader: SourceLoader, memory_files: InMemoryFiles
    ) -> None:
        memory_files.add("staging/users.json", '[{"id": 99}]')
        collection = asyncio.run(loader.load(Descriptor("users", "json", "staging")))
        assert collection.to_list() == [{"id": 99}]

    def test_missing_file(self, loader: SourceLoader) -> None:
        descriptor = Descriptor("nope", "json")
        with pytest.raises(SourceNotFoundError) as exc_info:
            asyncio.run(loader.load(descriptor))
        assert exc_info.value.descriptor == descriptor
        assert "nope.json" in str(exc_info.value)

    @pytest.mark.parametrize(
        "error",
        [
            PermissionError(13, "Permission denied"),
            IsADirectoryError(21, "Is a directory"),
        ],
    )
    def test_unreadable_file(
        self, loader: SourceLoader, memory_files: InMemoryFiles, error: OSError
    ) -> None:
        memory_files.fail("users.json", error)
        descriptor = Descriptor("users", "json")
        with pytest.raises(SourceNotFoundError) as exc_info:
            asyncio.run(loader.load(descriptor))
        assert exc_info.value.descriptor == descriptor
        assert error.strerror in str(exc_info.value)
        assert exc_info.value.__cause__ is error

    def test_parse_error_carries_descriptor(
        self, loader: SourceLoader, memory_files: InMemoryFiles
    ) -> None:
        memory_files.add("broken.json", '{"id": ')
        descriptor = Descriptor("broken", "json")
        with pytest.raises(ParseError) as exc_info:
            asyncio.run(loader.load(descriptor))
        assert exc_info.value.descriptor == descriptor
        assert exc_info.value.line == 1
        assert descriptor.cache_key in str(exc_info.value)

    def test_timeout(self, loader: SourceLoader, memory_files: InMemoryFiles) -> None:
        memory_files.hang = 1
        with pytest.raises(SourceTimeoutError) as exc_info:
            asyncio.run(loader.load(Descriptor("users", "json")))
        assert exc_info.value.descriptor is not None

    def test_round_trip(self, loader: SourceLoader, memory_files: InMemoryFiles) -> None:
        """Load, re-serialize, reload gives an equal collection."""
        first = asyncio.run(loader.load(Descriptor("users", "json")))
        memory_files.add("copy.json", dump_json(first))
        second = asyncio.run(loader.load(Descriptor("copy", "json")))
        assert first == second


class TestGeneratedSources:
    """Tests for generated descriptors."""

    def test_generated_is_reproducible(self, loader: SourceLoader) -> None:
        descriptor = Descriptor("login", "generated", count=3, seed=7)
        first = asyncio.run(loader.load(descriptor))
        second = asyncio.run(loader.load(descriptor))
        assert len(first) == 3
        assert first == second

    def test_generated_does_not_read(
        self, loader: SourceLoader, memory_files: InMemoryFiles
    ) -> None:
        asyncio.run(loader.load(Descriptor("contact", "generated", seed=1)))
        assert memory_files.reads == []

    def test_unknown_scenario(self, loader: SourceLoader) -> None:
        with pytest.raises(SourceNotFoundError, match="Unknown scenario"):
            asyncio.run(loader.load(Descriptor("checkout", "generated")))


class TestTransformations:
    """Tests for per-field transformations."""

    def test_transform_applied(
        self, loader_config: LoaderConfig, memory_files: InMemoryFiles
    ) -> None:
        loader = SourceLoader(
            loader_config,
            memory_files.read,
            GeneratorRegistry(),
            transformations={"name": str.upper},
        )
        collection = asyncio.run(loader.load(Descriptor("users", "json")))
        assert [r["name"] for r in collection] == ["ADA", "GRACE"]

    def test_failing_transform_keeps_value(
        self, loader_config: LoaderConfig, memory_files: InMemoryFiles
    ) -> None:
        loader = SourceLoader(
            loader_config,
            memory_files.read,
            GeneratorRegistry(),
            transformations={"id": lambda v: 1 / 0},
        )
        collection = asyncio.run(loader.load(Descriptor("users", "json")))
        assert [r["id"] for r in collection] == [1, 2]
