"""Pytest configuration and shared fixtures."""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import structlog
from fakes import DATA_ROOT, REFERENCE_DATE, FakeClock, InMemoryFiles

from fixturekit.config.settings import CacheConfig, GeneratorConfig, LoaderConfig, ProviderConfig
from fixturekit.provider import DataProvider


@pytest.fixture(autouse=True)
def _reset_structlog_after_test() -> Iterator[None]:
    """Drop structlog configuration bound to streams closed by earlier tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def sample_records() -> list[dict[str, Any]]:
    """Four user records used by filter and sort tests."""
    return [
        {"id": 1, "active": True, "age": 30},
        {"id": 2, "active": True, "age": 25},
        {"id": 3, "active": False, "age": 35},
        {"id": 4, "active": True, "age": 28},
    ]


@pytest.fixture
def users_json() -> str:
    return (
        '[{"id": 1, "name": "Ada", "email": "ada@example.com", '
        '"address": {"city": "London"}},'
        ' {"id": 2, "name": "Grace", "email": "grace@example.com", '
        '"address": {"city": "Arlington"}}]'
    )


@pytest.fixture
def memory_files(users_json: str) -> InMemoryFiles:
    """In-memory files with a users.json fixture."""
    files = InMemoryFiles()
    files.add("users.json", users_json)
    return files


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Configuration pointing at the in-memory data root."""
    return ProviderConfig(
        cache=CacheConfig(ttl_ms=100, max_size=10),
        loader=LoaderConfig(
            data_root=DATA_ROOT,
            environment_paths={"staging": Path("staging")},
            timeout_s=0.2,
        ),
        generators=GeneratorConfig(reference_date=REFERENCE_DATE),
    )


@pytest.fixture
def make_provider(
    provider_config: ProviderConfig,
    memory_files: InMemoryFiles,
    fake_clock: FakeClock,
) -> Callable[..., DataProvider]:
    """Factory for providers wired to the in-memory files and fake clock."""

    def factory(config: ProviderConfig | None = None, **kwargs: Any) -> DataProvider:
        return DataProvider(
            config or provider_config,
            reader=memory_files.read,
            writer=memory_files.write,
            clock=fake_clock,
            **kwargs,
        )

    return factory


@pytest.fixture
def provider(make_provider: Callable[..., DataProvider]) -> DataProvider:
    return make_provider()
