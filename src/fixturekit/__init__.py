"""
fixturekit: multi-source test fixture provider.

This package loads fixture records from JSON, CSV, YAML and seeded
generators, validates them against named shape rules, caches loaded
collections and answers in-memory queries over them.
"""

from importlib.metadata import version

__version__ = version("fixturekit")

from fixturekit.provider import DataProvider, GeneratedData  # noqa: E402
from fixturekit.query.spec import QuerySpec  # noqa: E402
from fixturekit.schemas.records import Collection, Descriptor, SourceFormat  # noqa: E402

__all__ = [
    "Collection",
    "DataProvider",
    "Descriptor",
    "GeneratedData",
    "QuerySpec",
    "SourceFormat",
    "__version__",
]
