"""
Data contracts for fixtures.

Records, collections and descriptors describe what gets loaded; rules and
results describe how records are checked.
"""

from fixturekit.schemas.records import Collection, Descriptor, Record, SourceFormat
from fixturekit.schemas.registry import BUILTIN_RULES, RuleRegistry
from fixturekit.schemas.rules import FieldType, ValidationResult, ValidationRule

__all__ = [
    "BUILTIN_RULES",
    "Collection",
    "Descriptor",
    "FieldType",
    "Record",
    "RuleRegistry",
    "SourceFormat",
    "ValidationResult",
    "ValidationRule",
]
