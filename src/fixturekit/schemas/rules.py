"""
Shape rules for fixture records.

Rules are declared once (in code or in the YAML config) and never change
after the provider is constructed.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FieldType(str, Enum):
    """Runtime value types a rule can require."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"

    def matches(self, value: Any) -> bool:
        """Check whether a (non-null) value has this type."""
        if self is FieldType.STRING:
            return isinstance(value, str)
        if self is FieldType.NUMBER:
            # bool is an int subclass but never counts as a number
            return isinstance(value, int | float) and not isinstance(value, bool)
        if self is FieldType.BOOLEAN:
            return isinstance(value, bool)
        if self is FieldType.OBJECT:
            return isinstance(value, Mapping)
        return isinstance(value, list | tuple)


@dataclass(frozen=True)
class ValidationRule:
    """Required fields, expected types and patterns for one record kind."""

    required: tuple[str, ...] = ()
    types: Mapping[str, FieldType] = field(default_factory=dict)
    patterns: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "required", tuple(self.required))
        object.__setattr__(
            self, "types", {k: FieldType(v) for k, v in self.types.items()}
        )
        for name, pattern in self.patterns.items():
            try:
                re.compile(pattern)
            except re.error as e:
                msg = f"Invalid pattern for field {name!r}: {e}"
                raise ValueError(msg) from e
        object.__setattr__(self, "patterns", dict(self.patterns))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ValidationRule":
        """Build a rule from a plain mapping (e.g. parsed YAML)."""
        return cls(
            required=tuple(data.get("required", ())),
            types=dict(data.get("types", {})),
            patterns=dict(data.get("patterns", {})),
        )

    @property
    def known_fields(self) -> frozenset[str]:
        """Every field the rule mentions."""
        return frozenset(self.required) | frozenset(self.types) | frozenset(
            self.patterns
        )


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one record.

    Errors make the record invalid; warnings are informational only.
    """

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
