"""
Typed configuration models using Pydantic.

Every tunable of the fixture provider lives here: cache bounds, source
locations, generator dates, validation rules and logging.
"""

from datetime import date
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fixturekit.schemas.rules import FieldType, ValidationRule
from fixturekit.utils.logging import LEVELS


class SizeUnit(str, Enum):
    """What the cache's max_size counts."""

    ENTRIES = "entries"  # one unit per cached collection
    RECORDS = "records"  # one unit per record in a cached collection


class CacheConfig(BaseModel):
    """Cache configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=True, description="Cache loaded collections")
    ttl_ms: int = Field(
        default=300_000, ge=0, description="Entry lifetime in milliseconds"
    )
    max_size: int = Field(default=100, ge=0, description="Size bound in size units")
    size_unit: SizeUnit = Field(
        default=SizeUnit.ENTRIES, description="Unit that max_size counts"
    )


class LoaderConfig(BaseModel):
    """Source location and parsing configuration.

    Paths in descriptors are relative to ``data_root``. An environment with
    an entry in ``environment_paths`` reads from that sub-directory.
    """

    model_config = ConfigDict(frozen=True)

    data_root: Path = Field(
        default=Path("./test-data"), description="Root directory for fixture files"
    )
    environment_paths: dict[str, Path] = Field(
        default_factory=dict,
        description="Environment name -> sub-directory of data_root",
    )
    timeout_s: float = Field(
        default=10.0, gt=0, description="Timeout in seconds for a single source read"
    )
    csv_delimiter: str = Field(default=",", description="CSV field separator")
    encoding: str = Field(default="utf-8", description="Fixture file encoding")

    @field_validator("csv_delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Ensure the delimiter is a single character."""
        if len(v) != 1:
            msg = f"csv_delimiter must be a single character, got: {v!r}"
            raise ValueError(msg)
        return v


class GeneratorConfig(BaseModel):
    """Synthetic data configuration."""

    model_config = ConfigDict(frozen=True)

    reference_date: date | None = Field(
        default=None,
        description="Date treated as 'today' by generators (defaults to today)",
    )


class RuleConfig(BaseModel):
    """A validation rule as written in YAML."""

    model_config = ConfigDict(frozen=True)

    required: list[str] = Field(default_factory=list)
    types: dict[str, FieldType] = Field(default_factory=dict)
    patterns: dict[str, str] = Field(default_factory=dict)

    def to_rule(self) -> ValidationRule:
        """Convert to the runtime rule type."""
        return ValidationRule(
            required=tuple(self.required),
            types=dict(self.types),
            patterns=dict(self.patterns),
        )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO", description="Log level name")
    json_output: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize the level name to upper case."""
        name = v.upper()
        if name not in LEVELS:
            msg = f"level must be one of {', '.join(LEVELS)}, got: {v!r}"
            raise ValueError(msg)
        return name


class ProviderConfig(BaseModel):
    """Complete fixture provider configuration."""

    model_config = ConfigDict(frozen=True)

    cache: CacheConfig = Field(default_factory=CacheConfig)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    generators: GeneratorConfig = Field(default_factory=GeneratorConfig)
    rules: dict[str, RuleConfig] = Field(
        default_factory=dict,
        description="Validation rules added to (or overriding) the built-ins",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def validation_rules(self) -> dict[str, ValidationRule]:
        """Configured rules as runtime ValidationRule objects."""
        return {name: rule.to_rule() for name, rule in self.rules.items()}
