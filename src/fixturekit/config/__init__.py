"""
Configuration management with typed Pydantic models.

Provides YAML loading with environment interpolation and base-file
inheritance.
"""

from fixturekit.config.loader import load_config
from fixturekit.config.settings import (
    CacheConfig,
    GeneratorConfig,
    LoaderConfig,
    LoggingConfig,
    ProviderConfig,
    RuleConfig,
    SizeUnit,
)

__all__ = [
    "CacheConfig",
    "GeneratorConfig",
    "LoaderConfig",
    "LoggingConfig",
    "ProviderConfig",
    "RuleConfig",
    "SizeUnit",
    "load_config",
]
