"""
Configuration loading utilities.

Supports environment variable interpolation and inheritance from a
``base.yaml`` beside the config file. Every section is optional; an
empty file gives the defaults.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from fixturekit.config.settings import ProviderConfig

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def _interpolate_env_vars(value: str) -> str:
    """
    Interpolate environment variables in string values.

    Supports ${VAR} and ${VAR:default} syntax; unset variables without a
    default become empty strings.
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return _ENV_PATTERN.sub(replacer, value)


def _process_config_values(obj: Any) -> Any:
    """Recursively interpolate env vars in strings."""
    if isinstance(obj, str):
        return _interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _process_config_values(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_process_config_values(item) for item in obj]
    return obj


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict[str, Any]:
    """
    Load a YAML mapping and interpolate environment variables.

    Raises:
        ValueError: If the document is not a mapping.
    """
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not data:
        return {}
    if not isinstance(data, dict):
        msg = f"Config file {path} must contain a mapping, got {type(data).__name__}"
        raise ValueError(msg)
    return _process_config_values(data)


def load_config(
    config_path: Path,
    base_path: Path | None = None,
) -> ProviderConfig:
    """
    Load provider configuration from YAML file(s).

    Example::

        cache:
          ttl_ms: ${FIXTURE_CACHE_TTL:60000}
          max_size: 50
        loader:
          data_root: ./test-data
          environment_paths:
            staging: staging
        rules:
          order:
            required: [id, total]
            types: {total: number}

    Args:
        config_path: Path to the main configuration file.
        base_path: Optional base configuration; defaults to ``base.yaml``
            in the same directory when present.

    Returns:
        Validated ProviderConfig.

    Raises:
        pydantic.ValidationError: If a value has the wrong type or range.
    """
    if base_path is not None:
        base_data = load_yaml(base_path)
    else:
        potential_base = config_path.parent / "base.yaml"
        use_base = potential_base.exists() and potential_base.resolve() != config_path.resolve()
        base_data = load_yaml(potential_base) if use_base else {}

    merged = _deep_merge(base_data, load_yaml(config_path))
    return ProviderConfig.model_validate(merged)
