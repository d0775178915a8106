"""
Configuration loader with deep merge.

Precedence order (lowest to highest):
1. Defaults (defined in the Pydantic schemas)
2. YAML file
3. Environment variables
4. CLI arguments

The merge is recursive to preserve every key at every level. Lists (such as
``catalog.sources``) are replaced, not concatenated.
"""

import os
from pathlib import Path
from typing import Any

import yaml

from .schema import AppConfig


class ConfigFileError(ValueError):
    """The configuration file is not valid YAML or not a mapping."""

    pass


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursive dictionary merge.

    Args:
        base: Base dictionary
        override: Dictionary whose values win over base

    Returns:
        New merged dictionary. Override wins on leaf conflicts.

    Example:
        >>> deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"b": 99}, "e": 4})
        {'a': {'b': 99, 'c': 2}, 'e': 4}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_config(config_path: Path | None) -> dict[str, Any]:
    """Load configuration from a YAML file.

    Relative ``catalog.sources`` entries are resolved against the directory of
    the config file, so a config can sit next to its catalogs.

    Args:
        config_path: Path to the YAML file, or None to skip

    Returns:
        Configuration dictionary, or an empty dict when there is no file

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigFileError: If the YAML is invalid or its top level is not a mapping.
    """
    if not config_path:
        return {}

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid configuration YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(
            f"Configuration file {config_path} must contain a mapping, "
            f"got {type(data).__name__}"
        )

    catalog = data.get("catalog")
    if isinstance(catalog, dict) and catalog.get("sources"):
        sources = catalog["sources"]
        if isinstance(sources, (str, Path)):
            sources = [sources]
        base_dir = config_path.parent
        catalog["sources"] = [
            str(p) if Path(p).is_absolute() else str(base_dir / p) for p in sources
        ]
    return data


def load_env_overrides() -> dict[str, Any]:
    """Load overrides from environment variables.

    Supported variables:
        SKILLMATRIX_CATALOG: overrides catalog.sources (os.pathsep separated)
        SKILLMATRIX_LOG_LEVEL: overrides logging.level

    Returns:
        Dictionary with overrides from env vars
    """
    overrides: dict[str, Any] = {}

    if catalog := os.environ.get("SKILLMATRIX_CATALOG"):
        sources = [p for p in catalog.split(os.pathsep) if p]
        if sources:
            overrides.setdefault("catalog", {})["sources"] = sources

    if log_level := os.environ.get("SKILLMATRIX_LOG_LEVEL"):
        overrides.setdefault("logging", {})["level"] = log_level.lower()

    return overrides


def apply_cli_overrides(config_dict: dict[str, Any], cli_args: dict[str, Any]) -> dict[str, Any]:
    """Apply overrides from CLI arguments.

    Args:
        config_dict: Base configuration (already merged with YAML and env)
        cli_args: Dictionary of CLI arguments

    Returns:
        Configuration with CLI overrides applied
    """
    overrides: dict[str, Any] = {}

    if cli_args.get("catalog"):
        overrides.setdefault("catalog", {})["sources"] = [str(p) for p in cli_args["catalog"]]

    if cli_args.get("log_level"):
        overrides.setdefault("logging", {})["level"] = cli_args["log_level"]

    if cli_args.get("log_file"):
        overrides.setdefault("logging", {})["file"] = cli_args["log_file"]

    if cli_args.get("verbose") is not None:
        overrides.setdefault("logging", {})["verbose"] = cli_args["verbose"]

    return deep_merge(config_dict, overrides)


def load_config(
    config_path: Path | None = None,
    cli_args: dict[str, Any] | None = None,
) -> AppConfig:
    """Load and validate the complete application configuration.

    Args:
        config_path: Path to the YAML configuration file
        cli_args: Dictionary of CLI arguments

    Returns:
        Validated, complete AppConfig

    Raises:
        FileNotFoundError: If config_path does not exist
        ValidationError: If the final configuration is not valid
    """
    cli_args = cli_args or {}

    yaml_config = load_yaml_config(config_path)
    merged = deep_merge(yaml_config, load_env_overrides())
    merged = apply_cli_overrides(merged, cli_args)

    # Pydantic applies the defaults for anything still missing
    return AppConfig(**merged)
