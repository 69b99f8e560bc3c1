"""Loading MappingOptions from the environment and YAML files.

Priority (later wins):
1. Defaults from MappingOptions
2. YAML file named by MAPWITH_CONFIG_PATH (or passed explicitly)
3. Individual MAPWITH_* environment variables

YAML files may hold the options flat or under a top-level ``mapwith`` key:

    mapwith:
      strict_duplicate_detection: true
      warn_on_override_fallback: false
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationError
from .logging import log_debug
from .types import MappingOptions

CONFIG_PATH_ENV = "MAPWITH_CONFIG_PATH"

ENV_OPTIONS = {
    "MAPWITH_STRICT_DUPLICATES": "strict_duplicate_detection",
    "MAPWITH_TRACK_SELF_REGISTRATIONS": "track_self_registrations",
    "MAPWITH_WARN_ON_FALLBACK": "warn_on_override_fallback",
    "MAPWITH_SKIP_ABSTRACT": "skip_abstract",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_bool(name: str, value: str) -> bool:
    """Parse a boolean environment value.

    Raises:
        ConfigurationError: If the value is not a recognized boolean.
    """
    normalized = value.strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    raise ConfigurationError(
        f"{name} must be a boolean (one of {sorted(_TRUE | _FALSE)}), got {value!r}",
        metadata={"variable": name, "value": value},
    )


def options_from_mapping(data: Mapping[str, Any] | None) -> MappingOptions:
    """Validate a mapping of option values.

    Raises:
        ConfigurationError: If validation fails.
    """
    try:
        return MappingOptions.model_validate(dict(data or {}))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid mapping options: {e}") from e


def load_options(path: str | Path) -> MappingOptions:
    """Load options from a YAML file.

    Args:
        path: YAML file path.

    Returns:
        Validated options.

    Raises:
        ConfigurationError: If the file cannot be read, parsed or validated.
    """
    return options_from_mapping(_read_yaml(Path(path)))


def options_from_env(environ: Mapping[str, str] | None = None) -> MappingOptions:
    """Build options from the environment.

    Args:
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Validated options.

    Raises:
        ConfigurationError: On unreadable files or invalid values.
    """
    env = os.environ if environ is None else environ

    values: dict[str, Any] = {}
    config_path = env.get(CONFIG_PATH_ENV)
    if config_path:
        log_debug(f"Loading mapping options from {CONFIG_PATH_ENV}: {config_path}")
        values.update(_read_yaml(Path(config_path)))

    for variable, option in ENV_OPTIONS.items():
        raw = env.get(variable)
        if raw is not None and raw != "":
            values[option] = parse_bool(variable, raw)

    return options_from_mapping(values)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to load mapping options from {path}: {e}",
            metadata={"path": str(path)},
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Mapping options in {path} must be a mapping, got {type(data).__name__}",
            metadata={"path": str(path)},
        )

    section = data.get("mapwith", data)
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"'mapwith' section in {path} must be a mapping",
            metadata={"path": str(path)},
        )
    return section


__all__ = [
    "CONFIG_PATH_ENV",
    "ENV_OPTIONS",
    "load_options",
    "options_from_env",
    "options_from_mapping",
    "parse_bool",
]
