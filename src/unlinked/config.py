"""Configuration loading from YAML files and the environment."""

import os
from pathlib import Path
from typing import Any, Mapping, Optional
import yaml
import structlog
from pydantic import ValidationError

from unlinked.exceptions import ConfigError
from unlinked.models import CheckConfig

logger = structlog.get_logger()

ENV_PREFIX = "UNLINKED_"
LIST_FIELDS = ("allowed_domains", "ignore_patterns")


def default_config_paths() -> list[Path]:
    """Locations searched when no config file is given, in priority order."""
    return [
        Path.home() / ".config" / "unlinked" / "config.yaml",
        Path.cwd() / "config.yaml",
    ]


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Read a YAML config file.

    Args:
        path: File to read

    Returns:
        Mapping of config keys (empty for an empty file)

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"error reading config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")

    logger.debug("config_file_loaded", path=str(path), keys=sorted(data))
    return data


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """Collect UNLINKED_<FIELD> variables; list fields are comma-separated."""
    environ = os.environ if environ is None else environ
    values: dict[str, Any] = {}

    for name in CheckConfig.model_fields:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is None or raw == "":
            continue
        if name in LIST_FIELDS:
            values[name] = [item.strip() for item in raw.split(",") if item.strip()]
        else:
            values[name] = raw

    return values


def load_config(
    path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CheckConfig:
    """
    Build a CheckConfig from defaults, a config file, the environment and overrides.

    Later sources win: file < environment < overrides.

    Args:
        path: Explicit config file; default locations are searched if None
        overrides: Values set explicitly by the caller (e.g. CLI flags)
        environ: Environment mapping, os.environ if None

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file is unreadable or a value is invalid
    """
    data: dict[str, Any] = {}

    if path:
        data.update(read_config_file(Path(path)))
    else:
        for candidate in default_config_paths():
            if candidate.is_file():
                data.update(read_config_file(candidate))
                break

    data.update(env_overrides(environ))
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})

    unknown = sorted(set(data) - set(CheckConfig.model_fields))
    if unknown:
        logger.warning("unknown_config_keys", keys=unknown)
        for key in unknown:
            data.pop(key)

    try:
        return CheckConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e
