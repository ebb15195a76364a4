"""
Load `app.yaml` into an AppConfig.

Resolution order for every setting:
1. the YAML file, after `${VAR}` / `${VAR:-default}` expansion
2. GITHUB_TOKEN, REPO_OWNER, REPO_NAME and EXPORT_DIR for keys the file leaves empty
3. model defaults
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import AppConfig

DEFAULT_CONFIG_PATH = Path("configs/app.yaml")
CONFIG_ENV_VAR = "GHEXPORT_CONFIG"

_ENV_REF = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")

# Config key path -> environment variable consulted when the key is empty
ENV_FALLBACKS: dict[tuple[str, ...], str] = {
    ("github", "token"): "GITHUB_TOKEN",
    ("github", "repository", "owner"): "REPO_OWNER",
    ("github", "repository", "name"): "REPO_NAME",
    ("export", "directory"): "EXPORT_DIR",
}


class ConfigError(Exception):
    """The configuration file could not be read or is invalid."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        super().__init__(message)
        self.path = path
        self.details = details


def _read_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML mapping; an empty file is an empty mapping.

    Raises:
        ConfigError: If the file is missing, unreadable, not YAML, or not a mapping
    """
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}", path=path, details=str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}", path=path, details=str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping", path=path)
    return data


def _substitute(match: re.Match[str]) -> str:
    name, default = match.group(1), match.group(2)
    return os.environ.get(name, default or "")


def _expand(value: Any) -> Any:
    """Expand environment references in every string of a YAML tree."""
    if isinstance(value, str):
        return _ENV_REF.sub(_substitute, value)
    if isinstance(value, dict):
        return {key: _expand(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand(item) for item in value]
    return value


def _apply_env_fallbacks(data: dict[str, Any]) -> dict[str, Any]:
    for keys, env_name in ENV_FALLBACKS.items():
        env_value = os.environ.get(env_name)
        if not env_value:
            continue

        section = data
        for key in keys[:-1]:
            if not isinstance(section.get(key), dict):
                section[key] = {}
            section = section[key]
        if not section.get(keys[-1]):
            section[keys[-1]] = env_value
    return data


def resolve_config_path(path: Path | str | None = None) -> Path:
    """Explicit path, else $GHEXPORT_CONFIG, else configs/app.yaml."""
    if path is not None:
        return Path(path)
    from_env = os.environ.get(CONFIG_ENV_VAR)
    return Path(from_env) if from_env else DEFAULT_CONFIG_PATH


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
) -> AppConfig:
    """Load and validate the application configuration.

    A missing file is not an error: defaults are used, still overlaid with
    the environment fallbacks.

    Raises:
        ConfigError: If the file exists but cannot be parsed or validated
    """
    path = resolve_config_path(path)
    data = _read_yaml(path) if path.exists() else {}

    if expand_env:
        data = _apply_env_fallbacks(_expand(data))

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid app configuration in {path}", path=path, details=str(e)) from e


def validate_config_file(path: Path | str) -> list[str]:
    """Check a configuration file without environment overlays.

    Returns:
        One message per problem, as `location: message`; empty if valid
    """
    path = Path(path)
    try:
        data = _read_yaml(path)
    except ConfigError as e:
        return [str(e)]

    try:
        AppConfig.model_validate(data)
    except ValidationError as e:
        return [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
    return []
