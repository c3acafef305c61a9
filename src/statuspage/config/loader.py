"""YAML/JSON config loader with environment variable interpolation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from statuspage.config.models import StatusPageConfig

CONFIG_FILENAMES = ("statuspage.yaml", "statuspage.yml", "config.json")
CONFIG_ENV_VAR = "STATUSPAGE_CONFIG"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _interpolate_env(value: str) -> str:
    """Replace ${VAR} and ${VAR:-default} patterns with environment values."""

    def _replace(match: re.Match[str]) -> str:
        expr = match.group(1)
        if ":-" in expr:
            var_name, default = expr.split(":-", 1)
            return os.environ.get(var_name.strip(), default)
        return os.environ.get(expr.strip(), match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return _interpolate_env(data)
    if isinstance(data, dict):
        return {k: _interpolate_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_interpolate_recursive(item) for item in data]
    return data


def find_config_file(start: Path | None = None) -> Path | None:
    """Locate the config file.

    ``$STATUSPAGE_CONFIG`` wins when set; otherwise walk up from *start*
    (default cwd) and return the first of ``CONFIG_FILENAMES`` found.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)
    current = (start or Path.cwd()).resolve()
    for ancestor in [current, *current.parents]:
        for filename in CONFIG_FILENAMES:
            candidate = ancestor / filename
            if candidate.exists():
                return candidate
    return None


def load_config(path: Path | None = None) -> StatusPageConfig:
    """Load and validate the configuration, applying env-var interpolation.

    JSON files go through the YAML parser as well.
    """
    config_path = path or find_config_file()
    if not config_path or not config_path.exists():
        raise FileNotFoundError(
            f"Could not find a configuration file ({', '.join(CONFIG_FILENAMES)}). "
            f"Create one or point {CONFIG_ENV_VAR} at it."
        )
    with config_path.open("r", encoding="utf-8") as fh:
        try:
            raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Could not parse {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid configuration in {config_path}: expected a mapping at the top level")
    data = _interpolate_recursive(raw)
    try:
        return StatusPageConfig(**data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {config_path}: {exc}") from exc
