"""Configuration loading for ValidationConfig."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from ..exceptions import InvalidConfigurationError
from .settings import ValidationConfig

DEFAULT_CONFIG_PATH = Path("config/validation_config.yaml")


def _lower_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize dictionary keys to lowercase."""
    return {str(k).lower(): v for k, v in d.items()}


def _apply_env_overrides(cfg: Dict[str, Any], env: Dict[str, str], prefix: str) -> None:
    """Apply simple env overrides using DOUBLE-UNDERSCORE path syntax.

    Example: PV_DEMOGRAPHICS__MIN_WORKING_AGE=18 overrides demographics.min_working_age
    """
    plen = len(prefix)
    for key, value in env.items():
        if not key.startswith(prefix):
            continue
        path = key[plen:].lower().split("__")
        cur: Any = cfg
        for part in path[:-1]:
            if part not in cur or not isinstance(cur[part], dict):
                cur[part] = {}
            cur = cur[part]
        # Basic type coercion for ints/bools/floats
        leaf = path[-1]
        if value.lower() in {"true", "false"}:
            cur[leaf] = value.lower() == "true"
        else:
            try:
                if "." in value:
                    cur[leaf] = float(value)
                else:
                    cur[leaf] = int(value)
            except ValueError:
                cur[leaf] = value


def build_validation_config(
    data: Optional[Dict[str, Any]] = None,
    *,
    source: Optional[str] = None,
) -> ValidationConfig:
    """Validate a raw mapping into a ValidationConfig."""
    try:
        return ValidationConfig(**_lower_keys(data or {}))
    except ValidationError as e:
        raise InvalidConfigurationError(
            f"Invalid validation configuration: {e}", config_path=source
        ) from e


def load_validation_config(
    path: Path | str = DEFAULT_CONFIG_PATH,
    *,
    env_overrides: bool = True,
    env: Optional[Dict[str, str]] = None,
    env_prefix: str = "PV_",
) -> ValidationConfig:
    """Load YAML config and return a typed `ValidationConfig`.

    - Unknown top-level keys are kept for forward compatibility
    - Optionally applies environment variable overrides
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")

    try:
        with open(p, "r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except yaml.YAMLError as e:
        raise InvalidConfigurationError(
            f"Configuration is not valid YAML: {e}", config_path=str(p), original_exception=e
        ) from e

    if not isinstance(raw, dict):
        raise InvalidConfigurationError(
            "Configuration root must be a mapping", config_path=str(p)
        )

    data = _lower_keys(raw)

    if env_overrides:
        _apply_env_overrides(data, env if env is not None else dict(os.environ), env_prefix)

    return build_validation_config(data, source=str(p))
