"""
Configuration helper utilities for the payroll validation CLI

Functions to find and load validation configuration files.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional

from payroll_validation.config import ValidationConfig, load_validation_config
from payroll_validation.utils import parse_date


def find_default_config() -> Optional[Path]:
    """Find the default validation configuration file, if any."""
    default_paths = [
        Path("config/validation_config.yaml"),
        Path("validation_config.yaml"),
    ]

    for config_path in default_paths:
        if config_path.exists():
            return config_path

    return None


def parse_evaluation_date(value: Optional[str]) -> Optional[date]:
    """
    Parse the --evaluation-date option.

    Raises:
        ValueError: If the value is given but is not a recognizable date
    """
    if value is None:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid evaluation date: {value}. Expected YYYY-MM-DD or DD/MM/YYYY")
    return parsed


def resolve_config(config: Optional[str], evaluation_date: Optional[str] = None) -> ValidationConfig:
    """
    Load the explicit config, else the default file, else built-in defaults.

    Args:
        config: Path given on the command line
        evaluation_date: Optional override of the configured evaluation date
    """
    config_path = Path(config) if config else find_default_config()
    cfg = load_validation_config(config_path) if config_path else ValidationConfig()

    override = parse_evaluation_date(evaluation_date)
    if override is not None:
        cfg = cfg.model_copy(update={"evaluation_date": override})
    return cfg
