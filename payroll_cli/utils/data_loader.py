"""
Snapshot loading for the payroll validation CLI

Reads JSON, YAML or CSV files into raw row mappings and normalizes them into
an immutable ``MappedData`` snapshot.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import yaml

from payroll_validation.exceptions import InputDataError
from payroll_validation.models import MappedData
from payroll_validation.normalization import normalize_mapped_data

ACTIVE_KEYS = ("active_personnel", "personal_activo", "activos", "active")
TERMINATION_KEYS = ("terminations", "bajas", "terminated")

Rows = List[Dict[str, Any]]


def read_csv_rows(path: Path) -> Rows:
    """Rows of a CSV file with every cell kept as text."""
    try:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise InputDataError(f"Cannot parse {path}: {e}", original_exception=e) from e
    frame.columns = [str(c).strip() for c in frame.columns]
    return frame.to_dict(orient="records")


def _pick(document: Dict[str, Any], keys: Tuple[str, ...]) -> Rows:
    for key in keys:
        if key in document:
            rows = document[key] or []
            if not isinstance(rows, list):
                raise InputDataError(f"'{key}' must be a list of rows")
            return rows
    return []


def read_document_rows(path: Path) -> Tuple[Rows, Rows]:
    """Active and termination rows from a JSON or YAML document."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.suffix.lower() == ".json":
                document = json.load(fh)
            else:
                document = yaml.safe_load(fh)
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
        raise InputDataError(f"Cannot parse {path}: {e}", original_exception=e) from e

    if isinstance(document, list):
        return document, []
    if not isinstance(document, dict):
        raise InputDataError(f"{path} must hold a list of rows or a mapping of collections")
    return _pick(document, ACTIVE_KEYS), _pick(document, TERMINATION_KEYS)


def load_snapshot(path: Path, terminations_path: Optional[Path] = None) -> MappedData:
    """
    Load and normalize a payroll snapshot.

    Args:
        path: JSON/YAML document with active and termination collections, or
            a CSV file of active personnel
        terminations_path: Optional CSV of terminations, used with a CSV input

    Raises:
        FileNotFoundError: An input file does not exist
        InputDataError: The file cannot be turned into a snapshot
    """
    for candidate in (path, terminations_path):
        if candidate is not None and not candidate.exists():
            raise FileNotFoundError(f"Input file not found: {candidate}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        active = read_csv_rows(path)
        terminations: Rows = []
    elif suffix in (".json", ".yaml", ".yml"):
        active, terminations = read_document_rows(path)
    else:
        raise InputDataError(f"Unsupported input format '{suffix}'; use .json, .yaml or .csv")

    if terminations_path is not None:
        terminations = read_csv_rows(terminations_path)

    return normalize_mapped_data(active, terminations)
