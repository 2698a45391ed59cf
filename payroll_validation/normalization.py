"""
Normalization of raw spreadsheet rows into the canonical record schema.

The ingestion collaborator hands over rows keyed by whatever headers the
client spreadsheet used ("Sueldo Base Mensual", "fecha de ingreso",
"NSS", ...). This module resolves those spellings once so validators only
ever see ``EmployeeRecord`` / ``TerminationRecord`` attributes.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, Mapping, Optional, Type

from pydantic import ValidationError

from .exceptions import InputDataError
from .models import Collection, EmployeeRecord, MappedData, TerminationRecord
from .utils import (
    clean_identifier,
    decode_birth_date_from_national_id,
    extract_id_from_mixed_field,
    normalize_sex,
    parse_date,
    parse_numeric,
    strip_accents,
)

logger = logging.getLogger(__name__)

# Canonical field -> header spellings (already in normalized form).
FIELD_ALIASES: Dict[str, tuple] = {
    "row_index": ("row index", "row", "fila", "renglon"),
    "employee_code": (
        "employee code", "clave", "num de empleado", "numero empleado", "numero de empleado",
        "id empleado", "codigo empleado", "employee id", "emp code", "emp id",
    ),
    "name": (
        "name", "nombre", "nombre del empleado", "nombre empleado", "nombre completo",
        "empleado", "employee name", "identificador",
    ),
    "tax_id": ("tax id", "rfc", "registro federal de contribuyentes"),
    "population_id": ("population id", "curp", "clave unica de registro de poblacion"),
    "social_security_id": (
        "social security id", "nss", "imss", "numero seguro social", "numero de seguro social",
        "seguro social", "social security", "afiliacion imss",
    ),
    "birth_date": (
        "birth date", "fecha de nacimiento", "fecha nacimiento", "nacimiento", "fecha nac",
        "f nacimiento",
    ),
    "hire_date": (
        "hire date", "fecha de ingreso", "fecha ingreso", "fecha ingreso empresa",
        "fecha entrada", "fecha de entrada", "ingreso empresa", "start date",
    ),
    "base_salary": (
        "base salary", "sueldo base", "sueldo base mensual", "salario base", "basic salary",
        "sueldo basico", "ultimo sueldo base", "ultimo salario base", "last base salary",
        "sueldo base final", "ultimo sueldo mensual base",
    ),
    "integrated_salary": (
        "integrated salary", "sueldo integrado", "sueldo integrado mensual", "salario integrado",
        "sueldo total", "ultimo sueldo integrado", "ultimo salario integrado",
        "last integrated salary", "ultimo sueldo mensual integrado", "sueldo integrado final",
    ),
    "position": ("position", "puesto", "job title", "cargo", "plaza"),
    "employee_type": (
        "employee type", "tipo de empleado", "tipo empleado", "categoria", "clasificacion", "tipo",
    ),
    "contract_type": ("contract type", "tipo de contrato", "tipo contrato", "contrato"),
    "declared_sex": ("declared sex", "sexo", "gender", "genero", "sex", "s", "m o f", "h o m"),
    "plant": ("plant", "planta", "sucursal", "ubicacion", "centro trabajo", "centro de trabajo"),
    "vacation_days": ("vacation days", "dias de vacaciones", "dias vacaciones", "vacaciones"),
    "vacation_premium": ("vacation premium", "prima vacacional"),
    "annual_bonus": ("annual bonus", "aguinaldo"),
    "weekly_hours": ("weekly hours", "horas semanales", "jornada semanal"),
    "termination_date": (
        "termination date", "fecha de baja", "fecha baja", "fecha salida", "fecha de salida",
        "exit date",
    ),
    "termination_cause": (
        "termination cause", "causa de baja", "causa de la baja", "causa baja", "motivo de baja", "motivo baja",
        "razon salida", "causa",
    ),
    "seniority_payment": (
        "seniority payment", "monto pagado por prima de antiguedad", "prima antiguedad",
        "prima de antiguedad", "pago prima", "prima pagada",
    ),
    "indemnification_payment": (
        "indemnification payment", "monto pagado por indemnizacion", "indemnizacion",
        "indemnification", "pago indemnizacion", "indemnizacion pagada",
    ),
}

_DATE_FIELDS = {"birth_date", "hire_date", "termination_date"}
_NUMERIC_FIELDS = {
    "base_salary", "integrated_salary", "vacation_days", "vacation_premium",
    "annual_bonus", "weekly_hours", "seniority_payment", "indemnification_payment",
}
_IDENTIFIER_FIELDS = {"tax_id", "population_id"}
_TERMINATION_ONLY = {"termination_date", "termination_cause", "seniority_payment", "indemnification_payment"}


def normalize_header(header: Any) -> str:
    """Lowercase, strip accents and punctuation, collapse whitespace."""
    text = strip_accents(str(header or "")).lower()
    text = re.sub(r"[^a-z0-9ñ\s]", " ", text.replace("_", " "))
    return re.sub(r"\s+", " ", text).strip()


_ALIAS_LOOKUP: Dict[str, str] = {
    alias: canonical for canonical, aliases in FIELD_ALIASES.items() for alias in aliases
}


def canonical_field(header: Any) -> Optional[str]:
    """Canonical field name for a header, or ``None`` when unknown."""
    return _ALIAS_LOOKUP.get(normalize_header(header))


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = re.sub(r"\s+", " ", str(value)).strip()
    return text or None


def _coerce(field_name: str, value: Any) -> Any:
    if field_name in _DATE_FIELDS:
        return parse_date(value)
    if field_name in _NUMERIC_FIELDS:
        return parse_numeric(value)
    if field_name in _IDENTIFIER_FIELDS:
        return clean_identifier(value)
    if field_name == "social_security_id":
        # Keep non-digit content; the IMSS validator reports malformed numbers.
        return clean_identifier(value)
    if field_name == "declared_sex":
        return normalize_sex(value)
    if field_name in ("employee_type", "contract_type"):
        text = _clean_text(value)
        return strip_accents(text).upper() if text else None
    if field_name == "termination_cause":
        text = _clean_text(value)
        return strip_accents(text).upper().replace(" ", "_") if text else None
    return _clean_text(value)


def normalize_record(
    raw: Mapping[str, Any],
    position: int,
    *,
    termination: bool = False,
) -> EmployeeRecord:
    """Build one canonical record from a raw row mapping.

    Args:
        raw: Header -> cell mapping for one spreadsheet row
        position: 1-based position used when the row carries no explicit index
        termination: Build a ``TerminationRecord`` instead of an ``EmployeeRecord``

    Raises:
        InputDataError: The row cannot satisfy the canonical schema
    """
    collection = Collection.TERMINATIONS if termination else Collection.ACTIVE
    model: Type[EmployeeRecord] = TerminationRecord if termination else EmployeeRecord
    if not isinstance(raw, Mapping):
        raise InputDataError(
            f"Row {position} is a {type(raw).__name__}, expected a mapping of column headers to values",
            collection=collection.value,
            row_index=position,
        )
    values: Dict[str, Any] = {}
    raw_birth: Any = None

    for header, cell in raw.items():
        field_name = canonical_field(header)
        if field_name is None:
            continue
        if field_name in _TERMINATION_ONLY and not termination:
            continue
        if field_name in values and values[field_name] is not None:
            # First populated spelling wins
            continue
        if field_name == "birth_date":
            raw_birth = cell
        if field_name == "row_index":
            index = parse_numeric(cell)
            values[field_name] = int(index) if index is not None else None
            continue
        values[field_name] = _coerce(field_name, cell)

    # Birth-date columns sometimes hold the RFC instead of a date
    if values.get("birth_date") is None and raw_birth is not None:
        embedded = extract_id_from_mixed_field(raw_birth)
        if embedded:
            if values.get("tax_id") is None:
                values["tax_id"] = embedded
            values["birth_date"] = decode_birth_date_from_national_id(embedded)

    if values.get("row_index") is None:
        values["row_index"] = position

    try:
        return model(**values)
    except ValidationError as e:
        raise InputDataError(
            f"Row cannot be normalized: {e.errors()[0].get('msg', e)}",
            collection=collection.value,
            row_index=values.get("row_index"),
            original_exception=e,
        ) from e


def normalize_mapped_data(
    active_rows: Iterable[Mapping[str, Any]] = (),
    termination_rows: Iterable[Mapping[str, Any]] = (),
) -> MappedData:
    """Normalize raw active and termination rows into an immutable snapshot."""
    active = tuple(normalize_record(row, i) for i, row in enumerate(active_rows, start=1))
    terminations = tuple(
        normalize_record(row, i, termination=True)
        for i, row in enumerate(termination_rows, start=1)
    )
    _check_unique_rows(active, Collection.ACTIVE)
    _check_unique_rows(terminations, Collection.TERMINATIONS)
    logger.debug(
        f"Normalized {len(active)} active and {len(terminations)} termination rows"
    )
    return MappedData(active_personnel=active, terminations=terminations)


def _check_unique_rows(records: Iterable[EmployeeRecord], collection: Collection) -> None:
    seen = set()
    for record in records:
        if record.row_index in seen:
            raise InputDataError(
                f"Duplicate row index {record.row_index}",
                collection=collection.value,
                row_index=record.row_index,
            )
        seen.add(record.row_index)
