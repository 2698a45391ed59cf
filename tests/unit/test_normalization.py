"""Unit tests for raw-row normalization into canonical records."""

from datetime import date

import pytest

from payroll_validation.constants import VALID_TERMINATION_CAUSES
from payroll_validation.exceptions import InputDataError
from payroll_validation.models import TerminationRecord
from payroll_validation.normalization import (
    canonical_field,
    normalize_header,
    normalize_mapped_data,
    normalize_record,
)


@pytest.mark.parametrize(
    "header, field_name",
    [
        ("Sueldo Base Mensual", "base_salary"),
        ("fecha de ingreso", "hire_date"),
        ("Fecha_de_Nacimiento", "birth_date"),
        ("NSS", "social_security_id"),
        ("R.F.C.", None),
        ("RFC", "tax_id"),
        ("CURP", "population_id"),
        ("Causa de la Baja", "termination_cause"),
        ("Causa de Baja", "termination_cause"),
        ("Motivo de Baja", "termination_cause"),
        ("Monto pagado por Indemnización", "indemnification_payment"),
        ("Columna extra", None),
    ],
)
def test_canonical_field(header, field_name):
    assert canonical_field(header) == field_name


def test_normalize_header_strips_accents_and_punctuation():
    assert normalize_header("  Última   Fecha-de_Ingreso ") == "ultima fecha de ingreso"


def test_normalize_record_coerces_values():
    record = normalize_record(
        {
            "Nombre": "  Gomez   Diaz Eduardo ",
            "RFC": "gode900501hj3",
            "NSS": "12-08-90-0123-9",
            "Fecha de Nacimiento": "01/05/1990",
            "Fecha de Ingreso": "2010-01-01",
            "Sueldo Base": "$10,000.00",
            "Sueldo Integrado": "10800",
            "Sexo": "Masculino",
            "Tipo de Empleado": "operativo",
            "Ignorada": "x",
        },
        7,
    )
    assert record.row_index == 7
    assert record.name == "Gomez Diaz Eduardo"
    assert record.tax_id == "GODE900501HJ3"
    assert record.social_security_id == "12-08-90-0123-9"
    assert record.birth_date == date(1990, 5, 1)
    assert record.hire_date == date(2010, 1, 1)
    assert record.base_salary == 10000.0
    assert record.integrated_salary == 10800.0
    assert record.declared_sex == "H"
    assert record.employee_type == "OPERATIVO"


def test_explicit_row_index_wins():
    record = normalize_record({"Fila": "12", "Nombre": "ANA LOPEZ"}, 1)
    assert record.row_index == 12


def test_first_populated_alias_wins():
    record = normalize_record({"Sueldo Base": "", "Salario Base": "9000"}, 1)
    assert record.base_salary == 9000.0


def test_tax_id_recovered_from_birth_date_column():
    record = normalize_record({"Fecha de Nacimiento": "GODE900501HJ3"}, 1)
    assert record.tax_id == "GODE900501HJ3"
    assert record.birth_date == date(1990, 5, 1)


def test_unparseable_values_become_none():
    record = normalize_record({"Fecha de Ingreso": "31/02/2020", "Sueldo Base": "n/a", "Sexo": "?"}, 1)
    assert record.hire_date is None
    assert record.base_salary is None
    assert record.declared_sex is None


def test_termination_fields_only_on_terminations():
    row = {"Nombre": "ANA LOPEZ", "Fecha de Baja": "2024-03-31", "Causa": "renuncia voluntaria"}
    active = normalize_record(row, 1)
    termination = normalize_record(row, 1, termination=True)
    assert not hasattr(active, "termination_date")
    assert isinstance(termination, TerminationRecord)
    assert termination.termination_date == date(2024, 3, 31)
    assert termination.termination_cause == "RENUNCIA_VOLUNTARIA"


@pytest.mark.parametrize(
    "header, cause, expected",
    [
        ("Causa", "Jubilación", "JUBILACION"),
        ("Causa de Baja", "Terminación sin causa", "TERMINACION_SIN_CAUSA"),
        ("Motivo de Baja", " retiro  edad ", "RETIRO_EDAD"),
        ("Causa", "Despido procedente", "DESPIDO_PROCEDENTE"),
    ],
)
def test_termination_cause_folds_accents_into_catalog_codes(header, cause, expected):
    termination = normalize_record({header: cause}, 1, termination=True)
    assert termination.termination_cause == expected
    assert expected in VALID_TERMINATION_CAUSES


def test_employee_type_folds_accents():
    assert normalize_record({"Tipo de Empleado": "Sindicalizado"}, 1).employee_type == "SINDICALIZADO"
    assert normalize_record({"Tipo": "Ejecutivo Tecnico"}, 1).employee_type == "EJECUTIVO TECNICO"
    assert normalize_record({"Tipo": "Técnico"}, 1).employee_type == "TECNICO"


def test_negative_amount_raises_input_error():
    with pytest.raises(InputDataError) as exc_info:
        normalize_record({"Dias de Vacaciones": "-3"}, 4)
    assert exc_info.value.context.row_index == 4
    assert exc_info.value.context.collection == "active"


def test_normalize_mapped_data():
    data = normalize_mapped_data(
        [{"Nombre": "ANA LOPEZ"}, {"Nombre": "LUIS PEREZ"}],
        [{"Nombre": "JUAN DIAZ", "Fecha de Baja": "2024-01-31"}],
    )
    assert [r.row_index for r in data.active_personnel] == [1, 2]
    assert data.terminations[0].termination_date == date(2024, 1, 31)
    assert data.total_records == 3


def test_duplicate_row_index_rejected():
    with pytest.raises(InputDataError):
        normalize_mapped_data([{"Fila": 1}, {"Fila": "1"}])
