"""Record builders and snapshot fixtures for validator testing."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

import pytest

from payroll_validation.models import EmployeeRecord, MappedData, TerminationRecord
from payroll_validation.utils import imss_check_digit

EVALUATION_DATE = date(2024, 12, 31)

# A record that passes every identity check; only its integrated salary
# (9000 < 10000) breaks a rule.
CLEAN_ACTIVE = {
    "employee_code": "E-1001",
    "name": "GOMEZ DIAZ EDUARDO",
    "tax_id": "GODE900501HJ3",
    "population_id": "GODE900501HJCMZD09",
    "social_security_id": "12089001239",
    "declared_sex": "H",
    "birth_date": date(1990, 5, 1),
    "hire_date": date(2010, 1, 1),
    "base_salary": 10000.0,
    "integrated_salary": 9000.0,
}


def make_active(row_index: int = 1, **overrides) -> EmployeeRecord:
    """An active record based on CLEAN_ACTIVE with field overrides."""
    values = dict(CLEAN_ACTIVE)
    values.update(overrides)
    return EmployeeRecord(row_index=row_index, **values)


def make_termination(row_index: int = 1, **overrides) -> TerminationRecord:
    values = dict(CLEAN_ACTIVE)
    values.update(
        {
            "integrated_salary": 10800.0,
            "termination_date": date(2024, 6, 30),
            "termination_cause": "RENUNCIA",
        }
    )
    values.update(overrides)
    return TerminationRecord(row_index=row_index, **values)


def snapshot(active=(), terminations=()) -> MappedData:
    return MappedData(active_personnel=tuple(active), terminations=tuple(terminations))


def social_security_id(hire_year: int, block: int, subdelegation: int = 12) -> str:
    """A well-formed NSS registered in the hire year, with a valid check digit."""
    first_ten = f"{subdelegation:02d}{hire_year % 100:02d}{block:06d}"
    return first_ten + str(imss_check_digit(first_ten))


def identity_for(birth: date) -> dict:
    """RFC and CURP whose birth segments encode ``birth``."""
    segment = birth.strftime("%y%m%d")
    return {
        "tax_id": f"GODE{segment}HJ3",
        "population_id": f"GODE{segment}HJCMZD09",
    }


def build_population(
    births: List[date],
    hires: Optional[List[date]] = None,
    salaries: Optional[List[float]] = None,
) -> MappedData:
    """Active population with unique, non-sequential identifiers.

    Identifier serials are spaced by seven so no two codes or NSS values
    are consecutive.
    """
    hires = hires or [date(2015, 3, 1)] * len(births)
    salaries = salaries or [15000.0] * len(births)
    records = []
    for index, (birth, hire, salary) in enumerate(zip(births, hires, salaries), start=1):
        records.append(
            make_active(
                row_index=index,
                employee_code=f"E-{1000 + 7 * index}",
                social_security_id=social_security_id(hire.year, 890000 + 7 * index),
                birth_date=birth,
                hire_date=hire,
                base_salary=salary,
                integrated_salary=round(salary * 1.08, 2),
                **identity_for(birth),
            )
        )
    return snapshot(records)


@pytest.fixture
def clean_record() -> EmployeeRecord:
    """Scenario record with a single integrated-below-base violation."""
    return make_active()


@pytest.fixture
def single_record_snapshot(clean_record) -> MappedData:
    return snapshot([clean_record])


@pytest.fixture
def century_mismatch_snapshot() -> MappedData:
    """Declared birth 1930 while the tax ID decodes to 2030."""
    record = make_active(
        tax_id="GODE300101HJ3",
        population_id=None,
        social_security_id="12886501233",
        birth_date=date(1930, 1, 1),
        hire_date=date(1990, 1, 1),
        base_salary=10000.0,
        integrated_salary=10800.0,
    )
    return snapshot([record])


@pytest.fixture
def small_population() -> MappedData:
    """Five healthy active employees aged 30 to 50."""
    births = [date(1974, 2, 11), date(1979, 3, 12), date(1984, 4, 13), date(1989, 5, 14), date(1994, 6, 15)]
    hires = [date(2005, 1, 10), date(2008, 2, 11), date(2012, 3, 12), date(2016, 4, 13), date(2020, 5, 14)]
    salaries = [18000.0, 16000.0, 15000.0, 14000.0, 13000.0]
    return build_population(births, hires, salaries)
