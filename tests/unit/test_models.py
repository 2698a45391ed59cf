"""Unit tests for records, results and descriptors."""

from datetime import date

import pytest
from pydantic import ValidationError

from payroll_validation.models import (
    AgentDescriptor,
    Collection,
    EmployeeRecord,
    MappedData,
    ResultStatus,
    Severity,
    TerminationRecord,
    ValidationCategory,
    ValidationResult,
    rows_of,
)


class TestRecords:
    def test_records_are_immutable(self):
        record = EmployeeRecord(row_index=1, name="ANA LOPEZ")
        with pytest.raises(ValidationError):
            record.name = "OTRA"

    def test_row_index_is_one_based(self):
        with pytest.raises(ValidationError):
            EmployeeRecord(row_index=0)

    def test_declared_sex_is_h_or_m(self):
        assert EmployeeRecord(row_index=1, declared_sex="M").declared_sex == "M"
        with pytest.raises(ValidationError):
            EmployeeRecord(row_index=1, declared_sex="F")

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            EmployeeRecord(row_index=1, favourite_color="blue")

    def test_termination_fields(self):
        record = TerminationRecord(row_index=3, termination_date=date(2024, 1, 15), termination_cause="RENUNCIA")
        assert record.termination_date == date(2024, 1, 15)

    def test_mapped_data_counts_and_iteration(self):
        data = MappedData(
            active_personnel=(EmployeeRecord(row_index=1), EmployeeRecord(row_index=2)),
            terminations=(TerminationRecord(row_index=1),),
        )
        assert data.total_records == 3
        assert [c for c, _ in data.all_records()] == [Collection.ACTIVE, Collection.ACTIVE, Collection.TERMINATIONS]
        assert rows_of(data.active_personnel) == (1, 2)


def _result(**overrides):
    values = {
        "agent": "SalaryValidator",
        "field": "base_salary",
        "message": "Base salary missing",
        "severity": Severity.WARNING,
        "category": ValidationCategory.MISSING_DATA,
    }
    values.update(overrides)
    return ValidationResult(**values)


class TestValidationResult:
    def test_status_defaults_from_severity(self):
        assert _result(severity=Severity.INFO).status is ResultStatus.SUCCESS
        assert _result(severity=Severity.WARNING).status is ResultStatus.WARNING
        assert _result(severity=Severity.CRITICAL).status is ResultStatus.ERROR

    def test_critical_requires_error_status(self):
        with pytest.raises(ValueError):
            _result(severity=Severity.CRITICAL, status=ResultStatus.WARNING)

    @pytest.mark.parametrize("field_name", ["agent", "message"])
    def test_blank_agent_or_message_rejected(self, field_name):
        with pytest.raises(ValueError):
            _result(**{field_name: "  "})

    def test_affected_rows_sorted_and_deduplicated(self):
        assert _result(affected_rows=(5, 2, 5, 3)).affected_rows == (2, 3, 5)

    def test_affected_rows_must_be_positive(self):
        with pytest.raises(ValueError):
            _result(affected_rows=(0,))

    def test_string_enums_coerced(self):
        result = _result(severity="critical", category="FORMAT_INVALID", collection="terminations")
        assert result.severity is Severity.CRITICAL
        assert result.category is ValidationCategory.FORMAT_INVALID
        assert result.collection is Collection.TERMINATIONS
        assert result.is_critical

    def test_to_dict(self):
        payload = _result(affected_rows=(4,), metadata={"k": 1}).to_dict()
        assert payload["severity"] == "warning"
        assert payload["status"] == "warning"
        assert payload["affected_rows"] == [4]
        assert payload["collection"] == "active"
        assert payload["metadata"] == {"k": 1}


class TestAgentDescriptor:
    def test_defaults(self):
        descriptor = AgentDescriptor(name="X", description="x")
        assert descriptor.priority == 0
        assert descriptor.dependencies == ()
        assert descriptor.timeout == 30.0

    def test_dependencies_become_tuple(self):
        assert AgentDescriptor(name="X", description="x", dependencies=["A"]).dependencies == ("A",)

    def test_invalid_descriptor(self):
        with pytest.raises(ValueError):
            AgentDescriptor(name="", description="x")
        with pytest.raises(ValueError):
            AgentDescriptor(name="X", description="x", timeout=0)
