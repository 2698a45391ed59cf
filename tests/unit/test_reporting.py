"""Unit tests for summary and report assembly."""

from payroll_validation.models import Collection, EmployeeRecord, MappedData, Severity, ValidationCategory, ValidationResult
from payroll_validation.reporting import (
    ExecutionStatus,
    RunState,
    ValidationReport,
    ValidatorExecution,
    calculate_summary,
    group_by_severity,
)


def _result(severity, field="base_salary", category=ValidationCategory.MISSING_DATA, agent="SalaryValidator"):
    return ValidationResult(agent=agent, field=field, message="m", severity=severity, category=category)


RESULTS = (
    _result(Severity.INFO),
    _result(Severity.CRITICAL, field="tax_id", category=ValidationCategory.FORMAT_INVALID, agent="TaxIdValidator"),
    _result(Severity.WARNING),
    _result(Severity.CRITICAL, field="tax_id", category=ValidationCategory.CONSISTENCY_VIOLATION, agent="TaxIdValidator"),
    _result(Severity.CRITICAL, field="birth_date", category=ValidationCategory.FORMAT_INVALID),
)
DATA = MappedData(active_personnel=(EmployeeRecord(row_index=1), EmployeeRecord(row_index=2)))


def test_summary_counts():
    summary = calculate_summary(DATA, RESULTS, ("AnomalyDetector",))
    assert summary.total_records == 2
    assert summary.critical_errors == 3
    assert summary.warnings == 1
    assert summary.infos == 1
    assert summary.errors_by_field == {"tax_id": 2, "birth_date": 1}
    assert summary.errors_by_category == {"FORMAT_INVALID": 2, "CONSISTENCY_VIOLATION": 1}
    assert summary.failed_validators == ("AnomalyDetector",)
    assert summary.can_proceed is False


def test_can_proceed_without_criticals():
    summary = calculate_summary(DATA, [_result(Severity.WARNING), _result(Severity.INFO)])
    assert summary.can_proceed is True
    assert summary.errors_by_field == {}


def test_group_by_severity_keeps_order():
    grouped = group_by_severity(RESULTS)
    assert list(grouped) == ["critical", "warning", "info"]
    assert [r.field for r in grouped["critical"]] == ["tax_id", "tax_id", "birth_date"]


def test_report_accessors_and_serialization():
    summary = calculate_summary(DATA, RESULTS)
    report = ValidationReport(
        run_id="run-1",
        state=RunState.COMPLETED,
        results=RESULTS,
        summary=summary,
        executions=(ValidatorExecution("TaxIdValidator", ExecutionStatus.SUCCEEDED, 0, 0.01, 2),),
        validator_order=("TaxIdValidator", "SalaryValidator"),
        config_version="2026.1",
    )
    assert report.can_proceed is False
    assert len(report.results_for("TaxIdValidator")) == 2
    assert len(report.results_by_category(ValidationCategory.FORMAT_INVALID)) == 2
    assert len(report.critical_results()) == 3

    payload = report.to_dict()
    assert payload["state"] == "completed"
    assert payload["summary"]["critical_errors"] == 3
    assert payload["executions"][0]["status"] == "succeeded"
    assert payload["results"][1]["collection"] == Collection.ACTIVE.value
