"""Unit tests for the validator contract helpers."""

from payroll_validation.models import (
    AgentDescriptor,
    Collection,
    MappedData,
    Severity,
    ValidationCategory,
    ValidationResult,
)
from payroll_validation.validators import default_validators
from payroll_validation.validators.base import (
    ResultBuilder,
    Validator,
    accepts_upstream,
    capture_failures,
    find_duplicates,
    rows_flagged_by,
)


class _Exploding:
    descriptor = AgentDescriptor(name="Exploding", description="always raises")

    @capture_failures
    def validate(self, data, upstream=None):
        raise KeyError("base_salary")


class _NoUpstream:
    descriptor = AgentDescriptor(name="NoUpstream", description="plain")

    def validate(self, data):
        return []


def test_result_builder_defaults():
    builder = ResultBuilder("SalaryValidator")
    critical = builder.critical("base_salary", "msg", category=ValidationCategory.MISSING_DATA, suggestion="fix", rows=[3, 1])
    info = builder.info("base_salary", "msg", category=ValidationCategory.STATISTICAL_OUTLIER)
    assert critical.agent == "SalaryValidator"
    assert critical.severity is Severity.CRITICAL
    assert critical.affected_rows == (1, 3)
    assert critical.collection is Collection.ACTIVE
    assert info.collection is Collection.POPULATION


def test_capture_failures_turns_exception_into_system_error():
    results = _Exploding().validate(MappedData())
    assert len(results) == 1
    result = results[0]
    assert result.category is ValidationCategory.SYSTEM_ERROR
    assert result.severity is Severity.CRITICAL
    assert result.agent == "Exploding"
    assert "KeyError" in result.message
    assert result.metadata["error_type"] == "ValidatorExecutionError"


def test_accepts_upstream():
    assert accepts_upstream(_Exploding())
    assert not accepts_upstream(_NoUpstream())


def test_builtin_validators_satisfy_protocol():
    validators = default_validators()
    assert len(validators) == 17
    assert all(isinstance(v, Validator) for v in validators)
    assert len({v.descriptor.name for v in validators}) == 17


def test_find_duplicates_ignores_blanks():
    assert find_duplicates([("A", 1), ("B", 2), ("A", 3), (None, 4), (None, 5)]) == {"A": [1, 3]}


def test_rows_flagged_by_skips_info_and_other_collections():
    results = [
        ValidationResult("X", "f", "m", Severity.WARNING, ValidationCategory.MISSING_DATA, affected_rows=(2, 1)),
        ValidationResult("X", "f", "m", Severity.INFO, ValidationCategory.MISSING_DATA, affected_rows=(7,)),
        ValidationResult(
            "X", "f", "m", Severity.CRITICAL, ValidationCategory.MISSING_DATA,
            affected_rows=(9,), collection=Collection.TERMINATIONS,
        ),
    ]
    assert rows_flagged_by(results) == [1, 2]
    assert rows_flagged_by(results, Collection.TERMINATIONS) == [9]
