"""
Unit tests for the structured exception hierarchy.

Tests exception serialization, context formatting, and resolution hints.
"""

from __future__ import annotations

from payroll_validation.exceptions import (
    DependencyCycleError,
    ErrorCategory,
    ErrorSeverity,
    ExecutionContext,
    InputDataError,
    InvalidConfigurationError,
    PayrollValidationError,
    ValidatorExecutionError,
    ValidatorTimeoutError,
)


class TestExecutionContext:
    """Test ExecutionContext dataclass"""

    def test_default_context(self):
        context = ExecutionContext()
        assert len(context.correlation_id) == 8
        assert context.timestamp is not None

    def test_to_dict_drops_unset_fields(self):
        context = ExecutionContext(run_id="run-1", validator_name="SalaryValidator")
        data = context.to_dict()
        assert data["run_id"] == "run-1"
        assert data["validator_name"] == "SalaryValidator"
        assert "row_index" not in data
        assert "correlation_id" in data

    def test_format_summary(self):
        context = ExecutionContext(run_id="run-1", stage="running", validator_name="TaxIdValidator", row_index=4)
        summary = context.format_summary()
        assert "run=run-1" in summary
        assert "validator=TaxIdValidator" in summary
        assert "row=4" in summary


class TestPayrollValidationError:
    def test_defaults(self):
        error = PayrollValidationError("boom")
        assert error.category is ErrorCategory.EXECUTION
        assert error.severity is ErrorSeverity.ERROR
        assert str(error) == "boom"

    def test_to_dict_includes_additional_data(self):
        error = PayrollValidationError("boom", batch="A")
        data = error.to_dict()
        assert data["error_type"] == "PayrollValidationError"
        assert data["batch"] == "A"
        assert data["original_exception"] is None

    def test_diagnostic_message(self):
        error = InvalidConfigurationError("Bad value", config_path="cfg.yaml")
        text = error.format_diagnostic_message()
        assert "Bad value (config_path: cfg.yaml)" in text
        assert "RESOLUTION HINTS" in text
        assert "Fix Validation Configuration" in text


class TestSpecificErrors:
    def test_input_data_error_context(self):
        error = InputDataError("Duplicate row index 3", collection="active", row_index=3)
        assert error.category is ErrorCategory.INPUT_DATA
        assert error.context.collection == "active"
        assert error.context.row_index == 3

    def test_cycle_error_lists_members(self):
        error = DependencyCycleError("Circular dependency", cycle_members=["B", "A"])
        assert error.cycle_members == ["A", "B"]
        assert "(validators: A, B)" in error.message
        assert error.severity is ErrorSeverity.CRITICAL
        assert error.category is ErrorCategory.DEPENDENCY

    def test_execution_error_wraps_original(self):
        error = ValidatorExecutionError("SalaryValidator", KeyError("base"))
        assert error.validator_name == "SalaryValidator"
        assert error.context.validator_name == "SalaryValidator"
        assert "KeyError" in error.message
        assert isinstance(error.original_exception, KeyError)

    def test_timeout_error(self):
        error = ValidatorTimeoutError("AnomalyDetector", 0.5)
        assert error.category is ErrorCategory.TIMEOUT
        assert error.severity is ErrorSeverity.RECOVERABLE
        assert error.context.timeout_seconds == 0.5
        assert "0.5s deadline" in error.message
        assert any("timeout_overrides.AnomalyDetector" in step for step in error.resolution_hints[0].steps)
