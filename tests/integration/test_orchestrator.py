"""End-to-end orchestrator runs over stub validators and the built-in suite."""

import asyncio
import json
import threading
import time

import pytest

from payroll_validation.config import ValidationConfig
from payroll_validation.exceptions import DependencyCycleError
from payroll_validation.logger import ProductionLogger
from payroll_validation.models import AgentDescriptor, Severity, ValidationCategory
from payroll_validation.orchestrator import ValidationOrchestrator, validate_snapshot
from payroll_validation.reporting import ExecutionStatus, RunState
from payroll_validation.validators.base import ResultBuilder, capture_failures
from tests.fixtures.records import make_active, snapshot


class RecordingValidator:
    """Emits one warning and records the call order and upstream it saw."""

    def __init__(self, name, dependencies=(), calls=None, priority=0):
        self.descriptor = AgentDescriptor(
            name=name, description=f"stub {name}", priority=priority, dependencies=tuple(dependencies)
        )
        self.calls = calls if calls is not None else []
        self.upstream = None
        self._lock = threading.Lock()

    def validate(self, data, upstream=None):
        with self._lock:
            self.calls.append(self.descriptor.name)
        self.upstream = dict(upstream or {})
        return [
            ResultBuilder(self.descriptor.name).warning(
                "name", f"{self.descriptor.name} ran", category=ValidationCategory.MISSING_DATA, rows=[1]
            )
        ]


class SlowValidator:
    descriptor = AgentDescriptor(name="Slow", description="never finishes in time", timeout=30.0)

    async def validate(self, data, upstream=None):
        await asyncio.sleep(5)
        return []


class SleepingValidator:
    """Blocks its worker thread for a fixed time."""

    def __init__(self, name, seconds):
        self.descriptor = AgentDescriptor(name=name, description=f"sleeps {seconds}s")
        self.seconds = seconds

    def validate(self, data, upstream=None):
        time.sleep(self.seconds)
        return []


class BrokenValidator:
    descriptor = AgentDescriptor(name="Broken", description="raises")

    def validate(self, data, upstream=None):
        raise RuntimeError("lookup table missing")


class SelfReportingValidator:
    descriptor = AgentDescriptor(name="SelfReporting", description="raises inside capture_failures")

    @capture_failures
    def validate(self, data, upstream=None):
        raise KeyError("base_salary")


class PlainValidator:
    """Validator without an upstream parameter."""

    descriptor = AgentDescriptor(name="Plain", description="no upstream")

    def validate(self, data):
        return []


class TestScheduling:
    def test_dependencies_run_first_and_feed_upstream(self, single_record_snapshot):
        calls = []
        a = RecordingValidator("A", calls=calls)
        b = RecordingValidator("B", dependencies=("A",), calls=calls)
        c = RecordingValidator("C", dependencies=("A",), calls=calls)
        orchestrator = ValidationOrchestrator([c, b, a, PlainValidator()])

        report = orchestrator.run(single_record_snapshot)

        assert calls[0] == "A"
        assert set(calls[1:]) == {"B", "C"}
        assert list(b.upstream) == ["A"]
        assert b.upstream["A"][0].message == "A ran"
        assert a.upstream == {}
        assert report.state is RunState.COMPLETED
        assert orchestrator.state is RunState.COMPLETED
        assert report.validator_order[0] == "A"
        assert [e.layer for e in report.executions if e.name in ("B", "C")] == [1, 1]

    def test_results_follow_validator_order(self, single_record_snapshot):
        validators = [RecordingValidator(name, priority=p) for name, p in (("Low", 1), ("High", 9), ("Mid", 5))]
        report = ValidationOrchestrator(validators).run(single_record_snapshot)
        assert report.validator_order == ("High", "Mid", "Low")
        assert [r.agent for r in report.results] == ["High", "Mid", "Low"]

    def test_cycle_fails_the_run(self, single_record_snapshot):
        orchestrator = ValidationOrchestrator(
            [RecordingValidator("A", dependencies=("B",)), RecordingValidator("B", dependencies=("A",))]
        )
        with pytest.raises(DependencyCycleError) as exc_info:
            orchestrator.run(single_record_snapshot)
        assert orchestrator.state is RunState.FAILED
        assert exc_info.value.context.stage == "scheduling"

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            ValidationOrchestrator([RecordingValidator("A"), RecordingValidator("A")])

    def test_orchestrator_can_run_again(self, single_record_snapshot):
        orchestrator = ValidationOrchestrator([RecordingValidator("A")])
        first = orchestrator.run(single_record_snapshot)
        second = orchestrator.run(single_record_snapshot)
        assert first.run_id != second.run_id
        assert second.state is RunState.COMPLETED


class TestFailureIsolation:
    def test_timeout_yields_single_system_error(self, single_record_snapshot):
        config = ValidationConfig(orchestrator={"timeout_overrides": {"Slow": 0.05}})
        fast = RecordingValidator("Fast")
        report = ValidationOrchestrator([SlowValidator(), fast], config).run(single_record_snapshot)

        slow_results = report.results_for("Slow")
        assert len(slow_results) == 1
        assert slow_results[0].category is ValidationCategory.SYSTEM_ERROR
        assert slow_results[0].severity is Severity.CRITICAL
        assert "deadline" in slow_results[0].message
        assert len(report.results_for("Fast")) == 1

        executions = {e.name: e for e in report.executions}
        assert executions["Slow"].status is ExecutionStatus.TIMED_OUT
        assert executions["Fast"].status is ExecutionStatus.SUCCEEDED
        assert report.state is RunState.FAILED
        assert report.summary.failed_validators == ("Slow",)
        assert report.can_proceed is False

    def test_waiting_for_a_worker_does_not_count_against_the_deadline(self, single_record_snapshot):
        names = ("First", "Second", "Third")
        config = ValidationConfig(
            orchestrator={"max_workers": 1, "timeout_overrides": {name: 0.5 for name in names}}
        )
        validators = [SleepingValidator(name, 0.3) for name in names]

        report = ValidationOrchestrator(validators, config).run(single_record_snapshot)

        assert [e.status for e in report.executions] == [ExecutionStatus.SUCCEEDED] * 3
        assert report.state is RunState.COMPLETED
        assert report.duration_seconds >= 0.9

    def test_exception_is_isolated_and_dependents_still_run(self, single_record_snapshot):
        dependent = RecordingValidator("Dependent", dependencies=("Broken",))
        report = ValidationOrchestrator([BrokenValidator(), dependent]).run(single_record_snapshot)

        broken = report.results_for("Broken")
        assert [r.category for r in broken] == [ValidationCategory.SYSTEM_ERROR]
        assert "RuntimeError" in broken[0].message
        assert dependent.upstream["Broken"][0].category is ValidationCategory.SYSTEM_ERROR
        assert len(report.results_for("Dependent")) == 1

        executions = {e.name: e for e in report.executions}
        assert executions["Broken"].status is ExecutionStatus.FAILED
        assert executions["Broken"].error
        assert report.state is RunState.FAILED

    def test_self_reported_failure_marks_validator_failed(self, single_record_snapshot):
        report = ValidationOrchestrator([SelfReportingValidator()]).run(single_record_snapshot)
        assert report.executions[0].status is ExecutionStatus.FAILED
        assert report.summary.failed_validators == ("SelfReporting",)


class TestBuiltinSuite:
    def test_integrated_below_base_is_the_only_critical(self, single_record_snapshot, validation_config):
        report = validate_snapshot(single_record_snapshot, validation_config)

        critical = report.critical_results()
        assert len(critical) == 1
        assert critical[0].agent == "SalaryValidator"
        assert critical[0].field == "integrated_salary"
        assert critical[0].category is ValidationCategory.BUSINESS_RULE_VIOLATION
        assert report.can_proceed is False
        assert report.state is RunState.COMPLETED
        assert len(report.executions) == 17

    def test_century_mismatch_is_the_only_critical(self, century_mismatch_snapshot, validation_config):
        report = validate_snapshot(century_mismatch_snapshot, validation_config)

        critical = report.critical_results()
        assert len(critical) == 1
        assert critical[0].agent == "TemporalConsistencyValidator"
        assert critical[0].field == "birth_date"
        assert critical[0].category is ValidationCategory.CONSISTENCY_VIOLATION

    @pytest.mark.parametrize("integrated", [8000.0, 9999.99, 10000.0, 10800.0, 15000.0])
    def test_critical_iff_integrated_below_base(self, validation_config, integrated):
        report = validate_snapshot(snapshot([make_active(integrated_salary=integrated)]), validation_config)
        assert (report.summary.critical_errors > 0) is (integrated < 10000.0)

    def test_healthy_population_can_proceed(self, small_population, validation_config):
        report = validate_snapshot(small_population, validation_config)
        assert report.summary.critical_errors == 0
        assert report.can_proceed is True
        assert report.state is RunState.COMPLETED

    def test_small_thread_pool_runs_every_validator(self, small_population, fast_timeout_config):
        report = validate_snapshot(small_population, fast_timeout_config)
        assert len(report.executions) == 17
        assert all(e.status is ExecutionStatus.SUCCEEDED for e in report.executions)

    def test_results_are_grouped_in_execution_order(self, small_population, validation_config):
        report = validate_snapshot(small_population, validation_config)
        position = {name: index for index, name in enumerate(report.validator_order)}
        indexes = [position[r.agent] for r in report.results]
        assert indexes == sorted(indexes)

    def test_run_logger_receives_structured_events(self, single_record_snapshot, validation_config, tmp_path):
        run_logger = ProductionLogger(log_dir=tmp_path, console=False)
        try:
            report = validate_snapshot(single_record_snapshot, validation_config, run_logger=run_logger)
        finally:
            run_logger.close()

        assert report.run_id == run_logger.run_id
        entries = [json.loads(line) for line in (tmp_path / "validation.log").read_text(encoding="utf-8").splitlines()]
        validators = {e["validator"] for e in entries if "validator" in e}
        assert len(validators) == 17
        assert all(e["run_id"] == run_logger.run_id for e in entries)
