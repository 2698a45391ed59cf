"""
Report assembly for a validation run.

Mirrors the summary shape consumed by reporting dashboards: counts by
severity, failures grouped by field and category, and the single gating flag
``can_proceed`` used before numerical valuation.
"""

from __future__ import annotations

from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import MappedData, Severity, ValidationCategory, ValidationResult


class RunState(str, Enum):
    """Orchestrator lifecycle states"""
    IDLE = "idle"
    SCHEDULING = "scheduling"
    RUNNING = "running"
    AGGREGATED = "aggregated"
    FAILED = "failed"
    COMPLETED = "completed"


class ExecutionStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ValidatorExecution:
    """Timing and outcome of one validator within a run"""

    name: str
    status: ExecutionStatus
    layer: int
    duration_seconds: float
    result_count: int
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "layer": self.layer,
            "duration_seconds": round(self.duration_seconds, 4),
            "result_count": self.result_count,
            "error": self.error,
        }


@dataclass(frozen=True)
class ValidationSummary:
    total_records: int
    critical_errors: int
    warnings: int
    infos: int
    errors_by_field: Dict[str, int]
    errors_by_category: Dict[str, int]
    failed_validators: Tuple[str, ...]
    can_proceed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_records": self.total_records,
            "critical_errors": self.critical_errors,
            "warnings": self.warnings,
            "infos": self.infos,
            "errors_by_field": dict(self.errors_by_field),
            "errors_by_category": dict(self.errors_by_category),
            "failed_validators": list(self.failed_validators),
            "can_proceed": self.can_proceed,
        }


def calculate_summary(
    data: MappedData,
    results: Sequence[ValidationResult],
    failed_validators: Sequence[str] = (),
) -> ValidationSummary:
    """Summarize results; valuation may proceed only with zero critical results."""
    severities = Counter(r.severity for r in results)
    errors_by_field: Counter = Counter()
    errors_by_category: Counter = Counter()
    for result in results:
        if result.severity is Severity.CRITICAL:
            errors_by_field[result.field] += 1
            errors_by_category[result.category.value] += 1

    critical = severities.get(Severity.CRITICAL, 0)
    return ValidationSummary(
        total_records=data.total_records,
        critical_errors=critical,
        warnings=severities.get(Severity.WARNING, 0),
        infos=severities.get(Severity.INFO, 0),
        errors_by_field=dict(errors_by_field.most_common()),
        errors_by_category=dict(errors_by_category.most_common()),
        failed_validators=tuple(failed_validators),
        can_proceed=critical == 0,
    )


def group_by_severity(results: Sequence[ValidationResult]) -> "OrderedDict[str, List[ValidationResult]]":
    """Critical first, then warnings, then info; report order kept inside each group."""
    grouped: "OrderedDict[str, List[ValidationResult]]" = OrderedDict(
        (s.value, []) for s in (Severity.CRITICAL, Severity.WARNING, Severity.INFO)
    )
    for result in results:
        grouped[result.severity.value].append(result)
    return grouped


@dataclass(frozen=True)
class ValidationReport:
    """Terminal output of one orchestrator run"""

    run_id: str
    state: RunState
    results: Tuple[ValidationResult, ...]
    summary: ValidationSummary
    executions: Tuple[ValidatorExecution, ...] = ()
    validator_order: Tuple[str, ...] = ()
    config_version: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)
    duration_seconds: float = 0.0

    @property
    def can_proceed(self) -> bool:
        return self.summary.can_proceed

    def results_for(self, agent: str) -> List[ValidationResult]:
        return [r for r in self.results if r.agent == agent]

    def results_by_category(self, category: ValidationCategory) -> List[ValidationResult]:
        return [r for r in self.results if r.category is category]

    def critical_results(self) -> List[ValidationResult]:
        return [r for r in self.results if r.severity is Severity.CRITICAL]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "state": self.state.value,
            "config_version": self.config_version,
            "started_at": self.started_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 4),
            "validator_order": list(self.validator_order),
            "summary": self.summary.to_dict(),
            "executions": [e.to_dict() for e in self.executions],
            "results": [r.to_dict() for r in self.results],
        }
