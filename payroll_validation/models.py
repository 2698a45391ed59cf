"""
Core data model for payroll validation runs.

Records are immutable pydantic models produced once per run by
``normalization.normalize_mapped_data``. Results and descriptors are frozen
dataclasses; their invariants are checked at construction so no validator
can emit a malformed result.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Severity of a validation finding"""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class ResultStatus(str, Enum):
    """Outcome status of a validation finding"""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ValidationCategory(str, Enum):
    """Error taxonomy shared by every validator"""
    MISSING_DATA = "MISSING_DATA"
    FORMAT_INVALID = "FORMAT_INVALID"
    CONSISTENCY_VIOLATION = "CONSISTENCY_VIOLATION"
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    STATISTICAL_OUTLIER = "STATISTICAL_OUTLIER"
    SYSTEM_ERROR = "SYSTEM_ERROR"


class Collection(str, Enum):
    """Which collection a result's affected rows point into"""
    ACTIVE = "active"
    TERMINATIONS = "terminations"
    POPULATION = "population"


_DEFAULT_STATUS = {
    Severity.INFO: ResultStatus.SUCCESS,
    Severity.WARNING: ResultStatus.WARNING,
    Severity.CRITICAL: ResultStatus.ERROR,
}


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


class EmployeeRecord(BaseModel):
    """One active employee, normalized to the canonical schema."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    row_index: int = Field(..., ge=1, description="Stable 1-based row index")
    employee_code: Optional[str] = None
    name: Optional[str] = None
    tax_id: Optional[str] = Field(default=None, description="RFC")
    population_id: Optional[str] = Field(default=None, description="CURP")
    social_security_id: Optional[str] = Field(default=None, description="IMSS NSS")
    birth_date: Optional[date] = None
    hire_date: Optional[date] = None
    base_salary: Optional[float] = Field(default=None, description="Monthly base salary (MXN)")
    integrated_salary: Optional[float] = Field(default=None, description="Monthly integrated salary (MXN)")
    position: Optional[str] = None
    employee_type: Optional[str] = None
    contract_type: Optional[str] = None
    declared_sex: Optional[str] = Field(default=None, pattern=r"^[HM]$")
    plant: Optional[str] = None
    vacation_days: Optional[float] = Field(default=None, ge=0)
    vacation_premium: Optional[float] = Field(default=None, ge=0)
    annual_bonus: Optional[float] = Field(default=None, ge=0)
    weekly_hours: Optional[float] = Field(default=None, ge=0)


class TerminationRecord(EmployeeRecord):
    """A former employee; salaries are the last salaries paid."""

    termination_date: Optional[date] = None
    termination_cause: Optional[str] = None
    seniority_payment: Optional[float] = Field(default=None, ge=0)
    indemnification_payment: Optional[float] = Field(default=None, ge=0)


class MappedData(BaseModel):
    """Immutable snapshot validated by one run."""

    model_config = ConfigDict(frozen=True)

    active_personnel: Tuple[EmployeeRecord, ...] = ()
    terminations: Tuple[TerminationRecord, ...] = ()

    @property
    def total_records(self) -> int:
        return len(self.active_personnel) + len(self.terminations)

    def all_records(self) -> Iterator[Tuple[Collection, EmployeeRecord]]:
        for record in self.active_personnel:
            yield Collection.ACTIVE, record
        for record in self.terminations:
            yield Collection.TERMINATIONS, record


# ---------------------------------------------------------------------------
# Results and descriptors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationResult:
    """A single finding emitted by a validator."""

    agent: str
    field: str
    message: str
    severity: Severity
    category: ValidationCategory
    status: Optional[ResultStatus] = None
    suggestion: Optional[str] = None
    affected_rows: Tuple[int, ...] = ()
    collection: Collection = Collection.ACTIVE
    metadata: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.agent or not self.agent.strip():
            raise ValueError("ValidationResult.agent must be non-empty")
        if not self.message or not self.message.strip():
            raise ValueError("ValidationResult.message must be non-empty")

        severity = Severity(self.severity)
        object.__setattr__(self, "severity", severity)
        object.__setattr__(self, "category", ValidationCategory(self.category))
        object.__setattr__(self, "collection", Collection(self.collection))

        status = ResultStatus(self.status) if self.status is not None else _DEFAULT_STATUS[severity]
        if severity is Severity.CRITICAL and status is not ResultStatus.ERROR:
            raise ValueError("critical results must have status 'error'")
        object.__setattr__(self, "status", status)

        rows = tuple(sorted({int(r) for r in self.affected_rows}))
        if any(r < 1 for r in rows):
            raise ValueError("affected_rows must be 1-based row indices")
        object.__setattr__(self, "affected_rows", rows)
        object.__setattr__(self, "metadata", dict(self.metadata))

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent": self.agent,
            "field": self.field,
            "message": self.message,
            "severity": self.severity.value,
            "status": self.status.value,
            "category": self.category.value,
            "suggestion": self.suggestion,
            "affected_rows": list(self.affected_rows),
            "collection": self.collection.value,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class AgentDescriptor:
    """Static orchestration metadata for a validator."""

    name: str
    description: str
    priority: int = 0
    dependencies: Tuple[str, ...] = ()
    timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("AgentDescriptor.name must be non-empty")
        if self.timeout <= 0:
            raise ValueError("AgentDescriptor.timeout must be positive")
        object.__setattr__(self, "dependencies", tuple(self.dependencies))


def rows_of(records: Iterable[EmployeeRecord]) -> Tuple[int, ...]:
    """Row indices of the given records."""
    return tuple(r.row_index for r in records)
