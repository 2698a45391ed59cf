"""
Federal Labor Law (LFT) and Social Security Law (LSS) compliance.

Each violation carries the statute it breaches and a severity class:

    CRITICO  -> critical  (minimum wage, child labor)
    GRAVE    -> critical  (no social-security registration)
    MODERADO -> warning   (benefits below statutory minimums, working hours)

Declared benefits (vacation days, vacation premium, annual bonus, weekly
hours) are only checked for records that carry them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from ..config import ValidationConfig
from ..models import AgentDescriptor, EmployeeRecord, MappedData, ValidationCategory
from ..utils import calculate_age, calculate_service_years
from .base import ResultBuilder, UpstreamResults, capture_failures

_CENT = 0.01


@dataclass(frozen=True)
class Statute:
    key: str
    article: str
    field: str
    severity_class: str
    description: str
    suggestion: str

    @property
    def is_critical(self) -> bool:
        return self.severity_class in ("CRITICO", "GRAVE")


STATUTES = (
    Statute(
        "minimum_wage", "Art. 90 LFT", "base_salary", "CRITICO",
        "Base salary below the general minimum wage",
        "No worker may earn less than the minimum wage; verify the pay period of the amount",
    ),
    Statute(
        "child_labor", "Art. 22 LFT", "birth_date", "CRITICO",
        "Worker younger than 16",
        "Employing minors under 16 is prohibited; verify the birth date",
    ),
    Statute(
        "social_security_registration", "Art. 15 LSS", "social_security_id", "GRAVE",
        "Worker without IMSS registration",
        "Employers must register every worker with the IMSS; capture the NSS",
    ),
    Statute(
        "vacation_days", "Art. 76 LFT", "vacation_days", "MODERADO",
        "Vacation days below the statutory minimum for the service",
        "Grant at least the statutory vacation days for the years of service",
    ),
    Statute(
        "vacation_premium", "Art. 80 LFT", "vacation_premium", "MODERADO",
        "Vacation premium below 25% of vacation pay",
        "Pay a vacation premium of at least 25% of the salary for vacation days",
    ),
    Statute(
        "annual_bonus", "Art. 87 LFT", "annual_bonus", "MODERADO",
        "Annual bonus (aguinaldo) below 15 days of salary",
        "Pay at least 15 days of salary, prorated by the days worked in the year",
    ),
    Statute(
        "working_hours", "Art. 61 LFT", "weekly_hours", "MODERADO",
        "Weekly hours above the legal maximum",
        "Review the schedule; hours above 48 per week must be paid as overtime",
    ),
)
STATUTES_BY_KEY = {s.key: s for s in STATUTES}


class LaborLawValidator:
    descriptor = AgentDescriptor(
        name="LaborLawValidator",
        description="LFT and LSS compliance: minimum wage, vacations, premium, bonus, registration, age, hours",
        priority=9,
        dependencies=("SalaryValidator", "HireDateValidator", "ActuarialAgeValidator"),
        timeout=35.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        violations: Dict[str, List[int]] = {s.key: [] for s in STATUTES}
        for record in data.active_personnel:
            for key in self.check_record(record):
                violations[key].append(record.row_index)

        findings = []
        for statute in STATUTES:
            rows = violations[statute.key]
            if not rows:
                continue
            message = f"{statute.description} ({statute.article}, {len(rows)} records)"
            metadata = {"statute": statute.article, "severity_class": statute.severity_class}
            if statute.is_critical:
                findings.append(
                    self.results.critical(
                        statute.field, message, category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                        suggestion=statute.suggestion, rows=rows, metadata=metadata,
                    )
                )
            else:
                findings.append(
                    self.results.warning(
                        statute.field, message, category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                        suggestion=statute.suggestion, rows=rows, metadata=metadata,
                    )
                )

        total = len(data.active_personnel)
        if total:
            violating = {row for rows in violations.values() for row in rows}
            score = round(100 * (1 - len(violating) / total), 1)
            findings.append(
                self.results.info(
                    "compliance",
                    f"Labor-law compliance score {score}% ({len(violating)} of {total} employees with findings)",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    metadata={
                        "compliance_score": score,
                        "violations": {k: len(v) for k, v in violations.items() if v},
                    },
                )
            )
        return findings

    def check_record(self, record: EmployeeRecord) -> List[str]:
        """Keys of the statutes the record breaches."""
        law = self.config.labor_law
        reference = self.config.reference_date()
        days_per_month = self.config.minimum_wage.days_per_month
        breaches = []

        if record.base_salary is not None and record.base_salary < self.config.monthly_minimum_wage():
            breaches.append("minimum_wage")
        if record.birth_date is not None and record.birth_date <= reference:
            if calculate_age(record.birth_date, reference) < self.config.demographics.min_working_age:
                breaches.append("child_labor")
        if not record.social_security_id:
            breaches.append("social_security_registration")

        service = None
        if record.hire_date is not None and record.hire_date <= reference:
            service = calculate_service_years(record.hire_date, reference)
        daily = record.base_salary / days_per_month if record.base_salary else None

        required_days = law.vacation_days_for_service(service) if service is not None else None
        if record.vacation_days is not None and required_days and record.vacation_days < required_days:
            breaches.append("vacation_days")

        vacation_days = record.vacation_days if record.vacation_days is not None else required_days
        if record.vacation_premium is not None and daily and vacation_days:
            required = law.vacation_premium_rate * vacation_days * daily
            if record.vacation_premium + _CENT < required:
                breaches.append("vacation_premium")

        if record.annual_bonus is not None and daily and record.hire_date is not None:
            required = law.annual_bonus_days * daily * self.bonus_proration(record.hire_date, reference)
            if record.annual_bonus + _CENT < required:
                breaches.append("annual_bonus")

        if record.weekly_hours is not None and record.weekly_hours > law.max_weekly_hours:
            breaches.append("working_hours")
        return breaches

    @staticmethod
    def bonus_proration(hire_date: date, reference: date) -> float:
        """Share of the calendar year worked up to the reference date."""
        year_start = date(reference.year, 1, 1)
        start = max(hire_date, year_start)
        if start > reference:
            return 0.0
        year_days = (date(reference.year, 12, 31) - year_start).days + 1
        return min(1.0, ((reference - start).days + 1) / year_days)
