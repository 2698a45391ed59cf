"""
Anomaly detection across the active population.

Unifies four families of signals into one report:

* statistical outliers (salary IQR fences, age and service z-scores)
* business-rule boundaries (legal working age, extreme ages, salary multiples)
* cross-field correlations (young executives, long tenure on very low pay)
* structural patterns (mass-hiring dates, sequential identifiers)

Rows flagged by two or more upstream validators are reported as multi-signal
rows so reviewers can start with the records most likely to be wrong.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence, Set

from ..config import ValidationConfig
from ..models import AgentDescriptor, Collection, EmployeeRecord, MappedData, ValidationCategory
from ..statistics import iqr_bounds, zscores
from ..utils import calculate_age, calculate_service_years, extract_digits
from .base import ResultBuilder, UpstreamResults, capture_failures, rows_flagged_by

logger = logging.getLogger(__name__)


def business_impact(violations: int, population: int) -> str:
    if population == 0:
        return "BAJO"
    rate = violations / population
    if rate > 0.2:
        return "CRÍTICO"
    if rate > 0.1:
        return "ALTO"
    if rate > 0.05:
        return "MODERADO"
    return "BAJO"


def sequential_pairs(identifiers: Sequence[Optional[str]]) -> int:
    """Adjacent identifiers (in row order) whose numeric parts differ by one."""
    count = 0
    previous = None
    for identifier in identifiers:
        digits = extract_digits(identifier)
        current = int(digits) if digits else None
        if previous is not None and current is not None and abs(current - previous) == 1:
            count += 1
        previous = current
    return count


class AnomalyDetector:
    descriptor = AgentDescriptor(
        name="AnomalyDetector",
        description="Statistical, business-rule, correlation and structural anomalies",
        priority=11,
        dependencies=("SalaryValidator", "BirthDateValidator", "TemporalConsistencyValidator"),
        timeout=40.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        records = data.active_personnel
        if not records:
            return []
        findings = []
        findings.extend(self._statistical(records))
        findings.extend(self._business_rules(records))
        findings.extend(self._correlations(records))
        findings.extend(self._mass_hiring(records))
        findings.extend(self._sequential_identifiers(records))
        findings.extend(self._multi_signal(upstream))
        return findings

    def _statistical(self, records: Sequence[EmployeeRecord]):
        reference = self.config.reference_date()
        threshold = self.config.anomaly.zscore_threshold
        min_population = self.config.salary.min_outlier_population
        findings = []

        salaries = [(r.row_index, r.base_salary) for r in records if r.base_salary is not None]
        if len(salaries) >= min_population:
            _, _, lower, upper = iqr_bounds([s for _, s in salaries], self.config.salary.iqr_multiplier)
            rows = [row for row, value in salaries if value < lower or value > upper]
            if rows:
                findings.append(
                    self.results.warning(
                        "base_salary",
                        f"{len(rows)} salary outliers outside [{lower:,.2f}, {upper:,.2f}]",
                        category=ValidationCategory.STATISTICAL_OUTLIER,
                        suggestion="Review outlying salaries for unit or typing errors",
                        rows=rows,
                        metadata={"lower": round(lower, 2), "upper": round(upper, 2)},
                    )
                )

        series = {
            "birth_date": [
                (r.row_index, calculate_age(r.birth_date, reference))
                for r in records
                if r.birth_date is not None and r.birth_date <= reference
            ],
            "hire_date": [
                (r.row_index, calculate_service_years(r.hire_date, reference))
                for r in records
                if r.hire_date is not None and r.hire_date <= reference
            ],
        }
        labels = {"birth_date": "age", "hire_date": "service"}
        for field_name, values in series.items():
            if len(values) < min_population:
                continue
            scores = zscores([v for _, v in values])
            rows = [row for (row, _), z in zip(values, scores) if abs(z) > threshold]
            if rows:
                findings.append(
                    self.results.warning(
                        field_name,
                        f"{len(rows)} records with an extreme {labels[field_name]} (|z| > {threshold:g})",
                        category=ValidationCategory.STATISTICAL_OUTLIER,
                        suggestion=f"Confirm the {field_name.replace('_', ' ')} of the flagged records",
                        rows=rows,
                    )
                )
        return findings

    def _business_rules(self, records: Sequence[EmployeeRecord]):
        demo = self.config.demographics
        anomaly = self.config.anomaly
        reference = self.config.reference_date()
        salary_ceiling = self.config.monthly_minimum_wage() * anomaly.max_salary_wage_multiple
        underage: List[int] = []
        extreme_age: List[int] = []
        extreme_salary: List[int] = []

        for record in records:
            if record.birth_date is not None and record.birth_date <= reference:
                age = calculate_age(record.birth_date, reference)
                if age < demo.min_working_age:
                    underage.append(record.row_index)
                elif age > demo.extreme_age:
                    extreme_age.append(record.row_index)
            salary = record.base_salary or record.integrated_salary
            if salary and salary > salary_ceiling:
                extreme_salary.append(record.row_index)

        violations = len(set(underage) | set(extreme_age) | set(extreme_salary))
        impact = business_impact(violations, len(records))
        findings = []
        if underage:
            findings.append(
                self.results.critical(
                    "birth_date",
                    f"{len(underage)} employees below the legal working age of {demo.min_working_age}",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Correct the birth dates or remove the records; minors under 16 cannot be employed",
                    rows=underage,
                    metadata={"business_impact": impact},
                )
            )
        if extreme_age:
            findings.append(
                self.results.warning(
                    "birth_date",
                    f"{len(extreme_age)} employees older than {demo.extreme_age}",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Confirm the birth dates; ages this high are rare in an active workforce",
                    rows=extreme_age,
                    metadata={"business_impact": impact},
                )
            )
        if extreme_salary:
            findings.append(
                self.results.warning(
                    "base_salary",
                    f"{len(extreme_salary)} salaries above {anomaly.max_salary_wage_multiple:g} times the minimum wage",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Check whether annual amounts were captured as monthly salaries",
                    rows=extreme_salary,
                    metadata={"business_impact": impact, "ceiling": round(salary_ceiling, 2)},
                )
            )
        return findings

    def _correlations(self, records: Sequence[EmployeeRecord]):
        anomaly = self.config.anomaly
        salary = self.config.salary
        reference = self.config.reference_date()
        floor = self.config.monthly_minimum_wage() * salary.senior_min_wage_multiple
        keywords = [k.upper() for k in anomaly.executive_keywords]
        young_executives: List[int] = []
        underpaid_veterans: List[int] = []

        for record in records:
            position = (record.position or "").upper()
            if record.birth_date is not None and any(k in position for k in keywords):
                if calculate_age(record.birth_date, reference) < anomaly.young_executive_age:
                    young_executives.append(record.row_index)
            if (
                record.hire_date is not None
                and record.hire_date <= reference
                and record.base_salary is not None
                and calculate_service_years(record.hire_date, reference) >= salary.senior_service_years
                and record.base_salary < floor
            ):
                underpaid_veterans.append(record.row_index)

        findings = []
        if young_executives:
            findings.append(
                self.results.warning(
                    "position",
                    f"{len(young_executives)} executives younger than {anomaly.young_executive_age}",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="Confirm the position or the birth date of these employees",
                    rows=young_executives,
                )
            )
        if underpaid_veterans:
            findings.append(
                self.results.warning(
                    "base_salary",
                    f"{len(underpaid_veterans)} employees with long tenure and abnormally low salary",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="Check the hire date and the salary amount",
                    rows=underpaid_veterans,
                )
            )
        return findings

    def _mass_hiring(self, records: Sequence[EmployeeRecord]):
        threshold = self.config.anomaly.mass_hiring_threshold
        by_date: Dict[str, List[int]] = defaultdict(list)
        for record in records:
            if record.hire_date is not None:
                by_date[record.hire_date.isoformat()].append(record.row_index)

        findings = []
        for hire_date, rows in sorted(by_date.items()):
            if len(rows) >= threshold:
                findings.append(
                    self.results.warning(
                        "hire_date",
                        f"{len(rows)} employees share the hire date {hire_date}",
                        category=ValidationCategory.STATISTICAL_OUTLIER,
                        suggestion="Confirm the mass hiring or replace default hire dates with real ones",
                        rows=rows,
                        metadata={"hire_date": hire_date},
                    )
                )
        return findings

    def _sequential_identifiers(self, records: Sequence[EmployeeRecord]):
        share_threshold = self.config.anomaly.sequential_share_threshold
        findings = []
        for field_name in ("employee_code", "tax_id", "social_security_id"):
            identifiers = [getattr(r, field_name) for r in records if getattr(r, field_name)]
            if len(identifiers) < 2:
                continue
            pairs = sequential_pairs(identifiers)
            share = pairs / len(identifiers)
            if share > share_threshold:
                findings.append(
                    self.results.warning(
                        field_name,
                        f"{share:.0%} of {field_name.replace('_', ' ')} values are sequential",
                        category=ValidationCategory.STATISTICAL_OUTLIER,
                        suggestion="Sequential identifiers suggest generated or test data",
                        collection=Collection.POPULATION,
                        metadata={"sequential_pairs": pairs, "share": round(share, 4)},
                    )
                )
        return findings

    def _multi_signal(self, upstream: Optional[UpstreamResults]):
        if not upstream:
            return []
        minimum = self.config.anomaly.multi_signal_min_validators
        flagged_by: Dict[int, Set[str]] = defaultdict(set)
        for name, results in upstream.items():
            for row in rows_flagged_by(results, Collection.ACTIVE):
                flagged_by[row].add(name)

        rows = sorted(row for row, names in flagged_by.items() if len(names) >= minimum)
        if not rows:
            return []
        sources = Counter(name for row in rows for name in flagged_by[row])
        return [
            self.results.warning(
                "record",
                f"{len(rows)} records are flagged by {minimum} or more validators",
                category=ValidationCategory.CONSISTENCY_VIOLATION,
                suggestion="Review these records first; several independent checks disagree with them",
                rows=rows,
                metadata={
                    "validators_by_row": {str(row): sorted(flagged_by[row]) for row in rows},
                    "sources": dict(sources),
                },
            )
        ]
