"""
Salary validation.

Base and integrated salaries are monthly MXN. The integrated salary (salario
diario integrado times the days in the month) adds statutory benefits to the
base salary, so it can never be lower than the base salary; that rule is
reported once per offending record.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import pandas as pd

from ..config import ValidationConfig
from ..models import (
    AgentDescriptor,
    Collection,
    EmployeeRecord,
    MappedData,
    TerminationRecord,
    ValidationCategory,
)
from ..statistics import describe, iqr_bounds
from ..utils import calculate_service_years, strip_accents
from .base import ResultBuilder, UpstreamResults, capture_failures, iter_collections

logger = logging.getLogger(__name__)


def service_fraction(start, end) -> float:
    """Service in years, counting partial years."""
    return max(0.0, (end - start).days / 365.0)


def position_band(position: Optional[str], bands: Dict[str, List[float]]) -> Optional[Tuple[str, List[float]]]:
    """First position keyword contained in ``position`` and its salary band."""
    if not position:
        return None
    title = strip_accents(position).upper()
    for keyword, band in bands.items():
        if keyword in title:
            return keyword, band
    return None


def position_statistics(records: List[EmployeeRecord]) -> pd.DataFrame:
    """Mean, median, count, skewness and CV of base salary per position."""
    frame = pd.DataFrame(
        [
            {"position": r.position or "UNSPECIFIED", "base_salary": r.base_salary}
            for r in records
            if r.base_salary is not None
        ],
        columns=["position", "base_salary"],
    )
    if frame.empty:
        return frame
    grouped = frame.groupby("position")["base_salary"]
    stats = grouped.agg(["count", "mean", "median", "std"])
    stats["skewness"] = grouped.skew()
    stats["cv"] = stats["std"] / stats["mean"]
    return stats.fillna(0.0).sort_index()


class SalaryValidator:
    descriptor = AgentDescriptor(
        name="SalaryValidator",
        description="Salary relationships, statutory minimum, plausibility bands, outliers and severance",
        priority=8,
        timeout=15.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        findings = []
        for collection, records in iter_collections(data):
            findings.extend(self._record_checks(collection, records))
        findings.extend(self._plausibility(data.active_personnel))
        findings.extend(self._distribution(data.active_personnel))
        findings.extend(self._severance(data.terminations))
        return findings

    # ------------------------------------------------------------------
    # Per-record rules
    # ------------------------------------------------------------------

    def _record_checks(self, collection: Collection, records):
        reference = self.config.reference_date()
        social_security = self.config.social_security
        days = self.config.minimum_wage.days_per_month
        findings = []
        issues: Dict[str, List[int]] = defaultdict(list)
        minimums: Dict[int, float] = {}

        for record in records:
            base, integrated = record.base_salary, record.integrated_salary
            if base is None and integrated is None:
                issues["missing_both"].append(record.row_index)
                continue
            if base is None:
                issues["missing_base"].append(record.row_index)
            if integrated is None:
                issues["missing_integrated"].append(record.row_index)

            if base is not None and integrated is not None and integrated < base:
                findings.append(
                    self.results.critical(
                        "integrated_salary",
                        f"Integrated salary {integrated:,.2f} is lower than base salary {base:,.2f}",
                        category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                        suggestion="The integrated salary includes statutory benefits and must be at least "
                        "the base salary; check whether the columns are swapped",
                        rows=[record.row_index],
                        collection=collection,
                        metadata={"base_salary": base, "integrated_salary": integrated},
                    )
                )

            year = reference.year
            if isinstance(record, TerminationRecord) and record.termination_date is not None:
                year = record.termination_date.year
            minimum = self.config.monthly_minimum_wage(year)
            minimums[year] = minimum
            if base is not None and base < minimum:
                issues["base_below_minimum"].append(record.row_index)
            if integrated is not None and integrated < minimum:
                issues["integrated_below_minimum"].append(record.row_index)

            if integrated is not None and integrated / days > social_security.contribution_cap_daily(year):
                issues["above_contribution_cap"].append(record.row_index)

        if issues.get("missing_both"):
            findings.append(
                self.results.critical(
                    "base_salary",
                    f"{len(issues['missing_both'])} {collection.value} records have neither base nor integrated salary",
                    category=ValidationCategory.MISSING_DATA,
                    suggestion="Capture the monthly base and integrated salaries",
                    rows=issues["missing_both"],
                    collection=collection,
                )
            )
        for field_name, key in (("base_salary", "missing_base"), ("integrated_salary", "missing_integrated")):
            if issues.get(key):
                findings.append(
                    self.results.warning(
                        field_name,
                        f"{len(issues[key])} {collection.value} records have no {field_name.replace('_', ' ')}",
                        category=ValidationCategory.MISSING_DATA,
                        suggestion="Capture the missing salary so both can be reconciled",
                        rows=issues[key],
                        collection=collection,
                    )
                )
        for field_name, key in (
            ("base_salary", "base_below_minimum"),
            ("integrated_salary", "integrated_below_minimum"),
        ):
            if issues.get(key):
                findings.append(
                    self.results.critical(
                        field_name,
                        f"{field_name.replace('_', ' ').capitalize()} below the statutory monthly minimum wage "
                        f"({len(issues[key])} records)",
                        category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                        suggestion="Salaries are monthly; verify the amount is not daily or weekly pay",
                        rows=issues[key],
                        collection=collection,
                        metadata={"monthly_minimum_by_year": {str(y): round(v, 2) for y, v in minimums.items()}},
                    )
                )
        if issues.get("above_contribution_cap"):
            findings.append(
                self.results.info(
                    "integrated_salary",
                    f"{len(issues['above_contribution_cap'])} {collection.value} records exceed the "
                    f"{social_security.contribution_cap_umas:g} UMA contribution cap",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    rows=issues["above_contribution_cap"],
                    collection=collection,
                )
            )
        return findings

    def _plausibility(self, records):
        salary = self.config.salary
        reference = self.config.reference_date()
        minimum = self.config.monthly_minimum_wage()
        out_of_band: Dict[str, List[int]] = defaultdict(list)
        out_of_position_band: Dict[str, List[int]] = defaultdict(list)
        underpaid_seniors: List[int] = []
        high_ratio: List[int] = []
        low_ratio: List[int] = []

        for record in records:
            base, integrated = record.base_salary, record.integrated_salary
            band = salary.employee_type_bands.get(record.employee_type or "")
            if band and base is not None and not band[0] <= base <= band[1]:
                out_of_band[record.employee_type].append(record.row_index)
            matched = position_band(record.position, salary.position_bands)
            if matched and base is not None and not matched[1][0] <= base <= matched[1][1]:
                out_of_position_band[matched[0]].append(record.row_index)

            if (
                base is not None
                and record.hire_date is not None
                and record.hire_date <= reference
                and calculate_service_years(record.hire_date, reference) >= salary.senior_service_years
                and base < minimum * salary.senior_min_wage_multiple
            ):
                underpaid_seniors.append(record.row_index)

            if base and integrated is not None and integrated >= base:
                ratio = integrated / base
                if ratio > salary.max_integration_ratio:
                    high_ratio.append(record.row_index)
                elif ratio < salary.min_integration_ratio:
                    low_ratio.append(record.row_index)

        findings = []
        for employee_type, rows in sorted(out_of_band.items()):
            low, high = salary.employee_type_bands[employee_type]
            findings.append(
                self.results.warning(
                    "base_salary",
                    f"Base salary outside the expected {low:,.0f}-{high:,.0f} range for {employee_type} "
                    f"({len(rows)} records)",
                    category=ValidationCategory.STATISTICAL_OUTLIER,
                    suggestion="Confirm the employee type and the salary amount",
                    rows=rows,
                    metadata={"employee_type": employee_type, "band": [low, high]},
                )
            )
        for keyword, rows in sorted(out_of_position_band.items()):
            low, high = salary.position_bands[keyword]
            findings.append(
                self.results.warning(
                    "base_salary",
                    f"Base salary inconsistent with {keyword} positions, expected {low:,.0f}-{high:,.0f} "
                    f"({len(rows)} records)",
                    category=ValidationCategory.STATISTICAL_OUTLIER,
                    suggestion="Confirm the position title and the salary amount",
                    rows=rows,
                    metadata={"position_keyword": keyword, "band": [low, high]},
                )
            )
        if underpaid_seniors:
            findings.append(
                self.results.warning(
                    "base_salary",
                    f"Employees with {salary.senior_service_years}+ years of service paid close to the minimum wage "
                    f"({len(underpaid_seniors)} records)",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="Check the hire date or the salary; long tenure usually earns above minimum",
                    rows=underpaid_seniors,
                )
            )
        if high_ratio:
            findings.append(
                self.results.warning(
                    "integrated_salary",
                    f"Integrated salary exceeds {salary.max_integration_ratio:g}x the base salary "
                    f"({len(high_ratio)} records)",
                    category=ValidationCategory.STATISTICAL_OUTLIER,
                    suggestion="Check whether one-off payments were included in the integrated salary",
                    rows=high_ratio,
                )
            )
        if low_ratio:
            findings.append(
                self.results.warning(
                    "integrated_salary",
                    f"Integrated salary is less than {salary.min_integration_ratio:g}x the base salary "
                    f"({len(low_ratio)} records)",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="The integrated salary should include at least the bonus and vacation premium",
                    rows=low_ratio,
                )
            )
        return findings

    # ------------------------------------------------------------------
    # Distribution
    # ------------------------------------------------------------------

    def _distribution(self, records):
        settings = self.config.salary
        salaries = [(r.row_index, r.base_salary) for r in records if r.base_salary is not None]
        if not salaries:
            return []

        values = [value for _, value in salaries]
        stats = describe(values)
        by_position = position_statistics(list(records))
        findings = [
            self.results.info(
                "base_salary",
                f"Base salary: mean {stats.mean:,.2f}, median {stats.median:,.2f} over {stats.count} employees",
                category=ValidationCategory.STATISTICAL_OUTLIER,
                metadata={
                    "statistics": stats.to_dict(),
                    "by_position": {
                        position: {k: round(float(v), 4) for k, v in row.items()}
                        for position, row in by_position.to_dict(orient="index").items()
                    },
                },
            )
        ]

        if len(values) >= settings.min_outlier_population:
            _, _, lower, upper = iqr_bounds(values, settings.iqr_multiplier)
            for row, value in salaries:
                if value < lower or value > upper:
                    findings.append(
                        self.results.warning(
                            "base_salary",
                            f"Base salary {value:,.2f} lies outside the IQR fences [{lower:,.2f}, {upper:,.2f}]",
                            category=ValidationCategory.STATISTICAL_OUTLIER,
                            suggestion="Confirm the amount; outliers distort the valuation",
                            rows=[row],
                            metadata={"value": value, "lower": round(lower, 2), "upper": round(upper, 2)},
                        )
                    )

        if stats.skewness > settings.skewness_threshold:
            findings.append(
                self.results.warning(
                    "base_salary",
                    f"Salary distribution is highly skewed ({stats.skewness:.2f})",
                    category=ValidationCategory.STATISTICAL_OUTLIER,
                    suggestion="A few very high salaries dominate; confirm them before valuation",
                    collection=Collection.POPULATION,
                    metadata={"skewness": round(stats.skewness, 4)},
                )
            )
        if stats.coefficient_of_variation > settings.cv_threshold:
            findings.append(
                self.results.warning(
                    "base_salary",
                    f"Salary dispersion is very high (CV {stats.coefficient_of_variation:.2f})",
                    category=ValidationCategory.STATISTICAL_OUTLIER,
                    suggestion="Check for mixed pay periods (daily vs monthly) in the salary column",
                    collection=Collection.POPULATION,
                    metadata={"coefficient_of_variation": round(stats.coefficient_of_variation, 4)},
                )
            )
        return findings

    # ------------------------------------------------------------------
    # Terminations
    # ------------------------------------------------------------------

    def statutory_seniority_premium(self, record: TerminationRecord) -> Optional[float]:
        """12 days per year of service at a daily wage capped at twice the minimum."""
        salary = self.config.salary
        daily = self._daily_salary(record)
        if daily is None or record.hire_date is None or record.termination_date is None:
            return None
        year = record.termination_date.year
        capped = min(daily, salary.seniority_wage_cap_multiple * self.config.daily_minimum_wage(year))
        years = service_fraction(record.hire_date, record.termination_date)
        return salary.seniority_days_per_year * years * capped

    def statutory_indemnification(self, record: TerminationRecord) -> Optional[float]:
        """Three months plus 20 days per year of integrated daily salary."""
        salary = self.config.salary
        daily = self._daily_salary(record)
        if daily is None or record.hire_date is None or record.termination_date is None:
            return None
        years = service_fraction(record.hire_date, record.termination_date)
        return (salary.indemnification_base_days + salary.indemnification_days_per_year * years) * daily

    def _daily_salary(self, record: EmployeeRecord) -> Optional[float]:
        monthly = record.integrated_salary or record.base_salary
        if not monthly:
            return None
        return monthly / self.config.minimum_wage.days_per_month

    def _severance(self, records):
        tolerance = self.config.salary.severance_tolerance
        excessive_seniority = []
        excessive_indemnification = []
        for record in records:
            if record.seniority_payment:
                expected = self.statutory_seniority_premium(record)
                if expected is not None and record.seniority_payment > expected * tolerance:
                    excessive_seniority.append(
                        {"row": record.row_index, "paid": record.seniority_payment, "expected": round(expected, 2)}
                    )
            if record.indemnification_payment:
                expected = self.statutory_indemnification(record)
                if expected is not None and record.indemnification_payment > expected * tolerance:
                    excessive_indemnification.append(
                        {"row": record.row_index, "paid": record.indemnification_payment, "expected": round(expected, 2)}
                    )

        findings = []
        if excessive_seniority:
            findings.append(
                self.results.warning(
                    "seniority_payment",
                    f"Seniority premium paid above the statutory estimate ({len(excessive_seniority)} records)",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Confirm whether a contractual premium above Art. 162 LFT was paid",
                    rows=[d["row"] for d in excessive_seniority],
                    collection=Collection.TERMINATIONS,
                    metadata={"details": excessive_seniority},
                )
            )
        if excessive_indemnification:
            findings.append(
                self.results.warning(
                    "indemnification_payment",
                    f"Indemnification paid above the statutory estimate ({len(excessive_indemnification)} records)",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Confirm whether the settlement included amounts beyond Art. 50 LFT",
                    rows=[d["row"] for d in excessive_indemnification],
                    collection=Collection.TERMINATIONS,
                    metadata={"details": excessive_indemnification},
                )
            )
        logger.debug(f"Checked severance payments for {len(records)} terminations")
        return findings
